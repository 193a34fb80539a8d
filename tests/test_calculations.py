#!/usr/bin/env python3
"""Tests for dashboard, report and calendar aggregates."""

from datetime import date

from fleet import (
    MAINTENANCE_RECORDS,
    VEHICLES,
    EntityStore,
    MaintenanceRecord,
    MaintenanceStatus,
    MemoryStorage,
    PublicReport,
    ReportStatus,
    Task,
    Vehicle,
)
from fleet.calculations import (
    LiveDashboardStats,
    cost_summary,
    dashboard_stats,
    display_plate,
    event_days,
    events_on,
    filter_by_vehicle,
    filter_reports,
    maintenance_stats,
    monthly_series,
    parse_month,
    report_status_counts,
    service_type_distribution,
)

TODAY = date(2025, 3, 15)


def record(record_id, day, cost=None, vehicle_id="1", service="Oil service", **kwargs):
    return MaintenanceRecord(
        id=record_id,
        vehicle_id=vehicle_id,
        vehicle_plate_number="123-45-678",
        service_type=service,
        date=day,
        cost=cost,
        **kwargs,
    )


def report(report_id, driver="Dana", barcode="BAR001", feature="Regular trip", status=ReportStatus.NEW):
    return PublicReport(
        id=report_id,
        barcode=barcode,
        mileage=1000,
        feature=feature,
        date="2025-03-01",
        time="08:00",
        driver_name=driver,
        status=status,
    )


VEHICLE_OK = Vehicle("1", "123-45-678", "Corolla", "VIN1", "BAR001")
VEHICLE_SERVICE = Vehicle(
    "2", "987-65-432", "Civic", "VIN2", "BAR002", MaintenanceStatus.NEEDS_SERVICE
)


class TestParseMonth:
    """Tests for parse_month."""

    def test_iso_date(self):
        assert parse_month("2025-03-02") == (2025, 3)

    def test_datetime_string(self):
        assert parse_month("2025-03-02T10:00:00") == (2025, 3)

    def test_invalid(self):
        assert parse_month("") is None
        assert parse_month(None) is None
        assert parse_month("March") is None


class TestDashboardStats:
    """Tests for dashboard_stats."""

    def test_counts(self):
        records = [record("1", "2025-03-01"), record("2", "2025-02-28"), record("3", "2024-03-10")]
        stats = dashboard_stats([VEHICLE_OK, VEHICLE_SERVICE], records, [report("r")], TODAY)
        assert stats.total_vehicles == 2
        assert stats.available_vehicles == 1
        assert stats.maintenance_this_month == 1
        assert stats.total_reports == 1

    def test_empty(self):
        stats = dashboard_stats([], [], [], TODAY)
        assert stats.total_vehicles == 0
        assert stats.maintenance_this_month == 0


class TestLiveDashboardStats:
    """Dashboard stats follow store change notifications."""

    def test_refreshes_after_save(self):
        store = EntityStore(MemoryStorage(), seed=False)
        live = LiveDashboardStats(store)
        assert live.get(TODAY).total_vehicles == 0

        store.upsert(VEHICLES, VEHICLE_OK)
        assert live.get(TODAY).total_vehicles == 1

        store.upsert(MAINTENANCE_RECORDS, record("1", "2025-03-05"))
        assert live.get(TODAY).maintenance_this_month == 1

    def test_cached_until_notified(self):
        storage = MemoryStorage()
        store = EntityStore(storage, seed=False)
        live = LiveDashboardStats(store)
        live.get(TODAY)

        # Written behind the store's back: no notification, no reload
        storage.set(VEHICLES, '[{"id": "9", "plateNumber": "x"}]')
        assert live.get(TODAY).total_vehicles == 0
        assert live.refresh(TODAY).total_vehicles == 1

    def test_new_day_reloads(self):
        storage = MemoryStorage()
        live = LiveDashboardStats(EntityStore(storage, seed=False))
        live.get(TODAY)
        storage.set(VEHICLES, '[{"id": "9", "plateNumber": "x"}]')
        assert live.get(date(2025, 3, 16)).total_vehicles == 1

    def test_unsubscribe(self):
        store = EntityStore(MemoryStorage(), seed=False)
        live = LiveDashboardStats(store)
        live.get(TODAY)
        live.unsubscribe()
        store.upsert(VEHICLES, VEHICLE_OK)
        assert live.get(TODAY).total_vehicles == 0

    def test_with_seeded_store(self):
        live = LiveDashboardStats(EntityStore(MemoryStorage()))
        stats = live.get(TODAY)
        assert stats.total_vehicles == 2
        assert stats.available_vehicles == 1


class TestMaintenanceStats:
    """Tests for maintenance_stats."""

    def test_counts_and_cost(self):
        records = [
            record("1", "2025-03-01", cost=100, completed=True),
            record("2", "2025-03-02", cost=50.5, tasks=[Task("a", "x"), Task("b", "y", True)]),
            record("3", "2025-03-03", tasks=[Task("c", "z")]),
        ]
        stats = maintenance_stats(records)
        assert stats.total == 3
        assert stats.completed == 1
        assert stats.open == 2
        assert stats.open_tasks == 2
        assert stats.total_cost == 150.5


class TestMonthlySeries:
    """Tests for monthly_series."""

    def test_twelve_months_ending_now(self):
        series = monthly_series([], TODAY)
        assert len(series) == 12
        assert series[0].month == date(2024, 4, 1)
        assert series[-1].month == date(2025, 3, 1)

    def test_buckets_records(self):
        records = [
            record("1", "2025-03-02", cost=100),
            record("2", "2025-03-20", cost=20),
            record("3", "2024-04-30", cost=5),
            record("4", "2024-03-31", cost=1000),
            record("5", "not a date", cost=7),
        ]
        series = monthly_series(records, TODAY)
        assert (series[-1].count, series[-1].cost) == (2, 120)
        assert (series[0].count, series[0].cost) == (1, 5)
        assert sum(b.count for b in series) == 3

    def test_month_end_today(self):
        series = monthly_series([], date(2025, 3, 31), months=2)
        assert [b.month for b in series] == [date(2025, 2, 1), date(2025, 3, 1)]


class TestReportAggregates:
    """Tests for cost summary, distribution and vehicle filter."""

    def test_filter_by_vehicle(self):
        records = [record("1", "2025-03-01"), record("2", "2025-03-01", vehicle_id="2")]
        assert [r.id for r in filter_by_vehicle(records, "2")] == ["2"]
        assert len(filter_by_vehicle(records, "all")) == 2
        assert len(filter_by_vehicle(records, None)) == 2

    def test_cost_summary(self):
        records = [
            record("1", "2025-03-01", cost=100),
            record("2", "2025-01-01", cost=40),
            record("3", "2025-03-09"),
        ]
        summary = cost_summary(records, TODAY)
        assert summary.total_cost == 140
        assert summary.this_month_count == 2
        assert summary.this_month_cost == 100

    def test_service_type_distribution(self):
        records = [
            record("1", "2025-03-01", service="Brake check"),
            record("2", "2025-03-01"),
            record("3", "2025-03-01", service="Brake check"),
        ]
        assert service_type_distribution(records) == {"Brake check": 2, "Oil service": 1}


class TestCalendar:
    """Tests for events_on and event_days."""

    def test_events_on_day(self):
        records = [
            record("1", "2025-03-15"),
            record("2", "2025-03-15", vehicle_id="2"),
            record("3", "2025-03-16"),
        ]
        assert [r.id for r in events_on(records, TODAY)] == ["1", "2"]
        assert [r.id for r in events_on(records, TODAY, "2")] == ["2"]

    def test_event_days(self):
        records = [record("1", "2025-03-16"), record("2", "2025-03-15"), record("3", "2025-03-16")]
        assert event_days(records) == ["2025-03-15", "2025-03-16"]


class TestDisplayPlate:
    """The current vehicle plate wins over the stored snapshot."""

    def test_current_vehicle_plate(self):
        renamed = Vehicle("1", "111-11-111", "Corolla", "VIN1", "BAR001")
        assert display_plate(record("1", "2025-03-01"), {"1": renamed}) == "111-11-111"

    def test_snapshot_when_vehicle_deleted(self):
        assert display_plate(record("1", "2025-03-01"), {}) == "123-45-678"


class TestReportHistory:
    """Tests for filter_reports and report_status_counts."""

    def test_search_is_case_insensitive(self):
        reports = [report("1", driver="Dana Levi"), report("2", driver="Omer", barcode="bar777")]
        assert [r.id for r in filter_reports(reports, search="dana")] == ["1"]
        assert [r.id for r in filter_reports(reports, search="BAR7")] == ["2"]
        assert [r.id for r in filter_reports(reports, search="regular")] == ["1", "2"]

    def test_status_filter(self):
        reports = [report("1"), report("2", status=ReportStatus.PROCESSED)]
        assert [r.id for r in filter_reports(reports, status="processed")] == ["2"]
        assert len(filter_reports(reports, status="all")) == 2

    def test_status_counts(self):
        reports = [report("1"), report("2", status=ReportStatus.REVIEWED), report("3")]
        assert report_status_counts(reports) == {
            "all": 3, "new": 2, "reviewed": 1, "processed": 0
        }
