#!/usr/bin/env python3
"""Tests for status enums and entity helpers."""

from fleet import (
    MaintenanceRecord,
    MaintenanceStatus,
    PublicReport,
    ReportStatus,
    Task,
    Vehicle,
    toggle_completion,
    toggle_task,
    with_status,
)


def make_record(**kwargs):
    fields = dict(
        id="1",
        vehicle_id="2",
        vehicle_plate_number="987-65-432",
        service_type="Brake check",
        date="2024-02-20",
        tasks=[Task("1-1", "Replace pads"), Task("1-2", "Check fluid", True)],
    )
    fields.update(kwargs)
    return MaintenanceRecord(**fields)


class TestMaintenanceStatus:
    """Tests for MaintenanceStatus."""

    def test_values(self):
        assert MaintenanceStatus("ok") is MaintenanceStatus.OK
        assert MaintenanceStatus("needs_service") is MaintenanceStatus.NEEDS_SERVICE

    def test_labels(self):
        assert MaintenanceStatus.OK.label == "OK"
        assert MaintenanceStatus.NEEDS_SERVICE.label == "Needs service"


class TestReportStatus:
    """Tests for ReportStatus."""

    def test_workflow_order(self):
        assert [s.value for s in ReportStatus] == ["new", "reviewed", "processed"]

    def test_labels(self):
        assert ReportStatus.REVIEWED.label == "Reviewed"


class TestVehicle:
    """Tests for Vehicle properties."""

    def test_name(self):
        vehicle = Vehicle("1", "123-45-678", "Toyota Corolla", "VIN", "BAR001")
        assert vehicle.name == "123-45-678 - Toyota Corolla"

    def test_availability_follows_status(self):
        vehicle = Vehicle("1", "123-45-678", "Corolla", "VIN", "BAR001")
        assert vehicle.is_available
        vehicle.maintenance_status = MaintenanceStatus.NEEDS_SERVICE
        assert not vehicle.is_available


class TestToggles:
    """Tests for toggle_completion and toggle_task."""

    def test_toggle_completion_returns_copy(self):
        record = make_record()
        toggled = toggle_completion(record)
        assert toggled.completed is True
        assert record.completed is False
        assert toggle_completion(toggled).completed is False

    def test_toggle_task(self):
        record = make_record()
        toggled = toggle_task(record, "1-1")
        assert toggled.get_task("1-1").completed is True
        assert toggled.get_task("1-2").completed is True
        assert record.get_task("1-1").completed is False

    def test_toggle_unknown_task_changes_nothing(self):
        record = make_record()
        assert toggle_task(record, "nope").tasks == record.tasks

    def test_open_tasks(self):
        assert [t.id for t in make_record().open_tasks] == ["1-1"]


class TestWithStatus:
    """Tests for with_status."""

    def test_returns_copy(self):
        report = PublicReport(
            id="1", barcode="BAR001", mileage=1, feature="Other",
            date="2025-01-01", time="09:00", driver_name="Dana",
        )
        processed = with_status(report, ReportStatus.PROCESSED)
        assert processed.status is ReportStatus.PROCESSED
        assert report.status is ReportStatus.NEW
