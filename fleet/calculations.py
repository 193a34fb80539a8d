"""Aggregates for dashboards, reports and the maintenance calendar."""

from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from .loader import MAINTENANCE_RECORDS, PUBLIC_REPORTS, VEHICLES
from .maintenance_record import MaintenanceRecord
from .public_report import PublicReport
from .status import ReportStatus
from .vehicle import Vehicle

ALL = "all"


def parse_month(date_str: Optional[str]) -> Optional[Tuple[int, int]]:
    """(year, month) of an ISO date string, or None if it isn't one."""
    if not date_str:
        return None
    try:
        day = date.fromisoformat(date_str[:10])
    except ValueError:
        return None
    return day.year, day.month


def in_month(date_str: Optional[str], month: date) -> bool:
    return parse_month(date_str) == (month.year, month.month)


def total_cost(records: List[MaintenanceRecord]) -> float:
    return sum(r.cost for r in records if r.cost)


def filter_by_vehicle(
    records: List[MaintenanceRecord], vehicle_id: Optional[str]
) -> List[MaintenanceRecord]:
    """Records for one vehicle; None or "all" keeps everything."""
    if not vehicle_id or vehicle_id == ALL:
        return list(records)
    return [r for r in records if r.vehicle_id == vehicle_id]


def display_plate(record: MaintenanceRecord, vehicles_by_id: Dict[str, Vehicle]) -> str:
    """
    Plate number to show for a record.

    The record's snapshot is not rewritten when a vehicle is edited, so the
    current plate of the referenced vehicle wins; the snapshot is only used
    when the vehicle no longer exists.
    """
    vehicle = vehicles_by_id.get(record.vehicle_id)
    if vehicle is not None:
        return vehicle.plate_number
    return record.vehicle_plate_number or "-"


# =============================================================================
# Dashboard
# =============================================================================


@dataclass
class DashboardStats:
    """Headline numbers for the dashboard."""

    total_vehicles: int = 0
    available_vehicles: int = 0
    maintenance_this_month: int = 0
    total_reports: int = 0


def dashboard_stats(
    vehicles: List[Vehicle],
    records: List[MaintenanceRecord],
    reports: List[PublicReport],
    today: Optional[date] = None,
) -> DashboardStats:
    today = today or date.today()
    return DashboardStats(
        total_vehicles=len(vehicles),
        available_vehicles=sum(1 for v in vehicles if v.is_available),
        maintenance_this_month=sum(1 for r in records if in_month(r.date, today)),
        total_reports=len(reports),
    )


class LiveDashboardStats:
    """
    Dashboard stats kept current through store change notifications.

    Any save to a collection the stats depend on drops the cached value;
    the next read does a full reload of all three collections.
    """

    WATCHED = (VEHICLES, MAINTENANCE_RECORDS, PUBLIC_REPORTS)

    def __init__(self, store):
        self.store = store
        self._stats: Optional[DashboardStats] = None
        self._as_of: Optional[date] = None
        self.unsubscribe = store.subscribe(self._on_change)

    def _on_change(self, collection: str) -> None:
        if collection in self.WATCHED:
            self._stats = None

    def refresh(self, today: Optional[date] = None) -> DashboardStats:
        today = today or date.today()
        self._stats = None
        vehicles = self.store.load(VEHICLES)
        records = self.store.load(MAINTENANCE_RECORDS)
        reports = self.store.load(PUBLIC_REPORTS)
        # Loading may seed collections, which notifies and clears the cache
        self._stats = dashboard_stats(vehicles, records, reports, today)
        self._as_of = today
        return self._stats

    def get(self, today: Optional[date] = None) -> DashboardStats:
        today = today or date.today()
        if self._stats is None or self._as_of != today:
            return self.refresh(today)
        return self._stats


# =============================================================================
# Maintenance page
# =============================================================================


@dataclass
class MaintenanceStats:
    total: int
    completed: int
    open: int
    open_tasks: int
    total_cost: float


def maintenance_stats(records: List[MaintenanceRecord]) -> MaintenanceStats:
    completed = sum(1 for r in records if r.completed)
    return MaintenanceStats(
        total=len(records),
        completed=completed,
        open=len(records) - completed,
        open_tasks=sum(len(r.open_tasks) for r in records),
        total_cost=total_cost(records),
    )


# =============================================================================
# Reports page
# =============================================================================


@dataclass
class MonthBucket:
    """Maintenance activity for one calendar month."""

    month: date
    count: int = 0
    cost: float = 0

    @property
    def label(self) -> str:
        return self.month.strftime("%b %y")


def monthly_series(
    records: List[MaintenanceRecord], today: Optional[date] = None, months: int = 12
) -> List[MonthBucket]:
    """
    Count and cost per month for the last ``months`` months.

    Oldest month first; the last bucket is the current month. Records
    outside the window or without a parseable date are ignored.
    """
    today = today or date.today()
    first_of_month = today.replace(day=1)
    buckets = [
        MonthBucket(month=first_of_month - relativedelta(months=offset))
        for offset in range(months - 1, -1, -1)
    ]
    by_month = {(b.month.year, b.month.month): b for b in buckets}
    for record in records:
        bucket = by_month.get(parse_month(record.date))
        if bucket is None:
            continue
        bucket.count += 1
        if record.cost:
            bucket.cost += record.cost
    return buckets


def service_type_distribution(records: List[MaintenanceRecord]) -> Dict[str, int]:
    """Number of records per service type, in first-seen order."""
    counts: Dict[str, int] = {}
    for record in records:
        counts[record.service_type] = counts.get(record.service_type, 0) + 1
    return counts


@dataclass
class CostSummary:
    total_cost: float
    this_month_count: int
    this_month_cost: float


def cost_summary(
    records: List[MaintenanceRecord], today: Optional[date] = None
) -> CostSummary:
    today = today or date.today()
    this_month = [r for r in records if in_month(r.date, today)]
    return CostSummary(
        total_cost=total_cost(records),
        this_month_count=len(this_month),
        this_month_cost=total_cost(this_month),
    )


# =============================================================================
# Calendar
# =============================================================================


def events_on(
    records: List[MaintenanceRecord], day: date, vehicle_id: Optional[str] = None
) -> List[MaintenanceRecord]:
    """Maintenance records scheduled on a given day."""
    day_str = day.isoformat()
    return [r for r in filter_by_vehicle(records, vehicle_id) if r.date == day_str]


def event_days(records: List[MaintenanceRecord]) -> List[str]:
    """Distinct record dates, sorted."""
    return sorted({r.date for r in records if r.date})


# =============================================================================
# Public report history
# =============================================================================


def filter_reports(
    reports: List[PublicReport],
    search: Optional[str] = None,
    status: Optional[str] = None,
) -> List[PublicReport]:
    """Reports matching a search term and a status value ("all" or None for any)."""
    result = reports
    if search:
        result = [r for r in result if r.matches(search)]
    if status and status != ALL:
        result = [r for r in result if r.status.value == status]
    return list(result)


def report_status_counts(reports: List[PublicReport]) -> Dict[str, int]:
    counts = {ALL: len(reports)}
    for status in ReportStatus:
        counts[status.value] = sum(1 for r in reports if r.status is status)
    return counts
