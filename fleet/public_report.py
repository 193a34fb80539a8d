"""PublicReport class for driver-submitted vehicle reports."""

from dataclasses import dataclass, field, replace
from typing import List

from .status import ReportStatus


FEATURES = [
    "Regular trip",
    "Guest transport",
    "Urgent delivery",
    "Special project",
    "Driving training",
    "Routine maintenance",
    "Other",
]


@dataclass
class PublicReport:
    """A vehicle condition report submitted through the public form."""

    id: str
    barcode: str
    mileage: float
    feature: str
    date: str
    time: str
    driver_name: str
    notes: str = ""
    images: List[str] = field(default_factory=list)
    submitted_at: str = ""
    status: ReportStatus = ReportStatus.NEW

    def matches(self, term: str) -> bool:
        """Case-insensitive search over driver name, barcode and feature."""
        term = term.lower()
        return (
            term in self.driver_name.lower()
            or term in self.barcode.lower()
            or term in self.feature.lower()
        )


def with_status(report: PublicReport, status: ReportStatus) -> PublicReport:
    """Copy of the report moved to the given review status."""
    return replace(report, status=status)
