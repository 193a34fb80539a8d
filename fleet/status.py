"""Status enums for vehicles and public reports."""

from enum import Enum


class MaintenanceStatus(Enum):
    """Vehicle maintenance state as shown in the registry."""

    OK = "ok"
    NEEDS_SERVICE = "needs_service"

    @property
    def label(self) -> str:
        return "OK" if self is MaintenanceStatus.OK else "Needs service"


class ReportStatus(Enum):
    """Review state of a public report. Declaration order = workflow order."""

    NEW = "new"
    REVIEWED = "reviewed"
    PROCESSED = "processed"

    @property
    def label(self) -> str:
        return self.value.capitalize()
