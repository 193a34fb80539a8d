"""
Fleet management models and persistence.

This package provides:
- Vehicle, MaintenanceRecord, Task, PublicReport: the stored entities
- MaintenanceStatus, ReportStatus: status enums
- EntityStore: load/save/upsert/remove of named collections with change
  notification, over FileStorage or MemoryStorage
- Form parsers, dashboard/report aggregates and barcode/QR drawing
"""

from .status import MaintenanceStatus, ReportStatus
from .vehicle import Vehicle
from .maintenance_record import (
    SERVICE_TYPES,
    MaintenanceRecord,
    Task,
    toggle_completion,
    toggle_task,
)
from .public_report import FEATURES, PublicReport, with_status
from .exceptions import (
    FleetError,
    FormError,
    StoreWriteError,
    UnknownCollectionError,
    CodeGenerationError,
)
from .loader import VEHICLES, MAINTENANCE_RECORDS, PUBLIC_REPORTS, COLLECTIONS
from .storage import FileStorage, MemoryStorage
from .store import EntityStore, new_id

__all__ = [
    "MaintenanceStatus",
    "ReportStatus",
    "Vehicle",
    "SERVICE_TYPES",
    "MaintenanceRecord",
    "Task",
    "toggle_completion",
    "toggle_task",
    "FEATURES",
    "PublicReport",
    "with_status",
    "FleetError",
    "FormError",
    "StoreWriteError",
    "UnknownCollectionError",
    "CodeGenerationError",
    "VEHICLES",
    "MAINTENANCE_RECORDS",
    "PUBLIC_REPORTS",
    "COLLECTIONS",
    "FileStorage",
    "MemoryStorage",
    "EntityStore",
    "new_id",
]
