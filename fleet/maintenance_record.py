"""MaintenanceRecord and Task classes for logged service work."""

from dataclasses import dataclass, field, replace
from typing import List, Optional


SERVICE_TYPES = [
    "Oil service",
    "Tire check",
    "Brake check",
    "A/C check",
    "Radiator check",
    "Battery check",
    "Lights check",
    "Wipers check",
    "Gas refill",
    "Filter replacement",
    "Engine check",
    "Other",
]


@dataclass
class Task:
    """A single checklist item inside a maintenance record."""

    id: str
    description: str
    completed: bool = False


@dataclass
class MaintenanceRecord:
    """A record of maintenance planned or performed on a vehicle."""

    id: str
    vehicle_id: str
    vehicle_plate_number: str
    service_type: str
    date: str
    notes: str = ""
    cost: Optional[float] = None
    added_date: str = ""
    completed: bool = False
    tasks: List[Task] = field(default_factory=list)
    receipt_image: Optional[str] = None

    @property
    def open_tasks(self) -> List[Task]:
        return [t for t in self.tasks if not t.completed]

    def get_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None


def toggle_completion(record: MaintenanceRecord) -> MaintenanceRecord:
    """Copy of the record with its completed flag flipped."""
    return replace(record, completed=not record.completed)


def toggle_task(record: MaintenanceRecord, task_id: str) -> MaintenanceRecord:
    """Copy of the record with one task's completed flag flipped."""
    tasks = [
        replace(t, completed=not t.completed) if t.id == task_id else t
        for t in record.tasks
    ]
    return replace(record, tasks=tasks)
