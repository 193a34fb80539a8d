"""Vehicle class for the fleet registry."""

from dataclasses import dataclass

from .status import MaintenanceStatus


@dataclass
class Vehicle:
    """A registered fleet vehicle."""

    id: str
    plate_number: str
    model: str
    vin: str
    barcode: str
    maintenance_status: MaintenanceStatus = MaintenanceStatus.OK
    added_date: str = ""

    @property
    def name(self) -> str:
        """Human-readable vehicle name."""
        return f"{self.plate_number} - {self.model}" if self.model else self.plate_number

    @property
    def is_available(self) -> bool:
        return self.maintenance_status is MaintenanceStatus.OK
