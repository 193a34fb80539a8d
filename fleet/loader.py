"""Serialization, schemas and seed data for stored collections."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import yaml

from .maintenance_record import MaintenanceRecord, Task
from .public_report import PublicReport
from .status import MaintenanceStatus, ReportStatus
from .vehicle import Vehicle

VEHICLES = "vehicles"
MAINTENANCE_RECORDS = "maintenanceRecords"
PUBLIC_REPORTS = "publicReports"
LEGACY_PUBLIC_FORM_ENTRIES = "publicFormEntries"

PACKAGE_DIR = Path(__file__).parent
SCHEMA_PATH = PACKAGE_DIR / "schema.yaml"
SEEDS_DIR = PACKAGE_DIR / "seeds"


# =============================================================================
# Record parsing (camelCase dict -> object)
# =============================================================================


LEGACY_MAINTENANCE_STATUS = {
    "תקין": MaintenanceStatus.OK,
    "דורש טיפול": MaintenanceStatus.NEEDS_SERVICE,
}


def _parse_maintenance_status(value: Optional[str]) -> MaintenanceStatus:
    if value in LEGACY_MAINTENANCE_STATUS:
        return LEGACY_MAINTENANCE_STATUS[value]
    return MaintenanceStatus(value or "ok")


def _parse_vehicle(dct: Dict[str, Any]) -> Vehicle:
    return Vehicle(
        id=dct["id"],
        plate_number=dct["plateNumber"],
        model=dct.get("model") or "",
        vin=dct.get("vin") or "",
        # Vehicles added from the barcode page carry the plate as barcode
        barcode=dct.get("barcode") or dct["plateNumber"],
        maintenance_status=_parse_maintenance_status(dct.get("maintenanceStatus")),
        added_date=dct.get("addedDate") or "",
    )


def _parse_task(dct: Dict[str, Any]) -> Task:
    return Task(dct["id"], dct["description"], bool(dct.get("completed", False)))


def _parse_maintenance_record(dct: Dict[str, Any]) -> MaintenanceRecord:
    # Records written before tasks/receipts existed lack those keys
    return MaintenanceRecord(
        id=dct["id"],
        vehicle_id=dct["vehicleId"],
        vehicle_plate_number=dct.get("vehiclePlateNumber") or "",
        service_type=dct["serviceType"],
        date=dct["date"],
        notes=dct.get("notes") or "",
        cost=dct.get("cost"),
        added_date=dct.get("addedDate") or "",
        completed=bool(dct.get("completed", False)),
        tasks=[_parse_task(t) for t in dct.get("tasks") or []],
        receipt_image=dct.get("receiptImage"),
    )


def _parse_public_report(dct: Dict[str, Any]) -> PublicReport:
    images = dct.get("images")
    if images is None:
        images = [dct["image"]] if dct.get("image") else []
    mileage = dct.get("mileage")
    return PublicReport(
        id=dct["id"],
        barcode=dct["barcode"],
        mileage=float(mileage) if mileage not in (None, "") else 0.0,
        feature=dct.get("feature") or "",
        date=dct.get("date") or "",
        time=dct.get("time") or "",
        driver_name=dct.get("driverName") or "",
        notes=dct.get("notes") or "",
        images=list(images),
        # Entries from the old public form stored a "timestamp" instead
        submitted_at=dct.get("submittedAt") or dct.get("timestamp") or "",
        status=ReportStatus(dct.get("status") or "new"),
    )


# =============================================================================
# Record serialization (object -> camelCase dict)
# =============================================================================


def _vehicle_to_dict(vehicle: Vehicle) -> Dict[str, Any]:
    return {
        "id": vehicle.id,
        "plateNumber": vehicle.plate_number,
        "model": vehicle.model,
        "vin": vehicle.vin,
        "barcode": vehicle.barcode,
        "maintenanceStatus": vehicle.maintenance_status.value,
        "addedDate": vehicle.added_date,
    }


def _maintenance_record_to_dict(record: MaintenanceRecord) -> Dict[str, Any]:
    return {
        "id": record.id,
        "vehicleId": record.vehicle_id,
        "vehiclePlateNumber": record.vehicle_plate_number,
        "serviceType": record.service_type,
        "date": record.date,
        "notes": record.notes,
        "cost": record.cost,
        "addedDate": record.added_date,
        "completed": record.completed,
        "tasks": [
            {"id": t.id, "description": t.description, "completed": t.completed}
            for t in record.tasks
        ],
        "receiptImage": record.receipt_image,
    }


def _public_report_to_dict(report: PublicReport) -> Dict[str, Any]:
    return {
        "id": report.id,
        "barcode": report.barcode,
        "images": list(report.images),
        "mileage": report.mileage,
        "feature": report.feature,
        "date": report.date,
        "time": report.time,
        "driverName": report.driver_name,
        "notes": report.notes,
        "submittedAt": report.submitted_at,
        "status": report.status.value,
    }


# =============================================================================
# Collection definitions
# =============================================================================


@dataclass(frozen=True)
class Collection:
    """How one storage key is parsed, serialized and seeded."""

    name: str
    parse: Callable[[Dict[str, Any]], Any]
    dump: Callable[[Any], Dict[str, Any]]
    seed_file: Optional[Path] = None
    # Older storage keys read when the collection itself was never written
    legacy_keys: Tuple[str, ...] = ()


COLLECTIONS: Dict[str, Collection] = {
    VEHICLES: Collection(
        VEHICLES, _parse_vehicle, _vehicle_to_dict, SEEDS_DIR / "vehicles.yaml"
    ),
    MAINTENANCE_RECORDS: Collection(
        MAINTENANCE_RECORDS,
        _parse_maintenance_record,
        _maintenance_record_to_dict,
        SEEDS_DIR / "maintenanceRecords.yaml",
    ),
    # Reports are only ever created by drivers, so there is no sample set
    PUBLIC_REPORTS: Collection(
        PUBLIC_REPORTS,
        _parse_public_report,
        _public_report_to_dict,
        legacy_keys=(LEGACY_PUBLIC_FORM_ENTRIES,),
    ),
}


def load_schema() -> Dict[str, Any]:
    """Load the per-collection JSON schemas from schema.yaml."""
    with open(SCHEMA_PATH, "r", encoding="utf-8") as fp:
        return yaml.safe_load(fp)


def load_seed(collection: Collection) -> List[Dict[str, Any]]:
    """Load the raw sample records for a collection (empty if it has none)."""
    if collection.seed_file is None:
        return []
    with open(collection.seed_file, "r", encoding="utf-8") as fp:
        return yaml.safe_load(fp) or []
