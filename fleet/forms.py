"""Form parsing and validation.

Each parser takes the submitted string fields (a dict or Flask's
``request.form``) and returns a new entity, or raises FormError naming every
field that is missing or invalid.
"""

import math
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Optional

from .exceptions import FormError
from .maintenance_record import SERVICE_TYPES, MaintenanceRecord, Task
from .public_report import FEATURES, PublicReport
from .status import MaintenanceStatus, ReportStatus
from .store import new_id, new_task_id
from .vehicle import Vehicle


def _text(form: Mapping[str, str], key: str) -> str:
    return (form.get(key) or "").strip()


def _required(form: Mapping[str, str], key: str, label: str, errors: Dict[str, str]) -> str:
    value = _text(form, key)
    if not value:
        errors[key] = f"{label} is required"
    return value


def _number(
    form: Mapping[str, str], key: str, label: str, errors: Dict[str, str], required: bool
) -> Optional[float]:
    """Parse a non-negative number field."""
    raw = _text(form, key)
    if not raw:
        if required:
            errors[key] = f"{label} is required"
        return None
    try:
        value = float(raw)
    except ValueError:
        value = None
    if value is None or not math.isfinite(value):
        errors[key] = f"{label} must be a number"
        return None
    if value < 0:
        errors[key] = f"{label} must not be negative"
        return None
    return value


def _check_date(value: str, key: str, label: str, errors: Dict[str, str]) -> None:
    if value and key not in errors:
        try:
            date.fromisoformat(value)
        except ValueError:
            errors[key] = f"{label} must be a date (YYYY-MM-DD)"


def parse_tasks(text: str) -> List[Task]:
    """One task per non-blank line, all open."""
    return [
        Task(id=new_task_id(), description=line.strip())
        for line in text.splitlines()
        if line.strip()
    ]


def parse_vehicle_form(
    form: Mapping[str, str],
    existing_ids: Iterable[str] = (),
    editing: Optional[Vehicle] = None,
    today: Optional[str] = None,
) -> Vehicle:
    """
    Build a Vehicle from the add/edit form.

    When editing, the id and added date of the edited vehicle are kept.
    """
    errors: Dict[str, str] = {}
    plate_number = _required(form, "plateNumber", "Plate number", errors)
    model = _required(form, "model", "Model", errors)
    vin = _required(form, "vin", "VIN", errors)
    barcode = _required(form, "barcode", "Barcode", errors)

    status = MaintenanceStatus.OK
    raw_status = _text(form, "maintenanceStatus")
    if raw_status:
        try:
            status = MaintenanceStatus(raw_status)
        except ValueError:
            errors["maintenanceStatus"] = f"Unknown maintenance status '{raw_status}'"

    if errors:
        raise FormError(errors)

    if editing is not None:
        return Vehicle(
            id=editing.id,
            plate_number=plate_number,
            model=model,
            vin=vin,
            barcode=barcode,
            maintenance_status=status,
            added_date=editing.added_date,
        )
    return Vehicle(
        id=new_id(existing_ids),
        plate_number=plate_number,
        model=model,
        vin=vin,
        barcode=barcode,
        maintenance_status=status,
        added_date=today or date.today().isoformat(),
    )


def parse_quick_vehicle_form(
    form: Mapping[str, str], existing_ids: Iterable[str] = (), today: Optional[str] = None
) -> Vehicle:
    """Vehicle from the barcode page: only the plate is required, and it doubles as barcode."""
    errors: Dict[str, str] = {}
    plate_number = _required(form, "plateNumber", "Plate number", errors)
    if errors:
        raise FormError(errors)
    return Vehicle(
        id=new_id(existing_ids),
        plate_number=plate_number,
        model=_text(form, "model"),
        vin="",
        barcode=plate_number,
        added_date=today or date.today().isoformat(),
    )


def parse_maintenance_form(
    form: Mapping[str, str],
    vehicles: List[Vehicle],
    existing_ids: Iterable[str] = (),
    receipt_image: Optional[str] = None,
    today: Optional[str] = None,
) -> MaintenanceRecord:
    """Build a new MaintenanceRecord, snapshotting the vehicle's plate number."""
    errors: Dict[str, str] = {}

    vehicle_id = _text(form, "vehicleId")
    vehicle = next((v for v in vehicles if v.id == vehicle_id), None)
    if vehicle is None:
        errors["vehicleId"] = "Please select a vehicle"

    service_type = _required(form, "serviceType", "Service type", errors)
    if service_type and service_type not in SERVICE_TYPES:
        errors["serviceType"] = f"Unknown service type '{service_type}'"

    service_date = _required(form, "date", "Date", errors)
    _check_date(service_date, "date", "Date", errors)
    cost = _number(form, "cost", "Cost", errors, required=False)

    if errors:
        raise FormError(errors)

    return MaintenanceRecord(
        id=new_id(existing_ids),
        vehicle_id=vehicle.id,
        vehicle_plate_number=vehicle.plate_number,
        service_type=service_type,
        date=service_date,
        notes=_text(form, "notes"),
        cost=cost,
        added_date=today or date.today().isoformat(),
        completed=False,
        tasks=parse_tasks(form.get("tasks") or ""),
        receipt_image=receipt_image or None,
    )


def parse_public_report_form(
    form: Mapping[str, str],
    existing_ids: Iterable[str] = (),
    images: Iterable[str] = (),
    now: Optional[datetime] = None,
) -> PublicReport:
    """Build a new PublicReport with status NEW."""
    errors: Dict[str, str] = {}
    barcode = _required(form, "barcode", "Vehicle barcode", errors)
    mileage = _number(form, "mileage", "Mileage", errors, required=True)
    feature = _required(form, "feature", "Feature / trip", errors)
    if feature and feature not in FEATURES:
        errors["feature"] = f"Unknown feature '{feature}'"
    report_date = _required(form, "date", "Date", errors)
    _check_date(report_date, "date", "Date", errors)
    report_time = _required(form, "time", "Time", errors)
    driver_name = _required(form, "driverName", "Driver name", errors)

    if errors:
        raise FormError(errors)

    now = now or datetime.now()
    return PublicReport(
        id=new_id(existing_ids),
        barcode=barcode,
        mileage=mileage,
        feature=feature,
        date=report_date,
        time=report_time,
        driver_name=driver_name,
        notes=_text(form, "notes"),
        images=[name for name in images if name],
        submitted_at=now.isoformat(timespec="seconds"),
        status=ReportStatus.NEW,
    )
