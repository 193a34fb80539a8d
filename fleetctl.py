#!/usr/bin/env python3
"""
Command-line access to the fleet data directory.

Commands:
  vehicles     - List registered vehicles
  maintenance  - List maintenance records
  reports      - List public driver reports
  stats        - Show dashboard numbers and the monthly cost series
  add-vehicle  - Register a new vehicle
  log          - Log a maintenance record
  remove       - Remove a record from a collection by id
  qr           - Write a vehicle's barcode and QR code as SVG files
"""

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

from tabulate import tabulate

from fleet import (
    COLLECTIONS,
    MAINTENANCE_RECORDS,
    PUBLIC_REPORTS,
    VEHICLES,
    CodeGenerationError,
    EntityStore,
    FileStorage,
    FormError,
    MaintenanceRecord,
    PublicReport,
    StoreWriteError,
    Vehicle,
)
from fleet.calculations import (
    dashboard_stats,
    display_plate,
    filter_by_vehicle,
    filter_reports,
    maintenance_stats,
    monthly_series,
)
from fleet.codes import barcode_svg, vehicle_qr_svg
from fleet.forms import parse_maintenance_form, parse_vehicle_form

# =============================================================================
# Formatting helpers
# =============================================================================


def format_mileage(mileage: Optional[float]) -> str:
    """Format mileage for display."""
    return f"{mileage:,.0f}" if mileage is not None else "-"


def format_cost(cost: Optional[float]) -> str:
    """Format cost for display."""
    return f"{cost:,.2f}" if cost is not None else "-"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if not text:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def make_vehicle_table(vehicles: List[Vehicle]) -> List[List[str]]:
    """Convert vehicles to table rows."""
    return [
        [
            v.id,
            v.plate_number,
            v.model or "-",
            v.vin or "-",
            v.barcode,
            v.maintenance_status.label,
            v.added_date or "-",
        ]
        for v in vehicles
    ]


def make_maintenance_table(
    records: List[MaintenanceRecord], vehicles: List[Vehicle]
) -> List[List[str]]:
    """Convert maintenance records to table rows."""
    vehicles_by_id = {v.id: v for v in vehicles}
    rows = []
    for record in records:
        done = sum(1 for t in record.tasks if t.completed)
        rows.append(
            [
                record.id,
                record.date,
                display_plate(record, vehicles_by_id),
                record.service_type,
                format_cost(record.cost),
                "yes" if record.completed else "no",
                f"{done}/{len(record.tasks)}" if record.tasks else "-",
                truncate(record.notes),
            ]
        )
    return rows


def make_report_table(reports: List[PublicReport]) -> List[List[str]]:
    """Convert public reports to table rows."""
    return [
        [
            r.id,
            f"{r.date} {r.time}".strip(),
            r.barcode,
            r.driver_name,
            format_mileage(r.mileage),
            r.feature,
            r.status.label,
            truncate(r.notes),
        ]
        for r in reports
    ]


# =============================================================================
# Read commands
# =============================================================================


def cmd_vehicles(store: EntityStore, args) -> int:
    """List registered vehicles."""
    vehicles = store.load(VEHICLES)
    print(f"Vehicles: {len(vehicles)}")
    print()
    if not vehicles:
        print("No vehicles found.")
        return 0
    headers = ["ID", "Plate", "Model", "VIN", "Barcode", "Status", "Added"]
    print(tabulate(make_vehicle_table(vehicles), headers=headers, tablefmt="simple"))
    return 0


def cmd_maintenance(store: EntityStore, args) -> int:
    """List maintenance records."""
    vehicles = store.load(VEHICLES)
    records = filter_by_vehicle(store.load(MAINTENANCE_RECORDS), args.vehicle)
    if args.open:
        records = [r for r in records if not r.completed]

    stats = maintenance_stats(records)
    print(f"Records: {stats.total} ({stats.completed} completed, {stats.open} open)")
    print(f"Open tasks: {stats.open_tasks}")
    if stats.total_cost > 0:
        print(f"Total cost: {stats.total_cost:,.2f}")
    print()

    if not records:
        print("No maintenance records found.")
        return 0

    headers = ["ID", "Date", "Plate", "Service", "Cost", "Done", "Tasks", "Notes"]
    print(
        tabulate(
            make_maintenance_table(records, vehicles), headers=headers, tablefmt="simple"
        )
    )
    return 0


def cmd_reports(store: EntityStore, args) -> int:
    """List public driver reports."""
    reports = filter_reports(store.load(PUBLIC_REPORTS), args.search, args.status)
    print(f"Reports: {len(reports)}")
    print()
    if not reports:
        print("No reports found.")
        return 0
    headers = ["ID", "When", "Barcode", "Driver", "Mileage", "Feature", "Status", "Notes"]
    print(tabulate(make_report_table(reports), headers=headers, tablefmt="simple"))
    return 0


def cmd_stats(store: EntityStore, args) -> int:
    """Show dashboard numbers and the monthly cost series."""
    vehicles = store.load(VEHICLES)
    records = store.load(MAINTENANCE_RECORDS)
    reports = store.load(PUBLIC_REPORTS)
    stats = dashboard_stats(vehicles, records, reports)

    print(f"Total vehicles:         {stats.total_vehicles}")
    print(f"Available vehicles:     {stats.available_vehicles}")
    print(f"Maintenance this month: {stats.maintenance_this_month}")
    print(f"Driver reports:         {stats.total_reports}")
    print()

    rows = [
        [b.month.strftime("%Y-%m"), b.count, format_cost(b.cost)]
        for b in monthly_series(filter_by_vehicle(records, args.vehicle))
    ]
    print(tabulate(rows, headers=["Month", "Records", "Cost"], tablefmt="simple"))
    return 0


# =============================================================================
# Write commands
# =============================================================================


def cmd_add_vehicle(store: EntityStore, args) -> int:
    """Register a new vehicle."""
    existing = store.load(VEHICLES)
    form = {
        "plateNumber": args.plate,
        "model": args.model,
        "vin": args.vin,
        "barcode": args.barcode or args.plate,
        "maintenanceStatus": args.status,
    }
    try:
        vehicle = parse_vehicle_form(form, [v.id for v in existing])
    except FormError as e:
        print(f"Error: {e}")
        return 1

    print(f"Adding vehicle {vehicle.name} (barcode {vehicle.barcode})")
    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    store.upsert(VEHICLES, vehicle)
    print(f"Vehicle saved with id {vehicle.id}.")
    return 0


def cmd_log(store: EntityStore, args) -> int:
    """Log a maintenance record."""
    vehicles = store.load(VEHICLES)
    form = {
        "vehicleId": args.vehicle_id,
        "serviceType": args.service_type,
        "date": args.date or date.today().isoformat(),
        "cost": "" if args.cost is None else str(args.cost),
        "notes": args.notes or "",
        "tasks": "\n".join(args.task or []),
    }
    try:
        record = parse_maintenance_form(
            form, vehicles, [r.id for r in store.load(MAINTENANCE_RECORDS)]
        )
    except FormError as e:
        print(f"Error: {e}")
        return 1

    print(f"Adding maintenance record for {record.vehicle_plate_number}:")
    print(f"  Service: {record.service_type}")
    print(f"  Date:    {record.date}")
    if record.cost is not None:
        print(f"  Cost:    {record.cost:,.2f}")
    for task in record.tasks:
        print(f"  Task:    {task.description}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    store.upsert(MAINTENANCE_RECORDS, record)
    print(f"Record saved with id {record.id}.")
    return 0


def cmd_remove(store: EntityStore, args) -> int:
    """Remove a record from a collection by id."""
    record = store.get(args.collection, args.record_id)
    if record is None:
        print(f"No record '{args.record_id}' in {args.collection}; nothing to remove.")
        return 0
    if args.dry_run:
        print(f"Would remove '{args.record_id}' from {args.collection}.")
        print("(dry run - no changes made)")
        return 0
    store.remove(args.collection, args.record_id)
    print(f"Removed '{args.record_id}' from {args.collection}.")
    return 0


def cmd_qr(store: EntityStore, args) -> int:
    """Write a vehicle's barcode and QR code as SVG files."""
    vehicle = store.get(VEHICLES, args.vehicle_id)
    if vehicle is None:
        print(f"Error: Unknown vehicle '{args.vehicle_id}'")
        return 1

    out_dir = args.out_dir
    out_dir.mkdir(parents=True, exist_ok=True)
    try:
        files = {
            out_dir / f"{vehicle.plate_number}_barcode.svg": barcode_svg(vehicle.barcode),
            out_dir / f"{vehicle.plate_number}_qr.svg": vehicle_qr_svg(
                args.base_url, vehicle.barcode
            ),
        }
    except CodeGenerationError as e:
        print(f"Error: {e}")
        return 1

    for path, svg in files.items():
        path.write_text(svg, encoding="utf-8")
        print(f"Wrote {path}")
    return 0


# =============================================================================
# Main
# =============================================================================


COMMANDS = {
    "vehicles": cmd_vehicles,
    "maintenance": cmd_maintenance,
    "reports": cmd_reports,
    "stats": cmd_stats,
    "add-vehicle": cmd_add_vehicle,
    "log": cmd_log,
    "remove": cmd_remove,
    "qr": cmd_qr,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fleet management data tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data vehicles
  %(prog)s data maintenance --vehicle 1 --open
  %(prog)s data reports --status new --search BAR001
  %(prog)s data add-vehicle 555-12-345 "Kia Picanto" KNABX512AET123456
  %(prog)s data log 1 "Oil service" --cost 250 --task "Replace oil filter"
  %(prog)s data remove maintenanceRecords 1700000000000
  %(prog)s data qr 1 --base-url https://fleet.example.com --out-dir labels
""",
    )
    parser.add_argument(
        "data_dir",
        type=Path,
        help="Directory holding the collection JSON files",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("vehicles", help="List registered vehicles")

    maintenance_parser = subparsers.add_parser(
        "maintenance", help="List maintenance records"
    )
    maintenance_parser.add_argument("--vehicle", type=str, help="Only this vehicle id")
    maintenance_parser.add_argument(
        "--open", action="store_true", help="Only records not yet completed"
    )

    reports_parser = subparsers.add_parser("reports", help="List public driver reports")
    reports_parser.add_argument(
        "--search", type=str, help="Match driver name, barcode or feature"
    )
    reports_parser.add_argument(
        "--status",
        choices=["all", "new", "reviewed", "processed"],
        default="all",
        help="Filter by review status (default: all)",
    )

    stats_parser = subparsers.add_parser("stats", help="Show dashboard numbers")
    stats_parser.add_argument(
        "--vehicle", type=str, help="Monthly series for this vehicle id only"
    )

    add_parser = subparsers.add_parser("add-vehicle", help="Register a new vehicle")
    add_parser.add_argument("plate", type=str, help="Plate number")
    add_parser.add_argument("model", type=str, help="Model name")
    add_parser.add_argument("vin", type=str, help="Vehicle identification number")
    add_parser.add_argument(
        "--barcode", type=str, help="Barcode value (default: the plate number)"
    )
    add_parser.add_argument(
        "--status",
        choices=["ok", "needs_service"],
        default="ok",
        help="Maintenance status (default: ok)",
    )
    add_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be added without saving"
    )

    log_parser = subparsers.add_parser("log", help="Log a maintenance record")
    log_parser.add_argument("vehicle_id", type=str, help="Vehicle id")
    log_parser.add_argument("service_type", type=str, help="Service type, e.g. 'Oil service'")
    log_parser.add_argument(
        "--date", type=str, help="Service date in YYYY-MM-DD format (default: today)"
    )
    log_parser.add_argument("--cost", type=float, help="Cost of service")
    log_parser.add_argument("--notes", type=str, help="Notes about the service")
    log_parser.add_argument(
        "--task", action="append", help="Checklist task (repeatable)"
    )
    log_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be added without saving"
    )

    remove_parser = subparsers.add_parser("remove", help="Remove a record by id")
    remove_parser.add_argument(
        "collection", choices=sorted(COLLECTIONS), help="Collection name"
    )
    remove_parser.add_argument("record_id", type=str, help="Record id")
    remove_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be removed without saving"
    )

    qr_parser = subparsers.add_parser("qr", help="Write barcode and QR code SVGs")
    qr_parser.add_argument("vehicle_id", type=str, help="Vehicle id")
    qr_parser.add_argument(
        "--base-url",
        type=str,
        default="http://localhost:5001",
        help="Base URL of the web app (default: http://localhost:5001)",
    )
    qr_parser.add_argument(
        "--out-dir", type=Path, default=Path("."), help="Output directory (default: .)"
    )

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    store = EntityStore(FileStorage(args.data_dir))

    try:
        return COMMANDS[args.command](store, args)
    except StoreWriteError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
