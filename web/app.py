"""Flask web application for fleet management."""

import os
from datetime import date, datetime
from functools import wraps
from pathlib import Path

from flask import (
    Blueprint,
    Flask,
    Response,
    abort,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    session,
    url_for,
)
from werkzeug.utils import secure_filename

# Add parent directory to path for package imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from fleet import (
    FEATURES,
    MAINTENANCE_RECORDS,
    PUBLIC_REPORTS,
    SERVICE_TYPES,
    VEHICLES,
    CodeGenerationError,
    EntityStore,
    FileStorage,
    FormError,
    MaintenanceStatus,
    ReportStatus,
    StoreWriteError,
    toggle_completion,
    toggle_task,
    with_status,
)
from fleet.calculations import (
    ALL,
    LiveDashboardStats,
    cost_summary,
    display_plate,
    event_days,
    events_on,
    filter_by_vehicle,
    filter_reports,
    maintenance_stats,
    monthly_series,
    report_status_counts,
    service_type_distribution,
)
from fleet.codes import barcode_svg, inline_svg, public_form_url, vehicle_qr_svg
from fleet.forms import (
    parse_maintenance_form,
    parse_public_report_form,
    parse_quick_vehicle_form,
    parse_vehicle_form,
)

# Path to the data directory (relative to project root)
DATA_DIR = Path(__file__).parent.parent / "data"

bp = Blueprint("fleet", __name__)


def get_store() -> EntityStore:
    return current_app.extensions["fleet_store"]


def get_stats() -> LiveDashboardStats:
    return current_app.extensions["fleet_stats"]


def is_logged_in() -> bool:
    return session.get("logged_in") is True


def login_required(view):
    """Redirect to the login page unless the session flag is set."""

    @wraps(view)
    def wrapped(*args, **kwargs):
        if not is_logged_in():
            return redirect(url_for("fleet.login", next=request.path))
        return view(*args, **kwargs)

    return wrapped


def flash_form_error(error: FormError) -> None:
    for message in error.errors.values():
        flash(message, "error")


def uploaded_filename(field: str):
    """Filename of an uploaded file (only the name is kept)."""
    upload = request.files.get(field)
    if upload is None or not upload.filename:
        return None
    return secure_filename(upload.filename) or None


def format_cost(cost):
    """Format cost with currency sign."""
    if cost is None:
        return "—"
    return f"₪{cost:,.2f}"


def format_mileage(mileage):
    """Format mileage with comma separator."""
    if mileage is None:
        return "—"
    return f"{mileage:,.0f}"


def status_color(status) -> str:
    """Get Tailwind color classes for a vehicle or report status."""
    colors = {
        MaintenanceStatus.OK: "bg-green-100 text-green-800",
        MaintenanceStatus.NEEDS_SERVICE: "bg-yellow-100 text-yellow-800",
        ReportStatus.NEW: "bg-blue-100 text-blue-800",
        ReportStatus.REVIEWED: "bg-yellow-100 text-yellow-800",
        ReportStatus.PROCESSED: "bg-green-100 text-green-800",
    }
    return colors.get(status, "bg-gray-100 text-gray-800")


# =============================================================================
# Login
# =============================================================================


@bp.route("/login", methods=["GET", "POST"])
def login():
    """Demo login gate; not a security boundary."""
    if request.method == "POST":
        username = request.form.get("username", "")
        password = request.form.get("password", "")
        if (
            username == current_app.config["ADMIN_USER"]
            and password == current_app.config["ADMIN_PASSWORD"]
        ):
            session["logged_in"] = True
            session["login_time"] = date.today().isoformat()
            next_url = request.args.get("next") or ""
            # Only local paths are followed after login
            if not next_url.startswith("/") or next_url.startswith("//"):
                next_url = url_for("fleet.index")
            return redirect(next_url)
        flash("Wrong username or password", "error")
    return render_template("login.html")


@bp.route("/logout")
def logout():
    session.pop("logged_in", None)
    session.pop("login_time", None)
    return redirect(url_for("fleet.login"))


# =============================================================================
# Dashboard
# =============================================================================


@bp.route("/")
@login_required
def index():
    """Dashboard with fleet-wide numbers."""
    return render_template("index.html", stats=get_stats().get())


# =============================================================================
# Vehicles
# =============================================================================


@bp.route("/vehicles")
@login_required
def vehicles():
    """Vehicle registry with add/edit form."""
    all_vehicles = get_store().load(VEHICLES)
    editing = None
    edit_id = request.args.get("edit")
    if edit_id:
        editing = next((v for v in all_vehicles if v.id == edit_id), None)
        if editing is None:
            flash(f"Vehicle '{edit_id}' not found", "error")
    return render_template(
        "vehicles.html",
        vehicles=all_vehicles,
        editing=editing,
        form={},
        MaintenanceStatus=MaintenanceStatus,
    )


@bp.route("/vehicles", methods=["POST"])
@login_required
def add_vehicle():
    store = get_store()
    existing = store.load(VEHICLES)
    try:
        vehicle = parse_vehicle_form(request.form, [v.id for v in existing])
        store.upsert(VEHICLES, vehicle)
    except FormError as e:
        flash_form_error(e)
        return render_template(
            "vehicles.html",
            vehicles=existing,
            editing=None,
            form=request.form,
            MaintenanceStatus=MaintenanceStatus,
        ), 400
    except StoreWriteError as e:
        flash(str(e), "error")
        return redirect(url_for("fleet.vehicles"))

    flash("Vehicle added", "success")
    return redirect(url_for("fleet.vehicles"))


@bp.route("/vehicles/<vehicle_id>", methods=["POST"])
@login_required
def update_vehicle(vehicle_id: str):
    store = get_store()
    current = store.get(VEHICLES, vehicle_id)
    if current is None:
        flash(f"Vehicle '{vehicle_id}' not found", "error")
        return redirect(url_for("fleet.vehicles"))

    try:
        vehicle = parse_vehicle_form(request.form, editing=current)
        store.upsert(VEHICLES, vehicle)
    except FormError as e:
        flash_form_error(e)
        return redirect(url_for("fleet.vehicles", edit=vehicle_id))
    except StoreWriteError as e:
        flash(str(e), "error")
        return redirect(url_for("fleet.vehicles"))

    flash("Vehicle updated", "success")
    return redirect(url_for("fleet.vehicles"))


@bp.route("/vehicles/<vehicle_id>/delete", methods=["POST"])
@login_required
def delete_vehicle(vehicle_id: str):
    try:
        get_store().remove(VEHICLES, vehicle_id)
    except StoreWriteError as e:
        flash(str(e), "error")
    else:
        flash("Vehicle deleted", "success")
    return redirect(url_for("fleet.vehicles"))


# =============================================================================
# Maintenance
# =============================================================================


@bp.route("/maintenance")
@login_required
def maintenance():
    """Maintenance log with completion stats and the add form."""
    store = get_store()
    records = store.load(MAINTENANCE_RECORDS)
    all_vehicles = store.load(VEHICLES)
    return render_template(
        "maintenance.html",
        records=records,
        vehicles=all_vehicles,
        vehicles_by_id={v.id: v for v in all_vehicles},
        stats=maintenance_stats(records),
        service_types=SERVICE_TYPES,
        today=date.today().isoformat(),
        display_plate=display_plate,
    )


@bp.route("/maintenance", methods=["POST"])
@login_required
def add_maintenance():
    store = get_store()
    records = store.load(MAINTENANCE_RECORDS)
    try:
        record = parse_maintenance_form(
            request.form,
            store.load(VEHICLES),
            [r.id for r in records],
            receipt_image=uploaded_filename("receiptImage"),
        )
        store.upsert(MAINTENANCE_RECORDS, record)
    except FormError as e:
        flash_form_error(e)
    except StoreWriteError as e:
        flash(str(e), "error")
    else:
        flash(f"Logged {record.service_type} for {record.vehicle_plate_number}", "success")
    return redirect(url_for("fleet.maintenance"))


@bp.route("/maintenance/<record_id>/toggle", methods=["POST"])
@login_required
def toggle_maintenance(record_id: str):
    store = get_store()
    record = store.get(MAINTENANCE_RECORDS, record_id)
    if record is None:
        abort(404)
    try:
        store.upsert(MAINTENANCE_RECORDS, toggle_completion(record))
    except StoreWriteError as e:
        flash(str(e), "error")
    return redirect(url_for("fleet.maintenance"))


@bp.route("/maintenance/<record_id>/tasks/<task_id>/toggle", methods=["POST"])
@login_required
def toggle_maintenance_task(record_id: str, task_id: str):
    store = get_store()
    record = store.get(MAINTENANCE_RECORDS, record_id)
    if record is None or record.get_task(task_id) is None:
        abort(404)
    try:
        store.upsert(MAINTENANCE_RECORDS, toggle_task(record, task_id))
    except StoreWriteError as e:
        flash(str(e), "error")
    return redirect(url_for("fleet.maintenance"))


@bp.route("/maintenance/<record_id>/delete", methods=["POST"])
@login_required
def delete_maintenance(record_id: str):
    try:
        get_store().remove(MAINTENANCE_RECORDS, record_id)
    except StoreWriteError as e:
        flash(str(e), "error")
    else:
        flash("Maintenance record deleted", "success")
    return redirect(url_for("fleet.maintenance"))


# =============================================================================
# Barcodes
# =============================================================================


def _public_base_url() -> str:
    return current_app.config.get("PUBLIC_URL") or request.host_url


def _vehicle_or_404(vehicle_id: str):
    vehicle = get_store().get(VEHICLES, vehicle_id)
    if vehicle is None:
        abort(404)
    return vehicle


@bp.route("/barcodes")
@login_required
def barcodes():
    """Barcode and QR labels for every vehicle that has a barcode."""
    base_url = _public_base_url()
    labels = []
    for vehicle in get_store().load(VEHICLES):
        if not vehicle.barcode:
            continue
        try:
            labels.append({
                "vehicle": vehicle,
                "barcode_svg": inline_svg(barcode_svg(vehicle.barcode)),
                "qr_svg": inline_svg(vehicle_qr_svg(base_url, vehicle.barcode)),
                "url": public_form_url(base_url, vehicle.barcode),
            })
        except CodeGenerationError as e:
            flash(str(e), "error")
    return render_template("barcodes.html", labels=labels)


@bp.route("/barcodes", methods=["POST"])
@login_required
def quick_add_vehicle():
    store = get_store()
    try:
        vehicle = parse_quick_vehicle_form(
            request.form, [v.id for v in store.load(VEHICLES)]
        )
        store.upsert(VEHICLES, vehicle)
    except FormError as e:
        flash_form_error(e)
    except StoreWriteError as e:
        flash(str(e), "error")
    else:
        flash(f"Vehicle {vehicle.plate_number} added", "success")
    return redirect(url_for("fleet.barcodes"))


@bp.route("/barcodes/<vehicle_id>/<kind>.svg")
@login_required
def download_code(vehicle_id: str, kind: str):
    """Download a vehicle's barcode or QR code as an SVG file."""
    vehicle = _vehicle_or_404(vehicle_id)
    try:
        if kind == "barcode":
            svg = barcode_svg(vehicle.barcode)
        elif kind == "qr":
            svg = vehicle_qr_svg(_public_base_url(), vehicle.barcode)
        else:
            abort(404)
    except CodeGenerationError:
        abort(404)
    filename = secure_filename(f"{vehicle.plate_number}_{kind}.svg") or f"{kind}.svg"
    return Response(
        svg,
        mimetype="image/svg+xml",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@bp.route("/barcodes/<vehicle_id>/print")
@login_required
def print_codes(vehicle_id: str):
    """Printable page with both codes for one vehicle."""
    vehicle = _vehicle_or_404(vehicle_id)
    try:
        codes = {
            "barcode_svg": inline_svg(barcode_svg(vehicle.barcode)),
            "qr_svg": inline_svg(vehicle_qr_svg(_public_base_url(), vehicle.barcode)),
        }
    except CodeGenerationError:
        abort(404)
    return render_template("barcode_print.html", vehicle=vehicle, **codes)


# =============================================================================
# Public report form
# =============================================================================


@bp.route("/public", methods=["GET", "POST"])
def public_form():
    """
    Public vehicle report form.

    Open to anyone arriving with a ?barcode= link (the QR code); the barcode
    field is then pre-filled and locked. Without one, login is required.
    """
    locked_barcode = request.args.get("barcode") or None
    if locked_barcode is None and not is_logged_in():
        return redirect(url_for("fleet.login", next=request.path))

    now = datetime.now()
    if request.method == "POST":
        store = get_store()
        form = request.form.to_dict()
        if locked_barcode:
            form["barcode"] = locked_barcode
        images = [
            secure_filename(f.filename)
            for f in request.files.getlist("images")
            if f and f.filename
        ]
        try:
            report = parse_public_report_form(
                form, [r.id for r in store.load(PUBLIC_REPORTS)], images=images
            )
            store.upsert(PUBLIC_REPORTS, report)
        except FormError as e:
            flash_form_error(e)
            return render_template(
                "public.html",
                form=form,
                locked_barcode=locked_barcode,
                features=FEATURES,
            ), 400
        except StoreWriteError as e:
            flash(str(e), "error")
        else:
            flash("Report submitted. Thank you for keeping the fleet safe.", "success")
            return redirect(url_for("fleet.public_form", barcode=locked_barcode))

    form = {
        "barcode": locked_barcode or "",
        "date": now.date().isoformat(),
        "time": now.strftime("%H:%M"),
    }
    return render_template(
        "public.html", form=form, locked_barcode=locked_barcode, features=FEATURES
    )


# =============================================================================
# Public report history
# =============================================================================


@bp.route("/history")
@login_required
def history():
    """Submitted public reports with search and status filter."""
    reports = get_store().load(PUBLIC_REPORTS)
    search = request.args.get("q", "").strip()
    status_filter = request.args.get("status", ALL).lower() or ALL
    filtered = filter_reports(reports, search=search, status=status_filter)
    filtered.sort(key=lambda r: r.submitted_at, reverse=True)
    return render_template(
        "history.html",
        reports=filtered,
        counts=report_status_counts(reports),
        search=search,
        status_filter=status_filter,
        ReportStatus=ReportStatus,
    )


@bp.route("/history/<report_id>/status", methods=["POST"])
@login_required
def update_report_status(report_id: str):
    store = get_store()
    report = store.get(PUBLIC_REPORTS, report_id)
    if report is None:
        abort(404)
    try:
        status = ReportStatus(request.form.get("status", ""))
    except ValueError:
        flash("Unknown report status", "error")
        return redirect(url_for("fleet.history"))
    try:
        store.upsert(PUBLIC_REPORTS, with_status(report, status))
    except StoreWriteError as e:
        flash(str(e), "error")
    return redirect(url_for("fleet.history"))


# =============================================================================
# Reports and calendar
# =============================================================================


@bp.route("/reports")
@login_required
def reports():
    """Cost and activity report, optionally for one vehicle."""
    store = get_store()
    all_vehicles = store.load(VEHICLES)
    vehicle_filter = request.args.get("vehicle", ALL) or ALL
    records = filter_by_vehicle(store.load(MAINTENANCE_RECORDS), vehicle_filter)
    series = monthly_series(records)
    return render_template(
        "reports.html",
        vehicles=all_vehicles,
        vehicle_filter=vehicle_filter,
        selected_vehicle=next((v for v in all_vehicles if v.id == vehicle_filter), None),
        summary=cost_summary(records),
        series=series,
        max_count=max((b.count for b in series), default=0),
        distribution=service_type_distribution(records),
        record_count=len(records),
    )


@bp.route("/calendar")
@login_required
def calendar():
    """Maintenance scheduled on a chosen day."""
    store = get_store()
    try:
        day = date.fromisoformat(request.args.get("date", ""))
    except ValueError:
        day = date.today()
    vehicle_filter = request.args.get("vehicle", ALL) or ALL
    records = store.load(MAINTENANCE_RECORDS)
    all_vehicles = store.load(VEHICLES)
    return render_template(
        "calendar.html",
        day=day,
        vehicles=all_vehicles,
        vehicles_by_id={v.id: v for v in all_vehicles},
        vehicle_filter=vehicle_filter,
        events=events_on(records, day, vehicle_filter),
        event_days=event_days(filter_by_vehicle(records, vehicle_filter)),
        total_cost=sum(r.cost for r in filter_by_vehicle(records, vehicle_filter) if r.cost),
        display_plate=display_plate,
    )


# =============================================================================
# App factory
# =============================================================================


def create_app(store: EntityStore = None, config: dict = None) -> Flask:
    """
    Build the web app around one entity store.

    Without an explicit store, collections are kept as JSON files in
    FLEET_DATA_DIR (default: ./data next to the project).
    """
    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod"),
        DATA_DIR=os.environ.get("FLEET_DATA_DIR", str(DATA_DIR)),
        PUBLIC_URL=os.environ.get("FLEET_PUBLIC_URL"),
        ADMIN_USER=os.environ.get("FLEET_ADMIN_USER", "admin"),
        ADMIN_PASSWORD=os.environ.get("FLEET_ADMIN_PASSWORD", "1234"),
    )
    if config:
        app.config.update(config)

    if store is None:
        store = EntityStore(FileStorage(app.config["DATA_DIR"]))
    app.extensions["fleet_store"] = store
    app.extensions["fleet_stats"] = LiveDashboardStats(store)

    # Register template filters
    app.jinja_env.filters["format_cost"] = format_cost
    app.jinja_env.filters["format_mileage"] = format_mileage
    app.jinja_env.filters["status_color"] = status_color

    @app.context_processor
    def inject_login_state():
        return {"logged_in": is_logged_in()}

    app.register_blueprint(bp)
    return app


if __name__ == "__main__":
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    create_app().run(debug=True, host="0.0.0.0", port=5001)
