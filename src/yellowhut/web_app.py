from __future__ import annotations

import logging
from functools import wraps
from urllib.parse import urlsplit

from flask import Flask, flash, jsonify, redirect, render_template, request, session, url_for

from .auth import check_credentials
from .config import AppConfig
from .dashboard import DEFAULT_FILTER, FILTERS, filter_label
from .db import Db, MemoryDb
from .domain import CUSTOMER_FIELDS, VEHICLE_TYPES, normalize_vehicle_number
from .errors import AlreadyExists, NotFound, ShopError, StoreUnavailable, ValidationFailed
from .repositories.customer_repo import CustomerRepository
from .repositories.job_repo import JobRepository
from .services.shop_service import CustomerInput, JobInput, ShopService, clean_customer_update
from .views import to_dict

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = "change-this-secret-key-in-production"

db: Db | MemoryDb = None
cfg: AppConfig = None
job_repo = JobRepository()
customer_repo = CustomerRepository(job_repo)
shop_service: ShopService = None

_STATUS = {NotFound: 404, AlreadyExists: 409, StoreUnavailable: 503, ValidationFailed: 400}


def configure(config: AppConfig, database: Db | MemoryDb) -> Flask:
    global db, cfg, shop_service
    cfg = config
    db = database
    shop_service = ShopService(
        customer_repo=customer_repo,
        job_repo=job_repo,
        service_catalog=config.business.services,
        default_job_status=config.business.default_job_status,
    )
    app.secret_key = config.secret_key
    return app


def _status_for(e: ShopError) -> int:
    for cls, code in _STATUS.items():
        if isinstance(e, cls):
            return code
    return 500


@app.errorhandler(ShopError)
def shop_error(e: ShopError):
    logger.error("%s on %s: %s", type(e).__name__, request.path, e)
    status = _status_for(e)
    if request.path.startswith("/api/"):
        return jsonify({"error": type(e).__name__, "message": str(e)}), status
    return render_template("error.html", message=str(e)), status


@app.context_processor
def inject_globals():
    return {"app_name": cfg.name if cfg else "YellowHut", "logged_in": bool(session.get("user"))}


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if cfg.auth.enabled and not session.get("user"):
            if request.path.startswith("/api/"):
                return jsonify({"error": "Unauthorized"}), 401
            return redirect(url_for("login", next=request.path))
        return view(*args, **kwargs)

    return wrapper


def _safe_next(nxt: str | None) -> str:
    """Only same-site paths are followed after login."""
    parts = urlsplit(nxt or "")
    if parts.scheme or parts.netloc or not parts.path.startswith("/") or nxt.startswith(("//", "/\\")):
        return url_for("index")
    return nxt


@app.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        username = request.form.get("username", "").strip()
        password = request.form.get("password", "")
        if check_credentials(cfg.auth, username, password):
            session["user"] = username
            return redirect(_safe_next(request.args.get("next")))
        flash("Invalid username or password. Please try again.", "danger")
    return render_template("login.html")


@app.route("/logout")
def logout():
    session.pop("user", None)
    return redirect(url_for("login"))


@app.route("/")
@login_required
def index():
    return render_template("search.html", errors={})


@app.route("/search", methods=["POST"])
@login_required
def search():
    vehicle_number = request.form.get("vehicle_number", "")
    try:
        with db.session() as store:
            customer = shop_service.find_customer(store, vehicle_number)
    except ValidationFailed as e:
        return render_template("search.html", errors=e.errors), 400

    if customer is None:
        return redirect(url_for("customers_new", vehicle_number=normalize_vehicle_number(vehicle_number)))
    return redirect(url_for("customer_profile", vehicle_number=customer.vehicle_number))


@app.route("/customers")
@login_required
def customers_list():
    with db.session() as store:
        rows = shop_service.list_customers(store)
    return render_template("customers_list.html", customers=rows)


@app.route("/customers/new", methods=["GET", "POST"])
@login_required
def customers_new():
    form = {k: "" for k in CUSTOMER_FIELDS}
    form["vehicle_type"] = "Car"
    form["vehicle_number"] = request.args.get("vehicle_number", "")

    if request.method == "POST":
        form.update({k: request.form.get(k, "") for k in form})
        data = CustomerInput(**{k: form[k] for k in ("vehicle_number", *CUSTOMER_FIELDS)})
        try:
            data.validate()
            with db.transaction() as store:
                customer = shop_service.register_customer(store, data)
        except ValidationFailed as e:
            flash("Please fix the highlighted fields", "warning")
            return _render_register(form, e.errors), 400
        flash(f"Customer {customer.vehicle_number} registered", "success")
        return redirect(url_for("customer_profile", vehicle_number=customer.vehicle_number))

    return _render_register(form, {})


def _render_register(form: dict, errors: dict):
    return render_template("register.html", form=form, errors=errors, vehicle_types=VEHICLE_TYPES)


@app.route("/customers/<vehicle_number>")
@login_required
def customer_profile(vehicle_number):
    with db.session() as store:
        customer = shop_service.find_customer(store, vehicle_number)
    if customer is None:
        raise NotFound(f"Customer {normalize_vehicle_number(vehicle_number)} not found")
    return render_template("profile.html", customer=customer)


@app.route("/customers/<vehicle_number>/edit", methods=["GET", "POST"])
@login_required
def customer_edit(vehicle_number):
    with db.session() as store:
        customer = shop_service.find_customer(store, vehicle_number)
    if customer is None:
        raise NotFound(f"Customer {normalize_vehicle_number(vehicle_number)} not found")

    form = {k: getattr(customer, k) for k in CUSTOMER_FIELDS}
    if request.method == "POST":
        changed = {k: request.form[k] for k in CUSTOMER_FIELDS if k in request.form and request.form[k] != form[k]}
        form.update(changed)
        try:
            clean_customer_update(changed)
            with db.transaction() as store:
                shop_service.update_customer(store, customer.vehicle_number, changed)
        except ValidationFailed as e:
            flash("Please fix the highlighted fields", "warning")
            return render_template("edit.html", customer=customer, form=form, errors=e.errors, vehicle_types=VEHICLE_TYPES), 400
        flash("Customer updated", "success")
        return redirect(url_for("customer_profile", vehicle_number=customer.vehicle_number))

    return render_template("edit.html", customer=customer, form=form, errors={}, vehicle_types=VEHICLE_TYPES)


@app.route("/customers/<vehicle_number>/jobs/new", methods=["GET", "POST"])
@login_required
def jobs_new(vehicle_number):
    with db.session() as store:
        customer = shop_service.find_customer(store, vehicle_number)
    if customer is None:
        raise NotFound("Customer not found. Please register the customer first.")

    errors: dict[str, str] = {}
    if request.method == "POST":
        data = JobInput(
            services=request.form.getlist("services"),
            technician_name=request.form.get("technician_name", ""),
            cost=request.form.get("cost", ""),
            status=request.form.get("status", ""),
            notes=request.form.get("notes", ""),
        )
        try:
            data.validate()
            with db.transaction() as store:
                job = shop_service.add_job(store, customer.vehicle_number, data)
            flash(f"Job saved ({len(job.services)} services)", "success")
            return redirect(url_for("customer_profile", vehicle_number=customer.vehicle_number))
        except ValidationFailed as e:
            flash("Validation error: " + "; ".join(e.errors.values()), "warning")
            errors = e.errors

    return (
        render_template("add_job.html", customer=customer, catalog=shop_service.service_catalog, errors=errors),
        400 if errors else 200,
    )


@app.route("/dashboard")
@login_required
def dashboard():
    with db.session() as store:
        view = shop_service.dashboard(store, request.args.get("filter", DEFAULT_FILTER))
    if view.skipped:
        flash(f"{view.skipped} customer histories could not be read", "warning")
    return render_template("dashboard.html", view=view, filters=FILTERS, label=filter_label(view.filter_key))


@app.route("/api/customers/<vehicle_number>")
@login_required
def api_customer(vehicle_number):
    with db.session() as store:
        customer = shop_service.find_customer(store, vehicle_number)
    if customer is None:
        raise NotFound(f"Customer {normalize_vehicle_number(vehicle_number)} not found")
    return jsonify(to_dict(customer))


@app.route("/api/jobs")
@login_required
def api_jobs():
    with db.session() as store:
        view = shop_service.dashboard(store, request.args.get("filter", "all"))
    return jsonify(
        {
            "filter": view.filter_key,
            "total": view.total,
            "skipped": view.skipped,
            "source": view.source,
            "counts": view.counts,
            "jobs": [to_dict(j) for j in view.jobs],
        }
    )
