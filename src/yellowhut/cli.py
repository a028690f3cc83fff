from __future__ import annotations

import getpass

from .auth import check_credentials
from .config import AppConfig
from .controller import ShopController
from .dashboard import FILTERS, filter_label
from .domain import VEHICLE_TYPES, Customer
from .router import Screen
from .services.shop_service import CustomerInput, JobInput


def _prompt(msg: str) -> str:
    return input(msg).strip()


def _fmt(dt) -> str:
    return dt.astimezone().strftime("%b %d, %Y %I:%M %p")


def _show_field_errors(ctl: ShopController) -> None:
    for name, message in ctl.field_errors.items():
        print(f"[INPUT ERROR] {name}: {message}")


def _print_customer(customer: Customer) -> None:
    print(f"\n=== {customer.full_name} ({customer.vehicle_number}, {customer.vehicle_type}) ===")
    print(f"Mobile:   {customer.mobile_number}")
    print(f"Address:  {customer.address}")
    print(f"Model:    {customer.vehicle_model}")
    print(f"NIC:      {customer.nic_number}")
    print(f"Birthday: {customer.birthday}")
    print(f"\nService history ({len(customer.service_history)} jobs):")
    if not customer.service_history:
        print("  No service records yet")
    for job in customer.service_history:
        print(f"  {_fmt(job.job_datetime)}  {', '.join(job.services) or job.last_service}  [{job.status}]")


def _login(cfg: AppConfig) -> bool:
    if not cfg.auth.enabled:
        return True
    for _ in range(3):
        username = _prompt("Username: ")
        password = getpass.getpass("Password: ")
        if check_credentials(cfg.auth, username, password):
            return True
        print("Invalid username or password. Please try again.")
    return False


def _search_screen(ctl: ShopController) -> bool:
    print("\n=== Vehicle search ===")
    print("Enter a vehicle number, 'd' for the dashboard or '0' to exit.")
    choice = _prompt("> ")
    if choice == "0":
        return False
    if choice.lower() == "d":
        ctl.on_open_dashboard()
    else:
        ctl.on_search(choice)
        _show_field_errors(ctl)
    return True


def _registration_screen(ctl: ShopController) -> None:
    print(f"\nVehicle {ctl.search_vehicle_number} not found in our records.")
    if _prompt("Register this customer? (y/n): ").lower() != "y":
        ctl.on_cancel()
        return

    vehicle_type = _prompt(f"vehicle type {'/'.join(VEHICLE_TYPES)} (default Car): ") or "Car"
    data = CustomerInput(
        vehicle_number=ctl.search_vehicle_number,
        full_name=_prompt("full name: "),
        mobile_number=_prompt("mobile number (0771234567): "),
        address=_prompt("address: "),
        vehicle_model=_prompt("vehicle model: "),
        nic_number=_prompt("NIC number: "),
        birthday=_prompt("birthday (YYYY-MM-DD): "),
        vehicle_type=vehicle_type,
    )
    ctl.on_register(data)
    _show_field_errors(ctl)


def _profile_screen(ctl: ShopController) -> None:
    _print_customer(ctl.customer)
    print("\n1) Add job")
    print("0) Back to search")
    if _prompt("> ") == "1":
        ctl.on_add_job()
    else:
        ctl.on_back()


def _add_job_screen(ctl: ShopController) -> None:
    catalog = ctl.service.service_catalog
    print(f"\nAdd job for {ctl.customer.full_name} ({ctl.customer.vehicle_number})")
    for i, name in enumerate(catalog, start=1):
        print(f"  {i:2}) {name}")

    services: list[str] = []
    while True:
        pick = _prompt("Add service number (empty to finish): ")
        if not pick:
            break
        if pick.isdigit() and 1 <= int(pick) <= len(catalog):
            name = catalog[int(pick) - 1]
            if name not in services:
                services.append(name)
            print(f"  Services: {', '.join(services)}")
        else:
            print("Unknown choice.")

    if not services:
        ctl.on_back()
        return

    data = JobInput(
        services=services,
        technician_name=_prompt("technician (optional): ") or None,
        cost=_prompt("cost (default 0): ") or 0,
        notes=_prompt("notes (optional): "),
    )
    ctl.on_save_job(data)
    _show_field_errors(ctl)


def _dashboard_screen(ctl: ShopController) -> None:
    view = ctl.dashboard
    print(f"\n=== Dashboard: {filter_label(view.filter_key)} ({len(view.jobs)} of {view.total}) ===")
    if view.skipped:
        print(f"[WARNING] {view.skipped} customer histories could not be read")
    for job in view.jobs:
        print(f"  {job.vehicle_number:10} {job.customer_name:24} {job.vehicle_type:10} {job.last_service:20} {_fmt(job.job_datetime)}")
    if not view.jobs:
        print("  No service records match this filter.")

    print("\nFilters: " + ", ".join(f"{key} ({view.counts.get(key, 0)})" for key, _ in FILTERS))
    print("Type a filter name, a vehicle number to open it, or '0' to go back.")
    choice = _prompt("> ")
    if choice == "0":
        ctl.on_back()
    elif choice in dict(FILTERS):
        ctl.on_filter(choice)
    elif choice:
        ctl.on_select_customer(choice)


def _error_screen(ctl: ShopController) -> None:
    print(f"\n[ERROR] {ctl.error}")
    _prompt("Press Enter to return to search.")
    ctl.on_recover()


def run_cli(ctl: ShopController, cfg: AppConfig) -> None:
    if not _login(cfg):
        print("Too many failed attempts.")
        return

    screens = {
        Screen.REGISTRATION: _registration_screen,
        Screen.CUSTOMER_PROFILE: _profile_screen,
        Screen.ADD_JOB: _add_job_screen,
        Screen.DASHBOARD: _dashboard_screen,
        Screen.ERROR: _error_screen,
    }

    while True:
        try:
            if ctl.screen is Screen.SEARCH:
                if not _search_screen(ctl):
                    return
            else:
                screens[ctl.screen](ctl)
        except ValueError as e:
            print(f"[VALUE ERROR] {e}")
        except Exception as e:
            print(f"[ERROR] {type(e).__name__}: {e}")
