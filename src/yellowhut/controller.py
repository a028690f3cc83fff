from __future__ import annotations

import logging

from .dashboard import DEFAULT_FILTER
from .db import Db, MemoryDb
from .domain import Customer, normalize_vehicle_number
from .errors import NotFound, ShopError, ValidationFailed
from .router import INITIAL_SCREEN, Event, Screen, transition
from .services.shop_service import CustomerInput, DashboardView, JobInput, ShopService

logger = logging.getLogger(__name__)


class ShopController:
    """Session state for one user plus the callbacks each screen invokes.

    Validation problems stay on the current screen with ``field_errors``
    filled in. Store and repository failures move to ``Screen.ERROR``; the
    only way out of it is ``on_recover``.
    """

    def __init__(self, db: Db | MemoryDb, service: ShopService) -> None:
        self.db = db
        self.service = service
        self.screen: Screen = INITIAL_SCREEN
        self.search_vehicle_number = ""
        self.customer: Customer | None = None
        self.dashboard: DashboardView | None = None
        self.filter_key = DEFAULT_FILTER
        self.error: str | None = None
        self.field_errors: dict[str, str] = {}

    def _fire(self, event: Event) -> Screen:
        self.screen = transition(self.screen, event)
        self.field_errors = {}
        return self.screen

    def _fail(self, exc: ShopError) -> Screen:
        logger.error("%s on %s: %s", type(exc).__name__, self.screen.value, exc)
        self.error = str(exc)
        return self._fire(Event.FAILURE)

    def _load_customer(self, vehicle_number: str) -> Customer | None:
        with self.db.session() as store:
            return self.service.find_customer(store, vehicle_number)

    def on_search(self, vehicle_number: str) -> Screen:
        try:
            customer = self._load_customer(vehicle_number)
        except ValidationFailed as e:
            self.field_errors = e.errors
            return self.screen
        except ShopError as e:
            return self._fail(e)

        self.search_vehicle_number = normalize_vehicle_number(vehicle_number)
        if customer is None:
            self.customer = None
            return self._fire(Event.NOT_FOUND)
        self.customer = customer
        return self._fire(Event.FOUND)

    def on_register(self, data: CustomerInput) -> Screen:
        try:
            data.validate()
            with self.db.transaction() as store:
                self.customer = self.service.register_customer(store, data)
        except ValidationFailed as e:
            self.field_errors = e.errors
            return self.screen
        except ShopError as e:
            return self._fail(e)
        return self._fire(Event.SAVE)

    def on_cancel(self) -> Screen:
        return self._fire(Event.CANCEL)

    def on_add_job(self) -> Screen:
        return self._fire(Event.ADD_JOB)

    def on_save_job(self, data: JobInput) -> Screen:
        if self.customer is None:
            return self._fail(NotFound("No customer selected"))
        try:
            data.validate()
            with self.db.transaction() as store:
                self.service.add_job(store, self.customer.vehicle_number, data)
            self.customer = self._load_customer(self.customer.vehicle_number)
        except ValidationFailed as e:
            self.field_errors = e.errors
            return self.screen
        except ShopError as e:
            return self._fail(e)
        return self._fire(Event.SAVE)

    def on_back(self) -> Screen:
        return self._fire(Event.BACK)

    def on_open_dashboard(self) -> Screen:
        try:
            with self.db.session() as store:
                self.dashboard = self.service.dashboard(store, self.filter_key)
        except ShopError as e:
            return self._fail(e)
        return self._fire(Event.OPEN_DASHBOARD)

    def on_filter(self, filter_key: str) -> DashboardView | None:
        if self.dashboard is None:
            return None
        self.dashboard = self.dashboard.refilter(filter_key)
        self.filter_key = self.dashboard.filter_key
        return self.dashboard

    def on_select_customer(self, vehicle_number: str) -> Screen:
        try:
            customer = self._load_customer(vehicle_number)
            if customer is None:
                raise NotFound(f"Customer {normalize_vehicle_number(vehicle_number)} not found")
        except ShopError as e:
            return self._fail(e)
        self.customer = customer
        return self._fire(Event.SELECT_CUSTOMER)

    def on_recover(self) -> Screen:
        self.error = None
        self.customer = None
        return self._fire(Event.RECOVER)
