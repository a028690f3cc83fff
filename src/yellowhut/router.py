from __future__ import annotations

from enum import Enum

from .errors import InvalidTransition


class Screen(str, Enum):
    SEARCH = "search"
    REGISTRATION = "registration"
    CUSTOMER_PROFILE = "customerProfile"
    ADD_JOB = "addJob"
    DASHBOARD = "dashboard"
    ERROR = "error"


class Event(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    OPEN_DASHBOARD = "open_dashboard"
    SAVE = "save"
    CANCEL = "cancel"
    ADD_JOB = "add_job"
    BACK = "back"
    SELECT_CUSTOMER = "select_customer"
    FAILURE = "failure"
    RECOVER = "recover"


INITIAL_SCREEN = Screen.SEARCH

TRANSITIONS: dict[tuple[Screen, Event], Screen] = {
    (Screen.SEARCH, Event.FOUND): Screen.CUSTOMER_PROFILE,
    (Screen.SEARCH, Event.NOT_FOUND): Screen.REGISTRATION,
    (Screen.SEARCH, Event.OPEN_DASHBOARD): Screen.DASHBOARD,
    (Screen.REGISTRATION, Event.SAVE): Screen.CUSTOMER_PROFILE,
    (Screen.REGISTRATION, Event.CANCEL): Screen.SEARCH,
    (Screen.CUSTOMER_PROFILE, Event.ADD_JOB): Screen.ADD_JOB,
    (Screen.CUSTOMER_PROFILE, Event.BACK): Screen.SEARCH,
    (Screen.ADD_JOB, Event.SAVE): Screen.CUSTOMER_PROFILE,
    (Screen.ADD_JOB, Event.BACK): Screen.CUSTOMER_PROFILE,
    (Screen.DASHBOARD, Event.SELECT_CUSTOMER): Screen.CUSTOMER_PROFILE,
    (Screen.DASHBOARD, Event.BACK): Screen.SEARCH,
    (Screen.ERROR, Event.RECOVER): Screen.SEARCH,
}


def transition(screen: Screen, event: Event) -> Screen:
    """Next screen for ``event`` on ``screen``.

    ``FAILURE`` leads to the error screen from anywhere. Any other pair not
    in ``TRANSITIONS`` raises ``InvalidTransition``.
    """
    if event is Event.FAILURE:
        return Screen.ERROR
    try:
        return TRANSITIONS[(screen, event)]
    except KeyError:
        raise InvalidTransition(f"No transition from {screen.value!r} on {event.value!r}") from None


def allowed_events(screen: Screen) -> list[Event]:
    return [e for (s, e) in TRANSITIONS if s is screen] + [Event.FAILURE]
