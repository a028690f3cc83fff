from __future__ import annotations

import pytest

from yellowhut.errors import InvalidTransition
from yellowhut.router import INITIAL_SCREEN, Event, Screen, allowed_events, transition


def test_initial_screen_is_search():
    assert INITIAL_SCREEN is Screen.SEARCH


@pytest.mark.parametrize(
    "screen, event, expected",
    [
        (Screen.SEARCH, Event.FOUND, Screen.CUSTOMER_PROFILE),
        (Screen.SEARCH, Event.NOT_FOUND, Screen.REGISTRATION),
        (Screen.SEARCH, Event.OPEN_DASHBOARD, Screen.DASHBOARD),
        (Screen.REGISTRATION, Event.SAVE, Screen.CUSTOMER_PROFILE),
        (Screen.REGISTRATION, Event.CANCEL, Screen.SEARCH),
        (Screen.CUSTOMER_PROFILE, Event.ADD_JOB, Screen.ADD_JOB),
        (Screen.CUSTOMER_PROFILE, Event.BACK, Screen.SEARCH),
        (Screen.ADD_JOB, Event.SAVE, Screen.CUSTOMER_PROFILE),
        (Screen.ADD_JOB, Event.BACK, Screen.CUSTOMER_PROFILE),
        (Screen.DASHBOARD, Event.SELECT_CUSTOMER, Screen.CUSTOMER_PROFILE),
        (Screen.DASHBOARD, Event.BACK, Screen.SEARCH),
        (Screen.ERROR, Event.RECOVER, Screen.SEARCH),
    ],
)
def test_transitions(screen, event, expected):
    assert transition(screen, event) is expected


@pytest.mark.parametrize("screen", list(Screen))
def test_failure_leads_to_error_from_anywhere(screen):
    assert transition(screen, Event.FAILURE) is Screen.ERROR


@pytest.mark.parametrize(
    "screen, event",
    [
        (Screen.SEARCH, Event.SAVE),
        (Screen.REGISTRATION, Event.ADD_JOB),
        (Screen.ERROR, Event.BACK),
        (Screen.DASHBOARD, Event.FOUND),
    ],
)
def test_unlisted_transitions_are_rejected(screen, event):
    with pytest.raises(InvalidTransition):
        transition(screen, event)


def test_error_screen_only_recovers():
    assert allowed_events(Screen.ERROR) == [Event.RECOVER, Event.FAILURE]
