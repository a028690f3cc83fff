"""
Client-side filters for the dashboard job list.

All date windows are computed in local time from midnight. Windows that end
at "now" actually end at the start of tomorrow, so jobs stamped later today
are included and anything dated after today is not.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Iterable

from .domain import DashboardJob

FILTERS: list[tuple[str, str]] = [
    ("today", "Today"),
    ("yesterday", "Yesterday"),
    ("thisWeek", "This Week"),
    ("thisMonth", "This Month"),
    ("all", "All Jobs"),
    ("cars", "Cars Only"),
    ("vans", "Vans/SUVs"),
    ("recent", "Recent (7 days)"),
]
FILTER_KEYS = [key for key, _ in FILTERS]
DEFAULT_FILTER = "today"

_VAN_LIKE = ("van", "suv", "pickup")


def normalize_filter(key: str | None) -> str:
    return key if key in FILTER_KEYS else "all"


def filter_label(key: str | None) -> str:
    return dict(FILTERS)[normalize_filter(key)]


def _local(dt: datetime) -> datetime:
    return dt.astimezone().replace(tzinfo=None) if dt.tzinfo else dt


def _predicate(key: str, now: datetime) -> Callable[[DashboardJob], bool]:
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    tomorrow = today + timedelta(days=1)
    yesterday = today - timedelta(days=1)
    # weeks start on Sunday
    start_of_week = today - timedelta(days=(today.weekday() + 1) % 7)
    start_of_month = today.replace(day=1)
    seven_days_ago = today - timedelta(days=7)

    def within(start: datetime) -> Callable[[DashboardJob], bool]:
        return lambda job: start <= _local(job.job_datetime) < tomorrow

    def vehicle_type(job: DashboardJob) -> str:
        return (job.vehicle_type or "").lower()

    if key == "today":
        return lambda job: _local(job.job_datetime).date() == today.date()
    if key == "yesterday":
        return lambda job: _local(job.job_datetime).date() == yesterday.date()
    if key == "thisWeek":
        return within(start_of_week)
    if key == "thisMonth":
        return within(start_of_month)
    if key == "recent":
        return within(seven_days_ago)
    if key == "cars":
        return lambda job: "car" in vehicle_type(job)
    if key == "vans":
        return lambda job: any(v in vehicle_type(job) for v in _VAN_LIKE)
    return lambda job: True


def apply_filter(jobs: Iterable[DashboardJob], key: str | None, now: datetime | None = None) -> list[DashboardJob]:
    """Return a new list of the jobs matching ``key``, newest first.

    Unknown keys behave like ``all``. The input is never modified.
    """
    now = _local(now) if now else datetime.now()
    keep = _predicate(normalize_filter(key), now)
    matched = [job for job in jobs if keep(job)]
    matched.sort(key=lambda job: job.job_datetime, reverse=True)
    return matched


def filter_counts(jobs: Iterable[DashboardJob], now: datetime | None = None) -> dict[str, int]:
    jobs = list(jobs)
    return {key: len(apply_filter(jobs, key, now)) for key in FILTER_KEYS}
