"""
Delivery pipeline columns and derived board metrics.

All functions are pure over the in-memory project list and are recomputed
on every call. Day differences reproduce millisecond calendar subtraction
rounded up to whole days:

    day_difference(due, now) = ceil((due - now) / 86_400_000 ms)

A bare date is read as midnight UTC.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timezone, timedelta
from typing import Iterable

from app.domain.project import Project, STAGES, STAGE_TITLES, DELIVERED

MS_PER_DAY = 86_400_000

URGENT_MIN_DAYS = 0
URGENT_MAX_DAYS = 2


@dataclass(frozen=True)
class Column:
    id: str
    title: str
    count: int


@dataclass(frozen=True)
class BoardMetrics:
    active: int
    completed: int
    urgent: int
    overdue_anchor: Project | None
    overdue_days: int


def _as_instant(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def _ceil_days(delta: timedelta) -> int:
    ms = delta // timedelta(milliseconds=1)
    return -(-ms // MS_PER_DAY)


def day_difference(due: date | datetime, now: datetime) -> int:
    return _ceil_days(_as_instant(due) - _as_instant(now))


def days_overdue(due: date | datetime | None, now: datetime) -> int:
    if due is None:
        return 0
    return _ceil_days(_as_instant(now) - _as_instant(due))


def is_urgent(project: Project, now: datetime) -> bool:
    if project.due_date is None:
        return False
    return URGENT_MIN_DAYS <= day_difference(project.due_date, now) <= URGENT_MAX_DAYS


def is_overdue(project: Project, now: datetime) -> bool:
    if project.due_date is None or project.status == DELIVERED:
        return False
    return _as_instant(project.due_date) < _as_instant(now)


def columns(projects: Iterable[Project]) -> list[Column]:
    projects = list(projects)
    return [
        Column(id=s, title=STAGE_TITLES[s], count=sum(1 for p in projects if p.status == s))
        for s in STAGES
    ]


def active_count(projects: Iterable[Project]) -> int:
    return sum(1 for p in projects if p.status != DELIVERED)


def completed_count(projects: Iterable[Project]) -> int:
    return sum(1 for p in projects if p.status == DELIVERED)


def urgent_count(projects: Iterable[Project], now: datetime) -> int:
    return sum(1 for p in projects if is_urgent(p, now))


def overdue_anchor(projects: Iterable[Project], now: datetime) -> Project | None:
    """First project in list order that is past due and not delivered."""
    return next((p for p in projects if is_overdue(p, now)), None)


def board_metrics(projects: list[Project], now: datetime) -> BoardMetrics:
    anchor = overdue_anchor(projects, now)
    return BoardMetrics(
        active=active_count(projects),
        completed=completed_count(projects),
        urgent=urgent_count(projects, now),
        overdue_anchor=anchor,
        overdue_days=days_overdue(anchor.due_date, now) if anchor else 0,
    )
