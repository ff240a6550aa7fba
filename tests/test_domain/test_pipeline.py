"""
Tests for pipeline columns and board metrics.
"""
from datetime import date, datetime, timezone

import pytest

from app.domain.project import Project
from app.domain.pipeline import (
    day_difference, days_overdue, is_urgent, is_overdue,
    columns, board_metrics,
)

NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


def _project(pid, status="shot", due=None):
    return Project(id=pid, title=pid, client="c", status=status, due_date=due)


class TestDayDifference:
    @pytest.mark.parametrize("due,expected", [
        (date(2024, 1, 10), 0),   # midnight today, 12h ago
        (date(2024, 1, 11), 1),
        (date(2024, 1, 12), 2),
        (date(2024, 1, 13), 3),
        (date(2024, 1, 9), -1),
    ])
    def test_rounds_up(self, due, expected):
        assert day_difference(due, NOW) == expected

    def test_naive_now_is_utc(self):
        assert day_difference(date(2024, 1, 11), datetime(2024, 1, 10, 12, 0)) == 1

    def test_days_overdue(self):
        assert days_overdue(date(2024, 1, 10), NOW) == 1
        assert days_overdue(date(2024, 1, 5), NOW) == 6
        assert days_overdue(None, NOW) == 0


class TestFlags:
    def test_urgent_window(self):
        assert is_urgent(_project("a", due=date(2024, 1, 10)), NOW)
        assert is_urgent(_project("b", due=date(2024, 1, 12)), NOW)
        assert not is_urgent(_project("c", due=date(2024, 1, 13)), NOW)
        assert not is_urgent(_project("d", due=date(2024, 1, 9)), NOW)
        assert not is_urgent(_project("e"), NOW)

    def test_urgent_ignores_status(self):
        assert is_urgent(_project("a", status="delivered", due=date(2024, 1, 11)), NOW)

    def test_overdue_excludes_delivered(self):
        assert is_overdue(_project("a", due=date(2024, 1, 9)), NOW)
        assert not is_overdue(_project("b", status="delivered", due=date(2024, 1, 9)), NOW)
        assert not is_overdue(_project("c", due=date(2024, 1, 11)), NOW)
        assert not is_overdue(_project("d"), NOW)


class TestColumns:
    def test_fixed_order_and_counts(self):
        projects = [_project("a"), _project("b", "review"), _project("c", "review")]
        result = columns(projects)
        assert [c.id for c in result] == ["shot", "editing", "review", "delivered"]
        assert [c.title for c in result] == ["Shot", "Editing", "Review", "Delivered"]
        assert [c.count for c in result] == [1, 0, 2, 0]


class TestBoardMetrics:
    def test_counts(self):
        projects = [
            _project("a", "shot", date(2024, 1, 11)),
            _project("b", "delivered", date(2024, 1, 1)),
            _project("c", "editing"),
        ]
        metrics = board_metrics(projects, NOW)
        assert metrics.active == 2
        assert metrics.completed == 1
        assert metrics.urgent == 1
        assert metrics.overdue_anchor is None
        assert metrics.overdue_days == 0

    def test_overdue_anchor_is_first_in_list_order(self):
        projects = [
            _project("later", "editing", date(2024, 1, 8)),
            _project("oldest", "shot", date(2024, 1, 1)),
        ]
        metrics = board_metrics(projects, NOW)
        assert metrics.overdue_anchor.id == "later"
        assert metrics.overdue_days == 3

    def test_empty(self):
        metrics = board_metrics([], NOW)
        assert (metrics.active, metrics.completed, metrics.urgent) == (0, 0, 0)
        assert metrics.overdue_anchor is None
