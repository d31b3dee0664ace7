from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from factories import january, make_entry
from timesheet_analytics.core.errors import InvalidFilterCriteria
from timesheet_analytics.models.entities import FilterCriteria, TimeEntry, WorkType
from timesheet_analytics.services.filter_engine import filter_entries, validate_criteria


def test_identity_filter_keeps_everything_in_order(team_entries: list[TimeEntry]) -> None:
    criteria = FilterCriteria(date_start=date(2024, 1, 1), date_end=date(2024, 12, 31))

    result = filter_entries(team_entries, criteria)

    assert [entry.id for entry in result] == [entry.id for entry in team_entries]


def test_date_bounds_are_inclusive(team_entries: list[TimeEntry]) -> None:
    criteria = FilterCriteria(date_start=date(2024, 1, 3), date_end=date(2024, 1, 8))

    result = filter_entries(team_entries, criteria)

    assert [entry.id for entry in result] == ["t3", "t4", "t5"]


def test_criteria_combine_with_and(team_entries: list[TimeEntry]) -> None:
    result = filter_entries(team_entries, january(project_id="P1", work_type=WorkType.MEETING))

    assert [entry.id for entry in result] == ["t2", "t6"]


def test_user_and_client_filters(team_entries: list[TimeEntry]) -> None:
    by_user = filter_entries(team_entries, january(user_id="U1"))
    by_client = filter_entries(team_entries, january(client_name="Globex"))

    assert [entry.id for entry in by_user] == ["t1", "t3"]
    assert [entry.id for entry in by_client] == ["t3"]


def test_hours_bounds_are_inclusive(team_entries: list[TimeEntry]) -> None:
    result = filter_entries(team_entries, january(min_hours=Decimal("2.5"), max_hours=Decimal("6")))

    assert [entry.id for entry in result] == ["t1", "t2", "t3"]


def test_min_hours_excluding_everything_is_not_an_error(two_project_entries: list[TimeEntry]) -> None:
    result = filter_entries(two_project_entries, january(min_hours=Decimal("5")))

    assert result == []


def test_filter_does_not_mutate_input(team_entries: list[TimeEntry]) -> None:
    snapshot = list(team_entries)

    filter_entries(team_entries, january(project_id="P2"))

    assert team_entries == snapshot


def test_filter_is_idempotent(team_entries: list[TimeEntry]) -> None:
    criteria = january(user_id="U2")

    assert filter_entries(team_entries, criteria) == filter_entries(team_entries, criteria)


def test_filter_accepts_any_iterable() -> None:
    entries = (make_entry(f"g{i}", "2024-01-05", "1") for i in range(3))

    assert len(filter_entries(entries, january())) == 3


def test_inverted_date_range_is_rejected() -> None:
    criteria = FilterCriteria(date_start=date(2024, 2, 1), date_end=date(2024, 1, 1))

    with pytest.raises(InvalidFilterCriteria, match="date_end"):
        filter_entries([], criteria)


def test_inverted_hours_range_is_rejected() -> None:
    with pytest.raises(InvalidFilterCriteria, match="max_hours"):
        validate_criteria(january(min_hours=Decimal("5"), max_hours=Decimal("2")))


def test_negative_min_hours_is_rejected() -> None:
    with pytest.raises(InvalidFilterCriteria, match="min_hours"):
        validate_criteria(january(min_hours=Decimal("-1")))


def test_invalid_criteria_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        validate_criteria(january(min_hours=Decimal("3"), max_hours=Decimal("1")))
