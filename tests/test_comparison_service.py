from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from factories import january, make_entry
from timesheet_analytics.core.errors import InvalidFilterCriteria
from timesheet_analytics.models.entities import DateRange, TimeEntry
from timesheet_analytics.services.comparison_service import (
    METRIC_AVG_HOURS_PER_DAY,
    METRIC_ENTRY_COUNT,
    METRIC_TOTAL_HOURS,
    METRIC_UNIQUE_PROJECTS,
    METRIC_UNIQUE_USERS,
    PERCENT_CHANGE_UNBOUNDED,
    compare_ranges,
    percent_change,
    preset_range,
    previous_period,
)

FIRST_WEEK = DateRange(start=date(2024, 1, 1), end=date(2024, 1, 6))
SECOND_WEEK = DateRange(start=date(2024, 1, 7), end=date(2024, 1, 13))


def _by_metric(results):
    return {result.metric_name: result for result in results}


def test_metrics_for_two_ranges(team_entries: list[TimeEntry]) -> None:
    results = _by_metric(compare_ranges(team_entries, FIRST_WEEK, SECOND_WEEK, january()))

    assert list(results) == [
        METRIC_TOTAL_HOURS,
        METRIC_ENTRY_COUNT,
        METRIC_UNIQUE_USERS,
        METRIC_UNIQUE_PROJECTS,
        METRIC_AVG_HOURS_PER_DAY,
    ]
    total = results[METRIC_TOTAL_HOURS]
    assert total.value_range_a == Decimal("12.5")
    assert total.value_range_b == Decimal("10")
    assert total.percent_change == Decimal("25")
    assert results[METRIC_ENTRY_COUNT].percent_change == Decimal("0")
    assert results[METRIC_UNIQUE_PROJECTS].value_range_a == Decimal("2")
    assert results[METRIC_UNIQUE_PROJECTS].value_range_b == Decimal("3")
    assert results[METRIC_UNIQUE_PROJECTS].percent_change.quantize(Decimal("0.01")) == Decimal("-33.33")


def test_shared_criteria_apply_to_both_ranges(team_entries: list[TimeEntry]) -> None:
    results = _by_metric(compare_ranges(team_entries, FIRST_WEEK, SECOND_WEEK, january(project_id="P1")))

    assert results[METRIC_TOTAL_HOURS].value_range_a == Decimal("6.5")
    assert results[METRIC_TOTAL_HOURS].value_range_b == Decimal("0.75")


def test_range_dates_override_shared_criteria_dates(team_entries: list[TimeEntry]) -> None:
    february = DateRange(start=date(2024, 2, 1), end=date(2024, 2, 29))

    results = _by_metric(compare_ranges(team_entries, february, FIRST_WEEK, january()))

    assert results[METRIC_TOTAL_HOURS].value_range_a == Decimal("5")


def test_empty_baseline_yields_unbounded_sentinel() -> None:
    entries = [make_entry("a", "2024-03-01", "6"), make_entry("b", "2024-03-02", "4")]
    range_a = DateRange(start=date(2024, 3, 1), end=date(2024, 3, 31))
    range_b = DateRange(start=date(2024, 2, 1), end=date(2024, 2, 29))

    results = _by_metric(compare_ranges(entries, range_a, range_b, january()))

    total = results[METRIC_TOTAL_HOURS]
    assert total.value_range_a == Decimal("10")
    assert total.value_range_b == Decimal("0")
    assert total.percent_change == PERCENT_CHANGE_UNBOUNDED
    assert total.is_unbounded
    assert not total.percent_change.is_nan()


def test_both_ranges_empty_is_zero_change() -> None:
    results = compare_ranges([], FIRST_WEEK, SECOND_WEEK, january())

    assert all(result.percent_change == Decimal("0") for result in results)
    assert not any(result.is_unbounded for result in results)


def test_overlapping_ranges_are_allowed(team_entries: list[TimeEntry]) -> None:
    whole = DateRange(start=date(2024, 1, 1), end=date(2024, 1, 31))

    results = _by_metric(compare_ranges(team_entries, whole, whole, january()))

    assert results[METRIC_TOTAL_HOURS].percent_change == Decimal("0")


@pytest.mark.parametrize(
    ("value_a", "value_b", "expected"),
    [
        ("15", "10", Decimal("50")),
        ("5", "10", Decimal("-50")),
        ("0", "10", Decimal("-100")),
        ("0", "0", Decimal("0")),
        ("3", "0", PERCENT_CHANGE_UNBOUNDED),
    ],
)
def test_percent_change(value_a: str, value_b: str, expected: Decimal) -> None:
    assert percent_change(Decimal(value_a), Decimal(value_b)) == expected


def test_previous_period_has_equal_length() -> None:
    previous = previous_period(SECOND_WEEK)

    assert previous == DateRange(start=date(2023, 12, 31), end=date(2024, 1, 6))
    assert previous.days == SECOND_WEEK.days


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("last-7-days", DateRange(start=date(2024, 3, 8), end=date(2024, 3, 15))),
        ("this-month", DateRange(start=date(2024, 3, 1), end=date(2024, 3, 15))),
        ("last-month", DateRange(start=date(2024, 2, 1), end=date(2024, 2, 29))),
    ],
)
def test_presets(name: str, expected: DateRange) -> None:
    assert preset_range(name, date(2024, 3, 15)) == expected


def test_last_month_in_january_wraps_year() -> None:
    assert preset_range("last-month", date(2024, 1, 10)) == DateRange(start=date(2023, 12, 1), end=date(2023, 12, 31))


def test_unknown_preset_is_rejected() -> None:
    with pytest.raises(InvalidFilterCriteria):
        preset_range("fortnight", date(2024, 3, 15))


def test_inverted_date_range_is_rejected() -> None:
    with pytest.raises(InvalidFilterCriteria):
        DateRange(start=date(2024, 2, 1), end=date(2024, 1, 1))
