"""Side-by-side comparison of two date ranges."""

from __future__ import annotations

import calendar
from collections.abc import Sequence
from datetime import date, timedelta
from decimal import Decimal

from timesheet_analytics.core.errors import InvalidFilterCriteria
from timesheet_analytics.models.entities import ZERO, ComparisonResult, DateRange, FilterCriteria, TimeEntry
from timesheet_analytics.services.aggregation_service import HUNDRED, summarize
from timesheet_analytics.services.filter_engine import filter_entries

PERCENT_CHANGE_UNBOUNDED = Decimal("Infinity")

METRIC_TOTAL_HOURS = "Total Hours"
METRIC_ENTRY_COUNT = "Total Entries"
METRIC_UNIQUE_USERS = "Unique Users"
METRIC_UNIQUE_PROJECTS = "Unique Projects"
METRIC_AVG_HOURS_PER_DAY = "Avg Hours/Day"


def percent_change(value_a: Decimal, value_b: Decimal) -> Decimal:
    """Change of ``value_a`` relative to ``value_b`` in percent.

    A zero baseline yields 0 when both values are zero and
    ``PERCENT_CHANGE_UNBOUNDED`` otherwise.
    """

    if value_b == ZERO:
        return ZERO if value_a == ZERO else PERCENT_CHANGE_UNBOUNDED
    return (value_a - value_b) / value_b * HUNDRED


def _metrics(entries: Sequence[TimeEntry]) -> list[tuple[str, Decimal]]:
    stats = summarize(entries)
    return [
        (METRIC_TOTAL_HOURS, stats.total_hours),
        (METRIC_ENTRY_COUNT, Decimal(stats.entry_count)),
        (METRIC_UNIQUE_USERS, Decimal(stats.unique_users)),
        (METRIC_UNIQUE_PROJECTS, Decimal(stats.unique_projects)),
        (METRIC_AVG_HOURS_PER_DAY, stats.avg_hours_per_day),
    ]


def compare_ranges(
    entries: Sequence[TimeEntry],
    range_a: DateRange,
    range_b: DateRange,
    shared_criteria: FilterCriteria,
) -> list[ComparisonResult]:
    """Compare the five headline metrics of ``range_a`` against ``range_b``.

    Both ranges share every criterion except the date bounds. They may overlap.
    """

    subset_a = filter_entries(entries, shared_criteria.with_range(range_a))
    subset_b = filter_entries(entries, shared_criteria.with_range(range_b))

    results = []
    for (name, value_a), (_, value_b) in zip(_metrics(subset_a), _metrics(subset_b)):
        results.append(
            ComparisonResult(
                metric_name=name,
                value_range_a=value_a,
                value_range_b=value_b,
                percent_change=percent_change(value_a, value_b),
            )
        )
    return results


# ---------- Range helpers ----------
def previous_period(date_range: DateRange) -> DateRange:
    """Range of the same length ending the day before ``date_range`` starts."""

    end = date_range.start - timedelta(days=1)
    return DateRange(start=end - timedelta(days=date_range.days - 1), end=end)


def _first_of_previous_month(day: date) -> date:
    if day.month == 1:
        return date(day.year - 1, 12, 1)
    return date(day.year, day.month - 1, 1)


def preset_range(name: str, today: date) -> DateRange:
    """Quick range presets offered next to the custom range pickers."""

    normalized = name.strip().lower()
    rolling = {"last-7-days": 7, "last-30-days": 30, "last-90-days": 90}
    if normalized in rolling:
        return DateRange(start=today - timedelta(days=rolling[normalized]), end=today)
    if normalized == "this-month":
        return DateRange(start=today.replace(day=1), end=today)
    if normalized == "last-month":
        start = _first_of_previous_month(today)
        last_day = calendar.monthrange(start.year, start.month)[1]
        return DateRange(start=start, end=start.replace(day=last_day))
    raise InvalidFilterCriteria(
        f"Unknown date range preset '{name}'. Expected one of: "
        "last-7-days, last-30-days, last-90-days, this-month, last-month."
    )
