"""Criteria validation and record filtering."""

from __future__ import annotations

from collections.abc import Iterable

from timesheet_analytics.core.errors import InvalidFilterCriteria
from timesheet_analytics.models.entities import ZERO, FilterCriteria, TimeEntry


def validate_criteria(criteria: FilterCriteria) -> None:
    if criteria.date_end < criteria.date_start:
        raise InvalidFilterCriteria(
            f"date_end ({criteria.date_end.isoformat()}) must be greater than or equal to "
            f"date_start ({criteria.date_start.isoformat()})."
        )
    if criteria.min_hours < ZERO:
        raise InvalidFilterCriteria(f"min_hours must not be negative (got {criteria.min_hours}).")
    if criteria.max_hours < criteria.min_hours:
        raise InvalidFilterCriteria(
            f"max_hours ({criteria.max_hours}) must be greater than or equal to min_hours ({criteria.min_hours})."
        )


def matches(entry: TimeEntry, criteria: FilterCriteria) -> bool:
    """True when the entry satisfies every present criterion."""

    if entry.date < criteria.date_start or entry.date > criteria.date_end:
        return False
    if criteria.project_id is not None and entry.project_id != criteria.project_id:
        return False
    if criteria.user_id is not None and entry.user_id != criteria.user_id:
        return False
    if criteria.work_type is not None and entry.work_type != criteria.work_type:
        return False
    if criteria.client_name is not None and entry.client_name != criteria.client_name:
        return False
    return criteria.min_hours <= entry.hours <= criteria.max_hours


def filter_entries(entries: Iterable[TimeEntry], criteria: FilterCriteria) -> list[TimeEntry]:
    """Return the entries passing ``criteria``, in their original order.

    Raises ``InvalidFilterCriteria`` before looking at any entry when the criteria
    are inconsistent.
    """

    validate_criteria(criteria)
    return [entry for entry in entries if matches(entry, criteria)]
