"""Drill-down navigation from an aggregate bucket to its source entries.

The navigator keeps no state of its own. Every gesture takes the current
``DrillDownState`` and returns the next one, so the caller owns the value and can
store or serialize it however it likes.

    NONE --select_bucket--> PROJECT | USER | DATE | WEEK | WORK_TYPE
    any  --reset---------> NONE
    any  --reconcile-----> NONE   (when criteria or dimension changed)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from timesheet_analytics.core.errors import InvalidDrillDownTransition
from timesheet_analytics.models.entities import (
    DIMENSION_TO_LEVEL,
    AggregateBucket,
    AggregationDimension,
    DrillDownLevel,
    DrillDownState,
    FilterCriteria,
    TimeEntry,
)
from timesheet_analytics.services.aggregation_service import extract_key, total_hours

logger = logging.getLogger(__name__)

NONE_STATE = DrillDownState()


def select_bucket(
    state: DrillDownState,
    bucket: AggregateBucket | str,
    *,
    dimension: AggregationDimension,
    criteria: FilterCriteria,
    filtered_entries: Iterable[TimeEntry],
) -> DrillDownState:
    """Narrow the filtered entries to the ones behind ``bucket``.

    Members are found with the same key extraction the aggregator uses, so
    re-aggregating them on ``dimension`` rebuilds the selected bucket. A key with no
    remaining members (stale selection after the data changed) leaves the navigator
    at NONE instead of failing.
    """

    if state.level != DrillDownLevel.NONE:
        raise InvalidDrillDownTransition(
            f"Cannot drill into a bucket while at level '{state.level.value}'; reset first."
        )

    key = bucket.key if isinstance(bucket, AggregateBucket) else bucket
    members = tuple(entry for entry in filtered_entries if extract_key(entry, dimension) == key)
    if not members:
        logger.info("Drill-down on %s=%r matched no entries; staying at top level", dimension.value, key)
        return NONE_STATE

    return DrillDownState(
        level=DIMENSION_TO_LEVEL[dimension],
        selected_key=key,
        member_entries=members,
        criteria=criteria,
        dimension=dimension,
    )


def reset(state: DrillDownState) -> DrillDownState:
    return NONE_STATE


def reconcile(
    state: DrillDownState,
    *,
    criteria: FilterCriteria,
    dimension: AggregationDimension,
) -> DrillDownState:
    """Drop a selection made under different criteria or a different dimension."""

    if state.level == DrillDownLevel.NONE:
        return state
    if state.criteria != criteria or state.dimension != dimension:
        logger.debug("Upstream filter change; discarding drill-down on %r", state.selected_key)
        return NONE_STATE
    return state


@dataclass(slots=True)
class DrillDownSummary:
    entry_count: int
    total_hours: Decimal
    avg_hours_per_entry: Decimal


def drilldown_summary(state: DrillDownState) -> DrillDownSummary:
    hours = total_hours(state.member_entries)
    count = len(state.member_entries)
    return DrillDownSummary(
        entry_count=count,
        total_hours=hours,
        avg_hours_per_entry=hours / max(1, count),
    )
