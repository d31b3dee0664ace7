"""Analytics value types."""

from timesheet_analytics.models.entities import (
    AggregateBucket,
    AggregationDimension,
    BucketOrder,
    ComparisonResult,
    DateRange,
    DrillDownLevel,
    DrillDownState,
    EntryWarning,
    FilterCriteria,
    LoadResult,
    TimeEntry,
    WorkType,
)

__all__ = [
    "AggregateBucket",
    "AggregationDimension",
    "BucketOrder",
    "ComparisonResult",
    "DateRange",
    "DrillDownLevel",
    "DrillDownState",
    "EntryWarning",
    "FilterCriteria",
    "LoadResult",
    "TimeEntry",
    "WorkType",
]
