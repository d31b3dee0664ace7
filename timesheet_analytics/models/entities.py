"""Value types for time-entry analytics."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from timesheet_analytics.core.errors import InvalidFilterCriteria

ZERO = Decimal("0")
DEFAULT_MIN_HOURS = Decimal("0")
# Same as the default ``Settings.max_entry_hours``; API criteria default to the setting.
DEFAULT_MAX_HOURS = Decimal("24")


class WorkType(str, enum.Enum):
    WORK = "WORK"
    MEETING = "MEETING"
    RESEARCH = "RESEARCH"
    TRAINING = "TRAINING"
    BREAK = "BREAK"
    OTHER = "OTHER"


class AggregationDimension(str, enum.Enum):
    BY_DATE = "by_date"
    BY_WEEK = "by_week"
    BY_PROJECT = "by_project"
    BY_USER = "by_user"
    BY_WORK_TYPE = "by_work_type"


class DrillDownLevel(str, enum.Enum):
    NONE = "none"
    PROJECT = "project"
    USER = "user"
    DATE = "date"
    WEEK = "week"
    WORK_TYPE = "work_type"


class BucketOrder(str, enum.Enum):
    HOURS_DESC = "hours_desc"
    KEY_ASC = "key_asc"


DIMENSION_TO_LEVEL: dict[AggregationDimension, DrillDownLevel] = {
    AggregationDimension.BY_DATE: DrillDownLevel.DATE,
    AggregationDimension.BY_WEEK: DrillDownLevel.WEEK,
    AggregationDimension.BY_PROJECT: DrillDownLevel.PROJECT,
    AggregationDimension.BY_USER: DrillDownLevel.USER,
    AggregationDimension.BY_WORK_TYPE: DrillDownLevel.WORK_TYPE,
}


@dataclass(frozen=True, slots=True)
class TimeEntry:
    """A single recorded block of work, as supplied by the fetch layer."""

    id: str
    date: date
    hours: Decimal
    task_name: str
    work_type: WorkType
    project_id: str
    project_name: str
    client_name: str
    user_id: str
    user_name: str
    description: str | None = None


@dataclass(frozen=True, slots=True)
class DateRange:
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise InvalidFilterCriteria(
                f"Date range end {self.end.isoformat()} must be on or after start {self.start.isoformat()}."
            )

    @property
    def days(self) -> int:
        """Number of calendar days covered, both bounds included."""

        return (self.end - self.start).days + 1


@dataclass(frozen=True, slots=True)
class FilterCriteria:
    """Conjunction of predicates applied to a record collection.

    Optional fields left as ``None`` match every entry. Validation happens at the
    filter boundary (``filter_engine.validate_criteria``) so that callers can build
    criteria incrementally from user input before checking them.
    """

    date_start: date
    date_end: date
    project_id: str | None = None
    user_id: str | None = None
    work_type: WorkType | None = None
    client_name: str | None = None
    min_hours: Decimal = DEFAULT_MIN_HOURS
    max_hours: Decimal = DEFAULT_MAX_HOURS

    def with_range(self, date_range: DateRange) -> FilterCriteria:
        """Copy of these criteria with the date bounds replaced."""

        return FilterCriteria(
            date_start=date_range.start,
            date_end=date_range.end,
            project_id=self.project_id,
            user_id=self.user_id,
            work_type=self.work_type,
            client_name=self.client_name,
            min_hours=self.min_hours,
            max_hours=self.max_hours,
        )


@dataclass(frozen=True, slots=True)
class AggregateBucket:
    """Statistics for every filtered entry sharing one grouping key.

    Hours are kept at full precision; round with ``round_hours`` when presenting.
    """

    key: str
    label: str
    total_hours: Decimal
    entry_count: int
    unique_user_count: int
    unique_project_count: int

    @property
    def avg_hours_per_entry(self) -> Decimal:
        return self.total_hours / self.entry_count


@dataclass(frozen=True, slots=True)
class DrillDownState:
    level: DrillDownLevel = DrillDownLevel.NONE
    selected_key: str | None = None
    member_entries: tuple[TimeEntry, ...] = ()
    criteria: FilterCriteria | None = None
    dimension: AggregationDimension | None = None


@dataclass(frozen=True, slots=True)
class ComparisonResult:
    metric_name: str
    value_range_a: Decimal
    value_range_b: Decimal
    percent_change: Decimal

    @property
    def is_unbounded(self) -> bool:
        return self.percent_change.is_infinite()


@dataclass(frozen=True, slots=True)
class EntryWarning:
    """Why a record was excluded from analytics."""

    entry_id: str
    field: str
    value: str
    message: str


@dataclass(slots=True)
class LoadResult:
    entries: list[TimeEntry] = field(default_factory=list)
    warnings: list[EntryWarning] = field(default_factory=list)
