"""Grouping of filtered time entries into per-dimension buckets."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from timesheet_analytics.models.entities import (
    ZERO,
    AggregateBucket,
    AggregationDimension,
    BucketOrder,
    TimeEntry,
    WorkType,
)

Q2 = Decimal("0.01")
HUNDRED = Decimal("100")


def round_hours(value: Decimal) -> Decimal:
    """Two decimal places, halves rounded away from zero."""

    return value.quantize(Q2, rounding=ROUND_HALF_UP)


def week_start(day: date) -> date:
    """Sunday on or before ``day``."""

    return day - timedelta(days=(day.weekday() + 1) % 7)


_KEY_EXTRACTORS: dict[AggregationDimension, Callable[[TimeEntry], str]] = {
    AggregationDimension.BY_DATE: lambda entry: entry.date.isoformat(),
    AggregationDimension.BY_WEEK: lambda entry: week_start(entry.date).isoformat(),
    AggregationDimension.BY_PROJECT: lambda entry: entry.project_id,
    AggregationDimension.BY_USER: lambda entry: entry.user_id,
    AggregationDimension.BY_WORK_TYPE: lambda entry: entry.work_type.value,
}


def extract_key(entry: TimeEntry, dimension: AggregationDimension) -> str:
    return _KEY_EXTRACTORS[dimension](entry)


def _label(entry: TimeEntry, dimension: AggregationDimension, key: str) -> str:
    if dimension == AggregationDimension.BY_PROJECT:
        return entry.project_name or key
    if dimension == AggregationDimension.BY_USER:
        return entry.user_name or key
    return key


@dataclass(slots=True)
class _Accumulator:
    label: str
    total_hours: Decimal = ZERO
    entry_count: int = 0
    users: set[str] = field(default_factory=set)
    projects: set[str] = field(default_factory=set)


def sort_buckets(
    buckets: Iterable[AggregateBucket],
    order: BucketOrder = BucketOrder.HOURS_DESC,
) -> list[AggregateBucket]:
    if order == BucketOrder.KEY_ASC:
        return sorted(buckets, key=lambda bucket: bucket.key)
    return sorted(buckets, key=lambda bucket: (-bucket.total_hours, bucket.key))


def aggregate(
    entries: Iterable[TimeEntry],
    dimension: AggregationDimension,
    *,
    order: BucketOrder = BucketOrder.HOURS_DESC,
    limit: int | None = None,
) -> list[AggregateBucket]:
    """Group ``entries`` by ``dimension`` and compute per-bucket statistics.

    Every entry lands in exactly one bucket, so bucket totals and counts add up to
    the totals of the input. Only keys present in the data produce a bucket.
    The default ordering is by total hours descending with ties broken by key;
    ``BucketOrder.KEY_ASC`` gives chronological order for date and week keys.
    """

    extract = _KEY_EXTRACTORS[dimension]
    groups: dict[str, _Accumulator] = {}
    for entry in entries:
        key = extract(entry)
        acc = groups.get(key)
        if acc is None:
            acc = groups[key] = _Accumulator(label=_label(entry, dimension, key))
        acc.total_hours += entry.hours
        acc.entry_count += 1
        acc.users.add(entry.user_id)
        acc.projects.add(entry.project_id)

    buckets = [
        AggregateBucket(
            key=key,
            label=acc.label,
            total_hours=acc.total_hours,
            entry_count=acc.entry_count,
            unique_user_count=0 if dimension == AggregationDimension.BY_USER else len(acc.users),
            unique_project_count=0 if dimension == AggregationDimension.BY_PROJECT else len(acc.projects),
        )
        for key, acc in groups.items()
    ]
    ordered = sort_buckets(buckets, order)
    if limit is not None:
        return ordered[:limit]
    return ordered


def total_hours(entries: Iterable[TimeEntry]) -> Decimal:
    return sum((entry.hours for entry in entries), ZERO)


# ---------- Summary reports ----------
@dataclass(slots=True)
class SummaryStats:
    total_hours: Decimal
    entry_count: int
    unique_users: int
    unique_projects: int
    unique_clients: int
    active_days: int

    @property
    def avg_hours_per_entry(self) -> Decimal:
        return self.total_hours / max(1, self.entry_count)

    @property
    def avg_hours_per_day(self) -> Decimal:
        return self.total_hours / max(1, self.active_days)


def summarize(entries: Sequence[TimeEntry]) -> SummaryStats:
    return SummaryStats(
        total_hours=total_hours(entries),
        entry_count=len(entries),
        unique_users=len({entry.user_id for entry in entries}),
        unique_projects=len({entry.project_id for entry in entries}),
        unique_clients=len({entry.client_name for entry in entries}),
        active_days=len({entry.date for entry in entries}),
    )


@dataclass(slots=True)
class WorkTypeShare:
    work_type: WorkType
    hours: Decimal
    percentage: Decimal


def work_type_distribution(entries: Sequence[TimeEntry]) -> list[WorkTypeShare]:
    """Hours per work type and each type's share of the total, largest first."""

    overall = total_hours(entries)
    shares = []
    for bucket in aggregate(entries, AggregationDimension.BY_WORK_TYPE):
        percentage = ZERO if overall == ZERO else bucket.total_hours * HUNDRED / overall
        shares.append(
            WorkTypeShare(work_type=WorkType(bucket.key), hours=bucket.total_hours, percentage=percentage)
        )
    return shares


@dataclass(slots=True)
class ProjectBilling:
    project_id: str
    project_name: str
    hours: Decimal
    entry_count: int
    unique_users: int
    hourly_rate: Decimal | None
    billable_amount: Decimal | None


def billing_breakdown(
    entries: Sequence[TimeEntry],
    rates: Mapping[str, Decimal],
    *,
    default_rate: Decimal | None = None,
) -> list[ProjectBilling]:
    """Billable amount per project from caller-supplied hourly rates.

    ``rates`` maps project id to hourly rate. Projects with neither a specific nor
    a default rate are reported with ``None`` amounts rather than guessed.
    """

    rows = []
    for bucket in aggregate(entries, AggregationDimension.BY_PROJECT):
        rate = rates.get(bucket.key, default_rate)
        rows.append(
            ProjectBilling(
                project_id=bucket.key,
                project_name=bucket.label,
                hours=bucket.total_hours,
                entry_count=bucket.entry_count,
                unique_users=bucket.unique_user_count,
                hourly_rate=rate,
                billable_amount=None if rate is None else bucket.total_hours * rate,
            )
        )
    return rows
