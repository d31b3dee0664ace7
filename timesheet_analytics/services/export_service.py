"""Generic tabular representation shared by all export formats."""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from timesheet_analytics.models.entities import AggregateBucket, ComparisonResult, TimeEntry
from timesheet_analytics.services.aggregation_service import (
    ProjectBilling,
    SummaryStats,
    WorkTypeShare,
    round_hours,
)


class TableSchema(str, enum.Enum):
    BUCKETS = "buckets"
    ENTRIES = "entries"
    COMPARISON = "comparison"
    SUMMARY = "summary"
    WORK_TYPES = "work_types"
    BILLING = "billing"


SCHEMA_HEADERS: dict[TableSchema, list[str]] = {
    TableSchema.BUCKETS: [
        "key",
        "total_hours",
        "entry_count",
        "unique_user_count",
        "unique_project_count",
        "avg_hours_per_entry",
    ],
    TableSchema.ENTRIES: ["date", "user", "project", "client", "task", "hours", "type", "description"],
    TableSchema.COMPARISON: ["metric", "range_a", "range_b", "percent_change"],
    TableSchema.SUMMARY: ["metric", "value"],
    TableSchema.WORK_TYPES: ["work_type", "hours", "percentage"],
    TableSchema.BILLING: [
        "project_id",
        "project",
        "hours",
        "entry_count",
        "unique_users",
        "hourly_rate",
        "billable_amount",
        "avg_hours_per_entry",
    ],
}


@dataclass(slots=True)
class Table:
    headers: list[str]
    rows: list[list[str]]
    title: str = ""
    metadata: list[tuple[str, str]] = field(default_factory=list)


def format_number(value: Decimal | int | None) -> str:
    """Locale-invariant cell text: integers as-is, decimals at two places."""

    if value is None:
        return ""
    if isinstance(value, int):
        return str(value)
    if not value.is_finite():
        return "Infinity" if value > 0 else "-Infinity"
    return str(round_hours(value))


def _bucket_row(bucket: AggregateBucket) -> list[str]:
    return [
        bucket.key,
        format_number(bucket.total_hours),
        format_number(bucket.entry_count),
        format_number(bucket.unique_user_count),
        format_number(bucket.unique_project_count),
        format_number(bucket.avg_hours_per_entry),
    ]


def _entry_row(entry: TimeEntry) -> list[str]:
    return [
        entry.date.isoformat(),
        entry.user_name,
        entry.project_name,
        entry.client_name,
        entry.task_name,
        format_number(entry.hours),
        entry.work_type.value,
        entry.description or "",
    ]


def _comparison_row(result: ComparisonResult) -> list[str]:
    return [
        result.metric_name,
        format_number(result.value_range_a),
        format_number(result.value_range_b),
        format_number(result.percent_change),
    ]


def _work_type_row(share: WorkTypeShare) -> list[str]:
    return [share.work_type.value, format_number(share.hours), format_number(share.percentage)]


def _billing_row(row: ProjectBilling) -> list[str]:
    return [
        row.project_id,
        row.project_name,
        format_number(row.hours),
        format_number(row.entry_count),
        format_number(row.unique_users),
        format_number(row.hourly_rate),
        format_number(row.billable_amount),
        format_number(row.hours / row.entry_count),
    ]


_ROW_BUILDERS = {
    TableSchema.BUCKETS: _bucket_row,
    TableSchema.ENTRIES: _entry_row,
    TableSchema.COMPARISON: _comparison_row,
    TableSchema.WORK_TYPES: _work_type_row,
    TableSchema.BILLING: _billing_row,
}

_SCHEMA_BY_TYPE: dict[type, TableSchema] = {
    AggregateBucket: TableSchema.BUCKETS,
    TimeEntry: TableSchema.ENTRIES,
    ComparisonResult: TableSchema.COMPARISON,
    WorkTypeShare: TableSchema.WORK_TYPES,
    ProjectBilling: TableSchema.BILLING,
}


def _infer_schema(item: object) -> TableSchema:
    schema = _SCHEMA_BY_TYPE.get(type(item))
    if schema is None:
        raise TypeError(f"Cannot export values of type {type(item).__name__}.")
    return schema


def to_table(
    source: Sequence[AggregateBucket]
    | Sequence[TimeEntry]
    | Sequence[ComparisonResult]
    | Sequence[WorkTypeShare]
    | Sequence[ProjectBilling],
    *,
    schema: TableSchema | None = None,
    title: str = "",
    metadata: Sequence[tuple[str, str]] = (),
) -> Table:
    """Convert a sequence of report rows into a ``Table``.

    The column schema follows the element type unless given explicitly. An empty
    source with no explicit schema produces a table with no columns.
    """

    if schema is None:
        if not source:
            return Table(headers=[], rows=[], title=title, metadata=list(metadata))
        schema = _infer_schema(source[0])
    if schema not in _ROW_BUILDERS:
        raise TypeError(f"Schema {schema.value} is not built from a sequence; use summary_table.")

    build_row = _ROW_BUILDERS[schema]
    return Table(
        headers=list(SCHEMA_HEADERS[schema]),
        rows=[build_row(item) for item in source],
        title=title,
        metadata=list(metadata),
    )


def summary_table(stats: SummaryStats, *, title: str = "", metadata: Sequence[tuple[str, str]] = ()) -> Table:
    """Two-column metric/value table of the headline statistics."""

    rows = [
        ["Total Hours", format_number(stats.total_hours)],
        ["Total Entries", format_number(stats.entry_count)],
        ["Unique Users", format_number(stats.unique_users)],
        ["Unique Projects", format_number(stats.unique_projects)],
        ["Unique Clients", format_number(stats.unique_clients)],
        ["Active Days", format_number(stats.active_days)],
        ["Average Hours per Entry", format_number(stats.avg_hours_per_entry)],
        ["Average Hours per Day", format_number(stats.avg_hours_per_day)],
    ]
    return Table(headers=list(SCHEMA_HEADERS[TableSchema.SUMMARY]), rows=rows, title=title, metadata=list(metadata))
