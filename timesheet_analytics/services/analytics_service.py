"""Analytics, drill-down, comparison and export service layer."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from decimal import Decimal
from functools import lru_cache
from typing import Any

from fastapi import HTTPException, status

from timesheet_analytics.core.config import Settings, get_settings
from timesheet_analytics.core.errors import (
    InvalidDrillDownTransition,
    InvalidFilterCriteria,
    UnknownReportKey,
    UnsupportedExportFormat,
)
from timesheet_analytics.models.entities import (
    DIMENSION_TO_LEVEL,
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
)
from timesheet_analytics.services import drilldown
from timesheet_analytics.services.aggregation_service import (
    aggregate,
    billing_breakdown,
    round_hours,
    summarize,
    work_type_distribution,
)
from timesheet_analytics.services.comparison_service import compare_ranges, previous_period
from timesheet_analytics.services.export_service import Table, TableSchema, format_number, summary_table, to_table
from timesheet_analytics.services.filter_engine import filter_entries
from timesheet_analytics.services.record_loader import load_entries, screen_entries
from timesheet_analytics.services.serializers import ExportFilePayload, get_serializer

logger = logging.getLogger(__name__)

REPORT_DIMENSIONS: dict[str, AggregationDimension] = {
    "by-date": AggregationDimension.BY_DATE,
    "by-week": AggregationDimension.BY_WEEK,
    "by-project": AggregationDimension.BY_PROJECT,
    "by-user": AggregationDimension.BY_USER,
    "by-work-type": AggregationDimension.BY_WORK_TYPE,
}

REPORT_KEYS: tuple[str, ...] = ("entries", *REPORT_DIMENSIONS, "summary", "work-types", "billing", "compare")


def _q2(value: Decimal) -> str:
    return str(round_hours(value))


@contextmanager
def _http_errors() -> Iterator[None]:
    try:
        yield
    except InvalidFilterCriteria as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except InvalidDrillDownTransition as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except UnsupportedExportFormat as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except UnknownReportKey as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


class AnalyticsService:
    """Memoized filter/aggregate pipeline with HTTP-facing report payloads.

    Filter and aggregate results are cached by value: entries, criteria and
    dimension are all immutable and hashable, so identical inputs hit the cache no
    matter which request produced them.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        cache = lru_cache(maxsize=self.settings.analytics_cache_size)
        self._filter_cached = cache(self._filter)
        self._aggregate_cached = cache(self._aggregate)

    # ---------- Pipeline ----------
    @staticmethod
    def _filter(entries: tuple[TimeEntry, ...], criteria: FilterCriteria) -> tuple[TimeEntry, ...]:
        return tuple(filter_entries(entries, criteria))

    def _aggregate(
        self,
        entries: tuple[TimeEntry, ...],
        criteria: FilterCriteria,
        dimension: AggregationDimension,
        order: BucketOrder,
        limit: int | None,
    ) -> tuple[AggregateBucket, ...]:
        filtered = self._filter_cached(entries, criteria)
        return tuple(aggregate(filtered, dimension, order=order, limit=limit))

    def load(self, records: Iterable[Mapping[str, Any] | object]) -> LoadResult:
        return load_entries(records, max_hours=self.settings.max_entry_hours)

    def screen(self, entries: Iterable[TimeEntry]) -> LoadResult:
        """Hours-range check for entries that did not come through ``load``."""

        return screen_entries(entries, max_hours=self.settings.max_entry_hours)

    def filtered(self, entries: Iterable[TimeEntry], criteria: FilterCriteria) -> tuple[TimeEntry, ...]:
        return self._filter_cached(tuple(self.screen(entries).entries), criteria)

    def buckets(
        self,
        entries: Iterable[TimeEntry],
        criteria: FilterCriteria,
        dimension: AggregationDimension,
        *,
        order: BucketOrder = BucketOrder.HOURS_DESC,
        limit: int | None = None,
    ) -> tuple[AggregateBucket, ...]:
        return self._aggregate_cached(tuple(self.screen(entries).entries), criteria, dimension, order, limit)

    def cache_info(self) -> dict[str, object]:
        return {
            "filter": self._filter_cached.cache_info()._asdict(),
            "aggregate": self._aggregate_cached.cache_info()._asdict(),
        }

    def clear_cache(self) -> None:
        self._filter_cached.cache_clear()
        self._aggregate_cached.cache_clear()

    # ---------- Serialization ----------
    @staticmethod
    def serialize_bucket(bucket: AggregateBucket) -> dict[str, object]:
        return {
            "key": bucket.key,
            "label": bucket.label,
            "total_hours": _q2(bucket.total_hours),
            "entry_count": bucket.entry_count,
            "unique_user_count": bucket.unique_user_count,
            "unique_project_count": bucket.unique_project_count,
            "avg_hours_per_entry": _q2(bucket.avg_hours_per_entry),
        }

    @staticmethod
    def serialize_entry(entry: TimeEntry) -> dict[str, object]:
        return {
            "id": entry.id,
            "date": entry.date.isoformat(),
            "hours": _q2(entry.hours),
            "task_name": entry.task_name,
            "description": entry.description,
            "work_type": entry.work_type.value,
            "project_id": entry.project_id,
            "project_name": entry.project_name,
            "client_name": entry.client_name,
            "user_id": entry.user_id,
            "user_name": entry.user_name,
        }

    @staticmethod
    def serialize_comparison(result: ComparisonResult) -> dict[str, object]:
        return {
            "metric_name": result.metric_name,
            "value_range_a": _q2(result.value_range_a),
            "value_range_b": _q2(result.value_range_b),
            "percent_change": format_number(result.percent_change),
            "unbounded": result.is_unbounded,
        }

    @staticmethod
    def serialize_warning(warning: EntryWarning) -> dict[str, str]:
        return {
            "entry_id": warning.entry_id,
            "field": warning.field,
            "value": warning.value,
            "message": warning.message,
        }

    @staticmethod
    def serialize_criteria(criteria: FilterCriteria) -> dict[str, object]:
        return {
            "date_start": criteria.date_start.isoformat(),
            "date_end": criteria.date_end.isoformat(),
            "project_id": criteria.project_id,
            "user_id": criteria.user_id,
            "work_type": criteria.work_type.value if criteria.work_type else None,
            "client_name": criteria.client_name,
            "min_hours": str(criteria.min_hours),
            "max_hours": str(criteria.max_hours),
        }

    def serialize_drilldown(self, state: DrillDownState) -> dict[str, object]:
        summary = drilldown.drilldown_summary(state)
        return {
            "level": state.level.value,
            "selected_key": state.selected_key,
            "dimension": state.dimension.value if state.dimension else None,
            "criteria": self.serialize_criteria(state.criteria) if state.criteria else None,
            "entry_count": summary.entry_count,
            "total_hours": _q2(summary.total_hours),
            "avg_hours_per_entry": _q2(summary.avg_hours_per_entry),
            "member_entries": [self.serialize_entry(entry) for entry in state.member_entries],
        }

    # ---------- Reports ----------
    def aggregate_report(
        self,
        *,
        records: Iterable[Mapping[str, Any] | object],
        criteria: FilterCriteria,
        dimension: AggregationDimension,
        order: BucketOrder = BucketOrder.HOURS_DESC,
        limit: int | None = None,
    ) -> dict[str, object]:
        loaded = self.load(records)
        with _http_errors():
            filtered = self.filtered(loaded.entries, criteria)
            buckets = self.buckets(loaded.entries, criteria, dimension, order=order, limit=limit)

        total = sum((entry.hours for entry in filtered), Decimal("0"))
        return {
            "dimension": dimension.value,
            "criteria": self.serialize_criteria(criteria),
            "total_hours": _q2(total),
            "entry_count": len(filtered),
            "buckets": [self.serialize_bucket(bucket) for bucket in buckets],
            "warnings": [self.serialize_warning(warning) for warning in loaded.warnings],
        }

    def summary_report(
        self,
        *,
        records: Iterable[Mapping[str, Any] | object],
        criteria: FilterCriteria,
        rates: Mapping[str, Decimal] | None = None,
        default_rate: Decimal | None = None,
    ) -> dict[str, object]:
        loaded = self.load(records)
        with _http_errors():
            filtered = self.filtered(loaded.entries, criteria)

        stats = summarize(filtered)
        billing = billing_breakdown(filtered, rates or {}, default_rate=default_rate)
        return {
            "criteria": self.serialize_criteria(criteria),
            "summary": {
                "total_hours": _q2(stats.total_hours),
                "entry_count": stats.entry_count,
                "unique_users": stats.unique_users,
                "unique_projects": stats.unique_projects,
                "unique_clients": stats.unique_clients,
                "avg_hours_per_entry": _q2(stats.avg_hours_per_entry),
                "avg_hours_per_day": _q2(stats.avg_hours_per_day),
            },
            "work_types": [
                {
                    "work_type": share.work_type.value,
                    "hours": _q2(share.hours),
                    "percentage": _q2(share.percentage),
                }
                for share in work_type_distribution(filtered)
            ],
            "billing": [
                {
                    "project_id": row.project_id,
                    "project_name": row.project_name,
                    "hours": _q2(row.hours),
                    "entry_count": row.entry_count,
                    "unique_users": row.unique_users,
                    "hourly_rate": None if row.hourly_rate is None else _q2(row.hourly_rate),
                    "billable_amount": None if row.billable_amount is None else _q2(row.billable_amount),
                }
                for row in billing
            ],
            "warnings": [self.serialize_warning(warning) for warning in loaded.warnings],
        }

    def drilldown_report(
        self,
        *,
        records: Iterable[Mapping[str, Any] | object],
        criteria: FilterCriteria,
        dimension: AggregationDimension,
        bucket_key: str | None,
        current_state: DrillDownState | None = None,
    ) -> dict[str, object]:
        """Apply one drill-down gesture: select ``bucket_key``, or reset when it is None."""

        loaded = self.load(records)
        state = current_state or drilldown.NONE_STATE
        with _http_errors():
            filtered = self.filtered(loaded.entries, criteria)
            state = drilldown.reconcile(state, criteria=criteria, dimension=dimension)
            if bucket_key is None:
                state = drilldown.reset(state)
            else:
                state = drilldown.select_bucket(
                    state,
                    bucket_key,
                    dimension=dimension,
                    criteria=criteria,
                    filtered_entries=filtered,
                )

        payload = self.serialize_drilldown(state)
        payload["warnings"] = [self.serialize_warning(warning) for warning in loaded.warnings]
        return payload

    def compare_report(
        self,
        *,
        records: Iterable[Mapping[str, Any] | object],
        criteria: FilterCriteria,
        range_a: DateRange,
        range_b: DateRange | None = None,
    ) -> dict[str, object]:
        loaded = self.load(records)
        baseline = range_b or previous_period(range_a)
        with _http_errors():
            results = compare_ranges(loaded.entries, range_a, baseline, criteria)

        return {
            "range_a": {"start": range_a.start.isoformat(), "end": range_a.end.isoformat()},
            "range_b": {"start": baseline.start.isoformat(), "end": baseline.end.isoformat()},
            "metrics": [self.serialize_comparison(result) for result in results],
            "warnings": [self.serialize_warning(warning) for warning in loaded.warnings],
        }

    # ---------- Exports ----------
    def _export_metadata(
        self,
        report_key: str,
        criteria: FilterCriteria,
        filtered: tuple[TimeEntry, ...],
    ) -> list[tuple[str, str]]:
        metadata = [
            ("Report Type", report_key),
            ("Date Range", f"{criteria.date_start.isoformat()} to {criteria.date_end.isoformat()}"),
            ("Total Records", str(len(filtered))),
            ("Total Hours", _q2(sum((entry.hours for entry in filtered), Decimal("0")))),
        ]
        if criteria.project_id:
            metadata.append(("Project Filter", criteria.project_id))
        if criteria.user_id:
            metadata.append(("User Filter", criteria.user_id))
        if criteria.work_type:
            metadata.append(("Type Filter", criteria.work_type.value))
        if criteria.client_name:
            metadata.append(("Client Filter", criteria.client_name))
        return metadata

    def _export_table(
        self,
        report_key: str,
        *,
        entries: list[TimeEntry],
        filtered: tuple[TimeEntry, ...],
        criteria: FilterCriteria,
        title: str,
        metadata: list[tuple[str, str]],
        rates: Mapping[str, Decimal] | None,
        default_rate: Decimal | None,
        range_a: DateRange | None,
        range_b: DateRange | None,
    ) -> Table:
        if report_key == "entries":
            return to_table(filtered, schema=TableSchema.ENTRIES, title=title, metadata=metadata)
        if report_key in REPORT_DIMENSIONS:
            buckets = self.buckets(entries, criteria, REPORT_DIMENSIONS[report_key])
            return to_table(buckets, schema=TableSchema.BUCKETS, title=title, metadata=metadata)
        if report_key == "summary":
            return summary_table(summarize(filtered), title=title, metadata=metadata)
        if report_key == "work-types":
            shares = work_type_distribution(filtered)
            return to_table(shares, schema=TableSchema.WORK_TYPES, title=title, metadata=metadata)
        if report_key == "billing":
            rows = billing_breakdown(filtered, rates or {}, default_rate=default_rate)
            return to_table(rows, schema=TableSchema.BILLING, title=title, metadata=metadata)

        # compare: range A defaults to the criteria's own dates
        first = range_a or DateRange(start=criteria.date_start, end=criteria.date_end)
        baseline = range_b or previous_period(first)
        metadata.append(("Range A", f"{first.start.isoformat()} to {first.end.isoformat()}"))
        metadata.append(("Range B", f"{baseline.start.isoformat()} to {baseline.end.isoformat()}"))
        results = compare_ranges(entries, first, baseline, criteria)
        return to_table(results, schema=TableSchema.COMPARISON, title=title, metadata=metadata)

    def export_report(
        self,
        *,
        report_key: str,
        format_name: str,
        records: Iterable[Mapping[str, Any] | object],
        criteria: FilterCriteria,
        rates: Mapping[str, Decimal] | None = None,
        default_rate: Decimal | None = None,
        range_a: DateRange | None = None,
        range_b: DateRange | None = None,
    ) -> ExportFilePayload:
        """Render one report as a downloadable file.

        ``rates`` and ``default_rate`` only matter for ``billing``; ``range_a`` and
        ``range_b`` only for ``compare``.
        """

        normalized_key = report_key.strip().lower()
        loaded = self.load(records)
        with _http_errors():
            serializer = get_serializer(format_name)
            if normalized_key not in REPORT_KEYS:
                raise UnknownReportKey(f"Unknown report_key for export: {report_key}.")
            filtered = self.filtered(loaded.entries, criteria)
            table = self._export_table(
                normalized_key,
                entries=loaded.entries,
                filtered=filtered,
                criteria=criteria,
                title=f"{self.settings.export_pdf_title} ({normalized_key})",
                metadata=self._export_metadata(normalized_key, criteria, filtered),
                rates=rates,
                default_rate=default_rate,
                range_a=range_a,
                range_b=range_b,
            )

        base_filename = (
            f"{self.settings.export_filename_prefix}-{normalized_key}-"
            f"{criteria.date_start.isoformat()}-{criteria.date_end.isoformat()}"
        )
        return serializer.serialize(table, base_filename=base_filename)


def drilldown_state_from(
    *,
    level: DrillDownLevel,
    selected_key: str | None,
    criteria: FilterCriteria | None,
    dimension: AggregationDimension | None,
) -> DrillDownState:
    """Rebuild a client-held drill-down state; members are recomputed on demand."""

    if level == DrillDownLevel.NONE:
        return drilldown.NONE_STATE
    with _http_errors():
        if dimension is None or DIMENSION_TO_LEVEL[dimension] != level:
            raise InvalidDrillDownTransition(
                f"Drill-down level '{level.value}' does not belong to dimension "
                f"'{dimension.value if dimension else None}'."
            )
    return DrillDownState(level=level, selected_key=selected_key, criteria=criteria, dimension=dimension)


@lru_cache
def get_analytics_service() -> AnalyticsService:
    return AnalyticsService()
