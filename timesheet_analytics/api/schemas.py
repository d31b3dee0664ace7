"""Request payloads shared by the analytics and export endpoints."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from timesheet_analytics.core.config import get_settings
from timesheet_analytics.models.entities import (
    DEFAULT_MIN_HOURS,
    AggregationDimension,
    BucketOrder,
    DateRange,
    DrillDownLevel,
    FilterCriteria,
    WorkType,
)


class TimeRecordPayload(BaseModel):
    """Raw record as delivered by the timesheet API.

    ``hours`` and ``date`` are not validated here: a missing or malformed value
    excludes only that record (reported in ``warnings``) instead of rejecting the
    request. A missing ``work_type`` counts as OTHER.
    """

    id: str
    date: str | None = None
    hours: str | int | float | None = None
    task_name: str = ""
    description: str | None = None
    work_type: str | None = None
    project_id: str = ""
    project_name: str = ""
    client_name: str = ""
    user_id: str = ""
    user_name: str = ""


class FilterCriteriaPayload(BaseModel):
    date_start: date
    date_end: date
    project_id: str | None = None
    user_id: str | None = None
    work_type: WorkType | None = None
    client_name: str | None = None
    min_hours: Decimal = DEFAULT_MIN_HOURS
    # Defaults to the loader's per-entry cap so every loaded entry can pass.
    max_hours: Decimal | None = None

    def to_criteria(self) -> FilterCriteria:
        return FilterCriteria(
            date_start=self.date_start,
            date_end=self.date_end,
            project_id=self.project_id or None,
            user_id=self.user_id or None,
            work_type=self.work_type,
            client_name=self.client_name or None,
            min_hours=self.min_hours,
            max_hours=self.max_hours if self.max_hours is not None else get_settings().max_entry_hours,
        )


class DateRangePayload(BaseModel):
    start: date
    end: date

    @model_validator(mode="after")
    def check_order(self) -> DateRangePayload:
        if self.end < self.start:
            raise ValueError("end must be greater than or equal to start.")
        return self

    def to_range(self) -> DateRange:
        return DateRange(start=self.start, end=self.end)


class RecordsPayload(BaseModel):
    records: list[TimeRecordPayload] = Field(default_factory=list)
    criteria: FilterCriteriaPayload

    def raw_records(self) -> list[dict[str, object]]:
        return [record.model_dump() for record in self.records]


class AggregatePayload(RecordsPayload):
    dimension: AggregationDimension
    order: BucketOrder = BucketOrder.HOURS_DESC
    limit: int | None = Field(default=None, ge=1)


class SummaryPayload(RecordsPayload):
    rates: dict[str, Decimal] = Field(default_factory=dict)
    default_rate: Decimal | None = Field(default=None, ge=0)


class DrillDownStatePayload(BaseModel):
    level: DrillDownLevel = DrillDownLevel.NONE
    selected_key: str | None = None
    dimension: AggregationDimension | None = None
    criteria: FilterCriteriaPayload | None = None


class DrillDownPayload(RecordsPayload):
    dimension: AggregationDimension
    bucket_key: str | None = None
    current_state: DrillDownStatePayload | None = None


class ComparePayload(RecordsPayload):
    range_a: DateRangePayload
    range_b: DateRangePayload | None = None


class ExportPayload(RecordsPayload):
    """Export request; rates apply to ``billing``, ranges to ``compare``."""

    rates: dict[str, Decimal] = Field(default_factory=dict)
    default_rate: Decimal | None = Field(default=None, ge=0)
    range_a: DateRangePayload | None = None
    range_b: DateRangePayload | None = None
