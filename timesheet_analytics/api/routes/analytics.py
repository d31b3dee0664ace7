"""Analytics endpoints: aggregation, summaries, drill-down and range comparison."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from timesheet_analytics.api.schemas import AggregatePayload, ComparePayload, DrillDownPayload, SummaryPayload
from timesheet_analytics.services.analytics_service import (
    AnalyticsService,
    drilldown_state_from,
    get_analytics_service,
)

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.post("/aggregate")
def post_aggregate(
    payload: AggregatePayload,
    service: AnalyticsService = Depends(get_analytics_service),
) -> dict[str, object]:
    return service.aggregate_report(
        records=payload.raw_records(),
        criteria=payload.criteria.to_criteria(),
        dimension=payload.dimension,
        order=payload.order,
        limit=payload.limit,
    )


@router.post("/summary")
def post_summary(
    payload: SummaryPayload,
    service: AnalyticsService = Depends(get_analytics_service),
) -> dict[str, object]:
    return service.summary_report(
        records=payload.raw_records(),
        criteria=payload.criteria.to_criteria(),
        rates=payload.rates,
        default_rate=payload.default_rate,
    )


@router.post("/drilldown")
def post_drilldown(
    payload: DrillDownPayload,
    service: AnalyticsService = Depends(get_analytics_service),
) -> dict[str, object]:
    current_state = None
    if payload.current_state is not None:
        held = payload.current_state
        current_state = drilldown_state_from(
            level=held.level,
            selected_key=held.selected_key,
            criteria=held.criteria.to_criteria() if held.criteria else None,
            dimension=held.dimension,
        )
    return service.drilldown_report(
        records=payload.raw_records(),
        criteria=payload.criteria.to_criteria(),
        dimension=payload.dimension,
        bucket_key=payload.bucket_key,
        current_state=current_state,
    )


@router.post("/compare")
def post_compare(
    payload: ComparePayload,
    service: AnalyticsService = Depends(get_analytics_service),
) -> dict[str, object]:
    return service.compare_report(
        records=payload.raw_records(),
        criteria=payload.criteria.to_criteria(),
        range_a=payload.range_a.to_range(),
        range_b=payload.range_b.to_range() if payload.range_b else None,
    )
