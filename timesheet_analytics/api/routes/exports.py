"""Export endpoint for report datasets."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from timesheet_analytics.api.schemas import ExportPayload
from timesheet_analytics.services.analytics_service import AnalyticsService, get_analytics_service

router = APIRouter(prefix="/exports", tags=["exports"])


@router.post("/{report_key}")
def export_report(
    report_key: str,
    payload: ExportPayload,
    format: str = Query(default="csv"),
    service: AnalyticsService = Depends(get_analytics_service),
) -> Response:
    exported = service.export_report(
        report_key=report_key,
        format_name=format,
        records=payload.raw_records(),
        criteria=payload.criteria.to_criteria(),
        rates=payload.rates,
        default_rate=payload.default_rate,
        range_a=payload.range_a.to_range() if payload.range_a else None,
        range_b=payload.range_b.to_range() if payload.range_b else None,
    )
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )
