"""Health check endpoints."""

from fastapi import APIRouter, Depends

from timesheet_analytics.services.analytics_service import AnalyticsService, get_analytics_service

router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    """Simple liveness endpoint."""

    return {"status": "ok"}


@router.get("/health/cache")
def cache_health(service: AnalyticsService = Depends(get_analytics_service)) -> dict[str, object]:
    """Hit/miss counters of the memoized analytics pipeline."""

    return service.cache_info()
