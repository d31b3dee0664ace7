from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from factories import make_entry
from timesheet_analytics.main import create_app
from timesheet_analytics.models.entities import TimeEntry, WorkType
from timesheet_analytics.services.analytics_service import AnalyticsService, get_analytics_service


@pytest.fixture()
def two_project_entries() -> list[TimeEntry]:
    return [
        make_entry("e1", "2024-01-01", "4", project_id="P1"),
        make_entry("e2", "2024-01-01", "3", project_id="P2"),
    ]


@pytest.fixture()
def team_entries() -> list[TimeEntry]:
    return [
        make_entry("t1", "2024-01-01", "4", project_id="P1", user_id="U1"),
        make_entry("t2", "2024-01-02", "2.5", project_id="P1", user_id="U2", work_type=WorkType.MEETING),
        make_entry("t3", "2024-01-03", "6", project_id="P2", user_id="U1", client_name="Globex"),
        make_entry("t4", "2024-01-07", "1.25", project_id="P2", user_id="U3", work_type=WorkType.RESEARCH),
        make_entry("t5", "2024-01-08", "8", project_id="P3", user_id="U2"),
        make_entry("t6", "2024-01-10", "0.75", project_id="P1", user_id="U3", work_type=WorkType.MEETING),
        make_entry("t7", "2024-02-02", "5", project_id="P1", user_id="U1"),
    ]


@pytest.fixture()
def analytics_service() -> AnalyticsService:
    return AnalyticsService()


@pytest.fixture()
def client(analytics_service: AnalyticsService) -> Generator[TestClient, None, None]:
    app = create_app()
    app.dependency_overrides[get_analytics_service] = lambda: analytics_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
