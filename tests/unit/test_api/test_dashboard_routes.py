"""
Unit tests for the dashboard endpoints, running the real service over a mocked repository.
"""
import pytest

from pokefolio.api.routes.dashboard import get_dashboard_service
from pokefolio.services.dashboard_service import DashboardService
from tests.factories import make_item


@pytest.fixture
def dashboard_repository(test_app, mock_db_session, mock_portfolio_repository):
    service = DashboardService(mock_db_session, repository=mock_portfolio_repository)
    test_app.dependency_overrides[get_dashboard_service] = lambda: service
    return mock_portfolio_repository


class TestDashboardRoutes:

    @pytest.mark.unit
    def test_summary(self, client, auth_headers, dashboard_repository):
        dashboard_repository.list_by_owner_async.return_value = [make_item(quantity=2, purchase_price=4.0)]

        response = client.get("/api/dashboard/summary?type=all", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["totalCards"] == 2
        assert body["totalValue"] == 4.0
        assert "calculatedAt" in body

    @pytest.mark.unit
    def test_nonexistent_week_is_400(self, client, auth_headers, dashboard_repository):
        response = client.get(
            "/api/dashboard/summary?type=week&year=2023&month=2&week=5",
            headers=auth_headers
        )

        assert response.status_code == 400
        dashboard_repository.list_by_owner_async.assert_not_awaited()

    @pytest.mark.unit
    def test_week_out_of_range_is_422(self, client, auth_headers, dashboard_repository):
        response = client.get("/api/dashboard/summary?type=week&week=6", headers=auth_headers)

        assert response.status_code == 422

    @pytest.mark.unit
    def test_month_timeseries_is_weekly(self, client, auth_headers, dashboard_repository):
        response = client.get(
            "/api/dashboard/timeseries?metric=count&bucket=monthly&type=month&year=2024&month=3",
            headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["bucket"] == "weekly"
        assert response.json()["period"] == "month"

    @pytest.mark.unit
    def test_top_sets_limit_bounds(self, client, auth_headers, dashboard_repository):
        assert client.get("/api/dashboard/top-sets?limit=21", headers=auth_headers).status_code == 422
        assert client.get("/api/dashboard/top-sets?limit=20", headers=auth_headers).status_code == 200

    @pytest.mark.unit
    def test_grade_distribution_empty_portfolio(self, client, auth_headers, dashboard_repository):
        response = client.get("/api/dashboard/grade-distribution", headers=auth_headers)

        assert response.json() == {
            "graded": 0,
            "normal": 0,
            "total": 0,
            "gradedPercentage": 0,
            "byCompany": [],
        }
