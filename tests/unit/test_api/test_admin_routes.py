"""
Unit tests for the admin endpoints and their role check.
"""
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from pokefolio.api.routes.admin import get_admin_service
from pokefolio.db.models.activity_log import ActivityLog, ActivityType
from pokefolio.services.admin_service import AdminService
from pokefolio.services.result_objects import RepairReport


@pytest.fixture
def mock_admin_service(test_app):
    service = MagicMock(spec=AdminService)
    test_app.dependency_overrides[get_admin_service] = lambda: service
    return service


class TestAdminRoutes:

    @pytest.mark.unit
    def test_non_admin_is_403(self, client, auth_headers, mock_admin_service):
        response = client.get("/api/admin/stats", headers=auth_headers)

        assert response.status_code == 403

    @pytest.mark.unit
    def test_anonymous_is_401(self, client, mock_admin_service):
        response = client.get("/api/admin/stats")

        assert response.status_code == 401

    @pytest.mark.unit
    def test_global_stats(self, client, admin_headers, mock_admin_service):
        mock_admin_service.get_global_stats_async = AsyncMock(return_value={
            "total_owners": 2,
            "active_owners_this_week": 1,
            "total_items": 5,
            "total_copies": 9,
            "new_items_this_week": 3,
            "total_value": 120.5,
        })

        response = client.get("/api/admin/stats", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["activeOwnersThisWeek"] == 1

    @pytest.mark.unit
    def test_repair(self, client, admin_headers, mock_admin_service):
        mock_admin_service.repair_data_async = AsyncMock(
            return_value=RepairReport(inspected=4, repaired=1, repaired_ids=[3])
        )

        response = client.post("/api/admin/repair", headers=admin_headers)

        assert response.json() == {"inspected": 4, "repaired": 1, "repairedIds": [3]}

    @pytest.mark.unit
    def test_logs_filter_by_type(self, client, admin_headers, mock_admin_service):
        log = ActivityLog(
            id=1,
            owner_id="user-123",
            type=ActivityType.CARD_ADDED.value,
            event_metadata={"card_id": "base1-4"},
            created_at=datetime(2024, 3, 10, tzinfo=timezone.utc)
        )
        mock_admin_service.get_activity_logs_async = AsyncMock(return_value=([log], 1))

        response = client.get("/api/admin/logs?type=card_added&ownerId=user-123", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["logs"][0]["metadata"] == {"card_id": "base1-4"}
        mock_admin_service.get_activity_logs_async.assert_awaited_once_with(
            "user-123", ActivityType.CARD_ADDED, 0, 50
        )
