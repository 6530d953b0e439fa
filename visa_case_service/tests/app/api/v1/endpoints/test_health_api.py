from unittest.mock import AsyncMock, MagicMock

from pymongo.errors import ServerSelectionTimeoutError

from visa_case_service.app.main import app
from visa_case_service.infrastructure.database.connection import get_db


def test_health_check_connected(api_client):
    response = api_client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["components"]["mongodb"] == "connected"
    assert body["service_name"]


def test_health_check_reports_disconnected_database(api_client):
    unreachable_db = MagicMock()
    unreachable_db.command = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))
    app.dependency_overrides[get_db] = lambda: unreachable_db

    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json()["components"]["mongodb"] == "disconnected"
    unreachable_db.command.assert_awaited_once_with('ping')
