import datetime

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from visa_case_service.app.main import app
from visa_case_service.app.service.commands.models import CreateVisaCaseCommand
from visa_case_service.infrastructure.database.connection import VISA_CASES_COLLECTION, get_db


@pytest.fixture
def mongo_db():
    client = AsyncMongoMockClient(tz_aware=True)
    database = client["visa_case_test_db"]
    # Generated case ids must stay unique even when a test creates many cases.
    database.delegate[VISA_CASES_COLLECTION].create_index("case_id", unique=True)
    yield database
    client.close()


@pytest.fixture
def now():
    # Whole seconds: BSON dates keep millisecond precision only.
    return datetime.datetime(2024, 3, 1, 9, 0, 0, tzinfo=datetime.timezone.utc)


@pytest.fixture
def create_command():
    def _build(**overrides):
        data = {
            "client_id": "CL-1001",
            "client_name": "Amina Diallo",
            "client_email": "Amina.Diallo@Gmail.com",
            "visa_type": "tourist",
            "country": "France",
        }
        data.update(overrides)
        return CreateVisaCaseCommand(**data)
    return _build


@pytest.fixture
def api_client(mongo_db):
    app.dependency_overrides[get_db] = lambda: mongo_db
    # Not used as a context manager, so startup (the real Mongo connection) does not run.
    yield TestClient(app)
    app.dependency_overrides = {}
