import pytest
from unittest.mock import AsyncMock, MagicMock
import datetime

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from visa_case_service.infrastructure.database import visa_cases_store as store
from visa_case_service.app.models import VisaCaseDB
from visa_case_service.app.service.exceptions import PersistenceError

NOW = datetime.datetime(2024, 3, 1, 9, 0, tzinfo=datetime.timezone.utc)


def _case_doc(**overrides):
    doc = {
        "id": "abc123", "case_id": "VC-2024-1234", "client_id": "CL-1", "client_name": "Amina Diallo",
        "client_email": "amina@gmail.com", "visa_type": "tourist", "country": "France", "status": "draft",
        "version": 3, "created_at": NOW, "updated_at": NOW,
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def mock_collection():
    collection = MagicMock()
    collection.insert_one = AsyncMock()
    collection.find_one = AsyncMock()
    collection.update_one = AsyncMock()
    collection.find_one_and_update = AsyncMock()
    collection.delete_one = AsyncMock()
    return collection


@pytest.fixture
def mock_db(mock_collection):
    db = MagicMock()
    db.__getitem__.return_value = mock_collection
    return db


@pytest.mark.asyncio
async def test_insert_visa_case(mock_db, mock_collection):
    visa_case = VisaCaseDB(**_case_doc())

    result = await store.insert_visa_case(mock_db, visa_case)

    assert result == visa_case
    mock_db.__getitem__.assert_called_with("visa_cases")
    inserted_doc = mock_collection.insert_one.call_args[0][0]
    assert inserted_doc["case_id"] == "VC-2024-1234"
    assert inserted_doc["version"] == 3


@pytest.mark.asyncio
async def test_insert_visa_case_duplicate_key_passes_through(mock_db, mock_collection):
    mock_collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key error")

    with pytest.raises(DuplicateKeyError):
        await store.insert_visa_case(mock_db, VisaCaseDB(**_case_doc()))


@pytest.mark.asyncio
async def test_driver_errors_become_persistence_errors(mock_db, mock_collection):
    mock_collection.find_one.side_effect = ServerSelectionTimeoutError("no servers")

    with pytest.raises(PersistenceError):
        await store.get_visa_case(mock_db, "VC-2024-1234")


@pytest.mark.asyncio
async def test_get_visa_case_found_and_not_found(mock_db, mock_collection):
    mock_collection.find_one.return_value = _case_doc(_id="mongo-object-id")
    found = await store.get_visa_case(mock_db, "VC-2024-1234")
    assert found.case_id == "VC-2024-1234"
    mock_collection.find_one.assert_called_with({"case_id": "VC-2024-1234"})

    mock_collection.find_one.return_value = None
    assert await store.get_visa_case(mock_db, "VC-2024-9999") is None


@pytest.mark.asyncio
async def test_list_visa_cases_builds_filter(mock_db, mock_collection):
    mock_cursor = MagicMock()
    mock_cursor.sort.return_value = mock_cursor
    mock_cursor.skip.return_value = mock_cursor
    mock_cursor.limit.return_value = mock_cursor
    mock_cursor.to_list = AsyncMock(return_value=[_case_doc()])
    mock_collection.find.return_value = mock_cursor

    result = await store.list_visa_cases(
        mock_db, status="draft", client_id="CL-1", search="a.b", locked=False, limit=10, skip=20
    )

    assert len(result) == 1
    query_filter = mock_collection.find.call_args[0][0]
    assert query_filter["status"] == "draft"
    assert query_filter["client_id"] == "CL-1"
    assert query_filter["locked"] is False
    assert {"client_name": {"$regex": r"a\.b", "$options": "i"}} in query_filter["$or"]
    assert len(query_filter["$or"]) == 4
    mock_cursor.sort.assert_called_once_with("created_at", -1)
    mock_cursor.skip.assert_called_once_with(20)
    mock_cursor.limit.assert_called_once_with(10)
    mock_cursor.to_list.assert_called_once_with(length=10)


@pytest.mark.asyncio
async def test_find_cases_with_due_reminders_uses_elem_match(mock_db, mock_collection):
    mock_cursor = MagicMock()
    mock_cursor.sort.return_value = mock_cursor
    mock_cursor.to_list = AsyncMock(return_value=[])
    mock_collection.find.return_value = mock_cursor

    await store.find_cases_with_due_reminders(mock_db, NOW)

    mock_collection.find.assert_called_once_with(
        {"reminders": {"$elemMatch": {"completed": False, "due_date": {"$lte": NOW}}}}
    )


@pytest.mark.asyncio
async def test_push_to_case_requires_unlocked(mock_db, mock_collection):
    mock_collection.find_one_and_update.return_value = _case_doc(notes=["hello"], version=4)

    result = await store.push_to_case(mock_db, "VC-2024-1234", "notes", "hello", NOW, require_unlocked=True)

    assert result.notes == ["hello"]
    args, kwargs = mock_collection.find_one_and_update.call_args
    assert args[0] == {"case_id": "VC-2024-1234", "locked": {"$ne": True}}
    assert args[1] == {"$push": {"notes": "hello"}, "$set": {"updated_at": NOW}, "$inc": {"version": 1}}
    assert kwargs["return_document"] == ReturnDocument.AFTER


@pytest.mark.asyncio
async def test_push_to_case_no_match(mock_db, mock_collection):
    mock_collection.find_one_and_update.return_value = None

    assert await store.push_to_case(mock_db, "VC-2024-1234", "alerts", {}, NOW) is None
    assert mock_collection.find_one_and_update.call_args[0][0] == {"case_id": "VC-2024-1234"}


@pytest.mark.asyncio
async def test_update_visa_case_versioned(mock_db, mock_collection):
    mock_collection.update_one.return_value = MagicMock(matched_count=1)

    applied = await store.update_visa_case_versioned(
        mock_db, "VC-2024-1234", 3, {"status": "submitted"}, push_fields={"timeline": {"title": "x"}}
    )

    assert applied is True
    mock_collection.update_one.assert_called_once_with(
        {"case_id": "VC-2024-1234", "version": 3},
        {"$set": {"status": "submitted", "version": 4}, "$push": {"timeline": {"title": "x"}}},
    )

    mock_collection.update_one.return_value = MagicMock(matched_count=0)
    assert await store.update_visa_case_versioned(mock_db, "VC-2024-1234", 3, {"status": "submitted"}) is False


@pytest.mark.asyncio
async def test_update_visa_case_versioned_first_version_matches_missing_field(mock_db, mock_collection):
    mock_collection.update_one.return_value = MagicMock(matched_count=1)

    assert await store.update_visa_case_versioned(mock_db, "VC-2024-1234", 1, {"status": "submitted"}) is True

    mock_collection.update_one.assert_called_once_with(
        {"case_id": "VC-2024-1234", "$or": [{"version": 1}, {"version": {"$exists": False}}]},
        {"$set": {"status": "submitted", "version": 2}},
    )


@pytest.mark.asyncio
async def test_delete_visa_case(mock_db, mock_collection):
    mock_collection.delete_one.return_value = MagicMock(deleted_count=1)
    assert await store.delete_visa_case(mock_db, "VC-2024-1234") is True

    mock_collection.delete_one.return_value = MagicMock(deleted_count=0)
    assert await store.delete_visa_case(mock_db, "VC-2024-1234") is False
