# Operations for the visa_cases collection
import datetime
import logging
import re
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from visa_case_service.app.models import VisaCaseDB
from .connection import VISA_CASES_COLLECTION, translate_pymongo_errors

logger = logging.getLogger(__name__)


@translate_pymongo_errors
async def insert_visa_case(db: AsyncIOMotorDatabase, visa_case: VisaCaseDB) -> VisaCaseDB:
    """Inserts a new case. DuplicateKeyError propagates when the case_id is taken."""
    await db[VISA_CASES_COLLECTION].insert_one(visa_case.model_dump())
    logger.info(f"Visa case inserted: {visa_case.case_id} (internal id {visa_case.id})")
    return visa_case


@translate_pymongo_errors
async def get_visa_case(db: AsyncIOMotorDatabase, case_id: str) -> Optional[VisaCaseDB]:
    doc = await db[VISA_CASES_COLLECTION].find_one({"case_id": case_id})
    return VisaCaseDB(**doc) if doc else None


@translate_pymongo_errors
async def list_visa_cases(
    db: AsyncIOMotorDatabase,
    status: Optional[str] = None,
    client_id: Optional[str] = None,
    search: Optional[str] = None,
    locked: Optional[bool] = None,
    limit: int = 50,
    skip: int = 0,
) -> List[VisaCaseDB]:
    query_filter: Dict[str, Any] = {}
    if status:
        query_filter["status"] = status
    if client_id:
        query_filter["client_id"] = client_id
    if locked is not None:
        query_filter["locked"] = locked
    if search:
        pattern = re.escape(search)
        query_filter["$or"] = [
            {field: {"$regex": pattern, "$options": "i"}}
            for field in ("client_name", "case_id", "visa_type", "country")
        ]

    cursor = db[VISA_CASES_COLLECTION].find(query_filter).sort("created_at", -1).skip(skip).limit(limit)
    docs = await cursor.to_list(length=limit)
    return [VisaCaseDB(**doc) for doc in docs]


@translate_pymongo_errors
async def list_all_visa_cases(db: AsyncIOMotorDatabase, query_filter: Optional[Dict[str, Any]] = None) -> List[VisaCaseDB]:
    cursor = db[VISA_CASES_COLLECTION].find(query_filter or {}).sort("created_at", 1)
    docs = await cursor.to_list(length=None)
    return [VisaCaseDB(**doc) for doc in docs]


@translate_pymongo_errors
async def find_cases_with_due_reminders(db: AsyncIOMotorDatabase, now: datetime.datetime) -> List[VisaCaseDB]:
    """Cases holding at least one reminder that is both incomplete and due."""
    query_filter = {"reminders": {"$elemMatch": {"completed": False, "due_date": {"$lte": now}}}}
    cursor = db[VISA_CASES_COLLECTION].find(query_filter).sort("created_at", 1)
    docs = await cursor.to_list(length=None)
    return [VisaCaseDB(**doc) for doc in docs]


@translate_pymongo_errors
async def push_to_case(
    db: AsyncIOMotorDatabase,
    case_id: str,
    field: str,
    value: Any,
    now: datetime.datetime,
    require_unlocked: bool = False,
) -> Optional[VisaCaseDB]:
    """
    Appends one entry to an embedded list in a single atomic update.
    Returns None when no case matched (missing, or locked when require_unlocked is set).
    """
    query_filter: Dict[str, Any] = {"case_id": case_id}
    if require_unlocked:
        # Cases written before the lock flag existed have no "locked" field.
        query_filter["locked"] = {"$ne": True}

    updated = await db[VISA_CASES_COLLECTION].find_one_and_update(
        query_filter,
        {
            "$push": {field: value},
            "$set": {"updated_at": now},
            "$inc": {"version": 1},
        },
        return_document=ReturnDocument.AFTER,
    )
    if not updated:
        logger.warning(f"Visa case {case_id} not matched for $push to '{field}'.")
        return None
    return VisaCaseDB(**updated)


@translate_pymongo_errors
async def update_visa_case_versioned(
    db: AsyncIOMotorDatabase,
    case_id: str,
    expected_version: int,
    set_fields: Dict[str, Any],
    push_fields: Optional[Dict[str, Any]] = None,
) -> bool:
    """
    Applies $set (and optionally $push) only if the stored version still equals
    expected_version, then bumps the version. Returns False on a version miss.

    A stored case without a version field reads as version 1, so a guard on
    version 1 also matches it and writes version 2 explicitly.
    """
    query_filter: Dict[str, Any] = {"case_id": case_id, "version": expected_version}
    if expected_version == 1:
        query_filter = {
            "case_id": case_id,
            "$or": [{"version": 1}, {"version": {"$exists": False}}],
        }
    update: Dict[str, Any] = {"$set": {**set_fields, "version": expected_version + 1}}
    if push_fields:
        update["$push"] = push_fields

    result = await db[VISA_CASES_COLLECTION].update_one(query_filter, update)
    if result.matched_count == 0:
        logger.warning(f"Versioned update missed for visa case {case_id} at version {expected_version}.")
        return False
    return True


@translate_pymongo_errors
async def delete_visa_case(db: AsyncIOMotorDatabase, case_id: str) -> bool:
    result = await db[VISA_CASES_COLLECTION].delete_one({"case_id": case_id})
    if result.deleted_count:
        logger.info(f"Visa case {case_id} deleted.")
    return bool(result.deleted_count)
