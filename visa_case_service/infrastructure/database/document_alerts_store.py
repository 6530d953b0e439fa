# Operations for the document_alerts collection
import datetime
import logging
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from visa_case_service.app.models import DocumentAlertDB
from visa_case_service.app.models.enums import DocumentAlertStatus
from .connection import DOCUMENT_ALERTS_COLLECTION, translate_pymongo_errors

logger = logging.getLogger(__name__)


@translate_pymongo_errors
async def add_document_alert(db: AsyncIOMotorDatabase, alert: DocumentAlertDB) -> DocumentAlertDB:
    await db[DOCUMENT_ALERTS_COLLECTION].insert_one(alert.model_dump())
    logger.info(f"Added document alert {alert.id}: {alert.alert_type} for document {alert.document_id}")
    return alert


@translate_pymongo_errors
async def find_active_document_alert(
    db: AsyncIOMotorDatabase,
    document_id: str,
    alert_type: str,
) -> Optional[DocumentAlertDB]:
    doc = await db[DOCUMENT_ALERTS_COLLECTION].find_one({
        "document_id": document_id,
        "alert_type": alert_type,
        "status": DocumentAlertStatus.ACTIVE.value,
    })
    return DocumentAlertDB(**doc) if doc else None


@translate_pymongo_errors
async def list_document_alerts(
    db: AsyncIOMotorDatabase,
    status: Optional[str] = None,
    client_id: Optional[str] = None,
    alert_type: Optional[str] = None,
) -> List[DocumentAlertDB]:
    query_filter: Dict[str, Any] = {}
    if status:
        query_filter["status"] = status
    if client_id:
        query_filter["client_id"] = client_id
    if alert_type:
        query_filter["alert_type"] = alert_type

    cursor = db[DOCUMENT_ALERTS_COLLECTION].find(query_filter).sort("created_at", -1)
    docs = await cursor.to_list(length=None)
    return [DocumentAlertDB(**doc) for doc in docs]


@translate_pymongo_errors
async def update_document_alert_status(
    db: AsyncIOMotorDatabase,
    alert_id: str,
    new_status: str,
    now: datetime.datetime,
) -> Optional[DocumentAlertDB]:
    updated = await db[DOCUMENT_ALERTS_COLLECTION].find_one_and_update(
        {"id": alert_id},
        {"$set": {"status": new_status, "updated_at": now}},
        return_document=ReturnDocument.AFTER,
    )
    if not updated:
        logger.warning(f"Document alert ID: {alert_id} not found for status update.")
        return None
    logger.info(f"Updated status for document alert ID: {alert_id} to {new_status}.")
    return DocumentAlertDB(**updated)
