# Operations for the documents collection (agency-wide uploaded document register)
import logging
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from visa_case_service.app.models import UploadedDocumentDB
from .connection import DOCUMENTS_COLLECTION, translate_pymongo_errors

logger = logging.getLogger(__name__)


@translate_pymongo_errors
async def add_document(db: AsyncIOMotorDatabase, document: UploadedDocumentDB) -> UploadedDocumentDB:
    await db[DOCUMENTS_COLLECTION].insert_one(document.model_dump())
    logger.info(f"Registered document {document.document_id} (category: {document.category}, case: {document.visa_case_id})")
    return document


@translate_pymongo_errors
async def list_documents(
    db: AsyncIOMotorDatabase,
    client_id: Optional[str] = None,
    visa_case_id: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[str] = None,
) -> List[UploadedDocumentDB]:
    """Lists documents based on provided filters."""
    query_filter: Dict[str, Any] = {}
    if client_id:
        query_filter["client_id"] = client_id
    if visa_case_id:
        query_filter["visa_case_id"] = visa_case_id
    if category:
        query_filter["category"] = category
    if status:
        query_filter["status"] = status

    docs_cursor = db[DOCUMENTS_COLLECTION].find(query_filter).sort("created_at", 1)
    documents = await docs_cursor.to_list(length=None)
    return [UploadedDocumentDB(**doc) for doc in documents]
