# Uploaded document register and manually managed document alerts
import datetime
import logging
import uuid
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from visa_case_service.app.models import DocumentAlertDB, UploadedDocumentDB
from visa_case_service.app.models.common import utcnow
from visa_case_service.app.service.commands.models import (
    CreateDocumentAlertCommand,
    RegisterDocumentCommand,
    UpdateDocumentAlertStatusCommand,
)
from visa_case_service.app.service.exceptions import DocumentAlertNotFoundError
from visa_case_service.infrastructure.database import document_alerts_store, documents_store

logger = logging.getLogger(__name__)


async def register_document(
    db: AsyncIOMotorDatabase,
    command: RegisterDocumentCommand,
    now: Optional[datetime.datetime] = None,
) -> UploadedDocumentDB:
    now = now or utcnow()
    fields = command.model_dump(exclude={"command_id", "document_id"})
    if command.document_id:
        fields["document_id"] = command.document_id
    document = UploadedDocumentDB(**fields, uploaded_at=now, created_at=now, updated_at=now)
    return await documents_store.add_document(db, document)


async def list_documents(
    db: AsyncIOMotorDatabase,
    client_id: Optional[str] = None,
    visa_case_id: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[str] = None,
) -> List[UploadedDocumentDB]:
    return await documents_store.list_documents(
        db, client_id=client_id, visa_case_id=visa_case_id, category=category, status=status
    )


async def create_document_alert(
    db: AsyncIOMotorDatabase,
    command: CreateDocumentAlertCommand,
    now: Optional[datetime.datetime] = None,
) -> DocumentAlertDB:
    now = now or utcnow()
    alert = DocumentAlertDB(
        client_id=command.client_id,
        client_name=command.client_name,
        document_type=command.document_type,
        document_id=command.document_id or f"MANUAL-{uuid.uuid4().hex[:12].upper()}",
        alert_type=command.alert_type,
        message=command.message,
        priority=command.priority,
        due_date=command.due_date,
        expiration_date=command.expiration_date,
        created_at=now,
        updated_at=now,
    )
    return await document_alerts_store.add_document_alert(db, alert)


async def list_document_alerts(
    db: AsyncIOMotorDatabase,
    status: Optional[str] = None,
    client_id: Optional[str] = None,
    alert_type: Optional[str] = None,
) -> List[DocumentAlertDB]:
    return await document_alerts_store.list_document_alerts(
        db, status=status, client_id=client_id, alert_type=alert_type
    )


async def update_document_alert_status(
    db: AsyncIOMotorDatabase,
    alert_id: str,
    command: UpdateDocumentAlertStatusCommand,
    now: Optional[datetime.datetime] = None,
) -> DocumentAlertDB:
    now = now or utcnow()
    updated = await document_alerts_store.update_document_alert_status(db, alert_id, command.status, now)
    if not updated:
        raise DocumentAlertNotFoundError(alert_id)
    return updated
