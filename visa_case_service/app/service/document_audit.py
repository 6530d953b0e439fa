"""
Document completeness audit.

Scans the uploaded document register for expired and soon-to-expire documents,
checks every visa case against the categories its visa type requires, and
persists one document alert per finding unless an active alert for the same
(document_id, alert_type) already exists.

The duplicate check and the insert are two separate operations, so two audits
running at the same time can both insert the same alert.
"""
import datetime
import logging
from typing import Dict, List, Optional, Sequence

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, Field

from visa_case_service.app.config import settings
from visa_case_service.app.models import DocumentAlertDB, UploadedDocumentDB, VisaCaseDB
from visa_case_service.app.models.common import utcnow
from visa_case_service.app.models.enums import DocumentAlertPriority, DocumentAlertType, DocumentStatus
from visa_case_service.app.observability import (
    batch_job_failures_counter,
    document_alerts_created_counter,
    tracer,
)
from visa_case_service.app.service.exceptions import PersistenceError
from visa_case_service.app.service.strategies.requirement_strategies import get_required_document_categories
from visa_case_service.infrastructure.database import document_alerts_store, documents_store, visa_cases_store

logger = logging.getLogger(__name__)


class AuditError(BaseModel):
    document_id: str
    alert_type: str
    error: str


class DocumentAuditResult(BaseModel):
    generated_alert_count: int = 0
    created_alert_count: int = 0
    skipped_duplicate_count: int = 0
    created_alerts: List[DocumentAlertDB] = Field(default_factory=list)
    errors: List[AuditError] = Field(default_factory=list)


def find_expiry_alerts(
    documents: Sequence[UploadedDocumentDB],
    now: datetime.datetime,
    warning_days: int,
) -> List[DocumentAlertDB]:
    warning_limit = now + datetime.timedelta(days=warning_days)
    alerts: List[DocumentAlertDB] = []
    for document in documents:
        expiry = document.expiry_date
        if expiry is None:
            continue
        if expiry < now:
            alert_type = DocumentAlertType.EXPIRED
            priority = DocumentAlertPriority.HIGH
            message = f'Document "{document.file_name}" has expired on {expiry:%Y-%m-%d}'
        elif expiry <= warning_limit:
            alert_type = DocumentAlertType.EXPIRING
            priority = DocumentAlertPriority.MEDIUM
            message = f'Document "{document.file_name}" expires on {expiry:%Y-%m-%d}'
        else:
            continue
        alerts.append(
            DocumentAlertDB(
                client_id=document.client_id or "",
                client_name=document.client_name,
                document_type=document.category,
                document_id=document.document_id,
                alert_type=alert_type,
                message=message,
                priority=priority,
                due_date=expiry,
                expiration_date=expiry,
                created_at=now,
                updated_at=now,
            )
        )
    return alerts


def find_missing_document_alerts(
    visa_cases: Sequence[VisaCaseDB],
    documents: Sequence[UploadedDocumentDB],
    now: datetime.datetime,
) -> List[DocumentAlertDB]:
    usable = [doc for doc in documents if doc.status != DocumentStatus.REJECTED.value]
    alerts: List[DocumentAlertDB] = []
    for visa_case in visa_cases:
        # Documents count for a case when tied to it directly or to the same client.
        on_file = {
            doc.category
            for doc in usable
            if doc.visa_case_id == visa_case.case_id or doc.client_id == visa_case.client_id
        }
        for category, name in get_required_document_categories(visa_case.visa_type):
            if category in on_file:
                continue
            alerts.append(
                DocumentAlertDB(
                    client_id=visa_case.client_id,
                    client_name=visa_case.client_name,
                    document_type=category,
                    document_id=f"MISSING-{visa_case.case_id}-{category}",
                    alert_type=DocumentAlertType.MISSING,
                    message=f"Required document '{name}' is missing for visa case {visa_case.case_id}",
                    priority=DocumentAlertPriority.HIGH,
                    created_at=now,
                    updated_at=now,
                )
            )
    return alerts


async def generate_document_alerts(
    db: AsyncIOMotorDatabase,
    now: datetime.datetime,
    warning_days: int,
) -> List[DocumentAlertDB]:
    """Builds the alerts the current data calls for, without persisting anything."""
    documents = await documents_store.list_documents(db)
    visa_cases = await visa_cases_store.list_all_visa_cases(db)
    return find_expiry_alerts(documents, now, warning_days) + find_missing_document_alerts(visa_cases, documents, now)


async def run_document_audit(
    db: AsyncIOMotorDatabase,
    now: Optional[datetime.datetime] = None,
    warning_days: Optional[int] = None,
) -> DocumentAuditResult:
    now = now or utcnow()
    if warning_days is None:
        warning_days = settings.DOCUMENT_EXPIRY_WARNING_DAYS

    with tracer.start_as_current_span("document_audit") as span:
        generated = await generate_document_alerts(db, now, warning_days)
        result = DocumentAuditResult(generated_alert_count=len(generated))
        created_by_type: Dict[str, int] = {}

        for alert in generated:
            try:
                existing = await document_alerts_store.find_active_document_alert(db, alert.document_id, alert.alert_type)
                if existing:
                    result.skipped_duplicate_count += 1
                    continue
                await document_alerts_store.add_document_alert(db, alert)
            except PersistenceError as e:
                logger.error(f"Document audit could not persist {alert.alert_type} alert for {alert.document_id}: {e}")
                batch_job_failures_counter.add(1, {"job": "document_audit", "reason": "persistence"})
                result.errors.append(AuditError(document_id=alert.document_id, alert_type=alert.alert_type, error=str(e)))
                continue
            except Exception as e:
                logger.error(
                    f"Unexpected error storing {alert.alert_type} alert for {alert.document_id}: {e}", exc_info=True
                )
                batch_job_failures_counter.add(1, {"job": "document_audit", "reason": "unexpected"})
                result.errors.append(AuditError(document_id=alert.document_id, alert_type=alert.alert_type, error=str(e)))
                continue
            result.created_alerts.append(alert)
            created_by_type[alert.alert_type] = created_by_type.get(alert.alert_type, 0) + 1

        result.created_alert_count = len(result.created_alerts)
        for alert_type, count in created_by_type.items():
            document_alerts_created_counter.add(count, {"alert_type": alert_type})

        span.set_attribute("document_audit.generated", result.generated_alert_count)
        span.set_attribute("document_audit.created", result.created_alert_count)
        span.set_attribute("document_audit.skipped_duplicates", result.skipped_duplicate_count)

    logger.info(
        f"Document audit finished: {result.generated_alert_count} generated, "
        f"{result.created_alert_count} created, {result.skipped_duplicate_count} duplicates skipped, "
        f"{len(result.errors)} error(s)."
    )
    return result
