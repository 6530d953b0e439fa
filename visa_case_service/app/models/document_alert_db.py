import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import UTCDateTime, utcnow
from .enums import DocumentAlertPriority, DocumentAlertStatus, DocumentAlertType


class DocumentAlertDB(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4().hex))
    client_id: str
    client_name: Optional[str] = None
    document_type: str # Document category, e.g. "passport"
    document_id: str # Real document id, or MISSING-<caseId>-<category> for synthesized gaps
    alert_type: DocumentAlertType
    message: str
    priority: DocumentAlertPriority = DocumentAlertPriority.MEDIUM
    status: DocumentAlertStatus = DocumentAlertStatus.ACTIVE
    due_date: Optional[UTCDateTime] = None
    expiration_date: Optional[UTCDateTime] = None

    created_at: UTCDateTime = Field(default_factory=utcnow)
    updated_at: UTCDateTime = Field(default_factory=utcnow)
