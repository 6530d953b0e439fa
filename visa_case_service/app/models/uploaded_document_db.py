import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import UTCDateTime, utcnow
from .enums import DocumentCategory, DocumentStatus


class UploadedDocumentDB(BaseModel): # Agency-wide document register scanned by the document audit
    model_config = ConfigDict(use_enum_values=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4().hex))
    document_id: str = Field(default_factory=lambda: f"DOC-{uuid.uuid4().hex[:12].upper()}")
    file_name: str
    category: DocumentCategory
    status: DocumentStatus = DocumentStatus.PENDING

    client_id: Optional[str] = None
    client_name: Optional[str] = None
    visa_case_id: Optional[str] = None # Business case id (VC-...), not the internal id

    expiry_date: Optional[UTCDateTime] = None
    uploaded_at: UTCDateTime = Field(default_factory=utcnow)
    notes: Optional[str] = None

    created_at: UTCDateTime = Field(default_factory=utcnow)
    updated_at: UTCDateTime = Field(default_factory=utcnow)
