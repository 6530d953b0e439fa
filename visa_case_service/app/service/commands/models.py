# Pydantic models for Commands
import uuid
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from visa_case_service.app.models.common import NonEmptyStr, UTCDateTime
from visa_case_service.app.models.enums import (
    AlertSeverity,
    AlertType,
    CasePriority,
    CaseStatus,
    DocumentAlertPriority,
    DocumentAlertStatus,
    DocumentAlertType,
    DocumentCategory,
    DocumentStatus,
    ReminderType,
)


class BaseCommand(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    command_id: str = Field(default_factory=lambda: str(uuid.uuid4()))


# --- Visa case intake and maintenance ---

class CreateVisaCaseCommand(BaseCommand):
    client_id: NonEmptyStr
    client_name: NonEmptyStr
    client_email: EmailStr
    visa_type: NonEmptyStr
    country: NonEmptyStr
    priority: CasePriority = CasePriority.MEDIUM
    expected_decision_date: Optional[UTCDateTime] = None
    notes: List[str] = Field(default_factory=list)

    @field_validator("client_email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("notes")
    @classmethod
    def drop_blank_notes(cls, value: List[str]) -> List[str]:
        return [note.strip() for note in value if note and note.strip()]


class UpdateVisaCaseDetailsCommand(BaseCommand):
    """Editable descriptive fields. Status, identity and embedded lists are not editable here."""
    priority: Optional[CasePriority] = None
    expected_decision_date: Optional[UTCDateTime] = None
    country: Optional[NonEmptyStr] = None
    client_name: Optional[NonEmptyStr] = None
    client_email: Optional[EmailStr] = None

    @field_validator("client_email")
    @classmethod
    def lowercase_email(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().lower() if value else value


class TransitionStatusCommand(BaseCommand):
    status: CaseStatus


class AddNoteCommand(BaseCommand):
    note: NonEmptyStr


class AddReminderCommand(BaseCommand):
    type: ReminderType
    message: NonEmptyStr
    due_date: UTCDateTime


class MarkDocumentUploadedCommand(BaseCommand):
    file_url: Optional[str] = None
    notes: Optional[str] = None


class SetChecklistItemCommand(BaseCommand):
    completed: bool
    notes: Optional[str] = None


# --- Alerts ---

class AlertInput(BaseModel):
    """Caller-supplied part of an alert; triggered/resolved state is always set by the service."""
    model_config = ConfigDict(use_enum_values=True)

    type: AlertType
    message: NonEmptyStr
    severity: AlertSeverity = AlertSeverity.INFO


class AppendAlertCommand(BaseCommand):
    case_id: NonEmptyStr
    alert: AlertInput


class ResolveAlertCommand(BaseCommand):
    case_id: NonEmptyStr
    alert_index: int
    resolved: bool


# --- Document register and document alerts ---

class RegisterDocumentCommand(BaseCommand):
    file_name: NonEmptyStr
    category: DocumentCategory
    status: DocumentStatus = DocumentStatus.PENDING
    document_id: Optional[NonEmptyStr] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    visa_case_id: Optional[str] = None
    expiry_date: Optional[UTCDateTime] = None
    notes: Optional[str] = None


class CreateDocumentAlertCommand(BaseCommand):
    client_id: NonEmptyStr
    document_type: NonEmptyStr
    alert_type: DocumentAlertType
    message: NonEmptyStr
    document_id: Optional[str] = None
    client_name: Optional[str] = None
    priority: DocumentAlertPriority = DocumentAlertPriority.MEDIUM
    due_date: Optional[UTCDateTime] = None
    expiration_date: Optional[UTCDateTime] = None


class UpdateDocumentAlertStatusCommand(BaseCommand):
    status: DocumentAlertStatus
