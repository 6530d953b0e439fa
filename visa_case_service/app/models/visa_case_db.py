import uuid
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import NonEmptyStr, UTCDateTime, utcnow
from .enums import AlertSeverity, AlertType, CasePriority, CaseStatus, ReminderType


class VisaDocument(BaseModel):
    name: str
    type: str
    uploaded: bool = False
    upload_date: Optional[UTCDateTime] = None
    file_url: Optional[str] = None
    required: bool = True
    notes: Optional[str] = None


class ChecklistItem(BaseModel):
    category: str
    item: str
    completed: bool = False
    completed_date: Optional[UTCDateTime] = None
    notes: Optional[str] = None


class Reminder(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    type: ReminderType
    message: NonEmptyStr
    due_date: UTCDateTime
    completed: bool = False # Never reverts once True
    completed_date: Optional[UTCDateTime] = None


class Alert(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    type: AlertType
    message: NonEmptyStr
    severity: AlertSeverity = AlertSeverity.INFO
    triggered_date: UTCDateTime = Field(default_factory=utcnow)
    resolved: bool = False
    resolved_date: Optional[UTCDateTime] = None


class TimelineEntry(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    date: UTCDateTime = Field(default_factory=utcnow)
    status: CaseStatus
    title: str
    description: str


class VisaCaseDB(BaseModel): # Aggregate root, one document per case in `visa_cases`
    model_config = ConfigDict(use_enum_values=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4().hex))
    case_id: str # VC-<year>-<nnnn>, immutable
    client_id: str
    client_name: str
    client_email: str
    visa_type: str
    country: str
    status: CaseStatus = CaseStatus.DRAFT

    locked: bool = False
    locked_date: Optional[UTCDateTime] = None

    application_date: UTCDateTime = Field(default_factory=utcnow)
    submission_date: Optional[UTCDateTime] = None
    decision_date: Optional[UTCDateTime] = None
    expected_decision_date: Optional[UTCDateTime] = None
    priority: CasePriority = CasePriority.MEDIUM

    documents: List[VisaDocument] = Field(default_factory=list)
    checklist_items: List[ChecklistItem] = Field(default_factory=list)
    reminders: List[Reminder] = Field(default_factory=list)
    alerts: List[Alert] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)
    timeline: List[TimelineEntry] = Field(default_factory=list)

    version: int = 1 # Optimistic concurrency counter, bumped on every write

    created_at: UTCDateTime = Field(default_factory=utcnow)
    updated_at: UTCDateTime = Field(default_factory=utcnow)
