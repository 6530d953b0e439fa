from .visa_case_db import VisaCaseDB, VisaDocument, ChecklistItem, Reminder, Alert, TimelineEntry
from .uploaded_document_db import UploadedDocumentDB
from .document_alert_db import DocumentAlertDB

__all__ = [
    "VisaCaseDB",
    "VisaDocument",
    "ChecklistItem",
    "Reminder",
    "Alert",
    "TimelineEntry",
    "UploadedDocumentDB",
    "DocumentAlertDB",
]
