from enum import Enum


class CaseStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    IN_PROCESS = "in-process"
    APPROVED = "approved"
    REJECTED = "rejected"


class CasePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ReminderType(str, Enum):
    DOCUMENT_DEADLINE = "document-deadline"
    INTERVIEW_PREP = "interview-prep"
    FOLLOW_UP = "follow-up"
    GENERAL = "general"


class AlertType(str, Enum):
    DEADLINE_WARNING = "deadline-warning"
    MISSING_DOCUMENT = "missing-document"
    STATUS_CHANGE = "status-change"
    URGENT_ACTION = "urgent-action"


class AlertSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class DocumentCategory(str, Enum):
    PASSPORT = "passport"
    VISA = "visa"
    INSURANCE = "insurance"
    PHOTO = "photo"
    APPLICATION = "application"
    FINANCIAL = "financial"
    HEALTH_CLEARANCE = "health-clearance"
    INVITATION = "invitation"
    ACCEPTANCE = "acceptance"
    EMPLOYMENT = "employment"
    QUALIFICATION = "qualification"
    OTHER = "other"


class DocumentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"


class DocumentAlertType(str, Enum):
    MISSING = "missing"
    EXPIRING = "expiring"
    EXPIRED = "expired"


class DocumentAlertPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DocumentAlertStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"
