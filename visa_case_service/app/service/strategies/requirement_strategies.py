"""
Document requirement catalog.

Each visa type is a strategy holding the documents and checklist items it adds on
top of the base set shared by every application. Lookups are exact and
case-sensitive; an unknown visa type falls back to the base strategy, which is a
valid outcome and not an error.

Everything here is static data: no I/O, and every call builds fresh model
instances so callers can mutate the result freely.
"""
import datetime
from typing import Dict, List, Optional, Tuple

from visa_case_service.app.models import ChecklistItem, Reminder, VisaDocument
from visa_case_service.app.models.common import utcnow
from visa_case_service.app.models.enums import DocumentCategory, ReminderType

# (name, type)
DocumentSpec = Tuple[str, str]
# (category, item)
ChecklistSpec = Tuple[str, str]

# Day offsets are the same for every visa type.
DOCUMENT_DEADLINE_DAYS = 30
FOLLOW_UP_DAYS = 14
INTERVIEW_PREP_DAYS = 21


class VisaTypeRequirementStrategy:
    """Base requirements shared by all visa types."""

    visa_type: Optional[str] = None

    base_documents: Tuple[DocumentSpec, ...] = (
        ("Passport Copy", "identity"),
        ("Passport Size Photos", "photos"),
        ("Application Form", "forms"),
    )
    base_checklist: Tuple[ChecklistSpec, ...] = (
        ("Documentation", "Gather all required documents"),
        ("Documentation", "Scan/copy documents"),
        ("Documentation", "Translate documents if required"),
        ("Application", "Fill application form completely"),
        ("Application", "Review application for accuracy"),
        ("Payment", "Calculate visa fees"),
        ("Payment", "Make payment"),
    )

    specific_documents: Tuple[DocumentSpec, ...] = ()
    specific_checklist: Tuple[ChecklistSpec, ...] = ()

    def standard_documents(self) -> List[VisaDocument]:
        return [
            VisaDocument(name=name, type=doc_type, required=True, uploaded=False)
            for name, doc_type in self.base_documents + self.specific_documents
        ]

    def checklist_items(self) -> List[ChecklistItem]:
        return [
            ChecklistItem(category=category, item=item, completed=False)
            for category, item in self.base_checklist + self.specific_checklist
        ]

    def standard_reminders(self, now: datetime.datetime) -> List[Reminder]:
        # TODO: allow per-visa-type offsets once the agency supplies embassy processing times
        return [
            Reminder(
                type=ReminderType.DOCUMENT_DEADLINE,
                message=f"Submit required documents within {DOCUMENT_DEADLINE_DAYS} days",
                due_date=now + datetime.timedelta(days=DOCUMENT_DEADLINE_DAYS),
            ),
            Reminder(
                type=ReminderType.FOLLOW_UP,
                message="Follow up on application status after 2 weeks",
                due_date=now + datetime.timedelta(days=FOLLOW_UP_DAYS),
            ),
            Reminder(
                type=ReminderType.INTERVIEW_PREP,
                message="Prepare for visa interview (if required)",
                due_date=now + datetime.timedelta(days=INTERVIEW_PREP_DAYS),
            ),
        ]


class TouristVisaStrategy(VisaTypeRequirementStrategy):
    visa_type = "tourist"
    specific_documents = (
        ("Travel Itinerary", "travel"),
        ("Hotel Reservation", "accommodation"),
        ("Proof of Financial Means", "financial"),
        ("Travel Insurance", "insurance"),
    )
    specific_checklist = (
        ("Travel Planning", "Book flights"),
        ("Travel Planning", "Book accommodation"),
        ("Insurance", "Purchase travel insurance"),
    )


class BusinessVisaStrategy(VisaTypeRequirementStrategy):
    visa_type = "business"
    specific_documents = (
        ("Invitation Letter", "business"),
        ("Company Registration", "business"),
        ("Business License", "business"),
        ("Proof of Employment", "employment"),
    )
    specific_checklist = (
        ("Business Preparation", "Prepare company documents"),
        ("Business Preparation", "Obtain invitation letter"),
        ("Meetings", "Schedule business meetings"),
    )


class StudentVisaStrategy(VisaTypeRequirementStrategy):
    visa_type = "student"
    specific_documents = (
        ("Admission Letter", "education"),
        ("Academic Transcripts", "education"),
        ("Proof of Financial Support", "financial"),
        ("Language Proficiency Certificate", "education"),
    )
    specific_checklist = (
        ("Academic Preparation", "Accept admission offer"),
        ("Academic Preparation", "Arrange accommodation"),
        ("Financial", "Secure funding/scholarship"),
    )


class WorkVisaStrategy(VisaTypeRequirementStrategy):
    visa_type = "work"
    specific_documents = (
        ("Job Offer Letter", "employment"),
        ("Employment Contract", "employment"),
        ("Qualification Certificates", "education"),
        ("Professional Experience Letters", "employment"),
    )
    specific_checklist = (
        ("Employment", "Sign employment contract"),
        ("Relocation", "Plan relocation logistics"),
        ("Housing", "Arrange temporary housing"),
    )


_STRATEGIES: Dict[str, VisaTypeRequirementStrategy] = {
    strategy.visa_type: strategy
    for strategy in (TouristVisaStrategy(), BusinessVisaStrategy(), StudentVisaStrategy(), WorkVisaStrategy())
}
_BASE_STRATEGY = VisaTypeRequirementStrategy()


def get_requirement_strategy(visa_type: str) -> VisaTypeRequirementStrategy:
    return _STRATEGIES.get(visa_type, _BASE_STRATEGY)


def get_standard_documents(visa_type: str) -> List[VisaDocument]:
    return get_requirement_strategy(visa_type).standard_documents()


def get_checklist_items(visa_type: str) -> List[ChecklistItem]:
    return get_requirement_strategy(visa_type).checklist_items()


def get_standard_reminders(visa_type: str, now: Optional[datetime.datetime] = None) -> List[Reminder]:
    return get_requirement_strategy(visa_type).standard_reminders(now or utcnow())


# Categories from the uploaded-document register that must be on file for a case.
# Keyed by lowercased visa type, unlike the seeding tables above.
_REQUIRED_CATEGORIES: Dict[str, Tuple[Tuple[DocumentCategory, str], ...]] = {
    "tourist": (
        (DocumentCategory.PASSPORT, "Passport"),
        (DocumentCategory.PHOTO, "Passport Photo"),
        (DocumentCategory.FINANCIAL, "Bank Statements"),
        (DocumentCategory.APPLICATION, "Application Form"),
    ),
    "business": (
        (DocumentCategory.PASSPORT, "Passport"),
        (DocumentCategory.PHOTO, "Passport Photo"),
        (DocumentCategory.FINANCIAL, "Business Registration"),
        (DocumentCategory.INVITATION, "Invitation Letter"),
        (DocumentCategory.APPLICATION, "Application Form"),
    ),
    "student": (
        (DocumentCategory.PASSPORT, "Passport"),
        (DocumentCategory.PHOTO, "Passport Photo"),
        (DocumentCategory.FINANCIAL, "Bank Statements"),
        (DocumentCategory.ACCEPTANCE, "University Acceptance Letter"),
        (DocumentCategory.APPLICATION, "Application Form"),
    ),
    "work": (
        (DocumentCategory.PASSPORT, "Passport"),
        (DocumentCategory.PHOTO, "Passport Photo"),
        (DocumentCategory.EMPLOYMENT, "Employment Contract"),
        (DocumentCategory.QUALIFICATION, "Professional Qualifications"),
        (DocumentCategory.APPLICATION, "Application Form"),
    ),
}
_DEFAULT_REQUIRED_CATEGORIES = (
    (DocumentCategory.PASSPORT, "Passport"),
    (DocumentCategory.PHOTO, "Passport Photo"),
    (DocumentCategory.APPLICATION, "Application Form"),
)


def get_required_document_categories(visa_type: str) -> List[Tuple[str, str]]:
    """Returns (category, display name) pairs the document audit expects for a visa type."""
    entries = _REQUIRED_CATEGORIES.get((visa_type or "").strip().lower(), _DEFAULT_REQUIRED_CATEGORIES)
    return [(category.value, name) for category, name in entries]
