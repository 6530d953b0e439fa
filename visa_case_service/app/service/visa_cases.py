# Visa case intake and maintenance handlers
import datetime
import logging
import random
from typing import Any, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from opentelemetry import trace
from pymongo.errors import DuplicateKeyError

from visa_case_service.app.config import settings
from visa_case_service.app.models import Reminder, TimelineEntry, VisaCaseDB
from visa_case_service.app.models.common import utcnow
from visa_case_service.app.models.enums import CaseStatus
from visa_case_service.app.service.commands.models import (
    AddNoteCommand,
    AddReminderCommand,
    CreateVisaCaseCommand,
    MarkDocumentUploadedCommand,
    SetChecklistItemCommand,
    UpdateVisaCaseDetailsCommand,
)
from visa_case_service.app.service.exceptions import (
    CaseLockedError,
    ConcurrencyConflictError,
    IndexOutOfRangeError,
    PersistenceError,
    VisaCaseNotFoundError,
)
from visa_case_service.app.service.strategies.requirement_strategies import (
    get_checklist_items,
    get_standard_documents,
    get_standard_reminders,
)
from visa_case_service.infrastructure.database import visa_cases_store

logger = logging.getLogger(__name__)


def generate_case_id(now: datetime.datetime) -> str:
    return f"VC-{now.year}-{random.randint(1000, 9999)}"


async def require_case(db: AsyncIOMotorDatabase, case_id: str) -> VisaCaseDB:
    visa_case = await visa_cases_store.get_visa_case(db, case_id)
    if not visa_case:
        raise VisaCaseNotFoundError(case_id)
    return visa_case


def ensure_unlocked(visa_case: VisaCaseDB, attempted_action: str) -> None:
    if visa_case.locked:
        raise CaseLockedError(visa_case.case_id, attempted_action)


def ensure_index(visa_case: VisaCaseDB, collection: str, index: int, length: int) -> None:
    if index < 0 or index >= length:
        raise IndexOutOfRangeError(visa_case.case_id, collection, index, length)


async def raise_version_conflict(db: AsyncIOMotorDatabase, case_id: str, expected_version: int) -> None:
    """Called after a versioned update missed: tells a vanished case apart from a concurrent writer."""
    current = await require_case(db, case_id)
    raise ConcurrencyConflictError(case_id, expected_version, current.version)


async def create_case(
    db: AsyncIOMotorDatabase,
    command: CreateVisaCaseCommand,
    now: Optional[datetime.datetime] = None,
) -> VisaCaseDB:
    """
    Creates a draft case, seeding documents, checklist and reminders from the
    requirement catalog for the case's visa type. Those lists are seeded only here.
    """
    current_span = trace.get_current_span()
    current_span.set_attribute("command.name", "CreateVisaCaseCommand")
    current_span.set_attribute("command.id", command.command_id)
    current_span.set_attribute("visa.type", command.visa_type)

    now = now or utcnow()
    logger.info(f"Handling CreateVisaCaseCommand: {command.command_id} for client {command.client_id}, visa type: {command.visa_type}")

    draft_case = VisaCaseDB(
        case_id=generate_case_id(now),
        client_id=command.client_id,
        client_name=command.client_name,
        client_email=command.client_email,
        visa_type=command.visa_type,
        country=command.country,
        priority=command.priority,
        status=CaseStatus.DRAFT,
        application_date=now,
        expected_decision_date=command.expected_decision_date,
        documents=get_standard_documents(command.visa_type),
        checklist_items=get_checklist_items(command.visa_type),
        reminders=get_standard_reminders(command.visa_type, now),
        alerts=[],
        notes=list(command.notes),
        timeline=[
            TimelineEntry(
                date=now,
                status=CaseStatus.DRAFT,
                title="Application Created",
                description="Initial application created in the system",
            )
        ],
        created_at=now,
        updated_at=now,
    )

    for attempt in range(1, settings.CASE_ID_MAX_ATTEMPTS + 1):
        try:
            created = await visa_cases_store.insert_visa_case(db, draft_case)
            current_span.add_event("VisaCaseCreated", {"case.id": created.case_id})
            return created
        except DuplicateKeyError:
            logger.warning(f"Generated case id {draft_case.case_id} already taken (attempt {attempt}).")
            draft_case = draft_case.model_copy(update={"case_id": generate_case_id(now)})

    raise PersistenceError(
        f"Could not allocate a unique case id after {settings.CASE_ID_MAX_ATTEMPTS} attempts."
    )


async def get_case(db: AsyncIOMotorDatabase, case_id: str) -> VisaCaseDB:
    return await require_case(db, case_id)


async def list_cases(
    db: AsyncIOMotorDatabase,
    status: Optional[str] = None,
    client_id: Optional[str] = None,
    search: Optional[str] = None,
    locked: Optional[bool] = None,
    limit: Optional[int] = None,
    skip: int = 0,
) -> List[VisaCaseDB]:
    return await visa_cases_store.list_visa_cases(
        db,
        status=status,
        client_id=client_id,
        search=search,
        locked=locked,
        limit=limit or settings.DEFAULT_PAGE_SIZE,
        skip=skip,
    )


async def update_case_details(
    db: AsyncIOMotorDatabase,
    case_id: str,
    command: UpdateVisaCaseDetailsCommand,
    now: Optional[datetime.datetime] = None,
) -> VisaCaseDB:
    now = now or utcnow()
    visa_case = await require_case(db, case_id)
    ensure_unlocked(visa_case, "update case details")

    changes = command.model_dump(exclude={"command_id"}, exclude_none=True)
    if not changes:
        logger.info(f"No update operations specified for visa case {case_id}.")
        return visa_case

    changes["updated_at"] = now
    if not await visa_cases_store.update_visa_case_versioned(db, case_id, visa_case.version, changes):
        await raise_version_conflict(db, case_id, visa_case.version)
    logger.info(f"Updated fields {sorted(changes)} on visa case {case_id}.")
    return await require_case(db, case_id)


async def push_to_unlocked_case(
    db: AsyncIOMotorDatabase,
    case_id: str,
    field: str,
    value: Any,
    now: datetime.datetime,
    attempted_action: str,
) -> VisaCaseDB:
    updated = await visa_cases_store.push_to_case(db, case_id, field, value, now, require_unlocked=True)
    if updated is not None:
        return updated

    visa_case = await require_case(db, case_id)
    ensure_unlocked(visa_case, attempted_action)
    # The case was unlocked between the push and the re-read.
    updated = await visa_cases_store.push_to_case(db, case_id, field, value, now, require_unlocked=True)
    if updated is None:
        await raise_version_conflict(db, case_id, visa_case.version)
    return updated


async def add_note(
    db: AsyncIOMotorDatabase,
    case_id: str,
    command: AddNoteCommand,
    now: Optional[datetime.datetime] = None,
) -> VisaCaseDB:
    now = now or utcnow()
    return await push_to_unlocked_case(db, case_id, "notes", command.note, now, "add a note")


async def add_reminder(
    db: AsyncIOMotorDatabase,
    case_id: str,
    command: AddReminderCommand,
    now: Optional[datetime.datetime] = None,
) -> VisaCaseDB:
    now = now or utcnow()
    reminder = Reminder(type=command.type, message=command.message, due_date=command.due_date, completed=False)
    updated = await push_to_unlocked_case(db, case_id, "reminders", reminder.model_dump(), now, "add a reminder")
    logger.info(f"Reminder '{command.message}' due {command.due_date.isoformat()} added to visa case {case_id}.")
    return updated


async def mark_document_uploaded(
    db: AsyncIOMotorDatabase,
    case_id: str,
    document_index: int,
    command: MarkDocumentUploadedCommand,
    now: Optional[datetime.datetime] = None,
) -> VisaCaseDB:
    now = now or utcnow()
    visa_case = await require_case(db, case_id)
    ensure_unlocked(visa_case, "update a document")
    ensure_index(visa_case, "document", document_index, len(visa_case.documents))

    prefix = f"documents.{document_index}"
    set_fields = {
        f"{prefix}.uploaded": True,
        f"{prefix}.upload_date": now,
        "updated_at": now,
    }
    if command.file_url is not None:
        set_fields[f"{prefix}.file_url"] = command.file_url
    if command.notes is not None:
        set_fields[f"{prefix}.notes"] = command.notes

    if not await visa_cases_store.update_visa_case_versioned(db, case_id, visa_case.version, set_fields):
        await raise_version_conflict(db, case_id, visa_case.version)
    logger.info(f"Document '{visa_case.documents[document_index].name}' marked uploaded on visa case {case_id}.")
    return await require_case(db, case_id)


async def set_checklist_item_completed(
    db: AsyncIOMotorDatabase,
    case_id: str,
    item_index: int,
    command: SetChecklistItemCommand,
    now: Optional[datetime.datetime] = None,
) -> VisaCaseDB:
    now = now or utcnow()
    visa_case = await require_case(db, case_id)
    ensure_unlocked(visa_case, "update a checklist item")
    ensure_index(visa_case, "checklist item", item_index, len(visa_case.checklist_items))

    prefix = f"checklist_items.{item_index}"
    set_fields = {
        f"{prefix}.completed": command.completed,
        f"{prefix}.completed_date": now if command.completed else None,
        "updated_at": now,
    }
    if command.notes is not None:
        set_fields[f"{prefix}.notes"] = command.notes

    if not await visa_cases_store.update_visa_case_versioned(db, case_id, visa_case.version, set_fields):
        await raise_version_conflict(db, case_id, visa_case.version)
    return await require_case(db, case_id)


async def delete_case(db: AsyncIOMotorDatabase, case_id: str) -> None:
    """Administrative hard delete."""
    if not await visa_cases_store.delete_visa_case(db, case_id):
        raise VisaCaseNotFoundError(case_id)
