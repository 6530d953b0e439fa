# Case lifecycle: status transitions, lock/unlock and the timeline
import datetime
import logging
from typing import Dict, FrozenSet, Optional, Union

from motor.motor_asyncio import AsyncIOMotorDatabase
from opentelemetry import trace

from visa_case_service.app.models import TimelineEntry, VisaCaseDB
from visa_case_service.app.models.common import utcnow
from visa_case_service.app.models.enums import CaseStatus
from visa_case_service.app.observability import case_status_transitions_counter
from visa_case_service.app.service.exceptions import (
    CaseAlreadyLockedError,
    CaseNotLockedError,
    InvalidTransitionError,
)
from visa_case_service.app.service.visa_cases import (
    ensure_unlocked,
    raise_version_conflict,
    require_case,
)
from visa_case_service.infrastructure.database import visa_cases_store

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[CaseStatus, FrozenSet[CaseStatus]] = {
    CaseStatus.DRAFT: frozenset({CaseStatus.SUBMITTED}),
    CaseStatus.SUBMITTED: frozenset({CaseStatus.IN_PROCESS}),
    CaseStatus.IN_PROCESS: frozenset({CaseStatus.APPROVED, CaseStatus.REJECTED}),
    CaseStatus.APPROVED: frozenset(),
    CaseStatus.REJECTED: frozenset(),
}

TERMINAL_STATUSES = frozenset({CaseStatus.APPROVED, CaseStatus.REJECTED})


def can_transition(current: CaseStatus, requested: CaseStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS[current]


def build_timeline_entry(visa_case: VisaCaseDB, new_status: CaseStatus, now: datetime.datetime) -> TimelineEntry:
    titles = {
        CaseStatus.SUBMITTED: ("Submitted to Embassy", f"Application submitted to {visa_case.country} Embassy"),
        CaseStatus.IN_PROCESS: ("Processing Started", f"Application under review by {visa_case.country} Embassy"),
        CaseStatus.APPROVED: ("Visa Approved", f"Visa approved by {visa_case.country} Embassy"),
        CaseStatus.REJECTED: ("Visa Rejected", f"Visa application rejected by {visa_case.country} Embassy"),
    }
    title, description = titles.get(
        new_status,
        (f"Status changed to {new_status.value}", f"Status changed from {visa_case.status} to {new_status.value}"),
    )
    return TimelineEntry(date=now, status=new_status, title=title, description=description)


async def transition(
    db: AsyncIOMotorDatabase,
    case_id: str,
    new_status: Union[CaseStatus, str],
    now: Optional[datetime.datetime] = None,
) -> VisaCaseDB:
    """
    Moves a case along draft -> submitted -> in-process -> approved | rejected.

    Requesting the status the case already has succeeds without writing. Every
    real transition is a single update guarded by the case version that sets the
    status, stamps submission/decision dates the first time they apply and pushes
    one timeline entry.
    """
    current_span = trace.get_current_span()
    current_span.set_attribute("visa_case.id", case_id)

    new_status = CaseStatus(new_status)
    now = now or utcnow()
    visa_case = await require_case(db, case_id)
    current_status = CaseStatus(visa_case.status)

    if current_status == new_status:
        logger.info(f"Visa case {case_id} already in status '{new_status.value}'; nothing to do.")
        return visa_case

    if not can_transition(current_status, new_status):
        raise InvalidTransitionError(case_id, current_status.value, new_status.value)
    ensure_unlocked(visa_case, f"move to '{new_status.value}'")

    set_fields = {"status": new_status.value, "updated_at": now}
    if new_status == CaseStatus.SUBMITTED and visa_case.submission_date is None:
        set_fields["submission_date"] = now
    if new_status in TERMINAL_STATUSES and visa_case.decision_date is None:
        set_fields["decision_date"] = now

    entry = build_timeline_entry(visa_case, new_status, now)
    if not await visa_cases_store.update_visa_case_versioned(
        db, case_id, visa_case.version, set_fields, push_fields={"timeline": entry.model_dump()}
    ):
        await raise_version_conflict(db, case_id, visa_case.version)

    case_status_transitions_counter.add(1, {"from_status": current_status.value, "to_status": new_status.value})
    current_span.add_event("VisaCaseStatusChanged", {"from": current_status.value, "to": new_status.value})
    logger.info(f"Visa case {case_id} moved from '{current_status.value}' to '{new_status.value}'.")
    return await require_case(db, case_id)


async def lock(db: AsyncIOMotorDatabase, case_id: str, now: Optional[datetime.datetime] = None) -> VisaCaseDB:
    now = now or utcnow()
    visa_case = await require_case(db, case_id)
    if visa_case.locked:
        raise CaseAlreadyLockedError(case_id)

    if not await visa_cases_store.update_visa_case_versioned(
        db, case_id, visa_case.version, {"locked": True, "locked_date": now, "updated_at": now}
    ):
        await raise_version_conflict(db, case_id, visa_case.version)
    logger.info(f"Visa case {case_id} locked.")
    return await require_case(db, case_id)


async def unlock(db: AsyncIOMotorDatabase, case_id: str, now: Optional[datetime.datetime] = None) -> VisaCaseDB:
    now = now or utcnow()
    visa_case = await require_case(db, case_id)
    if not visa_case.locked:
        raise CaseNotLockedError(case_id)

    if not await visa_cases_store.update_visa_case_versioned(
        db, case_id, visa_case.version, {"locked": False, "locked_date": None, "updated_at": now}
    ):
        await raise_version_conflict(db, case_id, visa_case.version)
    logger.info(f"Visa case {case_id} unlocked.")
    return await require_case(db, case_id)
