"""
Reminder sweep.

Meant to be triggered periodically (scheduler CLI or the sweep endpoint). Each
due, incomplete reminder is completed exactly once and produces one
deadline-warning alert on its case. Cases are handled independently: one case
failing or losing a version race never stops the rest of the sweep.
"""
import datetime
import logging
from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, Field

from visa_case_service.app.models import Alert, Reminder, VisaCaseDB
from visa_case_service.app.models.common import UTCDateTime, utcnow
from visa_case_service.app.models.enums import AlertSeverity, AlertType
from visa_case_service.app.observability import (
    batch_job_failures_counter,
    reminders_triggered_counter,
    tracer,
)
from visa_case_service.app.service.exceptions import PersistenceError
from visa_case_service.infrastructure.database import visa_cases_store

logger = logging.getLogger(__name__)


class TriggeredReminder(BaseModel):
    case_id: str
    client_id: str
    reminder: str
    due_date: UTCDateTime


class SweepError(BaseModel):
    case_id: str
    error: str


class ReminderSweepResult(BaseModel):
    triggered_count: int = 0
    triggered_reminders: List[TriggeredReminder] = Field(default_factory=list)
    errors: List[SweepError] = Field(default_factory=list)


def complete_due_reminders(
    visa_case: VisaCaseDB, now: datetime.datetime
) -> Tuple[List[Reminder], List[Alert], List[Reminder]]:
    """
    Returns (all reminders after completion, alerts to append, reminders fired).
    Works on copies; the given case is left untouched.
    """
    reminders = [reminder.model_copy() for reminder in visa_case.reminders]
    new_alerts: List[Alert] = []
    fired: List[Reminder] = []
    for reminder in reminders:
        if reminder.completed or reminder.due_date > now:
            continue
        reminder.completed = True
        reminder.completed_date = now
        fired.append(reminder)
        new_alerts.append(
            Alert(
                type=AlertType.DEADLINE_WARNING,
                message=f"Reminder: {reminder.message}",
                severity=AlertSeverity.WARNING,
                triggered_date=now,
                resolved=False,
            )
        )
    return reminders, new_alerts, fired


async def run_reminder_sweep(db: AsyncIOMotorDatabase, now: Optional[datetime.datetime] = None) -> ReminderSweepResult:
    now = now or utcnow()
    result = ReminderSweepResult()

    with tracer.start_as_current_span("reminder_sweep") as span:
        candidates = await visa_cases_store.find_cases_with_due_reminders(db, now)
        span.set_attribute("reminder_sweep.candidate_cases", len(candidates))
        logger.info(f"Reminder sweep at {now.isoformat()}: {len(candidates)} case(s) with due reminders.")

        for visa_case in candidates:
            reminders, new_alerts, fired = complete_due_reminders(visa_case, now)
            if not fired:
                continue
            try:
                applied = await visa_cases_store.update_visa_case_versioned(
                    db,
                    visa_case.case_id,
                    visa_case.version,
                    {"reminders": [r.model_dump() for r in reminders], "updated_at": now},
                    push_fields={"alerts": {"$each": [a.model_dump() for a in new_alerts]}},
                )
            except PersistenceError as e:
                logger.error(f"Reminder sweep failed to update visa case {visa_case.case_id}: {e}")
                batch_job_failures_counter.add(1, {"job": "reminder_sweep", "reason": "persistence"})
                result.errors.append(SweepError(case_id=visa_case.case_id, error=str(e)))
                continue
            except Exception as e:
                logger.error(f"Unexpected error sweeping visa case {visa_case.case_id}: {e}", exc_info=True)
                batch_job_failures_counter.add(1, {"job": "reminder_sweep", "reason": "unexpected"})
                result.errors.append(SweepError(case_id=visa_case.case_id, error=str(e)))
                continue

            if not applied:
                logger.warning(f"Visa case {visa_case.case_id} changed during the sweep; its reminders stay pending.")
                batch_job_failures_counter.add(1, {"job": "reminder_sweep", "reason": "conflict"})
                result.errors.append(
                    SweepError(
                        case_id=visa_case.case_id,
                        error=f"Concurrent update detected at version {visa_case.version}",
                    )
                )
                continue

            for reminder in fired:
                result.triggered_reminders.append(
                    TriggeredReminder(
                        case_id=visa_case.case_id,
                        client_id=visa_case.client_id,
                        reminder=reminder.message,
                        due_date=reminder.due_date,
                    )
                )

        result.triggered_count = len(result.triggered_reminders)
        reminders_triggered_counter.add(result.triggered_count)
        span.set_attribute("reminder_sweep.triggered", result.triggered_count)
        span.set_attribute("reminder_sweep.errors", len(result.errors))

    logger.info(f"Reminder sweep finished: {result.triggered_count} triggered, {len(result.errors)} error(s).")
    return result
