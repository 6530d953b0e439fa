import datetime
from unittest.mock import AsyncMock, patch

import pytest

from visa_case_service.app.service import lifecycle
from visa_case_service.app.service import visa_cases as handlers
from visa_case_service.app.service.commands.models import AddNoteCommand, AddReminderCommand
from visa_case_service.app.service.exceptions import PersistenceError
from visa_case_service.app.service.reminders import complete_due_reminders, run_reminder_sweep


async def _case_with_reminder(db, create_command, now, due, message="Book biometrics appointment", **overrides):
    visa_case = await handlers.create_case(db, create_command(**overrides), now=now)
    return await handlers.add_reminder(
        db, visa_case.case_id, AddReminderCommand(type="general", message=message, due_date=due), now=now
    )


@pytest.mark.asyncio
async def test_due_reminder_is_completed_and_raises_alert(mongo_db, create_command, now):
    visa_case = await _case_with_reminder(mongo_db, create_command, now, due=now - datetime.timedelta(days=1))

    result = await run_reminder_sweep(mongo_db, now=now)

    assert result.triggered_count == 1
    assert result.errors == []
    triggered = result.triggered_reminders[0]
    assert triggered.case_id == visa_case.case_id
    assert triggered.client_id == "CL-1001"
    assert triggered.reminder == "Book biometrics appointment"

    stored = await handlers.get_case(mongo_db, visa_case.case_id)
    reminder = stored.reminders[-1]
    assert reminder.completed is True
    assert reminder.completed_date == now
    assert [r.completed for r in stored.reminders[:3]] == [False, False, False]

    assert len(stored.alerts) == 1
    alert = stored.alerts[0]
    assert alert.type == "deadline-warning"
    assert alert.severity == "warning"
    assert alert.message == "Reminder: Book biometrics appointment"
    assert alert.triggered_date == now
    assert alert.resolved is False
    assert stored.version == visa_case.version + 1


@pytest.mark.asyncio
async def test_sweep_is_at_most_once(mongo_db, create_command, now):
    visa_case = await _case_with_reminder(mongo_db, create_command, now, due=now - datetime.timedelta(hours=2))

    first = await run_reminder_sweep(mongo_db, now=now)
    second = await run_reminder_sweep(mongo_db, now=now + datetime.timedelta(minutes=1))
    third = await run_reminder_sweep(mongo_db, now=now + datetime.timedelta(minutes=2))

    assert first.triggered_count == 1
    assert second.triggered_count == 0
    assert third.triggered_count == 0
    stored = await handlers.get_case(mongo_db, visa_case.case_id)
    assert len(stored.alerts) == 1


@pytest.mark.asyncio
async def test_reminder_due_exactly_now_fires_and_future_does_not(mongo_db, create_command, now):
    await _case_with_reminder(mongo_db, create_command, now, due=now, message="Due now")
    await _case_with_reminder(
        mongo_db, create_command, now, due=now + datetime.timedelta(seconds=1), message="Not yet", client_id="CL-2"
    )

    result = await run_reminder_sweep(mongo_db, now=now)

    assert [t.reminder for t in result.triggered_reminders] == ["Due now"]


@pytest.mark.asyncio
async def test_seeded_reminders_fire_after_their_offsets(mongo_db, create_command, now):
    visa_case = await handlers.create_case(mongo_db, create_command(), now=now)

    result = await run_reminder_sweep(mongo_db, now=now + datetime.timedelta(days=22))

    assert sorted(t.reminder for t in result.triggered_reminders) == [
        "Follow up on application status after 2 weeks",
        "Prepare for visa interview (if required)",
    ]
    stored = await handlers.get_case(mongo_db, visa_case.case_id)
    assert len(stored.alerts) == 2


@pytest.mark.asyncio
async def test_sweep_runs_on_locked_cases(mongo_db, create_command, now):
    visa_case = await _case_with_reminder(mongo_db, create_command, now, due=now - datetime.timedelta(days=1))
    await lifecycle.lock(mongo_db, visa_case.case_id, now=now)

    result = await run_reminder_sweep(mongo_db, now=now)

    assert result.triggered_count == 1


@pytest.mark.asyncio
async def test_conflicting_writer_leaves_reminder_pending(mongo_db, create_command, now):
    first = await _case_with_reminder(mongo_db, create_command, now, due=now - datetime.timedelta(days=1))
    second = await _case_with_reminder(
        mongo_db, create_command, now, due=now - datetime.timedelta(days=1), message="Second", client_id="CL-2"
    )

    from visa_case_service.infrastructure.database import visa_cases_store
    real_update = visa_cases_store.update_visa_case_versioned

    async def racing_update(db, case_id, expected_version, set_fields, push_fields=None):
        if case_id == first.case_id:
            # Another writer bumps the version between the read and this write.
            await handlers.add_note(db, case_id, AddNoteCommand(note="Concurrent edit"))
        return await real_update(db, case_id, expected_version, set_fields, push_fields)

    with patch(
        "visa_case_service.app.service.reminders.visa_cases_store.update_visa_case_versioned",
        side_effect=racing_update,
    ):
        result = await run_reminder_sweep(mongo_db, now=now)

    assert [t.case_id for t in result.triggered_reminders] == [second.case_id]
    assert [e.case_id for e in result.errors] == [first.case_id]

    stored_first = await handlers.get_case(mongo_db, first.case_id)
    assert stored_first.reminders[-1].completed is False
    assert stored_first.alerts == []
    assert stored_first.notes == ["Concurrent edit"]

    retry = await run_reminder_sweep(mongo_db, now=now)
    assert [t.case_id for t in retry.triggered_reminders] == [first.case_id]


@pytest.mark.asyncio
async def test_persistence_failure_is_isolated_per_case(mongo_db, create_command, now):
    first = await _case_with_reminder(mongo_db, create_command, now, due=now - datetime.timedelta(days=1))
    second = await _case_with_reminder(
        mongo_db, create_command, now, due=now - datetime.timedelta(days=1), client_id="CL-2"
    )

    from visa_case_service.infrastructure.database import visa_cases_store
    real_update = visa_cases_store.update_visa_case_versioned

    async def flaky_update(db, case_id, *args, **kwargs):
        if case_id == first.case_id:
            raise PersistenceError("update_visa_case_versioned failed: connection reset")
        return await real_update(db, case_id, *args, **kwargs)

    with patch(
        "visa_case_service.app.service.reminders.visa_cases_store.update_visa_case_versioned",
        new=AsyncMock(side_effect=flaky_update),
    ):
        result = await run_reminder_sweep(mongo_db, now=now)

    assert result.triggered_count == 1
    assert result.triggered_reminders[0].case_id == second.case_id
    assert result.errors[0].case_id == first.case_id
    assert "connection reset" in result.errors[0].error


@pytest.mark.asyncio
async def test_unexpected_error_is_isolated_per_case(mongo_db, create_command, now):
    first = await _case_with_reminder(mongo_db, create_command, now, due=now - datetime.timedelta(days=1))
    second = await _case_with_reminder(
        mongo_db, create_command, now, due=now - datetime.timedelta(days=1), client_id="CL-2"
    )

    from visa_case_service.infrastructure.database import visa_cases_store
    real_update = visa_cases_store.update_visa_case_versioned

    async def broken_update(db, case_id, *args, **kwargs):
        if case_id == first.case_id:
            raise RuntimeError("unexpected driver state")
        return await real_update(db, case_id, *args, **kwargs)

    with patch(
        "visa_case_service.app.service.reminders.visa_cases_store.update_visa_case_versioned",
        new=AsyncMock(side_effect=broken_update),
    ):
        result = await run_reminder_sweep(mongo_db, now=now)

    assert [t.case_id for t in result.triggered_reminders] == [second.case_id]
    assert [(e.case_id, e.error) for e in result.errors] == [(first.case_id, "unexpected driver state")]
    stored_first = await handlers.get_case(mongo_db, first.case_id)
    assert stored_first.reminders[-1].completed is False


def test_complete_due_reminders_leaves_input_untouched(now):
    from visa_case_service.app.models import Reminder, VisaCaseDB

    visa_case = VisaCaseDB(
        case_id="VC-2024-1000", client_id="CL-1", client_name="A", client_email="a@gmail.com",
        visa_type="tourist", country="Spain",
        reminders=[
            Reminder(type="general", message="Past", due_date=now - datetime.timedelta(days=1)),
            Reminder(type="general", message="Done", due_date=now - datetime.timedelta(days=2), completed=True),
            Reminder(type="general", message="Future", due_date=now + datetime.timedelta(days=1)),
        ],
    )

    reminders, alerts, fired = complete_due_reminders(visa_case, now)

    assert [r.message for r in fired] == ["Past"]
    assert [r.completed for r in reminders] == [True, True, False]
    assert [a.message for a in alerts] == ["Reminder: Past"]
    assert visa_case.reminders[0].completed is False
