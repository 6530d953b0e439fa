import datetime

import pytest

from visa_case_service.app.service import lifecycle
from visa_case_service.app.service import visa_cases as handlers
from visa_case_service.app.service.reports import build_visa_type_report


async def _case_at(db, create_command, created, visa_type, path=()):
    visa_case = await handlers.create_case(db, create_command(visa_type=visa_type), now=created)
    for status in path:
        await lifecycle.transition(db, visa_case.case_id, status, now=created)
    return visa_case


@pytest.mark.asyncio
async def test_visa_type_report_counts_and_rates(mongo_db, create_command, now):
    await _case_at(mongo_db, create_command, now, "tourist", ["submitted", "in-process", "approved"])
    await _case_at(mongo_db, create_command, now, "tourist", ["submitted", "in-process", "rejected"])
    await _case_at(mongo_db, create_command, now, "tourist", ["submitted"])
    await _case_at(mongo_db, create_command, now, "work", ["submitted", "in-process"])
    await _case_at(mongo_db, create_command, now, "work")
    await _case_at(mongo_db, create_command, now, "student", ["submitted", "in-process", "approved"])

    report = await build_visa_type_report(mongo_db, end=now + datetime.timedelta(days=1))

    assert [entry.visa_type for entry in report.visa_types][:2] == ["tourist", "work"]
    tourist = report.visa_types[0]
    assert (tourist.total, tourist.approved, tourist.rejected, tourist.submitted) == (3, 1, 1, 1)
    assert (tourist.success_rate, tourist.rejection_rate, tourist.pending_rate) == (33, 33, 33)

    work = report.visa_types[1]
    assert (work.total, work.in_process, work.draft) == (2, 1, 1)
    assert work.pending_rate == 50
    assert work.success_rate == 0

    student = report.visa_types[2]
    assert student.success_rate == 100


@pytest.mark.asyncio
async def test_visa_type_report_date_range(mongo_db, create_command, now):
    await _case_at(mongo_db, create_command, now - datetime.timedelta(days=400), "tourist")
    await _case_at(mongo_db, create_command, now, "business")

    default_window = await build_visa_type_report(mongo_db, end=now)
    assert [entry.visa_type for entry in default_window.visa_types] == ["business"]

    explicit = await build_visa_type_report(mongo_db, start=now - datetime.timedelta(days=500), end=now)
    assert sorted(entry.visa_type for entry in explicit.visa_types) == ["business", "tourist"]


@pytest.mark.asyncio
async def test_visa_type_report_empty(mongo_db, now):
    report = await build_visa_type_report(mongo_db, end=now)
    assert report.visa_types == []
