# Visa type statistics report
import datetime
import logging
from typing import Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel

from visa_case_service.app.models.common import UTCDateTime, utcnow
from visa_case_service.app.models.enums import CaseStatus
from visa_case_service.infrastructure.database import visa_cases_store

logger = logging.getLogger(__name__)


class VisaTypeStats(BaseModel):
    visa_type: str
    total: int = 0
    draft: int = 0
    submitted: int = 0
    in_process: int = 0
    approved: int = 0
    rejected: int = 0
    success_rate: int = 0
    rejection_rate: int = 0
    pending_rate: int = 0


class VisaTypeReport(BaseModel):
    start: UTCDateTime
    end: UTCDateTime
    visa_types: List[VisaTypeStats]


def _percent(part: int, total: int) -> int:
    # Half rounds up.
    return (part * 200 + total) // (2 * total) if total else 0


async def build_visa_type_report(
    db: AsyncIOMotorDatabase,
    start: Optional[datetime.datetime] = None,
    end: Optional[datetime.datetime] = None,
) -> VisaTypeReport:
    """
    Per visa type counts of cases created in [start, end]. Defaults to the
    twelve months up to now. Pending covers submitted and in-process cases.
    """
    end = end or utcnow()
    start = start or end - datetime.timedelta(days=365)

    visa_cases = await visa_cases_store.list_all_visa_cases(db, {"created_at": {"$gte": start, "$lte": end}})

    stats: Dict[str, VisaTypeStats] = {}
    for visa_case in visa_cases:
        visa_type = visa_case.visa_type or "Unknown"
        entry = stats.setdefault(visa_type, VisaTypeStats(visa_type=visa_type))
        entry.total += 1
        field_name = CaseStatus(visa_case.status).value.replace("-", "_")
        setattr(entry, field_name, getattr(entry, field_name) + 1)

    for entry in stats.values():
        entry.success_rate = _percent(entry.approved, entry.total)
        entry.rejection_rate = _percent(entry.rejected, entry.total)
        entry.pending_rate = _percent(entry.submitted + entry.in_process, entry.total)

    ordered = sorted(stats.values(), key=lambda s: s.total, reverse=True)
    logger.info(f"Visa type report built for {len(visa_cases)} case(s) across {len(ordered)} visa type(s).")
    return VisaTypeReport(start=start, end=end, visa_types=ordered)
