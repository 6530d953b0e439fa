# Alert manager: append, resolve and query alerts embedded in visa cases
import datetime
import logging
from typing import Any, Dict, List, Optional, Union

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel

from visa_case_service.app.models import Alert, VisaCaseDB
from visa_case_service.app.models.common import UTCDateTime, utcnow
from visa_case_service.app.service.commands.models import AlertInput
from visa_case_service.app.service.exceptions import AlertIndexOutOfRangeError, VisaCaseNotFoundError
from visa_case_service.app.service.visa_cases import raise_version_conflict, require_case
from visa_case_service.infrastructure.database import visa_cases_store

logger = logging.getLogger(__name__)


class CaseAlertView(BaseModel):
    """One alert flattened out of its case, with enough case context to act on it."""
    case_id: str
    client_name: str
    case_status: str
    alert_index: int
    type: str
    message: str
    severity: str
    triggered_date: UTCDateTime
    resolved: bool
    resolved_date: Optional[UTCDateTime] = None


async def append_alert(
    db: AsyncIOMotorDatabase,
    case_id: str,
    alert: Union[AlertInput, Dict[str, Any]],
    now: Optional[datetime.datetime] = None,
) -> VisaCaseDB:
    """Alerts are appended even to locked cases. Raises pydantic ValidationError for bad input."""
    if not isinstance(alert, AlertInput):
        alert = AlertInput.model_validate(alert)
    now = now or utcnow()

    new_alert = Alert(
        type=alert.type,
        message=alert.message,
        severity=alert.severity,
        triggered_date=now,
        resolved=False,
    )
    updated = await visa_cases_store.push_to_case(db, case_id, "alerts", new_alert.model_dump(), now)
    if updated is None:
        raise VisaCaseNotFoundError(case_id)
    logger.info(f"Alert '{new_alert.type}' ({new_alert.severity}) appended to visa case {case_id}.")
    return updated


async def resolve_alert(
    db: AsyncIOMotorDatabase,
    case_id: str,
    alert_index: int,
    resolved: bool,
    now: Optional[datetime.datetime] = None,
) -> VisaCaseDB:
    now = now or utcnow()
    visa_case = await require_case(db, case_id)
    if alert_index < 0 or alert_index >= len(visa_case.alerts):
        raise AlertIndexOutOfRangeError(case_id, alert_index, len(visa_case.alerts))

    alert = visa_case.alerts[alert_index]
    set_fields: Dict[str, Any] = {
        f"alerts.{alert_index}.resolved": resolved,
        "updated_at": now,
    }
    # resolved_date is stamped once; reopening keeps the historical value.
    if resolved and not alert.resolved:
        set_fields[f"alerts.{alert_index}.resolved_date"] = now

    if not await visa_cases_store.update_visa_case_versioned(db, case_id, visa_case.version, set_fields):
        await raise_version_conflict(db, case_id, visa_case.version)
    logger.info(f"Alert {alert_index} on visa case {case_id} set to resolved={resolved}.")
    return await require_case(db, case_id)


async def query_alerts(
    db: AsyncIOMotorDatabase,
    resolved: Optional[bool] = None,
    severity: Optional[str] = None,
    case_id: Optional[str] = None,
) -> List[CaseAlertView]:
    alert_match: Dict[str, Any] = {}
    if resolved is not None:
        alert_match["resolved"] = resolved
    if severity:
        alert_match["severity"] = severity

    query_filter: Dict[str, Any] = {}
    if case_id:
        query_filter["case_id"] = case_id
    if alert_match:
        query_filter["alerts"] = {"$elemMatch": alert_match}

    views: List[CaseAlertView] = []
    for visa_case in await visa_cases_store.list_all_visa_cases(db, query_filter):
        for index, alert in enumerate(visa_case.alerts):
            if resolved is not None and alert.resolved != resolved:
                continue
            if severity and alert.severity != severity:
                continue
            views.append(
                CaseAlertView(
                    case_id=visa_case.case_id,
                    client_name=visa_case.client_name,
                    case_status=visa_case.status,
                    alert_index=index,
                    **alert.model_dump(),
                )
            )
    return views
