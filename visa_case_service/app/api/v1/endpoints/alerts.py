# API Router for case alerts and the reminder sweep
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from visa_case_service.app.api.errors import domain_error_to_http
from visa_case_service.app.models import VisaCaseDB
from visa_case_service.app.models.enums import AlertSeverity
from visa_case_service.app.service import alerts as alert_manager
from visa_case_service.app.service.commands import models as command_models
from visa_case_service.app.service.exceptions import BaseVisaCaseError
from visa_case_service.app.service.reminders import ReminderSweepResult, run_reminder_sweep
from visa_case_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/visa-cases/alerts", response_model=List[alert_manager.CaseAlertView], tags=["Alerts"])
async def query_alerts_api(
    resolved: Optional[bool] = None,
    severity: Optional[AlertSeverity] = None,
    case_id: Optional[str] = None,
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await alert_manager.query_alerts(
            db, resolved=resolved, severity=severity.value if severity else None, case_id=case_id
        )
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, "Error querying alerts")
    except Exception as e:
        logger.error(f"Error querying alerts: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to query alerts")


@router.post("/visa-cases/alerts", response_model=VisaCaseDB, status_code=201, tags=["Alerts"])
async def append_alert_api(
    request_data: command_models.AppendAlertCommand = Body(...),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await alert_manager.append_alert(db, request_data.case_id, request_data.alert)
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, f"Error appending alert to visa case {request_data.case_id}")
    except Exception as e:
        logger.error(f"Unexpected error appending alert to visa case {request_data.case_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred while appending the alert.")


@router.put("/visa-cases/alerts", response_model=VisaCaseDB, tags=["Alerts"])
async def resolve_alert_api(
    request_data: command_models.ResolveAlertCommand = Body(...),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await alert_manager.resolve_alert(
            db, request_data.case_id, request_data.alert_index, request_data.resolved
        )
    except BaseVisaCaseError as e:
        raise domain_error_to_http(
            e, f"Error updating alert {request_data.alert_index} of visa case {request_data.case_id}"
        )
    except Exception as e:
        logger.error(f"Unexpected error updating alert on visa case {request_data.case_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred while updating the alert.")


@router.post("/visa-cases/reminders/sweep", response_model=ReminderSweepResult, tags=["Reminders"])
async def run_reminder_sweep_api(db: AsyncIOMotorDatabase = Depends(get_db)):
    """Complete every due reminder and raise its deadline-warning alert. Safe to call repeatedly."""
    try:
        return await run_reminder_sweep(db)
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, "Reminder sweep failed")
    except Exception as e:
        logger.error(f"Unexpected error during reminder sweep: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred during the reminder sweep.")
