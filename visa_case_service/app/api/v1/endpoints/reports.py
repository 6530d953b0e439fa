# API Router for reports
import datetime
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from visa_case_service.app.api.errors import domain_error_to_http
from visa_case_service.app.models.common import ensure_utc
from visa_case_service.app.service.exceptions import BaseVisaCaseError
from visa_case_service.app.service.reports import VisaTypeReport, build_visa_type_report
from visa_case_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/reports/visa-types", response_model=VisaTypeReport, tags=["Reports"])
async def visa_type_report_api(
    start: Optional[datetime.datetime] = None,
    end: Optional[datetime.datetime] = None,
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if start and end and ensure_utc(start) > ensure_utc(end):
        raise HTTPException(status_code=400, detail="start must not be after end.")
    try:
        return await build_visa_type_report(
            db,
            start=ensure_utc(start) if start else None,
            end=ensure_utc(end) if end else None,
        )
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, "Error building visa type report")
    except Exception as e:
        logger.error(f"Error building visa type report: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to build visa type report.")
