# API Router for Visa Cases
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from motor.motor_asyncio import AsyncIOMotorDatabase

from visa_case_service.app.api.errors import domain_error_to_http
from visa_case_service.app.models import VisaCaseDB
from visa_case_service.app.models.enums import CaseStatus
from visa_case_service.app.service import lifecycle
from visa_case_service.app.service import visa_cases as visa_case_handlers
from visa_case_service.app.service.commands import models as command_models
from visa_case_service.app.service.exceptions import BaseVisaCaseError
from visa_case_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/visa-cases", response_model=VisaCaseDB, status_code=201, tags=["Visa Cases"])
async def create_visa_case_api(
    request_data: command_models.CreateVisaCaseCommand = Body(...),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    """Open a draft case seeded with the documents, checklist and reminders of its visa type."""
    try:
        return await visa_case_handlers.create_case(db, request_data)
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, f"Error creating visa case for client {request_data.client_id}")
    except Exception as e:
        logger.error(f"Unexpected error creating visa case: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred while creating the visa case.")


@router.get("/visa-cases", response_model=List[VisaCaseDB], tags=["Visa Cases"])
async def list_visa_cases_api(
    status: Optional[CaseStatus] = None,
    client_id: Optional[str] = None,
    search: Optional[str] = None,
    locked: Optional[bool] = None,
    limit: int = Query(50, ge=1, le=500),
    skip: int = Query(0, ge=0),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await visa_case_handlers.list_cases(
            db,
            status=status.value if status else None,
            client_id=client_id,
            search=search,
            locked=locked,
            limit=limit,
            skip=skip,
        )
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, "Error listing visa cases")
    except Exception as e:
        logger.error(f"Error listing visa cases: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list visa cases")


@router.get("/visa-cases/{case_id}", response_model=VisaCaseDB, tags=["Visa Cases"])
async def get_visa_case_api(case_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        return await visa_case_handlers.get_case(db, case_id)
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, f"Error retrieving visa case {case_id}")
    except Exception as e:
        logger.error(f"Error retrieving visa case {case_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to retrieve visa case {case_id}")


@router.patch("/visa-cases/{case_id}", response_model=VisaCaseDB, tags=["Visa Cases"])
async def update_visa_case_api(
    case_id: str,
    request_data: command_models.UpdateVisaCaseDetailsCommand = Body(...),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await visa_case_handlers.update_case_details(db, case_id, request_data)
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, f"Error updating visa case {case_id}")
    except Exception as e:
        logger.error(f"Unexpected error updating visa case {case_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred while updating the visa case.")


@router.delete("/visa-cases/{case_id}", status_code=204, tags=["Visa Cases"])
async def delete_visa_case_api(case_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        await visa_case_handlers.delete_case(db, case_id)
        return Response(status_code=204)
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, f"Error deleting visa case {case_id}")
    except Exception as e:
        logger.error(f"Unexpected error deleting visa case {case_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred while deleting the visa case.")


@router.post("/visa-cases/{case_id}/status", response_model=VisaCaseDB, tags=["Visa Case Lifecycle"])
async def transition_visa_case_api(
    case_id: str,
    request_data: command_models.TransitionStatusCommand = Body(...),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await lifecycle.transition(db, case_id, request_data.status)
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, f"Error moving visa case {case_id} to {request_data.status}")
    except Exception as e:
        logger.error(f"Unexpected error changing status of visa case {case_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred while changing the case status.")


@router.post("/visa-cases/{case_id}/lock", response_model=VisaCaseDB, tags=["Visa Case Lifecycle"])
async def lock_visa_case_api(case_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        return await lifecycle.lock(db, case_id)
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, f"Error locking visa case {case_id}")
    except Exception as e:
        logger.error(f"Unexpected error locking visa case {case_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred while locking the case.")


@router.post("/visa-cases/{case_id}/unlock", response_model=VisaCaseDB, tags=["Visa Case Lifecycle"])
async def unlock_visa_case_api(case_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        return await lifecycle.unlock(db, case_id)
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, f"Error unlocking visa case {case_id}")
    except Exception as e:
        logger.error(f"Unexpected error unlocking visa case {case_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred while unlocking the case.")


@router.post("/visa-cases/{case_id}/notes", response_model=VisaCaseDB, status_code=201, tags=["Visa Cases"])
async def add_note_api(
    case_id: str,
    request_data: command_models.AddNoteCommand = Body(...),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await visa_case_handlers.add_note(db, case_id, request_data)
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, f"Error adding note to visa case {case_id}")
    except Exception as e:
        logger.error(f"Unexpected error adding note to visa case {case_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred while adding the note.")


@router.post("/visa-cases/{case_id}/reminders", response_model=VisaCaseDB, status_code=201, tags=["Visa Cases"])
async def add_reminder_api(
    case_id: str,
    request_data: command_models.AddReminderCommand = Body(...),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await visa_case_handlers.add_reminder(db, case_id, request_data)
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, f"Error adding reminder to visa case {case_id}")
    except Exception as e:
        logger.error(f"Unexpected error adding reminder to visa case {case_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred while adding the reminder.")


@router.put("/visa-cases/{case_id}/documents/{document_index}", response_model=VisaCaseDB, tags=["Visa Cases"])
async def mark_document_uploaded_api(
    case_id: str,
    document_index: int,
    request_data: command_models.MarkDocumentUploadedCommand = Body(...),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await visa_case_handlers.mark_document_uploaded(db, case_id, document_index, request_data)
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, f"Error updating document {document_index} of visa case {case_id}")
    except Exception as e:
        logger.error(f"Unexpected error updating document {document_index} of visa case {case_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred while updating the document.")


@router.put("/visa-cases/{case_id}/checklist/{item_index}", response_model=VisaCaseDB, tags=["Visa Cases"])
async def set_checklist_item_api(
    case_id: str,
    item_index: int,
    request_data: command_models.SetChecklistItemCommand = Body(...),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await visa_case_handlers.set_checklist_item_completed(db, case_id, item_index, request_data)
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, f"Error updating checklist item {item_index} of visa case {case_id}")
    except Exception as e:
        logger.error(f"Unexpected error updating checklist item {item_index} of visa case {case_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred while updating the checklist item.")
