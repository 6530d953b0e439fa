# API Router for the uploaded document register and document alerts
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from visa_case_service.app.api.errors import domain_error_to_http
from visa_case_service.app.models import DocumentAlertDB, UploadedDocumentDB
from visa_case_service.app.models.enums import (
    DocumentAlertStatus,
    DocumentAlertType,
    DocumentCategory,
    DocumentStatus,
)
from visa_case_service.app.service import documents as document_handlers
from visa_case_service.app.service.commands import models as command_models
from visa_case_service.app.service.document_audit import DocumentAuditResult, run_document_audit
from visa_case_service.app.service.exceptions import BaseVisaCaseError
from visa_case_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)
router = APIRouter()


# --- Document register ---

@router.get("/documents", response_model=List[UploadedDocumentDB], tags=["Documents"])
async def list_documents_api(
    client_id: Optional[str] = None,
    visa_case_id: Optional[str] = None,
    category: Optional[DocumentCategory] = None,
    status: Optional[DocumentStatus] = None,
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await document_handlers.list_documents(
            db,
            client_id=client_id,
            visa_case_id=visa_case_id,
            category=category.value if category else None,
            status=status.value if status else None,
        )
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, "Error listing documents")
    except Exception as e:
        logger.error(f"Error listing documents: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list documents.")


@router.post("/documents", response_model=UploadedDocumentDB, status_code=201, tags=["Documents"])
async def register_document_api(
    request_data: command_models.RegisterDocumentCommand = Body(...),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await document_handlers.register_document(db, request_data)
    except DuplicateKeyError:
        logger.warning(f"Document id {request_data.document_id} is already registered.")
        raise HTTPException(status_code=409, detail=f"Document '{request_data.document_id}' already exists.")
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, f"Error registering document {request_data.file_name}")
    except Exception as e:
        logger.error(f"Unexpected error registering document: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred while registering the document.")


# --- Document alerts ---

@router.get("/document-alerts", response_model=List[DocumentAlertDB], tags=["Document Alerts"])
async def list_document_alerts_api(
    status: Optional[DocumentAlertStatus] = None,
    client_id: Optional[str] = None,
    alert_type: Optional[DocumentAlertType] = None,
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await document_handlers.list_document_alerts(
            db,
            status=status.value if status else None,
            client_id=client_id,
            alert_type=alert_type.value if alert_type else None,
        )
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, "Error listing document alerts")
    except Exception as e:
        logger.error(f"Error listing document alerts: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list document alerts.")


@router.post("/document-alerts", response_model=DocumentAlertDB, status_code=201, tags=["Document Alerts"])
async def create_document_alert_api(
    request_data: command_models.CreateDocumentAlertCommand = Body(...),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await document_handlers.create_document_alert(db, request_data)
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, f"Error creating document alert for client {request_data.client_id}")
    except Exception as e:
        logger.error(f"Unexpected error creating document alert: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred while creating the document alert.")


@router.post("/document-alerts/audit", response_model=DocumentAuditResult, tags=["Document Alerts"])
async def run_document_audit_api(db: AsyncIOMotorDatabase = Depends(get_db)):
    """Scan for expired, expiring and missing documents and record new alerts."""
    try:
        return await run_document_audit(db)
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, "Document audit failed")
    except Exception as e:
        logger.error(f"Unexpected error during document audit: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred during the document audit.")


@router.put("/document-alerts/{alert_id}", response_model=DocumentAlertDB, tags=["Document Alerts"])
async def update_document_alert_status_api(
    alert_id: str,
    request_data: command_models.UpdateDocumentAlertStatusCommand = Body(...),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await document_handlers.update_document_alert_status(db, alert_id, request_data)
    except BaseVisaCaseError as e:
        raise domain_error_to_http(e, f"Error updating document alert {alert_id}")
    except Exception as e:
        logger.error(f"Unexpected error updating document alert {alert_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred while updating the document alert.")
