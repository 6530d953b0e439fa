# Maps service exceptions onto HTTP responses
import logging

from fastapi import HTTPException

from visa_case_service.app.service.exceptions import (
    BaseVisaCaseError,
    CaseAlreadyLockedError,
    CaseLockedError,
    CaseNotLockedError,
    ConcurrencyConflictError,
    DocumentAlertNotFoundError,
    IndexOutOfRangeError,
    InvalidTransitionError,
    PersistenceError,
    VisaCaseNotFoundError,
)

logger = logging.getLogger(__name__)

_STATUS_CODES = (
    (VisaCaseNotFoundError, 404),
    (DocumentAlertNotFoundError, 404),
    (InvalidTransitionError, 409),
    (CaseLockedError, 409),
    (CaseAlreadyLockedError, 409),
    (CaseNotLockedError, 409),
    (ConcurrencyConflictError, 409),
    (IndexOutOfRangeError, 400),
    (PersistenceError, 503),
)


def domain_error_to_http(error: BaseVisaCaseError, context: str) -> HTTPException:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            break
    else:
        status_code = 500

    if status_code >= 500:
        logger.error(f"{context}: {error}", exc_info=True)
    else:
        logger.warning(f"{context}: {error}")
    return HTTPException(status_code=status_code, detail=str(error))
