"""
Custom exceptions and error handling
"""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
import structlog
from typing import Any, Dict, Optional

logger = structlog.get_logger()

class CaseManagementException(Exception):
    """Base exception for the portal"""

    def __init__(self, message: str, error_code: str = None, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    @property
    def underlying_error(self) -> Optional[str]:
        """Text of the innermost chained cause, if any"""
        cause = self.__cause__
        if cause is None:
            return None
        while cause.__cause__ is not None:
            cause = cause.__cause__
        return str(cause)

class ValidationError(CaseManagementException):
    """Validation error"""
    pass

class NotFoundError(CaseManagementException):
    """Resource not found error"""
    pass

class PermissionError(CaseManagementException):
    """Permission denied error"""
    pass

class StorageError(CaseManagementException):
    """Object storage error"""
    pass

class RenderError(CaseManagementException):
    """PDF or HTML summary could not be built"""
    pass

class AttachmentFetchError(CaseManagementException):
    """A single document could not be resolved to bytes"""
    pass

class EmailDeliveryError(CaseManagementException):
    """Mail transport rejected or failed a message"""
    pass

class TransmissionError(CaseManagementException):
    """Base for failures of a case transmission send leg"""
    pass

class PrimarySendError(TransmissionError):
    """Sending the case packet to the back office failed"""
    pass

class ConfirmationSendError(TransmissionError):
    """Back office received the packet, the confirmation copy failed"""
    pass

def _status_code_for(exc: CaseManagementException) -> int:
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, PermissionError):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_500_INTERNAL_SERVER_ERROR

def error_envelope(message: str, error_code: str = None, error: str = None, details: Dict[str, Any] = None) -> Dict[str, Any]:
    """JSON body shared by every error response"""
    return {
        "erfolg": False,
        "nachricht": message,
        "fehler": error,
        "error_code": error_code,
        "details": details or {}
    }

async def case_management_exception_handler(request: Request, exc: CaseManagementException):
    """Handle custom case management exceptions"""
    status_code = _status_code_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Case management exception",
        error_code=exc.error_code,
        message=exc.message,
        error=exc.underlying_error,
        details=exc.details,
        path=request.url.path
    )

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(error_envelope(
            exc.message,
            error_code=exc.error_code,
            error=exc.underlying_error,
            details=exc.details
        ))
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors"""
    logger.error("Validation error", errors=exc.errors(), path=request.url.path)

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder(error_envelope(
            "Validation error",
            error_code="VALIDATION_ERROR",
            details={"validation_errors": exc.errors()}
        ))
    )

async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions"""
    logger.error("HTTP exception", status_code=exc.status_code, detail=exc.detail, path=request.url.path)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(str(exc.detail), error_code=f"HTTP_{exc.status_code}"),
        headers=getattr(exc, "headers", None)
    )
