"""
coursehub/errors.py
Centralized error handling

ERROR RESPONSE STRUCTURE:
{
    "success": false,
    "error": {
        "code": "UNIQUE_ERROR_CODE",
        "message": "Human-readable description",
        "details": {} (optional)
    }
}

HTTP STATUS CODE DISCIPLINE:
- 400: Invalid input / missing upload
- 401: Authentication missing or bad credentials
- 403: Invalid token or insufficient role
- 404: Resource or route does not exist
- 409: Uniqueness conflict
- 413/415: Upload rejected
- 429: Rate limit exceeded
- 500: Internal only
"""

import logging
import uuid
from typing import Optional, Dict, Any

from fastapi import status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorCode:
    """Unique error codes for machine-readable error handling"""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NO_FILE = "NO_FILE"

    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    FORBIDDEN = "FORBIDDEN"

    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"

    EMAIL_EXISTS = "EMAIL_EXISTS"
    DUPLICATE_COURSE = "DUPLICATE_COURSE"

    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    UNSUPPORTED_FILE_TYPE = "UNSUPPORTED_FILE_TYPE"

    RATE_LIMITED = "RATE_LIMITED"

    SERVER_ERROR = "SERVER_ERROR"


def error_body(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Build the error envelope"""
    error = {"code": code, "message": message}
    if details:
        error["details"] = details
    return {"success": False, "error": error}


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_body(code, message, details),
        headers=headers,
    )


class APIError(Exception):
    """Base API exception with consistent structure"""

    def __init__(
        self,
        status_code: int,
        message: str,
        code: str,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.status_code = status_code
        self.message = message
        self.code = code
        self.details = details
        self.headers = headers
        super().__init__(message)

    def to_response(self) -> JSONResponse:
        """Convert to FastAPI JSONResponse"""
        return error_response(self.status_code, self.code, self.message, self.details, self.headers)


class ValidationFailed(APIError):
    """400 Bad Request - Missing or malformed input"""
    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            details=details
        )


class NoFileError(APIError):
    """400 Bad Request - Required upload missing"""
    def __init__(self, message: str = "No file was uploaded"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            message=message,
            code=ErrorCode.NO_FILE
        )


class UnauthorizedError(APIError):
    """401 Unauthorized - Authentication required"""
    def __init__(self, message: str = "Authentication token not provided", code: str = ErrorCode.UNAUTHORIZED):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message=message,
            code=code,
            headers={"WWW-Authenticate": "Bearer"}
        )


class InvalidCredentialsError(UnauthorizedError):
    """401 Unauthorized - Login failed; never says which half was wrong"""
    def __init__(self):
        super().__init__(message="Invalid email or password", code=ErrorCode.INVALID_CREDENTIALS)


class ForbiddenError(APIError):
    """403 Forbidden - Invalid token or insufficient role"""
    def __init__(self, message: str = "Access denied"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            message=message,
            code=ErrorCode.FORBIDDEN
        )


class NotFoundError(APIError):
    """404 Not Found - Resource does not exist"""
    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with id '{identifier}' not found"
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            message=message,
            code=ErrorCode.NOT_FOUND
        )


class ConflictError(APIError):
    """409 Conflict - Uniqueness violation"""
    def __init__(self, message: str, code: str, details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            message=message,
            code=code,
            details=details
        )


class UploadRejectedError(APIError):
    """413/415 - Upload failed the type or size check"""
    def __init__(self, status_code: int, message: str, code: str, details: Optional[Dict] = None):
        super().__init__(status_code=status_code, message=message, code=code, details=details)


def internal_error_response(error: Exception, context: str = "") -> JSONResponse:
    """Log an internal error and build a safe 500 response"""
    log_id = str(uuid.uuid4())[:8]
    logger.error(f"[{log_id}] Internal error in {context}: {type(error).__name__}: {str(error)}", exc_info=error)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCode.SERVER_ERROR,
        "An internal error occurred. Please try again later.",
        {"log_id": log_id},
    )


STATUS_CODE_MAPPING = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.METHOD_NOT_ALLOWED,
    413: ErrorCode.FILE_TOO_LARGE,
    415: ErrorCode.UNSUPPORTED_FILE_TYPE,
    422: ErrorCode.VALIDATION_ERROR,
    429: ErrorCode.RATE_LIMITED,
}


def code_for_status(status_code: int) -> str:
    """Map a bare HTTP status to a taxonomy code"""
    if status_code >= 500:
        return ErrorCode.SERVER_ERROR
    return STATUS_CODE_MAPPING.get(status_code, ErrorCode.VALIDATION_ERROR)
