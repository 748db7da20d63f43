"""
Standardized error message catalog for CertifyHub.

Centralizes client-facing error codes and messages so that responses stay
consistent and never leak why a request was refused.
"""
from enum import Enum
from typing import Dict, Optional

from app.core.config import settings
from app.core.exceptions import (
    CertifyHubException,
    ConflictError,
    InvalidCredentialsError,
    RejectionError,
    UploadFailedError,
    ValidationError,
)


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Generic rejection (not found, access denied, bad token)
    REQUEST_REJECTED = "REQ_001"

    # Authentication Errors (AUTH_*)
    AUTH_INVALID_CREDENTIALS = "AUTH_001"
    AUTH_USER_ALREADY_EXISTS = "AUTH_003"

    # Validation Errors (VAL_*)
    VAL_INVALID_INPUT = "VAL_003"

    # System Errors (SYS_*)
    SYS_INTERNAL_ERROR = "SYS_001"
    SYS_EXTERNAL_SERVICE_ERROR = "SYS_003"


class ErrorMessages:
    """Centralized error message definitions."""

    _messages: Dict[ErrorCode, str] = {
        ErrorCode.REQUEST_REJECTED: "The request could not be completed",
        ErrorCode.AUTH_INVALID_CREDENTIALS: "Invalid email or password",
        ErrorCode.AUTH_USER_ALREADY_EXISTS: "An account with this email already exists",
        ErrorCode.VAL_INVALID_INPUT: "Invalid input provided",
        ErrorCode.SYS_INTERNAL_ERROR: "An internal error occurred. Please try again later",
        ErrorCode.SYS_EXTERNAL_SERVICE_ERROR: "File upload failed. Please try again later",
    }

    @classmethod
    def get(cls, code: ErrorCode) -> str:
        """Get the default message for an error code."""
        return cls._messages.get(code, "An error occurred")


class ErrorResponse:
    """Standardized error response structure."""

    def __init__(
        self,
        code: ErrorCode,
        status_code: int,
        message: Optional[str] = None,
        field: Optional[str] = None,
    ):
        self.code = code
        self.status_code = status_code
        self.message = message or ErrorMessages.get(code)
        self.field = field

    def to_dict(self) -> Dict:
        """Convert to dictionary for API response."""
        response = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }

        if self.field:
            response["error"]["field"] = self.field

        return response

    @classmethod
    def rejection(cls) -> "ErrorResponse":
        """The single response shared by every refused request."""
        return cls(
            code=ErrorCode.REQUEST_REJECTED,
            status_code=settings.REJECTION_STATUS_CODE,
        )

    @classmethod
    def from_exception(cls, exc: CertifyHubException) -> "ErrorResponse":
        """
        Map a domain exception to its client-facing response.

        Rejections never carry the underlying reason; validation errors keep
        their message because it describes the caller's own input.
        """
        if isinstance(exc, RejectionError):
            return cls.rejection()
        if isinstance(exc, ConflictError):
            return cls(ErrorCode.AUTH_USER_ALREADY_EXISTS, exc.status_code)
        if isinstance(exc, InvalidCredentialsError):
            return cls(ErrorCode.AUTH_INVALID_CREDENTIALS, exc.status_code)
        if isinstance(exc, ValidationError):
            return cls(
                ErrorCode.VAL_INVALID_INPUT,
                exc.status_code,
                message=exc.message,
                field=exc.details.get("field"),
            )
        if isinstance(exc, UploadFailedError):
            return cls(ErrorCode.SYS_EXTERNAL_SERVICE_ERROR, exc.status_code)
        return cls(ErrorCode.SYS_INTERNAL_ERROR, exc.status_code)
