"""
Custom exceptions for the application.

Lookup misses, access denials and token failures are all "rejections": the
HTTP layer renders them identically so callers cannot tell whether a record
exists, is hidden from them, or their credential is bad.
"""
from typing import Any, Dict, Optional


class CertifyHubException(Exception):
    """Base exception for all CertifyHub exceptions."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class RejectionError(CertifyHubException):
    """Base for failures that collapse into one generic client response."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=400, details=details)


class NotFoundError(RejectionError):
    """Resource not found exception."""

    def __init__(self, resource: str, resource_id: Any):
        message = f"{resource} with ID {resource_id} not found"
        super().__init__(message, details={"resource": resource})


class AccessDeniedError(RejectionError):
    """The access policy refused the requested action."""

    def __init__(self, reason: str = "Access denied"):
        self.reason = reason
        super().__init__(reason)


class TokenError(RejectionError):
    """Base for bearer token validation failures."""


class MalformedTokenError(TokenError):
    """Token is structurally invalid or its claims do not parse."""

    def __init__(self, message: str = "Malformed token"):
        super().__init__(message)


class BadSignatureError(TokenError):
    """Token signature does not verify against the signing key."""

    def __init__(self, message: str = "Token signature verification failed"):
        super().__init__(message)


class ExpiredTokenError(TokenError):
    """Token expiry instant has been reached."""

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message)


class ValidationError(CertifyHubException):
    """Validation error exception."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, status_code=422, details=details)


class ConflictError(CertifyHubException):
    """A uniqueness constraint would be violated."""

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message, status_code=409)


class InvalidCredentialsError(CertifyHubException):
    """Invalid credentials exception."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message, status_code=401)


class UploadFailedError(CertifyHubException):
    """Asset storage failed to accept an upload."""

    def __init__(self, message: str, filename: Optional[str] = None):
        details = {"filename": filename} if filename else {}
        super().__init__(message, status_code=502, details=details)
