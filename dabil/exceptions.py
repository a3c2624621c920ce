"""
Domain errors raised by the service layer.

Each error carries the HTTP status and error code used by the exception
handler in dabil.main, so services stay free of FastAPI imports.
"""
from typing import Any, Optional


class DabilError(Exception):
    status_code = 500
    code = "SERVER_ERROR"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationFailed(DabilError):
    """Malformed or out-of-range input, rejected before any mutation"""
    status_code = 400
    code = "VALIDATION_ERROR"


class PermissionDenied(DabilError):
    status_code = 403
    code = "FORBIDDEN"


class NotFound(DabilError):
    status_code = 404
    code = "NOT_FOUND"


class Conflict(DabilError):
    """Resource is not in the state the operation expects"""
    status_code = 409
    code = "CONFLICT"


class InsufficientFunds(DabilError):
    status_code = 400
    code = "INSUFFICIENT_FUNDS"


class ExternalServiceError(DabilError):
    """Payment gateway unreachable or reported a failure"""
    status_code = 502
    code = "GATEWAY_ERROR"


class IntegrityViolation(DabilError):
    """An invariant would be broken; unreachable in a correct run"""
    status_code = 500
    code = "INTEGRITY_ERROR"
