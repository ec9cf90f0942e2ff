"""
Admin API Exceptions

Error taxonomy shared by repositories, services and routers. Each error
carries the HTTP status it is rendered with and a stable machine-readable
code; the FastAPI exception handlers in ``bitenet_admin.main`` turn them into
``ErrorResponse`` bodies.
"""

from typing import Any, Dict, Optional


class AdminAPIError(Exception):
    """Base exception for all admin API errors"""

    status_code: int = 500
    code: str = "UNEXPECT"
    default_message: str = "Unexpected error"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Args:
            message: Human-readable error message
            details: Optional additional error details
        """
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class NotFoundError(AdminAPIError):
    """Requested entity does not exist (or is soft-deleted)"""

    status_code = 404
    code = "DATA_NOT_EXIST"
    default_message = "Data does not exist"


class ConflictError(AdminAPIError):
    """Uniqueness violation detected before a write"""

    status_code = 409
    code = "CONFLICT"
    default_message = "Data already exists"


class UnauthorizedError(AdminAPIError):
    """Missing, expired or invalid session, or credential mismatch"""

    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Unauthorized"


class ParameterError(AdminAPIError):
    """Request is well-formed but violates a business precondition"""

    status_code = 412
    code = "PARAMETER_ERROR"
    default_message = "Parameter error"


class UnexpectedError(AdminAPIError):
    """Infrastructure failure (database, Redis, network)"""
