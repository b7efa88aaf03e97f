from fastapi import HTTPException, status
from typing import Optional, Dict, Any


class BaseAPIException(HTTPException):
    """Base exception for API errors"""

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}

        super().__init__(
            status_code=status_code,
            detail={
                "success": False,
                "error": {
                    "code": error_code,
                    "message": message,
                    "details": self.details,
                },
            },
        )

    def __str__(self) -> str:
        return self.message


class AuthenticationError(BaseAPIException):
    """Authentication related errors"""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="AUTH_001",
            message=message,
            details=details,
        )


class AuthorizationError(BaseAPIException):
    """Authorization related errors"""

    def __init__(self, message: str = "Access forbidden", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="AUTH_002",
            message=message,
            details=details,
        )


class ValidationError(BaseAPIException):
    """Validation errors"""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="VALIDATION_001",
            message=message,
            details=details,
        )


class NotFoundError(BaseAPIException):
    """Resource not found errors"""

    def __init__(self, message: str = "Resource not found", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="NOT_FOUND_001",
            message=message,
            details=details,
        )


class InvalidStateError(BaseAPIException):
    """Entity is in the wrong lifecycle state for the requested operation.

    ``reason`` is a stable machine-readable string (``out_of_stock``,
    ``product_inactive``, ``reward_expired``, ...) exposed in ``details``.
    """

    def __init__(self, reason: str, message: Optional[str] = None, details: Optional[Dict] = None):
        self.reason = reason
        merged = {"reason": reason}
        merged.update(details or {})
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="STATE_001",
            message=message or reason.replace("_", " ").capitalize(),
            details=merged,
        )


class ConflictError(BaseAPIException):
    """Resource conflict errors"""

    def __init__(self, message: str = "Resource conflict", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="CONFLICT_001",
            message=message,
            details=details,
        )


class ConcurrencyConflictError(ConflictError):
    """Optimistic check lost under contention even after a retry. Safe to resubmit."""

    def __init__(self, message: str = "Concurrent update detected, please retry", details: Optional[Dict] = None):
        super().__init__(message=message, details=details)
        self.error_code = "CONFLICT_002"
        self.detail["error"]["code"] = "CONFLICT_002"  # type: ignore[index]


class InternalServerError(BaseAPIException):
    """Internal server errors"""

    def __init__(self, message: str = "Internal server error", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="INTERNAL_001",
            message=message,
            details=details,
        )


class InsufficientBalanceError(BaseAPIException):
    """Insufficient balance errors"""

    def __init__(self, required: int, available: int, message: str = "Insufficient points"):
        self.required = required
        self.available = available
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="BALANCE_001",
            message=message,
            details={"required": required, "available": available},
        )


class ServiceException(Exception):
    """Base exception for service layer errors"""

    def __init__(self, name: str, detail: str):
        super().__init__(f"{name}: {detail}")
        self.name = name
        self.detail = detail


class TransportFailure(ServiceException):
    """Event delivery failed. Logged only; never fails the ledger operation."""

    def __init__(self, detail: str):
        super().__init__("TransportFailure", detail)
