"""Custom exceptions and helpers for consistent error responses."""

import json
from typing import Any, Dict


class AppError(Exception):
    """
    Base class for application errors.

    ``error_code`` is the coarse taxonomy bucket (VALIDATION, NOT_FOUND, ...),
    ``code`` the specific reason. Both are stable and safe to show to clients.
    """

    error_code = "INTERNAL"

    def __init__(self, message: str, status_code: int = 400, code: str = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code or self.error_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "code": self.code,
            "message": self.message,
        }


class ValidationError(AppError):
    """Raised when input validation fails."""

    error_code = "VALIDATION"

    def __init__(self, message: str = "Invalid input", code: str = "INVALID_INPUT"):
        super().__init__(message, status_code=422, code=code)


class NotFoundError(AppError):
    """Raised when a requested resource is missing."""

    error_code = "NOT_FOUND"

    def __init__(self, message: str = "Resource not found", code: str = "NOT_FOUND"):
        super().__init__(message, status_code=404, code=code)


class ForbiddenError(AppError):
    """Raised when the actor's role does not allow the action."""

    error_code = "FORBIDDEN"

    def __init__(self, message: str = "Forbidden", code: str = "FORBIDDEN"):
        super().__init__(message, status_code=403, code=code)


class ConflictError(AppError):
    """Raised when the request conflicts with current state (e.g. ineligible assignee)."""

    error_code = "CONFLICT"

    def __init__(self, message: str = "Conflict", code: str = "CONFLICT"):
        super().__init__(message, status_code=409, code=code)


class NotAvailableError(AppError):
    """Raised when no eligible assignee exists."""

    error_code = "NOT_AVAILABLE"

    def __init__(
        self,
        message: str = "No eligible assignee available",
        code: str = "NO_ELIGIBLE_ASSIGNEE",
    ):
        super().__init__(message, status_code=409, code=code)


def ticket_not_found(ticket_id: str) -> NotFoundError:
    return NotFoundError(f"Ticket with ID {ticket_id} not found", code="TICKET_NOT_FOUND")


def user_not_found(user_id: str) -> NotFoundError:
    return NotFoundError(f"User with ID {user_id} not found", code="USER_NOT_FOUND")


def to_response(error: AppError) -> Dict[str, Any]:
    """Convert an AppError into a JSON proxy-integration style response."""
    return {
        "statusCode": error.status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps({"status": "error", **error.to_dict()}),
    }
