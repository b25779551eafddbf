"""Domain errors raised by services and rendered by the exception handler in main."""

from typing import Any, Optional


class FinanceError(Exception):
    """Base class. ``status_code`` is the HTTP status the handler responds with."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_body(self) -> dict[str, Any]:
        return {"success": False, "error": self.message}


class ValidationError(FinanceError):
    """One or more field violations. Always reported as a full list."""

    status_code = 400

    def __init__(self, errors: list, message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors

    def to_body(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "errors": [str(e) for e in self.errors],
            "fieldErrors": [e.as_dict() for e in self.errors if hasattr(e, "as_dict")],
        }


class BadRequest(FinanceError):
    status_code = 400


class AuthError(FinanceError):
    status_code = 401


class RateLimited(FinanceError):
    status_code = 429

    def __init__(self, message: str = "Too many login attempts. Please try again later."):
        super().__init__(message)


class NotFound(FinanceError):
    status_code = 404

    def __init__(self, message: str = "Record not found"):
        super().__init__(message)


class Conflict(FinanceError):
    """Optimistic-lock mismatch. Carries the current server-side record."""

    status_code = 409

    def __init__(self, current: Optional[dict], message: str = "Record was modified by another user"):
        super().__init__(message)
        self.current = current

    def to_body(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": "CONFLICT",
            "message": self.message,
            "currentData": self.current,
        }


class InvalidTransition(FinanceError):
    status_code = 400


class IrreversibleGuardError(InvalidTransition):
    def __init__(
        self,
        message: str = "Can only hard delete records that are already soft-deleted. Soft delete it first.",
    ):
        super().__init__(message)


class StorageError(FinanceError):
    """Backend failure. The message is generic; details stay in the server log."""

    status_code = 500
