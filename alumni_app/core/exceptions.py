"""Errors raised by the approval workflow and its store.

Each error carries the HTTP status the JSON views answer with.
"""


class ApprovalError(Exception):
    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.default_message


class InvalidInputError(ApprovalError):
    """Raised for a malformed request body or a missing required field."""

    status_code = 400
    default_message = "Invalid request"


class UnauthenticatedError(ApprovalError):
    status_code = 401
    default_message = "Not authenticated"


class ForbiddenError(ApprovalError):
    """Raised when the authorization engine denies the caller.

    The message stays generic: it must not reveal which grants or privileges
    were inspected.
    """

    status_code = 403
    default_message = "Not authorized to approve/reject this profile"


class NotFoundError(ApprovalError):
    status_code = 404
    default_message = "Profile not found"


class InvalidStateError(ApprovalError):
    """Raised when the profile is no longer pending, including a lost race."""

    status_code = 400
    default_message = "Profile not pending"


class StoreUnavailableError(ApprovalError, RuntimeError):
    """Raised when a store query or write fails."""

    status_code = 500
    default_message = "The data store is temporarily unavailable. Please try again later."


__all__ = [
    "ApprovalError",
    "ForbiddenError",
    "InvalidInputError",
    "InvalidStateError",
    "NotFoundError",
    "StoreUnavailableError",
    "UnauthenticatedError",
]
