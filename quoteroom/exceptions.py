"""Domain exception hierarchy for structured error responses."""

from __future__ import annotations


class AppException(Exception):
    """Base exception for all domain errors.

    Subclasses set ``code`` and ``status_code`` at the class level; callers
    provide ``message`` and an optional ``details`` list.
    """

    code: str = "APP_ERROR"
    status_code: int = 500

    def __init__(self, message: str, details: list[dict] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []


class NotFoundException(AppException):
    code = "NOT_FOUND"
    status_code = 404


class ValidationException(AppException):
    code = "VALIDATION_ERROR"
    status_code = 422


class InvalidTransitionException(AppException):
    """A lifecycle transition is not permitted from the current status."""

    code = "INVALID_TRANSITION"
    status_code = 409


class NoAcceptedQuotesException(AppException):
    """Client-quote generation was attempted without any accepted quote."""

    code = "NO_ACCEPTED_QUOTES"
    status_code = 422


class StaleStateException(AppException):
    """The RFQ changed between read and write (optimistic lock mismatch)."""

    code = "STALE_STATE"
    status_code = 409


# Short names used by callers that think in terms of error kinds
ValidationError = ValidationException
InvalidTransitionError = InvalidTransitionException
NoAcceptedQuotes = NoAcceptedQuotesException
StaleStateError = StaleStateException
NotFoundError = NotFoundException
