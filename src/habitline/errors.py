"""Error kinds raised by habitline services.

Each class carries a stable ``code`` that the HTTP layer maps to a status.
Callers should catch the base kinds (``NotFoundError``, ``InvalidInputError``
and so on); the refinements exist for logging and tests.
"""

from __future__ import annotations


class HabitlineError(Exception):
    """Base class for every error the services raise on purpose."""

    code = "error"
    default_message = "request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class NotFoundError(HabitlineError):
    code = "not_found"
    default_message = "requested resource not found"


class ForbiddenError(HabitlineError):
    code = "forbidden"
    default_message = "user is not authorized to perform this action"


class InvalidInputError(HabitlineError):
    code = "invalid_input"
    default_message = "invalid input provided"


class DomainValidationError(InvalidInputError):
    """An entity rule was violated (empty name, bad colour, count < 1, ...)."""


class InvalidScheduleError(InvalidInputError):
    """Target days do not fit the habit frequency."""

    default_message = "invalid target days"


class MalformedScheduleError(InvalidInputError):
    """Target days could not be parsed into day markers at all."""

    default_message = "invalid target days format"


class InvalidRequestFormatError(InvalidInputError):
    """The request body was not a JSON object."""

    code = "invalid_request_format"
    default_message = "invalid request format"


class AlreadyExistsError(HabitlineError):
    code = "already_exists"
    default_message = "resource already exists"


class PersistenceError(HabitlineError):
    code = "persistence_failure"
    default_message = "database operation failed"


class DeadlineExceededError(PersistenceError):
    code = "deadline_exceeded"
    default_message = "request deadline exceeded before commit"


class AuthenticationError(HabitlineError):
    code = "unauthorized"
    default_message = "authentication required"


__all__ = [
    "AlreadyExistsError",
    "AuthenticationError",
    "DeadlineExceededError",
    "DomainValidationError",
    "ForbiddenError",
    "HabitlineError",
    "InvalidInputError",
    "InvalidRequestFormatError",
    "InvalidScheduleError",
    "MalformedScheduleError",
    "NotFoundError",
    "PersistenceError",
]
