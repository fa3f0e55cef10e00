"""Domain exception hierarchy rendered as structured error responses."""

from __future__ import annotations


class AppException(Exception):
    """Base exception for all domain errors.

    Subclasses set ``code`` and ``status_code`` at the class level; callers
    provide ``message`` and an optional ``details`` list of
    ``{"field": ..., "message": ...}`` entries.
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


class ConflictException(AppException):
    """Referential conflict: the caller must resolve dependent records first."""

    code = "CONFLICT"
    status_code = 409


class UnauthorizedException(AppException):
    code = "UNAUTHORIZED"
    status_code = 401


class ValidationException(AppException):
    code = "VALIDATION_ERROR"
    status_code = 422

    @classmethod
    def for_field(cls, field: str, message: str) -> ValidationException:
        return cls(message, details=[{"field": field, "message": message}])
