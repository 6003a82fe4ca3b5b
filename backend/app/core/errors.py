"""Failure taxonomy shared by the messaging and notification services.

Services raise these exceptions; the API layer renders them as JSON with a
stable ``error`` code. ``Forbidden`` and ``Internal`` deliberately carry no
caller-controlled detail.
"""

from __future__ import annotations

from fastapi import status


class ServiceError(Exception):
    """Base class for failures raised by the service layer."""

    code: str = "INTERNAL"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None, *, field: str | None = None) -> None:
        self.detail = detail or self.default_detail
        self.field = field
        super().__init__(self.detail)


class InvalidInput(ServiceError):
    """Request shape, length or self-targeting violation."""

    code = "INVALID_INPUT"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class NotFound(ServiceError):
    """Missing room, group, notification, recipient row or user."""

    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Forbidden(ServiceError):
    """Authenticated caller lacks access; the reason is never disclosed."""

    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"

    def __init__(self) -> None:
        super().__init__()


class Conflict(ServiceError):
    """Uniqueness race detected while writing; recovered before reaching callers."""

    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class Internal(ServiceError):
    """Storage or transaction failure."""

    def __init__(self) -> None:
        super().__init__()
