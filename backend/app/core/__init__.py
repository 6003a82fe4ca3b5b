"""Core utilities for the community backend."""

from .errors import Conflict, Forbidden, Internal, InvalidInput, NotFound, ServiceError

__all__ = ["ServiceError", "InvalidInput", "NotFound", "Forbidden", "Conflict", "Internal"]
