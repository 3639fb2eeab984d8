"""Domain errors raised by the relationship core and its collaborators.

Every error carries the HTTP status it maps to and a camelCase ``tag`` that
becomes the key of the ``{"error": {tag: message}}`` envelope rendered by
:mod:`freet.main`. Routers never build error responses themselves.
"""

from __future__ import annotations

from fastapi import status


class FreetError(Exception):
    """Base class for errors surfaced directly to API callers."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_tag: str = "requestFailed"

    def __init__(self, message: str, *, tag: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.tag = tag or self.default_tag


class NotFound(FreetError):
    """An anchor, related entity, or aggregate does not resolve."""

    status_code = status.HTTP_404_NOT_FOUND
    default_tag = "notFound"


class AlreadyMember(FreetError):
    status_code = status.HTTP_409_CONFLICT
    default_tag = "alreadyMember"


class NotMember(FreetError):
    status_code = status.HTTP_409_CONFLICT
    default_tag = "notMember"


class Conflict(FreetError):
    """An aggregate existence precondition failed."""

    status_code = status.HTTP_409_CONFLICT
    default_tag = "conflict"


class DuplicateAggregate(Conflict):
    """An aggregate already exists for the requested anchor."""

    default_tag = "aggregateExists"


class ValidationFailure(FreetError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_tag = "validationFailure"


class Forbidden(FreetError):
    status_code = status.HTTP_403_FORBIDDEN
    default_tag = "forbidden"


__all__ = [
    "AlreadyMember",
    "Conflict",
    "DuplicateAggregate",
    "Forbidden",
    "FreetError",
    "NotFound",
    "NotMember",
    "ValidationFailure",
]
