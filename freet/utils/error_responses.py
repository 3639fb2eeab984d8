"""Helper functions for constructing structured API error responses.

Exception handlers in :mod:`freet.main` and the domain error type share these
builders so that every failure, whatever its origin, leaves the API as the
same ``{"error": {tag: message}}`` envelope.
"""

from __future__ import annotations

from collections.abc import Sequence

from freet.errors import FreetError
from freet.schemas.error import ErrorResponse, ErrorType, ValidationErrorDetail

__all__ = [
    "build_domain_error_response",
    "build_error_response",
    "build_validation_error_response",
    "summarize_validation_errors",
]


def build_error_response(*, tag: ErrorType | str, message: str) -> ErrorResponse:
    """Construct an envelope for an arbitrary tag."""

    resolved_tag = tag.value if isinstance(tag, ErrorType) else tag
    return ErrorResponse(error={resolved_tag: message})


def build_domain_error_response(exc: FreetError) -> ErrorResponse:
    """Render a :class:`~freet.errors.FreetError` into the envelope."""

    return build_error_response(tag=exc.tag, message=exc.message)


def summarize_validation_errors(errors: Sequence[ValidationErrorDetail]) -> str:
    """Collapse field errors into one sentence, e.g. ``body.userId: Field required``."""

    if not errors:
        return "Request validation failed."
    return "; ".join(f"{error.field}: {error.message}" for error in errors)


def build_validation_error_response(
    *, errors: Sequence[ValidationErrorDetail]
) -> ErrorResponse:
    """Construct the ``validationFailure`` envelope for malformed requests."""

    return build_error_response(
        tag=ErrorType.VALIDATION_FAILURE,
        message=summarize_validation_errors(list(errors)),
    )
