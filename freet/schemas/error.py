"""Error response schemas for consistent error handling."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ErrorType(str, Enum):
    """Tags used for failures that do not originate in the domain layer."""

    VALIDATION_FAILURE = "validationFailure"
    DATABASE_ERROR = "databaseError"
    TIMEOUT_ERROR = "timeoutError"
    INTEGRITY_ERROR = "integrityError"
    INTERNAL_ERROR = "internalError"


class ErrorResponse(BaseModel):
    """Envelope returned for every failed request.

    The body holds exactly one entry mapping a camelCase tag to a
    human-readable message.
    """

    error: dict[str, str] = Field(..., description="Single tag -> message entry")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": {
                    "likeNotFound": "Like for freet with ID 3f2a... does not exist.",
                }
            }
        }
    )


class ValidationErrorDetail(BaseModel):
    """One failed field of a request validation error."""

    field: str = Field(..., description="Dotted location of the field that failed")
    message: str = Field(..., description="Validation error message")
