"""Shared API request/response models.

This module contains common models used across multiple API endpoints,
including error response wrappers and validation error formatting.
"""

from typing import Any, TypeVar

from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

# Re-export ErrorResponse for convenience - this is the standard error format
from stayhub.models.errors import ErrorCode, ErrorResponse

__all__ = [
    "ErrorCode",
    "ErrorResponse",
    "SuccessMessage",
    "ValidationErrorDetail",
    "ValidationErrorResponse",
    "build_input",
    "format_validation_errors",
]

ModelT = TypeVar("ModelT", bound=BaseModel)


class ValidationErrorDetail(BaseModel):
    """Detail of a single validation error."""

    model_config = ConfigDict(strict=True)

    loc: list[str | int] = Field(
        ...,
        description="Path to the field that failed validation",
        examples=[["body", "checkInDate"]],
    )
    msg: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Field required"],
    )
    type: str = Field(
        ...,
        description="Error type identifier",
        examples=["missing"],
    )


class ValidationErrorResponse(BaseModel):
    """Response format for request validation errors (HTTP 422).

    Same content as FastAPI's default validation error, wrapped in the
    standard error structure.
    """

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: str = "ERR_VALIDATION"
    message: str = "Request validation failed"
    recovery: str = "Check the request parameters and try again"
    details: list[ValidationErrorDetail] = Field(default_factory=list)


class SuccessMessage(BaseModel):
    """Generic success response for operations without data payload."""

    model_config = ConfigDict(strict=True)

    success: bool = True
    message: str = Field(
        default="Operation completed successfully",
        description="Human-readable success message",
    )


def format_validation_errors(errors: list[Any]) -> ValidationErrorResponse:
    """Convert Pydantic validation errors to ValidationErrorResponse.

    Args:
        errors: List of error dicts from Pydantic's ValidationError.errors()

    Returns:
        ValidationErrorResponse ready for JSON serialization.
    """
    details = [
        ValidationErrorDetail(
            loc=[str(loc) for loc in error.get("loc", [])],
            msg=error.get("msg", ""),
            type=error.get("type", ""),
        )
        for error in errors
    ]
    return ValidationErrorResponse(details=details)


def build_input(model: type[ModelT], **data: Any) -> ModelT:
    """Build an engine input model from request parts.

    Validation failures are reported like any other request validation
    error (HTTP 422) instead of escaping as server errors.
    """
    try:
        return model(**data)
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e
