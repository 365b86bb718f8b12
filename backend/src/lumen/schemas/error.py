"""Structured error response schemas."""
from datetime import datetime
from typing import Any
from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    field: str | None = Field(default=None, description="Field that caused the error (for validation errors)")
    value: Any | None = Field(default=None, description="Invalid value (for validation errors)")


class ErrorResponse(BaseModel):
    """Standard error response structure.

    Every error handler in the application renders this shape, with a
    machine-readable code per detail and the request id for tracing.
    """

    error: str = Field(..., description="Error type (e.g., 'ValidationError', 'DatabaseError')")
    message: str = Field(..., description="Primary error message")
    details: list[ErrorDetail] | None = Field(
        default=None, description="Detailed error information (for validation errors)"
    )
    remediation: str | None = Field(default=None, description="Suggestion for fixing the error")
    request_id: str | None = Field(default=None, description="Request ID for tracing")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Error timestamp")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "DatabaseError",
                "message": "A database error occurred",
                "details": [
                    {
                        "code": "database_error",
                        "message": "Database temporarily unavailable",
                    }
                ],
                "remediation": "Database temporarily unavailable. Please try again in a few moments.",
                "request_id": "req_1234567890ab",
                "timestamp": "2025-08-01T10:30:00Z",
            }
        }
    )


# Error codes enum for consistency
class ErrorCode:
    """Standard error codes used across the API."""

    # Validation errors (400, 422)
    INVALID_DATE = "invalid_date"
    INVALID_DATE_RANGE = "invalid_date_range"
    INVALID_ENUM_VALUE = "invalid_enum_value"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    VALUE_TOO_SMALL = "value_too_small"
    VALUE_TOO_LARGE = "value_too_large"

    # Not found errors (404)
    REPORT_NOT_FOUND = "report_not_found"

    # External service errors (503)
    DATABASE_ERROR = "database_error"

    # Internal errors (500)
    INTERNAL_ERROR = "internal_error"


# Remediation hints for common errors
REMEDIATION_HINTS = {
    ErrorCode.INVALID_DATE: "Provide dates in ISO format: YYYY-MM-DD",
    ErrorCode.INVALID_DATE_RANGE: "start_date must be on or before end_date",
    ErrorCode.REPORT_NOT_FOUND: "Generate a report of this type first, then request insights again",
    ErrorCode.DATABASE_ERROR: "Database temporarily unavailable. Please try again in a few moments.",
}
