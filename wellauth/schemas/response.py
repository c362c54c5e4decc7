"""
Generic response schemas untuk WellAuth.
Menangani response format yang konsisten.
"""

from datetime import datetime
from typing import Optional, Dict, Any, List, Union

from pydantic import BaseModel, Field, ConfigDict


class MessageResponse(BaseModel):
    """
    Simple success envelope.
    """
    success: bool = Field(
        True,
        description="Operation succeeded"
    )
    message: str = Field(
        ...,
        description="Response message"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "message": "If that email exists, a password reset link has been sent."
            }
        }
    )


class ValidationErrorDetail(BaseModel):
    """
    Validation error detail schema.
    """
    field: str = Field(
        ...,
        description="Field name that failed validation"
    )
    message: str = Field(
        ...,
        description="Error message"
    )
    type: str = Field(
        ...,
        description="Error type"
    )


class ErrorResponse(BaseModel):
    """
    Error envelope ``{error, code, details?}``.
    """
    error: str = Field(
        ...,
        description="Human readable error message"
    )
    code: str = Field(
        ...,
        description="Machine readable error code"
    )
    details: Optional[Union[Dict[str, Any], List[ValidationErrorDetail]]] = Field(
        None,
        description="Additional error details"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "Too many requests. Please try again later.",
                "code": "RATE_LIMIT_EXCEEDED",
                "details": {
                    "retry_at": 1705312860,
                    "reset_at": "2024-01-15T10:01:00+00:00"
                }
            }
        }
    )


class HealthCheckResponse(BaseModel):
    """
    Health check response schema.
    """
    status: str = Field(
        ...,
        description="Health status"
    )
    timestamp: datetime = Field(
        ...,
        description="Check timestamp"
    )
    version: str = Field(
        ...,
        description="API version"
    )
    service: str = Field(
        ...,
        description="Service name"
    )
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional health details"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "timestamp": "2024-01-15T10:00:00Z",
                "version": "1.0.0",
                "service": "WellAuth Security Core"
            }
        }
    )
