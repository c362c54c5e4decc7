"""
Session schemas untuk WellAuth.
"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict, model_validator

from wellauth.core.constants import DefaultValue, LoginMethod


class SessionCreateRequest(BaseModel):
    """
    Request pembuatan session.
    """
    device_fingerprint: Optional[str] = Field(
        None,
        min_length=1,
        max_length=DefaultValue.MAX_FINGERPRINT_LENGTH,
        description="Fingerprint device dari client"
    )
    login_method: LoginMethod = Field(
        LoginMethod.EMAIL,
        description="Metode login (email, oauth, magic_link, sso)"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "device_fingerprint": "b5f0c7e2-chrome-macos-1440x900",
                "login_method": "email"
            }
        }
    )


class SessionCreateResponse(BaseModel):
    """
    Session yang baru dibuat.
    """
    success: bool = Field(True, description="Session created")
    session_id: UUID = Field(..., description="Session ID")
    expires_at: datetime = Field(..., description="Waktu session expired")
    message: str = Field(..., description="Response message")


class SessionResponse(BaseModel):
    """
    Satu session aktif.
    """
    id: UUID = Field(..., validation_alias="us_id")
    ip_address: Optional[str] = Field(None, validation_alias="us_ip_address")
    user_agent: Optional[str] = Field(None, validation_alias="us_user_agent")
    login_method: str = Field(..., validation_alias="us_login_method")
    is_active: bool = Field(..., validation_alias="us_is_active")
    last_activity_at: datetime = Field(..., validation_alias="us_last_activity_at")
    expires_at: datetime = Field(..., validation_alias="us_expires_at")
    created_at: datetime = Field(..., validation_alias="created_at")

    model_config = ConfigDict(from_attributes=True)


class SessionListResponse(BaseModel):
    """
    Session aktif milik caller.
    """
    success: bool = Field(True)
    sessions: List[SessionResponse] = Field(default_factory=list)
    total: int = Field(..., description="Jumlah session aktif")


class SessionRevokeRequest(BaseModel):
    """
    Revoke satu session (``session_id``) atau semua (``revoke_all``).
    """
    session_id: Optional[UUID] = Field(None, description="Session yang di-revoke")
    revoke_all: Optional[bool] = Field(None, description="Revoke semua session")

    @model_validator(mode='after')
    def validate_target(self) -> "SessionRevokeRequest":
        if not self.revoke_all and self.session_id is None:
            raise ValueError("Either session_id or revoke_all=true is required")
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"session_id": "550e8400-e29b-41d4-a716-446655440000"}
        }
    )


class SessionRevokeResponse(BaseModel):
    """
    Hasil revoke.
    """
    success: bool = Field(True)
    message: str = Field(...)
    revoked_count: Optional[int] = Field(None, description="Jumlah session yang dinonaktifkan")
