"""
Login attempt schemas untuk WellAuth.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, EmailStr, ConfigDict, field_validator

from wellauth.core.constants import DefaultValue


class LoginAttemptRequest(BaseModel):
    """
    Hasil login yang dilaporkan identity provider.
    """
    email: EmailStr = Field(
        ...,
        description="Email yang dipakai login"
    )
    success: bool = Field(
        ...,
        description="Apakah login berhasil"
    )
    failure_reason: Optional[str] = Field(
        None,
        max_length=DefaultValue.MAX_FAILURE_REASON_LENGTH,
        description="Alasan gagal login"
    )
    user_agent: Optional[str] = Field(
        None,
        max_length=DefaultValue.MAX_USER_AGENT_LENGTH,
        description="User agent client, default dari header request"
    )

    @field_validator('email')
    def normalize_email(cls, v: str) -> str:
        if len(v) > DefaultValue.MAX_EMAIL_LENGTH:
            raise ValueError(f"Email must not exceed {DefaultValue.MAX_EMAIL_LENGTH} characters")
        return v.lower()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "member@example.com",
                "success": False,
                "failure_reason": "invalid_password"
            }
        }
    )


class LoginAttemptResponse(BaseModel):
    """
    Status lockout setelah attempt dicatat.
    """
    success: bool = Field(True, description="Attempt recorded")
    locked: bool = Field(..., description="Apakah akun terkunci")
    message: str = Field(..., description="Response message")
    remaining_attempts: Optional[int] = Field(
        None,
        description="Sisa percobaan sebelum akun terkunci"
    )
    unlock_at: Optional[datetime] = Field(
        None,
        description="Waktu lockout berakhir"
    )
    warning: Optional[str] = Field(
        None,
        description="Peringatan saat sisa percobaan tinggal sedikit"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "locked": False,
                "message": "Login attempt recorded",
                "remaining_attempts": 2,
                "warning": "Only 2 login attempt(s) remaining before the account is locked"
            }
        }
    )
