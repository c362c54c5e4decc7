"""
Password reset schemas untuk WellAuth.
"""

from datetime import datetime

from pydantic import BaseModel, Field, EmailStr, ConfigDict, field_validator

from wellauth.core.config import settings
from wellauth.core.constants import DefaultValue, RegexPattern


class PasswordResetRequest(BaseModel):
    """
    Permintaan reset password.
    """
    email: EmailStr = Field(
        ...,
        description="Email akun"
    )

    @field_validator('email')
    def normalize_email(cls, v: str) -> str:
        if len(v) > DefaultValue.MAX_EMAIL_LENGTH:
            raise ValueError(f"Email must not exceed {DefaultValue.MAX_EMAIL_LENGTH} characters")
        return v.lower()

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "member@example.com"}}
    )


class VerifyResetTokenRequest(BaseModel):
    """
    Token reset untuk diverifikasi.
    """
    token: str = Field(
        ...,
        pattern=RegexPattern.RESET_TOKEN,
        description="Token reset (64 karakter hex)"
    )


class VerifyResetTokenResponse(BaseModel):
    """
    Token reset valid.
    """
    valid: bool = Field(True, description="Token bisa dipakai")
    expires_at: datetime = Field(..., description="Waktu token expired")
    message: str = Field(..., description="Response message")


class ResetPasswordRequest(BaseModel):
    """
    Konsumsi token reset dengan password baru.
    """
    token: str = Field(
        ...,
        pattern=RegexPattern.RESET_TOKEN,
        description="Token reset (64 karakter hex)"
    )
    new_password: str = Field(
        ...,
        description="Password baru"
    )

    @field_validator('new_password')
    def validate_password_length(cls, v: str) -> str:
        """
        Validate panjang password baru.
        """
        if len(v) < settings.PASSWORD_MIN_LENGTH:
            raise ValueError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long")

        if len(v) > settings.PASSWORD_MAX_LENGTH:
            raise ValueError(f"Password must not exceed {settings.PASSWORD_MAX_LENGTH} characters")

        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "token": "9f2c" + "0" * 60,
                "new_password": "correct-horse-battery"
            }
        }
    )
