"""
Admin schemas untuk WellAuth.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class UnlockAccountRequest(BaseModel):
    """
    Unlock manual satu akun.
    """
    user_id: UUID = Field(..., description="User yang di-unlock")


class UnlockAccountResponse(BaseModel):
    success: bool = Field(True)
    message: str = Field(...)
    user_id: UUID = Field(...)
    lockout_id: UUID = Field(..., description="Lockout yang dilepas")
    locked_until: datetime = Field(..., description="unlock_at asli lockout")
