from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class SignInRequest(BaseModel):
    """Schema for operator sign-in"""
    password: str = Field(..., min_length=1, description="Shared dashboard password")

    class Config:
        json_schema_extra = {
            "example": {
                "password": "change-me"
            }
        }


class SessionResponse(BaseModel):
    """Schema for the current session state"""
    authenticated: bool
    expires_at: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "authenticated": True,
                "expires_at": "2026-10-20T12:00:00Z"
            }
        }
