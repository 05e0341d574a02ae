"""Authentication models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class SigninRequest(BaseModel):
    """Credentials posted to the sign-in endpoint."""

    email: str = Field(..., min_length=1, description="Account email")
    password: str = Field(..., min_length=1, description="Account password")


class SessionResponse(BaseModel):
    """Session key issued on sign-in."""

    key: str = Field(..., description="Signed session key")
    expires_at: datetime = Field(..., description="Expiration timestamp")


class JWTPayload(BaseModel):
    """Session key claims."""

    sub: str = Field(..., description="Subject (user uuid)")
    sid: str = Field("", description="Session id, empty for static tokens")
    iat: int = Field(..., description="Issued at timestamp")
    exp: int = Field(..., description="Expiration timestamp")


__all__ = ["SigninRequest", "SessionResponse", "JWTPayload"]
