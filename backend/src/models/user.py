"""User account models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """A registered account."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "uuid": "0f3a9b7e-4c1d-4b8e-9f0a-2d5c6e7f8a9b",
                "email": "alice@example.com",
                "created_at": "2025-01-15T10:30:00Z",
            }
        }
    )

    id: int = Field(..., description="Internal row id")
    uuid: str = Field(..., description="Public user id")
    email: str = Field(..., description="Sign-in email")
    created_at: datetime = Field(..., description="Account creation timestamp")


class RegisterRequest(BaseModel):
    """Sign-up form."""

    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=8, description="At least 8 characters")
    password_confirmation: str = Field(...)


__all__ = ["User", "RegisterRequest"]
