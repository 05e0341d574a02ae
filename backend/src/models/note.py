"""Note-related Pydantic models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dnote.core.validate import InvalidBookNameError, validate_book_name


class Note(BaseModel):
    """A note with its book label."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "uuid": "7c0a3a5e-0b7a-4f65-9a3b-6a1f8e2d9c10",
                "book_label": "algorithms",
                "body": "Merge sort splits the list in halves",
                "public": False,
                "added_on": "2025-01-10T09:00:00Z",
                "edited_on": "2025-01-15T14:30:00Z",
            }
        }
    )

    uuid: str = Field(..., description="Public note id")
    book_label: str = Field(..., description="Label of the containing book")
    body: str = Field(..., description="Note content")
    public: bool = Field(False, description="Visible to anyone with the link")
    added_on: datetime = Field(..., description="Creation timestamp")
    edited_on: datetime = Field(..., description="Last update timestamp")


class NoteCreate(BaseModel):
    """Request payload to create a note."""

    book_name: str = Field(..., min_length=1, max_length=256)
    content: str = Field(..., min_length=1, max_length=1_048_576)
    public: bool = False

    @field_validator("book_name")
    @classmethod
    def validate_book(cls, value: str) -> str:
        try:
            return validate_book_name(value)
        except InvalidBookNameError as exc:
            raise ValueError(f"invalid book name: {exc}") from exc

    @field_validator("content")
    @classmethod
    def validate_content(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content cannot be blank")
        return value


class NoteList(BaseModel):
    """Notes of the current user, newest first."""

    notes: list[Note]
    total: int = Field(..., ge=0)


__all__ = ["Note", "NoteCreate", "NoteList"]
