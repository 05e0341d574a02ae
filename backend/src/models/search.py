"""Search response models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class SearchResult(BaseModel):
    """Full-text search hit with an HTML excerpt."""

    uuid: str
    book_label: str
    archived: bool = False
    snippet: str = Field(..., description="Escaped body excerpt with <mark> around matches")
    added_on: datetime


class SearchResponse(BaseModel):
    """Search hits for one phrase."""

    query: str
    results: list[SearchResult]
    total: int = Field(..., ge=0)


__all__ = ["SearchResult", "SearchResponse"]
