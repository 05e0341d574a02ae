import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dnote.db import Base


def _new_uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Book(Base):
    __tablename__ = "books"

    uuid: Mapped[str] = mapped_column(String, primary_key=True, default=_new_uuid)
    label: Mapped[str] = mapped_column(String, unique=True, index=True)
    archive: Mapped[bool] = mapped_column(Boolean, default=False)
    deleted: Mapped[bool] = mapped_column(Boolean, default=False)
    added_on: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    notes: Mapped[List["Note"]] = relationship(back_populates="book")


class Note(Base):
    __tablename__ = "notes"

    # Integer primary key aliases the SQLite rowid; it is the id users type.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[str] = mapped_column(String, unique=True, default=_new_uuid)
    book_uuid: Mapped[str] = mapped_column(ForeignKey("books.uuid"), index=True)
    body: Mapped[str] = mapped_column(Text, default="")
    deleted: Mapped[bool] = mapped_column(Boolean, default=False)
    added_on: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    edited_on: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    book: Mapped["Book"] = relationship(back_populates="notes")
