"""Account storage and credential checks."""

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import status

from ..models.user import User
from .auth import LOCAL_USER_UUID, AuthError, hash_password, verify_password
from .database import DatabaseService

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
LOCAL_USER_EMAIL = "local-dev@localhost"


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        uuid=row["uuid"],
        email=row["email"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """Create and look up user accounts."""

    def __init__(self, db: DatabaseService | None = None):
        self.db = db or DatabaseService()

    def _fetch_one(self, sql: str, params: tuple) -> Optional[sqlite3.Row]:
        conn = self.db.connect()
        try:
            return conn.execute(sql, params).fetchone()
        finally:
            conn.close()

    def get_by_uuid(self, user_uuid: str) -> Optional[User]:
        row = self._fetch_one("SELECT * FROM users WHERE uuid = ?", (user_uuid,))
        return _row_to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        row = self._fetch_one(
            "SELECT * FROM users WHERE email = ?", (_normalize_email(email),)
        )
        return _row_to_user(row) if row else None

    def _insert(self, user_uuid: str, email: str, password_hash: str) -> User:
        now = datetime.now(timezone.utc).isoformat()
        conn = self.db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    "INSERT INTO users (uuid, email, password_hash, created_at) VALUES (?, ?, ?, ?)",
                    (user_uuid, email, password_hash, now),
                )
            row = conn.execute("SELECT * FROM users WHERE id = ?", (cursor.lastrowid,)).fetchone()
        except sqlite3.IntegrityError as exc:
            raise AuthError(
                "duplicate_email",
                "An account with this email already exists",
                status_code=status.HTTP_409_CONFLICT,
            ) from exc
        finally:
            conn.close()
        return _row_to_user(row)

    def create_user(self, email: str, password: str, password_confirmation: str) -> User:
        """Register an account; raises AuthError on invalid or duplicate input."""
        email = _normalize_email(email)
        if not email or "@" not in email:
            raise AuthError(
                "invalid_email", "Please enter a valid email", status_code=status.HTTP_400_BAD_REQUEST
            )
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(
                "password_too_short",
                f"Password should be at least {MIN_PASSWORD_LENGTH} characters long",
                status_code=status.HTTP_400_BAD_REQUEST,
            )
        if password != password_confirmation:
            raise AuthError(
                "password_mismatch",
                "Password and its confirmation do not match",
                status_code=status.HTTP_400_BAD_REQUEST,
            )

        user = self._insert(str(uuid.uuid4()), email, hash_password(password))
        logger.info("User registered", extra={"user_uuid": user.uuid})
        return user

    def authenticate(self, email: str, password: str) -> User:
        row = self._fetch_one(
            "SELECT * FROM users WHERE email = ?", (_normalize_email(email),)
        )
        if row is None or not verify_password(password, row["password_hash"]):
            logger.info("Sign-in rejected", extra={"email": _normalize_email(email)})
            raise AuthError("invalid_credentials", "Wrong email and password combination")
        return _row_to_user(row)

    def ensure_local_user(self) -> User:
        """Return the account the local-dev token acts as, creating it once."""
        user = self.get_by_uuid(LOCAL_USER_UUID)
        if user:
            return user
        # Unusable hash: the local user can only sign in with the static token
        return self._insert(LOCAL_USER_UUID, LOCAL_USER_EMAIL, "!")


__all__ = ["UserService", "MIN_PASSWORD_LENGTH"]
