"""Authentication helpers: password hashing, session keys and token strategies."""

from __future__ import annotations

import abc
import base64
import logging
import os
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import jwt
from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from fastapi import status
from pydantic import ValidationError

from ..models.auth import JWTPayload
from .config import AppConfig, get_config
from .database import DatabaseService

logger = logging.getLogger(__name__)

PASSWORD_ITERATIONS = 390_000
SALT_BYTES = 16
HASH_SCHEME = "pbkdf2_sha256"
LOCAL_USER_UUID = "local-dev"
DEV_FALLBACK_SECRET = "local-dev-secret-key-123"


class AuthError(Exception):
    """Domain-specific authentication error."""

    def __init__(
        self,
        error: str,
        message: str,
        *,
        status_code: int = status.HTTP_401_UNAUTHORIZED,
        detail: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.error = error
        self.message = message
        self.status_code = status_code
        self.detail = detail or {}


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii")


def _kdf(salt: bytes, iterations: int) -> PBKDF2HMAC:
    return PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=iterations)


def hash_password(password: str) -> str:
    """Return ``scheme$iterations$salt$hash`` for storage."""
    salt = secrets.token_bytes(SALT_BYTES)
    derived = _kdf(salt, PASSWORD_ITERATIONS).derive(password.encode("utf-8"))
    return f"{HASH_SCHEME}${PASSWORD_ITERATIONS}${_b64(salt)}${_b64(derived)}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        scheme, iterations, salt, expected = encoded.split("$")
        if scheme != HASH_SCHEME:
            return False
        rounds = int(iterations)
        if rounds < 1:
            return False
        kdf = _kdf(base64.urlsafe_b64decode(salt), rounds)
        digest = base64.urlsafe_b64decode(expected)
    except ValueError:
        return False

    try:
        kdf.verify(password.encode("utf-8"), digest)
    except InvalidKey:
        return False
    return True


def _require_secret(config: AppConfig) -> str:
    secret = config.jwt_secret_key
    if not secret:
        # Development servers may run without a configured secret
        env = os.getenv("ENVIRONMENT", "").lower()
        if env in ("development", "dev") and config.enable_local_mode:
            return DEV_FALLBACK_SECRET
        raise AuthError(
            "missing_jwt_secret",
            "JWT secret is not configured.",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return secret


class TokenValidator(abc.ABC):
    """Abstract base class for token validation strategies."""

    @abc.abstractmethod
    def validate(self, token: str) -> Optional[JWTPayload]:
        """
        Validate the token and return payload if valid, or None if this validator
        does not recognize the token (allow fallthrough).
        Raises AuthError if token is recognized but invalid/expired.
        """


class StaticTokenValidator(TokenValidator):
    """Validates against a configured static token (local development)."""

    def __init__(self, static_token: Optional[str], user_uuid: str):
        self.static_token = static_token
        self.user_uuid = user_uuid

    def validate(self, token: str) -> Optional[JWTPayload]:
        if self.static_token and secrets.compare_digest(
            token.encode("utf-8"), self.static_token.encode("utf-8")
        ):
            now = datetime.now(timezone.utc)
            return JWTPayload(
                sub=self.user_uuid,
                iat=int(now.timestamp()),
                exp=int((now + timedelta(days=365)).timestamp()),
            )
        return None


class JWTValidator(TokenValidator):
    """Validates session keys signed by the application secret."""

    def __init__(self, config: AppConfig, algorithm: str = "HS256"):
        self.config = config
        self.algorithm = algorithm

    def validate(self, token: str) -> Optional[JWTPayload]:
        try:
            decoded = jwt.decode(token, _require_secret(self.config), algorithms=[self.algorithm])
            return JWTPayload.model_validate(decoded)
        except jwt.ExpiredSignatureError as exc:
            raise AuthError("token_expired", "Session expired") from exc
        except jwt.DecodeError:
            # Not a JWT at all; let the chain report invalid credentials
            return None
        except (jwt.InvalidTokenError, ValidationError) as exc:
            raise AuthError("invalid_token", f"Invalid token: {exc}") from exc


class AuthService:
    """Issue, validate and revoke session keys."""

    def __init__(
        self,
        config: AppConfig | None = None,
        db: DatabaseService | None = None,
        *,
        algorithm: str = "HS256",
    ) -> None:
        self.config = config or get_config()
        self.db = db or DatabaseService(self.config.database_path)
        self.algorithm = algorithm

        self.validators: List[TokenValidator] = []
        if self.config.enable_local_mode:
            self.validators.append(
                StaticTokenValidator(self.config.local_dev_token, LOCAL_USER_UUID)
            )
        self.validators.append(JWTValidator(self.config, algorithm))

    def _session_exists(self, sid: str) -> bool:
        conn = self.db.connect()
        try:
            row = conn.execute(
                "SELECT expires_at FROM sessions WHERE sid = ?", (sid,)
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return False
        return datetime.fromisoformat(row["expires_at"]) > datetime.now(timezone.utc)

    def validate_key(self, token: str) -> JWTPayload:
        """
        Validate a credential against all registered strategies.

        Signed keys must also reference a live row in ``sessions``; signing
        out deletes that row, so a revoked key stops working before it
        expires.
        """
        for validator in self.validators:
            payload = validator.validate(token)
            if payload is None:
                continue
            if isinstance(validator, JWTValidator) and not self._session_exists(payload.sid):
                raise AuthError("session_revoked", "Session is no longer valid")
            return payload

        raise AuthError("invalid_token", "Invalid authentication credentials")

    def create_session(self, user_id: int, user_uuid: str) -> tuple[str, datetime]:
        """Persist a session and return its signed key with the expiry time."""
        secret = _require_secret(self.config)
        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(days=self.config.session_ttl_days)
        sid = uuid.uuid4().hex

        conn = self.db.connect()
        try:
            with conn:
                conn.execute(
                    "INSERT INTO sessions (sid, user_id, created_at, expires_at) VALUES (?, ?, ?, ?)",
                    (sid, user_id, now.isoformat(), expires_at.isoformat()),
                )
        finally:
            conn.close()

        payload = JWTPayload(
            sub=user_uuid,
            sid=sid,
            iat=int(now.timestamp()),
            exp=int(expires_at.timestamp()),
        )
        key = jwt.encode(payload.model_dump(), secret, algorithm=self.algorithm)
        logger.info("Session created", extra={"user_uuid": user_uuid})
        return key, expires_at

    def revoke_session(self, sid: str) -> None:
        if not sid:
            return
        conn = self.db.connect()
        try:
            with conn:
                conn.execute("DELETE FROM sessions WHERE sid = ?", (sid,))
        finally:
            conn.close()


def get_auth_service() -> AuthService:
    """FastAPI dependency returning a service bound to the current config."""
    return AuthService(get_config())


__all__ = [
    "AuthError",
    "AuthService",
    "JWTValidator",
    "LOCAL_USER_UUID",
    "StaticTokenValidator",
    "TokenValidator",
    "get_auth_service",
    "hash_password",
    "verify_password",
]
