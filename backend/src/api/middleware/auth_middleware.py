"""Authentication dependency helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Cookie, Depends, Header, HTTPException, status

from ...models.auth import JWTPayload
from ...models.user import User
from ...services.auth import LOCAL_USER_UUID, AuthError, AuthService, get_auth_service
from ...services.users import UserService

SESSION_COOKIE = "id"


def _unauthorized(message: str, error: str = "unauthorized") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
    )


@dataclass
class AuthContext:
    """Context extracted from a session key."""

    user: User
    token: str
    payload: JWTPayload

    @property
    def user_id(self) -> int:
        return self.user.id


def _credential(authorization: Optional[str], session_key: Optional[str]) -> Optional[str]:
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token:
            raise _unauthorized("Authorization header must be in format: Bearer <token>")
        return token
    return session_key or None


def _resolve(token: str, auth_service: AuthService) -> AuthContext:
    try:
        payload = auth_service.validate_key(token)
    except AuthError as exc:
        raise HTTPException(
            status_code=exc.status_code,
            detail={"error": exc.error, "message": exc.message, "detail": exc.detail},
        ) from exc

    users = UserService(auth_service.db)
    if payload.sub == LOCAL_USER_UUID and not payload.sid:
        user = users.ensure_local_user()
    else:
        user = users.get_by_uuid(payload.sub)
    if user is None:
        raise _unauthorized("Account no longer exists", error="invalid_token")
    return AuthContext(user=user, token=token, payload=payload)


def get_auth_context(
    authorization: Annotated[Optional[str], Header(alias="Authorization")] = None,
    session_key: Annotated[Optional[str], Cookie(alias=SESSION_COOKIE)] = None,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthContext:
    """
    Resolve the signed-in user from a Bearer header or the session cookie.

    Raises HTTPException if neither is present or the key is invalid.
    """
    token = _credential(authorization, session_key)
    if not token:
        raise _unauthorized("Authorization header or session cookie required")
    return _resolve(token, auth_service)


def get_optional_auth_context(
    authorization: Annotated[Optional[str], Header(alias="Authorization")] = None,
    session_key: Annotated[Optional[str], Cookie(alias=SESSION_COOKIE)] = None,
    auth_service: AuthService = Depends(get_auth_service),
) -> Optional[AuthContext]:
    """Like get_auth_context, but guests and stale cookies yield None."""
    try:
        token = _credential(authorization, session_key)
        if not token:
            return None
        return _resolve(token, auth_service)
    except HTTPException as exc:
        if exc.status_code == status.HTTP_401_UNAUTHORIZED:
            return None
        raise


__all__ = ["AuthContext", "SESSION_COOKIE", "get_auth_context", "get_optional_auth_context"]
