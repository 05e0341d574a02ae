"""Sign-in, sign-out and registration routes (web pages and JSON API)."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from pydantic import ValidationError

from ...models.auth import SessionResponse, SigninRequest
from ...models.user import User
from ...services.auth import AuthError, AuthService, get_auth_service
from ...services.config import get_config
from ...services.users import UserService
from ..middleware import SESSION_COOKIE, AuthContext, get_optional_auth_context
from ..templates import templates

logger = logging.getLogger(__name__)

router = APIRouter()


def safe_referrer(referrer: Optional[str]) -> str:
    """Only allow same-site relative paths as post-login destinations."""
    # Browsers treat a backslash in a URL as a slash
    if not referrer or not referrer.startswith("/") or "\\" in referrer:
        return "/"
    parts = urlsplit(referrer)
    if parts.scheme or parts.netloc:
        return "/"
    return referrer


def _set_session_cookie(response: Response, key: str, expires_at: datetime) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        key,
        expires=expires_at,
        httponly=True,
        secure=get_config().cookie_secure,
        samesite="lax",
        path="/",
    )


def _start_session(response: Response, user: User, auth_service: AuthService) -> SessionResponse:
    key, expires_at = auth_service.create_session(user.id, user.uuid)
    _set_session_cookie(response, key, expires_at)
    return SessionResponse(key=key, expires_at=expires_at)


def _end_session(response: Response, auth: Optional[AuthContext], auth_service: AuthService) -> None:
    if auth is not None:
        auth_service.revoke_session(auth.payload.sid)
        logger.info("Signed out", extra={"user_uuid": auth.user.uuid})
    response.delete_cookie(SESSION_COOKIE, path="/")


def _require_registration() -> None:
    if get_config().disable_registration:
        raise HTTPException(status_code=404, detail="Registration is disabled")


# Web pages


@router.get("/login", response_class=HTMLResponse)
async def login_page(
    request: Request,
    referrer: Optional[str] = None,
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
):
    if auth is not None:
        return RedirectResponse(safe_referrer(referrer), status_code=status.HTTP_303_SEE_OTHER)
    return templates.TemplateResponse(
        request,
        "users/login.html",
        {
            "referrer": safe_referrer(referrer),
            "registration_enabled": not get_config().disable_registration,
        },
    )


@router.post("/login")
async def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    referrer: str = Form("/"),
    auth_service: AuthService = Depends(get_auth_service),
):
    try:
        user = UserService(auth_service.db).authenticate(email, password)
    except AuthError as exc:
        return templates.TemplateResponse(
            request,
            "users/login.html",
            {
                "referrer": safe_referrer(referrer),
                "email": email,
                "error": exc.message,
                "registration_enabled": not get_config().disable_registration,
            },
            status_code=exc.status_code,
        )

    response = RedirectResponse(safe_referrer(referrer), status_code=status.HTTP_303_SEE_OTHER)
    _start_session(response, user, auth_service)
    return response


@router.post("/logout")
async def logout(
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    auth_service: AuthService = Depends(get_auth_service),
):
    response = RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)
    _end_session(response, auth, auth_service)
    return response


@router.get("/join", response_class=HTMLResponse)
async def join_page(request: Request, _: None = Depends(_require_registration)):
    return templates.TemplateResponse(request, "users/join.html", {})


@router.post("/join")
async def join(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    password_confirmation: str = Form(""),
    _: None = Depends(_require_registration),
    auth_service: AuthService = Depends(get_auth_service),
):
    try:
        user = UserService(auth_service.db).create_user(email, password, password_confirmation)
    except AuthError as exc:
        return templates.TemplateResponse(
            request,
            "users/join.html",
            {"email": email, "error": exc.message},
            status_code=exc.status_code,
        )

    response = RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
    _start_session(response, user, auth_service)
    return response


# JSON API


async def _read_signin(request: Request) -> SigninRequest:
    content_type = request.headers.get("content-type", "")
    try:
        if content_type.startswith("application/json"):
            data = await request.json()
        else:
            data = dict(await request.form())
        return SigninRequest.model_validate(data)
    except (ValueError, ValidationError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_error", "message": "email and password are required"},
        ) from exc


@router.post("/api/v3/signin", response_model=SessionResponse)
async def signin(
    request: Request,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Exchange email and password for a session key."""
    credentials = await _read_signin(request)
    try:
        user = UserService(auth_service.db).authenticate(credentials.email, credentials.password)
    except AuthError as exc:
        raise HTTPException(
            status_code=exc.status_code,
            detail={"error": exc.error, "message": exc.message},
        ) from exc
    return _start_session(response, user, auth_service)


@router.post("/api/v3/signout", status_code=status.HTTP_204_NO_CONTENT)
async def signout(
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Revoke the current session key, if any."""
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    _end_session(response, auth, auth_service)
    return response


__all__ = ["router", "safe_referrer"]
