"""Note pages and the v3 notes API."""

from __future__ import annotations

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from pydantic import ValidationError

from ...models.note import Note, NoteCreate, NoteList
from ...models.search import SearchResponse
from ...services.notes import (
    BookNotFoundError,
    InvalidSearchError,
    NoteNotFoundError,
    NoteService,
    SearchQuery,
)
from ..middleware import AuthContext, get_auth_context, get_optional_auth_context
from ..templates import templates

logger = logging.getLogger(__name__)

router = APIRouter()


def get_note_service() -> NoteService:
    return NoteService()


def _not_found(exc: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "not_found", "message": str(exc)},
    )


def _bad_query(exc: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "invalid_query", "message": str(exc)},
    )


def _validation_message(exc: ValidationError) -> str:
    return "; ".join(error["msg"] for error in exc.errors())


def _render_index(
    request: Request,
    auth: AuthContext,
    service: NoteService,
    query: SearchQuery,
    *,
    error: Optional[str] = None,
    status_code: int = status.HTTP_200_OK,
):
    context = {"user": auth.user, "query": query, "error": error, "notes": [], "results": []}
    try:
        if query.phrase:
            context["results"] = service.search_notes(auth.user_id, query)
        else:
            context["notes"] = service.list_notes(auth.user_id, query)
    except BookNotFoundError as exc:
        raise _not_found(exc) from exc
    except InvalidSearchError as exc:
        context["error"] = str(exc)
        status_code = status.HTTP_400_BAD_REQUEST
    return templates.TemplateResponse(
        request, "notes/index.html", context, status_code=status_code
    )


# Web pages


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    q: Optional[str] = None,
    book: Optional[str] = None,
    all: bool = False,
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    service: NoteService = Depends(get_note_service),
):
    """List the signed-in user's notes, or highlighted search results for ``q``."""
    if auth is None:
        return RedirectResponse("/login?referrer=/", status_code=status.HTTP_303_SEE_OTHER)
    query = SearchQuery(phrase=q, book=book or None, include_archived=all)
    return _render_index(request, auth, service, query)


@router.get("/notes/{note_uuid}", response_class=HTMLResponse)
async def show_note(
    request: Request,
    note_uuid: str,
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    service: NoteService = Depends(get_note_service),
):
    viewer_id = auth.user_id if auth else None
    try:
        note = service.get_note(note_uuid, viewer_id)
    except NoteNotFoundError as exc:
        raise _not_found(exc) from exc
    return templates.TemplateResponse(
        request,
        "notes/show.html",
        {
            "note": note,
            "user": auth.user if auth else None,
            "is_owner": auth is not None and service.is_owner(note_uuid, auth.user_id),
        },
    )


@router.post("/notes")
async def create_note_page(
    request: Request,
    book_name: str = Form(""),
    content: str = Form(""),
    auth: AuthContext = Depends(get_auth_context),
    service: NoteService = Depends(get_note_service),
):
    try:
        data = NoteCreate(book_name=book_name, content=content)
    except ValidationError as exc:
        return _render_index(
            request,
            auth,
            service,
            SearchQuery(),
            error=_validation_message(exc),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    note = service.create_note(auth.user_id, data)
    return RedirectResponse(f"/notes/{note.uuid}", status_code=status.HTTP_303_SEE_OTHER)


@router.delete("/notes/{note_uuid}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note_page(
    note_uuid: str,
    auth: AuthContext = Depends(get_auth_context),
    service: NoteService = Depends(get_note_service),
):
    try:
        service.delete_note(auth.user_id, note_uuid)
    except NoteNotFoundError as exc:
        raise _not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# JSON API


@router.get("/api/v3/notes", response_model=Union[SearchResponse, NoteList])
async def list_notes(
    q: Optional[str] = Query(None, max_length=256),
    book: Optional[str] = None,
    all: bool = False,
    auth: AuthContext = Depends(get_auth_context),
    service: NoteService = Depends(get_note_service),
):
    """List notes, or search them when ``q`` is given."""
    query = SearchQuery(phrase=q, book=book or None, include_archived=all)
    try:
        if q:
            results = service.search_notes(auth.user_id, query)
            return SearchResponse(query=q, results=results, total=len(results))
        notes = service.list_notes(auth.user_id, query)
    except BookNotFoundError as exc:
        raise _not_found(exc) from exc
    except InvalidSearchError as exc:
        raise _bad_query(exc) from exc
    return NoteList(notes=notes, total=len(notes))


@router.get("/api/v3/notes/{note_uuid}", response_model=Note)
async def get_note(
    note_uuid: str,
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    service: NoteService = Depends(get_note_service),
):
    """Get a note; private notes are only visible to their owner."""
    try:
        return service.get_note(note_uuid, auth.user_id if auth else None)
    except NoteNotFoundError as exc:
        raise _not_found(exc) from exc


@router.post("/api/v3/notes", response_model=Note, status_code=status.HTTP_201_CREATED)
async def create_note(
    data: NoteCreate,
    auth: AuthContext = Depends(get_auth_context),
    service: NoteService = Depends(get_note_service),
):
    return service.create_note(auth.user_id, data)


@router.delete("/api/v3/notes/{note_uuid}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_uuid: str,
    auth: AuthContext = Depends(get_auth_context),
    service: NoteService = Depends(get_note_service),
):
    try:
        service.delete_note(auth.user_id, note_uuid)
    except NoteNotFoundError as exc:
        raise _not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router", "get_note_service"]
