"""Notes endpoints (all require a valid access token)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_claims
from app.core.database import get_db
from app.schemas.auth import SessionClaims
from app.schemas.note import NoteRequest, NoteResponse
from app.services.notes import create_note, get_note, list_notes

router = APIRouter()


@router.post("", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
def post_note(
    body: NoteRequest,
    db: Annotated[Session, Depends(get_db)],
    user: Annotated[SessionClaims, Depends(get_current_claims)],
) -> NoteResponse:
    """Create a note owned by the authenticated account. Titles are unique."""
    return create_note(db, user, body)


@router.get("", response_model=list[NoteResponse])
def get_notes(
    db: Annotated[Session, Depends(get_db)],
    _user: Annotated[SessionClaims, Depends(get_current_claims)],
    page: Annotated[int, Query()] = 1,
    limit: Annotated[int, Query()] = 10,
    sort_by: Annotated[str, Query(alias="sortBy")] = "createdAt",
    sort_order: Annotated[str, Query(alias="sortOrder")] = "desc",
) -> list[NoteResponse]:
    """List notes one page at a time, sorted by createdAt, updatedAt or title."""
    return list_notes(db, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)


@router.get("/{note_id}", response_model=NoteResponse)
def get_note_by_id(
    note_id: str,
    db: Annotated[Session, Depends(get_db)],
    _user: Annotated[SessionClaims, Depends(get_current_claims)],
) -> NoteResponse:
    """Fetch a single note by its UUID."""
    return get_note(db, note_id)
