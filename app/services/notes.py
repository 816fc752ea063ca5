"""Notes: create, list and fetch, scoped to the authenticated account."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import AppError, StoreError, as_app_error
from app.models import Note
from app.schemas.auth import SessionClaims
from app.schemas.note import NoteRequest, NoteResponse

logger = logging.getLogger(__name__)

# Public sort keys -> columns.
SORTABLE_COLUMNS = {
    "createdAt": Note.created_at,
    "updatedAt": Note.updated_at,
    "title": Note.title,
}
SORT_ORDERS = ("asc", "desc")
MAX_PAGE_SIZE = 100


def create_note(db: Session, author: SessionClaims, body: NoteRequest) -> NoteResponse:
    """Create a note owned by author. Raises Conflict when the title is already taken."""
    try:
        existing = db.scalars(
            select(Note).where(Note.title == body.title, Note.deleted_at.is_(None))
        ).first()
        if existing is not None:
            raise AppError.conflict(
                "Duplicate note title", "A note with this title already exists"
            )
        note = Note(
            title=body.title,
            content=body.content,
            created_by=author.id,
            updated_by=author.id,
        )
        db.add(note)
        db.commit()
        db.refresh(note)
    except Exception as exc:
        db.rollback()
        # A concurrent insert can pass the lookup above and still hit the unique title index.
        if isinstance(exc, IntegrityError):
            raise AppError.conflict(
                "Duplicate note title", "A note with this title already exists"
            ) from exc
        if isinstance(exc, SQLAlchemyError):
            raise StoreError(
                "Database error",
                f"An error occurred while creating the note due to: {exc}",
            ) from exc
        err = as_app_error(exc, "An unexpected error occurred while creating the note")
        if err is exc:
            raise
        raise err from exc

    logger.info("Note created: id=%s user_id=%s", note.id, author.id)
    return NoteResponse.model_validate(note)


def list_notes(
    db: Session,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> list[NoteResponse]:
    """
    Return one page of notes.

    Raises BadRequest for an unknown sort key/order or out-of-range paging and
    NotFound when the page is empty.
    """
    if page < 1:
        raise AppError.bad_request("Invalid page", "page must be at least 1")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise AppError.bad_request("Invalid limit", f"limit must be between 1 and {MAX_PAGE_SIZE}")
    column = SORTABLE_COLUMNS.get(sort_by)
    if column is None:
        raise AppError.bad_request(
            "Invalid sort field", f"sortBy must be one of {', '.join(SORTABLE_COLUMNS)}"
        )
    order = sort_order.lower()
    if order not in SORT_ORDERS:
        raise AppError.bad_request("Invalid sort order", "sortOrder must be asc or desc")

    stmt = (
        select(Note)
        .where(Note.deleted_at.is_(None))
        .order_by(column.asc() if order == "asc" else column.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    try:
        notes = db.scalars(stmt).all()
    except SQLAlchemyError as exc:
        raise StoreError(
            "Database error",
            f"An error occurred while fetching notes due to: {exc}",
        ) from exc
    if not notes:
        raise AppError.not_found(
            "No notes found", "There are no notes available at the moment."
        )
    return [NoteResponse.model_validate(n) for n in notes]


def get_note(db: Session, note_id: str) -> NoteResponse:
    """Fetch a note by UUID. Raises BadRequest for a malformed id and NotFound when absent."""
    if not note_id:
        raise AppError.bad_request("Invalid note ID", "Note ID is required")
    try:
        canonical_id = str(uuid.UUID(note_id))
    except ValueError as exc:
        raise AppError.bad_request(
            "Invalid note ID format", "Note ID must be a valid UUID"
        ) from exc

    try:
        note = db.scalars(
            select(Note).where(Note.id == canonical_id, Note.deleted_at.is_(None))
        ).first()
    except SQLAlchemyError as exc:
        raise StoreError(
            "Database error",
            f"An error occurred while fetching the note due to: {exc}",
        ) from exc
    if note is None:
        raise AppError.not_found("Note not found", f"No note found with ID {note_id}")
    return NoteResponse.model_validate(note)
