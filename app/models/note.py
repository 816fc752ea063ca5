"""ORM model for notes."""

import uuid

from sqlalchemy import Column, String, Text

from app.models.base import AuditMixin, Base


def _new_note_id() -> str:
    return str(uuid.uuid4())


class Note(AuditMixin, Base):
    """Note with a globally unique title; created_by/updated_by hold the author's user id."""

    __tablename__ = "notes"

    id = Column(String(36), primary_key=True, default=_new_note_id)
    title = Column(String(150), nullable=False, unique=True)
    content = Column(Text, nullable=False)
