"""Request/response schemas for notes."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class NoteRequest(BaseModel):
    """Title and content for a new note."""

    title: str = Field(..., min_length=1, max_length=150, description="Unique note title")
    content: str = Field(..., min_length=1, max_length=5000, description="Note body")


class NoteResponse(BaseModel):
    """A stored note."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    title: str
    content: str
    created_at: datetime
    updated_at: datetime
