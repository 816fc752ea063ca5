"""Error response body shared by every endpoint."""

from typing import Any

from pydantic import BaseModel, Field

from app.core.errors import ErrorKind


class ErrorResponse(BaseModel):
    """Body returned for any failed request."""

    name: ErrorKind = Field(..., description="Error kind")
    message: str = Field(..., description="Human-readable message")
    details: Any | None = Field(default=None, description="Extra context (never sent for internal errors)")
