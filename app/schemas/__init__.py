"""Pydantic request/response schemas."""

from app.schemas.account import (
    AccountRecord,
    AccountType,
    RefreshTokenRecord,
    RoleName,
)
from app.schemas.auth import (
    TOKEN_TYPE,
    LoginRequest,
    RefreshTokenRequest,
    SessionClaims,
    TokenResponse,
)
from app.schemas.error import ErrorResponse
from app.schemas.health import HealthResponse
from app.schemas.note import NoteRequest, NoteResponse

__all__ = [
    "AccountRecord",
    "AccountType",
    "ErrorResponse",
    "HealthResponse",
    "LoginRequest",
    "NoteRequest",
    "NoteResponse",
    "RefreshTokenRecord",
    "RefreshTokenRequest",
    "RoleName",
    "SessionClaims",
    "TOKEN_TYPE",
    "TokenResponse",
]
