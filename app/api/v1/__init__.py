"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import auth, health, notes
from app.schemas.error import ErrorResponse

# Error bodies documented in OpenAPI for every authenticated or validated route.
_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    401: {"model": ErrorResponse, "description": "Missing, invalid or expired credentials"},
    500: {"model": ErrorResponse, "description": "Internal error"},
}

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(
    auth.router,
    prefix="/auth",
    tags=["auth"],
    responses={**_ERRORS, 403: {"model": ErrorResponse, "description": "Account state forbids login"}},
)
router.include_router(
    notes.router,
    prefix="/notes",
    tags=["notes"],
    responses={
        **_ERRORS,
        404: {"model": ErrorResponse, "description": "Note not found"},
        409: {"model": ErrorResponse, "description": "Duplicate note title"},
    },
)
