"""Login and refresh-token routes plus the bearer-token dependency (get_current_claims)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.errors import AppError
from app.core.tokens import TokenCodec, get_token_codec
from app.repositories.credential_store import SqlAlchemyCredentialStore
from app.schemas.auth import (
    LoginRequest,
    RefreshTokenRequest,
    SessionClaims,
    TokenResponse,
)
from app.services.auth import AuthSessionService
from app.services.refresh_tokens import RefreshTokenManager

router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_auth_service(
    db: Annotated[Session, Depends(get_db)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthSessionService:
    """Dependency: auth service bound to this request's DB session."""
    store = SqlAlchemyCredentialStore(db)
    return AuthSessionService(
        store,
        codec,
        RefreshTokenManager(store, settings.REFRESH_TOKEN_EXPIRATION_HOURS),
        recheck_account_on_refresh=settings.REFRESH_RECHECK_ACCOUNT_STATE,
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
    )


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    service: Annotated[AuthSessionService, Depends(get_auth_service)],
) -> TokenResponse:
    """
    Authenticate with username and password; returns an access token and a refresh token.
    Include the access token in the Authorization header as: Bearer <accessToken>
    """
    return service.login(body.username, body.password)


@router.post("/refresh-token", response_model=TokenResponse)
def refresh_token(
    body: RefreshTokenRequest,
    service: Annotated[AuthSessionService, Depends(get_auth_service)],
) -> TokenResponse:
    """Exchange a refresh token for a new token pair. The presented refresh token is consumed."""
    return service.exchange_refresh_token(body.refresh_token)


def verify_bearer_token(token: str, codec: TokenCodec) -> SessionClaims:
    """Verify an access token; token errors keep their kind, anything else becomes InternalError."""
    try:
        return codec.verify(token)
    except AppError:
        raise
    except Exception as exc:
        raise AppError.internal(
            "An unexpected error occurred during authentication", repr(exc)
        ) from exc


def get_current_claims(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
) -> SessionClaims:
    """
    Dependency: require a valid Bearer access token and return its claims.

    The claims are also stored on request.state.user for downstream consumers.
    """
    if credentials is None:
        raise AppError.unauthorized(
            "Missing or invalid Authorization header",
            "Authorization header must be 'Bearer <token>'",
        )
    claims = verify_bearer_token(credentials.credentials, codec)
    request.state.user = claims
    return claims
