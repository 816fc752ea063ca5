"""Login and refresh-token exchange, each executed as one transaction over the credential store."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from app.core.errors import AppError, as_app_error
from app.core.security import DEFAULT_BCRYPT_ROUNDS, dummy_password_hash, verify_password
from app.core.tokens import TokenCodec
from app.repositories.credential_store import CredentialStore, transaction
from app.schemas.account import AccountRecord
from app.schemas.auth import TOKEN_TYPE, SessionClaims, TokenResponse
from app.services.refresh_tokens import RefreshTokenManager

logger = logging.getLogger(__name__)

# Unknown user and wrong password must look identical to the caller; the reason is only logged.
INVALID_CREDENTIALS_MESSAGE = "Invalid username or password"


def check_account_state(account: AccountRecord) -> None:
    """Reject accounts that may not authenticate. Checks run in a fixed order."""
    if not account.enabled:
        raise AppError.forbidden(
            "Account is disabled", "User account is not enabled. Please contact support."
        )
    if not account.account_non_expired:
        raise AppError.forbidden(
            "Account is expired", "User account is expired. Please contact support."
        )
    if not account.account_non_locked:
        raise AppError.forbidden(
            "Account is locked", "User account is locked. Please contact support."
        )
    if not account.credentials_non_expired:
        raise AppError.unauthorized(
            "Credentials are expired", "User credentials are expired. Please contact support."
        )
    if account.deleted:
        raise AppError.forbidden(
            "Account is deleted", "User account is deleted. Please contact support."
        )


class AuthSessionService:
    """
    Orchestrates login and refresh over a CredentialStore bound to one request.

    Any failure rolls the transaction back before the error propagates. AppErrors
    pass through unchanged; anything else is reported as an internal error.
    """

    def __init__(
        self,
        store: CredentialStore,
        codec: TokenCodec,
        refresh_tokens: RefreshTokenManager,
        recheck_account_on_refresh: bool = False,
        bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS,
    ) -> None:
        self._store = store
        self._codec = codec
        self._refresh_tokens = refresh_tokens
        self._recheck_account_on_refresh = recheck_account_on_refresh
        self._bcrypt_rounds = bcrypt_rounds

    def _issue(self, account: AccountRecord) -> TokenResponse:
        access_token = self._codec.sign(SessionClaims.from_account(account))
        expiration_at = self._codec.expiration_of(access_token)
        refresh = self._refresh_tokens.rotate(account.id)
        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh.token,
            expiration_at=expiration_at,
            token_type=TOKEN_TYPE,
        )

    def login(self, username: str, password: str) -> TokenResponse:
        """Verify credentials and account state; issue an access token and a rotated refresh token."""
        try:
            with transaction(self._store):
                account = self._store.find_account_by_username(username)
                if account is None:
                    verify_password(password, dummy_password_hash(self._bcrypt_rounds))
                    logger.warning("Login rejected: unknown username")
                    raise AppError.unauthorized(INVALID_CREDENTIALS_MESSAGE)

                check_account_state(account)

                if not verify_password(password, account.password_hash):
                    logger.warning("Login rejected: bad password for user_id=%s", account.id)
                    raise AppError.unauthorized(INVALID_CREDENTIALS_MESSAGE)

                response = self._issue(account)

                now = datetime.now(UTC)
                if self._store.update_last_login(account.id, now) == 0:
                    raise AppError.not_found(
                        "User not found", "No user found with the provided ID"
                    )
        except Exception as exc:
            err = as_app_error(exc, "An unexpected error occurred during login")
            if err is exc:
                raise
            logger.exception("Login failed unexpectedly")
            raise err from exc

        logger.info("Login succeeded: user_id=%s", account.id)
        return response

    def exchange_refresh_token(self, refresh_token: str) -> TokenResponse:
        """Consume a refresh token and issue a new access token plus a new refresh token."""
        try:
            with transaction(self._store):
                record = self._refresh_tokens.validate(refresh_token)

                account = self._store.find_account_by_id(record.user_id)
                if account is None:
                    raise AppError.unauthorized(
                        "User not found", "No user associated with this refresh token"
                    )
                if self._recheck_account_on_refresh:
                    check_account_state(account)

                response = self._issue(account)
        except Exception as exc:
            err = as_app_error(exc, "An unexpected error occurred during token refresh")
            if err is exc:
                raise
            logger.exception("Token refresh failed unexpectedly")
            raise err from exc

        logger.info("Refresh token exchanged: user_id=%s", account.id)
        return response
