"""Refresh-token lifecycle: one live token per account, rotated on every login and refresh."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta

from app.core.errors import AppError, ConfigError
from app.repositories.credential_store import CredentialStore
from app.schemas.account import RefreshTokenRecord

logger = logging.getLogger(__name__)


def parse_ttl_hours(raw: str | int | None) -> int:
    """Parse REFRESH_TOKEN_EXPIRATION_HOURS. Raises ConfigError unless it is a positive integer."""
    try:
        hours = int(str(raw).strip())
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            "Invalid REFRESH_TOKEN_EXPIRATION_HOURS",
            "REFRESH_TOKEN_EXPIRATION_HOURS must be a positive number",
        ) from exc
    if hours <= 0:
        raise ConfigError(
            "Invalid REFRESH_TOKEN_EXPIRATION_HOURS",
            "REFRESH_TOKEN_EXPIRATION_HOURS must be a positive number",
        )
    return hours


class RefreshTokenManager:
    """
    Creates, rotates and validates refresh tokens through a CredentialStore.

    All calls run inside the caller's transaction; the manager never commits.
    ttl_hours is the raw configured value and is only parsed when a token is issued.
    """

    def __init__(self, store: CredentialStore, ttl_hours: str | int | None) -> None:
        self._store = store
        self._ttl_hours = ttl_hours

    def rotate(self, account_id: int) -> RefreshTokenRecord:
        """Delete the account's current refresh token (if any) and issue a new one."""
        if not account_id:
            raise AppError.bad_request(
                "Invalid user ID", "User ID is required to create a refresh token"
            )
        hours = parse_ttl_hours(self._ttl_hours)

        existing = self._store.find_refresh_token_by_account(account_id)
        if existing is not None:
            self._store.delete_refresh_token(existing.token)

        record = RefreshTokenRecord(
            token=str(uuid.uuid4()),
            user_id=account_id,
            expires_at=datetime.now(UTC) + timedelta(hours=hours),
        )
        self._store.insert_refresh_token(record)
        logger.info(
            "Refresh token rotated: user_id=%s replaced=%s expires_at=%s",
            account_id,
            existing is not None,
            record.expires_at.isoformat(),
        )
        return record

    def validate(self, token: str) -> RefreshTokenRecord:
        """
        Return the stored record for token.

        Raises Unauthorized when the token is unknown or expired. An expired record
        is left in place; the retention job removes it.
        """
        if not token:
            raise AppError.bad_request("Invalid refresh token", "Refresh token is required")

        record = self._store.find_refresh_token(token)
        if record is None:
            raise AppError.unauthorized(
                "Invalid or expired refresh token", "Refresh token not found"
            )
        if datetime.now(UTC) > record.expires_at:
            raise AppError.unauthorized("Expired refresh token", "Refresh token has expired")
        return record
