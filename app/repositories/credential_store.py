"""Credential store: accounts, role names and refresh-token rows behind one transactional interface."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Protocol

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import StoreError
from app.models import RefreshToken, User
from app.schemas.account import AccountRecord, AccountType, RefreshTokenRecord


class CredentialStore(Protocol):
    """
    Operations the auth core needs from persistence.

    Every call runs inside the transaction opened by begin() on the same store
    instance; a store is bound to exactly one unit of work (one request).
    """

    def begin(self) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def find_account_by_username(self, username: str) -> AccountRecord | None: ...

    def find_account_by_id(self, account_id: int) -> AccountRecord | None: ...

    def update_last_login(self, account_id: int, timestamp: datetime) -> int: ...

    def find_refresh_token_by_account(self, account_id: int) -> RefreshTokenRecord | None: ...

    def find_refresh_token(self, token: str) -> RefreshTokenRecord | None: ...

    def delete_refresh_token(self, token: str) -> int: ...

    def insert_refresh_token(self, record: RefreshTokenRecord) -> RefreshTokenRecord: ...


@contextmanager
def transaction(store: CredentialStore) -> Iterator[CredentialStore]:
    """Begin a transaction; commit when the block succeeds, roll back on any error."""
    store.begin()
    try:
        yield store
        store.commit()
    except BaseException:
        store.rollback()
        raise


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite returns naive datetimes for timezone-aware columns.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def _account_record(user: User) -> AccountRecord:
    return AccountRecord(
        id=user.id,
        username=user.username,
        password_hash=user.password_hash,
        email=user.email,
        firstname=user.firstname,
        lastname=user.lastname,
        enabled=bool(user.is_enabled),
        account_non_expired=bool(user.is_account_non_expired),
        account_non_locked=bool(user.is_account_non_locked),
        credentials_non_expired=bool(user.is_credentials_non_expired),
        deleted=bool(user.is_deleted),
        account_expiration_date=_as_utc(user.account_expiration_date),
        credentials_expiration_date=_as_utc(user.credentials_expiration_date),
        user_type=AccountType(user.user_type),
        last_login=_as_utc(user.last_login),
        roles=[role.name for role in user.roles if role.deleted_at is None],
    )


def _refresh_token_record(row: RefreshToken) -> RefreshTokenRecord:
    return RefreshTokenRecord(
        token=row.token,
        user_id=row.user_id,
        expires_at=_as_utc(row.expires_at),
    )


class SqlAlchemyCredentialStore:
    """CredentialStore over a request-scoped SQLAlchemy Session (the transaction handle)."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def begin(self) -> None:
        try:
            if not self._session.in_transaction():
                self._session.begin()
        except SQLAlchemyError as exc:
            raise StoreError("Database error", f"Failed to begin transaction: {exc}") from exc

    def commit(self) -> None:
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            raise StoreError("Database error", f"Failed to commit transaction: {exc}") from exc

    def rollback(self) -> None:
        self._session.rollback()

    def find_account_by_username(self, username: str) -> AccountRecord | None:
        stmt = select(User).where(User.username == username, User.deleted_at.is_(None))
        try:
            user = self._session.scalars(stmt).first()
        except SQLAlchemyError as exc:
            raise StoreError("Database error", f"Failed to load account: {exc}") from exc
        return _account_record(user) if user is not None else None

    def find_account_by_id(self, account_id: int) -> AccountRecord | None:
        stmt = select(User).where(User.id == account_id, User.deleted_at.is_(None))
        try:
            user = self._session.scalars(stmt).first()
        except SQLAlchemyError as exc:
            raise StoreError("Database error", f"Failed to load account: {exc}") from exc
        return _account_record(user) if user is not None else None

    def update_last_login(self, account_id: int, timestamp: datetime) -> int:
        stmt = (
            update(User)
            .where(User.id == account_id, User.deleted_at.is_(None))
            .values(last_login=timestamp, updated_by=account_id, updated_at=timestamp)
            .execution_options(synchronize_session=False)
        )
        try:
            return self._session.execute(stmt).rowcount
        except SQLAlchemyError as exc:
            raise StoreError("Database error", f"Failed to update last login: {exc}") from exc

    def find_refresh_token_by_account(self, account_id: int) -> RefreshTokenRecord | None:
        stmt = select(RefreshToken).where(RefreshToken.user_id == account_id)
        try:
            row = self._session.scalars(stmt).first()
        except SQLAlchemyError as exc:
            raise StoreError("Database error", f"Failed to load refresh token: {exc}") from exc
        return _refresh_token_record(row) if row is not None else None

    def find_refresh_token(self, token: str) -> RefreshTokenRecord | None:
        try:
            row = self._session.get(RefreshToken, token)
        except SQLAlchemyError as exc:
            raise StoreError("Database error", f"Failed to load refresh token: {exc}") from exc
        return _refresh_token_record(row) if row is not None else None

    def delete_refresh_token(self, token: str) -> int:
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.token == token)
            .execution_options(synchronize_session="fetch")
        )
        try:
            return self._session.execute(stmt).rowcount
        except SQLAlchemyError as exc:
            raise StoreError("Database error", f"Failed to delete refresh token: {exc}") from exc

    def insert_refresh_token(self, record: RefreshTokenRecord) -> RefreshTokenRecord:
        row = RefreshToken(
            token=record.token,
            user_id=record.user_id,
            expires_at=record.expires_at,
        )
        try:
            self._session.add(row)
            self._session.flush()
        except SQLAlchemyError as exc:
            raise StoreError("Database error", f"Failed to create refresh token: {exc}") from exc
        return record
