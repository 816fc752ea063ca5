"""Plain records exchanged between the credential store and the auth services."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AccountType(str, Enum):
    SERVICE_ACCOUNT = "SERVICE_ACCOUNT"
    USER_ACCOUNT = "USER_ACCOUNT"


class RoleName(str, Enum):
    ROLE_USER = "ROLE_USER"
    ROLE_MODERATOR = "ROLE_MODERATOR"
    ROLE_ADMIN = "ROLE_ADMIN"


class AccountRecord(BaseModel):
    """
    Account identity and state flags as seen by the auth core.

    roles holds the names of the account's (non-deleted) role assignments.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    password_hash: str
    email: str
    firstname: str
    lastname: str | None = None
    enabled: bool = False
    account_non_expired: bool = False
    account_non_locked: bool = False
    credentials_non_expired: bool = False
    deleted: bool = False
    account_expiration_date: datetime | None = None
    credentials_expiration_date: datetime | None = None
    user_type: AccountType = AccountType.USER_ACCOUNT
    last_login: datetime | None = None
    roles: list[str] = Field(default_factory=list)


class RefreshTokenRecord(BaseModel):
    """A persisted refresh token: opaque value, owning account, absolute expiry (UTC)."""

    model_config = ConfigDict(frozen=True)

    token: str
    user_id: int
    expires_at: datetime
