"""Request/response schemas for auth endpoints and the signed session claims."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.account import AccountRecord, AccountType

TOKEN_TYPE = "Bearer"


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(..., min_length=3, max_length=20, description="Username")
    password: str = Field(..., min_length=6, max_length=150, description="Password")


class RefreshTokenRequest(BaseModel):
    """Refresh token to exchange for a new token pair."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    refresh_token: str = Field(..., min_length=1, max_length=500, description="Refresh token")


class TokenResponse(BaseModel):
    """Access token, rotated refresh token and access-token expiry returned by login and refresh."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="Single-use refresh token")
    expiration_at: datetime = Field(..., description="Access token expiry (UTC)")
    token_type: str = Field(default=TOKEN_TYPE, description="Token type")


class SessionClaims(BaseModel):
    """
    JWT payload for an authenticated account.

    Built from the account and its role names at signing time; iat and exp are
    set by the token codec and are None on claims that have not been signed yet.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    username: str
    email: str
    firstname: str
    lastname: str | None = None
    user_type: AccountType = Field(default=AccountType.USER_ACCOUNT, alias="userType")
    roles: list[str] = Field(default_factory=list)
    iat: int | None = None
    exp: int | None = None

    @classmethod
    def from_account(cls, account: AccountRecord) -> "SessionClaims":
        return cls(
            id=account.id,
            username=account.username,
            email=account.email,
            firstname=account.firstname,
            lastname=account.lastname,
            user_type=account.user_type,
            roles=list(account.roles),
        )
