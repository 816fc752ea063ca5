"""Signed access tokens (JWT): signing, verification and claim introspection."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from pathlib import Path
from typing import Any

import jwt
from jwt.algorithms import get_default_algorithms
from pydantic import ValidationError

from app.core.config import Settings, get_settings
from app.core.errors import (
    ConfigError,
    ExpiredTokenError,
    InvalidTokenError,
    NotYetValidError,
)
from app.schemas.auth import SessionClaims

logger = logging.getLogger(__name__)

HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")
RSA_ALGORITHMS = ("RS256", "RS384", "RS512")
SUPPORTED_ALGORITHMS = HMAC_ALGORITHMS + RSA_ALGORITHMS

# Claims added at signing time; not part of the account-derived payload.
_TIME_CLAIMS = {"iat", "exp"}


def _read_key_file(path: str, label: str) -> str:
    key_path = Path(path)
    if not key_path.is_file():
        raise ConfigError(
            f"{label} file not found at {path}",
            f"Ensure JWT_{label.upper().replace(' ', '_')}_PATH is set correctly or the file exists",
        )
    try:
        return key_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {label} from {path}", str(exc)) from exc


def _prepare_key(algorithm: str, raw: str | bytes, label: str) -> Any:
    """Parse key material once so every sign/verify reuses the same key object."""
    try:
        alg_obj = get_default_algorithms()[algorithm]
    except KeyError as exc:
        raise ConfigError(
            f"JWT algorithm {algorithm} is not available",
            "RSA algorithms require the 'cryptography' package",
        ) from exc
    try:
        return alg_obj.prepare_key(raw)
    except (jwt.InvalidKeyError, ValueError, TypeError) as exc:
        raise ConfigError(f"Invalid {label} for {algorithm}", str(exc)) from exc


class TokenCodec:
    """
    Immutable signer/verifier for SessionClaims.

    HS* algorithms sign and verify with the same shared secret; RS* algorithms sign
    with a private key and verify with the matching public key. Build it once per
    process (see get_token_codec) so key files are read a single time.
    """

    __slots__ = ("_algorithm", "_expire_minutes", "_signing_key", "_verification_key")

    def __init__(
        self,
        algorithm: str | None,
        expire_minutes: int | None,
        signing_key: str | bytes | None,
        verification_key: str | bytes | None,
    ) -> None:
        if not algorithm or algorithm not in SUPPORTED_ALGORITHMS:
            raise ConfigError(
                f"Invalid JWT_ALGORITHM: {algorithm}",
                "JWT_ALGORITHM must be one of " + ", ".join(SUPPORTED_ALGORITHMS),
            )
        if (
            not isinstance(expire_minutes, int)
            or isinstance(expire_minutes, bool)
            or expire_minutes <= 0
        ):
            raise ConfigError(
                "Invalid JWT_EXPIRE_MINUTES",
                "JWT_EXPIRE_MINUTES must be a positive number of minutes",
            )
        if not signing_key or not verification_key:
            raise ConfigError(
                "Secret or key not found",
                "Ensure JWT_SECRET or JWT_PRIVATE_KEY_PATH/JWT_PUBLIC_KEY_PATH are set correctly",
            )
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes
        self._signing_key = _prepare_key(algorithm, signing_key, "signing key")
        self._verification_key = _prepare_key(algorithm, verification_key, "verification key")

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenCodec:
        """Load key material for the configured algorithm. Raises ConfigError when it is missing."""
        algorithm = (settings.JWT_ALGORITHM or "").strip().upper()
        if algorithm in HMAC_ALGORITHMS:
            secret = settings.JWT_SECRET.get_secret_value() if settings.JWT_SECRET else ""
            if not secret.strip():
                raise ConfigError(
                    "Invalid JWT_SECRET",
                    "JWT_SECRET is not defined in environment variables",
                )
            return cls(algorithm, settings.JWT_EXPIRE_MINUTES, secret, secret)
        if algorithm in RSA_ALGORITHMS:
            private_key = _read_key_file(settings.JWT_PRIVATE_KEY_PATH, "private key")
            public_key = _read_key_file(settings.JWT_PUBLIC_KEY_PATH, "public key")
            return cls(algorithm, settings.JWT_EXPIRE_MINUTES, private_key, public_key)
        # Unknown or empty algorithm: let __init__ report it.
        return cls(algorithm, settings.JWT_EXPIRE_MINUTES, None, None)

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def expire_minutes(self) -> int:
        return self._expire_minutes

    def sign(self, claims: SessionClaims) -> str:
        """Sign claims with iat=now and exp=now+JWT_EXPIRE_MINUTES."""
        now = datetime.now(UTC)
        payload: dict[str, Any] = claims.model_dump(
            by_alias=True, mode="json", exclude=_TIME_CLAIMS
        )
        payload["iat"] = now
        payload["exp"] = now + timedelta(minutes=self._expire_minutes)
        try:
            return jwt.encode(payload, self._signing_key, algorithm=self._algorithm)
        except (jwt.PyJWTError, ValueError, TypeError) as exc:
            raise ConfigError("Failed to sign token", str(exc)) from exc

    def _decode(self, token: str) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self._verification_key,
                algorithms=[self._algorithm],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredTokenError("Token has expired", str(exc)) from exc
        except jwt.ImmatureSignatureError as exc:
            raise NotYetValidError("Token not active", str(exc)) from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError("Invalid token", str(exc)) from exc
        except jwt.PyJWTError as exc:
            logger.error("Token verification failed unexpectedly: %s", exc)
            raise ConfigError("Failed to verify token", str(exc)) from exc

    def verify(self, token: str) -> SessionClaims:
        """Validate signature, algorithm and time claims; return the embedded SessionClaims."""
        payload = self._decode(token)
        try:
            return SessionClaims.model_validate(payload)
        except ValidationError as exc:
            raise InvalidTokenError(
                "Invalid token structure",
                "Decoded token must carry the account claims",
            ) from exc

    def expiration_of(self, token: str) -> datetime:
        """Return the token's exp claim as an aware UTC datetime."""
        claims = self.verify(token)
        if claims.exp is None:
            raise ConfigError("Failed to decode JWT token", "Invalid token structure")
        return datetime.fromtimestamp(claims.exp, tz=UTC)

    def claim(self, token: str, name: str) -> Any:
        """
        Return a single claim from a verified token.

        A missing claim means the token was not produced by this codec, so it is
        reported as ConfigError rather than as an ordinary miss.
        """
        payload = self._decode(token)
        value = payload.get(name)
        if value is None:
            raise ConfigError(
                f"Claim {name} not found in token",
                "Invalid token structure or claim does not exist",
            )
        return value


@lru_cache
def get_token_codec() -> TokenCodec:
    """Process-wide codec built from settings (safe to call from dependencies)."""
    codec = TokenCodec.from_settings(get_settings())
    logger.info("Token codec ready: algorithm=%s", codec.algorithm)
    return codec
