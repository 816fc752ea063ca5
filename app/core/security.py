"""Password hashing and verification (bcrypt)."""

from functools import lru_cache

import bcrypt

# Default bcrypt cost; overridden by BCRYPT_ROUNDS.
DEFAULT_BCRYPT_ROUNDS = 10

# bcrypt only looks at the first 72 bytes of the password.
_BCRYPT_MAX_BYTES = 72


def hash_password(plain_password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    pw_bytes = plain_password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash. Malformed hashes never match."""
    pw_bytes = plain_password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache
def dummy_password_hash(rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Fixed hash to verify against when no account matches, so both paths pay the bcrypt cost."""
    return hash_password("not-a-real-password", rounds=rounds)
