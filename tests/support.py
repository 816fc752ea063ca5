"""Shared builders for tests: in-memory SQLite sessions, seeded roles/accounts and an HS256 codec."""

from collections.abc import Iterable

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.tokens import TokenCodec
from app.models import Base, Role
from app.schemas.account import RoleName
from app.services.accounts import create_account

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"
# Lowest bcrypt cost; keeps hashing fast in tests.
TEST_BCRYPT_ROUNDS = 4


def make_session_factory() -> sessionmaker:
    """Fresh in-memory database with all tables and the three roles."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False)
    with factory() as db:
        db.add_all(Role(name=name.value) for name in RoleName)
        db.commit()
    return factory


def add_account(
    db: Session,
    username: str = "admin",
    password: str = "P@ssw0rd",
    roles: Iterable[str] = ("ROLE_ADMIN", "ROLE_USER"),
    email: str | None = None,
    **flags: bool,
) -> int:
    """
    Create an enabled account and return its id.

    flags override the ORM flag columns, e.g. is_enabled=False or is_deleted=True.
    """
    user = create_account(
        db,
        username=username,
        password=password,
        email=email or f"{username}@example.com",
        firstname=username.capitalize(),
        lastname="Tester",
        roles=list(roles),
        bcrypt_rounds=TEST_BCRYPT_ROUNDS,
    )
    if flags:
        for name, value in flags.items():
            setattr(user, name, value)
        db.commit()
    return user.id


def make_codec(algorithm: str = "HS256", expire_minutes: int = 15) -> TokenCodec:
    return TokenCodec(algorithm, expire_minutes, TEST_SECRET, TEST_SECRET)
