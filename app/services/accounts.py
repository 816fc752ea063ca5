"""Account provisioning used by the create_user CLI."""

from __future__ import annotations

import logging

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.core.security import DEFAULT_BCRYPT_ROUNDS, hash_password
from app.models import Role, User
from app.schemas.account import AccountType, RoleName

logger = logging.getLogger(__name__)


class AccountExistsError(ValueError):
    """Username or email already belongs to a non-deleted account."""


class UnknownRoleError(ValueError):
    """A requested role is not present in the roles table."""


def create_account(
    db: Session,
    username: str,
    password: str,
    email: str,
    firstname: str,
    lastname: str | None = None,
    roles: list[str] | None = None,
    user_type: AccountType = AccountType.USER_ACCOUNT,
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS,
) -> User:
    """Insert an enabled account with the given roles (default ROLE_USER) and commit."""
    existing = db.scalars(
        select(User).where(
            or_(User.username == username, User.email == email),
            User.deleted_at.is_(None),
        )
    ).first()
    if existing is not None:
        raise AccountExistsError(f"User '{username}' or email '{email}' already exists.")

    role_names = roles or [RoleName.ROLE_USER.value]
    role_rows = db.scalars(select(Role).where(Role.name.in_(role_names))).all()
    missing = set(role_names) - {r.name for r in role_rows}
    if missing:
        raise UnknownRoleError(f"Unknown role(s): {', '.join(sorted(missing))}")

    user = User(
        username=username,
        password_hash=hash_password(password, rounds=bcrypt_rounds),
        email=email,
        firstname=firstname,
        lastname=lastname,
        is_enabled=True,
        is_account_non_expired=True,
        is_account_non_locked=True,
        is_credentials_non_expired=True,
        is_deleted=False,
        user_type=user_type.value,
        roles=list(role_rows),
    )
    db.add(user)
    db.commit()
    logger.info("Account created: id=%s roles=%s", user.id, sorted(role_names))
    return user
