"""ORM models for user accounts and their role assignments."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    text,
)
from sqlalchemy.orm import relationship

from app.models.base import AuditMixin, Base

user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)

# Uniqueness only applies to rows that are not soft-deleted.
_ACTIVE_ROWS = text("deleted_at IS NULL")


class Role(AuditMixin, Base):
    """Named role (ROLE_USER, ROLE_MODERATOR, ROLE_ADMIN); soft-deletable."""

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(20), nullable=False, unique=True)
    description = Column(String(255), nullable=True)


class User(AuditMixin, Base):
    """
    Account with the five state flags checked at login.

    Rows are soft-deleted via deleted_at; username and email are unique among
    rows that are not soft-deleted.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(20), nullable=False)
    password_hash = Column(String(150), nullable=False)
    email = Column(String(100), nullable=False)
    firstname = Column(String(20), nullable=False)
    lastname = Column(String(20), nullable=True)

    is_enabled = Column(Boolean, nullable=False, default=False)
    is_account_non_expired = Column(Boolean, nullable=False, default=False)
    is_account_non_locked = Column(Boolean, nullable=False, default=False)
    is_credentials_non_expired = Column(Boolean, nullable=False, default=False)
    is_deleted = Column(Boolean, nullable=False, default=False)
    account_expiration_date = Column(DateTime(timezone=True), nullable=True)
    credentials_expiration_date = Column(DateTime(timezone=True), nullable=True)

    # 'SERVICE_ACCOUNT' or 'USER_ACCOUNT'
    user_type = Column(String(20), nullable=False, default="USER_ACCOUNT")
    last_login = Column(DateTime(timezone=True), nullable=True)

    roles = relationship(Role, secondary=user_roles, lazy="selectin")

    __table_args__ = (
        Index(
            "uq_users_username_active",
            "username",
            unique=True,
            postgresql_where=_ACTIVE_ROWS,
            sqlite_where=_ACTIVE_ROWS,
        ),
        Index(
            "uq_users_email_active",
            "email",
            unique=True,
            postgresql_where=_ACTIVE_ROWS,
            sqlite_where=_ACTIVE_ROWS,
        ),
    )
