"""SQLAlchemy ORM models."""

from app.models.base import AuditMixin, Base
from app.models.note import Note
from app.models.refresh_token import RefreshToken
from app.models.user import Role, User, user_roles

__all__ = ["AuditMixin", "Base", "Note", "RefreshToken", "Role", "User", "user_roles"]
