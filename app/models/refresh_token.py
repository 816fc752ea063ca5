"""ORM model for refresh tokens (at most one row per user, enforced by a unique index)."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from app.models.base import Base


class RefreshToken(Base):
    """Opaque refresh token (UUID text) owned by a user, valid until expires_at."""

    __tablename__ = "refresh_tokens"

    token = Column(String(36), primary_key=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        unique=True,
    )
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
