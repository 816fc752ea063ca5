"""Housekeeping: delete refresh tokens whose expiry has passed."""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.models import RefreshToken

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def run_retention(session: Session, settings: "Settings", dry_run: bool = False) -> int:
    """
    Delete expired refresh tokens and return how many were removed.

    Validation leaves expired tokens in place; this job is what reclaims them.
    With dry_run the expired tokens are only counted. Idempotent: safe to run
    repeatedly.
    """
    if not settings.RETENTION_ENABLED:
        logger.info("Retention is disabled (RETENTION_ENABLED=false); skipping.")
        return 0

    now = datetime.now(timezone.utc)
    expired = RefreshToken.expires_at < now
    if dry_run:
        count = session.scalar(select(func.count()).select_from(RefreshToken).where(expired)) or 0
        logger.info("Retention dry run: now=%s, refresh_tokens_expired=%s", now.isoformat(), count)
        return count

    result = session.execute(
        delete(RefreshToken).where(expired).execution_options(synchronize_session=False)
    )
    session.commit()

    deleted_count = result.rowcount or 0
    if deleted_count > 0:
        logger.info(
            "Retention run: now=%s, refresh_tokens_deleted=%s",
            now.isoformat(),
            deleted_count,
        )
    return deleted_count
