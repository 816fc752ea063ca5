"""
Refresh-token housekeeping job. Run from cron, e.g.:

  python -m app.retention
  python -m app.retention --dry-run

Hourly: 0 * * * * cd /path/to/app && .venv/bin/python -m app.retention
"""

import argparse
import logging
import sys

from app.core.config import get_settings
from app.core.database import session_scope
from app.services.retention import run_retention

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Delete refresh tokens past their expiry (or only count them with --dry-run)."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    parser = argparse.ArgumentParser(description="Purge expired refresh tokens.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report how many tokens would be deleted without deleting them",
    )
    args = parser.parse_args(argv)

    try:
        with session_scope() as db:
            count = run_retention(db, get_settings(), dry_run=args.dry_run)
    except Exception as e:
        logger.exception("Retention job failed: %s", e)
        return 1
    label = "refresh_tokens_expired" if args.dry_run else "refresh_tokens_deleted"
    logger.info("Retention completed: %s=%s", label, count)
    return 0


if __name__ == "__main__":
    sys.exit(main())
