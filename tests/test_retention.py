"""Unit and integration tests for data retention: run_retention purges expired refresh tokens."""

import unittest
from datetime import datetime, timezone, timedelta
from functools import partial
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import OperationalError

from app import retention as retention_cli
from app.core.database import session_scope
from app.models import RefreshToken
from app.services.retention import run_retention
from support import add_account, make_session_factory


class TestRetentionDisabled(unittest.TestCase):
    """When RETENTION_ENABLED is False, run_retention does nothing."""

    def test_returns_zero_and_does_not_query(self) -> None:
        settings = MagicMock()
        settings.RETENTION_ENABLED = False
        session = MagicMock()
        self.assertEqual(run_retention(session, settings), 0)
        session.execute.assert_not_called()
        session.commit.assert_not_called()


class TestRetentionMocked(unittest.TestCase):
    """run_retention reports the delete's rowcount and commits once."""

    def _settings(self) -> MagicMock:
        settings = MagicMock()
        settings.RETENTION_ENABLED = True
        return settings

    def test_nothing_expired(self) -> None:
        session = MagicMock()
        session.execute.return_value.rowcount = 0
        self.assertEqual(run_retention(session, self._settings()), 0)
        session.commit.assert_called_once()

    def test_reports_deleted_count(self) -> None:
        session = MagicMock()
        session.execute.return_value.rowcount = 3
        self.assertEqual(run_retention(session, self._settings()), 3)
        session.add.assert_not_called()
        session.commit.assert_called_once()


class TestRetentionIntegration(unittest.TestCase):
    """Against an in-memory database: only tokens past their expiry are removed."""

    def test_deletes_only_expired_tokens(self) -> None:
        factory = make_session_factory()
        settings = MagicMock()
        settings.RETENTION_ENABLED = True
        now = datetime.now(timezone.utc)
        with factory() as db:
            alice = add_account(db, "alice")
            bob = add_account(db, "bob")
            db.add_all(
                [
                    RefreshToken(token="expired-token", user_id=alice, expires_at=now - timedelta(hours=1)),
                    RefreshToken(token="live-token", user_id=bob, expires_at=now + timedelta(hours=1)),
                ]
            )
            db.commit()

            self.assertEqual(run_retention(db, settings), 1)
            remaining = [t.token for t in db.query(RefreshToken).all()]
            self.assertEqual(remaining, ["live-token"])

            # Second run finds nothing left to purge.
            self.assertEqual(run_retention(db, settings), 0)

    def test_dry_run_counts_without_deleting(self) -> None:
        factory = make_session_factory()
        settings = MagicMock()
        settings.RETENTION_ENABLED = True
        with factory() as db:
            alice = add_account(db, "alice")
            db.add(
                RefreshToken(
                    token="expired-token",
                    user_id=alice,
                    expires_at=datetime.now(timezone.utc) - timedelta(minutes=5),
                )
            )
            db.commit()

            self.assertEqual(run_retention(db, settings, dry_run=True), 1)
            self.assertEqual(db.query(RefreshToken).count(), 1)


class TestRetentionCli(unittest.TestCase):
    """python -m app.retention exit codes."""

    def _run(self, *argv: str, scope=None) -> int:
        factory = make_session_factory()
        with patch.object(retention_cli, "session_scope", scope or partial(session_scope, factory)):
            return retention_cli.main(list(argv))

    def test_success(self) -> None:
        self.assertEqual(self._run(), 0)
        self.assertEqual(self._run("--dry-run"), 0)

    def test_failure_returns_non_zero(self) -> None:
        broken = MagicMock(side_effect=OperationalError("SELECT 1", {}, Exception("down")))
        self.assertEqual(self._run(scope=broken), 1)


if __name__ == "__main__":
    unittest.main()
