"""Tests for app.services.auth: login and refresh-token exchange over a real (SQLite) credential store."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

from app.core.errors import AppError, ErrorKind
from app.core.security import dummy_password_hash
from app.models import RefreshToken, User
from app.repositories.credential_store import SqlAlchemyCredentialStore
from app.schemas.auth import TOKEN_TYPE
from app.services.auth import INVALID_CREDENTIALS_MESSAGE, AuthSessionService
from app.services.refresh_tokens import RefreshTokenManager
from support import TEST_BCRYPT_ROUNDS, add_account, make_codec, make_session_factory


class AuthServiceTestCase(unittest.TestCase):
    """Fresh database with an enabled 'admin' account (password P@ssw0rd) per test."""

    recheck_account_on_refresh = False

    def setUp(self) -> None:
        self.factory = make_session_factory()
        with self.factory() as db:
            self.admin_id = add_account(db, "admin", roles=["ROLE_ADMIN", "ROLE_USER"])
        self.codec = make_codec()
        self.db = self.factory()
        self.service = self._service(self.db)

    def tearDown(self) -> None:
        self.db.close()

    def _service(self, db, ttl_hours: str = "720") -> AuthSessionService:
        store = SqlAlchemyCredentialStore(db)
        return AuthSessionService(
            store,
            self.codec,
            RefreshTokenManager(store, ttl_hours),
            recheck_account_on_refresh=self.recheck_account_on_refresh,
            bcrypt_rounds=TEST_BCRYPT_ROUNDS,
        )

    def _set_flags(self, **flags: object) -> None:
        with self.factory() as db:
            user = db.get(User, self.admin_id)
            for name, value in flags.items():
                setattr(user, name, value)
            db.commit()

    def _refresh_rows(self) -> list[RefreshToken]:
        with self.factory() as db:
            return db.query(RefreshToken).filter(RefreshToken.user_id == self.admin_id).all()

    def _login_error(self, username: str, password: str) -> AppError:
        with self.assertRaises(AppError) as ctx:
            self.service.login(username, password)
        return ctx.exception


class TestLoginSuccess(AuthServiceTestCase):
    def test_admin_scenario(self) -> None:
        response = self.service.login("admin", "P@ssw0rd")
        self.assertTrue(response.access_token)
        self.assertTrue(response.refresh_token)
        self.assertEqual(response.token_type, TOKEN_TYPE)
        self.assertEqual(response.token_type, "Bearer")
        self.assertEqual(response.expiration_at, self.codec.expiration_of(response.access_token))

    def test_claims_carry_account_and_roles(self) -> None:
        response = self.service.login("admin", "P@ssw0rd")
        claims = self.codec.verify(response.access_token)
        self.assertEqual(claims.id, self.admin_id)
        self.assertEqual(claims.username, "admin")
        self.assertEqual(claims.email, "admin@example.com")
        self.assertEqual(sorted(claims.roles), ["ROLE_ADMIN", "ROLE_USER"])

    def test_account_without_roles_gets_empty_role_list(self) -> None:
        with self.factory() as db:
            user = db.get(User, self.admin_id)
            user.roles = []
            db.commit()
        claims = self.codec.verify(self.service.login("admin", "P@ssw0rd").access_token)
        self.assertEqual(claims.roles, [])

    def test_login_records_last_login(self) -> None:
        before = datetime.now(UTC)
        self.service.login("admin", "P@ssw0rd")
        with self.factory() as db:
            last_login = db.get(User, self.admin_id).last_login
        self.assertIsNotNone(last_login)
        self.assertGreaterEqual(last_login.replace(tzinfo=UTC), before)

    def test_exactly_one_refresh_token_after_repeated_logins(self) -> None:
        first = self.service.login("admin", "P@ssw0rd")
        self.assertEqual([r.token for r in self._refresh_rows()], [first.refresh_token])
        second = self.service.login("admin", "P@ssw0rd")
        self.assertEqual([r.token for r in self._refresh_rows()], [second.refresh_token])
        self.assertNotEqual(first.refresh_token, second.refresh_token)


class TestLoginRejections(AuthServiceTestCase):
    def test_wrong_password_and_unknown_user_share_message(self) -> None:
        wrong_password = self._login_error("admin", "wrong")
        unknown_user = self._login_error("ghost", "x")
        self.assertEqual(wrong_password.kind, ErrorKind.UNAUTHORIZED)
        self.assertEqual(unknown_user.kind, ErrorKind.UNAUTHORIZED)
        self.assertEqual(wrong_password.message, unknown_user.message)
        self.assertEqual(wrong_password.message, INVALID_CREDENTIALS_MESSAGE)

    def test_unknown_user_still_pays_for_a_password_check(self) -> None:
        with patch("app.services.auth.verify_password", return_value=False) as verify:
            self._login_error("ghost", "whatever")
        verify.assert_called_once_with("whatever", dummy_password_hash(TEST_BCRYPT_ROUNDS))

    def test_repeated_failure_has_same_kind(self) -> None:
        kinds = {self._login_error("admin", "wrong").kind for _ in range(3)}
        self.assertEqual(kinds, {ErrorKind.UNAUTHORIZED})

    def test_each_disabling_flag_has_its_own_kind(self) -> None:
        cases = [
            ({"is_enabled": False}, ErrorKind.FORBIDDEN, "Account is disabled"),
            ({"is_account_non_expired": False}, ErrorKind.FORBIDDEN, "Account is expired"),
            ({"is_account_non_locked": False}, ErrorKind.FORBIDDEN, "Account is locked"),
            ({"is_credentials_non_expired": False}, ErrorKind.UNAUTHORIZED, "Credentials are expired"),
            ({"is_deleted": True}, ErrorKind.FORBIDDEN, "Account is deleted"),
        ]
        for flags, kind, message in cases:
            with self.subTest(flags=flags):
                self._set_flags(**flags)
                err = self._login_error("admin", "P@ssw0rd")
                self.assertEqual(err.kind, kind)
                self.assertEqual(err.message, message)
                self._set_flags(
                    is_enabled=True,
                    is_account_non_expired=True,
                    is_account_non_locked=True,
                    is_credentials_non_expired=True,
                    is_deleted=False,
                )

    def test_flags_checked_in_fixed_order(self) -> None:
        self._set_flags(is_account_non_locked=False, is_deleted=True, is_enabled=False)
        self.assertEqual(self._login_error("admin", "P@ssw0rd").message, "Account is disabled")

    def test_disabled_account_rejected_before_password_check(self) -> None:
        self._set_flags(is_enabled=False)
        self.assertEqual(self._login_error("admin", "wrong").kind, ErrorKind.FORBIDDEN)

    def test_failed_login_leaves_no_side_effects(self) -> None:
        self._login_error("admin", "wrong")
        self.assertEqual(self._refresh_rows(), [])
        with self.factory() as db:
            self.assertIsNone(db.get(User, self.admin_id).last_login)

    def test_rotation_failure_rolls_back(self) -> None:
        existing = self.service.login("admin", "P@ssw0rd")
        service = self._service(self.db, ttl_hours="not-a-number")
        err = self._capture(lambda: service.login("admin", "P@ssw0rd"))
        self.assertEqual(err.kind, ErrorKind.INTERNAL_ERROR)
        self.assertEqual([r.token for r in self._refresh_rows()], [existing.refresh_token])

    def _capture(self, fn) -> AppError:
        with self.assertRaises(AppError) as ctx:
            fn()
        return ctx.exception


class TestUnexpectedErrors(unittest.TestCase):
    """Non-AppError failures are rolled back and reclassified as InternalError."""

    def test_store_exception_is_wrapped(self) -> None:
        store = MagicMock()
        store.find_account_by_username.side_effect = RuntimeError("driver exploded")
        service = AuthSessionService(store, make_codec(), RefreshTokenManager(store, "1"))
        with self.assertRaises(AppError) as ctx:
            service.login("admin", "P@ssw0rd")
        self.assertEqual(ctx.exception.kind, ErrorKind.INTERNAL_ERROR)
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)
        store.rollback.assert_called_once()
        store.commit.assert_not_called()

    def test_known_errors_pass_through(self) -> None:
        store = MagicMock()
        store.find_refresh_token.return_value = None
        service = AuthSessionService(store, make_codec(), RefreshTokenManager(store, "1"))
        with self.assertRaises(AppError) as ctx:
            service.exchange_refresh_token("unknown")
        self.assertEqual(ctx.exception.kind, ErrorKind.UNAUTHORIZED)
        store.rollback.assert_called_once()


class TestExchangeRefreshToken(AuthServiceTestCase):
    def test_exchange_issues_new_pair(self) -> None:
        login = self.service.login("admin", "P@ssw0rd")
        refreshed = self.service.exchange_refresh_token(login.refresh_token)
        self.assertNotEqual(refreshed.refresh_token, login.refresh_token)
        self.assertEqual(refreshed.token_type, "Bearer")
        claims = self.codec.verify(refreshed.access_token)
        self.assertEqual(claims.id, self.admin_id)
        self.assertEqual(sorted(claims.roles), ["ROLE_ADMIN", "ROLE_USER"])
        self.assertEqual([r.token for r in self._refresh_rows()], [refreshed.refresh_token])

    def test_consumed_token_is_rejected(self) -> None:
        login = self.service.login("admin", "P@ssw0rd")
        self.service.exchange_refresh_token(login.refresh_token)
        with self.assertRaises(AppError) as ctx:
            self.service.exchange_refresh_token(login.refresh_token)
        self.assertEqual(ctx.exception.kind, ErrorKind.UNAUTHORIZED)

    def test_token_replaced_by_new_login_is_rejected(self) -> None:
        first = self.service.login("admin", "P@ssw0rd")
        self.service.login("admin", "P@ssw0rd")
        with self.assertRaises(AppError) as ctx:
            self.service.exchange_refresh_token(first.refresh_token)
        self.assertEqual(ctx.exception.kind, ErrorKind.UNAUTHORIZED)

    def test_expired_record_is_rejected_and_kept(self) -> None:
        login = self.service.login("admin", "P@ssw0rd")
        with self.factory() as db:
            row = db.get(RefreshToken, login.refresh_token)
            row.expires_at = datetime.now(UTC) - timedelta(minutes=1)
            db.commit()
        with self.assertRaises(AppError) as ctx:
            self.service.exchange_refresh_token(login.refresh_token)
        self.assertEqual(ctx.exception.kind, ErrorKind.UNAUTHORIZED)
        self.assertEqual([r.token for r in self._refresh_rows()], [login.refresh_token])

    def test_unknown_token(self) -> None:
        for _ in range(2):
            with self.assertRaises(AppError) as ctx:
                self.service.exchange_refresh_token("00000000-0000-4000-8000-000000000000")
            self.assertEqual(ctx.exception.kind, ErrorKind.UNAUTHORIZED)

    def test_account_state_not_rechecked_by_default(self) -> None:
        login = self.service.login("admin", "P@ssw0rd")
        self._set_flags(is_enabled=False)
        refreshed = self.service.exchange_refresh_token(login.refresh_token)
        self.assertTrue(refreshed.access_token)

    def test_soft_deleted_account_cannot_refresh(self) -> None:
        login = self.service.login("admin", "P@ssw0rd")
        self._set_flags(deleted_at=datetime.now(UTC))
        with self.assertRaises(AppError) as ctx:
            self.service.exchange_refresh_token(login.refresh_token)
        self.assertEqual(ctx.exception.kind, ErrorKind.UNAUTHORIZED)

    def test_does_not_touch_last_login(self) -> None:
        login = self.service.login("admin", "P@ssw0rd")
        with self.factory() as db:
            first_login = db.get(User, self.admin_id).last_login
        self.service.exchange_refresh_token(login.refresh_token)
        with self.factory() as db:
            self.assertEqual(db.get(User, self.admin_id).last_login, first_login)


class TestExchangeWithAccountRecheck(AuthServiceTestCase):
    """With REFRESH_RECHECK_ACCOUNT_STATE the login flag checks also gate refresh."""

    recheck_account_on_refresh = True

    def test_disabled_account_cannot_refresh(self) -> None:
        login = self.service.login("admin", "P@ssw0rd")
        self._set_flags(is_account_non_locked=False)
        with self.assertRaises(AppError) as ctx:
            self.service.exchange_refresh_token(login.refresh_token)
        self.assertEqual(ctx.exception.kind, ErrorKind.FORBIDDEN)
        self.assertEqual([r.token for r in self._refresh_rows()], [login.refresh_token])


if __name__ == "__main__":
    unittest.main()
