"""Tests for the credential store: shape invariant, verification, rotation and revocation."""

from unittest.mock import patch

from app.core.errors import (
    ConflictError,
    CredentialNotFound,
    InvalidCredentials,
    LastCredentialError,
    ValidationError,
)
from app.models import AUTH_TYPE_OPENID, AUTH_TYPE_PASSWORD, UserCredential
from app.repositories import CredentialRepository
from app.services.credentials import (
    INVALID_LOGIN_MESSAGE,
    PASSWORD_EXPIRED_MESSAGE,
    create_credential,
    find_or_create_openid_credential,
    list_active_credentials,
    mark_password_expired,
    rotate_password,
    soft_delete_credential,
    verify_password,
)
from tests.support import DEFAULT_PASSWORD, DatabaseTestCase


class TestCredentialShape(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.user = self.make_user("shape@example.com").user

    def test_password_credential_has_hash_and_no_openid(self) -> None:
        cred = list_active_credentials(self.db, self.user.id)[0]
        self.assertEqual(cred.auth_type, AUTH_TYPE_PASSWORD)
        self.assertTrue(cred.password_hash.startswith("$2"))
        self.assertNotEqual(cred.password_hash, DEFAULT_PASSWORD)
        self.assertIsNone(cred.openid_provider)
        self.assertIsNone(cred.openid_subject)
        self.assertIsNotNone(cred.last_password_change)

    def test_openid_credential_has_no_hash(self) -> None:
        cred = create_credential(self.db, self.user.id, AUTH_TYPE_OPENID, "shape-oidc", ("google", "sub-1"))
        self.db.commit()
        self.assertIsNone(cred.password_hash)
        self.assertEqual((cred.openid_provider, cred.openid_subject), ("google", "sub-1"))

    def test_mismatched_secret_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            create_credential(self.db, self.user.id, AUTH_TYPE_PASSWORD, "x", ("google", "sub"))
        with self.assertRaises(ValidationError):
            create_credential(self.db, self.user.id, AUTH_TYPE_OPENID, "x", "a-password")
        with self.assertRaises(ValidationError):
            create_credential(self.db, self.user.id, "saml", "x", "a-password")

    def test_check_shape_rejects_both_branches(self) -> None:
        cred = UserCredential(
            auth_type=AUTH_TYPE_PASSWORD,
            login_name="both",
            password_hash="$2b$10$hash",
            openid_provider="google",
            openid_subject="sub",
        )
        with self.assertRaises(ValidationError):
            cred.check_shape()

    def test_flush_enforces_shape(self) -> None:
        self.db.add(
            UserCredential(
                user_id=self.user.id,
                auth_type=AUTH_TYPE_OPENID,
                login_name="broken",
                openid_provider="google",
            )
        )
        with self.assertRaises(ValidationError):
            self.db.flush()
        self.db.rollback()

    def test_short_password_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            create_credential(self.db, self.user.id, AUTH_TYPE_PASSWORD, "short", "abc")

    def test_duplicate_login_name_conflicts(self) -> None:
        with self.assertRaises(ConflictError):
            create_credential(
                self.db, self.user.id, AUTH_TYPE_PASSWORD, "shape@example.com", "another-password"
            )
        self.db.rollback()


class TestVerifyPassword(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.result = self.make_user("verify@example.com", login_name="verify")

    def test_correct_password_returns_credential(self) -> None:
        cred = verify_password(self.db, "verify", DEFAULT_PASSWORD)
        self.assertEqual(cred.id, self.result.credential.id)
        self.assertEqual(cred.user.id, self.result.user.id)

    def test_wrong_password_and_unknown_login_look_the_same(self) -> None:
        with self.assertRaises(InvalidCredentials) as wrong:
            verify_password(self.db, "verify", "not-the-password")
        with self.assertRaises(InvalidCredentials) as unknown:
            verify_password(self.db, "nobody", "not-the-password")
        self.assertEqual(wrong.exception.message, INVALID_LOGIN_MESSAGE)
        self.assertEqual(unknown.exception.message, INVALID_LOGIN_MESSAGE)
        self.assertEqual(wrong.exception.status_code, 401)

    def test_expired_password_is_refused_until_rotated(self) -> None:
        mark_password_expired(self.db, self.result.credential.id)
        self.db.commit()
        with self.assertRaises(InvalidCredentials) as ctx:
            verify_password(self.db, "verify", DEFAULT_PASSWORD)
        self.assertEqual(ctx.exception.message, PASSWORD_EXPIRED_MESSAGE)

        rotate_password(self.db, self.result.credential.id, "a-brand-new-password")
        self.db.commit()
        cred = verify_password(self.db, "verify", "a-brand-new-password")
        self.assertFalse(cred.password_expired)
        with self.assertRaises(InvalidCredentials):
            verify_password(self.db, "verify", DEFAULT_PASSWORD)

    def test_deleted_user_cannot_verify(self) -> None:
        self.result.user.is_deleted = True
        self.result.user.is_active = False
        self.db.commit()
        with self.assertRaises(InvalidCredentials):
            verify_password(self.db, "verify", DEFAULT_PASSWORD)


class TestSoftDelete(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.result = self.make_user("revoke@example.com")
        self.user_id = self.result.user.id

    def test_last_credential_cannot_be_deleted(self) -> None:
        with self.assertRaises(LastCredentialError) as ctx:
            soft_delete_credential(self.db, self.result.credential.id, self.user_id)
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(len(list_active_credentials(self.db, self.user_id)), 1)

    def test_second_credential_can_be_deleted(self) -> None:
        oidc = create_credential(self.db, self.user_id, AUTH_TYPE_OPENID, "revoke-oidc", ("github", "42"))
        self.db.commit()
        soft_delete_credential(self.db, oidc.id, self.user_id)
        self.db.commit()
        remaining = list_active_credentials(self.db, self.user_id)
        self.assertEqual([c.id for c in remaining], [self.result.credential.id])
        with self.assertRaises(LastCredentialError):
            soft_delete_credential(self.db, self.result.credential.id, self.user_id)

    def test_other_users_credential_is_not_found(self) -> None:
        other = self.make_user("someone-else@example.com")
        with self.assertRaises(CredentialNotFound):
            soft_delete_credential(self.db, other.credential.id, self.user_id)


class TestOpenIdLookup(DatabaseTestCase):
    def test_find_or_create_is_idempotent(self) -> None:
        user = self.make_user("oidc@example.com").user
        first = find_or_create_openid_credential(self.db, "google", "sub-9", user.id, "oidc-login")
        self.db.commit()
        second = find_or_create_openid_credential(self.db, "google", "sub-9", user.id, "oidc-login")
        self.assertEqual(first.id, second.id)
        self.assertEqual(len(list_active_credentials(self.db, user.id)), 2)

    def _stale_openid_lookups(self, misses: int):
        """Patch get_by_openid so the first `misses` calls see no row, as a concurrent request would."""
        real = CredentialRepository.get_by_openid
        calls = {"n": 0}

        def lookup(repo, provider, subject):
            calls["n"] += 1
            if calls["n"] <= misses:
                return None
            return real(repo, provider, subject)

        return patch.object(CredentialRepository, "get_by_openid", autospec=True, side_effect=lookup)

    def test_concurrent_create_returns_winner(self) -> None:
        user = self.make_user("racer@example.com").user
        winner = find_or_create_openid_credential(self.db, "google", "sub-race", user.id, "racer")
        self.db.commit()
        with self._stale_openid_lookups(1):
            found = find_or_create_openid_credential(self.db, "google", "sub-race", user.id, "racer")
        self.db.commit()
        self.assertEqual(found.id, winner.id)
        self.assertEqual(len(list_active_credentials(self.db, user.id)), 2)

    def test_unique_violation_on_insert_returns_winner(self) -> None:
        user = self.make_user("racer2@example.com").user
        winner = find_or_create_openid_credential(self.db, "google", "sub-race-2", user.id, "racer-a")
        self.db.commit()
        with self._stale_openid_lookups(2):
            found = find_or_create_openid_credential(self.db, "google", "sub-race-2", user.id, "racer-b")
        self.db.commit()
        self.assertEqual(found.id, winner.id)
        self.assertEqual(self.db.query(UserCredential).filter_by(openid_subject="sub-race-2").count(), 1)
        self.assertEqual(len(list_active_credentials(self.db, user.id)), 2)
