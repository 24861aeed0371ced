"""Tests for app.services.reset_tokens: single-use consumption, expiry and purge."""

import unittest
from datetime import UTC, datetime, timedelta

from app.core.exceptions import ExpiredTokenError, InvalidTokenError
from app.models import PasswordResetToken
from app.services.reset_tokens import ResetTokenStore, hash_reset_token
from app.services.user_store import CredentialStore
from tests.support import make_db


class ResetTokenStoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_db()
        self.user = CredentialStore(self.db).create(
            email="ana@x.com", name="Ana", password_hash="$2b$04$fakehash"
        )
        self.tokens = ResetTokenStore(self.db)

    def tearDown(self) -> None:
        self.db.close()


class TestIssue(ResetTokenStoreTestCase):
    def test_only_hash_is_stored(self) -> None:
        issued = self.tokens.issue(self.user.id, timedelta(minutes=30))
        row = self.db.query(PasswordResetToken).one()
        self.assertEqual(row.token_hash, hash_reset_token(issued.raw_token))
        self.assertNotEqual(row.token_hash, issued.raw_token)
        self.assertIsNone(row.used_at)

    def test_tokens_are_random(self) -> None:
        a = self.tokens.issue(self.user.id, timedelta(minutes=30))
        b = self.tokens.issue(self.user.id, timedelta(minutes=30))
        self.assertNotEqual(a.raw_token, b.raw_token)


class TestConsume(ResetTokenStoreTestCase):
    def test_consume_returns_user_and_is_single_use(self) -> None:
        issued = self.tokens.issue(self.user.id, timedelta(minutes=30))
        self.assertEqual(self.tokens.consume(issued.raw_token), self.user.id)
        self.db.commit()
        with self.assertRaises(InvalidTokenError) as ctx:
            self.tokens.consume(issued.raw_token)
        self.assertNotIsInstance(ctx.exception, ExpiredTokenError)

    def test_unknown_token(self) -> None:
        with self.assertRaises(InvalidTokenError):
            self.tokens.consume("not-a-real-token")
        with self.assertRaises(InvalidTokenError):
            self.tokens.consume("")

    def test_expired_token(self) -> None:
        issued = self.tokens.issue(
            self.user.id,
            timedelta(minutes=30),
            now=datetime.now(UTC) - timedelta(minutes=31),
        )
        with self.assertRaises(ExpiredTokenError):
            self.tokens.consume(issued.raw_token)

    def test_invalidate_for_user(self) -> None:
        a = self.tokens.issue(self.user.id, timedelta(minutes=30))
        b = self.tokens.issue(self.user.id, timedelta(minutes=30))
        self.assertEqual(self.tokens.invalidate_for_user(self.user.id), 2)
        self.db.commit()
        for issued in (a, b):
            with self.assertRaises(InvalidTokenError):
                self.tokens.consume(issued.raw_token)


class TestPurge(ResetTokenStoreTestCase):
    def test_purges_only_stale_rows(self) -> None:
        now = datetime.now(UTC)
        self.tokens.issue(self.user.id, timedelta(minutes=30), now=now - timedelta(hours=72))
        fresh = self.tokens.issue(self.user.id, timedelta(minutes=30), now=now)
        deleted = self.tokens.purge(timedelta(hours=48), now=now)
        self.assertEqual(deleted, 1)
        remaining = self.db.query(PasswordResetToken).one()
        self.assertEqual(remaining.token_hash, hash_reset_token(fresh.raw_token))

    def test_purge_is_idempotent(self) -> None:
        self.assertEqual(self.tokens.purge(timedelta(hours=48)), 0)
        self.assertEqual(self.tokens.purge(timedelta(hours=48)), 0)


if __name__ == "__main__":
    unittest.main()
