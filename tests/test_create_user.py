"""Tests for the create_user CLI (python -m app.scripts.create_user)."""

import os
import tempfile
import unittest
from unittest.mock import patch

from app.core.database import build_engine, build_session_factory
from app.core.security import PasswordHasher
from app.models import Base
from app.scripts import create_user
from app.services.user_store import CredentialStore
from tests.support import make_settings


class TestCreateUser(unittest.TestCase):
    def setUp(self) -> None:
        fd, self.path = tempfile.mkstemp(suffix=".db")
        os.close(fd)
        self.settings = make_settings(DATABASE_URL=f"sqlite:///{self.path}")
        self.engine = build_engine(self.settings)
        Base.metadata.create_all(self.engine)

    def tearDown(self) -> None:
        self.engine.dispose()
        os.remove(self.path)

    def _run(self, *argv: str) -> int:
        with patch.object(create_user, "get_settings", return_value=self.settings), patch.object(
            create_user, "load_dotenv"
        ):
            return create_user.main(list(argv))

    def _find(self, email: str):
        db = build_session_factory(self.engine)()
        try:
            return CredentialStore(db).find_by_email(email)
        finally:
            db.close()

    def test_creates_admin(self) -> None:
        self.assertEqual(self._run("Boss@X.com", "Office Admin", "Admin1234", "ADMIN"), 0)
        user = self._find("boss@x.com")
        self.assertEqual(user.role, "ADMIN")
        self.assertTrue(PasswordHasher(rounds=4).verify("Admin1234", user.password_hash))

    def test_default_role_is_user(self) -> None:
        self.assertEqual(self._run("ana@x.com", "Ana", "Senha123!"), 0)
        self.assertEqual(self._find("ana@x.com").role, "USER")

    def test_duplicate_fails(self) -> None:
        self._run("ana@x.com", "Ana", "Senha123!")
        self.assertEqual(self._run("ANA@x.com", "Ana", "Senha123!"), 1)

    def test_weak_password_fails_without_touching_db(self) -> None:
        self.assertEqual(self._run("ana@x.com", "Ana", "weak"), 1)
        self.assertIsNone(self._find("ana@x.com"))


if __name__ == "__main__":
    unittest.main()
