"""HTTP tests for /api/v1/users: own profile and admin account management."""

import unittest

from app.models import Role
from app.services.user_store import CredentialStore
from tests.support import STRONG_PASSWORD
from tests.test_auth_api import AUTH, AuthApiTestCase, bearer

USERS = "/api/v1/users"
ADMIN_PASSWORD = "Admin1234"


class UsersApiTestCase(AuthApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        app = self.client.app
        db = app.state.session_factory()
        try:
            self.admin_id = CredentialStore(db).create(
                email="boss@x.com",
                name="Boss",
                password_hash=app.state.password_hasher.hash(ADMIN_PASSWORD),
                role=Role.ADMIN,
            ).id
        finally:
            db.close()
        self.admin_token = self.login("boss@x.com", ADMIN_PASSWORD).json()["data"]["accessToken"]
        data = self.register().json()["data"]
        self.user_id = data["user"]["id"]
        self.user_token = data["accessToken"]


class TestProfile(UsersApiTestCase):
    def test_get_profile(self) -> None:
        resp = self.client.get(f"{USERS}/profile", headers=bearer(self.user_token))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["id"], self.user_id)

    def test_update_profile_ignores_role(self) -> None:
        resp = self.client.put(
            f"{USERS}/profile",
            headers=bearer(self.user_token),
            json={"name": "Ana Maria", "role": "ADMIN"},
        )
        self.assertEqual(resp.status_code, 200)
        data = resp.json()["data"]
        self.assertEqual(data["name"], "Ana Maria")
        self.assertEqual(data["role"], "USER")

    def test_update_profile_email_taken(self) -> None:
        resp = self.client.put(
            f"{USERS}/profile", headers=bearer(self.user_token), json={"email": "BOSS@x.com"}
        )
        self.assertEqual(resp.status_code, 409)

    def test_profile_requires_login(self) -> None:
        self.assertEqual(self.client.get(f"{USERS}/profile").status_code, 401)


class TestAdminGuard(UsersApiTestCase):
    def test_regular_user_is_forbidden(self) -> None:
        for method, path in [
            ("get", USERS),
            ("get", f"{USERS}/{self.admin_id}"),
            ("delete", f"{USERS}/{self.user_id}"),
        ]:
            resp = self.client.request(method, path, headers=bearer(self.user_token))
            self.assertEqual(resp.status_code, 403)
            self.assertEqual(resp.json()["code"], "FORBIDDEN")

    def test_list_users(self) -> None:
        resp = self.client.get(USERS, headers=bearer(self.admin_token))
        self.assertEqual(resp.status_code, 200)
        data = resp.json()["data"]
        self.assertEqual(data["total"], 2)
        self.assertEqual({u["email"] for u in data["users"]}, {"boss@x.com", "ana@x.com"})
        for user in data["users"]:
            self.assertNotIn("passwordHash", user)

    def test_get_missing_user(self) -> None:
        resp = self.client.get(f"{USERS}/missing", headers=bearer(self.admin_token))
        self.assertEqual(resp.status_code, 404)


class TestAdminActions(UsersApiTestCase):
    def test_promote_revokes_old_tokens(self) -> None:
        resp = self.client.patch(
            f"{USERS}/{self.user_id}/role",
            headers=bearer(self.admin_token),
            json={"role": "ADMIN"},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["role"], "ADMIN")
        self.assertEqual(
            self.client.get(f"{AUTH}/me", headers=bearer(self.user_token)).status_code, 401
        )
        token = self.login().json()["data"]["accessToken"]
        self.assertEqual(self.client.get(USERS, headers=bearer(token)).status_code, 200)

    def test_invalid_role(self) -> None:
        resp = self.client.patch(
            f"{USERS}/{self.user_id}/role",
            headers=bearer(self.admin_token),
            json={"role": "ROOT"},
        )
        self.assertEqual(resp.status_code, 400)

    def test_deactivate_blocks_login(self) -> None:
        resp = self.client.patch(
            f"{USERS}/{self.user_id}/status",
            headers=bearer(self.admin_token),
            json={"isActive": False},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.json()["data"]["isActive"])
        self.assertEqual(self.login().status_code, 401)
        self.assertEqual(
            self.client.get(f"{AUTH}/me", headers=bearer(self.user_token)).status_code, 401
        )

        self.client.patch(
            f"{USERS}/{self.user_id}/status",
            headers=bearer(self.admin_token),
            json={"isActive": True},
        )
        self.assertEqual(self.login(password=STRONG_PASSWORD).status_code, 200)

    def test_delete_user(self) -> None:
        resp = self.client.delete(f"{USERS}/{self.user_id}", headers=bearer(self.admin_token))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.login().status_code, 401)
        again = self.client.delete(f"{USERS}/{self.user_id}", headers=bearer(self.admin_token))
        self.assertEqual(again.status_code, 404)

    def test_admin_cannot_act_on_self(self) -> None:
        admin_id = self.client.get(f"{AUTH}/me", headers=bearer(self.admin_token)).json()["data"]["id"]
        resp = self.client.delete(f"{USERS}/{admin_id}", headers=bearer(self.admin_token))
        self.assertEqual(resp.status_code, 400)
        resp = self.client.patch(
            f"{USERS}/{admin_id}/role", headers=bearer(self.admin_token), json={"role": "USER"}
        )
        self.assertEqual(resp.status_code, 400)


class TestAdminAccounts(UsersApiTestCase):
    def _create(self, **overrides: object):
        body = {"name": "Caio", "email": "caio@x.com", "password": STRONG_PASSWORD}
        body.update(overrides)
        return self.client.post(USERS, headers=bearer(self.admin_token), json=body)

    def test_admin_creates_account(self) -> None:
        resp = self._create(role="ADMIN", isActive=False)
        self.assertEqual(resp.status_code, 201)
        data = resp.json()["data"]
        self.assertEqual(data["email"], "caio@x.com")
        self.assertEqual(data["role"], "ADMIN")
        self.assertFalse(data["isActive"])
        self.assertNotIn("passwordHash", data)
        self.assertEqual(self.login("caio@x.com").status_code, 401)
        self.assertEqual(
            self.client.get(USERS, headers=bearer(self.admin_token)).json()["data"]["total"], 3
        )

    def test_created_account_can_log_in(self) -> None:
        self.assertEqual(self._create().json()["data"]["role"], "USER")
        self.assertEqual(self.login("Caio@x.com").status_code, 200)

    def test_create_with_taken_email(self) -> None:
        resp = self._create(email="ANA@x.com")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["code"], "DUPLICATE_EMAIL")

    def test_create_with_weak_password(self) -> None:
        self.assertEqual(self._create(password="weak").status_code, 400)

    def test_regular_user_cannot_create(self) -> None:
        resp = self.client.post(
            USERS,
            headers=bearer(self.user_token),
            json={"name": "Caio", "email": "caio@x.com", "password": STRONG_PASSWORD},
        )
        self.assertEqual(resp.status_code, 403)

    def test_owner_can_read_own_record(self) -> None:
        resp = self.client.get(f"{USERS}/{self.user_id}", headers=bearer(self.user_token))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["email"], "ana@x.com")
        resp = self.client.get(f"{USERS}/{self.user_id}", headers=bearer(self.admin_token))
        self.assertEqual(resp.status_code, 200)


class TestAdminUpdate(UsersApiTestCase):
    def _put(self, user_id: str, body: dict, token: str | None = None):
        return self.client.put(
            f"{USERS}/{user_id}", headers=bearer(token or self.admin_token), json=body
        )

    def test_admin_edits_name_email_and_role(self) -> None:
        resp = self._put(
            self.user_id, {"name": "Ana Maria", "email": "Ana.Maria@x.com", "role": "ADMIN"}
        )
        self.assertEqual(resp.status_code, 200)
        data = resp.json()["data"]
        self.assertEqual(data["name"], "Ana Maria")
        self.assertEqual(data["email"], "ana.maria@x.com")
        self.assertEqual(data["role"], "ADMIN")
        self.assertEqual(
            self.client.get(f"{AUTH}/me", headers=bearer(self.user_token)).status_code, 401
        )
        self.assertEqual(self.login("ana.maria@x.com").status_code, 200)

    def test_name_only_edit_keeps_sessions(self) -> None:
        resp = self._put(self.user_id, {"name": "Ana Maria"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["role"], "USER")
        self.assertEqual(
            self.client.get(f"{AUTH}/me", headers=bearer(self.user_token)).status_code, 200
        )

    def test_edit_with_taken_email(self) -> None:
        resp = self._put(self.user_id, {"email": "Boss@x.com"})
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["code"], "DUPLICATE_EMAIL")

    def test_edit_missing_user(self) -> None:
        self.assertEqual(self._put("missing", {"name": "Nobody"}).status_code, 404)

    def test_admin_cannot_change_own_role(self) -> None:
        resp = self._put(self.admin_id, {"role": "USER"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["code"], "VALIDATION_ERROR")
        resp = self._put(self.admin_id, {"name": "Big Boss", "role": "ADMIN"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["name"], "Big Boss")

    def test_regular_user_cannot_edit(self) -> None:
        resp = self._put(self.user_id, {"role": "ADMIN"}, token=self.user_token)
        self.assertEqual(resp.status_code, 403)


if __name__ == "__main__":
    unittest.main()
