import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

from bson import ObjectId
from fastapi.testclient import TestClient

from auth import security
from auth.dependencies import get_current_user
from main import app

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


def _user(**overrides) -> dict:
    row = {
        "_id": ObjectId(),
        "fullName": "Ada Lovelace",
        "email": "ada@example.com",
        "passwordHash": security.hash_password("correct-horse"),
        "avatar": None,
        "role": "user",
        "status": "active",
        "createdAt": NOW,
    }
    row.update(overrides)
    return row


def _created(**fields):
    return {
        "_id": ObjectId(),
        "fullName": fields["full_name"],
        "email": fields["email"],
        "passwordHash": fields["password_hash"],
        "avatar": fields.get("avatar"),
        "role": "user",
        "status": "active",
        "createdAt": NOW,
    }


class RegisterLoginTests(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)
        self.insert_token = AsyncMock(return_value={"_id": ObjectId()})

    def test_register_without_avatar(self):
        with patch("auth.repository.get_user_by_email", new=AsyncMock(return_value=None)), patch(
            "auth.repository.create_user", new=AsyncMock(side_effect=_created)
        ), patch("auth.repository.insert_refresh_token", new=self.insert_token):
            response = self.client.post(
                "/api/auth/register",
                data={"fullName": "Ada Lovelace", "email": "ada@example.com", "password": "correct-horse"},
            )

        self.assertEqual(response.status_code, 201)
        payload = response.json()
        self.assertEqual(payload["user"]["email"], "ada@example.com")
        self.assertIsNone(payload["user"]["avatar"])
        self.assertEqual(payload["tokens"]["token_type"], "bearer")
        token_kwargs = self.insert_token.await_args.kwargs
        self.assertEqual(token_kwargs["token_hash"], security.hash_refresh_token(payload["tokens"]["refresh_token"]))

    def test_register_duplicate_email(self):
        with patch("auth.repository.get_user_by_email", new=AsyncMock(return_value=_user())):
            response = self.client.post(
                "/api/auth/register",
                data={"fullName": "Ada", "email": "ada@example.com", "password": "correct-horse"},
            )
        self.assertEqual(response.status_code, 409)

    def test_register_short_password(self):
        response = self.client.post(
            "/api/auth/register",
            data={"fullName": "Ada", "email": "ada@example.com", "password": "short"},
        )
        self.assertEqual(response.status_code, 422)

    def test_login_wrong_password(self):
        with patch("auth.repository.get_user_by_email", new=AsyncMock(return_value=_user())):
            response = self.client.post(
                "/api/auth/login", json={"email": "ada@example.com", "password": "wrong-horse"}
            )
        self.assertEqual(response.status_code, 401)

    def test_login_inactive_user(self):
        with patch("auth.repository.get_user_by_email", new=AsyncMock(return_value=_user(status="inactive"))):
            response = self.client.post(
                "/api/auth/login", json={"email": "ada@example.com", "password": "correct-horse"}
            )
        self.assertEqual(response.status_code, 403)

    def test_login(self):
        with patch("auth.repository.get_user_by_email", new=AsyncMock(return_value=_user())), patch(
            "auth.repository.insert_refresh_token", new=self.insert_token
        ):
            response = self.client.post(
                "/api/auth/login", json={"email": "ada@example.com", "password": "correct-horse"}
            )
        self.assertEqual(response.status_code, 200)
        access = response.json()["tokens"]["access_token"]
        self.assertEqual(security.decode_access_token(access)["email"], "ada@example.com")


class RefreshTokenTests(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)
        self.raw = security.build_refresh_token()

    def _token_row(self, **overrides) -> dict:
        row = {
            "_id": ObjectId(),
            "userId": ObjectId(),
            "tokenHash": security.hash_refresh_token(self.raw),
            "expiresAt": datetime.now(timezone.utc) + timedelta(days=1),
            "revokedAt": None,
        }
        row.update(overrides)
        return row

    def test_rotation_revokes_old_token(self):
        old = self._token_row()
        new_id = ObjectId()
        revoke = AsyncMock(return_value=True)
        replace = AsyncMock()
        with patch("auth.repository.get_refresh_token_by_hash", new=AsyncMock(return_value=old)), patch(
            "auth.repository.get_user_by_id", new=AsyncMock(return_value=_user(_id=old["userId"]))
        ), patch("auth.repository.mark_refresh_token_used", new=AsyncMock()), patch(
            "auth.repository.revoke_refresh_token_by_id", new=revoke
        ), patch(
            "auth.repository.insert_refresh_token", new=AsyncMock(return_value={"_id": new_id})
        ), patch(
            "auth.repository.set_refresh_token_replacement", new=replace
        ):
            response = self.client.post("/api/auth/refresh-token", json={"refresh_token": self.raw})

        self.assertEqual(response.status_code, 200)
        self.assertNotEqual(response.json()["refresh_token"], self.raw)
        revoke.assert_awaited_once_with(old["_id"])
        replace.assert_awaited_once_with(old_token_id=old["_id"], new_token_id=new_id)

    def test_revoked_token(self):
        row = self._token_row(revokedAt=NOW)
        with patch("auth.repository.get_refresh_token_by_hash", new=AsyncMock(return_value=row)):
            response = self.client.post("/api/auth/refresh-token", json={"refresh_token": self.raw})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Refresh token is revoked.")

    def test_expired_token(self):
        row = self._token_row(expiresAt=NOW)
        revoke = AsyncMock(return_value=True)
        with patch("auth.repository.get_refresh_token_by_hash", new=AsyncMock(return_value=row)), patch(
            "auth.repository.revoke_refresh_token_by_id", new=revoke
        ):
            response = self.client.post("/api/auth/refresh-token", json={"refresh_token": self.raw})
        self.assertEqual(response.status_code, 401)
        revoke.assert_awaited_once_with(row["_id"])

    def test_unknown_token(self):
        with patch("auth.repository.get_refresh_token_by_hash", new=AsyncMock(return_value=None)):
            response = self.client.post("/api/auth/refresh-token", json={"refresh_token": self.raw})
        self.assertEqual(response.status_code, 401)


class ProfileTests(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)
        self.user = _user()

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_me_requires_bearer(self):
        response = self.client.get("/api/auth/me")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Missing Authorization header.")

    def test_me_with_token(self):
        token = security.build_access_token(user_id=str(self.user["_id"]), email=self.user["email"])
        with patch("auth.repository.get_user_by_id", new=AsyncMock(return_value=self.user)):
            response = self.client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["id"], str(self.user["_id"]))
        self.assertNotIn("passwordHash", response.json())

    def test_change_password_revokes_sessions(self):
        app.dependency_overrides[get_current_user] = lambda: self.user
        revoke_all = AsyncMock()
        with patch("auth.repository.update_user", new=AsyncMock(return_value=self.user)), patch(
            "auth.repository.revoke_all_refresh_tokens_for_user", new=revoke_all
        ):
            response = self.client.post(
                "/api/auth/change-password",
                json={"old_password": "correct-horse", "new_password": "battery-staple"},
            )
        self.assertEqual(response.status_code, 200)
        revoke_all.assert_awaited_once_with(self.user["_id"])

    def test_change_password_wrong_old(self):
        app.dependency_overrides[get_current_user] = lambda: self.user
        response = self.client.post(
            "/api/auth/change-password",
            json={"old_password": "nope", "new_password": "battery-staple"},
        )
        self.assertEqual(response.status_code, 400)

    def test_update_account_requires_a_field(self):
        app.dependency_overrides[get_current_user] = lambda: self.user
        self.assertEqual(self.client.patch("/api/auth/account", json={}).status_code, 400)

    def test_update_account_email_taken(self):
        app.dependency_overrides[get_current_user] = lambda: self.user
        with patch("auth.repository.email_taken_by_other", new=AsyncMock(return_value=True)):
            response = self.client.patch("/api/auth/account", json={"email": "grace@example.com"})
        self.assertEqual(response.status_code, 409)

    def test_logout_all_sessions(self):
        token = security.build_access_token(user_id=str(self.user["_id"]), email=self.user["email"])
        revoke_all = AsyncMock()
        with patch("auth.repository.get_user_by_id", new=AsyncMock(return_value=self.user)), patch(
            "auth.repository.revoke_all_refresh_tokens_for_user", new=revoke_all
        ):
            response = self.client.post(
                "/api/auth/logout", json={}, headers={"Authorization": f"Bearer {token}"}
            )
        self.assertEqual(response.status_code, 200)
        revoke_all.assert_awaited_once_with(self.user["_id"])

    def test_logout_anonymous_without_token(self):
        self.assertEqual(self.client.post("/api/auth/logout", json={}).status_code, 400)


if __name__ == "__main__":
    unittest.main()
