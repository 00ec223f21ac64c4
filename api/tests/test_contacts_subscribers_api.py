import unittest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

from bson import ObjectId
from fastapi.testclient import TestClient

from auth.dependencies import get_current_user
from fakes import FakeCollection
from main import app
from subscribers import service as subscriber_service

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)
ADMIN = {"_id": ObjectId(), "email": "admin@example.com", "status": "active", "role": "user"}


class ContactApiTests(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_create_lowercases_fields(self):
        insert = AsyncMock(side_effect=lambda **fields: {"_id": ObjectId(), "createdAt": NOW, **fields})
        with patch("contacts.repository.insert_contact", new=insert):
            response = self.client.post(
                "/api/contact",
                json={"fullName": "Ada Lovelace", "email": "Ada@Example.com", "message": "Hello THERE, friends"},
            )
        self.assertEqual(response.status_code, 201)
        insert.assert_awaited_once_with(
            full_name="ada lovelace", email="ada@example.com", message="hello there, friends"
        )

    def test_create_validation(self):
        response = self.client.post(
            "/api/contact", json={"fullName": "Al", "email": "nope", "message": "short"}
        )
        self.assertEqual(response.status_code, 422)

    def test_list_requires_auth(self):
        self.assertEqual(self.client.get("/api/contact").status_code, 401)

    def test_empty_list_is_ok(self):
        app.dependency_overrides[get_current_user] = lambda: ADMIN
        with patch("contacts.repository.contacts", return_value=FakeCollection([])):
            response = self.client.get("/api/contact")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["contacts"], [])
        self.assertEqual(response.json()["pagination"]["totalItems"], 0)
        self.assertEqual(response.json()["pagination"]["itemsPerPage"], 20)


class SubscribeApiTests(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)

    def test_invalid_email(self):
        response = self.client.post("/api/subscribe", json={"email": "not-an-email"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Please provide a valid email address")

    def test_already_active(self):
        existing = {"_id": ObjectId(), "email": "a@b.io", "status": "active"}
        with patch("subscribers.repository.get_by_email", new=AsyncMock(return_value=existing)):
            response = self.client.post("/api/subscribe", json={"email": "A@B.io"})
        self.assertEqual(response.status_code, 400)

    def test_reactivation(self):
        existing = {"_id": ObjectId(), "email": "a@b.io", "status": "inactive"}
        reactivate = AsyncMock(return_value={**existing, "status": "active"})
        with patch("subscribers.repository.get_by_email", new=AsyncMock(return_value=existing)), patch(
            "subscribers.repository.reactivate", new=reactivate
        ):
            response = self.client.post("/api/subscribe", json={"email": "a@b.io", "source": "footer"})
        self.assertEqual(response.status_code, 200)
        reactivate.assert_awaited_once_with(existing["_id"], source="footer")

    def test_new_subscriber(self):
        insert = AsyncMock(side_effect=lambda **fields: {"_id": ObjectId(), **fields})
        with patch("subscribers.repository.get_by_email", new=AsyncMock(return_value=None)), patch(
            "subscribers.repository.insert_subscriber", new=insert
        ):
            response = self.client.post("/api/subscribe", json={"email": " New@B.io "})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(insert.await_args.kwargs["email"], "new@b.io")
        self.assertEqual(insert.await_args.kwargs["source"], "website")

    def test_unsubscribe_requires_email(self):
        response = self.client.request("DELETE", "/api/subscribe", json={})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Email is required")

    def test_unsubscribe_unknown(self):
        with patch("subscribers.repository.get_by_email", new=AsyncMock(return_value=None)):
            response = self.client.request("DELETE", "/api/subscribe", json={"email": "a@b.io"})
        self.assertEqual(response.status_code, 404)

    def test_unsubscribe_twice(self):
        existing = {"_id": ObjectId(), "email": "a@b.io", "status": "inactive"}
        with patch("subscribers.repository.get_by_email", new=AsyncMock(return_value=existing)):
            response = self.client.request("DELETE", "/api/subscribe", json={"email": "a@b.io"})
        self.assertEqual(response.status_code, 400)


class SubscriberAdminApiTests(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)
        app.dependency_overrides[get_current_user] = lambda: ADMIN

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_export_csv(self):
        rows = [
            {"email": "a@b.io", "status": "active", "subscribedAt": NOW, "source": "website"},
            {"email": "c@d.io", "status": "inactive", "subscribedAt": NOW, "source": None},
        ]
        with patch("subscribers.repository.export_rows", new=AsyncMock(return_value=rows)):
            response = self.client.get("/api/subscribe/export")

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/csv"))
        self.assertRegex(
            response.headers["content-disposition"],
            r"^attachment; filename=subscribers-\d{4}-\d{2}-\d{2}\.csv$",
        )
        lines = response.text.splitlines()
        self.assertEqual(lines[0], "Email,Status,Subscribed Date,Source")
        self.assertEqual(lines[1], '"a@b.io","active","2024-05-01T00:00:00+00:00","website"')
        self.assertEqual(lines[2], '"c@d.io","inactive","2024-05-01T00:00:00+00:00",""')

    def test_list_counts(self):
        docs = [
            {"_id": ObjectId(), "email": "a@b.io", "status": "active"},
            {"_id": ObjectId(), "email": "c@d.io", "status": "inactive"},
            {"_id": ObjectId(), "email": "e@f.io", "status": "active"},
        ]
        with patch("subscribers.repository.subscribers", return_value=FakeCollection(docs)):
            response = self.client.get("/api/subscribe", params={"limit": "2"})
        payload = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(payload["subscribers"]), 2)
        self.assertEqual((payload["total"], payload["active"], payload["inactive"]), (3, 2, 1))
        self.assertEqual(payload["totalPages"], 2)

    def test_stats_requires_auth(self):
        app.dependency_overrides.clear()
        self.assertEqual(self.client.get("/api/subscribe/stats").status_code, 401)


class SubscriberFilterTests(unittest.TestCase):
    def test_date_window_needs_both_ends(self):
        only_start = subscriber_service.build_filter({"startDate": ["2024-01-01"]})
        self.assertNotIn("subscribedAt", only_start)

        both = subscriber_service.build_filter({"startDate": ["2024-01-01"], "endDate": ["2024-02-01"]})
        self.assertIn("$gte", both["subscribedAt"])
        self.assertIn("$lte", both["subscribedAt"])

    def test_status_and_search(self):
        query = subscriber_service.build_filter({"status": ["INACTIVE"], "search": ["a.b"]})
        self.assertEqual(query["status"], "inactive")
        self.assertIn("email", query)

        self.assertNotIn("status", subscriber_service.build_filter({"status": ["banned"]}))


if __name__ == "__main__":
    unittest.main()
