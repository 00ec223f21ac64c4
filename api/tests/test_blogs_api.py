import unittest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

from bson import ObjectId
from fastapi.testclient import TestClient

from auth.dependencies import get_current_user
from blogs.service import slugify
from core.media import MediaAsset
from main import app

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)
ADMIN = {"_id": ObjectId(), "email": "admin@example.com", "status": "active", "role": "user"}
IMAGE = {"image": ("cover.jpg", b"\xff\xd8 fake", "image/jpeg")}
BLOG_FORM = {
    "title": "Scaling Mongo Reads",
    "description": "A long enough description about replica sets and read preferences.",
    "author": "Grace",
    "category": "backend",
    "readTime": "7 min",
    "badge": "featured",
    "tags": "mongo, scaling",
}


class SlugTests(unittest.TestCase):
    def test_slugify(self):
        self.assertEqual(slugify("Scaling Mongo Reads!"), "scaling-mongo-reads")
        self.assertEqual(slugify("  C++ & Rust  "), "c-rust")
        self.assertEqual(slugify("???"), "post")


class BlogReadApiTests(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)

    def test_detail_by_slug_counts_view(self):
        row = {"_id": ObjectId(), "title": "Hello", "slug": "hello", "views": 4, "isPublished": True}
        with patch("blogs.repository.view_published", new=AsyncMock(return_value=row)) as view:
            response = self.client.get("/api/blogs/Hello")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["id"], str(row["_id"]))
        view.assert_awaited_once_with({"slug": "hello"})

    def test_detail_by_id(self):
        oid = ObjectId()
        with patch("blogs.repository.view_published", new=AsyncMock(return_value=None)) as view:
            response = self.client.get(f"/api/blogs/{oid}")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"], "Blog not found")
        view.assert_awaited_once_with({"_id": oid})

    def test_stats(self):
        categories = [{"category": "backend", "count": 2}]
        overview = {"totalBlogs": 2, "featuredBlogs": 1, "totalViews": 30}
        with patch("blogs.repository.category_stats", new=AsyncMock(return_value=categories)), patch(
            "blogs.repository.overview_stats", new=AsyncMock(return_value=overview)
        ):
            response = self.client.get("/api/blogs/stats")
        self.assertEqual(response.json(), {"categories": categories, "overview": overview})


class BlogWriteApiTests(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)
        app.dependency_overrides[get_current_user] = lambda: ADMIN

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_create(self):
        asset = MediaAsset(url="https://cdn/cover.jpg", public_id="blogs/cover")
        insert = AsyncMock(side_effect=lambda doc: {**doc, "_id": ObjectId(), "views": 0, "createdAt": NOW})
        with patch("blogs.repository.title_taken", new=AsyncMock(return_value=False)), patch(
            "core.media.upload", new=AsyncMock(return_value=asset)
        ), patch("blogs.repository.insert_blog", new=insert):
            response = self.client.post("/api/blogs", data=BLOG_FORM, files=IMAGE)

        self.assertEqual(response.status_code, 201)
        doc = insert.await_args.args[0]
        self.assertEqual(doc["slug"], "scaling-mongo-reads")
        self.assertEqual(doc["readTime"], "7 min")
        self.assertEqual(doc["tags"], ["mongo", "scaling"])
        self.assertEqual(doc["imagePublicId"], "blogs/cover")
        self.assertTrue(doc["isPublished"])

    def test_duplicate_title(self):
        upload = AsyncMock()
        with patch("blogs.repository.title_taken", new=AsyncMock(return_value=True)), patch(
            "core.media.upload", new=upload
        ):
            response = self.client.post("/api/blogs", data=BLOG_FORM, files=IMAGE)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["detail"], "Blog with this title already exists")
        upload.assert_not_awaited()

    def test_short_description_is_rejected(self):
        form = {**BLOG_FORM, "description": "too short"}
        self.assertEqual(self.client.post("/api/blogs", data=form, files=IMAGE).status_code, 422)

    def test_bad_read_time_is_rejected(self):
        form = {**BLOG_FORM, "readTime": "seven minutes"}
        self.assertEqual(self.client.post("/api/blogs", data=form, files=IMAGE).status_code, 422)

    def test_update_without_fields(self):
        existing = {"_id": ObjectId(), "title": "Hello"}
        with patch("blogs.repository.get_blog", new=AsyncMock(return_value=existing)):
            response = self.client.put(f"/api/blogs/{existing['_id']}", data={"title": "  "})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "At least one field must be provided for update")

    def test_update_title_refreshes_slug(self):
        existing = {"_id": ObjectId(), "title": "Hello", "slug": "hello"}
        update = AsyncMock(side_effect=lambda oid, changes: {**existing, **changes})
        with patch("blogs.repository.get_blog", new=AsyncMock(return_value=existing)), patch(
            "blogs.repository.title_taken", new=AsyncMock(return_value=False)
        ) as taken, patch("blogs.repository.update_blog", new=update):
            response = self.client.put(f"/api/blogs/{existing['_id']}", data={"title": "Hello Again"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(update.await_args.args[1], {"title": "Hello Again", "slug": "hello-again"})
        taken.assert_awaited_once_with("Hello Again", "hello-again", exclude_id=existing["_id"])

    def test_delete_discards_image(self):
        existing = {"_id": ObjectId(), "title": "Hello", "imagePublicId": "blogs/old"}
        with patch("blogs.repository.get_blog", new=AsyncMock(return_value=existing)), patch(
            "blogs.repository.delete_blog", new=AsyncMock(return_value=True)
        ), patch("core.media.destroy", new=AsyncMock(return_value=True)) as destroy:
            response = self.client.delete(f"/api/blogs/{existing['_id']}")
        self.assertEqual(response.status_code, 200)
        destroy.assert_awaited_once_with("blogs/old")

    def test_delete_unknown(self):
        with patch("blogs.repository.get_blog", new=AsyncMock(return_value=None)):
            self.assertEqual(self.client.delete(f"/api/blogs/{ObjectId()}").status_code, 404)


if __name__ == "__main__":
    unittest.main()
