"""Tests for POST /search in both photo modes."""

import tempfile
import unittest

from fastapi.testclient import TestClient

from core.config import Settings
from main import create_app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class SearchRoutesTests(unittest.TestCase):
    search_photo_mode = "omit"

    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        app = create_app(Settings(cache_dir=tmp.name, search_photo_mode=self.search_photo_mode))
        self.client = TestClient(app)
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

        self.with_photo = self.client.post(
            "/register",
            data={"name": "Drill", "description": "cordless"},
            files={"photo": ("drill.png", PNG_BYTES, "image/png")},
        ).json()
        self.without_photo = self.client.post("/register", data={"name": "Saw"}).json()

    def test_search_with_flag_returns_full_item(self):
        r = self.client.post("/search", data={"id": str(self.with_photo["id"]), "has_photo": "on"})
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.json(), self.with_photo)

    def test_search_without_flag_omits_photo(self):
        r = self.client.post("/search", data={"id": str(self.with_photo["id"])})
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.json(), {"id": self.with_photo["id"], "name": "Drill", "description": "cordless"})

    def test_falsy_flag_values(self):
        for flag in ("", "0", "false", "OFF", "no"):
            r = self.client.post("/search", data={"id": str(self.with_photo["id"]), "has_photo": flag})
            self.assertNotIn("photo", r.json(), flag)

    def test_search_accepts_json(self):
        r = self.client.post("/search", json={"id": self.without_photo["id"], "has_photo": True})
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.json(), self.without_photo)

    def test_search_not_found(self):
        self.assertEqual(self.client.post("/search", data={"id": "999"}).status_code, 404)
        self.assertEqual(self.client.post("/search", data={"id": "abc"}).status_code, 404)
        self.assertEqual(self.client.post("/search", data={}).status_code, 404)


class AnnotatedSearchRoutesTests(SearchRoutesTests):
    search_photo_mode = "annotate"

    def test_search_without_flag_omits_photo(self):
        r = self.client.post("/search", data={"id": str(self.with_photo["id"])})
        self.assertEqual(r.status_code, 201)
        self.assertEqual(
            r.json(),
            {
                "id": self.with_photo["id"],
                "name": "Drill",
                "description": f"cordless (photo: /inventory/{self.with_photo['id']}/photo)",
            },
        )

    def test_item_without_photo_is_not_annotated(self):
        r = self.client.post("/search", data={"id": str(self.without_photo["id"])})
        self.assertEqual(r.json()["description"], "")
