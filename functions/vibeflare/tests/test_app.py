import asyncio
import unittest

from fastapi.testclient import TestClient

from vibeflare.app import create_app
from vibeflare.config import Settings, get_settings
from vibeflare.db import IN_MEMORY_DATABASE_URL, SqlAlchemyDatabase
from vibeflare.dependencies import get_blob_store, get_database, get_kv_store
from vibeflare.errors import StorageError
from vibeflare.kv import InMemoryKeyValueStore
from vibeflare.storage import InMemoryBlobStore


class FailingKeyValueStore:
    def get(self, key):
        raise StorageError("kv unavailable")

    def put(self, key, value):
        raise StorageError("kv unavailable")

    def list(self, prefix=""):
        raise StorageError("kv unavailable")


class FailingBlobStore:
    def get(self, key):
        raise StorageError("bucket unavailable")

    def put(self, key, body, content_type):
        raise StorageError("bucket unavailable")


class LoopRecordingBlobStore(InMemoryBlobStore):
    def put(self, key, body, content_type):
        try:
            asyncio.get_running_loop()
            self.called_on_event_loop = True
        except RuntimeError:
            self.called_on_event_loop = False
        super().put(key, body, content_type)


class CmsApiTests(unittest.TestCase):
    def setUp(self):
        self.app = create_app()
        self.kv = InMemoryKeyValueStore()
        self.blobs = InMemoryBlobStore()
        self.db = SqlAlchemyDatabase(IN_MEMORY_DATABASE_URL)
        self.app.dependency_overrides[get_kv_store] = lambda: self.kv
        self.app.dependency_overrides[get_blob_store] = lambda: self.blobs
        self.app.dependency_overrides[get_database] = lambda: self.db
        self.client = TestClient(self.app)

    def tearDown(self):
        self.db.dispose()

    def test_saved_page_is_rendered(self):
        content = "<h1>Hello</h1><p>Written by an agent.</p>"
        response = self.client.post("/api/page/hello", json={"content": content})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True, "slug": "hello"})
        self.assertEqual(self.kv.items["page:hello"], content)

        page = self.client.get("/hello")
        self.assertEqual(page.status_code, 200)
        self.assertEqual(page.headers["content-type"], "text/html; charset=utf-8")
        self.assertIn(content, page.text)

    def test_root_path_renders_home_slug(self):
        self.client.post("/api/page/home", json={"content": "<p>custom home</p>"})
        page = self.client.get("/")
        self.assertEqual(page.status_code, 200)
        self.assertIn("<p>custom home</p>", page.text)

    def test_home_falls_back_to_welcome_body(self):
        page = self.client.get("/")
        self.assertEqual(page.status_code, 200)
        self.assertIn("Welcome to VibeFlare", page.text)

    def test_unknown_slug_returns_consistent_placeholder(self):
        first = self.client.get("/never-written")
        second = self.client.get("/never-written")
        self.assertEqual(first.status_code, 404)
        self.assertEqual(second.status_code, 404)
        self.assertIn("never-written", first.text)
        self.assertEqual(first.text, second.text)

    def test_placeholder_html_escapes_the_slug(self):
        response = self.client.get("/o'brien&co")
        self.assertEqual(response.status_code, 404)
        self.assertIn("o&#39;brien&amp;co", response.text)
        self.assertNotIn("o'brien&co", response.text.split("<main>", 1)[1])

    def test_nested_slug_round_trip(self):
        self.client.post("/api/page/blog/first-post", json={"content": "<p>nested</p>"})
        self.assertIn("page:blog/first-post", self.kv.items)
        page = self.client.get("/blog/first-post")
        self.assertEqual(page.status_code, 200)
        self.assertIn("<p>nested</p>", page.text)

    def test_put_is_accepted_for_page_writes(self):
        response = self.client.put("/api/page/about", json={"content": "<p>via put</p>"})
        self.assertEqual(response.status_code, 200)
        self.assertIn("<p>via put</p>", self.client.get("/about").text)

    def test_rewrite_overwrites_page(self):
        self.client.post("/api/page/news", json={"content": "<p>old</p>"})
        self.client.post("/api/page/news", json={"content": "<p>new</p>"})
        page = self.client.get("/news")
        self.assertIn("<p>new</p>", page.text)
        self.assertNotIn("<p>old</p>", page.text)

    def test_styles_page_is_spliced_into_every_render(self):
        css = ":root { --color-primary: #ff6b6b; }"
        self.client.post("/api/page/styles", json={"content": css})
        self.client.post("/api/page/about", json={"content": "<p>about</p>"})
        for path in ("/", "/about", "/missing"):
            page = self.client.get(path)
            self.assertIn(f"<style>{css}</style>", page.text)

    def test_edit_flag_switches_on_edit_mode(self):
        self.client.post("/api/page/about", json={"content": "<p>about</p>"})
        plain = self.client.get("/about")
        self.assertNotIn("contenteditable", plain.text)
        self.assertNotIn("<script>", plain.text)

        editing = self.client.get("/about?edit")
        self.assertEqual(editing.status_code, 200)
        self.assertIn('<div contenteditable="true"><p>about</p></div>', editing.text)
        self.assertIn('class="edit-mode"', editing.text)
        self.assertIn("method: 'PUT'", editing.text)

    def test_page_write_rejects_malformed_json(self):
        response = self.client.post(
            "/api/page/broken",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        self.assertEqual(response.status_code, 400)
        payload = response.json()
        self.assertFalse(payload["success"])
        self.assertTrue(payload["error"])
        self.assertNotIn("page:broken", self.kv.items)

    def test_page_write_rejects_wrong_shape(self):
        missing = self.client.post("/api/page/x", json={"body": "<p>x</p>"})
        self.assertEqual(missing.status_code, 400)
        self.assertIn("content", missing.json()["error"])

        extra = self.client.post("/api/page/x", json={"content": "<p>x</p>", "title": "X"})
        self.assertEqual(extra.status_code, 400)

        not_a_string = self.client.post("/api/page/x", json={"content": 42})
        self.assertEqual(not_a_string.status_code, 400)
        self.assertEqual(self.kv.items, {})

    def test_sql_round_trip(self):
        create = self.client.post(
            "/api/sql",
            json={"sql": "CREATE TABLE posts (id INTEGER PRIMARY KEY, title TEXT)"},
        )
        self.assertEqual(create.status_code, 200)
        self.assertTrue(create.json()["success"])

        insert = self.client.post(
            "/api/sql", json={"sql": "INSERT INTO posts (title) VALUES ('First')"}
        )
        self.assertEqual(insert.status_code, 200)
        self.assertEqual(insert.json()["meta"]["changes"], 1)
        self.assertEqual(insert.json()["meta"]["last_row_id"], 1)

        select = self.client.post("/api/sql", json={"sql": "SELECT id, title FROM posts"})
        payload = select.json()
        self.assertTrue(payload["success"])
        self.assertEqual(payload["results"], [{"id": 1, "title": "First"}])
        self.assertEqual(payload["meta"]["rows_read"], 1)
        self.assertEqual(payload["meta"]["columns"], ["id", "title"])

    def test_sql_blob_results_are_returned_as_json(self):
        response = self.client.post("/api/sql", json={"sql": "SELECT x'ff00fe' AS b"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["results"], [{"b": [255, 0, 254]}])
        self.assertTrue(response.json()["success"])

    def test_sql_failure_reports_error_and_statement(self):
        sql = "SELEC * FORM nowhere"
        response = self.client.post("/api/sql", json={"sql": sql})
        self.assertEqual(response.status_code, 400)
        payload = response.json()
        self.assertFalse(payload["success"])
        self.assertTrue(payload["error"])
        self.assertEqual(payload["sql"], sql)

    def test_sql_requires_sql_field(self):
        response = self.client.post("/api/sql", json={"query": "SELECT 1"})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["success"])

    def test_upload_then_read_asset(self):
        data = b"\x89PNG\r\n\x1a\n\x00\x00binary"
        response = self.client.post(
            "/api/upload/images/logo.png",
            content=data,
            headers={"Content-Type": "image/png"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True, "key": "images/logo.png"})

        asset = self.client.get("/assets/images/logo.png")
        self.assertEqual(asset.status_code, 200)
        self.assertEqual(asset.content, data)
        self.assertEqual(asset.headers["content-type"], "image/png")
        self.assertEqual(
            asset.headers["cache-control"], "public, max-age=31536000, immutable"
        )

    def test_text_asset_keeps_declared_content_type(self):
        self.client.post(
            "/api/upload/site.css",
            content=b"body { color: red; }",
            headers={"Content-Type": "text/css"},
        )
        asset = self.client.get("/assets/site.css")
        self.assertEqual(asset.headers["content-type"], "text/css")
        self.assertEqual(asset.text, "body { color: red; }")

    def test_upload_writes_off_the_event_loop(self):
        blobs = LoopRecordingBlobStore()
        self.app.dependency_overrides[get_blob_store] = lambda: blobs
        response = self.client.post("/api/upload/a.bin", content=b"x")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(blobs.called_on_event_loop)
        self.assertEqual(blobs.get("a.bin").body, b"x")

    def test_upload_without_content_type_defaults_to_octet_stream(self):
        self.client.post("/api/upload/blob.bin", content=b"\x00\x01\x02")
        stored = self.blobs.get("blob.bin")
        self.assertEqual(stored.content_type, "application/octet-stream")
        asset = self.client.get("/assets/blob.bin")
        self.assertEqual(asset.headers["content-type"], "application/octet-stream")

    def test_missing_asset_is_404(self):
        response = self.client.get("/assets/nothing-here.jpg")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.text, "Asset not found")

    def test_instructions_are_deterministic(self):
        first = self.client.get("/mcp")
        second = self.client.get("/mcp")
        self.assertEqual(first.status_code, 200)
        self.assertTrue(first.headers["content-type"].startswith("text/plain"))
        self.assertEqual(first.content, second.content)
        self.assertIn("POST http://testserver/api/page/{slug}", first.text)

    def test_instructions_follow_configured_api_prefix(self):
        self.app.dependency_overrides[get_settings] = lambda: Settings(api_prefix="/cms")
        text = self.client.get("/mcp").text
        self.assertIn("POST http://testserver/cms/sql", text)
        self.assertNotIn("testserver/api/", text)

    def test_instructions_reject_other_methods(self):
        response = self.client.post("/mcp")
        self.assertEqual(response.status_code, 405)

    def test_unknown_api_paths_are_not_found(self):
        for method, path in (
            ("GET", "/api/unknown"),
            ("POST", "/api/unknown"),
            ("GET", "/api/sql"),
            ("DELETE", "/api/page/home"),
            ("GET", "/api/upload/logo.png"),
        ):
            response = self.client.request(method, path)
            self.assertEqual(response.status_code, 404, f"{method} {path}")
            self.assertEqual(response.text, "API endpoint not found")

    def test_page_paths_reject_writes(self):
        response = self.client.post("/about", json={"content": "<p>x</p>"})
        self.assertEqual(response.status_code, 405)

    def test_list_pages(self):
        self.client.post("/api/page/home", json={"content": "<p>home</p>"})
        self.client.post("/api/page/blog/post", json={"content": "<p>post</p>"})
        self.client.post("/api/page/styles", json={"content": "body {}"})
        self.kv.put("other:key", "ignored")

        response = self.client.get("/mcp/pages")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"success": True, "pages": ["blog/post", "home", "styles"]},
        )

    def test_storage_failures_surface_as_500(self):
        self.app.dependency_overrides[get_kv_store] = FailingKeyValueStore
        self.app.dependency_overrides[get_blob_store] = FailingBlobStore

        write = self.client.post("/api/page/home", json={"content": "<p>x</p>"})
        self.assertEqual(write.status_code, 500)
        self.assertEqual(write.json(), {"success": False, "error": "kv unavailable"})

        upload = self.client.post("/api/upload/a.bin", content=b"x")
        self.assertEqual(upload.status_code, 500)
        self.assertFalse(upload.json()["success"])

        page = self.client.get("/home")
        self.assertEqual(page.status_code, 500)
        self.assertEqual(page.text, "Internal Server Error")


if __name__ == "__main__":
    unittest.main()
