"""
Async Demo Test Suite — HTTP Surface
=====================================
End-to-end checks through FastAPI's TestClient: status codes, envelope
keys, 404/500 handling, and static files.

Usage:
    python -m pytest tests/test_server.py -v
    python tests/test_server.py
"""
import sys
import os
import importlib
import random
import tempfile
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

from asyncdemo.config import ServerConfig
from asyncdemo.patterns import FailurePolicy
from asyncdemo.server import create_app

SIX_PATHS = ["/", "/callback", "/promise", "/async", "/file", "/chain"]


class ServerTestCase(unittest.TestCase):
    """Builds an app with tiny delays and a throwaway storage directory."""

    policy = FailurePolicy.never()

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.config = ServerConfig(
            public_dir=os.path.join(self._tmp.name, "public"),
            storage_dir=self._tmp.name,
            fetch_delay_ms=2,
            chain_delays_ms=(5, 10, 15),
        )
        self.app = create_app(self.config, policy=self.policy)
        self.client = TestClient(self.app, raise_server_exceptions=False)


# ─────────────────────────────────────────────
#  Index + Fetch Endpoints
# ─────────────────────────────────────────────

class TestIndex(ServerTestCase):

    def test_index(self):
        resp = self.client.get("/")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["author"], "Maryan Farah")
        self.assertEqual(len(body["endpoints"]), 5)
        self.assertEqual(set(body), {"message", "author", "endpoints", "instructions"})

    def test_json_content_type(self):
        resp = self.client.get("/")
        self.assertTrue(resp.headers["content-type"].startswith("application/json"))


class TestFetchEndpoints(ServerTestCase):

    def test_callback(self):
        resp = self.client.get("/callback")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(set(body), {"method", "message", "data", "timestamp"})
        self.assertEqual(body["method"], "callback")
        self.assertEqual(body["data"], {"id": 12345, "name": "Maryan Farah"})

    def test_promise(self):
        body = self.client.get("/promise").json()
        self.assertEqual(body["method"], "promise")
        self.assertEqual(body["data"]["id"], 12345)

    def test_async(self):
        body = self.client.get("/async").json()
        self.assertEqual(body["method"], "async/await")
        self.assertEqual(body["data"]["name"], "Maryan Farah")


class TestForcedFailures(ServerTestCase):

    policy = FailurePolicy.always()

    def test_callback_still_succeeds(self):
        self.assertEqual(self.client.get("/callback").status_code, 200)

    def test_promise_failure_envelope(self):
        resp = self.client.get("/promise")
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {
            "error": "Promise failed",
            "message": "Promise rejected: Simulated API failure",
        })

    def test_async_failure_envelope(self):
        resp = self.client.get("/async")
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {
            "error": "Async operation failed",
            "message": "Async operation failed: Simulated API failure",
        })


class TestRandomFailures(ServerTestCase):

    policy = FailurePolicy(0.1, rng=random.Random(99).random)

    def test_only_200_or_500(self):
        for path in ("/promise", "/async"):
            for _ in range(30):
                resp = self.client.get(path)
                self.assertIn(resp.status_code, (200, 500))
                if resp.status_code == 200:
                    self.assertEqual(resp.json()["data"]["id"], 12345)
                else:
                    self.assertIn("Simulated API failure", resp.json()["message"])


# ─────────────────────────────────────────────
#  File + Chain Endpoints
# ─────────────────────────────────────────────

class TestFileEndpoint(ServerTestCase):

    def test_file(self):
        resp = self.client.get("/file")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(set(body), {"method", "message", "filePath", "content", "timestamp"})
        self.assertIn("12345", body["content"])
        self.assertIn("Maryan Farah", body["content"])
        self.assertTrue(os.path.isabs(body["filePath"]))

    def test_file_overwritten_between_calls(self):
        self.client.get("/file")
        second = self.client.get("/file").json()
        with open(second["filePath"], encoding="utf-8") as f:
            on_disk = f.read()
        self.assertEqual(on_disk, second["content"])
        self.assertEqual(on_disk.count("User ID:"), 1)

    def test_file_io_error(self):
        self.app.state.service.storage_dir = os.path.join(self._tmp.name, "missing", "dir")
        resp = self.client.get("/file")
        self.assertEqual(resp.status_code, 500)
        body = resp.json()
        self.assertEqual(body["error"], "File reading failed")
        self.assertTrue(body["message"])


class TestChainEndpoint(ServerTestCase):

    def test_chain(self):
        resp = self.client.get("/chain")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["method"], "chained operations")
        steps = body["results"]["steps"]
        self.assertEqual([s["step"] for s in steps], [1, 2, 3])
        self.assertEqual([s["action"] for s in steps], ["login", "fetch_data", "render"])
        self.assertGreaterEqual(body["results"]["totalTime"], 30)


# ─────────────────────────────────────────────
#  404 / 500 / Static
# ─────────────────────────────────────────────

class TestNotFound(ServerTestCase):

    def test_unknown_path(self):
        resp = self.client.get("/unknown")
        self.assertEqual(resp.status_code, 404)
        body = resp.json()
        self.assertEqual(body["error"], "Endpoint not found")
        self.assertEqual(body["message"], "The endpoint /unknown was not found")
        self.assertEqual(body["availableEndpoints"], SIX_PATHS)

    def test_wrong_method(self):
        resp = self.client.post("/callback")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["availableEndpoints"], SIX_PATHS)

    def test_trailing_slash_is_not_redirected(self):
        resp = self.client.get("/callback/", follow_redirects=False)
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["message"], "The endpoint /callback/ was not found")


class TestAppFactory(unittest.TestCase):

    def test_import_builds_nothing(self):
        import asyncdemo.server as server
        with patch.dict(os.environ, {"PORT": "not-a-port"}):
            importlib.reload(server)
        self.assertFalse(hasattr(server, "app"))

    def test_create_app_configures_logging(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            config = ServerConfig(public_dir=os.path.join(tmpdir, "public"), storage_dir=tmpdir)
            with patch("asyncdemo.server.logging.basicConfig") as basic_config:
                create_app(config)
        basic_config.assert_called_once()

    def test_run_server_passes_log_level(self):
        import asyncdemo.server as server
        with patch.object(server, "configure_logging") as configure, \
                patch("uvicorn.run") as uvicorn_run, \
                patch("builtins.print"):
            server.run_server(ServerConfig(public_dir="/nonexistent", port=4321), log_level="debug")
        configure.assert_any_call("debug")
        self.assertEqual(uvicorn_run.call_args.kwargs["port"], 4321)


class TestUnhandledError(ServerTestCase):

    def test_catch_all_returns_500_envelope(self):
        async def explode():
            raise RuntimeError("kaboom")

        self.app.add_api_route("/explode", explode)
        resp = self.client.get("/explode")
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"error": "Internal server error", "message": "kaboom"})


class TestStaticFiles(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        public = os.path.join(self._tmp.name, "public")
        os.makedirs(public)
        with open(os.path.join(public, "hello.txt"), "w", encoding="utf-8") as f:
            f.write("hello from public")
        config = ServerConfig(public_dir=public, storage_dir=self._tmp.name,
                              fetch_delay_ms=1, chain_delays_ms=(1, 1, 1))
        self.client = TestClient(create_app(config, policy=FailurePolicy.never()))

    def test_serves_static_file(self):
        resp = self.client.get("/hello.txt")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.text, "hello from public")

    def test_routes_take_precedence(self):
        self.assertEqual(self.client.get("/callback").json()["method"], "callback")

    def test_trailing_slash_is_404_with_static_mount(self):
        resp = self.client.get("/callback/", follow_redirects=False)
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["error"], "Endpoint not found")

    def test_missing_static_file_is_404_envelope(self):
        resp = self.client.get("/nope.css")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["error"], "Endpoint not found")


if __name__ == "__main__":
    unittest.main(verbosity=2)
