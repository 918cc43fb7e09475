"""HTTP tests for the send/get message routes."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from fastapi.testclient import TestClient
from sqlalchemy import delete

from pairchat.config import Settings
from pairchat.db.session import build_engine
from pairchat.main import create_app
from pairchat.models.base import Base
from pairchat.models.message import Message
from pairchat.routers.messages import STATUS_BY_KIND
from pairchat.services.messages import ErrorKind


def _settings(**overrides) -> Settings:
    values = {"database_url": "sqlite+pysqlite:///:memory:", "create_schema_on_startup": False}
    values.update(overrides)
    return Settings(**values)


class MessagesApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = build_engine("sqlite+pysqlite:///:memory:")
        Base.metadata.create_all(cls.engine)
        cls.app = create_app(_settings(), engine=cls.engine)
        cls.client = TestClient(cls.app)

    @classmethod
    def tearDownClass(cls) -> None:
        cls.client.close()
        Base.metadata.drop_all(cls.engine)
        cls.engine.dispose()

    def setUp(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(Message))

    def _send(self, body: object):
        return self.client.post("/api/send-message", json=body)

    def test_send_then_list_scenario(self) -> None:
        response = self._send({"sender": "User A", "content": "hi"})

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["message"], "Message sent successfully")
        self.assertIsInstance(body["data"]["id"], int)
        self.assertTrue(body["data"]["timestamp"].endswith("Z"))

        listing = self.client.get("/api/get-messages")
        self.assertEqual(listing.status_code, 200)
        payload = listing.json()
        self.assertTrue(payload["success"])
        self.assertEqual(payload["count"], len(payload["messages"]))
        last = payload["messages"][-1]
        self.assertEqual((last["sender"], last["content"]), ("User A", "hi"))
        self.assertEqual(last["id"], body["data"]["id"])
        self.assertEqual(last["timestamp"], body["data"]["timestamp"])

    def test_empty_store_lists_empty_sequence(self) -> None:
        response = self.client.get("/api/get-messages")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True, "messages": [], "count": 0})

    def test_empty_sender_is_rejected_without_write(self) -> None:
        response = self._send({"sender": "", "content": "hi"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"success": False, "error": "Sender and content cannot be empty"})
        self.assertEqual(self.client.get("/api/get-messages").json()["messages"], [])

    def test_validation_errors_map_to_bad_request(self) -> None:
        cases = [
            ({"content": "hi"}, "Sender and content are required"),
            ({"sender": "User A", "content": 1}, "Sender and content must be strings"),
            ({"sender": "User A", "content": "   "}, "Sender and content cannot be empty"),
            ({"sender": "User A", "content": "x" * 1001}, "Message content too long (max 1000 characters)"),
            (["User A", "hi"], "Request body must be a JSON object"),
        ]
        for body, error in cases:
            with self.subTest(body=body if not isinstance(body, dict) else sorted(body)):
                response = self._send(body)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json(), {"success": False, "error": error})
        self.assertEqual(self.client.get("/api/get-messages").json()["count"], 0)

    def test_content_of_exactly_maximum_length_is_accepted(self) -> None:
        response = self._send({"sender": "User B", "content": "y" * 1000})

        self.assertEqual(response.status_code, 201)
        stored = self.client.get("/api/get-messages").json()["messages"][-1]
        self.assertEqual(len(stored["content"]), 1000)

    def test_malformed_json_is_bad_request(self) -> None:
        response = self.client.post(
            "/api/send-message",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"success": False, "error": "Request body must be valid JSON"})

    def test_list_limit_is_clamped_and_validated(self) -> None:
        for idx in range(3):
            self._send({"sender": "User A", "content": f"m{idx}"})

        self.assertEqual(self.client.get("/api/get-messages", params={"limit": 2}).json()["count"], 2)
        self.assertEqual(self.client.get("/api/get-messages", params={"limit": 500}).json()["count"], 3)

        for bad in ("0", "abc"):
            response = self.client.get("/api/get-messages", params={"limit": bad})
            self.assertEqual(response.status_code, 400)
            self.assertFalse(response.json()["success"])
            self.assertEqual(response.json()["messages"], [])

    def test_list_is_ascending_and_stable_across_polls(self) -> None:
        for content in ("first", "second", "third"):
            self._send({"sender": "User B", "content": content})

        first = self.client.get("/api/get-messages").json()["messages"]
        second = self.client.get("/api/get-messages").json()["messages"]

        self.assertEqual(first, second)
        self.assertEqual([m["content"] for m in first], ["first", "second", "third"])
        self.assertEqual([m["timestamp"] for m in first], sorted(m["timestamp"] for m in first))

    def test_unexpected_send_failure_hides_details(self) -> None:
        with mock.patch("pairchat.routers.messages.send_message", side_effect=RuntimeError("secret dsn")):
            with self.assertLogs("pairchat.routers.messages", level="ERROR"):
                response = self._send({"sender": "User A", "content": "hi"})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"success": False, "error": "Internal server error"})

    def test_unexpected_list_failure_hides_details(self) -> None:
        with mock.patch("pairchat.routers.messages.list_recent_messages", side_effect=KeyError("internal")):
            with self.assertLogs("pairchat.routers.messages", level="ERROR"):
                response = self.client.get("/api/get-messages")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"success": False, "error": "Failed to fetch messages", "messages": []})

    def test_every_error_kind_has_a_status(self) -> None:
        self.assertEqual(set(STATUS_BY_KIND), set(ErrorKind))
        self.assertEqual(STATUS_BY_KIND[ErrorKind.UNEXPECTED], 500)
        self.assertEqual(STATUS_BY_KIND[ErrorKind.STORAGE_UNAVAILABLE], 503)
        for kind in (ErrorKind.MISSING_FIELD, ErrorKind.INVALID_TYPE, ErrorKind.EMPTY_FIELD, ErrorKind.CONTENT_TOO_LONG):
            self.assertEqual(STATUS_BY_KIND[kind], 400)

    def test_health(self) -> None:
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})


class StorageUnavailableApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        missing = Path(self._tmp.name) / "missing" / "pairchat.db"
        database_url = f"sqlite+pysqlite:///{missing}"
        self.engine = build_engine(database_url)
        self.client = TestClient(create_app(_settings(database_url=database_url), engine=self.engine))

    def tearDown(self) -> None:
        self.client.close()
        self.engine.dispose()
        self._tmp.cleanup()

    def test_list_returns_retryable_status_with_empty_messages(self) -> None:
        response = self.client.get("/api/get-messages")

        self.assertEqual(response.status_code, 503)
        self.assertEqual(
            response.json(),
            {
                "success": False,
                "error": "Database connection failed. Please try again later.",
                "messages": [],
            },
        )

    def test_send_returns_retryable_status(self) -> None:
        response = self.client.post("/api/send-message", json={"sender": "User A", "content": "hi"})

        self.assertEqual(response.status_code, 503)
        self.assertEqual(
            response.json(),
            {"success": False, "error": "Database connection failed. Please try again later."},
        )

    def test_validation_runs_before_store_access(self) -> None:
        response = self.client.post("/api/send-message", json={"sender": "User A"})

        self.assertEqual(response.status_code, 400)


if __name__ == "__main__":
    unittest.main()
