import base64
import json
import unittest

import requests

from vaultdraw.config import PublicationSettings
from vaultdraw.errors import PublicationError, PublicationNotConfigured
from vaultdraw.publication.client import GitHubContentsClient, is_transient
from tests.support import DummyResponse, DummySession

SETTINGS = PublicationSettings(
    token="ghp_test",
    repository="vaultplay/draw-audits",
    branch="audits",
    api_url="https://api.github.test/",
)


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class TestTransientClassification(unittest.TestCase):
    def test_status_codes(self):
        for code in (429, 502, 503, 504):
            self.assertTrue(is_transient(code, ""))
        for code in (400, 401, 403, 404, 409, 422, 500):
            self.assertFalse(is_transient(code, "Bad credentials"))

    def test_message_signatures(self):
        self.assertTrue(is_transient(403, "API rate limit exceeded for user"))
        self.assertTrue(is_transient(None, "Read timed out"))
        self.assertFalse(is_transient(None, "Not Found"))


class TestGitHubContentsClient(unittest.TestCase):
    def _client(self, session, clock=None):
        clock = clock or FakeClock()
        return GitHubContentsClient(SETTINGS, session=session, sleep=clock.sleep, clock=clock)

    def test_requires_configuration(self):
        with self.assertRaises(PublicationNotConfigured) as ctx:
            GitHubContentsClient(PublicationSettings(), session=DummySession())
        self.assertIn("GITHUB_TOKEN", str(ctx.exception))
        self.assertFalse(ctx.exception.retryable)

    def test_get_file_sha_returns_none_when_absent(self):
        session = DummySession(DummyResponse({"message": "Not Found"}, status_code=404))
        client = self._client(session)
        self.assertIsNone(client.get_file_sha("test/2026-01/x/draw.json"))
        call = session.calls[0]
        self.assertEqual(call["method"], "GET")
        self.assertEqual(
            call["url"],
            "https://api.github.test/repos/vaultplay/draw-audits/contents/test/2026-01/x/draw.json",
        )
        self.assertEqual(call["params"], {"ref": "audits"})
        self.assertEqual(call["headers"]["Authorization"], "Bearer ghp_test")

    def test_get_file_sha_returns_existing_sha(self):
        session = DummySession(DummyResponse({"sha": "abc123", "type": "file"}))
        self.assertEqual(self._client(session).get_file_sha("a/draw.json"), "abc123")

    def test_put_file_sends_sha_for_update(self):
        session = DummySession(DummyResponse({"content": {}, "commit": {"sha": "c1"}}, status_code=200))
        client = self._client(session)
        body = client.put_file("a/draw.json", b'{"x": 1}', "msg", sha="abc123")
        self.assertEqual(body["commit"]["sha"], "c1")
        payload = session.calls[0]["json"]
        self.assertEqual(session.calls[0]["method"], "PUT")
        self.assertEqual(payload["sha"], "abc123")
        self.assertEqual(payload["branch"], "audits")
        self.assertEqual(json.loads(base64.b64decode(payload["content"])), {"x": 1})

    def test_put_file_without_sha_creates(self):
        session = DummySession(DummyResponse({"content": {}, "commit": {"sha": "c1"}}, status_code=201))
        self._client(session).put_file("a/draw.json", b"{}", "msg")
        self.assertNotIn("sha", session.calls[0]["json"])

    def test_transient_errors_are_retried_with_backoff(self):
        clock = FakeClock()
        session = DummySession(
            DummyResponse({"message": "Bad gateway"}, status_code=502),
            requests.Timeout("read timed out"),
            DummyResponse({"sha": "abc"}),
        )
        client = self._client(session, clock)
        self.assertEqual(client.get_file_sha("a/draw.json"), "abc")
        self.assertEqual(len(session.calls), 3)
        self.assertEqual(clock.sleeps, [1.0, 2.0])

    def test_retries_are_bounded(self):
        clock = FakeClock()
        session = DummySession(*[DummyResponse({"message": "busy"}, status_code=503) for _ in range(3)])
        client = self._client(session, clock)
        with self.assertRaises(PublicationError) as ctx:
            client.get_file_sha("a/draw.json")
        self.assertTrue(ctx.exception.retryable)
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertEqual(len(session.calls), 3)
        self.assertEqual(clock.sleeps, [1.0, 2.0])

    def test_permanent_errors_fail_immediately(self):
        clock = FakeClock()
        session = DummySession(DummyResponse({"message": "Bad credentials"}, status_code=401))
        client = self._client(session, clock)
        with self.assertRaises(PublicationError) as ctx:
            client.put_file("a/draw.json", b"{}", "msg")
        self.assertFalse(ctx.exception.retryable)
        self.assertIn("Bad credentials", str(ctx.exception))
        self.assertEqual(len(session.calls), 1)
        self.assertEqual(clock.sleeps, [])

    def test_deadline_stops_retrying(self):
        clock = FakeClock()
        session = DummySession(DummyResponse({"message": "busy"}, status_code=503))
        client = self._client(session, clock)
        with self.assertRaises(PublicationError) as ctx:
            client.get_file_sha("a/draw.json", deadline=0.5)
        self.assertIn("deadline", str(ctx.exception))
        self.assertTrue(ctx.exception.retryable)
        self.assertEqual(clock.sleeps, [])

    def test_put_retry_picks_up_sha_of_landed_write(self):
        clock = FakeClock()
        session = DummySession(
            requests.Timeout("read timed out"),
            DummyResponse({"sha": "blob-new", "type": "file"}),
            DummyResponse({"content": {}, "commit": {"sha": "c2"}}, status_code=200),
        )
        client = self._client(session, clock)
        body = client.put_file("a/draw.json", b"{}", "msg")

        self.assertEqual(body["commit"]["sha"], "c2")
        self.assertEqual([c["method"] for c in session.calls], ["PUT", "GET", "PUT"])
        self.assertNotIn("sha", session.calls[0]["json"])
        self.assertEqual(session.calls[2]["json"]["sha"], "blob-new")
        self.assertEqual(clock.sleeps, [1.0])

    def test_put_retry_without_existing_file_keeps_create(self):
        session = DummySession(
            DummyResponse({"message": "busy"}, status_code=503),
            DummyResponse({"message": "Not Found"}, status_code=404),
            DummyResponse({"content": {}, "commit": {"sha": "c1"}}, status_code=201),
        )
        self._client(session).put_file("a/draw.json", b"{}", "msg")
        self.assertNotIn("sha", session.calls[2]["json"])

    def test_non_json_success_body_is_a_publication_error(self):
        session = DummySession(DummyResponse(status_code=201, content=b"<html>ok</html>"))
        with self.assertRaises(PublicationError) as ctx:
            self._client(session).create_release("draw-x", "c1", "Draw", "notes")
        self.assertFalse(ctx.exception.retryable)
        self.assertEqual(len(session.calls), 1)

    def test_create_release(self):
        session = DummySession(DummyResponse({"tag_name": "draw-x", "html_url": "https://r"}, status_code=201))
        release = self._client(session).create_release("draw-x", "c1", "Draw", "notes")
        self.assertEqual(release["html_url"], "https://r")
        self.assertEqual(session.calls[0]["url"], "https://api.github.test/repos/vaultplay/draw-audits/releases")
        self.assertEqual(session.calls[0]["json"]["target_commitish"], "c1")


if __name__ == "__main__":
    unittest.main()
