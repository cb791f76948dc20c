import json as _json

import requests


class DummyResponse:
    def __init__(self, json_data=None, status_code: int = 200, content: bytes = b"", reason: str = ""):
        self._json = json_data
        if json_data is not None and not content:
            content = _json.dumps(json_data).encode()
        self.content = content
        self.status_code = status_code
        self.reason = reason
        self.text = content.decode("utf-8", errors="replace")

    def json(self):
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class DummySession:
    """Replays queued responses (or raises queued exceptions) in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def _next(self):
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def request(self, method, url, headers=None, params=None, json=None, timeout=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "headers": headers,
                "params": params,
                "json": dict(json) if json is not None else None,
                "timeout": timeout,
            }
        )
        return self._next()

    def get(self, url, headers=None, timeout=None):
        self.calls.append({"method": "GET", "url": url, "headers": headers, "timeout": timeout})
        return self._next()


class FailingClient:
    """Contents client stand-in whose ``failing`` method raises a non-HTTP error."""

    def __init__(self, failing: str):
        self.failing = failing
        self.calls = []

    def _call(self, name, result):
        self.calls.append(name)
        if name == self.failing:
            raise RuntimeError(f"{name} exploded")
        return result

    def get_file_sha(self, file_path, *, deadline=None):
        return self._call("get_file_sha", None)

    def put_file(self, file_path, content, message, *, sha=None, deadline=None):
        return self._call("put_file", {"commit": {"sha": "commit-1", "html_url": "https://gh/c1"}})

    def create_release(self, tag, target_commitish, name, body, *, deadline=None):
        return self._call("create_release", {"tag_name": tag, "html_url": "https://gh/rel"})
