import base64
import logging
import time
from typing import Any, Callable, Mapping, Optional
from urllib.parse import quote

import requests

from ..config import PublicationSettings
from ..errors import PublicationError, PublicationNotConfigured

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = frozenset({429, 502, 503, 504})
TRANSIENT_SIGNATURES = ("rate limit", "timed out", "timeout", "etimedout")


def is_transient(status_code: Optional[int], message: str) -> bool:
    """Return ``True`` for rate limits, gateway errors and timeouts."""
    if status_code in TRANSIENT_STATUS_CODES:
        return True
    lowered = message.lower()
    return any(signature in lowered for signature in TRANSIENT_SIGNATURES)


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    text = (response.text or "").strip()
    return text[:200] or response.reason or "no response body"


class GitHubContentsClient:
    """Thin wrapper over the GitHub contents and releases endpoints.

    Every call is retried on transient failures with exponential backoff
    (``retry_base_delay`` doubling per attempt, ``max_attempts`` in total).
    Other failures raise :class:`PublicationError` immediately.
    """

    def __init__(
        self,
        settings: PublicationSettings,
        *,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        missing = settings.missing_fields()
        if missing:
            raise PublicationNotConfigured(missing)

        self.settings = settings
        self.base_url = settings.api_url.rstrip("/")
        self.owner, self.repo = settings.repository.split("/", 1)
        self.session = session or requests.Session()
        self._sleep = sleep
        self._clock = clock

    # -------- headers --------
    @property
    def headers(self) -> Mapping[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.settings.token}",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "vaultdraw-publisher",
        }

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
        allow_not_found: bool = False,
        deadline: Optional[float] = None,
        before_retry: Optional[Callable[[], None]] = None,
    ) -> Any:
        url = self.base_url + path
        attempts = self.settings.max_attempts
        for attempt in range(1, attempts + 1):
            timeout = self.settings.timeout
            if deadline is not None:
                timeout = max(0.1, min(timeout, deadline - self._clock()))
            try:
                r = self.session.request(
                    method=method.upper(),
                    url=url,
                    headers=self.headers,
                    params=params,
                    json=json,
                    timeout=timeout,
                )
            except requests.Timeout as exc:
                error = PublicationError(
                    f"{method} {path} timed out: {exc}", retryable=True
                )
            except requests.RequestException as exc:
                error = PublicationError(
                    f"{method} {path} failed: {exc}", retryable=True
                )
            else:
                if r.status_code == 404 and allow_not_found:
                    return None
                if r.status_code < 400:
                    if not r.content:
                        return None
                    try:
                        return r.json()
                    except ValueError as exc:
                        raise PublicationError(
                            f"{method} {path} returned a non-JSON body",
                            status_code=r.status_code,
                        ) from exc
                message = _error_message(r)
                error = PublicationError(
                    f"{method} {path} returned {r.status_code}: {message}",
                    status_code=r.status_code,
                    retryable=is_transient(r.status_code, message),
                )

            if not error.retryable or attempt >= attempts:
                raise error

            delay = self.settings.retry_base_delay * (2 ** (attempt - 1))
            if deadline is not None and self._clock() + delay > deadline:
                raise PublicationError(
                    f"Publication deadline exceeded after {attempt} attempt(s): {error}",
                    status_code=error.status_code,
                    retryable=True,
                )
            logger.warning(
                f"Transient publication error, retry {attempt}/{attempts - 1} "
                f"in {delay:.1f}s: {error}"
            )
            self._sleep(delay)
            if before_retry is not None:
                before_retry()

        raise PublicationError(f"{method} {path} failed", retryable=True)  # pragma: no cover

    def _contents_path(self, file_path: str) -> str:
        return f"/repos/{self.owner}/{self.repo}/contents/{quote(file_path)}"

    # -------- API callers --------
    def get_file_sha(
        self, file_path: str, *, deadline: Optional[float] = None
    ) -> Optional[str]:
        """Return the blob sha stored at ``file_path``, or ``None`` if absent."""
        body = self._request(
            "GET",
            self._contents_path(file_path),
            params={"ref": self.settings.branch},
            allow_not_found=True,
            deadline=deadline,
        )
        if not body:
            return None
        if not isinstance(body, dict):
            raise PublicationError(f"Path '{file_path}' is a directory, not a file")
        return body.get("sha")

    def put_file(
        self,
        file_path: str,
        content: bytes,
        message: str,
        *,
        sha: Optional[str] = None,
        deadline: Optional[float] = None,
    ) -> dict:
        """Create or update ``file_path``; ``sha`` turns the call into an update."""
        payload = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self.settings.branch,
        }
        if sha:
            payload["sha"] = sha

        def refresh_sha() -> None:
            # an earlier attempt may have landed before timing out
            current = self.get_file_sha(file_path, deadline=deadline)
            if current:
                payload["sha"] = current

        body = self._request(
            "PUT",
            self._contents_path(file_path),
            json=payload,
            deadline=deadline,
            before_retry=refresh_sha,
        )
        if not isinstance(body, dict) or "commit" not in body:
            raise PublicationError("Unexpected response from contents API")
        return body

    def create_release(
        self,
        tag: str,
        target_commitish: str,
        name: str,
        body: str,
        *,
        deadline: Optional[float] = None,
    ) -> dict:
        return self._request(
            "POST",
            f"/repos/{self.owner}/{self.repo}/releases",
            json={
                "tag_name": tag,
                "target_commitish": target_commitish,
                "name": name,
                "body": body,
            },
            deadline=deadline,
        )
