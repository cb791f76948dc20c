"""Best-effort publication of audit bundles."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from ..audit.bundle import AuditBundle
from ..config import PublicationSettings
from ..errors import PublicationError
from ..models.draw import Competition
from ..utils import dt_iso, utc_now
from .client import GitHubContentsClient
from .paths import publication_path, release_tag

logger = logging.getLogger(__name__)

SKIPPED = "SKIPPED"
CHECKING_EXISTING = "CHECKING_EXISTING"
COMMITTING = "COMMITTING"
CREATING_RELEASE = "CREATING_RELEASE"
PUBLISHED = "PUBLISHED"
FAILED = "FAILED"
NOT_CONFIGURED = "NOT_CONFIGURED"


@dataclass
class PublicationResult:
    """Outcome of one publication attempt, merged into the draw response.

    Attributes
    ----------
    published : bool
        ``True`` once the bundle has been committed.
    state : str
        Terminal state: ``SKIPPED``, ``PUBLISHED`` or ``FAILED``.
    failed_stage : Optional[str]
        Stage that was running when publication failed, or ``NOT_CONFIGURED``
        when credentials are missing and no call was made.
    error : Optional[str]
        Underlying error message on failure.
    retryable : Optional[bool]
        Whether re-running the publication may succeed; set on failure.
    """

    published: bool
    state: str
    file_path: Optional[str] = None
    commit_sha: Optional[str] = None
    commit_url: Optional[str] = None
    release_tag: Optional[str] = None
    release_url: Optional[str] = None
    failed_stage: Optional[str] = None
    error: Optional[str] = None
    retryable: Optional[bool] = None
    publication: Optional[dict[str, Any]] = None

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {"published": self.published, "state": self.state}
        optional = {
            "filePath": self.file_path,
            "commitSha": self.commit_sha,
            "commitUrl": self.commit_url,
            "releaseTag": self.release_tag,
            "releaseUrl": self.release_url,
            "failedStage": self.failed_stage,
            "error": self.error,
            "retryable": self.retryable,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data


def skipped_result(reason: str = "No competition metadata supplied") -> PublicationResult:
    return PublicationResult(published=False, state=SKIPPED, error=reason, retryable=False)


def _release_notes(bundle: AuditBundle, competition: Competition, file_path: str) -> str:
    winner = bundle.content["results"]["winner"]
    winner_code = winner["entryCode"] if winner else "none"
    return "\n".join(
        [
            f"Draw for {competition.name}",
            "",
            f"- Bundle hash: `{bundle.bundle_hash}`",
            f"- Seed: `{bundle.content['randomness']['seed']}`",
            f"- Winner: `{winner_code}`",
            f"- Audit file: `{file_path}`",
        ]
    )


class BundlePublisher:
    """Commit audit bundles to a GitHub repository.

    The publisher never raises: every failure is captured into the returned
    :class:`PublicationResult` so that the computed draw is always returned.
    """

    def __init__(
        self,
        settings: Optional[PublicationSettings] = None,
        *,
        client_factory: Optional[
            Callable[[PublicationSettings], GitHubContentsClient]
        ] = None,
        clock: Callable[[], datetime] = utc_now,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings if settings is not None else PublicationSettings.from_env()
        self._client_factory = client_factory or GitHubContentsClient
        self._clock = clock
        self._monotonic = monotonic

    def publish(
        self,
        bundle: AuditBundle,
        competition: Optional[Competition],
        *,
        timestamp: datetime,
    ) -> PublicationResult:
        """Publish ``bundle`` and report the outcome.

        Parameters
        ----------
        bundle : AuditBundle
            Finalized, hashed bundle.
        competition : Optional[Competition]
            Competition metadata. ``None`` skips publication.
        timestamp : datetime
            Draw timestamp used to derive the path and release tag.

        Notes
        -----
        The publication walks through these stages:

        1. Look up the blob sha currently stored at the target path.
        2. Commit the document, passing the sha when one exists so that the
           store performs an update instead of a conflicting create.
        3. For live competitions only, tag a release pointing at the commit.
           A release failure is logged and does not fail the publication.
        """
        if competition is None:
            return skipped_result()

        missing = self.settings.missing_fields()
        if missing:
            message = "Publication is not configured: missing " + ", ".join(missing)
            logger.warning(message)
            return PublicationResult(
                published=False,
                state=FAILED,
                failed_stage=NOT_CONFIGURED,
                error=message,
                retryable=False,
            )

        deadline = self._monotonic() + self.settings.deadline_seconds
        file_path = publication_path(competition, timestamp)
        stage = CHECKING_EXISTING
        try:
            client = self._client_factory(self.settings)
            existing_sha = client.get_file_sha(file_path, deadline=deadline)
            if existing_sha:
                logger.info(f"Updating existing bundle at {file_path}")

            stage = COMMITTING
            publication = {
                "publishedAt": dt_iso(self._clock()),
                "path": file_path,
                "repository": self.settings.repository,
                "branch": self.settings.branch,
            }
            document = bundle.with_publication(publication)
            content = json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")
            commit_body = client.put_file(
                file_path,
                content,
                f"Publish draw audit bundle {bundle.bundle_hash[:12]} ({competition.name})",
                sha=existing_sha,
                deadline=deadline,
            )
        except PublicationError as exc:
            logger.warning(f"Publication failed during {stage}: {exc}")
            return PublicationResult(
                published=False,
                state=FAILED,
                file_path=file_path,
                failed_stage=stage,
                error=str(exc),
                retryable=exc.retryable,
            )
        except Exception as exc:
            logger.exception(f"Unexpected error during {stage}")
            return PublicationResult(
                published=False,
                state=FAILED,
                file_path=file_path,
                failed_stage=stage,
                error=str(exc) or exc.__class__.__name__,
                retryable=False,
            )

        commit = commit_body.get("commit")
        if not isinstance(commit, dict):
            commit = {}
        result = PublicationResult(
            published=True,
            state=PUBLISHED,
            file_path=file_path,
            commit_sha=commit.get("sha"),
            commit_url=commit.get("html_url"),
            publication=publication,
        )
        logger.info(f"Published audit bundle to {file_path}")

        if competition.is_live and result.commit_sha:
            tag = release_tag(competition, timestamp)
            try:
                release = client.create_release(
                    tag,
                    result.commit_sha,
                    f"Draw: {competition.name}",
                    _release_notes(bundle, competition, file_path),
                    deadline=deadline,
                )
            except PublicationError as exc:
                logger.warning(f"{CREATING_RELEASE} failed for {tag}: {exc}")
            except Exception:
                logger.exception(f"Unexpected error during {CREATING_RELEASE} for {tag}")
            else:
                release = release if isinstance(release, dict) else {}
                result.release_tag = release.get("tag_name", tag)
                result.release_url = release.get("html_url")

        return result


__all__ = [
    "BundlePublisher",
    "CHECKING_EXISTING",
    "COMMITTING",
    "CREATING_RELEASE",
    "FAILED",
    "NOT_CONFIGURED",
    "PUBLISHED",
    "PublicationResult",
    "SKIPPED",
    "skipped_result",
]
