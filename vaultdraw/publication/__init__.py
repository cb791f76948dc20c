"""Publication of audit bundles to a version-controlled store."""

from .client import GitHubContentsClient, is_transient
from .paths import competition_slug, publication_path, release_tag
from .publisher import BundlePublisher, PublicationResult, skipped_result

__all__ = [
    "BundlePublisher",
    "GitHubContentsClient",
    "PublicationResult",
    "competition_slug",
    "is_transient",
    "publication_path",
    "release_tag",
    "skipped_result",
]
