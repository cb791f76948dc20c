"""Exception types raised by the draw and publication layers."""

from __future__ import annotations

from typing import Optional


class DrawInputError(ValueError):
    """Raised when a draw request is malformed; the draw is not attempted."""


class EntropySourceError(RuntimeError):
    """Raised when the external randomness beacon cannot supply a value."""

    retryable = True


class PublicationError(RuntimeError):
    """Raised by the publication client when a store call fails.

    Attributes
    ----------
    status_code : Optional[int]
        HTTP status returned by the store, ``None`` for transport errors.
    retryable : bool
        ``True`` when the failure is transient and the call may be retried.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class PublicationNotConfigured(PublicationError):
    """Raised when credentials or the target repository are missing."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            "Publication is not configured: missing " + ", ".join(missing),
            retryable=False,
        )
        self.missing = list(missing)


__all__ = [
    "DrawInputError",
    "EntropySourceError",
    "PublicationError",
    "PublicationNotConfigured",
]
