"""Deterministic, publicly verifiable prize draws with published audit bundles."""

from .config import BeaconSettings, DrawConfig, PublicationSettings
from .errors import DrawInputError, EntropySourceError, PublicationError
from .workflows import handle_draw_request, health_status, run_draw

__all__ = [
    "BeaconSettings",
    "DrawConfig",
    "DrawInputError",
    "EntropySourceError",
    "PublicationError",
    "PublicationSettings",
    "handle_draw_request",
    "health_status",
    "run_draw",
]
