import logging
from datetime import datetime
from typing import Any, Callable, Optional

import requests

from .audit.bundle import AuditBundle, build_audit_bundle
from .beacon.drand import fetch_latest_randomness
from .config import BeaconSettings, DrawConfig
from .draw.engine import DrawEngine, DrawOutcome
from .draw.qualification import QualificationRuleSet
from .errors import DrawInputError, EntropySourceError
from .models.draw import DrawRequest, DrawRound, RandomnessSource
from .publication.publisher import BundlePublisher, PublicationResult, skipped_result
from .utils import dt_iso, utc_now
from .validation import parse_draw_request

logger = logging.getLogger(__name__)

UNSPECIFIED_ROUND = "UNSPECIFIED"
INTERNAL_ERROR_MESSAGE = "Internal server error occurred during draw processing"


def resolve_randomness(
    request: DrawRequest,
    *,
    beacon_settings: Optional[BeaconSettings] = None,
    beacon_session: Optional[requests.Session] = None,
) -> tuple[str, RandomnessSource, Optional[DrawRound]]:
    """Return the randomness, its provenance and the draw round for ``request``.

    When the request asks for auto-fetch the latest drand round is used, and
    its round number becomes the draw round unless the caller supplied one.

    Raises
    ------
    EntropySourceError
        If the beacon cannot be reached or returns an incomplete payload.
    """
    if not request.auto_fetch:
        if request.randomness is None:
            raise DrawInputError("Field 'randomness' is required")
        return request.randomness, request.randomness_source, request.draw_round

    beacon = fetch_latest_randomness(beacon_settings, session=beacon_session)
    draw_round = request.draw_round if request.draw_round is not None else beacon.round
    return beacon.randomness, beacon.to_source(), draw_round


def build_response(
    *,
    request: DrawRequest,
    outcome: DrawOutcome,
    bundle: AuditBundle,
    publication: PublicationResult,
    draw_round: Optional[DrawRound],
    config: DrawConfig,
) -> dict[str, Any]:
    """Assemble the response body returned to the caller."""
    competition = request.competition
    winner = outcome.winner
    results = [entry.to_json() for entry in outcome.ranked]

    if publication.published and publication.publication is not None:
        bundle_json = bundle.with_publication(publication.publication)
    else:
        bundle_json = bundle.to_json()

    return {
        "success": True,
        "draw": {
            "timestamp": bundle.timestamp,
            "mode": competition.mode if competition is not None else None,
            "competitionId": competition.id if competition is not None else None,
            "competitionName": competition.name if competition is not None else None,
            "totalEntries": outcome.total_entries,
            "qualifiedEntries": outcome.qualified_entries,
            "disqualifiedEntries": outcome.disqualified_entries,
            "winner": winner.to_json() if winner is not None else None,
        },
        "audit": {
            "bundle": bundle_json,
            "bundleHash": bundle.bundle_hash,
            "github": publication.to_json(),
        },
        "metadata": {
            "algorithm": config.algorithm_version,
            "hashFunction": config.hash_function,
            "drawRound": draw_round if draw_round is not None else UNSPECIFIED_ROUND,
            "drawSeed": outcome.seed,
            "timestamp": bundle.timestamp,
            "totalEntries": outcome.total_entries,
            "resultsChecksum": bundle.content["results"]["resultsChecksum"],
        },
        "results": results,
        "topWinners": [
            entry.to_json() for entry in outcome.top_winners(config.top_winners_limit)
        ],
    }


def run_draw(
    body: Any,
    *,
    config: Optional[DrawConfig] = None,
    publisher: Optional[BundlePublisher] = None,
    publish: bool = True,
    rules: Optional[QualificationRuleSet] = None,
    beacon_settings: Optional[BeaconSettings] = None,
    beacon_session: Optional[requests.Session] = None,
    clock: Callable[[], datetime] = utc_now,
) -> dict[str, Any]:
    """Validate ``body``, compute the draw, build the bundle and publish it.

    The workflow performs the following steps:

    1. Parse and validate the request. Input problems raise
       :class:`DrawInputError` before anything is hashed.
    2. Resolve the randomness, fetching it from drand when requested.
    3. Compute the draw and build the hashed audit bundle.
    4. Publish the bundle when competition metadata is present. Publication
       failures are reported in ``audit.github`` and never raised.

    Parameters
    ----------
    body : Any
        Decoded JSON request body.
    config : Optional[DrawConfig], default: None
        Draw limits. Defaults to :class:`DrawConfig`.
    publisher : Optional[BundlePublisher], default: None
        Publisher used for competitions. When omitted, one is created from
        environment variables only if publication is needed.
    publish : bool, default: True
        ``False`` skips publication even when a competition is supplied.
    rules : Optional[QualificationRuleSet], default: None
        Qualification rules override.
    beacon_settings : Optional[BeaconSettings], default: None
        drand endpoint used for auto-fetch.
    beacon_session : Optional[requests.Session], default: None
        Session used for the drand request.
    clock : Callable[[], datetime], default: utc_now
        Clock used for draw timestamps.

    Returns
    -------
    dict
        Response body with ``draw``, ``audit``, ``metadata``, ``results`` and
        ``topWinners``.
    """
    config = config or DrawConfig()
    request = parse_draw_request(body, config)
    randomness, source, draw_round = resolve_randomness(
        request, beacon_settings=beacon_settings, beacon_session=beacon_session
    )

    outcome = DrawEngine(config, rules=rules, clock=clock).compute(request, randomness)
    timestamp = outcome.completed_at
    bundle = build_audit_bundle(
        outcome,
        config=config,
        generated_at=timestamp,
        competition=request.competition,
        randomness_source=source,
        draw_round=draw_round,
    )

    if request.competition is None:
        publication = skipped_result()
    elif not publish:
        publication = skipped_result("Publication disabled")
    else:
        publisher = publisher or BundlePublisher(clock=clock)
        publication = publisher.publish(bundle, request.competition, timestamp=timestamp)

    return build_response(
        request=request,
        outcome=outcome,
        bundle=bundle,
        publication=publication,
        draw_round=draw_round,
        config=config,
    )


def error_body(message: str, config: Optional[DrawConfig] = None) -> dict[str, Any]:
    config = config or DrawConfig()
    return {
        "success": False,
        "error": message,
        "timestamp": dt_iso(utc_now()),
        "algorithm": config.algorithm_version,
    }


def handle_draw_request(body: Any, **kwargs: Any) -> tuple[int, dict[str, Any]]:
    """Run a draw and map the error taxonomy onto HTTP status codes.

    Returns ``(200, response)`` on success, ``(400, ...)`` for input errors,
    ``(503, ...)`` when the randomness beacon is unavailable and ``(500, ...)``
    with a generic message for anything unexpected.
    """
    config = kwargs.get("config")
    try:
        return 200, run_draw(body, **kwargs)
    except DrawInputError as exc:
        logger.info(f"Rejected draw request: {exc}")
        return 400, error_body(str(exc), config)
    except EntropySourceError as exc:
        logger.warning(f"Randomness beacon unavailable: {exc}")
        payload = error_body(str(exc), config)
        payload["retryable"] = exc.retryable
        return 503, payload
    except Exception:
        logger.exception("Draw processing error")
        return 500, error_body(INTERNAL_ERROR_MESSAGE, config)


def health_status(config: Optional[DrawConfig] = None) -> dict[str, Any]:
    config = config or DrawConfig()
    return {
        "status": "healthy",
        "version": config.algorithm_version,
        "timestamp": dt_iso(utc_now()),
    }


__all__ = [
    "build_response",
    "error_body",
    "handle_draw_request",
    "health_status",
    "resolve_randomness",
    "run_draw",
]
