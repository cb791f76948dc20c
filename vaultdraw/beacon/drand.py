import logging
import re
from dataclasses import dataclass
from typing import Optional

import requests

from ..config import BeaconSettings
from ..errors import EntropySourceError
from ..models.draw import RandomnessSource
from ..utils import dt_iso, utc_now

logger = logging.getLogger(__name__)

PROVIDER = "drand"
_HEX = re.compile(r"^[0-9a-fA-F]+$")


@dataclass(frozen=True)
class BeaconRound:
    """One round published by the drand beacon."""

    round: int
    randomness: str
    fetch_time: str
    verification_url: str

    def to_source(self) -> RandomnessSource:
        return RandomnessSource(
            provider=PROVIDER,
            round=self.round,
            timestamp=self.fetch_time,
            verification_url=self.verification_url,
            fetched_by_worker=True,
        )


def _round_url(latest_url: str, round_number: int) -> str:
    base = latest_url.rstrip("/")
    if base.endswith("/latest"):
        base = base[: -len("/latest")]
    return f"{base}/{round_number}"


def fetch_latest_randomness(
    settings: Optional[BeaconSettings] = None,
    *,
    session: Optional[requests.Session] = None,
) -> BeaconRound:
    """Fetch the latest drand round.

    Parameters
    ----------
    settings : Optional[BeaconSettings], default: None
        Endpoint and timeout. Defaults to the public drand mainnet.
    session : Optional[requests.Session], default: None
        Session used for the GET request.

    Returns
    -------
    BeaconRound
        Round number, randomness and the time it was fetched.

    Raises
    ------
    EntropySourceError
        If the request fails, the status is not 2xx, the body is not JSON or
        the payload lacks ``round`` or a hex ``randomness`` value.
    """
    settings = settings or BeaconSettings()
    http = session or requests.Session()

    try:
        response = http.get(
            settings.url,
            headers={"Accept": "application/json"},
            timeout=settings.timeout,
        )
        response.raise_for_status()
        payload = response.json()
    except requests.RequestException as e:
        logger.error(f"drand request failed: {e}")
        raise EntropySourceError(f"Failed to fetch randomness from drand: {e}") from e
    except ValueError as e:
        raise EntropySourceError("drand returned a non-JSON response") from e

    if not isinstance(payload, dict):
        raise EntropySourceError("drand response is incomplete")
    round_number = payload.get("round")
    randomness = payload.get("randomness")
    if isinstance(round_number, bool) or not isinstance(round_number, int):
        raise EntropySourceError("drand response is incomplete: missing round")
    if not isinstance(randomness, str) or not _HEX.match(randomness):
        raise EntropySourceError("drand response is incomplete: missing randomness")

    logger.debug(f"Fetched drand round {round_number}")
    return BeaconRound(
        round=round_number,
        randomness=randomness,
        fetch_time=dt_iso(utc_now()),
        verification_url=_round_url(settings.url, round_number),
    )
