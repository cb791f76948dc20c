"""Client for the public drand randomness beacon."""

from .drand import BeaconRound, fetch_latest_randomness

__all__ = ["BeaconRound", "fetch_latest_randomness"]
