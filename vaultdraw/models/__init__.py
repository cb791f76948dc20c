from .entry import (  # noqa: F401
    DISQUALIFIED,
    QUALIFIED,
    Location,
    ProcessedEntry,
    Quiz,
    RankedEntry,
    RawEntry,
    ScoredEntry,
)
from .draw import (  # noqa: F401
    COMPETITION_MODES,
    LIVE,
    TEST,
    Competition,
    DrawRequest,
    RandomnessSource,
)

__all__ = [
    "COMPETITION_MODES",
    "Competition",
    "DISQUALIFIED",
    "DrawRequest",
    "LIVE",
    "Location",
    "ProcessedEntry",
    "QUALIFIED",
    "Quiz",
    "RandomnessSource",
    "RankedEntry",
    "RawEntry",
    "ScoredEntry",
    "TEST",
]
