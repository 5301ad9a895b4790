"""
Match outcome derivation.

Status codes are API-Football short codes (fixture.status.short).
"""
from enum import Enum
from typing import Any, Optional

# Cancelled, postponed, suspended, abandoned, walkover, interrupted
INVALID_STATUSES = frozenset({"CANC", "PST", "SUSP", "ABD", "WO", "INT"})

# Full time, after extra time, penalties
FINISHED_STATUSES = frozenset({"FT", "AET", "PEN"})

# Status assumed for a manually entered score when none is known
DEFAULT_MANUAL_STATUS = "FT"


class Outcome(str, Enum):
    HOME = "HOME"
    DRAW = "DRAW"
    AWAY = "AWAY"

    @classmethod
    def parse(cls, value: Any) -> "Outcome":
        """
        Parse an outcome, accepting the 1/X/2 notation shown on pool cards.

        Raises ValueError for anything else.
        """
        if isinstance(value, Outcome):
            return value
        if isinstance(value, str):
            key = value.strip().upper()
            if key in _PICK_ALIASES:
                return _PICK_ALIASES[key]
            if key in cls.__members__:
                return cls[key]
        raise ValueError(f"Unknown outcome: {value!r}")


_PICK_ALIASES = {"1": Outcome.HOME, "X": Outcome.DRAW, "2": Outcome.AWAY}


def normalize_status(status: Any) -> Optional[str]:
    if not isinstance(status, str) or not status.strip():
        return None
    return status.strip().upper()


def parse_score(value: Any) -> Optional[int]:
    """Return a non-negative goal count, or None if the value is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    return None


def is_finished(status: Any) -> bool:
    return normalize_status(status) in FINISHED_STATUSES


def determine_outcome(home_score: Any, away_score: Any, fixture_status: Any) -> Optional[Outcome]:
    """
    Derive the official outcome of a match.

    Returns None whenever no official outcome can be determined: the match was
    cancelled/postponed/etc., a score is missing or not an integer, or the
    match has not finished. Never raises.
    """
    status = normalize_status(fixture_status)
    if status in INVALID_STATUSES:
        return None

    home = parse_score(home_score)
    away = parse_score(away_score)
    if home is None or away is None:
        return None

    if status not in FINISHED_STATUSES:
        return None

    if home > away:
        return Outcome.HOME
    if away > home:
        return Outcome.AWAY
    return Outcome.DRAW
