"""
Entry scoring: one point per fixture whose official outcome matches the pick.
"""
from typing import Any, Iterable, Mapping, Optional

from quiniela.errors import MalformedDocumentError
from quiniela.models.entry import Entry
from quiniela.outcome import Outcome
from quiniela.utils import as_utc


def parse_predictions(raw: Any) -> dict[int, Outcome]:
    """
    Validate a stored prediction map ({match_id: outcome}).

    JSON storage turns integer keys into strings, so keys are coerced back.
    """
    if not isinstance(raw, Mapping):
        raise MalformedDocumentError(f"predictions must be a mapping, got {type(raw).__name__}")

    parsed: dict[int, Outcome] = {}
    for key, value in raw.items():
        try:
            match_id = int(key)
        except (TypeError, ValueError):
            raise MalformedDocumentError(f"prediction key {key!r} is not a match id") from None
        try:
            parsed[match_id] = Outcome.parse(value)
        except ValueError:
            raise MalformedDocumentError(
                f"prediction for match {match_id} is not an outcome: {value!r}"
            ) from None
    return parsed


def score_entry(
    predictions: Mapping[int, Outcome],
    official_outcomes: Mapping[int, Optional[Outcome]],
) -> int:
    """Count fixtures with an official outcome equal to the entry's pick."""
    points = 0
    for match_id, outcome in official_outcomes.items():
        if outcome is None:
            continue
        if predictions.get(match_id) == outcome:
            points += 1
    return points


def build_leaderboard(entries: Iterable[Entry]) -> list[dict]:
    """Rank entries by points (desc), breaking ties by earliest submission."""
    ordered = sorted(entries, key=lambda e: (-e.points, as_utc(e.submitted_at), e.id))
    return [
        {
            "position": i,
            "entry_id": e.id,
            "user_id": e.user_id,
            "user_name": e.user_name,
            "points": e.points,
            "status": e.status,
            "submitted_at": e.submitted_at,
        }
        for i, e in enumerate(ordered, 1)
    ]
