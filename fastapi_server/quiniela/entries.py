"""
Entry submission - one prediction sheet per user per pool.
"""
import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from quiniela.errors import DuplicateEntryError, IncompletePredictionsError, SubmissionClosedError
from quiniela.models.entry import ENTRY_ACTIVE, Entry
from quiniela.outcome import Outcome
from quiniela.pools import accepts_entries
from quiniela.repositories import EntryRepository, PoolRepository
from quiniela.utils import utcnow

logger = logging.getLogger(__name__)


def make_entry_id(user_id: str, pool_id: int) -> str:
    """Deterministic id: a user can hold at most one entry per pool."""
    return f"{user_id}_{pool_id}"


def submit_entry(
    pools: PoolRepository,
    entries: EntryRepository,
    pool_id: int,
    user_id: str,
    user_name: str,
    predictions: Mapping[Any, Any],
    now: Optional[datetime] = None,
) -> Entry:
    """
    Create a user's entry for a pool.

    Raises:
        PoolNotFoundError: unknown pool.
        SubmissionClosedError: deadline reached or pool no longer open.
        IncompletePredictionsError: picks don't cover exactly the pool's fixtures.
        DuplicateEntryError: the user already has an entry in this pool.
        ValueError: a pick is not HOME/DRAW/AWAY (or 1/X/2).
    """
    now = now or utcnow()
    pool = pools.get(pool_id)
    if not accepts_entries(pool, now):
        raise SubmissionClosedError(f"Pool {pool_id} is closed for submissions")

    entry_id = make_entry_id(user_id, pool_id)
    if entries.get(entry_id) is not None:
        raise DuplicateEntryError(entry_id)

    picks = {int(match_id): Outcome.parse(pick) for match_id, pick in predictions.items()}
    match_ids = {f.match_id for f in pools.get_fixtures(pool_id)}
    missing = sorted(match_ids - picks.keys())
    unknown = sorted(picks.keys() - match_ids)
    if missing or unknown:
        raise IncompletePredictionsError(missing, unknown)

    entry = Entry(
        id=entry_id,
        user_id=user_id,
        user_name=user_name.strip() or "Usuario",
        pool_id=pool_id,
        pool_title=pool.title,
        predictions={str(match_id): pick.value for match_id, pick in picks.items()},
        submitted_at=now,
        status=ENTRY_ACTIVE,
        points=0,
    )
    entry = entries.add(entry)
    logger.info("Entry %s submitted for pool %s", entry.id, pool_id)
    return entry
