"""
Pool management - creation, fixture locks and manual result entry.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence

from quiniela.config import DEADLINE_LEAD_MINUTES, MAX_DESCRIPTION_CHARS, MAX_FIXTURES
from quiniela.errors import InvalidPoolError
from quiniela.models.fixture import Fixture
from quiniela.models.pool import POOL_OPEN, Pool
from quiniela.outcome import normalize_status, parse_score
from quiniela.repositories import EntryRepository, PoolRepository
from quiniela.utils import as_utc, utcnow

logger = logging.getLogger(__name__)


def accepts_entries(pool: Pool, now: Optional[datetime] = None) -> bool:
    """
    Open, before the deadline, and never touched by a settlement run.

    A failed run puts the pool back to its previous status, but entries added
    after that would sort anywhere in the resume order and could be skipped.
    """
    now = now or utcnow()
    return (
        pool.status == POOL_OPEN
        and pool.settlement_started_at is None
        and now < as_utc(pool.deadline)
    )


def create_pool(
    pools: PoolRepository,
    title: str,
    fixtures: Sequence[Fixture],
    description: str = "",
    deadline: Optional[datetime] = None,
    created_by: Optional[str] = None,
    now: Optional[datetime] = None,
    max_fixtures: int = MAX_FIXTURES,
) -> Pool:
    """
    Create a pool with a fixed fixture list.

    The deadline defaults to DEADLINE_LEAD_MINUTES before the earliest kickoff
    and may never fall after it.
    """
    now = now or utcnow()
    title = title.strip()
    description = (description or "").strip()

    if not title:
        raise InvalidPoolError("Title is required")
    if len(description) > MAX_DESCRIPTION_CHARS:
        raise InvalidPoolError(f"Description is limited to {MAX_DESCRIPTION_CHARS} characters")
    if len(fixtures) != max_fixtures:
        raise InvalidPoolError(f"A pool needs exactly {max_fixtures} fixtures, got {len(fixtures)}")

    match_ids = [f.match_id for f in fixtures]
    if len(set(match_ids)) != len(match_ids):
        raise InvalidPoolError("Fixtures must be distinct matches")

    first_kickoff = min(as_utc(f.match_date) for f in fixtures)
    if deadline is None:
        deadline = first_kickoff - timedelta(minutes=DEADLINE_LEAD_MINUTES)
    deadline = as_utc(deadline)

    if deadline > first_kickoff:
        raise InvalidPoolError("Deadline must be before the first kickoff")
    if deadline <= now:
        raise InvalidPoolError("Deadline is already in the past")

    pool = Pool(
        title=title,
        description=description,
        deadline=deadline,
        status=POOL_OPEN,
        created_by=created_by,
        created_at=now,
    )
    pool = pools.create(pool, fixtures)
    logger.info("Created pool %s '%s' with %d fixtures", pool.id, pool.title, len(fixtures))
    return pool


def set_fixture_lock(
    pools: PoolRepository,
    pool_id: int,
    match_id: int,
    locked: bool,
    now: Optional[datetime] = None,
) -> Fixture:
    """Lock or unlock a fixture against automated result sync."""
    pools.get(pool_id)
    fixture = pools.get_fixture(pool_id, match_id)
    fixture.is_locked = locked
    fixture.locked_at = (now or utcnow()) if locked else None
    pools.save_fixtures([fixture])
    return fixture


def record_manual_result(
    pools: PoolRepository,
    pool_id: int,
    match_id: int,
    home: int,
    away: int,
    status: Optional[str] = None,
) -> Fixture:
    """
    Store an operator-entered score on a fixture.

    Locked fixtures accept manual scores; the outcome is derived at settlement.
    """
    pools.get(pool_id)
    home_goals = parse_score(home)
    away_goals = parse_score(away)
    if home_goals is None or away_goals is None:
        raise ValueError("Scores must be non-negative integers")

    fixture = pools.get_fixture(pool_id, match_id)
    fixture.result_home = home_goals
    fixture.result_away = away_goals
    if normalize_status(status):
        fixture.status = normalize_status(status)
    pools.save_fixtures([fixture])
    logger.info("Manual result for pool %s match %s: %s-%s", pool_id, match_id, home_goals, away_goals)
    return fixture


def pool_summary(
    pools: PoolRepository,
    entries: EntryRepository,
    pool: Pool,
    now: Optional[datetime] = None,
) -> dict:
    fixtures = pools.get_fixtures(pool.id)
    return {
        "entries": entries.count(pool.id),
        "fixtures_total": len(fixtures),
        "fixtures_with_result": sum(1 for f in fixtures if f.has_result),
        "fixtures_with_outcome": sum(1 for f in fixtures if f.outcome is not None),
        "accepting_entries": accepts_entries(pool, now),
    }
