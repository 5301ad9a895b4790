"""
Pool settlement - turn official match results into entry points.

A run has two phases:

1. Fixture phase: derive each fixture's outcome from its candidate score and
   commit the fixtures. Nothing is scored until this commit has succeeded.
2. Entry phase: page through the pool's entries, score them against the
   committed outcomes and write each page as one all-or-nothing batch
   (points + finalized status + timestamp together).

Points are always *set*, never incremented, so a run can be repeated or
resumed after a failure without double counting. The pool sits in the
"settling" status for the duration of a run; a second concurrent run is
refused.
"""
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from pydantic import BaseModel

from quiniela.config import (
    SETTLEMENT_BATCH_SIZE,
    SETTLEMENT_MAX_RETRIES,
    SETTLEMENT_RETRY_DELAY,
)
from quiniela.errors import SettlementBatchError
from quiniela.models.fixture import Fixture
from quiniela.outcome import (
    DEFAULT_MANUAL_STATUS,
    Outcome,
    determine_outcome,
    normalize_status,
    parse_score,
)
from quiniela.repositories import EntryRepository, PoolRepository
from quiniela.scoring import parse_predictions, score_entry
from quiniela.utils import utcnow

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class CandidateScore:
    """A proposed final score, as entered by an operator or reported by a sync."""

    home: Any
    away: Any
    status: Optional[str] = None


CandidateInput = Union[CandidateScore, Mapping[str, Any]]


class SettlementReport(BaseModel):
    pool_id: int
    fixtures_total: int
    fixtures_with_outcome: int
    outcomes: dict[int, Optional[Outcome]]
    entries_total: int
    entries_processed: int
    batches_committed: int
    resumed_after: Optional[str] = None
    started_at: datetime
    finished_at: datetime


def _as_candidate(value: CandidateInput) -> CandidateScore:
    if isinstance(value, CandidateScore):
        return value
    return CandidateScore(home=value.get("home"), away=value.get("away"), status=value.get("status"))


def _candidate_for(
    fixture: Fixture, candidates: Optional[Mapping[int, CandidateInput]]
) -> Optional[CandidateScore]:
    """Caller-supplied candidate first, otherwise the score stored on the fixture."""
    if candidates and fixture.match_id in candidates:
        return _as_candidate(candidates[fixture.match_id])
    if fixture.has_result:
        return CandidateScore(fixture.result_home, fixture.result_away, fixture.status)
    return None


def apply_fixture_result(fixture: Fixture, candidate: CandidateScore, now: datetime) -> Optional[Outcome]:
    """
    Write result, outcome and validity onto a fixture.

    The lock flag is not consulted here: it only guards against automated sync,
    and a manually entered score must still be applied. The status used to
    derive the outcome is stored with it.
    """
    status = normalize_status(candidate.status) or fixture.status or DEFAULT_MANUAL_STATUS
    outcome = determine_outcome(candidate.home, candidate.away, status)
    fixture.status = status
    fixture.result_home = parse_score(candidate.home)
    fixture.result_away = parse_score(candidate.away)
    fixture.outcome = outcome.value if outcome else None
    fixture.is_valid = outcome is not None
    fixture.calculated_at = now
    return outcome


def settle_fixtures(
    pools: PoolRepository,
    pool_id: int,
    candidates: Optional[Mapping[int, CandidateInput]],
    now: datetime,
) -> dict[int, Optional[Outcome]]:
    """Phase 1: derive and commit fixture outcomes. Returns {match_id: outcome}."""
    fixtures = pools.get_fixtures(pool_id)
    outcomes: dict[int, Optional[Outcome]] = {}
    changed = []
    for fixture in fixtures:
        candidate = _candidate_for(fixture, candidates)
        if candidate is None:
            outcomes[fixture.match_id] = None
            if fixture.outcome is not None:
                # No score left to back the stored outcome
                fixture.outcome = None
                fixture.is_valid = False
                changed.append(fixture)
            continue
        outcomes[fixture.match_id] = apply_fixture_result(fixture, candidate, now)
        changed.append(fixture)

    pools.save_fixtures(changed)
    logger.info(
        "Pool %s: %d/%d fixtures have an official outcome",
        pool_id,
        sum(1 for o in outcomes.values() if o is not None),
        len(fixtures),
    )
    return outcomes


def _commit_batch(
    entries: EntryRepository,
    scores: Sequence[tuple[str, int]],
    calculated_at: datetime,
    max_retries: int,
    retry_delay: float,
) -> None:
    delay = retry_delay
    for attempt in range(1, max_retries + 2):
        try:
            entries.finalize_batch(scores, calculated_at)
            return
        except Exception as exc:
            if attempt > max_retries:
                raise
            logger.warning(
                "Batch commit failed (%s). Retrying in %ss (attempt %d/%d)",
                exc, delay, attempt, max_retries,
            )
            time.sleep(delay)
            delay = min(delay * 2, 30)


def settle_pool(
    pool_id: int,
    pools: PoolRepository,
    entries: EntryRepository,
    candidates: Optional[Mapping[int, CandidateInput]] = None,
    *,
    batch_size: int = SETTLEMENT_BATCH_SIZE,
    max_retries: int = SETTLEMENT_MAX_RETRIES,
    retry_delay: float = SETTLEMENT_RETRY_DELAY,
    resume_after: Optional[str] = None,
    force: bool = False,
    now: Optional[datetime] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> SettlementReport:
    """
    Settle a pool: persist fixture outcomes, then score and finalize every entry.

    Args:
        pool_id: Pool to settle.
        pools, entries: Stores for the two collections.
        candidates: Optional {match_id: CandidateScore | {"home", "away", "status"}}.
            Fixtures without a candidate use the score already stored on them.
        batch_size: Entries per read page and per write batch.
        max_retries: Extra attempts for a failing batch before giving up.
        retry_delay: Seconds before the first retry (doubles each time).
        resume_after: Entry id returned by a failed run; only entries after it
            are scored.
        force: Take over a pool left in "settling" by a crashed run.
        on_progress: Called with (processed, total) after every committed batch.

    Raises:
        PoolNotFoundError, SettlementInProgressError, SettlementBatchError
    """
    if batch_size < 1:
        raise ValueError("batch_size must be positive")

    started_at = now or utcnow()
    previous_status = pools.begin_settlement(pool_id, started_at, force=force)
    logger.info("Settling pool %s (previous status %s)", pool_id, previous_status)

    processed = 0
    batches = 0
    last_committed = resume_after
    try:
        outcomes = settle_fixtures(pools, pool_id, candidates, started_at)

        total = entries.count(pool_id, after_id=resume_after)
        if total == 0:
            logger.info("Pool %s has no entries to score", pool_id)

        while True:
            page = entries.fetch_page(pool_id, last_committed, batch_size)
            if not page:
                break

            try:
                scores = [
                    (entry.id, score_entry(parse_predictions(entry.predictions), outcomes))
                    for entry in page
                ]
                _commit_batch(entries, scores, started_at, max_retries, retry_delay)
            except Exception as exc:
                raise SettlementBatchError(pool_id, processed, last_committed, exc) from exc

            processed += len(scores)
            batches += 1
            last_committed = scores[-1][0]
            logger.info("Pool %s: processed %d/%d entries", pool_id, processed, total)
            if on_progress:
                on_progress(processed, total)

            if len(page) < batch_size:
                break
    except Exception:
        logger.exception("Settlement of pool %s failed after %d entries", pool_id, processed)
        pools.release_settlement(pool_id, previous_status)
        raise

    finished_at = utcnow()
    pools.finish_settlement(pool_id, finished_at)

    return SettlementReport(
        pool_id=pool_id,
        fixtures_total=len(outcomes),
        fixtures_with_outcome=sum(1 for o in outcomes.values() if o is not None),
        outcomes=outcomes,
        entries_total=total,
        entries_processed=processed,
        batches_committed=batches,
        resumed_after=resume_after,
        started_at=started_at,
        finished_at=finished_at,
    )
