"""
Automated result sync from API-Football into a pool's fixtures.

Locked fixtures are never touched: the lock is the operator's veto over
automated overwrites of a manually entered score.
"""
import logging

from pydantic import BaseModel

from quiniela.errors import FootballApiError
from quiniela.outcome import is_finished, normalize_status, parse_score
from quiniela.repositories import PoolRepository

logger = logging.getLogger(__name__)


class SyncReport(BaseModel):
    pool_id: int
    results_updated: int = 0
    status_only: int = 0
    skipped_locked: int = 0
    failed: list[int] = []


def sync_pool_results(pools: PoolRepository, pool_id: int, client) -> SyncReport:
    """
    Pull status and final score for every unlocked fixture of a pool.

    `client` needs a `get_fixture(match_id)` method returning an API-Football
    fixture record (or None). A fixture that fails to fetch is logged and
    reported; the others are still updated.
    """
    pools.get(pool_id)
    report = SyncReport(pool_id=pool_id)
    changed = []

    for fixture in pools.get_fixtures(pool_id):
        if fixture.is_locked:
            report.skipped_locked += 1
            continue

        try:
            match = client.get_fixture(fixture.match_id)
        except FootballApiError as e:
            logger.error("Error fetching match %s: %s", fixture.match_id, e)
            report.failed.append(fixture.match_id)
            continue

        if not match:
            logger.warning("Match %s not found on API-Football", fixture.match_id)
            report.failed.append(fixture.match_id)
            continue

        status = normalize_status(((match.get("fixture") or {}).get("status") or {}).get("short"))
        if status:
            fixture.status = status

        goals = match.get("goals") or {}
        home = parse_score(goals.get("home"))
        away = parse_score(goals.get("away"))
        if is_finished(status) and home is not None and away is not None:
            fixture.result_home = home
            fixture.result_away = away
            report.results_updated += 1
        else:
            report.status_only += 1
        changed.append(fixture)

    pools.save_fixtures(changed)
    logger.info(
        "Sync for pool %s: %d results, %d status only, %d locked, %d failed",
        pool_id, report.results_updated, report.status_only,
        report.skipped_locked, len(report.failed),
    )
    return report
