"""
Pools router - API endpoints for creating pools, entering results and settling.

Settlement is an explicit operator action: POST /api/pools/{id}/settle.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from quiniela.database import get_session
from quiniela.errors import (
    FixtureNotFoundError,
    FootballApiError,
    InvalidPoolError,
    PoolNotFoundError,
    SettlementBatchError,
    SettlementInProgressError,
)
from quiniela.football_api import FootballApiClient
from quiniela.models.fixture import Fixture
from quiniela.pools import create_pool, pool_summary, record_manual_result, set_fixture_lock
from quiniela.repositories import EntryRepository, PoolRepository
from quiniela.settlement import SettlementReport, settle_pool
from quiniela.sync import SyncReport, sync_pool_results

router = APIRouter(prefix="/api/pools", tags=["pools"])


# --- Request/Response Models ---

class FixtureIn(BaseModel):
    match_id: int = Field(description="API-Football fixture id")
    home_team: str = Field(min_length=1, max_length=100)
    away_team: str = Field(min_length=1, max_length=100)
    home_logo: Optional[str] = None
    away_logo: Optional[str] = None
    match_date: datetime
    league_id: Optional[int] = None
    league_name: Optional[str] = None
    round: Optional[str] = None


class CreatePoolRequest(BaseModel):
    title: str = Field(min_length=1, max_length=100, description="Pool title")
    description: str = Field(default="", max_length=200)
    deadline: Optional[datetime] = Field(
        default=None, description="Defaults to one hour before the first kickoff"
    )
    created_by: Optional[str] = None
    fixtures: list[FixtureIn]


class FixtureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    match_id: int
    position: int
    home_team: str
    away_team: str
    home_logo: Optional[str]
    away_logo: Optional[str]
    match_date: datetime
    league_name: Optional[str]
    round: Optional[str]
    status: Optional[str]
    result_home: Optional[int]
    result_away: Optional[int]
    outcome: Optional[str]
    is_valid: bool
    is_locked: bool
    locked_at: Optional[datetime]
    calculated_at: Optional[datetime]


class PoolResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    deadline: datetime
    status: str
    created_by: Optional[str]
    created_at: datetime
    settled_at: Optional[datetime]


class PoolSummary(BaseModel):
    entries: int
    fixtures_total: int
    fixtures_with_result: int
    fixtures_with_outcome: int
    accepting_entries: bool


class PoolDetailResponse(PoolResponse):
    fixtures: list[FixtureResponse]
    summary: PoolSummary


class LockRequest(BaseModel):
    locked: bool


class ResultRequest(BaseModel):
    home: int = Field(ge=0, description="Home goals")
    away: int = Field(ge=0, description="Away goals")
    status: Optional[str] = Field(default=None, description="Match status short code, e.g. FT")


# --- Dependencies ---

def get_football_client() -> FootballApiClient:
    try:
        return FootballApiClient()
    except FootballApiError as e:
        raise HTTPException(status_code=502, detail=str(e))


def _detail(pools: PoolRepository, entries: EntryRepository, pool_id: int) -> PoolDetailResponse:
    pool = pools.get(pool_id)
    base = PoolResponse.model_validate(pool)
    return PoolDetailResponse(
        **base.model_dump(),
        fixtures=[FixtureResponse.model_validate(f) for f in pools.get_fixtures(pool_id)],
        summary=PoolSummary(**pool_summary(pools, entries, pool)),
    )


# --- Endpoints ---

@router.post("", response_model=PoolDetailResponse)
def create_pool_endpoint(
    request: CreatePoolRequest,
    session: Session = Depends(get_session),
):
    """
    Create a pool with its fixed list of fixtures.

    The pool must have exactly MAX_FIXTURES distinct matches.
    """
    pools = PoolRepository(session)
    fixtures = [Fixture(**f.model_dump()) for f in request.fixtures]
    try:
        pool = create_pool(
            pools,
            title=request.title,
            description=request.description,
            fixtures=fixtures,
            deadline=request.deadline,
            created_by=request.created_by,
        )
    except InvalidPoolError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _detail(pools, EntryRepository(session), pool.id)


@router.get("", response_model=list[PoolResponse])
def list_pools(session: Session = Depends(get_session)):
    """List pools, newest first."""
    return PoolRepository(session).list_pools()


@router.get("/{pool_id}", response_model=PoolDetailResponse)
def get_pool(pool_id: int, session: Session = Depends(get_session)):
    """Get a pool with its fixtures and participation summary."""
    try:
        return _detail(PoolRepository(session), EntryRepository(session), pool_id)
    except PoolNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{pool_id}/fixtures/{match_id}/lock", response_model=FixtureResponse)
def lock_fixture(
    pool_id: int,
    match_id: int,
    request: LockRequest,
    session: Session = Depends(get_session),
):
    """Lock or unlock a fixture so automated sync leaves its result alone."""
    try:
        return set_fixture_lock(PoolRepository(session), pool_id, match_id, request.locked)
    except (PoolNotFoundError, FixtureNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{pool_id}/fixtures/{match_id}/result", response_model=FixtureResponse)
def enter_result(
    pool_id: int,
    match_id: int,
    request: ResultRequest,
    session: Session = Depends(get_session),
):
    """Manually enter a fixture's final score. Allowed on locked fixtures."""
    try:
        return record_manual_result(
            PoolRepository(session), pool_id, match_id, request.home, request.away, request.status
        )
    except (PoolNotFoundError, FixtureNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{pool_id}/sync", response_model=SyncReport)
def sync_results(
    pool_id: int,
    session: Session = Depends(get_session),
    client: FootballApiClient = Depends(get_football_client),
):
    """Pull statuses and final scores from API-Football, skipping locked fixtures."""
    try:
        return sync_pool_results(PoolRepository(session), pool_id, client)
    except PoolNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{pool_id}/settle", response_model=SettlementReport)
def settle(
    pool_id: int,
    force: bool = Query(default=False, description="Take over a stale settling run"),
    resume_after: Optional[str] = Query(default=None, description="Resume after this entry id"),
    session: Session = Depends(get_session),
):
    """
    Settle a pool: store fixture outcomes and score every entry.

    Safe to repeat. On failure the response says how many entries were
    finalized and which entry id to resume after.
    """
    try:
        return settle_pool(
            pool_id,
            PoolRepository(session),
            EntryRepository(session),
            resume_after=resume_after,
            force=force,
        )
    except PoolNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SettlementInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SettlementBatchError as e:
        raise HTTPException(
            status_code=500,
            detail={
                "message": str(e),
                "entries_processed": e.entries_processed,
                "resume_after": e.last_committed_entry_id,
            },
        )
