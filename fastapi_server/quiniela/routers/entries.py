"""
Entries router - submit predictions, view history and leaderboards.

There are no accounts here: the caller passes the user id explicitly.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlmodel import Session

from quiniela.database import get_session
from quiniela.entries import submit_entry
from quiniela.errors import (
    DuplicateEntryError,
    IncompletePredictionsError,
    PoolNotFoundError,
    SubmissionClosedError,
)
from quiniela.outcome import Outcome
from quiniela.repositories import EntryRepository, PoolRepository
from quiniela.scoring import build_leaderboard

router = APIRouter(prefix="/api", tags=["entries"])


# --- Request/Response Models ---

class SubmitEntryRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=128)
    user_name: str = Field(min_length=1, max_length=50, description="Display name")
    predictions: dict[int, Outcome] = Field(description="Pick per match id: HOME/DRAW/AWAY or 1/X/2")

    @field_validator("predictions", mode="before")
    @classmethod
    def parse_picks(cls, value):
        if isinstance(value, dict):
            return {k: Outcome.parse(v) for k, v in value.items()}
        return value


class EntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    user_name: str
    pool_id: int
    pool_title: str
    predictions: dict[str, str]
    submitted_at: datetime
    status: str
    points: int
    calculated_at: Optional[datetime]


class LeaderboardRow(BaseModel):
    position: int
    entry_id: str
    user_id: str
    user_name: str
    points: int
    status: str
    submitted_at: datetime


class LeaderboardResponse(BaseModel):
    pool_id: int
    title: str
    status: str
    leaderboard: list[LeaderboardRow]


# --- Endpoints ---

@router.post("/pools/{pool_id}/entries", response_model=EntryResponse)
def create_entry(
    pool_id: int,
    request: SubmitEntryRequest,
    session: Session = Depends(get_session),
):
    """
    Submit a user's predictions for a pool.

    Every fixture must be picked, the deadline must not have passed, and a
    user can only submit once per pool.
    """
    try:
        return submit_entry(
            PoolRepository(session),
            EntryRepository(session),
            pool_id,
            user_id=request.user_id.strip(),
            user_name=request.user_name,
            predictions=request.predictions,
        )
    except PoolNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SubmissionClosedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except DuplicateEntryError:
        raise HTTPException(status_code=409, detail="You already have an entry in this pool")
    except IncompletePredictionsError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/pools/{pool_id}/entries", response_model=list[EntryResponse])
def list_pool_entries(
    pool_id: int,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    session: Session = Depends(get_session),
):
    """List a pool's entries in submission order."""
    try:
        PoolRepository(session).get(pool_id)
    except PoolNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return EntryRepository(session).list_for_pool(pool_id, limit=limit, offset=offset)


@router.get("/pools/{pool_id}/leaderboard", response_model=LeaderboardResponse)
def get_leaderboard(
    pool_id: int,
    limit: int = Query(default=100, ge=1, le=1000, description="Max rows to return"),
    session: Session = Depends(get_session),
):
    """Entries ranked by points, earliest submission first on ties."""
    try:
        pool = PoolRepository(session).get(pool_id)
    except PoolNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    rows = build_leaderboard(EntryRepository(session).list_for_pool(pool_id))
    return LeaderboardResponse(
        pool_id=pool.id,
        title=pool.title,
        status=pool.status,
        leaderboard=[LeaderboardRow(**row) for row in rows[:limit]],
    )


@router.get("/entries/{entry_id}", response_model=EntryResponse)
def get_entry(entry_id: str, session: Session = Depends(get_session)):
    entry = EntryRepository(session).get(entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Entry not found")
    return entry


@router.get("/users/{user_id}/entries", response_model=list[EntryResponse])
def get_user_history(user_id: str, session: Session = Depends(get_session)):
    """A user's entries across pools, newest first."""
    return EntryRepository(session).list_for_user(user_id)
