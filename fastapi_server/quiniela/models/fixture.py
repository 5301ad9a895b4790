"""
Fixtures - Real-world matches predicted in a pool, with their official result.
"""
from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel, UniqueConstraint


class Fixture(SQLModel, table=True):
    __tablename__ = "fixtures"
    __table_args__ = (
        UniqueConstraint("pool_id", "match_id", name="uq_fixture_pool_match"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    pool_id: int = Field(foreign_key="pools.id", index=True)
    match_id: int = Field(index=True)  # API-Football fixture id
    position: int = 0

    league_id: Optional[int] = None
    league_name: Optional[str] = None
    round: Optional[str] = None
    home_team: str
    away_team: str
    home_logo: Optional[str] = None
    away_logo: Optional[str] = None
    match_date: datetime

    # Official result
    status: Optional[str] = None  # API-Football short code: "NS", "FT", "PST", ...
    result_home: Optional[int] = None
    result_away: Optional[int] = None
    outcome: Optional[str] = None  # "HOME" | "DRAW" | "AWAY", derived from result + status
    is_valid: bool = False
    calculated_at: Optional[datetime] = None

    # Operator lock against automated result sync
    is_locked: bool = False
    locked_at: Optional[datetime] = None

    @property
    def has_result(self) -> bool:
        return self.result_home is not None and self.result_away is not None
