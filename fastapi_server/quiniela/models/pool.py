"""
Pools - Time-boxed prediction contests over a fixed list of fixtures.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel

POOL_OPEN = "open"
POOL_SETTLING = "settling"
POOL_CLOSED = "closed"


class Pool(SQLModel, table=True):
    __tablename__ = "pools"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=100)
    description: str = Field(default="", max_length=200)
    deadline: datetime = Field(index=True)  # No entries accepted at or after this instant
    status: str = Field(default=POOL_OPEN, index=True)  # open -> settling -> closed
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    settlement_started_at: Optional[datetime] = None
    settled_at: Optional[datetime] = None
