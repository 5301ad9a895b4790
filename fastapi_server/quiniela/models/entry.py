"""
Entries - One user's predictions for one pool.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

ENTRY_ACTIVE = "active"
ENTRY_FINALIZED = "finalized"


class Entry(SQLModel, table=True):
    __tablename__ = "entries"

    id: str = Field(primary_key=True)  # "{user_id}_{pool_id}"
    user_id: str = Field(index=True)
    user_name: str = Field(max_length=50)
    pool_id: int = Field(foreign_key="pools.id", index=True)
    pool_title: str = ""
    predictions: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))  # {match_id: outcome}
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: str = Field(default=ENTRY_ACTIVE, index=True)
    points: int = 0
    calculated_at: Optional[datetime] = None
