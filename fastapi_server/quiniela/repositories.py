"""
Pool and entry stores backed by a SQLModel session.

The settlement engine only talks to these two classes, so any object with the
same methods (e.g. a test double) can stand in for them.
"""
import logging
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import bindparam, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import FlushError
from sqlmodel import Session, func, select

from quiniela.errors import (
    DuplicateEntryError,
    FixtureNotFoundError,
    PoolNotFoundError,
    SettlementInProgressError,
)
from quiniela.models.entry import ENTRY_FINALIZED, Entry
from quiniela.models.fixture import Fixture
from quiniela.models.pool import POOL_CLOSED, POOL_OPEN, POOL_SETTLING, Pool

logger = logging.getLogger(__name__)


class PoolRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, pool_id: int) -> Pool:
        pool = self.session.get(Pool, pool_id)
        if pool is None:
            raise PoolNotFoundError(pool_id)
        return pool

    def list_pools(self) -> list[Pool]:
        return list(self.session.exec(select(Pool).order_by(Pool.created_at.desc())).all())

    def create(self, pool: Pool, fixtures: Sequence[Fixture]) -> Pool:
        self.session.add(pool)
        self.session.flush()  # assigns pool.id
        for position, fixture in enumerate(fixtures):
            fixture.pool_id = pool.id
            fixture.position = position
            self.session.add(fixture)
        self.session.commit()
        self.session.refresh(pool)
        return pool

    def get_fixtures(self, pool_id: int) -> list[Fixture]:
        return list(
            self.session.exec(
                select(Fixture).where(Fixture.pool_id == pool_id).order_by(Fixture.position)
            ).all()
        )

    def get_fixture(self, pool_id: int, match_id: int) -> Fixture:
        fixture = self.session.exec(
            select(Fixture)
            .where(Fixture.pool_id == pool_id)
            .where(Fixture.match_id == match_id)
        ).first()
        if fixture is None:
            raise FixtureNotFoundError(pool_id, match_id)
        return fixture

    def save_fixtures(self, fixtures: Sequence[Fixture]) -> None:
        """Commit fixture changes in one transaction."""
        try:
            self.session.add_all(fixtures)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        for fixture in fixtures:
            self.session.refresh(fixture)

    # --- Settlement status transitions ---

    def begin_settlement(self, pool_id: int, now: datetime, force: bool = False) -> str:
        """
        Move the pool to "settling" and return the status it had before.

        The conditional UPDATE is the mutual-exclusion point: only one caller
        can win the transition out of a non-settling status.
        """
        pool = self.get(pool_id)
        previous = pool.status
        if previous == POOL_SETTLING:
            if not force:
                raise SettlementInProgressError(pool_id)
            logger.warning("Forcing settlement of pool %s out of a stale settling state", pool_id)
            previous = POOL_CLOSED if pool.settled_at else POOL_OPEN

        statement = (
            update(Pool)
            .where(Pool.id == pool_id)
            .where(Pool.status == pool.status)
            .values(status=POOL_SETTLING, settlement_started_at=now)
        )
        result = self.session.connection().execute(statement)
        if result.rowcount != 1:
            self.session.rollback()
            raise SettlementInProgressError(pool_id)
        self.session.commit()
        return previous

    def finish_settlement(self, pool_id: int, now: datetime) -> None:
        pool = self.get(pool_id)
        pool.status = POOL_CLOSED
        pool.settled_at = now
        self.session.add(pool)
        self.session.commit()

    def release_settlement(self, pool_id: int, status: str) -> None:
        """Return a pool to `status` after a failed run so it can be retried."""
        self.session.rollback()
        pool = self.get(pool_id)
        pool.status = status
        self.session.add(pool)
        self.session.commit()


class EntryRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, entry_id: str) -> Optional[Entry]:
        return self.session.get(Entry, entry_id)

    def add(self, entry: Entry) -> Entry:
        """Insert a new entry. The deterministic id makes a second insert fail."""
        self.session.add(entry)
        try:
            self.session.commit()
        except (IntegrityError, FlushError):
            self.session.rollback()
            raise DuplicateEntryError(entry.id) from None
        self.session.refresh(entry)
        return entry

    def count(self, pool_id: int, after_id: Optional[str] = None) -> int:
        statement = select(func.count()).select_from(Entry).where(Entry.pool_id == pool_id)
        if after_id is not None:
            statement = statement.where(Entry.id > after_id)
        return self.session.exec(statement).one()

    def fetch_page(self, pool_id: int, after_id: Optional[str], limit: int) -> list[Entry]:
        """Keyset page of a pool's entries ordered by id."""
        statement = select(Entry).where(Entry.pool_id == pool_id)
        if after_id is not None:
            statement = statement.where(Entry.id > after_id)
        statement = statement.order_by(Entry.id).limit(limit)
        return list(self.session.exec(statement).all())

    def finalize_batch(self, scores: Sequence[tuple[str, int]], calculated_at: datetime) -> None:
        """
        Write points and finalized status for a batch of entries atomically.

        Points are set, not incremented, so repeating a batch is harmless.
        """
        if not scores:
            return
        statement = (
            update(Entry)
            .where(Entry.id == bindparam("b_id"))
            .values(
                points=bindparam("b_points"),
                status=ENTRY_FINALIZED,
                calculated_at=calculated_at,
            )
        )
        try:
            self.session.connection().execute(
                statement,
                [{"b_id": entry_id, "b_points": points} for entry_id, points in scores],
            )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def list_for_pool(self, pool_id: int, limit: Optional[int] = None, offset: int = 0) -> list[Entry]:
        statement = (
            select(Entry)
            .where(Entry.pool_id == pool_id)
            .order_by(Entry.submitted_at, Entry.id)
            .offset(offset)
            .limit(limit)
        )
        return list(self.session.exec(statement).all())

    def list_for_user(self, user_id: str) -> list[Entry]:
        return list(
            self.session.exec(
                select(Entry)
                .where(Entry.user_id == user_id)
                .order_by(Entry.submitted_at.desc())
            ).all()
        )
