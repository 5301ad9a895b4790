from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, create_engine
from sqlmodel.pool import StaticPool

from quiniela.database import create_db_and_tables, enable_sqlite_foreign_keys, get_session
from quiniela.entries import make_entry_id
from quiniela.main import app
from quiniela.models import Entry, Fixture, Pool
from quiniela.models.pool import POOL_OPEN
from quiniela.repositories import EntryRepository, PoolRepository

NOW = datetime(2025, 11, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(name="engine")
def engine_fixture():
    engine = enable_sqlite_foreign_keys(
        create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    )
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def pools(session):
    return PoolRepository(session)


@pytest.fixture
def entries(session):
    return EntryRepository(session)


@pytest.fixture
def make_pool(pools):
    """Create a pool directly through the repository (any fixture count)."""

    def _make(match_ids=(101, 102, 103), deadline=None, status=POOL_OPEN, title="Jornada 10"):
        pool = Pool(
            title=title,
            deadline=deadline or NOW + timedelta(days=1),
            status=status,
            created_at=NOW,
        )
        fixtures = [
            Fixture(
                match_id=match_id,
                home_team=f"Home {match_id}",
                away_team=f"Away {match_id}",
                match_date=NOW + timedelta(days=2),
            )
            for match_id in match_ids
        ]
        return pools.create(pool, fixtures)

    return _make


@pytest.fixture
def make_entry(entries):
    """Insert an entry as if it had been submitted before the deadline."""

    def _make(pool, user_id, predictions, submitted_at=NOW):
        entry = Entry(
            id=make_entry_id(user_id, pool.id),
            user_id=user_id,
            user_name=user_id.title(),
            pool_id=pool.id,
            pool_title=pool.title,
            predictions={str(k): v for k, v in predictions.items()},
            submitted_at=submitted_at,
        )
        return entries.add(entry)

    return _make
