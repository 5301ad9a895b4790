from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from quiniela.errors import FixtureNotFoundError, InvalidPoolError
from quiniela.models import Fixture
from quiniela.models.pool import POOL_CLOSED, POOL_OPEN
from quiniela.pools import (
    accepts_entries,
    create_pool,
    pool_summary,
    record_manual_result,
    set_fixture_lock,
)
from quiniela.utils import as_utc

from conftest import NOW


def _fixtures(*offsets_hours, start_id=1):
    return [
        Fixture(
            match_id=start_id + i,
            home_team=f"Local {i}",
            away_team=f"Visita {i}",
            match_date=NOW + timedelta(hours=hours),
        )
        for i, hours in enumerate(offsets_hours)
    ]


def test_create_pool_defaults_deadline_before_first_kickoff(pools):
    pool = create_pool(pools, "Jornada 12", _fixtures(48, 24, 30), now=NOW, max_fixtures=3)

    assert pool.status == POOL_OPEN
    assert as_utc(pool.deadline) == NOW + timedelta(hours=23)
    assert [f.match_id for f in pools.get_fixtures(pool.id)] == [1, 2, 3]
    assert [f.position for f in pools.get_fixtures(pool.id)] == [0, 1, 2]


def test_create_pool_with_explicit_deadline(pools):
    deadline = NOW + timedelta(hours=2)
    pool = create_pool(pools, "  Clásico  ", _fixtures(24, 24, 24), deadline=deadline, now=NOW, max_fixtures=3)

    assert pool.title == "Clásico"
    assert as_utc(pool.deadline) == deadline


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"fixtures": _fixtures(24, 24)}, "exactly 3"),
        ({"deadline": NOW + timedelta(hours=25)}, "before the first kickoff"),
        ({"deadline": NOW - timedelta(minutes=5)}, "past"),
        ({"description": "x" * 201}, "200"),
        ({"title": "   "}, "Title"),
    ],
)
def test_create_pool_validation(pools, kwargs, message):
    params = {"title": "Jornada", "fixtures": _fixtures(24, 24, 24), "now": NOW, "max_fixtures": 3}
    params.update(kwargs)
    with pytest.raises(InvalidPoolError, match=message):
        create_pool(pools, **params)


def test_create_pool_rejects_repeated_matches(pools):
    fixtures = _fixtures(24, 24) + _fixtures(30)
    with pytest.raises(InvalidPoolError, match="distinct"):
        create_pool(pools, "Jornada", fixtures, now=NOW, max_fixtures=3)


def test_lock_and_unlock_fixture(pools, make_pool):
    pool = make_pool()

    fixture = set_fixture_lock(pools, pool.id, 102, True, now=NOW)
    assert fixture.is_locked
    assert as_utc(fixture.locked_at) == NOW

    fixture = set_fixture_lock(pools, pool.id, 102, False)
    assert not fixture.is_locked
    assert fixture.locked_at is None


def test_lock_unknown_fixture(pools, make_pool):
    pool = make_pool()
    with pytest.raises(FixtureNotFoundError):
        set_fixture_lock(pools, pool.id, 999, True)


def test_manual_result_is_accepted_on_locked_fixture(pools, make_pool):
    pool = make_pool()
    set_fixture_lock(pools, pool.id, 101, True)

    fixture = record_manual_result(pools, pool.id, 101, "3", 0, status="ft")

    assert (fixture.result_home, fixture.result_away) == (3, 0)
    assert fixture.status == "FT"
    assert fixture.outcome is None  # derived at settlement


def test_manual_result_rejects_negative_goals(pools, make_pool):
    pool = make_pool()
    with pytest.raises(ValueError):
        record_manual_result(pools, pool.id, 101, -1, 0)


def test_accepts_entries(make_pool):
    pool = make_pool(deadline=NOW + timedelta(minutes=1))
    assert accepts_entries(pool, NOW)
    assert not accepts_entries(pool, NOW + timedelta(minutes=1))

    closed = make_pool(status=POOL_CLOSED)
    assert not accepts_entries(closed, NOW)


def test_pool_summary(pools, entries, make_pool, make_entry):
    pool = make_pool()
    make_entry(pool, "ana", {101: "HOME", 102: "DRAW", 103: "AWAY"})
    record_manual_result(pools, pool.id, 101, 1, 0)

    summary = pool_summary(pools, entries, pool, now=NOW)

    assert summary == {
        "entries": 1,
        "fixtures_total": 3,
        "fixtures_with_result": 1,
        "fixtures_with_outcome": 0,
        "accepting_entries": True,
    }


def test_pool_touched_by_settlement_no_longer_accepts_entries(make_pool):
    pool = make_pool()
    pool.settlement_started_at = NOW

    assert pool.status == POOL_OPEN
    assert not accepts_entries(pool, NOW)


def test_fixture_must_belong_to_an_existing_pool(session):
    session.add(Fixture(pool_id=999, match_id=1, home_team="A", away_team="B", match_date=NOW))

    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()
