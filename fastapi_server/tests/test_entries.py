from datetime import timedelta

import pytest

from quiniela.entries import make_entry_id, submit_entry
from quiniela.errors import (
    DuplicateEntryError,
    IncompletePredictionsError,
    PoolNotFoundError,
    SubmissionClosedError,
)
from quiniela.models.entry import ENTRY_ACTIVE
from quiniela.models.pool import POOL_CLOSED

from conftest import NOW

PICKS = {101: "HOME", 102: "DRAW", 103: "AWAY"}


def test_submit_entry(pools, entries, make_pool):
    pool = make_pool()

    entry = submit_entry(pools, entries, pool.id, "user-1", "Ana", PICKS, now=NOW)

    assert entry.id == f"user-1_{pool.id}"
    assert entry.pool_title == pool.title
    assert entry.predictions == {"101": "HOME", "102": "DRAW", "103": "AWAY"}
    assert entry.status == ENTRY_ACTIVE
    assert entry.points == 0


def test_pick_notation_is_normalised(pools, entries, make_pool):
    pool = make_pool()

    entry = submit_entry(pools, entries, pool.id, "u", "Ana", {"101": "1", "102": "x", "103": "2"}, now=NOW)

    assert entry.predictions == {"101": "HOME", "102": "DRAW", "103": "AWAY"}


def test_entry_id_is_deterministic():
    assert make_entry_id("abc", 7) == "abc_7"


def test_second_entry_for_same_user_is_rejected(pools, entries, make_pool):
    pool = make_pool()
    submit_entry(pools, entries, pool.id, "u", "Ana", PICKS, now=NOW)

    with pytest.raises(DuplicateEntryError):
        submit_entry(pools, entries, pool.id, "u", "Ana", {101: "AWAY", 102: "AWAY", 103: "AWAY"}, now=NOW)

    assert entries.count(pool.id) == 1
    assert entries.get(make_entry_id("u", pool.id)).predictions["101"] == "HOME"


def test_same_user_can_enter_different_pools(pools, entries, make_pool):
    first = make_pool()
    second = make_pool(title="Jornada 11")

    submit_entry(pools, entries, first.id, "u", "Ana", PICKS, now=NOW)
    submit_entry(pools, entries, second.id, "u", "Ana", PICKS, now=NOW)

    assert len(entries.list_for_user("u")) == 2


@pytest.mark.parametrize("offset", [timedelta(0), timedelta(minutes=1)])
def test_submission_at_or_after_deadline_is_rejected(pools, entries, make_pool, offset):
    pool = make_pool(deadline=NOW)

    with pytest.raises(SubmissionClosedError):
        submit_entry(pools, entries, pool.id, "u", "Ana", PICKS, now=NOW + offset)

    assert entries.count(pool.id) == 0


def test_settled_pool_rejects_entries(pools, entries, make_pool):
    pool = make_pool(status=POOL_CLOSED)

    with pytest.raises(SubmissionClosedError):
        submit_entry(pools, entries, pool.id, "u", "Ana", PICKS, now=NOW)


def test_partial_predictions_are_rejected(pools, entries, make_pool):
    pool = make_pool()

    with pytest.raises(IncompletePredictionsError) as exc_info:
        submit_entry(pools, entries, pool.id, "u", "Ana", {101: "HOME", 102: "DRAW"}, now=NOW)

    assert exc_info.value.missing == [103]
    assert entries.count(pool.id) == 0


def test_unknown_fixture_is_rejected(pools, entries, make_pool):
    pool = make_pool()

    with pytest.raises(IncompletePredictionsError) as exc_info:
        submit_entry(pools, entries, pool.id, "u", "Ana", {**PICKS, 999: "HOME"}, now=NOW)

    assert exc_info.value.unknown == [999]


def test_invalid_pick_is_rejected(pools, entries, make_pool):
    pool = make_pool()

    with pytest.raises(ValueError):
        submit_entry(pools, entries, pool.id, "u", "Ana", {101: "HOME", 102: "DRAW", 103: "WIN"}, now=NOW)


def test_unknown_pool(pools, entries):
    with pytest.raises(PoolNotFoundError):
        submit_entry(pools, entries, 42, "u", "Ana", PICKS, now=NOW)
