"""
Domain errors raised by the pool, entry and settlement services.

Routers translate these into HTTP responses; the CLI prints them.
"""
from typing import Optional


class QuinielaError(Exception):
    """Base class for all quiniela domain errors."""


class PoolNotFoundError(QuinielaError, LookupError):
    def __init__(self, pool_id: int):
        super().__init__(f"Pool {pool_id} not found")
        self.pool_id = pool_id


class FixtureNotFoundError(QuinielaError, LookupError):
    def __init__(self, pool_id: int, match_id: int):
        super().__init__(f"Fixture {match_id} not found in pool {pool_id}")
        self.pool_id = pool_id
        self.match_id = match_id


class MalformedDocumentError(QuinielaError, ValueError):
    """A stored record does not have the shape the scoring code expects."""


class InvalidPoolError(QuinielaError, ValueError):
    """Pool definition rejected at creation time."""


class SubmissionClosedError(QuinielaError):
    """The pool no longer accepts entries (deadline passed or settled)."""


class DuplicateEntryError(QuinielaError):
    def __init__(self, entry_id: str):
        super().__init__(f"Entry {entry_id} already exists")
        self.entry_id = entry_id


class IncompletePredictionsError(QuinielaError, ValueError):
    def __init__(self, missing: list[int], unknown: Optional[list[int]] = None):
        unknown = unknown or []
        parts = []
        if missing:
            parts.append(f"missing picks for fixtures {missing}")
        if unknown:
            parts.append(f"unknown fixtures {unknown}")
        super().__init__("Incomplete predictions: " + "; ".join(parts))
        self.missing = missing
        self.unknown = unknown


class SettlementInProgressError(QuinielaError):
    def __init__(self, pool_id: int):
        super().__init__(f"Settlement already in progress for pool {pool_id}")
        self.pool_id = pool_id


class SettlementBatchError(QuinielaError):
    """
    A write batch failed after retries.

    Batches committed before the failure stay committed. `last_committed_entry_id`
    can be passed back as `resume_after` to process only the remainder.
    """

    def __init__(
        self,
        pool_id: int,
        entries_processed: int,
        last_committed_entry_id: Optional[str],
        cause: BaseException,
    ):
        super().__init__(
            f"Settlement of pool {pool_id} failed after {entries_processed} entries: {cause}"
        )
        self.pool_id = pool_id
        self.entries_processed = entries_processed
        self.last_committed_entry_id = last_committed_entry_id
        self.cause = cause


class FootballApiError(QuinielaError):
    """Transport or configuration failure talking to API-Football."""
