"""
Operator commands: create tables, sync results and settle a pool.

    quiniela init-db
    quiniela sync 12
    quiniela settle 12 --batch-size 200
    quiniela settle 12 --resume-after user42_12
"""
import argparse
import sys
from typing import Optional, Sequence

from sqlmodel import Session

from quiniela import database
from quiniela.config import SETTLEMENT_BATCH_SIZE
from quiniela.errors import (
    FootballApiError,
    PoolNotFoundError,
    SettlementBatchError,
    SettlementInProgressError,
)
from quiniela.football_api import FootballApiClient
from quiniela.logging_config import setup_logging
from quiniela.repositories import EntryRepository, PoolRepository
from quiniela.settlement import settle_pool
from quiniela.sync import sync_pool_results


def _print_progress(processed: int, total: int) -> None:
    print(f"Processed {processed}/{total} entries...")


def cmd_init_db(args) -> int:
    print("Creating database tables...")
    database.create_db_and_tables()
    print("Done!")
    return 0


def cmd_sync(args) -> int:
    try:
        client = FootballApiClient()
    except FootballApiError as e:
        print(f"Error: {e}")
        return 1

    with Session(database.engine) as session:
        try:
            report = sync_pool_results(PoolRepository(session), args.pool_id, client)
        except PoolNotFoundError as e:
            print(f"Error: {e}")
            return 1

    print(f"Sync complete. {report.results_updated} results updated.")
    if report.skipped_locked:
        print(f"{report.skipped_locked} fixtures were locked and skipped.")
    if report.failed:
        print(f"Could not fetch matches: {report.failed}")
    return 0


def cmd_settle(args) -> int:
    with Session(database.engine) as session:
        try:
            report = settle_pool(
                args.pool_id,
                PoolRepository(session),
                EntryRepository(session),
                batch_size=args.batch_size,
                resume_after=args.resume_after,
                force=args.force,
                on_progress=_print_progress,
            )
        except (PoolNotFoundError, SettlementInProgressError) as e:
            print(f"Error: {e}")
            return 1
        except SettlementBatchError as e:
            print(f"Settlement failed: {e.cause}")
            print(f"{e.entries_processed} entries were finalized before the failure.")
            if e.last_committed_entry_id:
                print(f"Retry with: --resume-after {e.last_committed_entry_id}")
            return 1

    print(
        f"Pool {report.pool_id} settled: {report.fixtures_with_outcome}/{report.fixtures_total} "
        f"fixtures with an outcome, {report.entries_processed} entries scored."
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="quiniela", description="Quiniela pool operations")
    sub = parser.add_subparsers(dest="command", required=True)

    init_db = sub.add_parser("init-db", help="Create database tables")
    init_db.set_defaults(func=cmd_init_db)

    sync = sub.add_parser("sync", help="Sync official results from API-Football")
    sync.add_argument("pool_id", type=int)
    sync.set_defaults(func=cmd_sync)

    settle = sub.add_parser("settle", help="Store outcomes and score every entry of a pool")
    settle.add_argument("pool_id", type=int)
    settle.add_argument("--batch-size", type=int, default=SETTLEMENT_BATCH_SIZE)
    settle.add_argument("--resume-after", default=None, help="Entry id reported by a failed run")
    settle.add_argument("--force", action="store_true", help="Take over a stale settling run")
    settle.set_defaults(func=cmd_settle)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    setup_logging()
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
