import argparse
import json
import logging
import os
import sys
from datetime import timedelta

# Ensure project root is on sys.path when run directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from database.db_manager import DatabaseManager
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO

from services.recurrence_engine import RecurrenceEngine
from services.recurring_service import RecurringService

from utils.app_config import get_claim_ttl, get_db_path, get_log_level, load_config
from utils.constants import APP_NAME, UPCOMING_DAYS
from utils.date_helpers import format_date, parse_date, today
from utils.errors import RuleFetchError
from utils.log_setup import configure_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recurring-ledger",
        description=f"{APP_NAME}: process recurring transactions.",
    )
    parser.add_argument("--db", help="Path to the SQLite database file.")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ...).")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Materialize due recurring transactions.")
    run.add_argument("--as-of", help="Process rules due on or before this date (YYYY-MM-DD).")

    upcoming = sub.add_parser("upcoming", help="List upcoming occurrences.")
    upcoming.add_argument("--days", type=int, default=UPCOMING_DAYS)
    upcoming.add_argument("--owner", help="Only rules belonging to this owner.")
    return parser


def _json_default(value):
    return str(value)


def cmd_run(db: DatabaseManager, args, claim_ttl: int) -> int:
    as_of = None
    if args.as_of:
        as_of = parse_date(args.as_of)
        if as_of is None:
            logger.error("Invalid --as-of date: %s", args.as_of)
            return EXIT_FATAL

    engine = RecurrenceEngine(RecurringDAO(db, claim_ttl=claim_ttl), TransactionDAO(db))
    try:
        summary = engine.process_due_recurrences(as_of)
    except RuleFetchError as exc:
        print(json.dumps({"success": False, "error": str(exc)}))
        return EXIT_FATAL

    print(json.dumps(summary.to_dict(), indent=2))
    return EXIT_OK if summary.success else EXIT_PARTIAL


def cmd_upcoming(db: DatabaseManager, args) -> int:
    service = RecurringService(RecurringDAO(db))
    start = today()
    end = start + timedelta(days=args.days)
    items = service.project_for_period(start, end, owner_id=args.owner)
    print(json.dumps(
        {"from": format_date(start), "to": format_date(end), "occurrences": items},
        indent=2, default=_json_default,
    ))
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # ── Configuration: CLI flags > environment > config file ─────────────────
    config = load_config()
    configure_logging(args.log_level or get_log_level(config))
    db_path = args.db or get_db_path(config)

    # ── Database ─────────────────────────────────────────────────────────────
    db = DatabaseManager(db_path)
    try:
        db.initialize()
        if args.command == "run":
            return cmd_run(db, args, get_claim_ttl(config))
        return cmd_upcoming(db, args)
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
