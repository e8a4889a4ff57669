import argparse
import logging

from quiz_api.config import LOG_LEVEL
from quiz_api.database import SessionLocal, init_db
from quiz_api.logging_setup import setup_console_logging
from quiz_api.services.session_service import expire_stale_sessions
from quiz_api.utils import parse_iso_timestamp

setup_console_logging(LOG_LEVEL)

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Quiz engine maintenance commands")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create database tables")

    expire = commands.add_parser(
        "expire-sessions",
        help="Mark elapsed in-progress sessions as expired",
    )
    expire.add_argument(
        "--now",
        type=str,
        default=None,
        help="ISO timestamp to evaluate expiry against (default: current time)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    if args.command == "init-db":
        init_db()
        print("Database initialized")
        return 0

    now = None
    if args.now is not None:
        now = parse_iso_timestamp(args.now)
        if now is None:
            logger.error("Invalid --now timestamp: %r", args.now)
            return 2

    db = SessionLocal()
    try:
        expired = expire_stale_sessions(db, now)
    finally:
        db.close()

    print(f"Expired {expired} sessions")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
