"""Operator commands: seed the default positions or wipe all election state."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

logger = logging.getLogger("manage_elections")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(description="Maintenance tasks for chapter elections.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "seed-positions",
        help="Insert the default positions if the catalog is empty.",
    )

    reset = subparsers.add_parser(
        "reset",
        help="Delete every election, round, vote and winner.",
    )
    reset.add_argument(
        "--include-applications",
        action="store_true",
        help="Also delete every application and floor nomination.",
    )
    reset.add_argument(
        "--yes",
        action="store_true",
        help="Skip the interactive confirmation.",
    )
    return parser.parse_args(argv)


def confirm(prompt: str) -> bool:
    """Ask for a literal 'yes' on stdin."""
    answer = input(f"{prompt} Type 'yes' to continue: ")
    return answer.strip().lower() == "yes"


def main(argv: Sequence[str] | None = None) -> int:
    """Run one maintenance command and print its result as JSON."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    args = parse_args(argv)

    from app.services.maintenance_service import MaintenanceService
    from app.utils.errors import AppError
    from app.utils.supabase_client import get_service_client

    service = MaintenanceService(get_service_client())

    try:
        if args.command == "seed-positions":
            created = service.seed_positions()
            print(json.dumps({"created": [row.get("title") for row in created]}, indent=2))
            return 0

        if not args.yes and not confirm("This permanently deletes all election data."):
            print("Aborted.", file=sys.stderr)
            return 1
        deleted = service.reset_all_elections(include_applications=args.include_applications)
        print(json.dumps({"deleted": deleted}, indent=2))
        return 0
    except AppError as exc:
        logger.error("%s (%s)", exc.message, exc.code)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
