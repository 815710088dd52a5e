"""
Command-line entry point for slot and calendar queries.

Loads rooms, reservations and blackouts from a JSON data file into the
in-memory store and prints the query result as JSON.

Usage:
    python main.py slots room-a 2026-10-19 --data sample_data/rooms.json
    python main.py calendar room-a --month 10 --year 2026
    python main.py slots room-a 2026-10-19 --now 2026-10-18T09:00:00 --verbose
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from typing import Optional

from roomslots.config import settings
from roomslots.service import AvailabilityService, InvalidRequestError
from roomslots.sources.memory_store import InMemoryRoomStore
from roomslots.utils import to_local

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Query room availability from a JSON data file."
    )
    parser.add_argument(
        "--data",
        type=str,
        default=settings.data_file,
        help="Path to the rooms JSON file (default: $ROOMSLOTS_DATA_FILE).",
    )
    parser.add_argument(
        "--now",
        type=str,
        default=None,
        help="Evaluation instant in ISO format (default: current time).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging output.",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    slots = commands.add_parser("slots", help="Bookable start and end times for a date.")
    slots.add_argument("room_id")
    slots.add_argument("date", help="Target date (YYYY-MM-DD).")

    calendar = commands.add_parser("calendar", help="Closed and blacked-out dates of a month.")
    calendar.add_argument("room_id")
    calendar.add_argument("--month", type=int, required=True, help="Month number (1-12).")
    calendar.add_argument("--year", type=int, required=True)
    return parser


def _evaluation_instant(raw: Optional[str]) -> datetime:
    tz = settings.engine.tzinfo
    if raw is None:
        return datetime.now(tz)
    return to_local(datetime.fromisoformat(raw), tz)


async def _run(args: argparse.Namespace) -> dict:
    store = InMemoryRoomStore.from_json(args.data)
    service = AvailabilityService.from_store(store)
    now = _evaluation_instant(args.now)

    if args.command == "slots":
        result = await service.get_slots(args.room_id, args.date, now=now)
    else:
        result = await service.get_calendar(args.room_id, args.month, args.year, now=now)
    return result.to_dict()


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.data:
        logger.error("No data file given (use --data or ROOMSLOTS_DATA_FILE)")
        return 2

    try:
        output = asyncio.run(_run(args))
    except FileNotFoundError:
        logger.error("Data file not found: %s", args.data)
        return 1
    except InvalidRequestError as exc:
        logger.error("%s", exc)
        return 2
    except ValueError as exc:
        logger.error("Invalid input: %s", exc)
        return 2

    json.dump(output, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
