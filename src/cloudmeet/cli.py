"""CLI entry point for cloudmeet."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime

from . import __version__
from .errors import CalendarError


def _setup_logging(args: argparse.Namespace) -> None:
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )


def _build(args: argparse.Namespace):
    """Load config and wire a calendar client over the SQLite token store."""
    from .calendar.client import build_calendar_client
    from .config import load_config
    from .database import TokenStore

    config = load_config(args.config)
    store = TokenStore(config.database.path)
    store.connect()
    try:
        return build_calendar_client(config, store), store
    except Exception:
        store.close()
        raise


def _build_or_exit(args: argparse.Namespace):
    try:
        return _build(args)
    except Exception as e:
        print(f"[FAIL] Config: {e}")
        sys.exit(1)


def _parse_time(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO 8601 timestamp: {value!r}")
    if parsed.tzinfo is None:
        raise argparse.ArgumentTypeError(f"timestamp needs a UTC offset: {value!r}")
    return parsed


def cmd_check(args: argparse.Namespace) -> None:
    """Check config, token store and token refresh for a user."""
    print(f"cloudmeet v{__version__}: connection check\n")

    try:
        client, store = _build(args)
        print(f"[OK] Config loaded from {args.config}")
    except Exception as e:
        print(f"[FAIL] Config: {e}")
        sys.exit(1)

    try:
        asyncio.run(client.get_valid_access_token(args.user))
        print(f"[OK] Google Calendar token refreshed for {args.user}")
    except CalendarError as e:
        print(f"[FAIL] Google Calendar: {e}")
        sys.exit(1)
    finally:
        store.close()


def cmd_calendars(args: argparse.Namespace) -> None:
    """List the calendars a user can read free/busy from."""
    client, store = _build_or_exit(args)
    try:
        calendars = asyncio.run(client.calendars_for_user(args.user))
    except CalendarError as e:
        print(f"[FAIL] {e}")
        sys.exit(1)
    finally:
        store.close()

    if not calendars:
        print("No calendars found.")
        return
    for cal in calendars:
        marker = "*" if cal.primary else " "
        print(f" {marker} {cal.summary or cal.id}  [{cal.access_role}]  {cal.id}")
    print(f"\nTotal: {len(calendars)} calendar(s)")


def cmd_busy(args: argparse.Namespace) -> None:
    """Show merged busy intervals for a user."""
    client, store = _build_or_exit(args)
    try:
        busy = asyncio.run(
            client.busy_times_for_user(args.user, args.start, args.end, args.calendar)
        )
    except CalendarError as e:
        print(f"[FAIL] {e}")
        sys.exit(1)
    finally:
        store.close()

    if not busy:
        print("No busy intervals in range.")
        return
    for i, interval in enumerate(busy, 1):
        print(f"  {i}. {interval}")
    print(f"\nTotal: {len(busy)} busy interval(s)")


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        prog="cloudmeet",
        description="Calendar availability and booking writes over Google Calendar",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command")

    def add_common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("-c", "--config", default="config.yaml", help="Config file path")
        sub.add_argument("-u", "--user", required=True, help="User id in the token store")
        sub.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    # check
    check_parser = subparsers.add_parser("check", help="Check config and token refresh")
    add_common(check_parser)

    # calendars
    calendars_parser = subparsers.add_parser("calendars", help="List accessible calendars")
    add_common(calendars_parser)

    # busy
    busy_parser = subparsers.add_parser("busy", help="Show merged busy intervals")
    add_common(busy_parser)
    busy_parser.add_argument("--start", type=_parse_time, required=True, help="Window start (ISO 8601)")
    busy_parser.add_argument("--end", type=_parse_time, required=True, help="Window end (ISO 8601)")
    busy_parser.add_argument(
        "--calendar", action="append", default=None,
        help="Calendar id to include (repeatable; default: all calendars)",
    )

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    _setup_logging(args)

    commands = {
        "check": cmd_check,
        "calendars": cmd_calendars,
        "busy": cmd_busy,
    }
    commands[args.command](args)
