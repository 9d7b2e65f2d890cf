#!/usr/bin/env python3
"""CLI tool for managing subway data from the command line.

Usage:
    # Empty every table (keeps the schema)
    python -m subway.cli reset-db --yes

    # Create a station
    python -m subway.cli create-station "Gangnam"

    # List stations
    python -m subway.cli list-stations

    # List lines with their stations in order
    python -m subway.cli list-lines
"""

import argparse
import asyncio
import sys
from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from subway.core.database import get_session_factory
from subway.domain.errors import BrokenPathError
from subway.schemas.stations import StationRequest
from subway.services.line_service import LineService
from subway.services.station_service import StationService
from subway.utils.database_cleaner import truncate_all_tables

CommandHandler = Callable[[argparse.Namespace, AsyncSession], Awaitable[int]]


async def cmd_reset_db(args: argparse.Namespace, session: AsyncSession) -> int:
    """
    Delete all rows from every table.

    Args:
        args: Parsed command-line arguments
        session: Database session

    Returns:
        Exit code (0 for success, 1 for error)
    """
    if not args.yes:
        print("❌ Error: reset-db deletes all data. Re-run with --yes to confirm.", file=sys.stderr)
        return 1

    deleted = await truncate_all_tables(session)

    print("✅ Database reset successfully!")
    for table_name, count in deleted.items():
        print(f"   {table_name:<12} {count} row(s) deleted")
    return 0


async def cmd_create_station(args: argparse.Namespace, session: AsyncSession) -> int:
    """Create a station and print its ID."""
    name = args.name.strip()
    if not name:
        print("❌ Error: Station name must not be blank", file=sys.stderr)
        return 1

    try:
        request = StationRequest(name=name)
    except ValueError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1

    station = await StationService(session).create_station(request)

    print("✅ Created station successfully!")
    print(f"   Station ID: {station.id}")
    print(f"   Name:       {station.name}")
    return 0


async def cmd_list_stations(args: argparse.Namespace, session: AsyncSession) -> int:
    """List all stations."""
    stations = await StationService(session).list_stations()

    if not stations:
        print("No stations found")
        return 0

    print(f"Found {len(stations)} station(s):\n")
    print(f"{'Station ID':<38} Name")
    print("-" * 70)
    for station in stations:
        print(f"{station.id!s:<38} {station.name}")
    return 0


async def cmd_list_lines(args: argparse.Namespace, session: AsyncSession) -> int:
    """
    List all lines with their stations in path order.

    Returns:
        Exit code (1 if any stored line no longer forms a single path)
    """
    lines = await LineService(session).list_lines()

    if not lines:
        print("No lines found")
        return 0

    exit_code = 0
    print(f"Found {len(lines)} line(s):\n")
    for line in lines:
        print(f"{line.name} ({line.color})  id={line.id}")
        try:
            stations = line.ordered_stations()
        except BrokenPathError as e:
            print(f"   ❌ Broken line: {e}", file=sys.stderr)
            exit_code = 1
            continue
        total = sum(section.distance for section in line.sections)
        print(f"   {' -> '.join(station.name for station in stations)}  [total distance: {total}]")

    return exit_code


COMMAND_HANDLERS: dict[str, CommandHandler] = {
    "reset-db": cmd_reset_db,
    "create-station": cmd_create_station,
    "list-stations": cmd_list_stations,
    "list-lines": cmd_list_lines,
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per handler."""
    parser = argparse.ArgumentParser(
        description="Subway lines management CLI tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m subway.cli reset-db --yes
  python -m subway.cli create-station "Gangnam"
  python -m subway.cli list-stations
  python -m subway.cli list-lines
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    reset_parser = subparsers.add_parser(
        "reset-db",
        help="Delete all rows from every table",
        description="Empty stations, lines and sections. The schema is left in place.",
    )
    reset_parser.add_argument("--yes", action="store_true", help="Confirm that all data should be deleted")

    create_station_parser = subparsers.add_parser("create-station", help="Create a new station")
    create_station_parser.add_argument("name", type=str, help="Station name")

    subparsers.add_parser("list-stations", help="List all stations")
    subparsers.add_parser("list-lines", help="List all lines with their stations in order")

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the CLI tool.

    Args:
        argv: Arguments to parse (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    handler = COMMAND_HANDLERS[args.command]

    async def run_with_session() -> int:
        async with get_session_factory()() as session:
            return await handler(args, session)

    return asyncio.run(run_with_session())


if __name__ == "__main__":
    sys.exit(main())
