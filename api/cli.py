#!/usr/bin/env python3
"""CLI for habit tracker management and analytics tasks.

Usage:
    python -m cli <command>

Commands:
    create-tables   Create all tables in the configured database
    habit-streaks   Print current and best streak of a habit
    user-summary    Print a user's streak, count and consistency for a frequency
"""

import argparse
import asyncio
import sys

from pydantic import ValidationError

from core import get_logger
from core.database import (
    create_engine,
    create_session_maker,
    create_tables,
    dispose_engine,
    session_scope,
)
from core.logger import configure_logging
from services.analytics_service import (
    Frequency,
    get_habit_streaks,
    get_user_accomplished_count,
    get_user_consistency,
    get_user_streak,
)
from services.errors import InputError, StoreUnavailableError
from services.streaks_service import StreakData

logger = get_logger(__name__)


def _format_range(start: object, end: object) -> str:
    if start is None or end is None:
        return "-"
    return f"{start} .. {end}"


def _print_streaks(streaks: StreakData) -> None:
    print(
        f"current streak: {streaks.current.length} "
        f"({_format_range(streaks.current.start, streaks.current.end)})"
    )
    print(
        f"best streak:    {streaks.best.length} "
        f"({_format_range(streaks.best.start, streaks.best.end)})"
    )


async def _create_tables() -> None:
    engine = create_engine()
    try:
        await create_tables(engine)
    finally:
        await dispose_engine(engine)


async def _habit_streaks(habit_id: int) -> None:
    engine = create_engine()
    try:
        async with session_scope(create_session_maker(engine)) as db:
            streaks = await get_habit_streaks(db, habit_id)
        _print_streaks(streaks)
    finally:
        await dispose_engine(engine)


async def _user_summary(user_id: str, frequency: Frequency) -> None:
    engine = create_engine()
    try:
        async with session_scope(create_session_maker(engine)) as db:
            streaks = await get_user_streak(db, user_id, frequency)
            counts = await get_user_accomplished_count(db, user_id, frequency)
            consistency = await get_user_consistency(db, user_id, frequency)
        window = _format_range(counts.date_range.start, counts.date_range.end)
        print(f"window:         {window}")
        _print_streaks(streaks)
        print(f"completions:    {counts.total}")
        print(
            f"consistency:    {consistency.consistency:.2f}% "
            f"({consistency.done_count}/{consistency.expected_count})"
        )
    finally:
        await dispose_engine(engine)


def cmd_create_tables() -> int:
    """Create all tables in the configured database."""
    logger.info("cli.create_tables.start")
    asyncio.run(_create_tables())
    logger.info("cli.create_tables.done")
    return 0


def cmd_habit_streaks(habit_id: int) -> int:
    asyncio.run(_habit_streaks(habit_id))
    return 0


def cmd_user_summary(user_id: str, frequency: str) -> int:
    asyncio.run(_user_summary(user_id, Frequency.parse(frequency)))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Habit tracker CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "create-tables",
        help="Create all tables in the configured database",
    )
    habit_parser = subparsers.add_parser(
        "habit-streaks",
        help="Print current and best streak of a habit",
    )
    habit_parser.add_argument("habit_id", type=int)
    user_parser = subparsers.add_parser(
        "user-summary",
        help="Print a user's streak, count and consistency for a frequency",
    )
    user_parser.add_argument("user_id")
    user_parser.add_argument(
        "--frequency",
        default=Frequency.WEEKLY.value,
        choices=[f.value for f in Frequency],
    )

    args = parser.parse_args(argv)
    configure_logging("DEBUG" if args.verbose else None)

    try:
        if args.command == "create-tables":
            return cmd_create_tables()
        elif args.command == "habit-streaks":
            return cmd_habit_streaks(args.habit_id)
        elif args.command == "user-summary":
            return cmd_user_summary(args.user_id, args.frequency)
        else:
            parser.print_help()
            return 1
    except InputError as e:
        logger.error("cli.input.rejected", error=str(e))
        return 2
    except ValidationError as e:
        logger.error("cli.settings.invalid", error=str(e))
        return 2
    except StoreUnavailableError as e:
        logger.error("cli.store.unavailable", error=str(e))
        return 3


if __name__ == "__main__":
    sys.exit(main())
