# src/taskboard_supervisor/cli/main.py

"""
CLI entrypoint.

Usage:
    taskboard-supervisor create-board "Quarterly report"
    taskboard-supervisor add-task BOARD_ID "Collect data" --actor researcher
    taskboard-supervisor add-task BOARD_ID "Write summary" --actor composer --depends-on TASK_ID
    taskboard-supervisor list-boards
    taskboard-supervisor supervise BOARD_ID
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from ..board.models import ActorType
from ..config import Settings, get_settings
from ..logging_setup import setup_logging
from .bootstrap import create_session, open_store
from .console import run_console_loop

logger = logging.getLogger(__name__)


def _configure_logging(settings: Settings) -> None:
    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    log_dir = settings.data_dir if settings.log_to_file else None
    setup_logging(log_dir=log_dir, console_level=console_level)


def run_create_board(args: argparse.Namespace, settings: Settings) -> int:
    store = open_store(settings=settings)
    board_id = store.create_board(args.title)
    print(board_id)
    return 0


def run_add_task(args: argparse.Namespace, settings: Settings) -> int:
    store = open_store(settings=settings)
    try:
        task_id = store.add_task(
            args.board_id,
            title=args.title,
            actor_type=args.actor,
            description=args.description or "",
            dependencies=args.depends_on or [],
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(task_id)
    return 0


def run_list_boards(args: argparse.Namespace, settings: Settings) -> int:
    store = open_store(settings=settings)
    boards = store.list_boards()
    if not boards:
        print("No boards.")
        return 0
    for board_id, title, n in boards:
        print(f"{board_id}  {title}  ({n} tasks)")
    return 0


async def _supervise(board_id: str, settings: Settings) -> int:
    session = create_session(settings=settings)
    try:
        supervisor = await session.registry.start(board_id)
        if supervisor.error:
            return 1
        await run_console_loop(supervisor)
    finally:
        await session.registry.close_all()
    return 0


def run_supervise(args: argparse.Namespace, settings: Settings) -> int:
    logger.info("Starting %s for board %s", settings.app_name, args.board_id)
    try:
        return asyncio.run(_supervise(args.board_id, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
        return 130
    finally:
        logger.info("Bye.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskboard-supervisor",
        description="Supervise task boards: detect stuck execution and recover it.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_board = sub.add_parser("create-board", help="Create an empty board and print its id")
    p_board.add_argument("title")
    p_board.set_defaults(func=run_create_board)

    p_task = sub.add_parser("add-task", help="Add a pending task to a board and print its id")
    p_task.add_argument("board_id")
    p_task.add_argument("title")
    p_task.add_argument(
        "--actor",
        default=ActorType.RESEARCHER.value,
        help=f"Actor type ({', '.join(a.value for a in ActorType)}; other values are kept as-is)",
    )
    p_task.add_argument("--description", default="")
    p_task.add_argument("--depends-on", action="append", metavar="TASK_ID")
    p_task.set_defaults(func=run_add_task)

    p_list = sub.add_parser("list-boards", help="List boards with task counts")
    p_list.set_defaults(func=run_list_boards)

    p_sup = sub.add_parser("supervise", help="Supervise a board with an interactive console")
    p_sup.add_argument("board_id")
    p_sup.set_defaults(func=run_supervise)

    return parser


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    _configure_logging(settings)

    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
