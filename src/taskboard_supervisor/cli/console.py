# src/taskboard_supervisor/cli/console.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..supervisor.supervisor import TaskBoardSupervisor
from .commands import registry as command_registry

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


async def run_console_loop(supervisor: TaskBoardSupervisor) -> None:
    """
    Interactive slash-command console for one supervised board.

    input() runs in a worker thread so the poll task and the background
    execution pass keep running while the prompt waits.
    """
    logger.info("Console started board=%s", supervisor.board_id)
    _print_ts("[CONSOLE] Supervising board. Use /help for commands. Use /exit to quit.\n")

    while True:
        try:
            user_input = (await asyncio.to_thread(input, "board> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = await command_registry.handle(supervisor, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is None:
            reply = "Commands start with '/'. Use /help to list available commands."
        _print_ts(reply)

    logger.info("Console finished.")
