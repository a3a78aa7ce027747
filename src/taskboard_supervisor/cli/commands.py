# src/taskboard_supervisor/cli/commands.py

from __future__ import annotations

import inspect
import time
from collections.abc import Awaitable, Callable

from ..supervisor.supervisor import TaskBoardSupervisor

CommandHandler = Callable[[TaskBoardSupervisor, list[str]], str | Awaitable[str]]


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /status, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, supervisor: TaskBoardSupervisor, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        reply = handler(supervisor, args)
        if inspect.isawaitable(reply):
            reply = await reply
        return reply

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("  /exit - Stop supervising and quit.")
        return "\n".join(lines)


registry = CommandRegistry()


def _age(seconds: float) -> str:
    seconds = max(0, int(seconds))
    if seconds < 60:
        return f"{seconds}s"
    return f"{seconds // 60}m{seconds % 60:02d}s"


def cmd_help(sup: TaskBoardSupervisor, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(sup: TaskBoardSupervisor, args: list[str]) -> str:
    counts = sup.model.counts()
    lines = [
        "Status:",
        f"  Board: {sup.board_id or '-'}",
        f"  Supervisor: {sup.state.value} (executor={'yes' if sup.executor_active else 'no'}, "
        f"polling={'yes' if sup.polling else 'no'})",
        f"  Tasks: {counts['total']} total, {counts['pending']} pending, "
        f"{counts['in_progress']} in progress, {counts['completed']} completed, {counts['failed']} failed",
        f"  Stuck: {'YES - try /reset' if sup.has_stuck_tasks else 'no'}",
    ]
    if sup.error:
        lines.append(f"  Error: {sup.error}")
    return "\n".join(lines)


def cmd_tasks(sup: TaskBoardSupervisor, args: list[str]) -> str:
    """
    /tasks          -> all tasks
    /tasks failed   -> only tasks with that status
    """
    tasks = list(sup.model.tasks)
    if args:
        wanted = args[0].lower()
        tasks = [t for t in tasks if t.status.value == wanted]
    if not tasks:
        return "No tasks."

    lines = []
    for i, t in enumerate(tasks, start=1):
        deps = ", ".join(sup.model.dependency_title(d) for d in t.dependencies)
        dep_str = f" [after: {deps}]" if deps else ""
        err_str = f" error={t.error}" if t.error else ""
        lines.append(f"{i}. [{t.status.value}] {t.title} ({t.actor_type}){dep_str}{err_str}")
    return "\n".join(lines)


def cmd_stuck(sup: TaskBoardSupervisor, args: list[str]) -> str:
    stuck = sup.stuck_tasks
    if not stuck:
        return "Nothing looks stuck."
    now = time.time()
    lines = ["Possibly stuck:"]
    for s in stuck:
        extra = ""
        if s.task.started_at is not None:
            extra = f", running for {_age(now - s.task.started_at)}"
        lines.append(f"  - {s.task.title} ({s.reason.value}{extra})")
    return "\n".join(lines)


async def cmd_reset(sup: TaskBoardSupervisor, args: list[str]) -> str:
    ok = await sup.reset()
    return "Reset done." if ok else "Reset failed (see notification above)."


async def cmd_reload(sup: TaskBoardSupervisor, args: list[str]) -> str:
    await sup.reload()
    return f"Reloaded {len(sup.model.tasks)} tasks."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show supervisor and board status.")
registry.register("tasks", cmd_tasks, help_text="List tasks: /tasks [pending|in_progress|completed|failed].")
registry.register("stuck", cmd_stuck, help_text="Explain which tasks look stuck and why.")
registry.register("reset", cmd_reset, help_text="Reset in-progress tasks and re-run execution.")
registry.register("reload", cmd_reload, help_text="Reload tasks from the store now.", aliases=["r"])
