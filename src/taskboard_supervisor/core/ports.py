# src/taskboard_supervisor/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the supervisor.

The supervisor depends on Protocols instead of concrete implementations.
This keeps the task store and the execution engine swappable and makes
testing easier.
"""

from typing import Any, Awaitable, Callable, Literal, Protocol

from ..board.models import Board

TaskPatch = dict[str, Any]
# Partial task update: {"status": "pending", "started_at": None, ...}.
# Keys present are written, including explicit None.

NotificationVariant = Literal["default", "destructive"]


class TaskStore(Protocol):
    """Board/task persistence consumed by the supervisor."""

    def get_board(self, board_id: str) -> Awaitable[Board | None]: ...

    def update_task(self, board_id: str, task_id: str, patch: TaskPatch) -> Awaitable[None]: ...


class Executor(Protocol):
    """
    External execution engine bound to one board.

    Implementations may also provide reset_state() to drop their own
    running-task bookkeeping before a reset re-run.
    """

    def execute_all_tasks(self) -> Awaitable[None]: ...

    def dispose(self) -> None: ...


ExecutorFactory = Callable[[str, Any, Any], Executor]
# (board_id, context, execution_config) -> Executor. Must not start execution.


class Notifier(Protocol):
    """
    Side channel for user-facing outcomes (reset succeeded / failed).

    The caller decides how to present it (console line, toast, chat message).
    """

    def notify(
            self,
            *,
            title: str,
            description: str,
            variant: NotificationVariant = "default",
    ) -> None: ...
