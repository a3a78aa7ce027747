# src/taskboard_supervisor/executors/local.py

from __future__ import annotations

"""
In-process executor.

Runs a board's tasks through actor handlers keyed by actor type:
- each pass loads the board and picks ready tasks (pending, not already
  running here, every dependency completed),
- ready tasks run concurrently; each is marked in_progress before its handler
  runs and completed/failed afterwards,
- passes repeat until nothing is ready.

A task whose dependency failed is never ready, so it stays pending.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..board.models import TERMINAL_STATUSES, Task, TaskStatus
from ..core.ports import TaskStore

logger = logging.getLogger(__name__)

ActorHandler = Callable[[Task, Any], Awaitable[Any]]
# (task, context) -> result. Raising marks the task failed.


async def echo_actor(task: Task, context: Any) -> dict[str, Any]:
    """Demo handler: returns the task's own title/description as its result."""
    delay = float(getattr(context, "actor_delay_seconds", 0.0) or 0.0)
    if delay > 0:
        await asyncio.sleep(delay)
    return {"title": task.title, "text": task.description or task.title}


@dataclass(slots=True)
class LocalExecutorConfig:
    store: TaskStore
    actors: Mapping[str, ActorHandler] = field(default_factory=dict)
    default_actor: ActorHandler | None = None


class LocalExecutor:
    def __init__(self, board_id: str, context: Any, config: LocalExecutorConfig) -> None:
        self._board_id = board_id
        self._context = context
        self._config = config
        self._running: dict[str, asyncio.Task[None]] = {}
        self._disposed = False

    @classmethod
    def factory(cls, config: LocalExecutorConfig) -> Callable[[str, Any, Any], LocalExecutor]:
        """ExecutorFactory that ignores per-call config in favour of `config`."""
        def build(board_id: str, context: Any, _execution_config: Any) -> LocalExecutor:
            return cls(board_id, context, config)

        return build

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        self._disposed = True
        for task in self._running.values():
            task.cancel()
        self._running.clear()

    def reset_state(self) -> None:
        self._running.clear()

    def _handler_for(self, actor_type: str) -> ActorHandler:
        handler = self._config.actors.get(actor_type) or self._config.default_actor
        if handler is None:
            raise ValueError(f"Unsupported actor type: {actor_type}")
        return handler

    def _ready_tasks(self, tasks: tuple[Task, ...]) -> list[Task]:
        by_id = {t.id: t for t in tasks}
        out: list[Task] = []
        for task in tasks:
            if task.status != TaskStatus.PENDING or task.id in self._running:
                continue
            deps = [by_id.get(d) for d in task.dependencies]
            if all(d is not None and d.status == TaskStatus.COMPLETED for d in deps):
                out.append(task)
        return out

    async def execute_all_tasks(self) -> None:
        store = self._config.store
        while not self._disposed:
            board = await store.get_board(self._board_id)
            if board is None:
                logger.warning("Board %s not found, skipping task execution", self._board_id)
                return

            ready = self._ready_tasks(board.tasks)
            if not ready:
                remaining = [t for t in board.tasks if t.status not in TERMINAL_STATUSES]
                logger.debug(
                    "No ready tasks board=%s remaining=%d", self._board_id, len(remaining)
                )
                return

            # Resolve handlers up front so an unknown actor type fails the pass
            # before any task is claimed.
            handlers = [(task, self._handler_for(task.actor_type)) for task in ready]

            runs = []
            for task, handler in handlers:
                run = asyncio.create_task(self._execute_task(task, handler))
                self._running[task.id] = run
                runs.append(run)
            await asyncio.gather(*runs)

    async def _execute_task(self, task: Task, handler: ActorHandler) -> None:
        store = self._config.store
        try:
            await store.update_task(
                self._board_id,
                task.id,
                {"status": TaskStatus.IN_PROGRESS, "started_at": time.time()},
            )
            logger.info("Task %s -> in_progress (%s)", task.id, task.actor_type)

            try:
                result = await handler(task, self._context)
            except Exception as e:
                logger.exception("Task %s failed", task.id)
                await store.update_task(
                    self._board_id,
                    task.id,
                    {"status": TaskStatus.FAILED, "error": str(e) or type(e).__name__, "completed_at": time.time()},
                )
                return

            await store.update_task(
                self._board_id,
                task.id,
                {"status": TaskStatus.COMPLETED, "result": result, "completed_at": time.time()},
            )
            logger.info("Task %s -> completed", task.id)
        finally:
            self._running.pop(task.id, None)
