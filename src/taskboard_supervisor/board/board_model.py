# src/taskboard_supervisor/board/board_model.py

from __future__ import annotations

"""
In-memory snapshot of one board's tasks.

The snapshot is replaced wholesale on every successful load and never
mutated in place. Derived views are plain properties that recompute from the
current snapshot on every access.
"""

import logging

from ..core.ports import TaskStore
from .models import Task, TaskStatus, find_dependency_problems

logger = logging.getLogger(__name__)


class TaskBoardModel:
    def __init__(self, store: TaskStore) -> None:
        self._store = store
        self._board_id: str | None = None
        self._tasks: tuple[Task, ...] = ()

        # Load attempts are numbered; only a newer attempt may replace the snapshot.
        self._attempt = 0
        self._applied_attempt = 0

    @property
    def board_id(self) -> str | None:
        return self._board_id

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._tasks

    def clear(self) -> None:
        """Drop the snapshot; loads already in flight are discarded when they finish."""
        self._attempt += 1
        self._applied_attempt = self._attempt
        self._board_id = None
        self._tasks = ()

    async def load(self, board_id: str) -> list[Task] | None:
        """
        Fetch the board's tasks from the store and replace the snapshot.

        Returns None when the board does not exist (the previous snapshot is
        kept), and a possibly empty list otherwise. Store errors propagate.
        """
        self._attempt += 1
        attempt = self._attempt

        board = await self._store.get_board(board_id)
        if board is None:
            logger.debug("Board %s not found (attempt=%s)", board_id, attempt)
            return None

        tasks = list(board.tasks)

        if attempt < self._applied_attempt:
            logger.debug(
                "Discarding stale load board=%s attempt=%s applied=%s",
                board_id,
                attempt,
                self._applied_attempt,
            )
            return tasks

        if board_id != self._board_id:
            for problem in find_dependency_problems(tasks):
                logger.warning(
                    "Board %s: task %s has %s dependency %s",
                    board_id,
                    problem.task_id,
                    problem.kind,
                    problem.dependency_id,
                )

        self._applied_attempt = attempt
        self._board_id = board_id
        self._tasks = tuple(tasks)
        logger.debug("Loaded %d tasks for board %s", len(tasks), board_id)
        return tasks

    # ---- derived views ----

    @property
    def has_tasks(self) -> bool:
        return len(self._tasks) > 0

    @property
    def has_in_progress_tasks(self) -> bool:
        return any(t.status == TaskStatus.IN_PROGRESS for t in self._tasks)

    @property
    def has_completed_tasks(self) -> bool:
        return any(t.status == TaskStatus.COMPLETED for t in self._tasks)

    @property
    def completed_tasks(self) -> list[Task]:
        return [t for t in self._tasks if t.status == TaskStatus.COMPLETED]

    @property
    def failed_tasks(self) -> list[Task]:
        return [t for t in self._tasks if t.status == TaskStatus.FAILED]

    @property
    def pending_tasks(self) -> list[Task]:
        return [t for t in self._tasks if t.status == TaskStatus.PENDING]

    @property
    def in_progress_tasks(self) -> list[Task]:
        return [t for t in self._tasks if t.status == TaskStatus.IN_PROGRESS]

    def counts(self) -> dict[str, int]:
        """Total plus one entry per status."""
        out = {"total": len(self._tasks)}
        out.update({status.value: 0 for status in TaskStatus})
        for task in self._tasks:
            out[task.status.value] += 1
        return out

    def get_task(self, task_id: str) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def dependency_title(self, dep_id: str) -> str:
        task = self.get_task(dep_id)
        return task.title if task else f"Task {dep_id[:8]}..."
