# src/taskboard_supervisor/board/bulk_reset.py

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum

from ..core.ports import TaskPatch, TaskStore
from .models import TaskStatus

logger = logging.getLogger(__name__)


class ResetPolicy(StrEnum):
    """What happens to started_at when an in-progress task is reset."""

    PRESERVE_STARTED_AT = "preserve"
    CLEAR_STARTED_AT = "clear"

    @classmethod
    def from_setting(cls, raw: str | None) -> ResetPolicy:
        if not raw:
            return cls.PRESERVE_STARTED_AT
        try:
            return cls(raw.strip().lower())
        except ValueError:
            logger.warning("Unknown reset policy %r; using %s", raw, cls.PRESERVE_STARTED_AT.value)
            return cls.PRESERVE_STARTED_AT


async def reset_in_progress_tasks(
        store: TaskStore,
        board_id: str,
        *,
        policy: ResetPolicy = ResetPolicy.PRESERVE_STARTED_AT,
) -> list[str]:
    """
    Move every in_progress task on the board back to pending.

    Only in_progress tasks are patched. The patches run concurrently and this
    coroutine returns once all of them have finished (the first failure is
    raised after the batch settles). Returns the ids that were reset.
    """
    board = await store.get_board(board_id)
    if board is None:
        logger.warning("Reset skipped: board %s not found", board_id)
        return []

    task_ids = [t.id for t in board.tasks if t.status == TaskStatus.IN_PROGRESS]
    if not task_ids:
        return []

    patch: TaskPatch = {"status": TaskStatus.PENDING}
    if policy == ResetPolicy.CLEAR_STARTED_AT:
        patch["started_at"] = None

    logger.info("Resetting %d in-progress tasks back to pending board=%s", len(task_ids), board_id)

    results = await asyncio.gather(
        *(store.update_task(board_id, task_id, dict(patch)) for task_id in task_ids),
        return_exceptions=True,
    )
    for task_id, res in zip(task_ids, results):
        if isinstance(res, BaseException):
            logger.error("Reset patch failed board=%s task=%s: %s", board_id, task_id, res)
    for res in results:
        if isinstance(res, BaseException):
            raise res

    return task_ids
