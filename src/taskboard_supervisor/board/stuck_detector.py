# src/taskboard_supervisor/board/stuck_detector.py

from __future__ import annotations

"""
Stuck task detection.

Two independent heuristics, OR-ed together:
- ready-but-idle: a pending task none of whose direct dependencies is still
  pending or in progress (an empty dependency set qualifies),
- timed-out: an in-progress task whose started_at is older than the threshold.

The dependency check is one hop only. Deep chains and dependency cycles are
not analysed.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from .models import ACTIVE_STATUSES, Task, TaskStatus

DEFAULT_STUCK_AFTER_SECONDS = 300.0


class StuckReason(StrEnum):
    READY_BUT_IDLE = "ready_but_idle"
    TIMED_OUT = "timed_out"


@dataclass(slots=True, frozen=True)
class StuckTask:
    task: Task
    reason: StuckReason


def _is_ready_but_idle(task: Task, by_id: dict[str, Task]) -> bool:
    if task.status != TaskStatus.PENDING:
        return False
    for dep_id in task.dependencies:
        dep = by_id.get(dep_id)
        # Unknown dependency ids do not block.
        if dep is not None and dep.status in ACTIVE_STATUSES:
            return False
    return True


def _is_timed_out(task: Task, now: float, stuck_after_seconds: float) -> bool:
    if task.status != TaskStatus.IN_PROGRESS or task.started_at is None:
        return False
    return (now - task.started_at) > stuck_after_seconds


def find_stuck_tasks(
        tasks: Iterable[Task],
        now: float,
        *,
        stuck_after_seconds: float = DEFAULT_STUCK_AFTER_SECONDS,
) -> list[StuckTask]:
    """Return every flagged task with the heuristic that flagged it."""
    tasks = list(tasks)
    by_id = {t.id: t for t in tasks}
    out: list[StuckTask] = []

    for task in tasks:
        if _is_ready_but_idle(task, by_id):
            out.append(StuckTask(task, StuckReason.READY_BUT_IDLE))
        elif _is_timed_out(task, now, stuck_after_seconds):
            out.append(StuckTask(task, StuckReason.TIMED_OUT))

    return out


def is_stuck(
        tasks: Iterable[Task],
        now: float,
        *,
        stuck_after_seconds: float = DEFAULT_STUCK_AFTER_SECONDS,
) -> bool:
    """Pure liveness verdict over a snapshot; never mutates anything."""
    tasks = list(tasks)
    by_id = {t.id: t for t in tasks}
    return any(
        _is_ready_but_idle(t, by_id) or _is_timed_out(t, now, stuck_after_seconds)
        for t in tasks
    )
