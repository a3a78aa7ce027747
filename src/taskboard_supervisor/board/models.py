# src/taskboard_supervisor/board/models.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class TaskStatus(StrEnum):
    """Task lifecycle status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(raw)
        except ValueError:
            return cls.PENDING


TERMINAL_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED})
ACTIVE_STATUSES = frozenset({TaskStatus.PENDING, TaskStatus.IN_PROGRESS})


class ActorType(StrEnum):
    """
    Known actor tags.

    The supervisor treats Task.actor_type as an opaque string; this enum only
    lists the values the bundled executor and CLI know about.
    """

    CODER = "coder"
    RESEARCHER = "researcher"
    ANALYST = "analyst"
    PLANNER = "planner"
    COMPOSER = "composer"


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    board_id: str
    title: str
    actor_type: str
    status: TaskStatus
    created_at: float

    description: str = ""
    dependencies: tuple[str, ...] = ()

    started_at: float | None = None
    completed_at: float | None = None
    result: Any | None = None
    error: str | None = None


@dataclass(slots=True, frozen=True)
class Board:
    id: str
    title: str
    created_at: float
    tasks: tuple[Task, ...] = ()


@dataclass(slots=True, frozen=True)
class DependencyProblem:
    task_id: str
    dependency_id: str
    kind: str  # "self" | "missing"


def find_dependency_problems(tasks: Iterable[Task]) -> list[DependencyProblem]:
    """
    Report dependencies that violate board invariants.

    - a task must not depend on itself
    - every dependency must name a task on the same board
    """
    tasks = list(tasks)
    known = {t.id for t in tasks}
    problems: list[DependencyProblem] = []

    for task in tasks:
        for dep_id in task.dependencies:
            if dep_id == task.id:
                problems.append(DependencyProblem(task.id, dep_id, "self"))
            elif dep_id not in known:
                problems.append(DependencyProblem(task.id, dep_id, "missing"))

    return problems
