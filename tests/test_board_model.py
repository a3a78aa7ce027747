# tests/test_board_model.py

from __future__ import annotations

import asyncio

import pytest

from taskboard_supervisor.board.board_model import TaskBoardModel
from taskboard_supervisor.board.models import Board, TaskStatus, find_dependency_problems

from .fakes import FakeTaskStore, make_board, make_task


class GatedStore(FakeTaskStore):
    """get_board() waits on a per-call gate so tests can finish loads out of order."""

    def __init__(self, boards: list[Board]) -> None:
        super().__init__(boards)
        self.gates: list[asyncio.Event] = []

    async def get_board(self, board_id: str) -> Board | None:
        gate = asyncio.Event()
        self.gates.append(gate)
        board = self.boards.get(board_id)  # read before waiting: this is the "old" state
        await gate.wait()
        return board


@pytest.mark.asyncio
async def test_load_missing_board_returns_none_and_keeps_snapshot(store: FakeTaskStore) -> None:
    model = TaskBoardModel(store)

    loaded = await model.load("b1")
    assert loaded is not None and len(loaded) == 3

    assert await model.load("nope") is None
    assert model.board_id == "b1"
    assert len(model.tasks) == 3


@pytest.mark.asyncio
async def test_empty_board_is_distinct_from_missing(store: FakeTaskStore) -> None:
    model = TaskBoardModel(store)
    assert await model.load("empty") == []
    assert model.has_tasks is False


@pytest.mark.asyncio
async def test_derived_views_follow_latest_snapshot(store: FakeTaskStore) -> None:
    model = TaskBoardModel(store)
    await model.load("b1")

    assert model.has_tasks
    assert model.has_completed_tasks
    assert not model.has_in_progress_tasks
    assert [t.id for t in model.completed_tasks] == ["A"]
    assert model.failed_tasks == []

    await store.update_task("b1", "B", {"status": TaskStatus.IN_PROGRESS, "started_at": 1.0})
    await store.update_task("b1", "C", {"status": TaskStatus.FAILED, "error": "boom"})

    # No caching: views only change after the next load.
    assert not model.has_in_progress_tasks
    await model.load("b1")
    assert model.has_in_progress_tasks
    assert [t.id for t in model.failed_tasks] == ["C"]
    assert model.counts() == {"total": 3, "pending": 0, "in_progress": 1, "completed": 1, "failed": 1}


@pytest.mark.asyncio
async def test_stale_load_does_not_overwrite_newer_snapshot() -> None:
    store = GatedStore([make_board("b1", [make_task("A", TaskStatus.PENDING)])])
    model = TaskBoardModel(store)

    slow = asyncio.create_task(model.load("b1"))
    await asyncio.sleep(0)

    await store.update_task("b1", "A", {"status": TaskStatus.COMPLETED})
    fast = asyncio.create_task(model.load("b1"))
    await asyncio.sleep(0)

    store.gates[1].set()
    await fast
    assert model.tasks[0].status == TaskStatus.COMPLETED

    store.gates[0].set()
    await slow
    assert model.tasks[0].status == TaskStatus.COMPLETED


@pytest.mark.asyncio
async def test_dependency_title_falls_back_to_short_id(store: FakeTaskStore) -> None:
    model = TaskBoardModel(store)
    await model.load("b1")
    assert model.dependency_title("A") == "Task A"
    assert model.dependency_title("0123456789abcdef") == "Task 01234567..."


def test_find_dependency_problems_reports_self_and_missing() -> None:
    tasks = [
        make_task("A", deps=("A",)),
        make_task("B", deps=("A", "ghost")),
    ]
    problems = {(p.task_id, p.dependency_id, p.kind) for p in find_dependency_problems(tasks)}
    assert problems == {("A", "A", "self"), ("B", "ghost", "missing")}


@pytest.mark.asyncio
async def test_clear_drops_snapshot_and_in_flight_load() -> None:
    store = GatedStore([make_board("b1", [make_task("A", TaskStatus.PENDING)])])
    model = TaskBoardModel(store)

    pending = asyncio.create_task(model.load("b1"))
    await asyncio.sleep(0)

    model.clear()
    store.gates[0].set()
    await pending

    assert model.board_id is None
    assert model.tasks == ()
    assert model.has_tasks is False
