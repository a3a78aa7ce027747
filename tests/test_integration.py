# tests/test_integration.py

from __future__ import annotations

import asyncio
import dataclasses
from pathlib import Path

import pytest

from taskboard_supervisor.board.models import TaskStatus
from taskboard_supervisor.cli.bootstrap import create_session
from taskboard_supervisor.cli.main import build_parser, run_add_task, run_create_board, run_list_boards
from taskboard_supervisor.config import Settings, get_settings
from taskboard_supervisor.supervisor.supervisor import SupervisorState


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return dataclasses.replace(
        get_settings(),
        log_to_file=False,
        data_dir=tmp_path,
        db_path=tmp_path / "boards.sqlite3",
        poll_interval_seconds=0.01,
        start_delay_seconds=0.0,
        actor_delay_seconds=0.0,
        reset_policy="clear",
    )


async def _wait_all_terminal(session, board_id: str, timeout: float = 2.0) -> None:
    async def done() -> bool:
        board = await session.store.get_board(board_id)
        return all(t.status in (TaskStatus.COMPLETED, TaskStatus.FAILED) for t in board.tasks)

    async def loop() -> None:
        while not await done():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(loop(), timeout=timeout)


@pytest.mark.asyncio
async def test_supervised_board_runs_to_completion(settings: Settings) -> None:
    session = create_session(settings=settings)
    store = session.store
    board_id = store.create_board("Quarterly report")
    a = store.add_task(board_id, title="Collect data", actor_type="researcher")
    b = store.add_task(board_id, title="Write summary", actor_type="composer", dependencies=[a])

    try:
        sup = await session.registry.start(board_id)
        assert sup.state == SupervisorState.RUNNING
        assert session.registry.get(board_id) is sup
        await _wait_all_terminal(session, board_id)
    finally:
        await session.registry.close_all()

    board = store.get_board_sync(board_id)
    results = {t.id: t.result for t in board.tasks}
    assert results[b] == {"title": "Write summary", "text": "Write summary"}
    assert sup.error is None


@pytest.mark.asyncio
async def test_reset_recovers_tasks_left_in_progress(settings: Settings) -> None:
    session = create_session(settings=settings)
    store = session.store
    board_id = store.create_board("Crashed run")
    a = store.add_task(board_id, title="Collect data", actor_type="researcher")
    store.add_task(board_id, title="Write summary", actor_type="composer", dependencies=[a])

    # Simulate a previous process that died mid-task.
    store.update_task_sync(board_id, a, {"status": TaskStatus.IN_PROGRESS, "started_at": 1.0})

    try:
        supervisor = await session.registry.start(board_id)
        await asyncio.sleep(0.05)
        assert supervisor.has_stuck_tasks

        assert await supervisor.reset() is True
        await _wait_all_terminal(session, board_id)
        await supervisor.reload()
        assert not supervisor.has_stuck_tasks
    finally:
        await session.registry.close_all()

    statuses = {t.status for t in store.get_board_sync(board_id).tasks}
    assert statuses == {TaskStatus.COMPLETED}


@pytest.mark.asyncio
async def test_supervising_missing_board_reports_not_found(settings: Settings) -> None:
    session = create_session(settings=settings)
    supervisor = await session.registry.start("does-not-exist")
    assert supervisor.error is not None
    assert "Board not found" in supervisor.error
    assert supervisor.board_id is None
    assert not supervisor.executor_active
    await session.registry.close_all()
    assert session.registry.board_ids() == []


def test_cli_board_and_task_commands(settings: Settings, capsys: pytest.CaptureFixture[str]) -> None:
    parser = build_parser()

    assert run_create_board(parser.parse_args(["create-board", "Demo"]), settings) == 0
    board_id = capsys.readouterr().out.strip()

    assert run_add_task(parser.parse_args(["add-task", board_id, "First"]), settings) == 0
    first = capsys.readouterr().out.strip()

    args = parser.parse_args(["add-task", board_id, "Second", "--actor", "coder", "--depends-on", first])
    assert run_add_task(args, settings) == 0
    capsys.readouterr()

    bad = parser.parse_args(["add-task", board_id, "Third", "--depends-on", "ghost"])
    assert run_add_task(bad, settings) == 1
    assert "unknown dependencies" in capsys.readouterr().err

    assert run_list_boards(parser.parse_args(["list-boards"]), settings) == 0
    assert f"{board_id}  Demo  (2 tasks)" in capsys.readouterr().out
