# tests/test_commands.py

from __future__ import annotations

import pytest

from taskboard_supervisor.board.models import TaskStatus
from taskboard_supervisor.cli.commands import CommandRegistry, registry
from taskboard_supervisor.supervisor.supervisor import TaskBoardSupervisor

from .fakes import FakeTaskStore, RecordingNotifier


@pytest.mark.asyncio
async def test_command_registry_routes_sync_and_async_handlers(supervisor: TaskBoardSupervisor) -> None:
    reg = CommandRegistry()
    called = {"sync": [], "async": []}

    def sync_handler(sup, args):
        called["sync"].append(args)
        return "sync"

    async def async_handler(sup, args):
        called["async"].append(args)
        return "async"

    reg.register("a", sync_handler, "a", aliases=["x"])
    reg.register("b", async_handler, "b")

    assert await reg.handle(supervisor, "/a one two") == "sync"
    assert await reg.handle(supervisor, "/X") == "sync"
    assert await reg.handle(supervisor, "/b") == "async"
    assert called == {"sync": [["one", "two"], []], "async": [[]]}


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(supervisor: TaskBoardSupervisor) -> None:
    reg = CommandRegistry()
    assert await reg.handle(supervisor, "hello") is None
    assert "Unknown command" in (await reg.handle(supervisor, "/nope") or "")
    assert "Empty command" in (await reg.handle(supervisor, "/") or "")


@pytest.mark.asyncio
async def test_help_lists_builtin_commands(supervisor: TaskBoardSupervisor) -> None:
    reply = await registry.handle(supervisor, "/help")
    for name in ("/status", "/tasks", "/stuck", "/reset", "/reload", "/exit"):
        assert name in reply


@pytest.mark.asyncio
async def test_status_and_tasks_reflect_loaded_board(supervisor: TaskBoardSupervisor) -> None:
    await supervisor.start("b1")

    status = await registry.handle(supervisor, "/status")
    assert "Board: b1" in status
    assert "3 total, 2 pending" in status
    assert "Stuck: YES - try /reset" in status

    tasks = await registry.handle(supervisor, "/tasks")
    assert "[completed] Task A" in tasks
    assert "[after: Task A]" in tasks

    assert await registry.handle(supervisor, "/tasks failed") == "No tasks."

    stuck = await registry.handle(supervisor, "/stuck")
    assert "Task B (ready_but_idle)" in stuck

    await supervisor.cleanup()


@pytest.mark.asyncio
async def test_reload_and_reset_commands(
    supervisor: TaskBoardSupervisor, store: FakeTaskStore, notifier: RecordingNotifier
) -> None:
    assert await registry.handle(supervisor, "/reset") == "Reset failed (see notification above)."
    assert notifier.sent[-1].variant == "destructive"

    await supervisor.start("b1")
    await store.update_task("b1", "B", {"status": TaskStatus.IN_PROGRESS, "started_at": 1.0})

    assert await registry.handle(supervisor, "/r") == "Reloaded 3 tasks."
    assert await registry.handle(supervisor, "/reset") == "Reset done."
    assert store.task("b1", "B").status == TaskStatus.PENDING

    await supervisor.cleanup()
