# tests/test_executor_handle.py

from __future__ import annotations

import pytest

from taskboard_supervisor.supervisor.executor_handle import ExecutorHandle

from .fakes import FakeExecutorFactory


def test_construct_binds_board_without_starting(executor_factory: FakeExecutorFactory) -> None:
    handle = ExecutorHandle(executor_factory, execution_config={"kernel": "python3"})

    executor = handle.construct("b1", context="ctx")

    assert handle.is_active
    assert handle.board_id == "b1"
    assert executor.board_id == "b1"
    assert executor.context == "ctx"
    assert executor.config == {"kernel": "python3"}
    assert executor.run_calls == 0


def test_dispose_if_present_is_idempotent(executor_factory: FakeExecutorFactory) -> None:
    handle = ExecutorHandle(executor_factory)
    assert handle.dispose_if_present() is False

    executor = handle.construct("b1")
    assert handle.dispose_if_present() is True
    assert handle.dispose_if_present() is False

    assert executor.dispose_calls == 1
    assert not handle.is_active


def test_construct_replaces_previous_executor(executor_factory: FakeExecutorFactory) -> None:
    handle = ExecutorHandle(executor_factory)
    first = handle.construct("b1")
    second = handle.construct("b1")

    assert first.dispose_calls == 1
    assert executor_factory.live == [second]


def test_construct_requires_board_id(executor_factory: FakeExecutorFactory) -> None:
    handle = ExecutorHandle(executor_factory)
    with pytest.raises(ValueError):
        handle.construct("")
    assert executor_factory.created == []


@pytest.mark.asyncio
async def test_run_all_delegates_to_executor(executor_factory: FakeExecutorFactory) -> None:
    handle = ExecutorHandle(executor_factory)
    with pytest.raises(RuntimeError):
        await handle.run_all()

    executor = handle.construct("b1")
    await handle.run_all()
    assert executor.run_calls == 1


def test_reset_state_calls_optional_hook(executor_factory: FakeExecutorFactory) -> None:
    handle = ExecutorHandle(executor_factory)
    handle.reset_state()  # no executor: no-op

    executor = handle.construct("b1")
    handle.reset_state()
    assert executor.reset_state_calls == 1
