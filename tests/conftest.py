# tests/conftest.py

from __future__ import annotations

import pytest

from taskboard_supervisor.board.models import TaskStatus
from taskboard_supervisor.supervisor.supervisor import TaskBoardSupervisor

from .fakes import FakeExecutorFactory, FakeTaskStore, RecordingNotifier, make_board, make_task


@pytest.fixture()
def store() -> FakeTaskStore:
    """Board b1: A completed, B pending after A, C pending after B."""
    return FakeTaskStore(
        [
            make_board(
                "b1",
                [
                    make_task("A", TaskStatus.COMPLETED),
                    make_task("B", TaskStatus.PENDING, deps=("A",)),
                    make_task("C", TaskStatus.PENDING, deps=("B",)),
                ],
            ),
            make_board("empty", []),
        ]
    )


@pytest.fixture()
def executor_factory() -> FakeExecutorFactory:
    return FakeExecutorFactory()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def errors() -> list[str]:
    return []


@pytest.fixture()
def supervisor(
    store: FakeTaskStore,
    executor_factory: FakeExecutorFactory,
    notifier: RecordingNotifier,
    errors: list[str],
) -> TaskBoardSupervisor:
    """
    Supervisor with fast timings.

    The start-up execution pass is delayed far into the future so tests that
    care about it set start_delay_seconds themselves.
    """
    return TaskBoardSupervisor(
        store,
        executor_factory,
        notifier=notifier,
        on_error=errors.append,
        poll_interval_seconds=0.01,
        start_delay_seconds=60.0,
    )
