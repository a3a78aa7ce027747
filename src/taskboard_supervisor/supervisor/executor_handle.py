# src/taskboard_supervisor/supervisor/executor_handle.py

from __future__ import annotations

import logging
from typing import Any

from ..core.ports import Executor, ExecutorFactory

logger = logging.getLogger(__name__)


class ExecutorHandle:
    """
    Owns at most one Executor instance for a supervisor session.

    dispose() is called exactly once per constructed instance; the reference
    is cleared right after so a second dispose_if_present() is a no-op.
    """

    def __init__(self, factory: ExecutorFactory, *, execution_config: Any = None) -> None:
        self._factory = factory
        self._execution_config = execution_config
        self._executor: Executor | None = None
        self._board_id: str | None = None

    @property
    def executor(self) -> Executor | None:
        return self._executor

    @property
    def board_id(self) -> str | None:
        return self._board_id

    @property
    def is_active(self) -> bool:
        return self._executor is not None

    def construct(self, board_id: str, context: Any = None) -> Executor:
        """Build a fresh executor bound to board_id. Does not start execution."""
        if not board_id:
            raise ValueError("board_id is required")

        self.dispose_if_present()

        executor = self._factory(board_id, context, self._execution_config)
        self._executor = executor
        self._board_id = board_id
        logger.info("Executor constructed board=%s", board_id)
        return executor

    def dispose_if_present(self) -> bool:
        executor = self._executor
        if executor is None:
            return False

        # Clear first: the instance must never be disposed twice.
        self._executor = None
        board_id = self._board_id
        self._board_id = None

        try:
            executor.dispose()
        except Exception:
            logger.exception("Executor dispose failed board=%s", board_id)
        else:
            logger.info("Executor disposed board=%s", board_id)
        return True

    def reset_state(self) -> None:
        executor = self._executor
        hook = getattr(executor, "reset_state", None)
        if callable(hook):
            hook()

    async def run_all(self) -> None:
        """Trigger a full pass over all startable tasks (delegated to the executor)."""
        executor = self._executor
        if executor is None:
            raise RuntimeError("no active executor")
        await executor.execute_all_tasks()
