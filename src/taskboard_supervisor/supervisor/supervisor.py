# src/taskboard_supervisor/supervisor/supervisor.py

from __future__ import annotations

"""
Task board supervisor.

One instance supervises one board per session:
- start(): reload, verify the board, construct the executor, schedule a
  delayed background execution pass, then poll the store on a fixed period,
- reset(): in_progress -> pending, re-run the executor, reload (strictly in
  that order),
- cleanup(): cancel the session's tasks and dispose the executor.

Nothing raised inside the poll task, the background execution pass, or
reset() escapes: failures are logged and turned into the board-level error
signal or a notification.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

from ..board.board_model import TaskBoardModel
from ..board.bulk_reset import ResetPolicy, reset_in_progress_tasks
from ..board.stuck_detector import DEFAULT_STUCK_AFTER_SECONDS, StuckTask, find_stuck_tasks, is_stuck
from ..core.ports import ExecutorFactory, NotificationVariant, Notifier, TaskStore
from .executor_handle import ExecutorHandle

logger = logging.getLogger(__name__)

AsyncAction = Callable[[], Awaitable[Any]]

BOARD_NOT_FOUND_MESSAGE = "Board not found. It may have been deleted or never created."


class SupervisorState(StrEnum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"


class TaskBoardSupervisor:
    def __init__(
            self,
            store: TaskStore,
            executor_factory: ExecutorFactory,
            *,
            context: Any = None,
            execution_config: Any = None,
            notifier: Notifier | None = None,
            on_error: Callable[[str], None] | None = None,
            poll_interval_seconds: float = 3.0,
            start_delay_seconds: float = 1.0,
            stuck_after_seconds: float = DEFAULT_STUCK_AFTER_SECONDS,
            reset_policy: ResetPolicy = ResetPolicy.PRESERVE_STARTED_AT,
            clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._context = context
        self._notifier = notifier
        self._on_error = on_error

        self._poll_interval = max(0.01, float(poll_interval_seconds))
        self._start_delay = max(0.0, float(start_delay_seconds))
        self._stuck_after = float(stuck_after_seconds)
        self._reset_policy = reset_policy
        self._clock = clock

        self.model = TaskBoardModel(store)
        self._handle = ExecutorHandle(executor_factory, execution_config=execution_config)

        self._board_id: str | None = None
        self._state = SupervisorState.IDLE
        self._error: str | None = None

        self._poll_task: asyncio.Task[None] | None = None
        self._run_task: asyncio.Task[None] | None = None

        # Bumped by start() and cleanup(); a start() that sees a newer value
        # after an await has been superseded and must not schedule anything.
        self._generation = 0

    # ---- read-only signals ----

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def board_id(self) -> str | None:
        return self._board_id

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def executor_active(self) -> bool:
        return self._handle.is_active

    @property
    def polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    @property
    def has_stuck_tasks(self) -> bool:
        return is_stuck(self.model.tasks, self._clock(), stuck_after_seconds=self._stuck_after)

    @property
    def stuck_tasks(self) -> list[StuckTask]:
        return find_stuck_tasks(self.model.tasks, self._clock(), stuck_after_seconds=self._stuck_after)

    def clear_error(self) -> None:
        self._error = None

    # ---- lifecycle ----

    async def start(self, board_id: str | None, loader: AsyncAction | None = None) -> None:
        self._generation += 1
        generation = self._generation

        await self._cancel_session_tasks()
        self._handle.dispose_if_present()
        if self._superseded(generation):
            return

        self._state = SupervisorState.STARTING
        self._board_id = board_id or None
        load = loader or self.reload

        if self.model.board_id != self._board_id:
            self.model.clear()

        logger.info("Starting supervision board=%s", self._board_id)

        # Initial reload runs before anything else so callers see current state.
        await self._safe_load(load)
        if self._superseded(generation):
            return

        if not self._board_id:
            logger.info("No board ID available yet; not starting execution")
            self._state = SupervisorState.IDLE
            return

        board_id = self._board_id
        try:
            exists = await self.model.load(board_id) is not None
        except Exception as e:
            if self._superseded(generation):
                return
            logger.exception("Board verification failed board=%s", board_id)
            self._report_error(f"Error starting task execution: {e}")
            self._state = SupervisorState.IDLE
            return
        if self._superseded(generation):
            return

        if not exists:
            logger.error("Board %s not found", board_id)
            self._board_id = None
            self._report_error(BOARD_NOT_FOUND_MESSAGE)
            self._state = SupervisorState.IDLE
            return

        try:
            self._handle.construct(board_id, self._context)
        except Exception as e:
            logger.exception("Executor construction failed board=%s", board_id)
            self._report_error(f"Error starting task execution: {e}")
            self._state = SupervisorState.IDLE
            return

        self._run_task = asyncio.create_task(
            self._delayed_run_all(), name=f"taskboard-run-{board_id}"
        )
        self._poll_task = asyncio.create_task(
            self._poll_loop(load), name=f"taskboard-poll-{board_id}"
        )
        self._state = SupervisorState.RUNNING

    async def cleanup(self) -> None:
        logger.debug("Cleaning up supervisor board=%s", self._board_id)
        self._generation += 1
        await self._cancel_session_tasks()
        self._handle.dispose_if_present()
        self._state = SupervisorState.IDLE

    async def reload(self) -> None:
        """Default loader: refresh the model from the store."""
        if not self._board_id:
            logger.debug("No board ID available yet")
            return
        await self.model.load(self._board_id)

    async def reset(
            self,
            bulk_reset: AsyncAction | None = None,
            reload: AsyncAction | None = None,
    ) -> bool:
        """
        Recover stuck execution: reset in-progress tasks, re-run, reload.

        Steps run strictly one after another. A failure stops the sequence and
        is reported through the notifier; completed steps are not rolled back.
        """
        logger.info("Attempting to reset task execution board=%s", self._board_id)

        if not self._handle.is_active:
            if not self._board_id:
                logger.warning("No task executor available to reset")
                self._notify(
                    "Error",
                    "Cannot reset execution - no active executor and no board",
                    "destructive",
                )
                return False
            try:
                self._handle.construct(self._board_id, self._context)
            except Exception as e:
                logger.exception("Executor construction failed during reset")
                self._notify("Error", f"Failed to reset execution: {str(e) or 'Unknown error'}", "destructive")
                return False

        board_id = self._handle.board_id or self._board_id
        bulk = bulk_reset or (
            lambda: reset_in_progress_tasks(self._store, board_id, policy=self._reset_policy)
        )
        refresh = reload or self.reload
        executor = self._handle.executor

        self._state = SupervisorState.STARTING
        try:
            self._handle.reset_state()
            await bulk()
            await self._handle.run_all()
            await refresh()
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if (current is not None and current.cancelling()) or self._handle.executor is executor:
                raise
            # The executor was disposed under us (cleanup or restart).
            logger.warning("Reset interrupted: executor disposed board=%s", board_id)
            self._notify("Error", "Failed to reset execution: executor was disposed", "destructive")
            return False
        except Exception as e:
            logger.exception("Error resetting task execution")
            self._notify("Error", f"Failed to reset execution: {str(e) or 'Unknown error'}", "destructive")
            return False
        finally:
            self._state = SupervisorState.RUNNING if self.polling else SupervisorState.IDLE

        self._notify("Execution Reset", "Task execution has been reset and will continue")
        return True

    # ---- internals ----

    def _superseded(self, generation: int) -> bool:
        if generation == self._generation:
            return False
        logger.debug("start() superseded by a newer start/cleanup board=%s", self._board_id)
        return True

    async def _cancel_session_tasks(self) -> None:
        tasks = [t for t in (self._poll_task, self._run_task) if t is not None]
        self._poll_task = None
        self._run_task = None

        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _safe_load(self, load: AsyncAction) -> None:
        try:
            await load()
        except Exception as e:
            logger.exception("Error loading board tasks board=%s", self._board_id)
            self._report_error(f"Error refreshing tasks: {e}")

    async def _delayed_run_all(self) -> None:
        if self._start_delay > 0:
            await asyncio.sleep(self._start_delay)
        try:
            await self._handle.run_all()
        except Exception as e:
            logger.exception("Error executing tasks board=%s", self._board_id)
            self._report_error(f"Error executing tasks: {e}")

    async def _poll_loop(self, load: AsyncAction) -> None:
        # Each tick awaits the loader, so a slow load delays the next tick
        # instead of overlapping it.
        while True:
            await asyncio.sleep(self._poll_interval)
            await self._safe_load(load)

    def _report_error(self, message: str) -> None:
        self._error = message
        if self._on_error is None:
            return
        try:
            self._on_error(message)
        except Exception:
            logger.exception("on_error callback failed")

    def _notify(self, title: str, description: str, variant: NotificationVariant = "default") -> None:
        if self._notifier is None:
            log = logger.warning if variant == "destructive" else logger.info
            log("%s: %s", title, description)
            return
        try:
            self._notifier.notify(title=title, description=description, variant=variant)
        except Exception:
            logger.exception("Notifier failed title=%s", title)
