# src/taskboard_supervisor/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the SQLite store, the local executor and the supervisor together.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from ..board.board_store import BoardStore
from ..board.bulk_reset import ResetPolicy
from ..config import Settings, get_settings
from ..core.ports import NotificationVariant
from ..executors.local import LocalExecutor, LocalExecutorConfig, echo_actor
from ..supervisor.sessions import SupervisorRegistry
from ..supervisor.supervisor import TaskBoardSupervisor

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


class ConsoleNotifier:
    """Prints notifications and board errors as timestamped console lines."""

    def notify(
            self,
            *,
            title: str,
            description: str,
            variant: NotificationVariant = "default",
    ) -> None:
        mark = "!!" if variant == "destructive" else "--"
        print(f"[{_ts_local()}] {mark} {title}: {description}", flush=True)

    def board_error(self, message: str) -> None:
        print(f"[{_ts_local()}] !! Board error: {message}", flush=True)


@dataclass(slots=True)
class SupervisorSession:
    settings: Settings
    store: BoardStore
    registry: SupervisorRegistry
    notifier: ConsoleNotifier


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def open_store(*, settings: Settings | None = None) -> BoardStore:
    if settings is None:
        settings = get_settings()
    _ensure_local_dirs(settings)
    return BoardStore(settings.db_path)


def create_session(*, settings: Settings | None = None, store: BoardStore | None = None) -> SupervisorSession:
    """
    Wire the SQLite store and the local executor into a supervisor registry.

    Supervisors are started through session.registry, which keeps at most one
    live supervisor per board.
    """
    if settings is None:
        settings = get_settings()
    if store is None:
        store = open_store(settings=settings)

    notifier = ConsoleNotifier()
    executor_config = LocalExecutorConfig(store=store, default_actor=echo_actor)
    reset_policy = ResetPolicy.from_setting(settings.reset_policy)

    def build_supervisor(board_id: str) -> TaskBoardSupervisor:
        logger.debug("Building supervisor board=%s", board_id)
        return TaskBoardSupervisor(
            store,
            LocalExecutor.factory(executor_config),
            context=settings,
            notifier=notifier,
            on_error=notifier.board_error,
            poll_interval_seconds=settings.poll_interval_seconds,
            start_delay_seconds=settings.start_delay_seconds,
            stuck_after_seconds=settings.stuck_after_seconds,
            reset_policy=reset_policy,
        )

    return SupervisorSession(
        settings=settings,
        store=store,
        registry=SupervisorRegistry(build_supervisor),
        notifier=notifier,
    )
