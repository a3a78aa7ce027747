# src/taskboard_supervisor/supervisor/sessions.py

from __future__ import annotations

import logging
from collections.abc import Callable

from .supervisor import TaskBoardSupervisor

logger = logging.getLogger(__name__)

SupervisorFactory = Callable[[str], TaskBoardSupervisor]


class SupervisorRegistry:
    """
    At most one live supervisor session per board.

    Starting a board that already has a session cleans the old one up first.
    """

    def __init__(self, factory: SupervisorFactory) -> None:
        self._factory = factory
        self._sessions: dict[str, TaskBoardSupervisor] = {}

    def get(self, board_id: str) -> TaskBoardSupervisor | None:
        return self._sessions.get(board_id)

    def board_ids(self) -> list[str]:
        return list(self._sessions)

    async def start(self, board_id: str) -> TaskBoardSupervisor:
        if not board_id:
            raise ValueError("board_id is required")

        old = self._sessions.pop(board_id, None)
        if old is not None:
            logger.info("Replacing existing supervisor session board=%s", board_id)
            await old.cleanup()

        supervisor = self._factory(board_id)
        self._sessions[board_id] = supervisor
        await supervisor.start(board_id)
        return supervisor

    async def stop(self, board_id: str) -> bool:
        supervisor = self._sessions.pop(board_id, None)
        if supervisor is None:
            return False
        await supervisor.cleanup()
        return True

    async def close_all(self) -> None:
        for board_id in list(self._sessions):
            await self.stop(board_id)
