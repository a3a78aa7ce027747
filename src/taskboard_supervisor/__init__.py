"""Task board supervisor: watches a board of dependent tasks and keeps execution moving."""

from .board.board_model import TaskBoardModel
from .board.bulk_reset import ResetPolicy, reset_in_progress_tasks
from .board.models import ActorType, Board, Task, TaskStatus
from .board.stuck_detector import StuckReason, StuckTask, find_stuck_tasks, is_stuck
from .supervisor.executor_handle import ExecutorHandle
from .supervisor.sessions import SupervisorRegistry
from .supervisor.supervisor import SupervisorState, TaskBoardSupervisor

__all__ = [
    "ActorType",
    "Board",
    "ExecutorHandle",
    "ResetPolicy",
    "StuckReason",
    "StuckTask",
    "SupervisorRegistry",
    "SupervisorState",
    "Task",
    "TaskBoardModel",
    "TaskBoardSupervisor",
    "TaskStatus",
    "find_stuck_tasks",
    "is_stuck",
    "reset_in_progress_tasks",
]
