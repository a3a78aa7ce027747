# src/taskboard_supervisor/board/board_store.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import sqlite3
import time
import uuid
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from ..core.ports import TaskPatch
from .models import Board, Task, TaskStatus

logger = logging.getLogger(__name__)

# Patch keys accepted by update_task and how each is stored.
_PATCHABLE = {
    "status": "status",
    "started_at": "started_at",
    "completed_at": "completed_at",
    "result": "result",
    "error": "error",
    "title": "title",
    "description": "description",
}


class BoardStore:
    """
    SQLite board/task store.

    The schema is intentionally simple and migration-safe:
    - create tables if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection, so the async port methods
      can run the sync ones in worker threads
    """

    def __init__(self, db_path: str | Path = "boards.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except sqlite3.Error:
            total = -1
        logger.info("BoardStore ready db=%s tasks=%s", self._db_path, total)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS boards (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    created_at REAL NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    board_id TEXT NOT NULL REFERENCES boards(id),
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    actor_type TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'pending',
                    dependencies TEXT NOT NULL DEFAULT '[]',
                    created_at REAL NOT NULL,
                    started_at REAL,
                    completed_at REAL,
                    result TEXT,
                    error TEXT
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("BoardStore migration: added column %s", name)

            add_col("description", "TEXT NOT NULL DEFAULT ''")
            add_col("dependencies", "TEXT NOT NULL DEFAULT '[]'")
            add_col("started_at", "REAL")
            add_col("completed_at", "REAL")
            add_col("result", "TEXT")
            add_col("error", "TEXT")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_board_status ON tasks(board_id, status)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _json_dump(value: Any) -> str | None:
        if value is None:
            return None
        try:
            return json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError):
            logger.exception("Failed to JSON-encode task result; storing its str().")
            return json.dumps(str(value), ensure_ascii=False)

    @staticmethod
    def _json_load(s: str | None, default: Any = None) -> Any:
        if s is None:
            return default
        try:
            return json.loads(s)
        except ValueError:
            return default

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        deps = self._json_load(row["dependencies"], [])
        return Task(
            id=str(row["id"]),
            board_id=str(row["board_id"]),
            title=str(row["title"] or ""),
            description=str(row["description"] or ""),
            actor_type=str(row["actor_type"] or ""),
            status=TaskStatus.from_db(row["status"]),
            dependencies=tuple(str(d) for d in deps) if isinstance(deps, list) else (),
            created_at=float(row["created_at"] or 0.0),
            started_at=float(row["started_at"]) if row["started_at"] is not None else None,
            completed_at=float(row["completed_at"]) if row["completed_at"] is not None else None,
            result=self._json_load(row["result"]),
            error=row["error"],
        )

    # ---- sync API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def create_board(self, title: str, *, board_id: str | None = None) -> str:
        if not title or not title.strip():
            raise ValueError("title is required")

        board_id = board_id or str(uuid.uuid4())
        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT INTO boards(id, title, created_at) VALUES (?, ?, ?)",
                (board_id, title.strip(), time.time()),
            )
            conn.commit()
        finally:
            conn.close()

        logger.debug("Board created id=%s title=%s", board_id, title)
        return board_id

    def list_boards(self) -> list[tuple[str, str, int]]:
        """(board_id, title, task_count) ordered by creation time."""
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT b.id, b.title, COUNT(t.id) AS n
                FROM boards b
                LEFT JOIN tasks t ON t.board_id = b.id
                GROUP BY b.id
                ORDER BY b.created_at ASC
                """
            )
            return [(str(r["id"]), str(r["title"]), int(r["n"])) for r in cur.fetchall()]
        finally:
            conn.close()

    def add_task(
            self,
            board_id: str,
            *,
            title: str,
            actor_type: str,
            description: str = "",
            dependencies: Iterable[str] = (),
            task_id: str | None = None,
    ) -> str:
        if not title or not title.strip():
            raise ValueError("title is required")
        if not actor_type or not actor_type.strip():
            raise ValueError("actor_type is required")

        task_id = task_id or str(uuid.uuid4())
        deps = list(dict.fromkeys(str(d) for d in dependencies))
        if task_id in deps:
            raise ValueError(f"task {task_id} cannot depend on itself")

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT 1 FROM boards WHERE id = ?", (board_id,))
            if cur.fetchone() is None:
                raise ValueError(f"board {board_id} not found")

            if deps:
                placeholders = ",".join("?" for _ in deps)
                cur.execute(
                    f"SELECT id FROM tasks WHERE board_id = ? AND id IN ({placeholders})",
                    (board_id, *deps),
                )
                found = {r["id"] for r in cur.fetchall()}
                missing = [d for d in deps if d not in found]
                if missing:
                    raise ValueError(f"unknown dependencies on board {board_id}: {', '.join(missing)}")

            cur.execute(
                """
                INSERT INTO tasks(
                    id, board_id, title, description, actor_type,
                    status, dependencies, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task_id,
                    board_id,
                    title.strip(),
                    description.strip(),
                    actor_type.strip(),
                    TaskStatus.PENDING.value,
                    json.dumps(deps),
                    time.time(),
                ),
            )
            conn.commit()
        finally:
            conn.close()

        logger.debug("Task added id=%s board=%s actor=%s deps=%s", task_id, board_id, actor_type, deps)
        return task_id

    def get_board_sync(self, board_id: str) -> Board | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM boards WHERE id = ?", (board_id,))
            row = cur.fetchone()
            if row is None:
                return None

            cur.execute(
                "SELECT * FROM tasks WHERE board_id = ? ORDER BY created_at ASC, rowid ASC",
                (board_id,),
            )
            tasks = tuple(self._row_to_task(r) for r in cur.fetchall())
            return Board(
                id=str(row["id"]),
                title=str(row["title"]),
                created_at=float(row["created_at"] or 0.0),
                tasks=tasks,
            )
        finally:
            conn.close()

    def update_task_sync(self, board_id: str, task_id: str, patch: TaskPatch) -> None:
        unknown = set(patch) - set(_PATCHABLE)
        if unknown:
            raise ValueError(f"unsupported task fields: {', '.join(sorted(unknown))}")
        if not patch:
            return

        fields: list[str] = []
        params: list[Any] = []

        for key, value in patch.items():
            fields.append(f"{_PATCHABLE[key]} = ?")
            if key == "status":
                params.append(TaskStatus(value).value)
            elif key == "result":
                params.append(self._json_dump(value))
            else:
                params.append(value)

        params.extend([board_id, task_id])
        sql = f"UPDATE tasks SET {', '.join(fields)} WHERE board_id = ? AND id = ?"

        conn = self._get_conn()
        try:
            cur = conn.execute(sql, params)
            conn.commit()
            if cur.rowcount == 0:
                logger.warning("update_task matched nothing board=%s task=%s", board_id, task_id)
        finally:
            conn.close()

    # ---- TaskStore port ----

    async def get_board(self, board_id: str) -> Board | None:
        return await asyncio.to_thread(self.get_board_sync, board_id)

    async def update_task(self, board_id: str, task_id: str, patch: TaskPatch) -> None:
        await asyncio.to_thread(self.update_task_sync, board_id, task_id, patch)
