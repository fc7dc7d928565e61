from __future__ import annotations

import json
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Generator, List, Optional

from .errors import PersistenceError
from .models import TaskEntity
from .repositories import Repository, TaskQuery, new_entity
from .schemas import TaskCreate


@dataclass(frozen=True)
class _Cols:
    table: str = "tasks"
    id: str = "id"
    name: str = "name"
    description: str = "description"
    room: str = "room"
    what: str = "what"
    frequency: str = "frequency"
    time: str = "time"
    is_done: str = "is_done"
    date_done: str = "date_done"
    last_completed: str = "last_completed"
    next_due: str = "next_due"
    is_global: str = "is_global"
    user: str = "user"


_COLS = _Cols()

_WRITE_COLUMNS = (
    _COLS.name,
    _COLS.description,
    _COLS.room,
    _COLS.what,
    _COLS.frequency,
    _COLS.time,
    _COLS.is_done,
    _COLS.date_done,
    _COLS.last_completed,
    _COLS.next_due,
    _COLS.is_global,
    _COLS.user,
)


def _dt_to_text(value: Optional[datetime]) -> Optional[str]:
    # Fixed-width ISO text keeps lexical and chronological order aligned.
    return value.isoformat(timespec="microseconds") if value else None


def _text_to_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as e:
            raise PersistenceError(f"cannot open {self._db_path}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(str(e)) from e
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_COLS.name} TEXT NOT NULL,
                    {_COLS.description} TEXT NULL,
                    {_COLS.room} TEXT NULL,
                    {_COLS.what} TEXT NOT NULL DEFAULT '[]',
                    {_COLS.frequency} TEXT NULL,
                    {_COLS.time} TEXT NULL,
                    {_COLS.is_done} INTEGER NOT NULL DEFAULT 0,
                    {_COLS.date_done} TEXT NULL,
                    {_COLS.last_completed} TEXT NULL,
                    {_COLS.next_due} TEXT NULL,
                    {_COLS.is_global} INTEGER NOT NULL DEFAULT 0,
                    "{_COLS.user}" TEXT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_next_due ON {_COLS.table}({_COLS.next_due})"
            )
            conn.execute(
                f'CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_user ON {_COLS.table}("{_COLS.user}")'
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_room ON {_COLS.table}({_COLS.room})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TaskEntity:
        return {
            "id": int(row[_COLS.id]),
            "name": str(row[_COLS.name]),
            "description": row[_COLS.description],
            "room": row[_COLS.room],
            "what": json.loads(row[_COLS.what] or "[]"),
            "frequency": row[_COLS.frequency],
            "time": row[_COLS.time],
            "is_done": bool(row[_COLS.is_done]),
            "date_done": _text_to_dt(row[_COLS.date_done]),
            "last_completed": _text_to_dt(row[_COLS.last_completed]),
            "next_due": _text_to_dt(row[_COLS.next_due]),
            "is_global": bool(row[_COLS.is_global]),
            "user": row[_COLS.user],
        }

    def _entity_values(self, task: TaskEntity) -> tuple:
        return (
            task["name"],
            task["description"],
            task["room"],
            json.dumps(list(task["what"]), ensure_ascii=False),
            task["frequency"],
            task["time"],
            1 if task["is_done"] else 0,
            _dt_to_text(task["date_done"]),
            _dt_to_text(task["last_completed"]),
            _dt_to_text(task["next_due"]),
            1 if task["is_global"] else 0,
            task["user"],
        )

    def _select_one(self, conn: sqlite3.Connection, task_id: int) -> Optional[TaskEntity]:
        row = conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,)).fetchone()
        return self._row_to_entity(row) if row else None

    def create(self, data: TaskCreate, user: str) -> TaskEntity:
        # id is assigned by AUTOINCREMENT; 0 is a placeholder that is never written
        draft = new_entity(0, data, user)
        columns = ", ".join(f'"{c}"' for c in _WRITE_COLUMNS)
        placeholders = ", ".join("?" for _ in _WRITE_COLUMNS)
        with self._conn() as conn:
            cur = conn.execute(
                f"INSERT INTO {_COLS.table} ({columns}) VALUES ({placeholders})",
                self._entity_values(draft),
            )
            created = self._select_one(conn, int(cur.lastrowid))
            assert created is not None
            return created

    def get(self, task_id: int) -> Optional[TaskEntity]:
        with self._conn() as conn:
            return self._select_one(conn, task_id)

    def find_many(self, query: TaskQuery) -> List[TaskEntity]:
        clauses = []
        params: list = []

        if query.user is not None:
            clauses.append(f'"{_COLS.user}" = ?')
            params.append(query.user)

        if query.is_global is not None:
            clauses.append(f"{_COLS.is_global} = ?")
            params.append(1 if query.is_global else 0)

        if query.is_done is not None:
            clauses.append(f"{_COLS.is_done} = ?")
            params.append(1 if query.is_done else 0)

        if query.rooms is not None:
            if not query.rooms:
                return []
            rooms = sorted(query.rooms)
            clauses.append(f"{_COLS.room} IN ({', '.join('?' for _ in rooms)})")
            params.extend(rooms)

        if query.next_due_before is not None:
            clauses.append(f"{_COLS.next_due} IS NOT NULL AND {_COLS.next_due} <= ?")
            params.append(_dt_to_text(query.next_due_before))

        where_sql = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_COLS.table} {where_sql} ORDER BY {_COLS.id} ASC",
                params,
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def save(self, task: TaskEntity) -> TaskEntity:
        assignments = ", ".join(f'"{c}" = ?' for c in _WRITE_COLUMNS)
        with self._conn() as conn:
            cur = conn.execute(
                f"UPDATE {_COLS.table} SET {assignments} WHERE {_COLS.id} = ?",
                (*self._entity_values(task), task["id"]),
            )
            if cur.rowcount == 0:
                raise PersistenceError(f"task {task['id']} no longer exists")
            saved = self._select_one(conn, task["id"])
            assert saved is not None
            return saved

    def delete(self, task_id: int) -> Optional[TaskEntity]:
        with self._conn() as conn:
            existing = self._select_one(conn, task_id)
            if existing is None:
                return None
            conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,))
            return existing
