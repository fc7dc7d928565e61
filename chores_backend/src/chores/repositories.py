from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from threading import RLock
from typing import Iterable, List, Optional

from .errors import PersistenceError
from .models import TaskEntity
from .schemas import TaskCreate
from .settings import Settings, get_settings


@dataclass(frozen=True)
class TaskQuery:
    """
    Filter for find_many. Unset fields do not constrain the result.

    - user / is_global / is_done: equality
    - rooms: membership (an empty set matches nothing)
    - next_due_before: next_due <= value (tasks without next_due never match)
    """
    user: Optional[str] = None
    is_global: Optional[bool] = None
    is_done: Optional[bool] = None
    rooms: Optional[frozenset] = None
    next_due_before: Optional[datetime] = None


def matches(task: TaskEntity, query: TaskQuery) -> bool:
    """Return True when the task satisfies every constraint set on the query."""
    if query.user is not None and task["user"] != query.user:
        return False
    if query.is_global is not None and task["is_global"] != query.is_global:
        return False
    if query.is_done is not None and task["is_done"] != query.is_done:
        return False
    if query.rooms is not None and task["room"] not in query.rooms:
        return False
    if query.next_due_before is not None:
        due = task["next_due"]
        if due is None or due > query.next_due_before:
            return False
    return True


def new_entity(task_id: int, data: TaskCreate, user: str) -> TaskEntity:
    """Build the stored form of a freshly created private task."""
    return {
        "id": task_id,
        "name": data.name,
        "description": data.description,
        "room": data.room,
        "what": list(data.what),
        "frequency": data.frequency.value,
        "time": data.time,
        "is_done": False,
        "date_done": None,
        "last_completed": None,
        "next_due": data.next_due,
        "is_global": False,
        "user": user,
    }


def _copy(task: TaskEntity) -> TaskEntity:
    copied = task.copy()
    copied["what"] = list(task["what"])
    return copied


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for task storage backends."""

    @abstractmethod
    def create(self, data: TaskCreate, user: str) -> TaskEntity:
        """Create and return a new private TaskEntity owned by user."""

    @abstractmethod
    def get(self, task_id: int) -> Optional[TaskEntity]:
        """Return a TaskEntity by id, or None if not found."""

    @abstractmethod
    def find_many(self, query: TaskQuery) -> List[TaskEntity]:
        """Return every TaskEntity matching the query, ordered by id."""

    @abstractmethod
    def save(self, task: TaskEntity) -> TaskEntity:
        """
        Overwrite an existing TaskEntity by id and return the stored copy.

        Raises PersistenceError when the id is not stored.
        """

    @abstractmethod
    def delete(self, task_id: int) -> Optional[TaskEntity]:
        """Delete a TaskEntity by id. Return the removed record or None if not found."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, TaskEntity] = {}
        self._next_id = 1

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def create(self, data: TaskCreate, user: str) -> TaskEntity:
        entity = new_entity(self._allocate_id(), data, user)
        with self._lock:
            self._items[entity["id"]] = entity
            return _copy(entity)

    def get(self, task_id: int) -> Optional[TaskEntity]:
        with self._lock:
            item = self._items.get(task_id)
            return None if item is None else _copy(item)

    def find_many(self, query: TaskQuery) -> List[TaskEntity]:
        with self._lock:
            items: Iterable[TaskEntity] = self._items.values()
            found = [_copy(t) for t in items if matches(t, query)]
        return sorted(found, key=lambda t: t["id"])

    def save(self, task: TaskEntity) -> TaskEntity:
        with self._lock:
            if task["id"] not in self._items:
                raise PersistenceError(f"task {task['id']} no longer exists")
            self._items[task["id"]] = _copy(task)
            return _copy(task)

    def delete(self, task_id: int) -> Optional[TaskEntity]:
        with self._lock:
            return self._items.pop(task_id, None)


def rooms_filter(rooms: Optional[Iterable[str]]) -> Optional[frozenset]:
    """Freeze a room collection for use in a TaskQuery; None means no room filter."""
    if rooms is None:
        return None
    return frozenset(rooms)


# PUBLIC_INTERFACE
def get_repository(settings: Optional[Settings] = None) -> Repository:
    """
    Factory to return the configured repository based on settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository (standard library sqlite3)
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(settings.sqlite_db_path)
    return InMemoryRepository()
