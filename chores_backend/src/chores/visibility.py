from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .errors import TaskNotFound
from .models import TaskEntity
from .repositories import Repository, TaskQuery, rooms_filter


# PUBLIC_INTERFACE
class TaskVisibilityPolicy:
    """
    Decides which tasks a requester may read.

    A task is visible when the requester owns it or it is global. Optional
    filters narrow the result to a set of rooms and/or completed tasks.
    """

    def __init__(self, repo: Repository) -> None:
        self.repo = repo

    def list_visible(
        self,
        requester_id: str,
        rooms: Optional[Iterable[str]] = None,
        completed_only: bool = False,
    ) -> List[TaskEntity]:
        """Return owned-or-global tasks, ordered by id."""
        room_set = rooms_filter(rooms)
        is_done = True if completed_only else None
        owned = self.repo.find_many(TaskQuery(user=requester_id, rooms=room_set, is_done=is_done))
        shared = self.repo.find_many(TaskQuery(is_global=True, rooms=room_set, is_done=is_done))
        return _merge(owned, shared)

    def list_global(self, rooms: Optional[Iterable[str]] = None) -> List[TaskEntity]:
        """Return every global task; no requester is involved."""
        return self.repo.find_many(TaskQuery(is_global=True, rooms=rooms_filter(rooms)))

    def get_visible(self, requester_id: str, task_id: int) -> TaskEntity:
        task = self.repo.get(task_id)
        if task is None or not is_visible_to(task, requester_id):
            raise TaskNotFound(task_id)
        return task


def is_visible_to(task: TaskEntity, requester_id: Optional[str]) -> bool:
    return task["is_global"] or (requester_id is not None and task["user"] == requester_id)


def _merge(*groups: List[TaskEntity]) -> List[TaskEntity]:
    # A global task owned by the requester shows up in both groups.
    by_id: Dict[int, TaskEntity] = {}
    for group in groups:
        for task in group:
            by_id.setdefault(task["id"], task)
    return [by_id[k] for k in sorted(by_id)]
