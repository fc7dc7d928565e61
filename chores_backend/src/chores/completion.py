from __future__ import annotations

import logging
from typing import Optional

from .clock import Clock, SystemClock
from .errors import TaskNotFound
from .frequency import next_due
from .models import TaskEntity
from .repositories import Repository
from .schemas import TaskCreate

logger = logging.getLogger("chores.tasks")


# PUBLIC_INTERFACE
class TaskCompletionWorkflow:
    """
    Write path for tasks: creation, the two completion paths, and deletion.

    mark_done carries the full completion bookkeeping (timestamps and the next
    occurrence). patch_done_flag writes only the flag; both are kept because
    historical data depends on which path was used.
    """

    def __init__(self, repo: Repository, clock: Optional[Clock] = None) -> None:
        self.repo = repo
        self.clock = clock or SystemClock()

    def _load(self, task_id: int) -> TaskEntity:
        task = self.repo.get(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    def create(self, requester_id: str, data: TaskCreate) -> TaskEntity:
        task = self.repo.create(data, requester_id)
        logger.info("task %s created by %s (room=%s, frequency=%s)", task["id"], requester_id, task["room"], task["frequency"])
        return task

    def mark_done(self, task_id: int) -> TaskEntity:
        task = self._load(task_id)
        now = self.clock.now()
        task["is_done"] = True
        task["date_done"] = now
        task["last_completed"] = now
        task["next_due"] = next_due(task["frequency"], now)
        saved = self.repo.save(task)
        logger.info("task %s marked done, next due %s", task_id, saved["next_due"])
        return saved

    def mark_undone(self, task_id: int) -> TaskEntity:
        task = self._load(task_id)
        task["is_done"] = False
        saved = self.repo.save(task)
        logger.info("task %s marked undone", task_id)
        return saved

    def patch_done_flag(self, task_id: int, is_done: bool) -> TaskEntity:
        """Overwrite is_done without touching any timestamp."""
        task = self._load(task_id)
        task["is_done"] = is_done
        return self.repo.save(task)

    def delete(self, task_id: int) -> TaskEntity:
        removed = self.repo.delete(task_id)
        if removed is None:
            raise TaskNotFound(task_id)
        logger.info("task %s deleted", task_id)
        return removed
