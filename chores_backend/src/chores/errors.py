from __future__ import annotations


class ChoresError(Exception):
    """Base class for service-level errors."""


# PUBLIC_INTERFACE
class TaskNotFound(ChoresError):
    """Raised when a task id does not resolve to a stored (or visible) task."""

    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


# PUBLIC_INTERFACE
class PersistenceError(ChoresError):
    """Raised when the store is unreachable or rejects a write."""
