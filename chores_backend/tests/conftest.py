from __future__ import annotations

from datetime import datetime

import pytest

from src.chores.repositories import InMemoryRepository
from src.chores.schemas import TaskCreate


class FixedClock:
    """Clock pinned to a settable instant."""

    def __init__(self, at: datetime) -> None:
        self.at = at

    def now(self) -> datetime:
        return self.at


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 1, 8, 0, 0, 0))


@pytest.fixture()
def repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture()
def make_task(repo):
    """
    Insert a task directly through the repository.

    Extra keyword arguments overwrite stored fields after creation, which is how
    tests get global tasks or tasks that are already done.
    """

    def _make(user: str = "alice", name: str = "Chore", room: str = "kitchen", frequency="weekly", **fields):
        created = repo.create(TaskCreate(name=name, room=room, frequency=frequency), user)
        if fields:
            created.update(fields)
            created = repo.save(created)
        return created

    return _make
