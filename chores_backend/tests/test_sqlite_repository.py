from datetime import datetime, timedelta

import pytest

from src.chores.db import SQLiteRepository
from src.chores.errors import PersistenceError
from src.chores.repositories import TaskQuery, get_repository
from src.chores.schemas import TaskCreate
from src.chores.settings import Settings
from src.chores.sweeper import DueDateSweeper


@pytest.fixture()
def sqlite_repo(tmp_path):
    return SQLiteRepository(str(tmp_path / "data" / "chores.db"))


def create(repo, user="alice", **kwargs):
    kwargs.setdefault("name", "Chore")
    kwargs.setdefault("frequency", "weekly")
    return repo.create(TaskCreate(**kwargs), user)


class TestSQLiteRepository:
    def test_create_and_get_round_trip(self, sqlite_repo):
        created = create(
            sqlite_repo,
            name="Descale kettle",
            room="kitchen",
            what=["vinegar", "rinse"],
            frequency="Mensuelle",
            time="10min",
            next_due="2024-03-01T07:30:00",
        )
        fetched = sqlite_repo.get(created["id"])
        assert fetched == created
        assert fetched["what"] == ["vinegar", "rinse"]
        assert fetched["frequency"] == "monthly"
        assert fetched["next_due"] == datetime(2024, 3, 1, 7, 30)
        assert fetched["is_global"] is False
        assert fetched["user"] == "alice"

    def test_get_missing(self, sqlite_repo):
        assert sqlite_repo.get(12345) is None

    def test_save_updates_existing_row(self, sqlite_repo):
        task = create(sqlite_repo)
        task["is_done"] = True
        task["last_completed"] = datetime(2024, 1, 8, 12, 0, 0, 250000)
        sqlite_repo.save(task)
        stored = sqlite_repo.get(task["id"])
        assert stored["is_done"] is True
        assert stored["last_completed"] == datetime(2024, 1, 8, 12, 0, 0, 250000)

    def test_save_does_not_recreate_deleted_row(self, sqlite_repo):
        task = create(sqlite_repo)
        sqlite_repo.delete(task["id"])
        task["is_done"] = True
        with pytest.raises(PersistenceError):
            sqlite_repo.save(task)
        assert sqlite_repo.get(task["id"]) is None

    def test_find_many_filters(self, sqlite_repo):
        mine = create(sqlite_repo, room="kitchen")
        bath = create(sqlite_repo, room="bathroom")
        shared = create(sqlite_repo, user="bob", room="kitchen")
        shared["is_global"] = True
        sqlite_repo.save(shared)

        def ids(query):
            return [t["id"] for t in sqlite_repo.find_many(query)]

        assert ids(TaskQuery(user="alice")) == [mine["id"], bath["id"]]
        assert ids(TaskQuery(is_global=True)) == [shared["id"]]
        assert ids(TaskQuery(rooms=frozenset({"kitchen"}))) == [mine["id"], shared["id"]]
        assert ids(TaskQuery(rooms=frozenset())) == []
        assert ids(TaskQuery(user="alice", is_done=True)) == []

    def test_find_many_due_before(self, sqlite_repo):
        now = datetime(2024, 1, 8)
        overdue = create(sqlite_repo, next_due=now - timedelta(microseconds=1))
        exact = create(sqlite_repo, next_due=now)
        create(sqlite_repo, next_due=now + timedelta(seconds=1))
        create(sqlite_repo)
        found = sqlite_repo.find_many(TaskQuery(next_due_before=now))
        assert [t["id"] for t in found] == [overdue["id"], exact["id"]]

    def test_delete_returns_removed_record(self, sqlite_repo):
        task = create(sqlite_repo, name="Water plants")
        removed = sqlite_repo.delete(task["id"])
        assert removed["name"] == "Water plants"
        assert sqlite_repo.get(task["id"]) is None
        assert sqlite_repo.delete(task["id"]) is None

    def test_sweeper_against_sqlite(self, sqlite_repo):
        task = create(sqlite_repo, frequency="weekly", next_due="2024-01-07")

        class Clock:
            def now(self):
                return datetime(2024, 1, 8)

        result = DueDateSweeper(sqlite_repo, Clock()).sweep_once()
        assert result.advanced == [task["id"]]
        assert sqlite_repo.get(task["id"])["next_due"] == datetime(2024, 1, 15)

    def test_storage_errors_become_persistence_errors(self, sqlite_repo, tmp_path):
        sqlite_repo._db_path = str(tmp_path / "missing-dir" / "nested" / "chores.db")
        with pytest.raises(PersistenceError):
            sqlite_repo.get(1)


class TestRepositoryFactory:
    def test_memory_by_default(self):
        repo = get_repository(Settings())
        assert type(repo).__name__ == "InMemoryRepository"

    def test_sqlite_backend(self, tmp_path):
        settings = Settings(persistence_backend="sqlite", sqlite_db_path=str(tmp_path / "x.db"))
        assert isinstance(get_repository(settings), SQLiteRepository)
