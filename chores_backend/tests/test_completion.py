from datetime import datetime, timedelta

import pytest

from src.chores.completion import TaskCompletionWorkflow
from pydantic import ValidationError

from src.chores.errors import TaskNotFound
from src.chores.schemas import TaskCreate


@pytest.fixture()
def workflow(repo, clock):
    return TaskCompletionWorkflow(repo, clock)


class TestCreate:
    def test_created_task_is_private_and_open(self, workflow):
        task = workflow.create("alice", TaskCreate(name="Mop", room="hall", frequency="Hebdomadaire"))
        assert task["user"] == "alice"
        assert task["is_global"] is False
        assert task["is_done"] is False
        assert task["frequency"] == "weekly"
        assert task["next_due"] is None

    def test_frequency_is_required(self, workflow):
        with pytest.raises(ValidationError):
            workflow.create("alice", TaskCreate(name="Mop"))
        with pytest.raises(ValidationError):
            TaskCreate(name="Mop", frequency=None)

    def test_created_task_can_be_marked_done(self, workflow, clock):
        task = workflow.create("alice", TaskCreate(name="Mop", frequency="daily"))
        assert workflow.mark_done(task["id"])["next_due"] > clock.at


class TestMarkDone:
    def test_sets_flag_timestamps_and_next_due(self, workflow, make_task, clock):
        task = make_task(frequency="weekly")
        done = workflow.mark_done(task["id"])
        assert done["is_done"] is True
        assert done["date_done"] == clock.at
        assert done["last_completed"] == clock.at
        assert done["next_due"] == clock.at + timedelta(days=7)
        assert done["next_due"] > clock.at

    def test_persists(self, workflow, make_task, repo):
        task = make_task(frequency="daily")
        workflow.mark_done(task["id"])
        assert repo.get(task["id"])["is_done"] is True

    def test_monthly_from_end_of_january_lands_on_leap_day(self, workflow, make_task, clock):
        clock.at = datetime(2024, 1, 31)
        task = make_task(frequency="monthly")
        assert workflow.mark_done(task["id"])["next_due"] == datetime(2024, 2, 29)

    def test_unknown_id(self, workflow):
        with pytest.raises(TaskNotFound):
            workflow.mark_done(999)


class TestMarkUndone:
    def test_only_flag_changes(self, workflow, make_task, clock):
        task = make_task(frequency="weekly")
        done = workflow.mark_done(task["id"])

        clock.at = clock.at + timedelta(days=2)
        undone = workflow.mark_undone(task["id"])

        assert undone["is_done"] is False
        assert undone["next_due"] == done["next_due"]
        assert undone["last_completed"] == done["last_completed"]
        assert undone["date_done"] == done["date_done"]

    def test_unknown_id(self, workflow):
        with pytest.raises(TaskNotFound):
            workflow.mark_undone(999)


class TestPatchDoneFlag:
    def test_no_timestamp_side_effects(self, workflow, make_task):
        task = make_task(frequency="weekly", next_due=datetime(2024, 1, 1))
        patched = workflow.patch_done_flag(task["id"], True)
        assert patched["is_done"] is True
        assert patched["date_done"] is None
        assert patched["last_completed"] is None
        assert patched["next_due"] == datetime(2024, 1, 1)

    def test_can_reset(self, workflow, make_task):
        task = make_task(is_done=True)
        assert workflow.patch_done_flag(task["id"], False)["is_done"] is False

    def test_unknown_id(self, workflow):
        with pytest.raises(TaskNotFound):
            workflow.patch_done_flag(999, True)


class TestDelete:
    def test_returns_removed_record(self, workflow, make_task, repo):
        task = make_task(name="Dust shelves")
        removed = workflow.delete(task["id"])
        assert removed["name"] == "Dust shelves"
        assert repo.get(task["id"]) is None

    def test_second_delete_is_not_found(self, workflow, make_task):
        task = make_task()
        workflow.delete(task["id"])
        with pytest.raises(TaskNotFound):
            workflow.delete(task["id"])
