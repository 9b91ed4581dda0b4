from datetime import datetime, timedelta, timezone

import pytest

from taskpulse.core.exceptions import TaskStoreError
from taskpulse.schemas.task import TaskCreate, TaskUpdate
from taskpulse.services.local_store import LOCAL_OWNER_ID, LocalTaskStore
from taskpulse.services.task_store import set_completed


async def test_tasks_survive_a_new_instance(local_store):
    task = await local_store.create_task(TaskCreate(title="Persist me", category="Home"))

    reopened = LocalTaskStore(local_store.path)
    loaded = await reopened.get_task(task.id)

    assert loaded.title == "Persist me"
    assert loaded.owner_id == LOCAL_OWNER_ID
    assert loaded.created_at == task.created_at


async def test_missing_file_is_empty(tmp_path):
    store = LocalTaskStore(tmp_path / "nested" / "tasks.json")

    assert await store.list_tasks() == []
    await store.create_task(TaskCreate(title="First"))
    assert store.path.exists()


async def test_save_leaves_no_temp_file(local_store):
    await local_store.create_task(TaskCreate(title="One"))
    await local_store.create_task(TaskCreate(title="Two"))

    assert [p.name for p in local_store.path.parent.iterdir()] == [local_store.path.name]


def test_malformed_file(local_store):
    local_store.path.write_text('[{"title": "no id"}]')

    with pytest.raises(TaskStoreError):
        local_store.load()


async def test_update_missing_task(local_store):
    assert await local_store.update_task("missing", TaskUpdate(title="x")) is None
    assert await local_store.toggle_task("missing") is None
    assert await local_store.delete_task("missing") is False


async def test_import_keeps_ids_and_replaces(local_store):
    await local_store.create_task(TaskCreate(title="Old"))
    created = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)

    count = await local_store.replace_all([
        {"id": "abc123", "title": "Imported", "completed": True, "created_at": created},
    ])
    tasks = await local_store.list_tasks()

    assert count == 1
    assert [t.id for t in tasks] == ["abc123"]
    # missing completedAt falls back to updatedAt, which falls back to createdAt
    assert tasks[0].completed_at == created


async def test_import_with_repeated_ids(local_store):
    count = await local_store.replace_all([
        {"id": "dup", "title": "First"},
        {"id": "dup", "title": "Second"},
    ])
    tasks = await local_store.list_tasks()

    assert count == 2
    assert len({t.id for t in tasks}) == 2
    assert (await local_store.get_task("dup")).title == "First"

    assert await local_store.delete_task("dup") is True
    assert [t.title for t in await local_store.list_tasks()] == ["Second"]


async def test_add_many_does_not_reuse_existing_ids(local_store):
    await local_store.replace_all([{"id": "abc", "title": "Existing"}])

    await local_store.add_many([{"id": "abc", "title": "Incoming"}])
    tasks = await local_store.list_tasks()

    assert len({t.id for t in tasks}) == 2
    assert (await local_store.get_task("abc")).title == "Existing"


class Record:
    def __init__(self, completed=False, completed_at=None):
        self.completed = completed
        self.completed_at = completed_at


def test_set_completed_is_idempotent():
    now = datetime(2026, 3, 18, 12, 0, tzinfo=timezone.utc)
    task = Record()

    set_completed(task, True, now)
    set_completed(task, True, now + timedelta(hours=1))

    assert task.completed_at == now

    set_completed(task, False, now)
    set_completed(task, False, now)

    assert task.completed is False
    assert task.completed_at is None
