"""Single-device task store kept in a JSON file.

Used when a request carries no bearer token. Every operation goes through an
explicit ``load()`` / ``save()`` pair; nothing is cached between calls.
"""
import logging
import os
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple, Union
from zoneinfo import ZoneInfo

from pydantic import TypeAdapter, ValidationError

from taskpulse.core.exceptions import TaskStoreError
from taskpulse.schemas.task import TaskCreate, TaskResponse, TaskUpdate
from taskpulse.services.task_store import CategoryTotal, apply_changes, seed_values
from taskpulse.utils.dates import utcnow, start_of_day, end_of_day

logger = logging.getLogger(__name__)

LOCAL_OWNER_ID = "local"

_task_list = TypeAdapter(List[TaskResponse])


def _in_range(value: Optional[datetime], start: datetime, end: datetime) -> bool:
    return value is not None and start <= value <= end


class LocalTaskStore:
    def __init__(self, path: Union[str, Path], owner_id: str = LOCAL_OWNER_ID):
        self.path = Path(path)
        self.owner_id = owner_id

    def load(self) -> List[TaskResponse]:
        if not self.path.exists():
            return []
        try:
            return _task_list.validate_json(self.path.read_bytes())
        except (OSError, ValidationError) as e:
            logger.error("Could not load local tasks from %s: %s", self.path, e)
            raise TaskStoreError(f"Could not load local tasks from {self.path}") from e

    def save(self, tasks: List[TaskResponse]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(_task_list.dump_json(tasks, indent=2))
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error("Could not save local tasks to %s: %s", self.path, e)
            raise TaskStoreError(f"Could not save local tasks to {self.path}") from e

    def _new_task(self, values: dict, task_id: Optional[str] = None) -> TaskResponse:
        return TaskResponse(id=task_id or uuid.uuid4().hex, owner_id=self.owner_id, **values)

    # --- CRUD ---

    async def list_tasks(self, status_filter: str = "all", category: Optional[str] = None) -> List[TaskResponse]:
        tasks = self.load()
        if status_filter == "active":
            tasks = [t for t in tasks if not t.completed]
        elif status_filter == "completed":
            tasks = [t for t in tasks if t.completed]
        if category:
            tasks = [t for t in tasks if t.category == category]
        return sorted(tasks, key=lambda t: t.created_at, reverse=True)

    async def get_task(self, task_id: str) -> Optional[TaskResponse]:
        return next((t for t in self.load() if t.id == task_id), None)

    async def create_task(self, task_in: TaskCreate) -> TaskResponse:
        now = utcnow()
        task = self._new_task({
            "title": task_in.title,
            "description": task_in.description,
            "priority": task_in.priority,
            "category": task_in.category,
            "due_date": task_in.due_date,
            "completed": False,
            "created_at": now,
            "updated_at": now,
        })
        tasks = self.load()
        tasks.insert(0, task)
        self.save(tasks)
        return task

    async def _modify(self, task_id: str, changes: dict) -> Optional[TaskResponse]:
        tasks = self.load()
        task = next((t for t in tasks if t.id == task_id), None)
        if task is None:
            return None
        apply_changes(task, changes, utcnow())
        self.save(tasks)
        return task

    async def update_task(self, task_id: str, task_in: TaskUpdate) -> Optional[TaskResponse]:
        return await self._modify(task_id, task_in.changes())

    async def toggle_task(self, task_id: str) -> Optional[TaskResponse]:
        task = await self.get_task(task_id)
        if task is None:
            return None
        return await self._modify(task_id, {"completed": not task.completed})

    async def _delete_where(self, predicate) -> int:
        tasks = self.load()
        kept = [t for t in tasks if not predicate(t)]
        removed = len(tasks) - len(kept)
        if removed:
            self.save(kept)
        return removed

    async def delete_task(self, task_id: str) -> bool:
        return await self._delete_where(lambda t: t.id == task_id) > 0

    async def clear_completed(self) -> int:
        return await self._delete_where(lambda t: t.completed)

    async def list_categories(self) -> List[str]:
        return sorted({t.category.strip() for t in self.load() if t.category and t.category.strip()})

    def _build_tasks(self, records: Iterable[dict], taken: Set[str]) -> List[TaskResponse]:
        # a repeated or clashing id gets a fresh one; the first holder keeps it
        now = utcnow()
        tasks = []
        for record in records:
            task_id = record.get("id")
            if not task_id or task_id in taken:
                task_id = uuid.uuid4().hex
            taken.add(task_id)
            tasks.append(self._new_task(seed_values(record, now), task_id))
        return tasks

    async def add_many(self, records: Iterable[dict]) -> int:
        tasks = self.load()
        new_tasks = self._build_tasks(records, {t.id for t in tasks})
        self.save(new_tasks + tasks)
        return len(new_tasks)

    async def replace_all(self, records: Iterable[dict]) -> int:
        tasks = self._build_tasks(records, set())
        self.save(tasks)
        return len(tasks)

    async def count_in_category(self, category: str) -> int:
        return sum(1 for t in self.load() if t.category == category)

    async def delete_in_category(self, category: str) -> int:
        return await self._delete_where(lambda t: t.category == category)

    # --- analytics queries ---

    async def count_created_in_range(self, start: datetime, end: datetime) -> int:
        return sum(1 for t in self.load() if _in_range(t.created_at, start, end))

    async def count_completed_in_range(self, start: datetime, end: datetime) -> int:
        return sum(1 for t in self.load() if _in_range(t.completed_at, start, end))

    async def count_active(self) -> int:
        return sum(1 for t in self.load() if not t.completed)

    async def category_totals(self, start: datetime, end: datetime) -> List[CategoryTotal]:
        groups = {}
        for task in self.load():
            if not task.category or not _in_range(task.created_at, start, end):
                continue
            count, completed = groups.get(task.category, (0, 0))
            groups[task.category] = (count + 1, completed + int(task.completed))

        totals = [CategoryTotal(category=c, count=n, completed=done) for c, (n, done) in groups.items()]
        return sorted(totals, key=lambda t: (-t.count, t.category))

    async def count_completed_on_day(self, day: date, tz: ZoneInfo) -> int:
        return await self.count_completed_in_range(start_of_day(day, tz), end_of_day(day, tz))

    async def timestamps_in_range(self, start: datetime, end: datetime) -> Tuple[List[datetime], List[datetime]]:
        tasks = self.load()
        created = [t.created_at for t in tasks if _in_range(t.created_at, start, end)]
        completed = [t.completed_at for t in tasks if _in_range(t.completed_at, start, end)]
        return created, completed
