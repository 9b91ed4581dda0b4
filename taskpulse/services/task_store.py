"""Task persistence behind one owner-scoped contract.

Two backends implement :class:`TaskStore`: :class:`SqlTaskStore` for
authenticated users and ``LocalTaskStore`` (see ``local_store``) for the
single-device mode. The analytics engine only uses the query half of the
contract and never mutates through it.
"""
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Optional, Protocol, Tuple
from zoneinfo import ZoneInfo

from sqlalchemy import select, delete, func, case, distinct
from sqlalchemy.ext.asyncio import AsyncSession

from taskpulse.models.task import Task
from taskpulse.schemas.task import TaskCreate, TaskUpdate
from taskpulse.utils.dates import utcnow, start_of_day, end_of_day

STORED_FIELDS = ("title", "description", "completed", "priority", "category", "due_date",
                 "created_at", "updated_at", "completed_at")


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    count: int
    completed: int


def set_completed(task: Any, completed: bool, now: datetime) -> None:
    """Flip the completion flag and keep completed_at in step with it."""
    if completed and not task.completed:
        task.completed_at = now
    elif not completed and task.completed:
        task.completed_at = None
    task.completed = completed


def apply_changes(task: Any, changes: dict, now: datetime) -> None:
    for key, value in changes.items():
        if key == "completed":
            set_completed(task, value, now)
        else:
            setattr(task, key, value)
    task.updated_at = now


def seed_values(record: dict, now: datetime) -> dict:
    """Normalize an imported or generated record to the stored field set."""
    values = {key: record.get(key) for key in STORED_FIELDS}
    values["completed"] = bool(values["completed"])
    values["priority"] = values["priority"] or "medium"
    values["created_at"] = values["created_at"] or now
    values["updated_at"] = values["updated_at"] or values["created_at"]
    if not values["completed"]:
        values["completed_at"] = None
    elif values["completed_at"] is None:
        values["completed_at"] = values["updated_at"]
    return values


class TaskStore(Protocol):
    owner_id: Any

    # CRUD
    async def list_tasks(self, status_filter: str = "all", category: Optional[str] = None) -> List[Any]: ...
    async def get_task(self, task_id: str) -> Optional[Any]: ...
    async def create_task(self, task_in: TaskCreate) -> Any: ...
    async def update_task(self, task_id: str, task_in: TaskUpdate) -> Optional[Any]: ...
    async def toggle_task(self, task_id: str) -> Optional[Any]: ...
    async def delete_task(self, task_id: str) -> bool: ...
    async def clear_completed(self) -> int: ...
    async def list_categories(self) -> List[str]: ...
    async def add_many(self, records: Iterable[dict]) -> int: ...
    async def replace_all(self, records: Iterable[dict]) -> int: ...
    async def count_in_category(self, category: str) -> int: ...
    async def delete_in_category(self, category: str) -> int: ...

    # Queries used by the analytics engine
    async def count_created_in_range(self, start: datetime, end: datetime) -> int: ...
    async def count_completed_in_range(self, start: datetime, end: datetime) -> int: ...
    async def count_active(self) -> int: ...
    async def category_totals(self, start: datetime, end: datetime) -> List[CategoryTotal]: ...
    async def count_completed_on_day(self, day: date, tz: ZoneInfo) -> int: ...
    async def timestamps_in_range(
        self, start: datetime, end: datetime
    ) -> Tuple[List[datetime], List[datetime]]: ...


def _utc(value: datetime) -> datetime:
    # SQLite stores the wall time only, so bounds must be in the same zone as the rows.
    return value.astimezone(timezone.utc)


class SqlTaskStore:
    def __init__(self, db: AsyncSession, owner_id: int):
        self.db = db
        self.owner_id = owner_id

    def _owned(self):
        return select(Task).where(Task.owner_id == self.owner_id)

    async def _count(self, *criteria) -> int:
        result = await self.db.execute(
            select(func.count(Task.id))
            .where(Task.owner_id == self.owner_id)
            .where(*criteria)
        )
        return result.scalar_one() or 0

    # --- CRUD ---

    async def list_tasks(self, status_filter: str = "all", category: Optional[str] = None) -> List[Task]:
        query = self._owned()
        if status_filter == "active":
            query = query.where(Task.completed.is_(False))
        elif status_filter == "completed":
            query = query.where(Task.completed.is_(True))
        if category:
            query = query.where(Task.category == category)

        result = await self.db.execute(query.order_by(Task.created_at.desc()))
        return list(result.scalars().all())

    async def get_task(self, task_id: str) -> Optional[Task]:
        result = await self.db.execute(self._owned().where(Task.id == task_id))
        return result.scalar_one_or_none()

    async def create_task(self, task_in: TaskCreate) -> Task:
        now = utcnow()
        task = Task(
            owner_id=self.owner_id,
            title=task_in.title,
            description=task_in.description,
            priority=task_in.priority,
            category=task_in.category,
            due_date=task_in.due_date,
            completed=False,
            created_at=now,
            updated_at=now,
        )
        self.db.add(task)
        await self.db.commit()
        await self.db.refresh(task)
        return task

    async def update_task(self, task_id: str, task_in: TaskUpdate) -> Optional[Task]:
        task = await self.get_task(task_id)
        if task is None:
            return None

        apply_changes(task, task_in.changes(), utcnow())
        self.db.add(task)
        await self.db.commit()
        await self.db.refresh(task)
        return task

    async def toggle_task(self, task_id: str) -> Optional[Task]:
        task = await self.get_task(task_id)
        if task is None:
            return None

        apply_changes(task, {"completed": not task.completed}, utcnow())
        self.db.add(task)
        await self.db.commit()
        await self.db.refresh(task)
        return task

    async def delete_task(self, task_id: str) -> bool:
        result = await self.db.execute(
            delete(Task)
            .where(Task.owner_id == self.owner_id)
            .where(Task.id == task_id)
        )
        await self.db.commit()
        return result.rowcount > 0

    async def clear_completed(self) -> int:
        result = await self.db.execute(
            delete(Task)
            .where(Task.owner_id == self.owner_id)
            .where(Task.completed.is_(True))
        )
        await self.db.commit()
        return result.rowcount

    async def list_categories(self) -> List[str]:
        result = await self.db.execute(
            select(distinct(Task.category))
            .where(Task.owner_id == self.owner_id)
            .where(Task.category.isnot(None))
            .where(Task.category != "")
        )
        return sorted({c.strip() for c in result.scalars() if c and c.strip()})

    async def add_many(self, records: Iterable[dict]) -> int:
        now = utcnow()
        # ids are always fresh here; imported ids may belong to another owner
        tasks = [Task(owner_id=self.owner_id, **seed_values(r, now)) for r in records]
        self.db.add_all(tasks)
        await self.db.commit()
        return len(tasks)

    async def replace_all(self, records: Iterable[dict]) -> int:
        await self.db.execute(delete(Task).where(Task.owner_id == self.owner_id))
        return await self.add_many(records)

    async def count_in_category(self, category: str) -> int:
        return await self._count(Task.category == category)

    async def delete_in_category(self, category: str) -> int:
        result = await self.db.execute(
            delete(Task)
            .where(Task.owner_id == self.owner_id)
            .where(Task.category == category)
        )
        await self.db.commit()
        return result.rowcount

    # --- analytics queries ---

    async def count_created_in_range(self, start: datetime, end: datetime) -> int:
        return await self._count(Task.created_at.between(_utc(start), _utc(end)))

    async def count_completed_in_range(self, start: datetime, end: datetime) -> int:
        return await self._count(Task.completed_at.between(_utc(start), _utc(end)))

    async def count_active(self) -> int:
        return await self._count(Task.completed.is_(False))

    async def category_totals(self, start: datetime, end: datetime) -> List[CategoryTotal]:
        count = func.count(Task.id)
        result = await self.db.execute(
            select(
                Task.category,
                count,
                func.sum(case((Task.completed.is_(True), 1), else_=0)),
            )
            .where(Task.owner_id == self.owner_id)
            .where(Task.created_at.between(_utc(start), _utc(end)))
            .where(Task.category.isnot(None))
            .where(Task.category != "")
            .group_by(Task.category)
            .order_by(count.desc(), Task.category)
        )
        return [
            CategoryTotal(category=category, count=total, completed=int(done or 0))
            for category, total, done in result.all()
        ]

    async def count_completed_on_day(self, day: date, tz: ZoneInfo) -> int:
        return await self.count_completed_in_range(start_of_day(day, tz), end_of_day(day, tz))

    async def timestamps_in_range(self, start: datetime, end: datetime) -> Tuple[List[datetime], List[datetime]]:
        lower, upper = _utc(start), _utc(end)
        created = await self.db.execute(
            select(Task.created_at)
            .where(Task.owner_id == self.owner_id)
            .where(Task.created_at.between(lower, upper))
        )
        completed = await self.db.execute(
            select(Task.completed_at)
            .where(Task.owner_id == self.owner_id)
            .where(Task.completed_at.between(lower, upper))
        )
        return list(created.scalars()), list(completed.scalars())
