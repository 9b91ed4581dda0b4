from pydantic import BeforeValidator, Field, field_validator, model_validator
from datetime import datetime
from typing import Annotated, Optional, List, Literal, Union
from taskpulse.schemas.base import CamelModel
from taskpulse.utils.dates import as_utc

Priority = Literal["low", "medium", "high"]
StatusFilter = Literal["all", "active", "completed"]


def _strip(value):
    if isinstance(value, str):
        return value.strip()
    return value


def _blank_to_none(value):
    value = _strip(value)
    if value == "":
        return None
    return value


Title = Annotated[str, BeforeValidator(_strip), Field(min_length=1, max_length=200)]
Description = Annotated[Optional[str], BeforeValidator(_blank_to_none), Field(max_length=1000)]
Category = Annotated[Optional[str], BeforeValidator(_blank_to_none), Field(max_length=50)]


class TaskCreate(CamelModel):
    title: Title
    description: Description = None
    priority: Priority = "medium"
    category: Category = None
    due_date: Optional[datetime] = None


class TaskUpdate(CamelModel):
    """Partial update. Only fields present in the request body are applied."""

    title: Optional[Title] = None
    description: Description = None
    completed: Optional[bool] = None
    priority: Optional[Priority] = None
    category: Category = None
    due_date: Optional[datetime] = None

    def changes(self) -> dict:
        data = self.model_dump(exclude_unset=True)
        # title, completed and priority cannot be cleared
        for key in ("title", "completed", "priority"):
            if key in data and data[key] is None:
                del data[key]
        return data


class TaskResponse(CamelModel):
    id: str
    owner_id: Union[int, str]
    title: str
    description: Optional[str] = None
    completed: bool = False
    priority: Priority = "medium"
    category: Optional[str] = None
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None

    @field_validator("due_date", "created_at", "updated_at", "completed_at")
    @classmethod
    def _utc(cls, value):
        return as_utc(value)

    @model_validator(mode="after")
    def _completion_invariant(self):
        if not self.completed:
            self.completed_at = None
        elif self.completed_at is None:
            self.completed_at = self.updated_at
        return self


class TaskEnvelope(CamelModel):
    task: TaskResponse


class TaskListResponse(CamelModel):
    tasks: List[TaskResponse]


class TaskImport(CamelModel):
    tasks: List[TaskResponse]


class CategoryListResponse(CamelModel):
    categories: List[str]


class DeletedCountResponse(CamelModel):
    message: str
    deleted_count: int


class ImportResultResponse(CamelModel):
    message: str
    imported_count: int


class SampleInitResponse(CamelModel):
    message: str
    initialized: bool
    tasks_created: int = 0
