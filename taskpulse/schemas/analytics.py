from typing import List
from pydantic import Field
from taskpulse.schemas.base import CamelModel


class OverviewResponse(CamelModel):
    tasks_created: int
    tasks_completed: int
    active_tasks: int
    completion_rate: int = Field(..., ge=0)
    streak: int = Field(..., ge=0)
    average_per_day: float


class ProductivityPoint(CamelModel):
    date: str  # "Jan 05"
    created: int
    completed: int
    completion_rate: int


class CategoryBucket(CamelModel):
    category: str
    count: int
    completed: int
    completion_rate: int
