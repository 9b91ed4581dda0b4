from typing import Annotated, List
from fastapi import APIRouter, Depends, HTTPException, Query
from taskpulse.core.deps import get_task_store
from taskpulse.schemas.analytics import OverviewResponse, ProductivityPoint, CategoryBucket
from taskpulse.services.analytics import (
    window_for_days, compute_overview, compute_productivity, compute_categories,
)
from taskpulse.services.task_store import TaskStore
from taskpulse.utils.dates import local_tz, utcnow

router = APIRouter(prefix="/analytics", tags=["analytics"])

Days = Annotated[int, Query(ge=1, le=365, description="Trailing window length in days")]


async def _overview(store: TaskStore, days: int) -> OverviewResponse:
    tz = local_tz()
    now = utcnow()
    window = window_for_days(days, now=now, tz=tz)
    return await compute_overview(store, window, now=now, tz=tz)


async def _productivity(store: TaskStore, days: int) -> List[ProductivityPoint]:
    tz = local_tz()
    window = window_for_days(days, tz=tz)
    return await compute_productivity(store, window, tz=tz)


async def _categories(store: TaskStore, days: int) -> List[CategoryBucket]:
    window = window_for_days(days, tz=local_tz())
    return await compute_categories(store, window)


@router.get("")
async def get_analytics(
    type: str = "overview",
    days: Days = 7,
    store: TaskStore = Depends(get_task_store)
):
    """Single endpoint the dashboard polls, one view per ``type``."""
    if type == "overview":
        return (await _overview(store, days)).model_dump(by_alias=True)
    if type == "productivity":
        return [p.model_dump(by_alias=True) for p in await _productivity(store, days)]
    if type == "categories":
        return [c.model_dump(by_alias=True) for c in await _categories(store, days)]
    raise HTTPException(400, "Invalid analytics type")


@router.get("/overview", response_model=OverviewResponse)
async def get_overview(days: Days = 7, store: TaskStore = Depends(get_task_store)):
    return await _overview(store, days)


@router.get("/productivity", response_model=List[ProductivityPoint])
async def get_productivity(days: Days = 7, store: TaskStore = Depends(get_task_store)):
    return await _productivity(store, days)


@router.get("/categories", response_model=List[CategoryBucket])
async def get_categories(days: Days = 7, store: TaskStore = Depends(get_task_store)):
    return await _categories(store, days)
