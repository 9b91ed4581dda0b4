import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from taskpulse.core.deps import get_task_store
from taskpulse.schemas.task import (
    TaskCreate, TaskUpdate, TaskEnvelope, TaskListResponse, TaskImport,
    CategoryListResponse, DeletedCountResponse, ImportResultResponse, StatusFilter,
)
from taskpulse.services.task_store import TaskStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    filter: StatusFilter = "all",
    category: Optional[str] = None,
    store: TaskStore = Depends(get_task_store)
):
    tasks = await store.list_tasks(status_filter=filter, category=category)
    return TaskListResponse(tasks=tasks)


@router.post("", response_model=TaskEnvelope, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: TaskCreate,
    store: TaskStore = Depends(get_task_store)
):
    task = await store.create_task(task_in)
    logger.info("Task %s created for owner %s", task.id, store.owner_id)
    return TaskEnvelope(task=task)


@router.get("/categories", response_model=CategoryListResponse)
async def list_categories(store: TaskStore = Depends(get_task_store)):
    return CategoryListResponse(categories=await store.list_categories())


@router.get("/export", response_model=TaskListResponse)
async def export_tasks(store: TaskStore = Depends(get_task_store)):
    return TaskListResponse(tasks=await store.list_tasks())


@router.post("/import", response_model=ImportResultResponse)
async def import_tasks(
    payload: TaskImport,
    store: TaskStore = Depends(get_task_store)
):
    # Replaces every task of the owner
    imported = await store.replace_all(task.model_dump() for task in payload.tasks)
    logger.info("Imported %d tasks for owner %s", imported, store.owner_id)
    return ImportResultResponse(message="Tasks imported successfully", imported_count=imported)


@router.delete("/completed", response_model=DeletedCountResponse)
async def clear_completed(store: TaskStore = Depends(get_task_store)):
    deleted = await store.clear_completed()
    return DeletedCountResponse(message="Completed tasks cleared", deleted_count=deleted)


@router.get("/{task_id}", response_model=TaskEnvelope)
async def get_task(task_id: str, store: TaskStore = Depends(get_task_store)):
    task = await store.get_task(task_id)
    if not task:
        raise HTTPException(404, "Task not found")
    return TaskEnvelope(task=task)


@router.put("/{task_id}", response_model=TaskEnvelope)
async def update_task(
    task_id: str,
    task_in: TaskUpdate,
    store: TaskStore = Depends(get_task_store)
):
    task = await store.update_task(task_id, task_in)
    if not task:
        raise HTTPException(404, "Task not found")
    return TaskEnvelope(task=task)


@router.post("/{task_id}/toggle", response_model=TaskEnvelope)
async def toggle_task(task_id: str, store: TaskStore = Depends(get_task_store)):
    task = await store.toggle_task(task_id)
    if not task:
        raise HTTPException(404, "Task not found")
    return TaskEnvelope(task=task)


@router.delete("/{task_id}")
async def delete_task(task_id: str, store: TaskStore = Depends(get_task_store)):
    if not await store.delete_task(task_id):
        raise HTTPException(404, "Task not found")
    return {"message": "Task deleted successfully"}
