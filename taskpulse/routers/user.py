import logging
from fastapi import APIRouter, Depends
from taskpulse.core.deps import get_task_store
from taskpulse.schemas.task import SampleInitResponse, DeletedCountResponse
from taskpulse.services.sample_data import SAMPLE_CATEGORY, build_sample_tasks
from taskpulse.services.task_store import TaskStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["user"])


@router.post("/initialize", response_model=SampleInitResponse)
async def initialize_sample_data(store: TaskStore = Depends(get_task_store)):
    if await store.count_in_category(SAMPLE_CATEGORY) > 0:
        return SampleInitResponse(message="User already has sample data", initialized=False)

    created = await store.add_many(build_sample_tasks())
    logger.info("Seeded %d sample tasks for owner %s", created, store.owner_id)
    return SampleInitResponse(
        message="Sample data initialized successfully",
        initialized=True,
        tasks_created=created,
    )


@router.delete("/clear-samples", response_model=DeletedCountResponse)
async def clear_sample_data(store: TaskStore = Depends(get_task_store)):
    deleted = await store.delete_in_category(SAMPLE_CATEGORY)
    return DeletedCountResponse(message="Sample data cleared successfully", deleted_count=deleted)
