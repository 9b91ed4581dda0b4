# taskpulse/core/deps.py
from typing import Optional
from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from taskpulse.config import settings
from taskpulse.core.auth import get_optional_user
from taskpulse.database import get_db
from taskpulse.models.user import User
from taskpulse.services.local_store import LocalTaskStore
from taskpulse.services.task_store import SqlTaskStore, TaskStore


def get_local_store() -> LocalTaskStore:
    return LocalTaskStore(settings.LOCAL_STORE_PATH)


async def get_task_store(
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
    local_store: LocalTaskStore = Depends(get_local_store),
) -> TaskStore:
    """Signed-in users get their database tasks, everyone else the local file."""
    if current_user is not None:
        return SqlTaskStore(db, current_user.id)
    if not settings.LOCAL_MODE_ENABLED:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return local_store
