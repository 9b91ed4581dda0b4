# taskpulse/main.py
import logging
from taskpulse.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)

from fastapi import FastAPI, Request  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402
from sqlalchemy import exc as sa_exc  # noqa: E402
from taskpulse.database import engine, Base  # noqa: E402
from taskpulse.core.exceptions import TaskStoreError  # noqa: E402
from taskpulse.models import user as user_model, task as task_model  # noqa: E402,F401
from taskpulse.routers import auth, task, analytics, user, health  # noqa: E402

logger = logging.getLogger(__name__)

app = FastAPI(title="TaskPulse - Personal Task Tracker", version="1.0")

# Include Routers
app.include_router(auth.router)
app.include_router(task.router)
app.include_router(analytics.router)
app.include_router(user.router)
app.include_router(health.router)


@app.exception_handler(sa_exc.SQLAlchemyError)
async def database_error_handler(request: Request, exc: sa_exc.SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.exception_handler(TaskStoreError)
async def task_store_error_handler(request: Request, exc: TaskStoreError):
    logger.exception("Task store error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Create DB tables for development; use Alembic in production
@app.on_event("startup")
async def startup_event():
    # ignore duplicate-object errors from previous partial runs
    async with engine.begin() as conn:
        try:
            await conn.run_sync(Base.metadata.create_all)
        except sa_exc.IntegrityError as e:
            msg = str(getattr(e, "orig", e))
            if "duplicate key value violates unique constraint" in msg or "already exists" in msg:
                logging.warning("Ignored duplicate DDL error during create_all: %s", msg)
            else:
                raise

@app.get("/")
def read_root():
    return {"message": "Welcome to TaskPulse", "docs": "/docs"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("taskpulse.main:app", host="0.0.0.0", port=8000, reload=True)
