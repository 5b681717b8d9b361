import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from questlog.routes import auth, categories, todos
from questlog.core.config import settings
from questlog.core.exceptions import (
    ConflictError,
    NotFoundError,
    QuestlogError,
    StorageError,
    ValidationError,
)
from questlog.db.base import Base
from questlog.db.sessions import engine
from questlog.services.recurrence_job import advance_all_users

# Import all models to ensure they're registered with Base
import questlog.models  # noqa: F401

if not logging.getLogger().handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@asynccontextmanager
async def lifespan(app):
    """Create tables and start the daily recurrence job."""
    Base.metadata.create_all(bind=engine)
    logger.info("%s v%s starting", settings.APP_NAME, settings.APP_VERSION)

    scheduler = None
    if settings.RECURRENCE_JOB_ENABLED:
        scheduler = AsyncIOScheduler(timezone="UTC")
        scheduler.add_job(
            advance_all_users,
            "cron",
            hour=settings.RECURRENCE_JOB_HOUR,
            minute=settings.RECURRENCE_JOB_MINUTE,
            id="advance_recurring",
        )
        scheduler.start()
        logger.info(
            "Recurrence job scheduled daily at %02d:%02d UTC",
            settings.RECURRENCE_JOB_HOUR, settings.RECURRENCE_JOB_MINUTE,
        )
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.shutdown()
        logger.info("Stop Server")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="To-do lists with recurring items, categories and experience levels",
    lifespan=lifespan,
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(QuestlogError)
async def questlog_error_handler(request: Request, exc: QuestlogError):
    status_code = STATUS_BY_ERROR.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, status_code, exc)
    kind = exc.kind.value if exc.kind else None
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "kind": kind})


# Register routers
app.include_router(auth.router)
app.include_router(categories.router)
app.include_router(todos.router)


@app.get("/health")
def health():
    return {"status": "ok"}
