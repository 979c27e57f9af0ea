import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.endpoints import admin_retention
from app.core.config import settings
from app.services.background_jobs.retention_cleanup_job import (
    start_retention_cleanup_scheduler,
    stop_retention_cleanup_scheduler,
)

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.RETENTION_SCHEDULER_ENABLED:
        start_retention_cleanup_scheduler()
    else:
        logger.info("Retention cleanup scheduler disabled")
    yield
    await stop_retention_cleanup_scheduler()


app = FastAPI(title="Workshop Retention API", lifespan=lifespan)

app.include_router(
    admin_retention.router,
    prefix=f"{settings.API_V1_PREFIX}/admin/retention",
    tags=["admin-retention"],
)


@app.get("/health")
async def health():
    return {"status": "ok"}
