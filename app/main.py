from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.pipeline import build_default_pipeline

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    pipeline = build_default_pipeline()
    logger.info(
        "Series pipeline ready",
        extra={"bucket_ms": pipeline.bucket_ms, "window": pipeline.window},
    )
    try:
        yield
    finally:
        build_default_pipeline.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Sensor Series Aggregator",
        description="Buckets sensor reading snapshots into chart series and live averages.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
