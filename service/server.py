"""
FastAPI application entry point.

The application stands in for the host ingestion framework: it receives
records over HTTP and runs them through the enhancement pipeline.

Startup sequence (via lifespan):
  1. Freeze the settings into an EndpointConfig
  2. Build the attribution pipeline (fails fast on bad configuration)
  3. Start APScheduler for the periodic cache sweep

Shutdown stops the scheduler and closes the HTTP connection pools. Caches are
in memory only and start empty after every restart.
"""

import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from api.routes import router
from config import settings
from fastapi import FastAPI
from ingestion.pipeline import build_attribution_pipeline
from ingestion.scheduler import start_scheduler, stop_scheduler

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Manage startup and shutdown lifecycle."""
    logger.info("Starting record enrichment service")

    endpoint_config = settings.endpoint_config()
    pipeline = build_attribution_pipeline(
        endpoint_config,
        api_field=settings.api_field,
        application_field=settings.application_field,
    )
    sweep_interval = settings.cache_sweep_interval_seconds if endpoint_config.cache_ttl_seconds > 0 else 0
    application.state.pipeline = pipeline
    application.state.management_endpoint = endpoint_config.endpoint
    application.state.cache_sweep_interval_seconds = sweep_interval

    scheduler = start_scheduler(pipeline, sweep_interval)

    yield  # Application runs here

    stop_scheduler(scheduler)
    pipeline.close()
    logger.info("Service shutdown complete")


app = FastAPI(
    title="Record Enrichment Service",
    description=(
        "Enriches event/log records with human-readable API and application "
        "names looked up from the management API, behind a bounded, expiring "
        "in-memory cache."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router)


if __name__ == "__main__":
    uvicorn.run("server:app", host="0.0.0.0", port=8000, reload=False)
