import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request
from ingestion.pipeline import EnhancementPipeline
from models import (
    BulkEnhanceRequest,
    BulkEnhanceResponse,
    CacheStatsEntry,
    CacheStatsResponse,
    HealthResponse,
    PurgeResponse,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def get_pipeline(request: Request) -> EnhancementPipeline:
    """The pipeline built at startup (see server.lifespan)."""
    return request.app.state.pipeline


@router.post("/enhance")
def enhance_record(
    record: Dict[str, Any] = Body(..., description="One event/log record"),
    pipeline: EnhancementPipeline = Depends(get_pipeline),
) -> Dict[str, Any]:
    """
    Returns the record with every configured name field added.

    Plain `def` on purpose: FastAPI runs it on the worker thread pool, so
    lookups for different records proceed in parallel and only block the
    thread handling that record.

    Never fails because of the management API: unresolved names come back
    as empty strings.
    """
    return pipeline.enhance(record)


@router.post("/enhance/bulk", response_model=BulkEnhanceResponse)
def enhance_bulk(
    payload: BulkEnhanceRequest,
    pipeline: EnhancementPipeline = Depends(get_pipeline),
):
    """Enhances a batch of records in order. Repeated ids cost one lookup."""
    return BulkEnhanceResponse(records=pipeline.enhance_many(payload.records))


@router.get("/cache/stats", response_model=CacheStatsResponse)
def cache_stats(pipeline: EnhancementPipeline = Depends(get_pipeline)):
    entries = []
    for enhancer in pipeline.enhancers:
        stats = enhancer.cache_stats()
        if stats is None:
            continue
        entries.append(
            CacheStatsEntry(
                enhanced_field_name=enhancer.enhanced_field_name,
                size=stats.size,
                max_entries=stats.max_entries,
                ttl_seconds=stats.ttl_seconds,
                hits=stats.hits,
                misses=stats.misses,
                evictions=stats.evictions,
                expirations=stats.expirations,
            )
        )
    return CacheStatsResponse(caches=entries)


@router.post("/cache/purge", response_model=PurgeResponse)
def purge_cache(pipeline: EnhancementPipeline = Depends(get_pipeline)):
    """Drops expired entries now instead of waiting for the sweep job."""
    return PurgeResponse(purged=pipeline.purge_expired())


@router.get("/health", response_model=HealthResponse)
def health(request: Request, pipeline: EnhancementPipeline = Depends(get_pipeline)):
    """
    Lightweight health check. Does NOT call the management API.

    Health checks are polled frequently; a slow management API only degrades
    enrichment (names fall back to ""), it does not make this service down.

    Reports the endpoint and sweep interval in effect since startup, which
    can differ from the raw settings (no sweep runs when the cache TTL is 0).
    """
    return HealthResponse(
        status="ok",
        management_endpoint=request.app.state.management_endpoint,
        enhanced_fields=[enhancer.enhanced_field_name for enhancer in pipeline.enhancers],
        cache_sweep_interval_seconds=request.app.state.cache_sweep_interval_seconds,
    )
