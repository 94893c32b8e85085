"""
Pydantic models: the data contracts for the service.

EndpointConfig and EnhancerSpec are frozen: they are built once when a
pipeline is assembled and shared read-only by every enhancer. Reconfiguring
means building a new pipeline, never mutating these in place.
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# ── Pipeline configuration ───────────────────────────────────────────────────


class EndpointConfig(BaseModel):
    """Connection, credentials and cache policy for the management API."""

    model_config = ConfigDict(frozen=True)

    endpoint: str = Field(min_length=1)
    username: str = "admin"
    password: str = "admin"
    token: Optional[str] = None
    headers: Tuple[str, ...] = ()

    cache_max_entries: int = Field(default=1000, ge=0)
    cache_ttl_seconds: float = Field(default=3600, ge=0)
    # None → failed lookups are cached for cache_ttl_seconds like any other value,
    # 0 → failed lookups are not cached
    negative_cache_ttl_seconds: Optional[float] = Field(default=None, ge=0)

    request_timeout_seconds: float = Field(default=10.0, gt=0)
    # False trusts any server certificate (self-signed internal endpoints)
    verify_tls: bool = False
    ca_bundle: Optional[str] = None
    lookup_max_attempts: int = Field(default=2, ge=1)


class EnhancerSpec(BaseModel):
    """Binds one input field to one remote resource collection and one output field."""

    model_config = ConfigDict(frozen=True)

    field_name: str = Field(min_length=1)
    enhanced_field_name: str = Field(min_length=1)
    resource_base_path: str = Field(min_length=1)
    resource_name_attribute: str = Field(default="name", min_length=1)
    unknown_id: str = "1"
    unknown_name: str = "Unknown"


# ── API request / response models ────────────────────────────────────────────


class BulkEnhanceRequest(BaseModel):
    records: List[Dict[str, Any]]


class BulkEnhanceResponse(BaseModel):
    records: List[Dict[str, Any]]


class CacheStatsEntry(BaseModel):
    enhanced_field_name: str
    size: int
    max_entries: int
    ttl_seconds: float
    hits: int
    misses: int
    evictions: int
    expirations: int


class CacheStatsResponse(BaseModel):
    caches: List[CacheStatsEntry]


class PurgeResponse(BaseModel):
    purged: int


class HealthResponse(BaseModel):
    status: str
    management_endpoint: str
    enhanced_fields: List[str]
    cache_sweep_interval_seconds: int
