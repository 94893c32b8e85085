"""
Centralised configuration loaded from environment variables.

All settings live here, never scattered across modules.
Every variable is prefixed with INGEST_ (e.g. INGEST_MANAGEMENT_ENDPOINT).
Settings are read once when the pipeline is built; changing them requires a
restart, the running pipeline never re-reads them.
"""

from typing import List, Optional

from models import EndpointConfig
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    management_endpoint: str = "http://localhost:8083/management"
    management_username: str = "admin"
    management_password: str = "admin"
    management_token: Optional[str] = None
    # Raw "Name: Value" specs, e.g. INGEST_MANAGEMENT_HEADERS='["X-Tenant: acme"]'
    management_headers: List[str] = []

    cache_max_entries: int = 1000
    cache_ttl_seconds: float = 3600
    negative_cache_ttl_seconds: Optional[float] = None
    cache_sweep_interval_seconds: int = 300

    request_timeout_seconds: float = 10.0
    verify_tls: bool = False
    ca_bundle: Optional[str] = None
    lookup_max_attempts: int = 2

    api_field: Optional[str] = "api"
    application_field: Optional[str] = "application"

    log_level: str = "INFO"

    class Config:
        env_prefix = "INGEST_"
        env_file = ".env"

    def endpoint_config(self) -> EndpointConfig:
        """Freeze the management API part of the settings."""
        return EndpointConfig(
            endpoint=self.management_endpoint,
            username=self.management_username,
            password=self.management_password,
            token=self.management_token,
            headers=tuple(self.management_headers),
            cache_max_entries=self.cache_max_entries,
            cache_ttl_seconds=self.cache_ttl_seconds,
            negative_cache_ttl_seconds=self.negative_cache_ttl_seconds,
            request_timeout_seconds=self.request_timeout_seconds,
            verify_tls=self.verify_tls,
            ca_bundle=self.ca_bundle,
            lookup_max_attempts=self.lookup_max_attempts,
        )


# Single shared instance, import this everywhere
settings = Settings()
