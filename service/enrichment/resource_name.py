"""
Resource name enhancer.

Reads a management API resource id from one record field and writes the
resource's name into another field, e.g. api="c4a1..." → api-name="Orders".

Lookup order per record:
  1. Field absent or null → default value, no cache, no remote call
  2. Cache hit → cached name
  3. Miss on the reserved unknown id → fixed name, no remote call
  4. Miss → GET {endpoint}{resource_base_path}/{id}, attribute from the JSON body

Results of 3 and 4 are cached, failures included: a broken id is not retried
on every record until its entry expires. negative_cache_ttl_seconds lets
failures expire sooner than real names; 0 stops caching failures altogether.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from enrichment.base import DocumentEnhancer
from enrichment.cache import CacheStats, ExpiringLRUCache
from enrichment.constants import DEFAULT_VALUE
from enrichment.fields import get_field, set_field
from enrichment.management_client import ManagementApiClient
from models import EndpointConfig, EnhancerSpec

logger = logging.getLogger(__name__)


class ResourceNameEnhancer(DocumentEnhancer):
    """Resolves a resource id field into the resource's display name."""

    def __init__(
        self,
        endpoint_config: EndpointConfig,
        spec: EnhancerSpec,
        client: Optional[ManagementApiClient] = None,
        cache: Optional[ExpiringLRUCache[str, str]] = None,
    ):
        self.spec = spec
        self.enhanced_field_name = spec.enhanced_field_name
        self._negative_ttl = endpoint_config.negative_cache_ttl_seconds
        if cache is None:
            cache = ExpiringLRUCache(
                max_entries=endpoint_config.cache_max_entries,
                ttl_seconds=endpoint_config.cache_ttl_seconds,
            )
        self._cache = cache
        self._client = client if client is not None else ManagementApiClient(endpoint_config)

    def enrich(self, record: Dict[str, Any]) -> Dict[str, Any]:
        value = get_field(record, self.spec.field_name)
        if value is None:
            name = DEFAULT_VALUE
        else:
            try:
                name = self._cached_name(str(value))
            except Exception:  # pylint: disable=broad-except
                logger.exception(
                    "Enhancing field '%s' failed for id '%s'", self.enhanced_field_name, value
                )
                name = DEFAULT_VALUE
        set_field(record, self.enhanced_field_name, name)
        return record

    def _cached_name(self, resource_id: str) -> str:
        name = self._cache.get(resource_id)
        if name is not None:
            return name

        name = self._resolve_name(resource_id)
        if name == DEFAULT_VALUE and self._negative_ttl is not None:
            # 0 means failures are not cached at all
            if self._negative_ttl > 0:
                self._cache.put(resource_id, name, ttl_seconds=self._negative_ttl)
        else:
            self._cache.put(resource_id, name)
        return name

    def _resolve_name(self, resource_id: str) -> str:
        if resource_id == self.spec.unknown_id:
            return self.spec.unknown_name
        logger.info("Enhancing field '%s' for id '%s'...", self.enhanced_field_name, resource_id)
        return self._client.request_for_value(
            self.spec.resource_base_path, resource_id, self.decode_name, DEFAULT_VALUE
        )

    def decode_name(self, response: httpx.Response) -> str:
        """Pull the configured attribute out of a JSON object body."""
        body = response.json()
        if not isinstance(body, dict):
            logger.error(
                "Expected a JSON object from %s, got %s", response.request.url, type(body).__name__
            )
            return DEFAULT_VALUE
        name = body.get(self.spec.resource_name_attribute)
        if name is None:
            return DEFAULT_VALUE
        return name if isinstance(name, str) else str(name)

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    def purge_expired(self) -> int:
        return self._cache.purge_expired()

    def close(self) -> None:
        self._client.close()
