"""
Enhancement pipeline: an ordered chain of document enhancers.

The host calls enhance() once per record, possibly from many worker threads
at the same time. There is no lock around a record: enhancers share their
cache and HTTP client across records and synchronise internally.

Within one record enhancers run strictly in order, and each one sees what the
previous ones wrote. A failing enhancer never stops the ones after it.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

import httpx
from enrichment.base import DocumentEnhancer
from enrichment.constants import (
    API_NAME_FIELD,
    APIS_PATH,
    APPLICATION_NAME_FIELD,
    APPLICATIONS_PATH,
    RESOURCE_NAME_ATTRIBUTE,
)
from enrichment.management_client import ManagementApiClient
from enrichment.resource_name import ResourceNameEnhancer
from models import EndpointConfig, EnhancerSpec

logger = logging.getLogger(__name__)


class PipelineConfigurationError(ValueError):
    """The pipeline cannot be built from the given configuration."""


class EnhancementPipeline:
    def __init__(self, enhancers: Sequence[DocumentEnhancer]):
        if not enhancers:
            raise PipelineConfigurationError(
                "An enhancement pipeline needs at least one enhancer"
            )
        self._enhancers = tuple(enhancers)

    @property
    def enhancers(self) -> Sequence[DocumentEnhancer]:
        return self._enhancers

    def enhance(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Run every enhancer on record, in order. Returns the same (mutated) record."""
        for enhancer in self._enhancers:
            try:
                enhancer.enrich(record)
            except Exception:  # pylint: disable=broad-except
                # Enhancers absorb their own failures; this only guards the chain
                logger.exception(
                    "Enhancer for '%s' raised, continuing with the next one",
                    enhancer.enhanced_field_name,
                )
        return record

    def enhance_many(self, records: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [self.enhance(record) for record in records]

    def purge_expired(self) -> int:
        purged = sum(enhancer.purge_expired() for enhancer in self._enhancers)
        if purged:
            logger.info("Purged %d expired cache entries", purged)
        return purged

    def close(self) -> None:
        for enhancer in self._enhancers:
            enhancer.close()


def build_pipeline(
    endpoint_config: EndpointConfig,
    specs: Sequence[EnhancerSpec],
    transport: Optional[httpx.BaseTransport] = None,
) -> EnhancementPipeline:
    """
    One ResourceNameEnhancer per spec, each with its own cache and client.

    transport replaces the network layer of every client (used by tests).
    """
    if not specs:
        raise PipelineConfigurationError("At least one enhancer spec is required")
    enhancers: List[DocumentEnhancer] = [
        ResourceNameEnhancer(
            endpoint_config,
            spec,
            client=ManagementApiClient(endpoint_config, transport=transport),
        )
        for spec in specs
    ]
    logger.info(
        "Built enhancement pipeline for %s (endpoint=%s)",
        ", ".join(spec.enhanced_field_name for spec in specs),
        endpoint_config.endpoint,
    )
    return EnhancementPipeline(enhancers)


def attribution_specs(
    api_field: Optional[str], application_field: Optional[str]
) -> List[EnhancerSpec]:
    """
    Specs for the standard api / application attribution.

      api_field         → GET /apis/{id}         → api-name
      application_field → GET /applications/{id} → application-name

    A field set to None (or empty) is not enhanced.
    """
    specs: List[EnhancerSpec] = []
    if api_field:
        specs.append(
            EnhancerSpec(
                field_name=api_field,
                enhanced_field_name=API_NAME_FIELD,
                resource_base_path=APIS_PATH,
                resource_name_attribute=RESOURCE_NAME_ATTRIBUTE,
            )
        )
    if application_field:
        specs.append(
            EnhancerSpec(
                field_name=application_field,
                enhanced_field_name=APPLICATION_NAME_FIELD,
                resource_base_path=APPLICATIONS_PATH,
                resource_name_attribute=RESOURCE_NAME_ATTRIBUTE,
            )
        )
    return specs


def build_attribution_pipeline(
    endpoint_config: EndpointConfig,
    api_field: Optional[str] = "api",
    application_field: Optional[str] = "application",
    transport: Optional[httpx.BaseTransport] = None,
) -> EnhancementPipeline:
    specs = attribution_specs(api_field, application_field)
    if not specs:
        raise PipelineConfigurationError(
            "Neither api_field nor application_field is configured; nothing to enhance"
        )
    return build_pipeline(endpoint_config, specs, transport=transport)
