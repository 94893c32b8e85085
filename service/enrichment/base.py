"""
Abstract base class for all document enhancers.

Why a base class:
  Adding a new enrichment source = new file implementing enrich().
  The pipeline calls enhancers without knowing their internals (Strategy pattern).

Enhancers run as a chain where each one can read what earlier ones wrote, and
each one must be resilient to earlier ones failing: whatever happens, it
writes its output field (falling back to a default value) and returns.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from enrichment.cache import CacheStats


class DocumentEnhancer(ABC):
    #: Name of the field this enhancer writes, used for logs and stats.
    enhanced_field_name: str

    @abstractmethod
    def enrich(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Accepts a record dict, returns the same dict object with added fields.
        Must not remove or replace existing fields, and must not raise.
        """

    def cache_stats(self) -> Optional[CacheStats]:
        """Stats of the enhancer's cache, None when it does not cache."""
        return None

    def purge_expired(self) -> int:
        return 0

    def close(self) -> None:
        """Release network resources. Called once when the pipeline is discarded."""
