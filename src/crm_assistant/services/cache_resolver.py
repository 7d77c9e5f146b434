"""Tiered cache resolution for datasets stored under several key formats.

Different producers have written the same dataset under different keys over
time (e.g. one key per page size). Candidates are tried in a fixed order and
the first one holding a non-empty list wins; results are never merged.
"""

from collections.abc import Iterable
from typing import Any

from crm_assistant.clients.cache import CacheStore
from crm_assistant.observability import get_logger
from crm_assistant.observability.constants import LogEvents
from crm_assistant.schemas.internal import CacheHit, extract_items

logger = get_logger(__name__)


def pick_first_non_empty(
    candidates: Iterable[tuple[str, Any]],
    wrapper_field: str | None,
) -> CacheHit | None:
    """Return the first candidate whose decoded item list is non-empty.

    Args:
        candidates: ``(key, payload)`` pairs in preference order
        wrapper_field: Field holding the list in wrapped payloads

    Returns:
        The winning key with its items, or None when every candidate is
        absent, malformed or empty
    """
    for key, payload in candidates:
        items = extract_items(payload, wrapper_field)
        if items:
            return CacheHit(key=key, items=items)
    return None


class TieredCacheResolver:
    """Looks a dataset up under its candidate cache keys."""

    def __init__(self, cache_store: CacheStore):
        self.cache_store = cache_store

    async def resolve(
        self,
        candidate_keys: list[str],
        wrapper_field: str | None,
    ) -> CacheHit | None:
        """
        Resolve a dataset from the cache.

        Args:
            candidate_keys: Keys to try, most preferred first
            wrapper_field: Field holding the list in wrapped payloads

        Returns:
            CacheHit for the first non-empty candidate, or None (miss) so the
            caller can fall through to a live fetch
        """
        if not candidate_keys:
            return None

        payloads = await self.cache_store.get_many(candidate_keys)
        hit = pick_first_non_empty(zip(candidate_keys, payloads), wrapper_field)

        if hit is None:
            logger.debug(LogEvents.CACHE_MISS, keys=candidate_keys)
        else:
            logger.debug(LogEvents.CACHE_HIT, key=hit.key, items=len(hit.items))

        return hit
