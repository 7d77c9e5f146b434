"""Context aggregation - builds the business data snapshot for a conversation."""

import asyncio
import json
import math
import re
import time
from typing import Any

from crm_assistant.clients.fetcher import FetchError, FetchTimeoutError, TimeoutFetcher
from crm_assistant.core.config import Settings
from crm_assistant.observability import get_logger
from crm_assistant.observability.constants import LogEvents
from crm_assistant.schemas.internal import (
    CacheHit,
    DatasetName,
    DatasetQuery,
    DatasetSlice,
    Snapshot,
    extract_items,
)
from crm_assistant.services.cache_resolver import TieredCacheResolver

logger = get_logger(__name__)

# Order matters: the most complete, most recently written format comes first
PARTNER_CACHE_KEYS = [
    "parceiros:list:1:50:::",
    "parceiros:list:1:20:::",
    "parceiros:list:1:10:::",
]
PRODUCT_CACHE_KEYS = [
    "produtos:list:all",
    "produtos:list:1:50::",
    "produtos:list:1:100::",
    "produtos:list:1:20::",
]

ORDER_AMOUNT_FIELD = "VLRNOTA"

_LEADING_NUMBER = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def build_dataset_queries(settings: Settings) -> dict[DatasetName, DatasetQuery]:
    """Acquisition policy for the five datasets of a snapshot."""
    return {
        "partners": DatasetQuery(
            name="partners",
            cache_keys=PARTNER_CACHE_KEYS,
            path="/api/sankhya/parceiros?page=1&pageSize=15",
            timeout_ms=settings.catalog_fetch_timeout_ms,
            cap=15,
            wrapper_field="parceiros",
        ),
        "products": DatasetQuery(
            name="products",
            cache_keys=PRODUCT_CACHE_KEYS,
            path="/api/sankhya/produtos?page=1&pageSize=20",
            timeout_ms=settings.catalog_fetch_timeout_ms,
            cap=20,
            wrapper_field="produtos",
        ),
        "leads": DatasetQuery(
            name="leads",
            path="/api/leads",
            timeout_ms=settings.leads_fetch_timeout_ms,
            cap=10,
            wrapper_field="leads",
            forward_identity=True,
        ),
        # The active filter is applied by the endpoint itself
        "activities": DatasetQuery(
            name="activities",
            path="/api/leads/atividades?ativo=S",
            timeout_ms=settings.activities_fetch_timeout_ms,
            cap=15,
            wrapper_field="atividades",
        ),
        "orders": DatasetQuery(
            name="orders",
            path="/api/sankhya/pedidos/listar?userId={user_id}",
            timeout_ms=settings.orders_fetch_timeout_ms,
            recent_cap=5,
            wrapper_field="pedidos",
        ),
    }


def parse_amount(value: Any) -> float:
    """Read a monetary amount leniently.

    Numbers pass through and strings contribute their leading numeric part
    ("12.5 BRL" -> 12.5). Anything else, including NaN and infinities,
    counts as 0.
    """
    if isinstance(value, bool):
        return 0.0

    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if not match:
            return 0.0
        number = float(match.group(0))
    else:
        return 0.0

    return number if math.isfinite(number) else 0.0


def bound(items: list[Any], cap: int | None) -> list[Any]:
    """Keep the first ``cap`` items, in source order."""
    return list(items) if cap is None else items[:cap]


class ContextAggregator:
    """
    Assembles a Snapshot from the cache and the live data API.

    Partners and products are looked up in the cache first and fetched live
    on a miss; leads, activities and orders are always fetched live. Every
    dataset is acquired concurrently and fails on its own: a failed or slow
    source contributes an empty slice and the snapshot is still produced.
    """

    def __init__(
        self,
        fetcher: TimeoutFetcher,
        resolver: TieredCacheResolver,
        datasets: dict[DatasetName, DatasetQuery],
        amount_field: str = ORDER_AMOUNT_FIELD,
    ):
        self.fetcher = fetcher
        self.resolver = resolver
        self.datasets = datasets
        self.amount_field = amount_field

    async def aggregate(self, user_id: int, user_name: str) -> Snapshot:
        """
        Build the snapshot for one user. Never raises.

        Args:
            user_id: Identity forwarded to user-scoped endpoints
            user_name: Display name placed in the snapshot

        Returns:
            Snapshot with every dataset bounded to its cap
        """
        start_time = time.perf_counter()
        logger.info(LogEvents.AGGREGATION_STARTED, user_id=user_id)

        try:
            leads, activities, orders, partners, products = await asyncio.gather(
                self._acquire(self.datasets["leads"], user_id),
                self._acquire(self.datasets["activities"], user_id),
                self._acquire(self.datasets["orders"], user_id),
                self._acquire(self.datasets["partners"], user_id),
                self._acquire(self.datasets["products"], user_id),
            )
        except Exception:
            logger.exception(LogEvents.AGGREGATION_FAILED, user_id=user_id)
            return Snapshot(user_name=user_name)

        # Order metrics cover the whole returned set, not the recent subset
        order_count = len(orders.items)
        order_total = sum(self._order_amount(order) for order in orders.items)

        snapshot = Snapshot(
            user_name=user_name,
            leads=self._bounded(leads, self.datasets["leads"]),
            activities=self._bounded(activities, self.datasets["activities"]),
            partners=self._bounded(partners, self.datasets["partners"]),
            products=self._bounded(products, self.datasets["products"]),
            orders=self._bounded(orders, self.datasets["orders"]),
            order_count=order_count,
            order_total=order_total,
        )

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            LogEvents.AGGREGATION_COMPLETED,
            leads=len(snapshot.leads.items),
            activities=len(snapshot.activities.items),
            partners=len(snapshot.partners.items),
            products=len(snapshot.products.items),
            orders=order_count,
            order_total=round(order_total, 2),
            latency_ms=latency_ms,
        )
        return snapshot

    def _bounded(self, acquired: DatasetSlice, query: DatasetQuery) -> DatasetSlice:
        return acquired.model_copy(
            update={
                "items": bound(acquired.items, query.display_cap),
                "available": len(acquired.items),
            }
        )

    def _order_amount(self, order: Any) -> float:
        if not isinstance(order, dict):
            return 0.0
        return parse_amount(order.get(self.amount_field))

    async def _acquire(self, query: DatasetQuery, user_id: int) -> DatasetSlice:
        """Acquire one dataset, unbounded. Failures become an empty slice."""
        start_time = time.perf_counter()

        if query.cache_keys:
            hit = await self._lookup_cache(query)
            if hit is not None:
                self._log_loaded(query, "cache", len(hit.items), start_time, key=hit.key)
                return DatasetSlice(items=hit.items, source="cache")

        try:
            payload = await self.fetcher.fetch_json(
                "GET",
                query.render_path(user_id),
                timeout_ms=query.timeout_ms,
                headers=self._identity_headers(user_id) if query.forward_identity else None,
            )
            items = extract_items(payload, query.wrapper_field)
            self._log_loaded(query, "live", len(items), start_time)
            return DatasetSlice(items=items, source="live")

        except FetchTimeoutError as e:
            logger.warning(
                LogEvents.DATASET_TIMEOUT,
                dataset=query.name,
                timeout_ms=query.timeout_ms,
                url=e.url,
            )
            return DatasetSlice(status="timeout", error_message=str(e))

        except FetchError as e:
            logger.warning(
                LogEvents.DATASET_FAILED,
                dataset=query.name,
                url=e.url,
                status_code=e.status_code,
                error=str(e),
            )
            return DatasetSlice(status="error", error_message=str(e))

        except Exception as e:
            logger.exception(LogEvents.DATASET_FAILED, dataset=query.name)
            return DatasetSlice(status="error", error_message=f"Unexpected error: {e}")

    async def _lookup_cache(self, query: DatasetQuery) -> CacheHit | None:
        """Resolve from the cache; any cache-side failure counts as a miss."""
        try:
            return await self.resolver.resolve(query.cache_keys, query.wrapper_field)
        except Exception:
            logger.exception(LogEvents.CACHE_UNAVAILABLE, dataset=query.name)
            return None

    def _identity_headers(self, user_id: int) -> dict[str, str]:
        """Session cookie the data API expects on user-scoped endpoints."""
        user_cookie = json.dumps({"id": user_id}, separators=(",", ":"))
        return {"Cookie": f"user={user_cookie}"}

    def _log_loaded(
        self,
        query: DatasetQuery,
        source: str,
        items: int,
        start_time: float,
        **extra: Any,
    ) -> None:
        latency_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            LogEvents.DATASET_LOADED,
            dataset=query.name,
            source=source,
            items=items,
            latency_ms=latency_ms,
            **extra,
        )
