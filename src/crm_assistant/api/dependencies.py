"""FastAPI dependencies for the assistant API."""

import json
from functools import lru_cache
from typing import Annotated

from fastapi import Cookie, Depends

from crm_assistant.clients import CacheStore, GeminiClient, TimeoutFetcher, get_redis_client
from crm_assistant.core.config import get_settings
from crm_assistant.observability import get_logger
from crm_assistant.observability.constants import LogEvents
from crm_assistant.schemas import UserIdentity
from crm_assistant.schemas.internal import ANONYMOUS_USER_NAME
from crm_assistant.services import (
    ChatService,
    ContextAggregator,
    PromptComposer,
    StreamingRelay,
    TieredCacheResolver,
    build_dataset_queries,
)

logger = get_logger(__name__)


@lru_cache
def get_model_client() -> GeminiClient:
    """Get the model client singleton, built once from settings."""
    settings = get_settings()
    return GeminiClient(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        base_url=settings.gemini_url,
        timeout=settings.generation_timeout,
    )


@lru_cache
def get_fetcher() -> TimeoutFetcher:
    """Get the data API fetcher singleton."""
    return TimeoutFetcher(base_url=get_settings().data_api_url)


def get_cache_store() -> CacheStore:
    """Get a cache store over the shared Redis client."""
    return CacheStore(get_redis_client())


def get_cache_resolver(
    cache_store: Annotated[CacheStore, Depends(get_cache_store)],
) -> TieredCacheResolver:
    """Get the tiered cache resolver."""
    return TieredCacheResolver(cache_store)


def get_context_aggregator(
    fetcher: Annotated[TimeoutFetcher, Depends(get_fetcher)],
    resolver: Annotated[TieredCacheResolver, Depends(get_cache_resolver)],
) -> ContextAggregator:
    """Get the context aggregator."""
    return ContextAggregator(
        fetcher=fetcher,
        resolver=resolver,
        datasets=build_dataset_queries(get_settings()),
    )


def get_prompt_composer() -> PromptComposer:
    """Get a prompt composer instance."""
    return PromptComposer()


def get_streaming_relay(
    model_client: Annotated[GeminiClient, Depends(get_model_client)],
) -> StreamingRelay:
    """Get the streaming relay bound to the model client."""
    settings = get_settings()
    return StreamingRelay(
        model_client=model_client,
        temperature=settings.generation_temperature,
        max_output_tokens=settings.generation_max_output_tokens,
    )


def get_chat_service(
    aggregator: Annotated[ContextAggregator, Depends(get_context_aggregator)],
    composer: Annotated[PromptComposer, Depends(get_prompt_composer)],
    relay: Annotated[StreamingRelay, Depends(get_streaming_relay)],
) -> ChatService:
    """Get the chat service."""
    return ChatService(aggregator=aggregator, composer=composer, relay=relay)


def get_user_identity(
    user: Annotated[str | None, Cookie()] = None,
) -> UserIdentity:
    """Read the caller identity from the ``user`` session cookie.

    A missing or unparsable cookie yields the anonymous identity, and a bad
    name alone falls back to the anonymous name. The request carries on
    either way.
    """
    if not user:
        return UserIdentity()

    try:
        data = json.loads(user)
        if not isinstance(data, dict):
            raise ValueError("cookie is not a JSON object")
        user_id = int(data.get("id") or 0)
    except (ValueError, TypeError) as e:
        logger.warning(LogEvents.IDENTITY_MALFORMED, error=str(e))
        return UserIdentity()

    name = data.get("name")
    if not isinstance(name, str) or not name:
        if name is not None and not isinstance(name, str):
            logger.warning(LogEvents.IDENTITY_MALFORMED, error="name is not a string")
        name = ANONYMOUS_USER_NAME
    return UserIdentity(user_id=user_id, name=name)
