"""Services package - business logic layer."""

from crm_assistant.services.cache_resolver import TieredCacheResolver, pick_first_non_empty
from crm_assistant.services.chat import ChatService
from crm_assistant.services.context_aggregator import (
    ContextAggregator,
    build_dataset_queries,
    parse_amount,
)
from crm_assistant.services.prompt_composer import PromptComposer, format_brl
from crm_assistant.services.streaming_relay import (
    GenerationError,
    RelayRun,
    RelayState,
    StreamAbortedError,
    StreamingRelay,
    encode_sse,
)

__all__ = [
    "TieredCacheResolver",
    "pick_first_non_empty",
    "ChatService",
    "ContextAggregator",
    "build_dataset_queries",
    "parse_amount",
    "PromptComposer",
    "format_brl",
    "GenerationError",
    "RelayRun",
    "RelayState",
    "StreamAbortedError",
    "StreamingRelay",
    "encode_sse",
]
