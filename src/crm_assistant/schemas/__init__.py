"""Schemas package - request/response models for the assistant."""

from crm_assistant.schemas.internal import (
    CacheHit,
    DatasetQuery,
    DatasetSlice,
    Snapshot,
    UserIdentity,
    extract_items,
)
from crm_assistant.schemas.requests import (
    ChatRequest,
    ConversationTurn,
    GenerateContentRequest,
    GenerationConfig,
    ModelContent,
    ModelPart,
)
from crm_assistant.schemas.responses import (
    DoneEvent,
    ErrorEvent,
    ErrorResponse,
    FragmentEvent,
    StreamEvent,
)

__all__ = [
    # Requests
    "ChatRequest",
    "ConversationTurn",
    "GenerateContentRequest",
    "GenerationConfig",
    "ModelContent",
    "ModelPart",
    # Responses
    "DoneEvent",
    "ErrorEvent",
    "ErrorResponse",
    "FragmentEvent",
    "StreamEvent",
    # Internal
    "CacheHit",
    "DatasetQuery",
    "DatasetSlice",
    "Snapshot",
    "UserIdentity",
    "extract_items",
]
