"""Constants for observability layer."""

# HTTP header for correlation ID propagation
CORRELATION_ID_HEADER = "X-Correlation-ID"

# Service identifier for logs
SERVICE_NAME = "crm-assistant"


# Log event names following the pattern: {domain}.{action}.{result}
class LogEvents:
    """Standardized log event names."""

    # Chat events
    CHAT_REQUEST_STARTED = "chat.request.started"
    CHAT_REQUEST_FAILED = "chat.request.failed"
    CHAT_CONTEXT_ATTACHED = "chat.context.attached"
    CHAT_CONTEXT_SKIPPED = "chat.context.skipped"

    # Identity events
    IDENTITY_MALFORMED = "identity.cookie.malformed"

    # Aggregation events
    AGGREGATION_STARTED = "aggregation.snapshot.started"
    AGGREGATION_COMPLETED = "aggregation.snapshot.completed"
    AGGREGATION_FAILED = "aggregation.snapshot.failed"
    DATASET_LOADED = "aggregation.dataset.loaded"
    DATASET_FAILED = "aggregation.dataset.failed"
    DATASET_TIMEOUT = "aggregation.dataset.timeout"

    # Cache events
    CACHE_HIT = "cache.lookup.hit"
    CACHE_MISS = "cache.lookup.miss"
    CACHE_UNAVAILABLE = "cache.lookup.unavailable"
    CACHE_MALFORMED = "cache.lookup.malformed"

    # Outbound fetch events
    FETCH_FAILED = "fetch.request.failed"
    FETCH_TIMEOUT = "fetch.request.timeout"

    # SSE streaming events
    SSE_STREAM_STARTED = "sse.stream.started"
    SSE_STREAM_COMPLETED = "sse.stream.completed"
    SSE_STREAM_FAILED = "sse.stream.failed"
    SSE_STREAM_DISCONNECTED = "sse.stream.disconnected"

    # Model events
    MODEL_QUERY_STARTED = "model.query.started"
    MODEL_QUERY_FAILED = "model.query.failed"

    # Request lifecycle events
    REQUEST_STARTED = "request.started"
    REQUEST_COMPLETED = "request.completed"
    REQUEST_FAILED = "request.failed"

    # Error events
    ERROR_UNHANDLED = "error.unhandled"
    ERROR_VALIDATION = "error.validation"


# Fields that should be redacted in logs
SENSITIVE_FIELDS = frozenset({
    # Authentication
    "password",
    "secret",
    "cookie",
    # Tokens
    "token",
    "access_token",
    "api_key",
    "apikey",
    "x-goog-api-key",
    "authorization",
    "auth",
    # Chat content (may contain sensitive info)
    "system_prompt",
})

# Fields to redact (case-insensitive patterns)
SENSITIVE_FIELD_PATTERNS = frozenset({
    "password",
    "secret",
    "token",
    "key",
    "credential",
    "auth",
})

# Redaction placeholder
REDACTED_VALUE = "[REDACTED]"
