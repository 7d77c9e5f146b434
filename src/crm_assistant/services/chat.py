"""Chat service - coordinates context gathering, prompt rendering and relay."""

from collections.abc import Awaitable, Callable

from crm_assistant.observability import get_logger
from crm_assistant.observability.constants import LogEvents
from crm_assistant.schemas import ChatRequest, UserIdentity
from crm_assistant.services.context_aggregator import ContextAggregator
from crm_assistant.services.prompt_composer import PromptComposer
from crm_assistant.services.streaming_relay import RelayRun, StreamingRelay

logger = get_logger(__name__)


class ChatService:
    """
    Main coordinator for one chat message.

    Coordinates:
    1. Snapshot aggregation, on the first message of a conversation only
    2. Prompt rendering
    3. Streaming relay of the model's answer
    """

    def __init__(
        self,
        aggregator: ContextAggregator,
        composer: PromptComposer,
        relay: StreamingRelay,
    ):
        self.aggregator = aggregator
        self.composer = composer
        self.relay = relay

    async def prepare_prompt(self, request: ChatRequest, identity: UserIdentity) -> str:
        """Render the prompt for ``request``, aggregating context if needed."""
        if request.history:
            logger.info(LogEvents.CHAT_CONTEXT_SKIPPED, history_turns=len(request.history))
            return self.composer.compose(request.history, None, request.message)

        snapshot = await self.aggregator.aggregate(identity.user_id, identity.name)
        prompt = self.composer.compose(request.history, snapshot, request.message)
        logger.info(LogEvents.CHAT_CONTEXT_ATTACHED, prompt_chars=len(prompt))
        return prompt

    async def start(
        self,
        request: ChatRequest,
        identity: UserIdentity,
        is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    ) -> RelayRun:
        """Prepare the prompt and a relay run ready to be streamed."""
        logger.info(
            LogEvents.CHAT_REQUEST_STARTED,
            user_id=identity.user_id,
            history_turns=len(request.history),
        )
        try:
            prompt = await self.prepare_prompt(request, identity)
        except Exception as e:
            logger.error(
                LogEvents.CHAT_REQUEST_FAILED,
                user_id=identity.user_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise
        return self.relay.start(request.history, prompt, is_disconnected=is_disconnected)
