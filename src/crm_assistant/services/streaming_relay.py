"""Streaming relay - turns an incremental model answer into stream events."""

import asyncio
import json
from collections.abc import AsyncGenerator, AsyncIterable, Awaitable, Callable, Sequence
from enum import Enum

from crm_assistant.clients.model import GeminiClient, ModelClientError
from crm_assistant.observability import get_logger
from crm_assistant.observability.constants import LogEvents
from crm_assistant.schemas.requests import ConversationTurn, ModelContent
from crm_assistant.schemas.responses import DoneEvent, ErrorEvent, FragmentEvent, StreamEvent

logger = get_logger(__name__)

DONE_FRAME = "data: [DONE]\n\n"

DEFAULT_SYSTEM_PROMPT = """Você é um Assistente de Vendas Inteligente integrado em uma ferramenta de CRM/Força de Vendas chamada Sankhya CRM.

SEU PAPEL E RESPONSABILIDADES:
- Ajudar vendedores a identificar oportunidades de vendas
- Sugerir ações estratégicas para fechar negócios
- Analisar leads e recomendar próximos passos
- Identificar clientes potenciais com maior chance de conversão
- Sugerir produtos que podem interessar aos clientes
- Alertar sobre leads em risco ou oportunidades urgentes

DADOS QUE VOCÊ TEM ACESSO:
- Leads: oportunidades de vendas com valor, estágio e parceiro associado
- Parceiros: clientes e prospects cadastrados no sistema
- Produtos: catálogo real de produtos com estoque atual (use apenas os produtos fornecidos no contexto)
- Pedidos: histórico de vendas

REGRA IMPORTANTE SOBRE PRODUTOS:
Nunca mencione produtos que não estejam explicitamente listados nos dados fornecidos.
Se não houver produtos na lista, informe que não há produtos cadastrados no momento.

COMO VOCÊ DEVE AGIR:
1. Sempre analise os dados fornecidos antes de responder
2. Seja proativo em sugerir vendas e ações comerciais
3. Use métricas e números concretos em suas análises
4. Priorize leads com maior valor e urgência
5. Sugira próximos passos claros e acionáveis

FORMATO DAS RESPOSTAS:
- Use emojis para destacar informações importantes (📊 💰 🎯 ⚠️ ✅)
- Organize informações em listas quando relevante
- Destaque valores monetários e datas importantes
- Seja conciso mas informativo"""

DEFAULT_ACKNOWLEDGEMENT = (
    "Entendido! Sou seu Assistente de Vendas no Sankhya CRM. Estou pronto para "
    "analisar seus dados e ajudar você a vender mais. Como posso ajudar?"
)


class GenerationError(Exception):
    """Error during generation."""

    pass


class StreamAbortedError(Exception):
    """Raised into the transport so the response ends without a [DONE] frame."""

    pass


class RelayState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


class RelayRun:
    """One generation attempt for one user message.

    ``events()`` may be consumed once. The run moves from ``idle`` to
    ``streaming`` on the first pull and ends ``completed`` (after a single
    DoneEvent) or ``failed`` (after a single ErrorEvent, or when the client
    went away).
    """

    def __init__(
        self,
        model_client: GeminiClient,
        contents: list[ModelContent],
        temperature: float,
        max_output_tokens: int,
        is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    ):
        self.model_client = model_client
        self.contents = contents
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.is_disconnected = is_disconnected
        self.state = RelayState.IDLE
        self.fragments_sent = 0

    async def events(self) -> AsyncGenerator[StreamEvent, None]:
        """Yield fragments as the model produces them, then one terminal event."""
        if self.state is not RelayState.IDLE:
            raise RuntimeError(f"Relay run already {self.state.value}")

        self.state = RelayState.STREAMING
        logger.info(LogEvents.SSE_STREAM_STARTED, turns=len(self.contents))

        stream = self.model_client.stream_generate(
            self.contents,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )
        try:
            # Checked before every pull from the model
            if await self._client_gone():
                return
            async for text in stream:
                self.fragments_sent += 1
                yield FragmentEvent(text=text)
                if await self._client_gone():
                    return

        except ModelClientError as e:
            self.state = RelayState.FAILED
            error = GenerationError(f"Model stream failed: {e}")
            logger.error(
                LogEvents.SSE_STREAM_FAILED,
                error=str(error),
                fragments_sent=self.fragments_sent,
            )
            yield ErrorEvent(message=str(error))
            return

        except Exception as e:
            self.state = RelayState.FAILED
            logger.exception(LogEvents.SSE_STREAM_FAILED, fragments_sent=self.fragments_sent)
            yield ErrorEvent(message=f"Unexpected generation error: {e}")
            return

        except (GeneratorExit, asyncio.CancelledError):
            # The consumer closed us (client disconnect or cancelled task)
            self._mark_disconnected()
            raise

        finally:
            await stream.aclose()

        self.state = RelayState.COMPLETED
        logger.info(LogEvents.SSE_STREAM_COMPLETED, fragments_sent=self.fragments_sent)
        yield DoneEvent()

    async def _client_gone(self) -> bool:
        if self.is_disconnected is None or not await self.is_disconnected():
            return False
        self._mark_disconnected()
        return True

    def _mark_disconnected(self) -> None:
        self.state = RelayState.FAILED
        logger.info(LogEvents.SSE_STREAM_DISCONNECTED, fragments_sent=self.fragments_sent)


class StreamingRelay:
    """Drives the model for a rendered prompt and relays its answer."""

    def __init__(
        self,
        model_client: GeminiClient,
        temperature: float = 0.7,
        max_output_tokens: int = 1500,
        system_prompt: str | None = None,
        acknowledgement: str | None = None,
    ):
        self.model_client = model_client
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT
        self.acknowledgement = acknowledgement or DEFAULT_ACKNOWLEDGEMENT

    def build_contents(
        self,
        history: Sequence[ConversationTurn],
        prompt: str,
    ) -> list[ModelContent]:
        """Priming turns, then the conversation so far, then the prompt."""
        contents = [
            ModelContent.of("user", self.system_prompt),
            ModelContent.of("model", self.acknowledgement),
        ]
        for turn in history:
            role = "model" if turn.role == "assistant" else "user"
            contents.append(ModelContent.of(role, turn.content))
        contents.append(ModelContent.of("user", prompt))
        return contents

    def start(
        self,
        history: Sequence[ConversationTurn],
        prompt: str,
        is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    ) -> RelayRun:
        """Prepare a single generation attempt; nothing is sent until iterated."""
        return RelayRun(
            model_client=self.model_client,
            contents=self.build_contents(history, prompt),
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            is_disconnected=is_disconnected,
        )


def format_event(event: FragmentEvent | DoneEvent) -> str:
    """Wire frame for a fragment or the end-of-stream sentinel."""
    if isinstance(event, DoneEvent):
        return DONE_FRAME
    return f"data: {json.dumps({'text': event.text}, ensure_ascii=False)}\n\n"


async def encode_sse(events: AsyncIterable[StreamEvent]) -> AsyncGenerator[str, None]:
    """
    Encode stream events as SSE frames.

    An ErrorEvent is not encoded: it raises StreamAbortedError so the
    transport aborts the body, leaving the client without a [DONE] frame.
    """
    async for event in events:
        if isinstance(event, ErrorEvent):
            raise StreamAbortedError(event.message)
        yield format_event(event)
