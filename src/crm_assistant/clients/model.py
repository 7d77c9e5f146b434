"""Client for the Gemini streaming generation API."""

import json
from collections.abc import AsyncGenerator
from typing import Any

import httpx

from crm_assistant.observability import get_logger
from crm_assistant.observability.constants import LogEvents
from crm_assistant.schemas.requests import GenerateContentRequest, GenerationConfig, ModelContent

logger = get_logger(__name__)


class ModelClientError(Exception):
    """Error from the model endpoint."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GeminiClient:
    """Streams generated text from a Gemini model.

    One instance is built at startup from settings and shared by every
    request; it holds no per-request state.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout)
        self._transport = transport

    @property
    def stream_url(self) -> str:
        return f"{self.base_url}/v1beta/models/{self.model}:streamGenerateContent"

    async def stream_generate(
        self,
        contents: list[ModelContent],
        temperature: float = 0.7,
        max_output_tokens: int = 1500,
    ) -> AsyncGenerator[str, None]:
        """
        Send a conversation to the model and stream the answer.

        Args:
            contents: Role-tagged turns, oldest first, ending with the prompt
            temperature: Sampling temperature
            max_output_tokens: Maximum length of the answer

        Yields:
            Text fragments in generation order

        Raises:
            ModelClientError: If the request fails before or during the stream
        """
        request_data = GenerateContentRequest(
            contents=contents,
            generation_config=GenerationConfig(
                temperature=temperature,
                max_output_tokens=max_output_tokens,
            ),
        )

        logger.debug(LogEvents.MODEL_QUERY_STARTED, model=self.model, turns=len(contents))

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                async with client.stream(
                    "POST",
                    self.stream_url,
                    params={"alt": "sse"},
                    json=request_data.model_dump(by_alias=True),
                    headers={
                        "Content-Type": "application/json",
                        "Accept": "text/event-stream",
                        "x-goog-api-key": self.api_key,
                    },
                ) as response:
                    if response.status_code != 200:
                        error_text = await response.aread()
                        raise ModelClientError(
                            f"Model stream failed: HTTP {response.status_code} - {error_text[:200]!r}",
                            status_code=response.status_code,
                        )

                    async for line in response.aiter_lines():
                        chunk = self._parse_sse_line(line)
                        if chunk:
                            yield chunk

            except httpx.TimeoutException as e:
                raise ModelClientError("Model stream timed out") from e
            except httpx.RequestError as e:
                raise ModelClientError(f"Network error during stream: {e}") from e

    def _parse_sse_line(self, line: str) -> str | None:
        """Extract the text carried by one SSE line, if any."""
        line = line.strip()

        if not line.startswith("data:"):
            return None

        data = line[5:].strip()
        if not data or data == "[DONE]":
            return None

        try:
            parsed = json.loads(data)
        except json.JSONDecodeError:
            logger.warning(LogEvents.MODEL_QUERY_FAILED, reason="undecodable_chunk")
            return None

        if not isinstance(parsed, dict):
            return None

        if "error" in parsed:
            error = parsed["error"]
            message = error.get("message", "unknown error") if isinstance(error, dict) else str(error)
            raise ModelClientError(f"Model reported an error: {message}")

        return self._extract_text(parsed)

    def _extract_text(self, chunk: dict[str, Any]) -> str | None:
        """Join the text parts of the first candidate of a response chunk."""
        candidates = chunk.get("candidates") or []
        if not candidates:
            return None

        content = candidates[0].get("content") or {}
        texts = [part.get("text", "") for part in content.get("parts") or [] if isinstance(part, dict)]
        return "".join(texts) or None
