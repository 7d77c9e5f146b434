"""Tests for the Gemini streaming client."""

import json

import httpx
import pytest
import respx

from crm_assistant.clients.model import GeminiClient, ModelClientError
from crm_assistant.schemas.requests import ModelContent

BASE_URL = "http://gemini.test"
STREAM_PATH = "/v1beta/models/gemini-2.5-flash:streamGenerateContent"


def sse_body(*chunks: dict) -> str:
    return "".join(f"data: {json.dumps(chunk)}\r\n\r\n" for chunk in chunks)


def text_chunk(*texts: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": t} for t in texts]}}]}


@pytest.fixture
def model_client() -> GeminiClient:
    return GeminiClient(api_key="test-key", base_url=f"{BASE_URL}/")


@pytest.fixture
def contents() -> list[ModelContent]:
    return [ModelContent.of("user", "Oi")]


async def collect(model_client: GeminiClient, contents: list[ModelContent]) -> list[str]:
    return [text async for text in model_client.stream_generate(contents)]


def test_stream_url(model_client):
    assert model_client.stream_url == f"{BASE_URL}{STREAM_PATH}"


class TestStreamGenerate:
    """Tests for GeminiClient.stream_generate()."""

    @respx.mock
    @pytest.mark.asyncio
    async def test_streams_text_fragments(self, model_client, contents):
        respx.post(host="gemini.test", path=STREAM_PATH).mock(
            return_value=httpx.Response(
                200,
                text=sse_body(text_chunk("Olá"), text_chunk(", ", "Ana"), {"candidates": []}),
                headers={"Content-Type": "text/event-stream"},
            )
        )

        fragments = await collect(model_client, contents)

        assert fragments == ["Olá", ", Ana"]

    @respx.mock
    @pytest.mark.asyncio
    async def test_request_shape(self, model_client, contents):
        route = respx.post(host="gemini.test", path=STREAM_PATH).mock(
            return_value=httpx.Response(200, text=sse_body(text_chunk("ok")))
        )

        fragments = [
            text
            async for text in model_client.stream_generate(
                contents, temperature=0.3, max_output_tokens=99
            )
        ]

        assert fragments == ["ok"]
        request = route.calls.last.request
        assert request.url.params["alt"] == "sse"
        assert request.headers["x-goog-api-key"] == "test-key"
        body = json.loads(request.content)
        assert body["contents"] == [{"role": "user", "parts": [{"text": "Oi"}]}]
        assert body["generationConfig"] == {"temperature": 0.3, "maxOutputTokens": 99}

    @respx.mock
    @pytest.mark.asyncio
    async def test_ignores_non_data_lines(self, model_client, contents):
        body = ": keep-alive\r\n\r\ndata: not-json\r\n\r\n" + sse_body(text_chunk("fim"))
        respx.post(host="gemini.test", path=STREAM_PATH).mock(
            return_value=httpx.Response(200, text=body)
        )

        assert await collect(model_client, contents) == ["fim"]

    @respx.mock
    @pytest.mark.asyncio
    async def test_http_error(self, model_client, contents):
        respx.post(host="gemini.test", path=STREAM_PATH).mock(
            return_value=httpx.Response(403, json={"error": {"message": "API key invalid"}})
        )

        with pytest.raises(ModelClientError) as exc_info:
            await collect(model_client, contents)

        assert exc_info.value.status_code == 403

    @respx.mock
    @pytest.mark.asyncio
    async def test_in_stream_error_after_fragments(self, model_client, contents):
        respx.post(host="gemini.test", path=STREAM_PATH).mock(
            return_value=httpx.Response(
                200,
                text=sse_body(text_chunk("Hel"), {"error": {"code": 500, "message": "overloaded"}}),
            )
        )
        received = []

        with pytest.raises(ModelClientError, match="overloaded"):
            async for text in model_client.stream_generate(contents):
                received.append(text)

        assert received == ["Hel"]

    @respx.mock
    @pytest.mark.asyncio
    async def test_timeout(self, model_client, contents):
        respx.post(host="gemini.test", path=STREAM_PATH).mock(
            side_effect=httpx.ReadTimeout("slow")
        )

        with pytest.raises(ModelClientError, match="timed out"):
            await collect(model_client, contents)

    @respx.mock
    @pytest.mark.asyncio
    async def test_network_error(self, model_client, contents):
        respx.post(host="gemini.test", path=STREAM_PATH).mock(
            side_effect=httpx.ConnectError("refused")
        )

        with pytest.raises(ModelClientError, match="Network error"):
            await collect(model_client, contents)
