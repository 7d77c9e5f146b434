"""Tests for the deadline-bounded fetcher."""

import asyncio

import httpx
import pytest
import respx

from crm_assistant.clients.fetcher import FetchError, FetchTimeoutError, TimeoutFetcher

BASE_URL = "http://data-api.test"


class SlowTransport(httpx.AsyncBaseTransport):
    """Answers /slow after ``delay`` seconds and everything else at once."""

    def __init__(self, delay: float):
        self.delay = delay
        self.cancelled = False

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/slow":
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled = True
                raise
        return httpx.Response(200, json=[{"path": request.url.path}], request=request)


class TestFetch:
    """Tests for TimeoutFetcher.fetch() and fetch_json()."""

    @respx.mock
    @pytest.mark.asyncio
    async def test_fetch_json_relative_path(self) -> None:
        """Relative paths are joined to the base URL."""
        respx.get(f"{BASE_URL}/api/leads").mock(
            return_value=httpx.Response(200, json=[{"NOME": "Lead A"}])
        )

        fetcher = TimeoutFetcher(base_url=f"{BASE_URL}/")
        data = await fetcher.fetch_json("GET", "/api/leads", timeout_ms=1000)

        assert data == [{"NOME": "Lead A"}]

    @respx.mock
    @pytest.mark.asyncio
    async def test_fetch_keeps_query_string_and_headers(self) -> None:
        """Query strings embedded in the path and headers are sent as given."""
        route = respx.get(host="data-api.test", path="/api/leads/atividades").mock(
            return_value=httpx.Response(200, json=[])
        )

        fetcher = TimeoutFetcher(base_url=BASE_URL)
        await fetcher.fetch_json(
            "GET",
            "/api/leads/atividades?ativo=S",
            timeout_ms=1000,
            headers={"Cookie": 'user={"id":7}'},
        )

        request = route.calls.last.request
        assert request.url.params["ativo"] == "S"
        assert request.headers["cookie"] == 'user={"id":7}'

    @respx.mock
    @pytest.mark.asyncio
    async def test_fetch_returns_non_2xx_response(self) -> None:
        """fetch() hands back error responses; only fetch_json() rejects them."""
        respx.get(f"{BASE_URL}/api/leads").mock(return_value=httpx.Response(503))

        fetcher = TimeoutFetcher(base_url=BASE_URL)
        response = await fetcher.fetch("GET", "/api/leads", timeout_ms=1000)
        assert response.status_code == 503

        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch_json("GET", "/api/leads", timeout_ms=1000)

        assert exc_info.value.status_code == 503
        assert not isinstance(exc_info.value, FetchTimeoutError)

    @respx.mock
    @pytest.mark.asyncio
    async def test_fetch_json_invalid_body(self) -> None:
        """A non-JSON body is a fetch failure."""
        respx.get(f"{BASE_URL}/api/leads").mock(
            return_value=httpx.Response(200, text="<html>oops</html>")
        )

        fetcher = TimeoutFetcher(base_url=BASE_URL)
        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch_json("GET", "/api/leads", timeout_ms=1000)

        assert "JSON" in str(exc_info.value)

    @respx.mock
    @pytest.mark.asyncio
    async def test_network_error_keeps_cause(self) -> None:
        """Network failures surface as FetchError with the original cause."""
        respx.get(f"{BASE_URL}/api/leads").mock(
            side_effect=httpx.ConnectError("connection refused")
        )

        fetcher = TimeoutFetcher(base_url=BASE_URL)
        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch("GET", "/api/leads", timeout_ms=1000)

        assert isinstance(exc_info.value.cause, httpx.ConnectError)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert not isinstance(exc_info.value, FetchTimeoutError)

    @respx.mock
    @pytest.mark.asyncio
    async def test_transport_timeout_is_distinguishable(self) -> None:
        """An httpx timeout is reported as FetchTimeoutError."""
        respx.get(f"{BASE_URL}/api/leads").mock(side_effect=httpx.ReadTimeout("slow"))

        fetcher = TimeoutFetcher(base_url=BASE_URL)
        with pytest.raises(FetchTimeoutError):
            await fetcher.fetch("GET", "/api/leads", timeout_ms=1000)


class TestDeadline:
    """Tests for the hard per-request deadline."""

    @pytest.mark.asyncio
    async def test_deadline_cancels_request(self) -> None:
        """A request outliving its deadline is cancelled and reported."""
        transport = SlowTransport(delay=5)
        fetcher = TimeoutFetcher(base_url=BASE_URL, transport=transport)

        with pytest.raises(FetchTimeoutError) as exc_info:
            await fetcher.fetch("GET", "/slow", timeout_ms=50)

        assert transport.cancelled
        assert exc_info.value.url == f"{BASE_URL}/slow"

    @pytest.mark.asyncio
    async def test_deadline_does_not_cancel_siblings(self) -> None:
        """One fetch timing out leaves concurrent fetches untouched."""
        transport = SlowTransport(delay=5)
        fetcher = TimeoutFetcher(base_url=BASE_URL, transport=transport)

        slow, fast = await asyncio.gather(
            fetcher.fetch_json("GET", "/slow", timeout_ms=50),
            fetcher.fetch_json("GET", "/fast", timeout_ms=2000),
            return_exceptions=True,
        )

        assert isinstance(slow, FetchTimeoutError)
        assert fast == [{"path": "/fast"}]
