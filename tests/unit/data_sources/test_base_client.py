"""Unit tests for base_client module."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from oncosaferx.data_sources.base_client import (
    BaseClient,
    CacheConfig,
    ClientConfig,
    DataSourceError,
    PartialResult,
    RateLimitConfig,
    RequestContext,
    RetryConfig,
    SlidingWindowRateLimiter,
)


class ConcreteTestClient(BaseClient):
    """Concrete implementation of BaseClient for testing."""

    @property
    def _source_name(self) -> str:
        return "test_client"


def _config(max_retries: int = 0, **kwargs) -> ClientConfig:
    return ClientConfig(retry=RetryConfig(max_retries=max_retries), **kwargs)


def _response(status: int, json_data=None, text: str = "") -> AsyncMock:
    resp = AsyncMock()
    resp.status = status
    resp.headers = {}
    resp.json = AsyncMock(return_value=json_data)
    resp.text = AsyncMock(return_value=text)
    return resp


def _session(*responses) -> AsyncMock:
    session = AsyncMock()
    session.request = AsyncMock(side_effect=list(responses))
    return session


@pytest.mark.asyncio
class TestBaseClient:
    """Unit tests for BaseClient session lifecycle (no network calls)."""

    async def test_client_context_manager(self):
        """Test that client can be used as async context manager."""
        async with ConcreteTestClient() as client:
            assert client._session is None  # Session created lazily
            session = await client._get_session()

            assert session is not None
            assert not session.closed

        # Session should be closed after exiting context
        assert client._session.closed

    async def test_session_reuse(self):
        """Test that session is reused across requests."""
        client = ConcreteTestClient()

        session1 = await client._get_session()
        session2 = await client._get_session()

        assert session1 is session2
        await client.close()

    async def test_backoff_is_capped(self):
        client = ConcreteTestClient()
        assert client._backoff(0) == 1.0
        assert client._backoff(2) == 4.0
        assert client._backoff(10) == 30.0


@pytest.mark.asyncio
class TestRestGet:
    """Unit tests for _rest_get."""

    async def test_returns_json_on_success(self):
        """Test _rest_get returns the decoded body and passes params through."""
        session = _session(_response(200, {"results": [1, 2]}))
        client = ConcreteTestClient(_config())

        with patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session):
            data = await client._rest_get("https://example.com/items", {"q": "abc"})

        assert data == {"results": [1, 2]}
        method, url = session.request.call_args.args
        assert method == "GET"
        assert url == "https://example.com/items"
        assert session.request.call_args.kwargs["params"] == {"q": "abc"}

    async def test_raises_datasource_error_on_4xx(self):
        """Test a non-retryable 4xx raises immediately without retrying."""
        session = _session(_response(404, text="Not Found"))
        client = ConcreteTestClient(_config(max_retries=3))

        with patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session):
            with pytest.raises(DataSourceError, match="HTTP 404") as exc_info:
                await client._rest_get("https://example.com/missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.source == "test_client"
        assert session.request.call_count == 1

    async def test_retries_on_5xx_then_succeeds(self):
        """Test _rest_get retries on 500 and succeeds on next attempt."""
        session = _session(_response(500, text="boom"), _response(200, {"ok": True}))
        client = ConcreteTestClient(_config(max_retries=1))

        with (
            patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session),
            patch("oncosaferx.data_sources.base_client.asyncio.sleep", new_callable=AsyncMock),
        ):
            data = await client._rest_get("https://example.com/flaky")

        assert data == {"ok": True}
        assert session.request.call_count == 2

    async def test_exhausted_retries_raise_with_status(self):
        """Test persistent 503s surface as DataSourceError after the last retry."""
        session = _session(_response(503, text="down"), _response(503, text="down"))
        client = ConcreteTestClient(_config(max_retries=1))

        with (
            patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session),
            patch("oncosaferx.data_sources.base_client.asyncio.sleep", new_callable=AsyncMock),
        ):
            with pytest.raises(DataSourceError) as exc_info:
                await client._rest_get("https://example.com/down")

        assert exc_info.value.status_code == 503
        # source prefix appears once
        assert str(exc_info.value).startswith("[test_client] HTTP 503")
        assert "[test_client] [test_client]" not in str(exc_info.value)

    async def test_connection_error_is_retried(self):
        """Test aiohttp client errors count as retryable failures."""
        session = AsyncMock()
        session.request = AsyncMock(
            side_effect=[aiohttp.ClientConnectionError("refused"), _response(200, [1])]
        )
        client = ConcreteTestClient(_config(max_retries=1))

        with (
            patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session),
            patch("oncosaferx.data_sources.base_client.asyncio.sleep", new_callable=AsyncMock),
        ):
            data = await client._rest_get("https://example.com/x")

        assert data == [1]

    async def test_cache_hit_skips_request(self, tmp_path):
        """Test a cached GET is served from disk on the second call."""
        session = _session(_response(200, {"n": 1}))
        client = ConcreteTestClient(
            _config(cache=CacheConfig(enabled=True, directory=tmp_path))
        )

        with patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session):
            first = await client._rest_get("https://example.com/c", {"a": 1}, cache_namespace="ns")
            second = await client._rest_get("https://example.com/c", {"a": 1}, cache_namespace="ns")

        assert first == second == {"n": 1}
        assert session.request.call_count == 1

    async def test_cache_disabled_by_default(self, tmp_path):
        session = _session(_response(200, {"n": 1}), _response(200, {"n": 2}))
        client = ConcreteTestClient(_config())

        with patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session):
            await client._rest_get("https://example.com/c", cache_namespace="ns")
            second = await client._rest_get("https://example.com/c", cache_namespace="ns")

        assert second == {"n": 2}


@pytest.mark.asyncio
class TestRestPost:
    """Unit tests for _rest_post and 204 handling."""

    async def test_posts_json_body(self):
        session = _session(_response(200, {"success": True}))
        client = ConcreteTestClient(_config())

        with patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session):
            data = await client._rest_post("https://example.com/p", {"a": 1}, headers={"X-Test": "1"})

        assert data == {"success": True}
        kwargs = session.request.call_args.kwargs
        assert kwargs["json"] == {"a": 1}
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert kwargs["headers"]["X-Test"] == "1"

    async def test_no_content_returns_none(self):
        resp = _response(204)
        session = _session(resp)
        client = ConcreteTestClient(_config())

        with patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session):
            data = await client._rest_post("https://example.com/logout", None)

        assert data is None
        resp.json.assert_not_awaited()


class TestUnwrap:
    """Unit tests for _unwrap."""

    def test_complete_result_returns_data(self):
        client = ConcreteTestClient()
        assert client._unwrap(PartialResult(data={"a": 1}), None) == {"a": 1}

    def test_incomplete_result_raises_with_context_source(self):
        client = ConcreteTestClient()
        result = PartialResult(
            data=None, is_complete=False, errors=["[other] Timeout after 30.0s"]
        )
        ctx = RequestContext(source="other", method="fetch")

        with pytest.raises(DataSourceError, match="Timeout") as exc_info:
            client._unwrap(result, ctx)

        assert exc_info.value.source == "other"
        assert str(exc_info.value) == "[other] Timeout after 30.0s"


@pytest.mark.asyncio
class TestRetryAfterAndRateLimit:
    async def test_retry_after_header_sets_the_wait(self):
        throttled = _response(429, text="slow down")
        throttled.headers = {"Retry-After": "7"}
        session = _session(throttled, _response(200, {"ok": True}))
        client = ConcreteTestClient(_config(max_retries=1))

        with (
            patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session),
            patch("oncosaferx.data_sources.base_client.asyncio.sleep", new_callable=AsyncMock) as sleep,
        ):
            data = await client._rest_get("https://example.com/busy")

        assert data == {"ok": True}
        sleep.assert_awaited_once_with(7.0)

    async def test_limiter_waits_once_window_is_full(self):
        limiter = SlidingWindowRateLimiter(RateLimitConfig(max_requests=2, period_seconds=1.0))

        with patch("oncosaferx.data_sources.base_client.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await limiter.acquire()
            await limiter.acquire()
            sleep.assert_not_awaited()
            await limiter.acquire()

        sleep.assert_awaited_once()
        assert 0 < sleep.await_args.args[0] <= 1.0
        assert len(limiter._sent) == 2


@pytest.mark.asyncio
class TestUnreadableBody:
    """Failures while reading a successful response body."""

    async def test_html_page_raises_datasource_error(self):
        resp = _response(200)
        resp.json = AsyncMock(
            side_effect=aiohttp.ContentTypeError(
                MagicMock(),
                (),
                message="Attempt to decode JSON with unexpected mimetype: text/html",
            )
        )
        session = _session(resp)
        client = ConcreteTestClient(_config(max_retries=2))

        with patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session):
            with pytest.raises(DataSourceError, match="not JSON") as exc_info:
                await client._rest_get("https://example.com/index.html")

        assert exc_info.value.status_code == 200
        assert exc_info.value.source == "test_client"
        assert session.request.call_count == 1

    async def test_invalid_json_raises_datasource_error(self):
        resp = _response(200)
        resp.json = AsyncMock(side_effect=json.JSONDecodeError("Expecting value", "<html>", 0))
        session = _session(resp)
        client = ConcreteTestClient(_config())

        with patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session):
            with pytest.raises(DataSourceError, match="Invalid JSON body"):
                await client._rest_get("https://example.com/broken")

    async def test_timeout_while_reading_body_is_retried(self):
        slow = _response(200)
        slow.json = AsyncMock(side_effect=asyncio.TimeoutError())
        session = _session(slow, _response(200, {"ok": True}))
        client = ConcreteTestClient(_config(max_retries=1))

        with (
            patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session),
            patch("oncosaferx.data_sources.base_client.asyncio.sleep", new_callable=AsyncMock),
        ):
            data = await client._rest_get("https://example.com/slow")

        assert data == {"ok": True}
        assert session.request.call_count == 2

    async def test_http_date_retry_after_falls_back_to_backoff(self):
        throttled = _response(429, text="slow down")
        throttled.headers = {"Retry-After": "Wed, 21 Oct 2026 07:28:00 GMT"}
        session = _session(throttled, _response(200, []))
        client = ConcreteTestClient(_config(max_retries=1))

        with (
            patch.object(client, "_get_session", new_callable=AsyncMock, return_value=session),
            patch("oncosaferx.data_sources.base_client.asyncio.sleep", new_callable=AsyncMock) as sleep,
        ):
            await client._rest_get("https://example.com/busy")

        sleep.assert_awaited_once_with(1.0)
