"""
HTTP plumbing shared by the Supabase and application backend clients.

Every call goes through ``BaseClient._request``: a sliding-window rate
limit, then up to ``max_retries`` extra attempts for 429/5xx, timeouts and
connection errors with exponential backoff. GET responses can be kept in
the disk cache, which is off unless a ``CacheConfig`` enables it.
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from collections import deque
from pathlib import Path
from typing import Any

import aiohttp
from pydantic import BaseModel

from oncosaferx.constants import CACHE_TTL, DEFAULT_CACHE_DIR, DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT
from oncosaferx.utils.cache import cache_get, cache_invalidate, cache_set

logger = logging.getLogger("oncosaferx.data_sources")

ERROR_BODY_LIMIT = 500


class RetryConfig(BaseModel):
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0  # seconds
    backoff_factor: float = 2.0
    retryable_status_codes: set[int] = {429, 500, 502, 503, 504}


class RateLimitConfig(BaseModel):
    """At most ``max_requests`` in any ``period_seconds`` window."""

    max_requests: int = 10
    period_seconds: float = 1.0


class CacheConfig(BaseModel):
    """Disk cache settings. Off by default: most calls carry user data."""

    enabled: bool = False
    directory: Path = DEFAULT_CACHE_DIR
    ttl_seconds: int = CACHE_TTL


class ClientConfig(BaseModel):
    retry: RetryConfig = RetryConfig()
    rate_limit: RateLimitConfig = RateLimitConfig()
    cache: CacheConfig = CacheConfig()
    timeout_seconds: float = DEFAULT_TIMEOUT


class RequestContext(BaseModel):
    """Who is calling, for log lines and error attribution."""

    source: str  # "supabase" | "backend"
    method: str  # client method name, e.g. "search_drugs"
    params: dict[str, Any] = {}


class DataSourceError(Exception):
    """A hosted service failed or answered with an error status.

    ``str(error)`` is ``"[source] message"``; ``status_code`` is the HTTP
    status when there was one.
    """

    def __init__(self, source: str, message: str, status_code: int | None = None):
        self.source = source
        self.status_code = status_code
        super().__init__(f"[{source}] {message}")


class PartialResult(BaseModel):
    """Outcome of ``_request``. ``is_complete`` is False once retries ran out."""

    data: Any
    is_complete: bool = True
    errors: list[str] = []
    status_code: int | None = None
    cached: bool = False
    elapsed_seconds: float = 0.0


class _RetryableFailure(Exception):
    """One attempt failed in a way worth another try."""

    def __init__(self, error: DataSourceError, retry_after: float | None = None):
        super().__init__(str(error))
        self.error = error
        self.retry_after = retry_after


class SlidingWindowRateLimiter:
    """Blocks ``acquire`` while the last window already holds ``max_requests`` calls."""

    def __init__(self, config: RateLimitConfig):
        self.max_requests = config.max_requests
        self.period = config.period_seconds
        self._sent: deque[float] = deque()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            now = time.monotonic()
            while self._sent and now - self._sent[0] >= self.period:
                self._sent.popleft()
            if len(self._sent) >= self.max_requests:
                wait = self.period - (now - self._sent[0])
                logger.debug("Rate limit reached, waiting %.2fs", wait)
                await asyncio.sleep(wait)
                self._sent.popleft()
            self._sent.append(time.monotonic())


class DiskCache:
    """``utils.cache`` bound to a client's CacheConfig; a no-op when disabled."""

    def __init__(self, config: CacheConfig):
        self.enabled = config.enabled
        self.directory = config.directory
        self.ttl = config.ttl_seconds

    async def get(self, namespace: str, params: dict[str, Any]) -> Any | None:
        return cache_get(namespace, params, self.directory) if self.enabled else None

    async def set(
        self, namespace: str, params: dict[str, Any], data: Any, ttl: int | None = None
    ) -> None:
        if self.enabled:
            cache_set(namespace, params, data, self.directory, ttl=ttl or self.ttl)

    async def invalidate(self, namespace: str, params: dict[str, Any]) -> None:
        if self.enabled:
            cache_invalidate(namespace, params, self.directory)


class BaseClient(ABC):
    """
    Shared session, retry and caching for the service clients.

    Subclasses name themselves through ``_source_name`` and build typed
    methods on ``_rest_get`` / ``_rest_post``, dropping to ``_request``
    for other verbs.
    """

    def __init__(self, config: ClientConfig | None = None):
        self.config = config or ClientConfig()
        self.rate_limiter = SlidingWindowRateLimiter(self.config.rate_limit)
        self.cache = DiskCache(self.config.cache)
        self._session: aiohttp.ClientSession | None = None

    @property
    @abstractmethod
    def _source_name(self) -> str: ...

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    def _backoff(self, attempt: int) -> float:
        retry = self.config.retry
        return min(retry.base_delay * retry.backoff_factor**attempt, retry.max_delay)

    async def _send_once(
        self,
        ctx: RequestContext,
        method: str,
        url: str,
        params: dict[str, Any] | None,
        json_body: Any,
        headers: dict[str, str] | None,
    ) -> tuple[Any, int]:
        """Perform one HTTP exchange and return ``(data, status)``.

        Raises ``_RetryableFailure`` for transient problems and
        ``DataSourceError`` for any other error status or an unreadable
        body.
        """
        await self.rate_limiter.acquire()
        session = await self._get_session()
        resp = None
        try:
            resp = await session.request(
                method, url, params=params, json=json_body, headers=headers
            )
            if resp.status >= 400:
                body = (await resp.text())[:ERROR_BODY_LIMIT]
            else:
                # 204: sign-out, PATCH with return=minimal
                data = None if resp.status == 204 else await resp.json()
        except aiohttp.ContentTypeError as e:
            raise DataSourceError(
                ctx.source, f"Response is not JSON: {e.message}", status_code=resp.status if resp else None
            )
        except json.JSONDecodeError as e:
            raise DataSourceError(
                ctx.source, f"Invalid JSON body: {e}", status_code=resp.status if resp else None
            )
        except asyncio.TimeoutError:
            raise _RetryableFailure(
                DataSourceError(ctx.source, f"Timeout after {self.config.timeout_seconds:.1f}s")
            )
        except aiohttp.ClientError as e:
            raise _RetryableFailure(DataSourceError(ctx.source, f"Connection error: {e}"))

        if resp.status >= 400:
            error = DataSourceError(ctx.source, f"HTTP {resp.status}: {body}", status_code=resp.status)
            if resp.status not in self.config.retry.retryable_status_codes:
                raise error
            retry_after = resp.headers.get("Retry-After") if resp.status == 429 else None
            raise _RetryableFailure(error, _seconds(retry_after))

        return data, resp.status

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
        headers: dict[str, str] | None = None,
        cache_namespace: str | None = None,
        cache_params: dict[str, Any] | None = None,
        cache_ttl: int | None = None,
        context: RequestContext | None = None,
    ) -> PartialResult:
        """
        Send a request, retrying transient failures.

        Args:
            method: HTTP verb.
            url: Absolute URL.
            params: Query string.
            json_body: Body sent as JSON.
            headers: Extra headers.
            cache_namespace: Cache namespace; with ``cache_params`` the
                response is read from and written to the disk cache.
            cache_params: Values the cache key is built from.
            cache_ttl: Per-call TTL override in seconds.
            context: Caller identity for logging.

        Returns:
            A complete ``PartialResult``, or an incomplete one carrying the
            last error once every attempt failed.

        Raises:
            DataSourceError: on a non-retryable error status.
        """
        ctx = context or RequestContext(source=self._source_name, method="unknown")
        method = method.upper()
        use_cache = bool(cache_namespace and cache_params)

        if use_cache:
            hit = await self.cache.get(cache_namespace, cache_params)
            if hit is not None:
                logger.debug("Cache hit [%s.%s]", ctx.source, ctx.method)
                return PartialResult(data=hit, cached=True)

        start = time.monotonic()
        attempts = self.config.retry.max_retries + 1
        last_error: DataSourceError | None = None

        for attempt in range(attempts):
            logger.info("%s.%s attempt %d/%d: %s %s", ctx.source, ctx.method, attempt + 1, attempts, method, url)
            try:
                data, status = await self._send_once(ctx, method, url, params, json_body, headers)
            except _RetryableFailure as failure:
                last_error = failure.error
                logger.warning("%s.%s attempt %d failed: %s", ctx.source, ctx.method, attempt + 1, failure.error)
                if attempt + 1 < attempts:
                    await asyncio.sleep(failure.retry_after or self._backoff(attempt))
                continue

            elapsed = time.monotonic() - start
            logger.info("%s.%s done in %.2fs", ctx.source, ctx.method, elapsed)
            if use_cache:
                await self.cache.set(cache_namespace, cache_params, data, ttl=cache_ttl)
            return PartialResult(data=data, status_code=status, elapsed_seconds=elapsed)

        elapsed = time.monotonic() - start
        logger.error("%s.%s gave up after %d attempts (%.1fs): %s", ctx.source, ctx.method, attempts, elapsed, last_error)
        return PartialResult(
            data=None,
            is_complete=False,
            errors=[str(last_error)],
            status_code=last_error.status_code if last_error else None,
            elapsed_seconds=elapsed,
        )

    def _unwrap(self, result: PartialResult, context: RequestContext | None) -> Any:
        """Payload of a complete result; otherwise raise its errors as DataSourceError."""
        if result.is_complete:
            return result.data
        source = context.source if context else self._source_name
        prefix = f"[{source}] "
        messages = [e[len(prefix):] if e.startswith(prefix) else e for e in result.errors]
        raise DataSourceError(
            source, "; ".join(messages) or "request failed", status_code=result.status_code
        )

    async def _rest_get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        *,
        headers: dict[str, str] | None = None,
        cache_namespace: str | None = None,
        cache_ttl: int | None = None,
        context: RequestContext | None = None,
    ) -> Any:
        result = await self._request(
            "GET",
            url,
            params=params,
            headers=headers,
            cache_namespace=cache_namespace,
            cache_params={"url": url, **(params or {})},
            cache_ttl=cache_ttl,
            context=context,
        )
        return self._unwrap(result, context)

    async def _rest_post(
        self,
        url: str,
        json_body: Any,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        context: RequestContext | None = None,
    ) -> Any:
        """POST ``json_body``; responses are never cached."""
        result = await self._request(
            "POST",
            url,
            params=params,
            json_body=json_body,
            headers={"Content-Type": "application/json", **(headers or {})},
            context=context,
        )
        return self._unwrap(result, context)


def _seconds(retry_after: str | None) -> float | None:
    """Retry-After in seconds; HTTP-date values fall back to backoff."""
    try:
        return float(retry_after) if retry_after else None
    except ValueError:
        return None
