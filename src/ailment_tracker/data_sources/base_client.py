"""
Base client for remote data sources.

Provides: retry with exponential backoff, structured logging, and graceful
degradation. Subclasses turn incomplete results into ``DataSourceError``
where a caller must roll back.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import aiohttp
from pydantic import BaseModel

from ailment_tracker.constants import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT

logger = logging.getLogger("ailment_tracker.data_sources")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class RetryConfig(BaseModel):
    """Retry behaviour for failed requests."""

    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = 0.5  # seconds
    max_delay: float = 10.0  # seconds
    backoff_factor: float = 2.0
    retryable_status_codes: set[int] = {429, 500, 502, 503, 504}


class ClientConfig(BaseModel):
    """Top-level client config."""

    retry: RetryConfig = RetryConfig()
    timeout_seconds: float = DEFAULT_TIMEOUT


# ---------------------------------------------------------------------------
# Request context (for structured logging)
# ---------------------------------------------------------------------------


class RequestContext(BaseModel):
    """Metadata attached to every outgoing request for logging."""

    source: str  # e.g. "ailment_api"
    method: str  # e.g. "update_ailment"
    params: dict[str, Any] = {}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DataSourceError(Exception):
    """Base exception for data source failures."""

    def __init__(self, source: str, message: str, status_code: int | None = None):
        self.source = source
        self.status_code = status_code
        super().__init__(f"[{source}] {message}")


# ---------------------------------------------------------------------------
# Partial result wrapper
# ---------------------------------------------------------------------------


class PartialResult(BaseModel):
    """
    Wraps a response that may be incomplete due to errors or timeouts.

    Callers check `is_complete` and `errors` to decide whether the request
    actually went through.
    """

    data: Any
    is_complete: bool = True
    errors: list[str] = []
    elapsed_seconds: float = 0.0


# ---------------------------------------------------------------------------
# Base client
# ---------------------------------------------------------------------------


class BaseClient(ABC):
    """
    Abstract base for HTTP clients.

    Subclasses implement `_source_name` and their own typed methods that
    call `_request()`.
    """

    def __init__(self, config: ClientConfig | None = None):
        self.config = config or ClientConfig()
        self._session: aiohttp.ClientSession | None = None

    @property
    @abstractmethod
    def _source_name(self) -> str:
        """Identifier for this data source, e.g. 'ailment_api'."""
        ...

    # -- Session management --------------------------------------------------

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    def _backoff(self, attempt: int) -> float:
        return min(
            self.config.retry.base_delay * (self.config.retry.backoff_factor**attempt),
            self.config.retry.max_delay,
        )

    # -- Core request with retry ---------------------------------------------

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        context: RequestContext | None = None,
    ) -> PartialResult:
        """
        Make an HTTP request with retry.

        Parameters
        ----------
        method : str
            HTTP method: "GET", "POST", "PUT" or "DELETE".
        url : str
            Full URL.
        params : dict, optional
            Query string parameters.
        json_body : dict, optional
            JSON body for POST/PUT.
        headers : dict, optional
            Additional HTTP headers.
        context : RequestContext, optional
            Logging context.

        Non-retryable 4xx/5xx responses raise DataSourceError immediately.
        Exhausted retries return an incomplete PartialResult.
        """
        ctx = context or RequestContext(source=self._source_name, method="unknown")

        last_error: Exception | None = None
        start = time.monotonic()

        for attempt in range(self.config.retry.max_retries + 1):
            try:
                session = await self._get_session()

                logger.info(
                    "Request [%s.%s] attempt=%d %s %s",
                    ctx.source,
                    ctx.method,
                    attempt + 1,
                    method.upper(),
                    url,
                )

                resp = await session.request(
                    method.upper(), url, params=params, json=json_body, headers=headers
                )

                # --- Handle HTTP errors ---
                if resp.status in self.config.retry.retryable_status_codes:
                    body = await resp.text()
                    logger.warning(
                        "Retryable %d from %s.%s: %s",
                        resp.status,
                        ctx.source,
                        ctx.method,
                        body[:200],
                    )
                    last_error = DataSourceError(
                        ctx.source,
                        f"HTTP {resp.status}: {body[:200]}",
                        status_code=resp.status,
                    )
                    if resp.status == 429:
                        # Respect Retry-After header if present
                        retry_after = resp.headers.get("Retry-After")
                        if retry_after:
                            await asyncio.sleep(float(retry_after))
                            continue

                    if attempt < self.config.retry.max_retries:
                        await asyncio.sleep(self._backoff(attempt))
                    continue

                if resp.status >= 400:
                    body = await resp.text()
                    raise DataSourceError(
                        ctx.source,
                        f"HTTP {resp.status}: {body[:500]}",
                        status_code=resp.status,
                    )

                # --- Success ---
                data = await resp.json()
                elapsed = time.monotonic() - start

                logger.info(
                    "Success [%s.%s] elapsed=%.2fs",
                    ctx.source,
                    ctx.method,
                    elapsed,
                )
                return PartialResult(data=data, elapsed_seconds=elapsed)

            except asyncio.TimeoutError:
                elapsed = time.monotonic() - start
                last_error = DataSourceError(
                    ctx.source, f"Timeout after {elapsed:.1f}s"
                )
                logger.warning(
                    "Timeout [%s.%s] attempt=%d elapsed=%.1fs",
                    ctx.source,
                    ctx.method,
                    attempt + 1,
                    elapsed,
                )

            except aiohttp.ClientError as e:
                last_error = DataSourceError(ctx.source, f"Connection error: {e}")
                logger.warning(
                    "Connection error [%s.%s] attempt=%d: %s",
                    ctx.source,
                    ctx.method,
                    attempt + 1,
                    e,
                )

            # Exponential backoff before next attempt
            if attempt < self.config.retry.max_retries:
                await asyncio.sleep(self._backoff(attempt))

        # --- All retries exhausted: graceful degradation ---
        elapsed = time.monotonic() - start
        logger.error(
            "All retries exhausted [%s.%s] after %.1fs: %s",
            ctx.source,
            ctx.method,
            elapsed,
            last_error,
        )
        return PartialResult(
            data=None,
            is_complete=False,
            errors=[str(last_error)],
            elapsed_seconds=elapsed,
        )
