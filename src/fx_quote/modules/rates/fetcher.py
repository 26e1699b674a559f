from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import AsyncIterator
from typing import Generic, TypeVar

import anyio
import httpx

from fx_quote.core.config import FetcherConfig
from fx_quote.core.deadline import Deadline
from fx_quote.core.errors import ErrorKind, QuoteError
from fx_quote.core.logging import get_logger, log_event, monotonic_ms
from fx_quote.modules.rates.models import ExchangeRate
from fx_quote.modules.rates.schemas import ExchangeRateResponse, VendorQuoteResponse

logger = get_logger(__name__)

T = TypeVar("T")

_BODY_SNIPPET_CHARS = 200


class RateFetcher(Generic[T]):
    """
    Single-attempt HTTP GET bounded by a deadline.

    The deadline starts when ``fetch`` is called and covers the whole exchange:
    connect, request, status line, headers and body all run under one
    ``anyio.fail_after`` scope, so a peer that trickles bytes is cut off on time.
    Subclasses only implement ``decode``.
    """

    source = "http"

    def __init__(self, config: FetcherConfig, *, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._client = client

    def decode(self, body: bytes) -> T:  # pragma: no cover
        raise NotImplementedError

    def fetch(self) -> T:
        return anyio.run(self.fetch_async)

    async def fetch_async(self) -> T:
        deadline = Deadline.after(self.config.timeout_s)
        start = time.monotonic()
        log_event(
            logger,
            "rates.fetch.start",
            level=logging.DEBUG,
            source=self.source,
            url=self.config.url,
            timeout_ms=int(self.config.timeout_s * 1000),
        )
        body = await self._get(deadline, start=start)
        try:
            result = self.decode(body)
        except ValueError as e:
            log_event(
                logger,
                "rates.fetch.failure",
                level=logging.WARNING,
                source=self.source,
                url=self.config.url,
                kind=ErrorKind.DECODE_FAILED.value,
                error=str(e),
                body=body[:_BODY_SNIPPET_CHARS].decode("utf-8", errors="replace"),
                duration_ms=monotonic_ms(start),
            )
            raise QuoteError(ErrorKind.DECODE_FAILED, url=self.config.url, error=str(e)) from e
        log_event(
            logger,
            "rates.fetch.success",
            source=self.source,
            url=self.config.url,
            duration_ms=monotonic_ms(start),
        )
        return result

    @contextlib.asynccontextmanager
    async def _open_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient() as client:
            yield client

    async def _get(self, deadline: Deadline, *, start: float) -> bytes:
        try:
            with anyio.fail_after(deadline.remaining()):
                async with self._open_client() as client:
                    async with client.stream(
                        "GET", self.config.url, timeout=httpx.Timeout(deadline.remaining())
                    ) as resp:
                        if resp.status_code != 200:
                            raise self._failure(
                                ErrorKind.FETCH_FAILED,
                                start=start,
                                status_code=resp.status_code,
                            )
                        return await resp.aread()
        except TimeoutError as e:
            raise self._failure(ErrorKind.TIMEOUT, start=start, error="deadline exceeded") from e
        except httpx.TimeoutException as e:
            raise self._failure(ErrorKind.TIMEOUT, start=start, error=repr(e)) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise self._failure(
                ErrorKind.FETCH_FAILED, start=start, error=f"{type(e).__name__}: {e}"
            ) from e

    def _failure(self, kind: ErrorKind, *, start: float, **context) -> QuoteError:
        log_event(
            logger,
            "rates.fetch.failure",
            level=logging.WARNING,
            source=self.source,
            url=self.config.url,
            kind=kind.value,
            duration_ms=monotonic_ms(start),
            **context,
        )
        return QuoteError(kind, url=self.config.url, **context)


class UpstreamRateFetcher(RateFetcher[ExchangeRate]):
    """Fetches USD-BRL from the vendor API and maps it to the canonical record."""

    source = "upstream"

    def decode(self, body: bytes) -> ExchangeRate:
        return VendorQuoteResponse.model_validate_json(body).to_exchange_rate()


class LocalRateFetcher(RateFetcher[ExchangeRateResponse]):
    source = "local"

    def decode(self, body: bytes) -> ExchangeRateResponse:
        return ExchangeRateResponse.model_validate_json(body)
