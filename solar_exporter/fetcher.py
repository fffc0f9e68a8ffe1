# fetcher.py
import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from typing import Awaitable, Callable, Optional, Union
import aiohttp
from solar_exporter.config import DEFAULT_ENCODING, USER_AGENT, ExporterConfig, Reading
from solar_exporter.errors import ReadingError, TransportError
from solar_exporter.metrics import FETCH_DURATION, FETCH_FAILURES, PARSE_RETRIES
from solar_exporter.scanner import parse_reading
from solar_exporter.utils import get_aiohttp_request_kwargs

Transport = Callable[[str], Awaitable[str]]
Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class Success:
    """A reading was fetched and parsed."""
    reading: Reading


@dataclass(frozen=True)
class FetchFailed:
    """The transport failed; no retry was attempted."""
    cause: TransportError


@dataclass(frozen=True)
class ParseExhausted:
    """Every attempt returned a page without a valid reading."""
    attempts: int
    last_error: ReadingError


FetchOutcome = Union[Success, FetchFailed, ParseExhausted]


async def get_body(
    url: str, encoding: str = DEFAULT_ENCODING, timeout_seconds: int = 10
) -> str:
    """
    Fetch the status page and decode it with the page's legacy charset.

    A new session is opened for every call and closed before returning.
    Bytes outside the charset are replaced with U+FFFD.

    Raises:
        TransportError: On connection errors, timeouts or non-2xx responses.
    """
    kwargs = get_aiohttp_request_kwargs(
        timeout_seconds=timeout_seconds, headers={"User-Agent": USER_AGENT}
    )
    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(url, **kwargs) as resp:
                resp.raise_for_status()
                return await resp.text(encoding=encoding, errors="replace")
    except (asyncio.TimeoutError, aiohttp.ClientError) as e:
        raise TransportError(url, e) from e


def backoff_delay(cfg: ExporterConfig, attempt: int) -> int:
    """Seconds to wait before the given retry (2, 4, 8 with the defaults)."""
    return cfg.backoff ** attempt


async def fetch_reading(
    cfg: ExporterConfig,
    transport: Optional[Transport] = None,
    sleep: Sleep = asyncio.sleep,
) -> FetchOutcome:
    """
    Fetch the current reading, retrying pages that fail to parse.

    Transport failures end the call immediately. Parse failures are retried
    with exponential backoff until cfg.max_retries retries have been used.

    Args:
        cfg: Exporter configuration.
        transport: Coroutine function returning the page body for a URL.
            Defaults to get_body with the configured charset and timeout.
        sleep: Coroutine function used for the backoff delay.

    Returns:
        FetchOutcome: Success, FetchFailed or ParseExhausted.
    """
    if transport is None:
        transport = partial(
            get_body, encoding=cfg.encoding, timeout_seconds=cfg.timeout
        )

    with FETCH_DURATION.time():
        attempt = 0
        while True:
            try:
                body = await transport(cfg.endpoint)
            except TransportError as e:
                logging.error("Failed to fetch metrics: %s", e)
                FETCH_FAILURES.labels(reason="transport").inc()
                return FetchFailed(cause=e)

            try:
                return Success(reading=parse_reading(body))
            except ReadingError as e:
                last_error = e

            attempt += 1
            if attempt > cfg.max_retries:
                logging.error(
                    "Giving up on %s after %d attempts: %s",
                    cfg.endpoint, attempt, last_error,
                )
                FETCH_FAILURES.labels(reason="parse_exhausted").inc()
                return ParseExhausted(attempts=attempt, last_error=last_error)

            logging.warning(
                "Retrying to fetch metrics... (retry_count: %d)", attempt
            )
            PARSE_RETRIES.inc()
            await sleep(backoff_delay(cfg, attempt))
