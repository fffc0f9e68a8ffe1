# server.py
import asyncio
import logging
from typing import Optional
from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest
from solar_exporter.config import ExporterConfig
from solar_exporter.fetcher import (
    FetchFailed,
    ParseExhausted,
    Sleep,
    Success,
    Transport,
    fetch_reading,
)
from solar_exporter.metrics import render_reading

CONFIG_KEY = web.AppKey("config", ExporterConfig)
TRANSPORT_KEY = web.AppKey("transport", object)
SLEEP_KEY = web.AppKey("sleep", object)

NOT_FOUND_MESSAGE = "404 Not Found. Try /metrics"
FETCH_FAILED_MESSAGE = "failed to fetch metrics"
PARSE_FAILED_MESSAGE = "failed to parse metrics"


def exposition_response(body: bytes) -> web.Response:
    """Wrap an exposition body; aiohttp rejects a charset in content_type."""
    return web.Response(body=body, headers={"Content-Type": CONTENT_TYPE_LATEST})


async def metrics_handler(request: web.Request) -> web.Response:
    """Fetch the status page and publish its readings."""
    logging.info("Collecting metrics...")
    outcome = await fetch_reading(
        request.app[CONFIG_KEY],
        transport=request.app[TRANSPORT_KEY],
        sleep=request.app[SLEEP_KEY],
    )

    if isinstance(outcome, Success):
        return exposition_response(render_reading(outcome.reading).encode("utf-8"))
    if isinstance(outcome, FetchFailed):
        return web.Response(status=500, text=FETCH_FAILED_MESSAGE)
    if isinstance(outcome, ParseExhausted):
        return web.Response(status=500, text=PARSE_FAILED_MESSAGE)
    raise TypeError(f"Unexpected fetch outcome: {outcome!r}")


async def exporter_metrics_handler(request: web.Request) -> web.Response:
    """Publish the exporter's own metrics from the default registry."""
    return exposition_response(generate_latest(REGISTRY))


@web.middleware
async def not_found_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Answer unknown paths with a plain-text hint instead of aiohttp's default page."""
    try:
        return await handler(request)
    except web.HTTPNotFound:
        return web.Response(status=404, text=NOT_FOUND_MESSAGE)


def create_app(
    cfg: ExporterConfig,
    transport: Optional[Transport] = None,
    sleep: Sleep = asyncio.sleep,
) -> web.Application:
    """
    Build the aiohttp application serving the exporter routes.

    Args:
        cfg: Exporter configuration.
        transport: Page fetcher passed through to fetch_reading. Defaults to get_body.
        sleep: Backoff sleep passed through to fetch_reading.

    Returns:
        web.Application: Application with /metrics and /exporter/metrics routes.
    """
    app = web.Application(middlewares=[not_found_middleware])
    app[CONFIG_KEY] = cfg
    app[TRANSPORT_KEY] = transport
    app[SLEEP_KEY] = sleep
    app.router.add_get("/metrics", metrics_handler)
    app.router.add_get("/exporter/metrics", exporter_metrics_handler)
    return app


async def run_server(cfg: ExporterConfig, stop_event: asyncio.Event) -> None:
    """
    Serve the exporter until stop_event is set.

    A port that cannot be bound is fatal: the error is logged and the process
    exits with status 1.
    """
    runner = web.AppRunner(create_app(cfg))
    await runner.setup()
    site = web.TCPSite(runner, cfg.host, cfg.port)
    try:
        await site.start()
    except OSError as e:
        await runner.cleanup()
        logging.critical("Failed to bind %s:%s: %s", cfg.host, cfg.port, e)
        raise SystemExit(1) from e

    logging.info("Metrics server on http://%s:%s/metrics", cfg.host, cfg.port)
    logging.info("Polling %s", cfg.endpoint)
    try:
        await stop_event.wait()
    finally:
        logging.info("Exporter stopping...")
        await runner.cleanup()
    logging.info("Exporter stopped cleanly.")
