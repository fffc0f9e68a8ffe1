"""Solar Power Prometheus Exporter: Republish readings scraped from a solar monitor status page."""

from .config import ExporterConfig, MarkerPair, Reading
from .fetcher import FetchFailed, ParseExhausted, Success, fetch_reading, get_body
from .scanner import parse_reading, scan
from .server import create_app, run_server

__all__ = [
    "ExporterConfig",
    "MarkerPair",
    "Reading",
    "FetchFailed",
    "ParseExhausted",
    "Success",
    "fetch_reading",
    "get_body",
    "parse_reading",
    "scan",
    "create_app",
    "run_server",
]
