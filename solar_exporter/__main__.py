"""Main entry point for the Solar Power Prometheus Exporter."""

import argparse
import os
import signal
import logging
import asyncio
from typing import List, Optional, Tuple
import yaml
from solar_exporter.config import ExporterConfig
from solar_exporter.server import run_server
from solar_exporter.utils import build_config, load_config_file

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser."""
    parser = argparse.ArgumentParser(description="Solar Power Prometheus Exporter.")

    parser.add_argument(
        "--endpoint",
        help="URL of the status page to poll.",
    )
    parser.add_argument(
        "--port",
        type=int,
        help="Port to serve metrics on. Falls back to the PORT environment variable.",
    )
    parser.add_argument(
        "--host",
        help="Address to bind to. Defaults to 0.0.0.0.",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        help="Timeout in seconds for one status page request.",
    )
    parser.add_argument(
        "--config",
        help="Optional path to a YAML config file.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level. Defaults to INFO.",
    )
    return parser


def parse_config(argv: Optional[List[str]] = None) -> Tuple[ExporterConfig, str]:
    """Parse arguments into a validated config; invalid input exits through argparse."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config_file(args.config)
    except (OSError, yaml.YAMLError, ValueError) as e:
        parser.error(f"cannot load config file: {e}")

    # PORT from the environment beats the config file, flags beat both
    if args.port is None and os.environ.get("PORT"):
        config["port"] = os.environ["PORT"]

    # Override config file values if arguments are provided
    for key in ("endpoint", "port", "host", "timeout"):
        value = getattr(args, key)
        if value is not None:
            config[key] = value

    try:
        cfg = build_config(config)
    except ValueError as e:
        parser.error(str(e))
    return cfg, args.log_level


async def main(argv: Optional[List[str]] = None) -> None:
    """Assemble configuration and run the exporter."""
    cfg, log_level = parse_config(argv)
    logging.basicConfig(level=log_level, format=LOG_FORMAT)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    # Handle SIGINT (Ctrl+C) and SIGTERM
    def signal_handler() -> None:
        logging.info("SIGINT or SIGTERM received, shutting down gracefully...")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    await run_server(cfg, stop_event)


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
