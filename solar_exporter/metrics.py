# metrics.py
from typing import List
from prometheus_client import Counter, Histogram
from solar_exporter.config import Reading

FETCH_DURATION = Histogram(
    "solar_exporter_fetch_duration_seconds",
    "Time spent fetching and parsing the status page",
)
FETCH_FAILURES = Counter(
    "solar_exporter_fetch_failures_total",
    "Scrapes that ended without a reading",
    ["reason"],
)
PARSE_RETRIES = Counter(
    "solar_exporter_parse_retries_total",
    "Retries caused by a page that could not be parsed",
)

GENERATION_METRIC = "power_solar_generation_watts"
GENERATION_HELP = "An amount of solar power generation in watts"
CONSUMPTION_METRIC = "power_consumption_watts"
CONSUMPTION_HELP = "An amount of power consumption in watts"


def render_gauge(name: str, documentation: str, value: int) -> List[str]:
    """Return the HELP, TYPE and sample lines of a single gauge."""
    return [
        f"# HELP {name} {documentation}",
        f"# TYPE {name} gauge",
        f"{name} {value}",
    ]


def render_reading(reading: Reading) -> str:
    """
    Render a reading in the text exposition format.

    Values are written as integers, keeping the scale of the source reading.

    Args:
        reading: Reading to publish.

    Returns:
        str: Exposition body with one gauge per field.
    """
    lines = render_gauge(GENERATION_METRIC, GENERATION_HELP, reading.generation)
    lines += render_gauge(CONSUMPTION_METRIC, CONSUMPTION_HELP, reading.consumption)
    return "\n".join(lines)
