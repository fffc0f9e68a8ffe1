# tests/conftest.py
import pytest
from solar_exporter.config import (
    CONSUMPTION_MARKERS,
    GENERATION_MARKERS,
    ExporterConfig,
    MarkerPair,
)


def wrap(markers: MarkerPair, value: str) -> str:
    """Surround a value with its start and end markers."""
    return f"{markers.start}{value}{markers.end}"


def make_page(generation: str = "1.500", consumption: str = "0.800") -> str:
    """Build a status page with each reading on its own line."""
    return "\n".join(
        [
            "<html>",
            "<body>",
            f"<td>{wrap(GENERATION_MARKERS, generation)}</td>",
            f"<td>{wrap(CONSUMPTION_MARKERS, consumption)}</td>",
            "</body>",
            "</html>",
        ]
    )


BROKEN_PAGE = "<html><body>maintenance</body></html>"


@pytest.fixture
def cfg():
    return ExporterConfig(endpoint="http://monitor.local/status.html", port=9100)
