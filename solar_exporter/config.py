from dataclasses import dataclass

DEFAULT_ENCODING: str = "cp932"
USER_AGENT: str = "solar-exporter/0.1.0"


@dataclass(frozen=True)
class MarkerPair:
    """Literal start/end tokens that delimit one field inside a page line.

    Attributes:
        name: Field name used in log messages.
        start: Token placed directly before the value.
        end: Token placed directly after the value.
    """
    name: str
    start: str
    end: str


GENERATION_MARKERS = MarkerPair(
    name="generation",
    start="<!-- ここから発電量表示 -->",
    end="<!-- ここまで発電量表示 -->",
)
CONSUMPTION_MARKERS = MarkerPair(
    name="consumption",
    start="<!-- ここから消費量表示 -->",
    end="<!-- ここまで消費量表示 -->",
)


@dataclass(frozen=True)
class ExporterConfig:
    """Static configuration for the exporter.

    Attributes:
        endpoint: URL of the status page to poll.
        port: Port the metrics server listens on.
        host: Address the metrics server binds to. Defaults to "0.0.0.0".
        timeout: Total timeout in seconds for one page fetch. Defaults to 10.
        max_retries: Parse failures tolerated before giving up. Defaults to 3.
        backoff: Base of the exponential backoff in seconds. Defaults to 2.
        encoding: Charset used to decode the page body. Defaults to "cp932",
            the Windows superset of Shift-JIS.
    """
    endpoint: str
    port: int
    host: str = "0.0.0.0"
    timeout: int = 10
    max_retries: int = 3
    backoff: int = 2
    encoding: str = DEFAULT_ENCODING


@dataclass(frozen=True)
class Reading:
    """One pair of readings scaled from kilowatts by 1000.

    Attributes:
        generation: Solar power generation.
        consumption: Household power consumption.
    """
    generation: int
    consumption: int
