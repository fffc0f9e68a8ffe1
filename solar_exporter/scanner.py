# scanner.py
import logging
from decimal import Decimal, InvalidOperation, MAX_EMAX, MIN_EMIN, ROUND_HALF_UP, localcontext
from typing import Iterator, Optional, Tuple
from solar_exporter.config import (
    CONSUMPTION_MARKERS,
    GENERATION_MARKERS,
    MarkerPair,
    Reading,
)
from solar_exporter.errors import FieldMissing, NumberUnparseable

SCALE_EXPONENT = 3


def iter_lines(body: str) -> Iterator[str]:
    """Yield the lines of a page, accepting both LF and CRLF endings."""
    for line in body.split("\n"):
        yield line[:-1] if line.endswith("\r") else line


def find_field(body: str, markers: MarkerPair) -> Optional[str]:
    """
    Find the raw text of one field in a page.

    The first line holding the start token followed by the end token wins.
    A start token whose end token only shows up on a later line does not count.

    Args:
        body: Decoded page body.
        markers: Tokens delimiting the field.

    Returns:
        The text between the two tokens, or None if no line matches.
    """
    for line in iter_lines(body):
        start = line.find(markers.start)
        if start < 0:
            continue
        value_start = start + len(markers.start)
        end = line.find(markers.end, value_start)
        if end < 0:
            continue
        return line[value_start:end]
    return None


def scan(body: str) -> Optional[Tuple[str, str]]:
    """
    Extract the raw generation and consumption text from a page.

    Args:
        body: Decoded page body.

    Returns:
        (generation, consumption) as unparsed strings, or None if either is missing.
    """
    generation = find_field(body, GENERATION_MARKERS)
    consumption = find_field(body, CONSUMPTION_MARKERS)
    if generation is None or consumption is None:
        return None
    return generation, consumption


def to_milliwatts(raw: str) -> int:
    """
    Convert a kilowatt decimal string to an integer scaled by 1000.

    Halves round away from zero, so "1.2345" gives 1235 and "-0.0005" gives -1.

    Raises:
        ValueError: If the text is not a finite decimal number.
    """
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise ValueError(f"not a decimal number: {raw!r}") from None
    if not value.is_finite():
        raise ValueError(f"not a finite number: {raw!r}")
    # scaleb is exact at this precision, leaving one half-up rounding step
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(value.as_tuple().digits))
        ctx.Emax = MAX_EMAX
        ctx.Emin = MIN_EMIN
        try:
            scaled = value.scaleb(SCALE_EXPONENT)
        except ArithmeticError:
            raise ValueError(f"number out of range: {raw!r}") from None
    return int(scaled.to_integral_value(rounding=ROUND_HALF_UP))


def parse_reading(body: str) -> Reading:
    """
    Scan a page and convert both fields into a Reading.

    Args:
        body: Decoded page body.

    Returns:
        Reading: The converted generation and consumption values.

    Raises:
        FieldMissing: If either marker pair is not found.
        NumberUnparseable: If a field does not hold a valid number.
    """
    scanned = scan(body)
    if scanned is None:
        missing = [
            markers.name
            for markers in (GENERATION_MARKERS, CONSUMPTION_MARKERS)
            if find_field(body, markers) is None
        ]
        logging.error(
            "Failed to parse metrics: %s is missing.", " and ".join(missing)
        )
        logging.error("body: %r", body)
        raise FieldMissing(missing)

    generation, consumption = scanned
    fields = ((GENERATION_MARKERS, generation), (CONSUMPTION_MARKERS, consumption))

    values = {}
    for markers, raw in fields:
        try:
            values[markers.name] = to_milliwatts(raw)
        except ValueError:
            logging.error("Failed to parse %s as a float: %r", markers.name, raw)
            raise NumberUnparseable(markers.name, raw) from None

    return Reading(generation=values["generation"], consumption=values["consumption"])
