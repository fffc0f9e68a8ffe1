# errors.py
from typing import Sequence


class TransportError(Exception):
    """The status page could not be fetched or decoded."""

    def __init__(self, url: str, cause: object) -> None:
        super().__init__(f"request to {url} failed: {cause}")
        self.url = url
        self.cause = cause


class ReadingError(Exception):
    """The page was fetched but did not yield a valid reading."""


class FieldMissing(ReadingError):
    """One or both marker pairs were not found on any line."""

    def __init__(self, fields: Sequence[str]) -> None:
        self.fields = tuple(fields)
        super().__init__(f"{' and '.join(self.fields)} is missing")


class NumberUnparseable(ReadingError):
    """A field was found but its text is not a finite decimal number."""

    def __init__(self, field: str, raw: str) -> None:
        super().__init__(f"failed to parse {field} as a float: {raw!r}")
        self.field = field
        self.raw = raw
