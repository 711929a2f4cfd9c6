from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Union


@dataclass(slots=True)
class Result:
    success: bool
    data: Dict[str, Any] | None
    error: str | None
    bytes_read: int            # raw bytes pulled from the source


class UnknownFormatError(RuntimeError):
    """Raised when no parser can be found for a given source."""
    pass


class ParseError(RuntimeError):
    """Raised when a parser encounters an error while parsing.

    ``byte`` and ``record`` locate the failure (absolute offset of the record
    start and its 1-based index) when the format is position sensitive.
    ``incomplete`` is set when the input ended before the record did.
    """

    def __init__(self, message: str, *, byte: int | None = None, record: int | None = None,
                 incomplete: bool = False):
        super().__init__(message)
        self.message = message
        self.byte = byte
        self.record = record
        self.incomplete = incomplete

    def with_position(self, byte: int, record: int) -> "ParseError":
        self.byte = byte
        self.record = record
        return self

    def __str__(self) -> str:
        if self.byte is None:
            return self.message
        return f"{self.message} (byte {self.byte}, record {self.record})"


class DecodeError(ParseError):
    """Raised when field bytes cannot be interpreted (bad UTF-8, bad integer)."""
    pass


# --- parse outcomes ---
@dataclass(frozen=True, slots=True)
class NeedMoreBytes:
    """The window holds a valid prefix of a record; refill and retry."""
    reason: str


@dataclass(frozen=True, slots=True)
class Parsed:
    """A complete record of ``consumed`` bytes sits at the window's front."""
    consumed: int


class EndOfStream:
    __slots__ = ()

    def __repr__(self) -> str:
        return "END_OF_STREAM"


END_OF_STREAM = EndOfStream()

Outcome = Union[NeedMoreBytes, Parsed, EndOfStream]
