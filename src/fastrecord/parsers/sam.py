from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, List

from ..core.model import END_OF_STREAM, NeedMoreBytes, Outcome, ParseError, Parsed
from ..core.parser_base import RecordParser
from ..core.util import decode_utf8, parse_int

_MIN_FIELDS = 11
_U8_MAX = 0xFF
_U16_MAX = 0xFFFF
_I32_MIN, _I32_MAX = -(1 << 31), (1 << 31) - 1


@dataclass(slots=True)
class SamRecord:
    """One alignment; positions are 0-based, absent values are None."""
    query_name: str
    flag: int
    ref_name: str
    pos: int | None
    mapq: int | None
    cigar: bytes
    rnext: str
    pnext: int | None
    tlen: int
    seq: bytes
    qual: bytes
    extra: bytes


def _name(raw: bytes, field: str) -> str:
    return "" if raw == b"*" else decode_utf8(raw, field)


def _position(raw: bytes, field: str) -> int | None:
    # SAM is 1-based with 0 meaning "unset"
    if raw == b"0":
        return None
    return parse_int(raw, field, 0, _I32_MAX) - 1


def fields_to_record(chunks: List[bytes]) -> SamRecord:
    """Convert the tab-separated columns of one SAM line."""
    if len(chunks) < _MIN_FIELDS:
        raise ParseError("Sam record too short")
    return SamRecord(
        query_name=decode_utf8(chunks[0], "query name"),
        flag=parse_int(chunks[1], "flag", 0, _U16_MAX),
        ref_name=_name(chunks[2], "reference name"),
        pos=_position(chunks[3], "position"),
        mapq=None if chunks[4] == b"255" else parse_int(chunks[4], "mapping quality", 0, _U8_MAX),
        cigar=b"" if chunks[5] == b"*" else chunks[5],
        rnext=_name(chunks[6], "next reference name"),
        pnext=_position(chunks[7], "next position"),
        tlen=parse_int(chunks[8], "template length", _I32_MIN, _I32_MAX),
        seq=b"" if chunks[9] == b"*" else chunks[9],
        qual=b"" if chunks[10] == b"*" else chunks[10],
        # tab separators between optional tags are not preserved
        extra=b"|".join(chunks[11:]),
    )


class SamParser(RecordParser):
    """Tab-separated SAM reader; the '@' header block is skipped."""

    name: ClassVar = "sam"
    record_type: ClassVar = SamRecord

    def __init__(self) -> None:
        self._line_end = 0

    def setup(self, buffer) -> None:
        while buffer.reserve(1) and buffer.window[0] == ord('@'):
            if not buffer.seek_pattern(b"\n"):
                break
            # the newline itself
            buffer.consume(1)

    def parse(self, window: bytearray, eof: bool) -> Outcome:
        if not window:
            return END_OF_STREAM if eof else NeedMoreBytes("No SAM could be parsed")
        nl = window.find(b"\n")
        if nl < 0:
            if not eof:
                return NeedMoreBytes("Record ended prematurely in alignment")
            self._line_end = len(window)
            return Parsed(len(window))
        self._line_end = nl
        return Parsed(nl + 1)

    def get(self, window: bytearray) -> SamRecord:
        line = bytes(window[:self._line_end])
        if line.endswith(b"\r"):
            line = line[:-1]
        return fields_to_record(line.split(b"\t"))
