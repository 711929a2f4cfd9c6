from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from ..core.model import END_OF_STREAM, NeedMoreBytes, Outcome, ParseError, Parsed
from ..core.parser_base import RecordParser
from ..core.util import decode_utf8


@dataclass(slots=True)
class FastaRecord:
    id: str
    sequence: bytes


class FastaParser(RecordParser):
    """FASTA reader; multi-line sequences are joined into one value."""

    name: ClassVar = "fasta"
    record_type: ClassVar = FastaRecord

    def __init__(self) -> None:
        self._header_end = 0
        self._seq = (0, 0)
        # where the next-record search resumes after NeedMoreBytes
        self._scan_from = 0

    def parse(self, window: bytearray, eof: bool) -> Outcome:
        if not window:
            return END_OF_STREAM if eof else NeedMoreBytes("No FASTA could be parsed")
        if window[0] != ord('>'):
            raise ParseError("Valid FASTA records start with '>'")

        nl = window.find(b"\n")
        if nl < 0:
            return NeedMoreBytes("Record ended prematurely in header")
        self._header_end = nl - 1 if nl > 0 and window[nl - 1] == ord('\r') else nl

        # the record runs up to the next line starting with '>'
        next_rec = window.find(b"\n>", max(nl, self._scan_from))
        if next_rec < 0:
            if not eof:
                self._scan_from = max(nl, len(window) - 1)
                return NeedMoreBytes("Record ended prematurely in sequence")
            self._seq = (nl + 1, len(window))
            self._scan_from = 0
            return Parsed(len(window))
        seq_end = next_rec
        if seq_end > nl + 1 and window[seq_end - 1] == ord('\r'):
            seq_end -= 1
        self._seq = (nl + 1, max(seq_end, nl + 1))
        self._scan_from = 0
        return Parsed(next_rec + 1)

    def get(self, window: bytearray) -> FastaRecord:
        raw = window[self._seq[0]:self._seq[1]]
        if b"\n" in raw:
            raw = raw.replace(b"\r\n", b"\n").replace(b"\n", b"")
        return FastaRecord(
            id=decode_utf8(window[1:self._header_end], "header"),
            sequence=bytes(raw),
        )
