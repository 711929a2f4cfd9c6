from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from ..core.model import END_OF_STREAM, NeedMoreBytes, Outcome, ParseError, Parsed
from ..core.parser_base import RecordParser
from ..core.util import decode_utf8

_CR = ord('\r')
_NL = ord('\n')


@dataclass(slots=True)
class FastqRecord:
    id: str
    sequence: bytes
    quality: bytes


class FastqParser(RecordParser):
    """Four-line FASTQ reader.

    The quality line is not scanned for a terminator: its length is taken to
    be the sequence length, so quality strings may contain '@' or '+'.
    """

    name: ClassVar = "fastq"
    record_type: ClassVar = FastqRecord

    def __init__(self) -> None:
        # (start, end) offsets into the window from the last successful parse
        self._header_end = 0
        self._seq = (0, 0)
        self._qual = (0, 0)

    def parse(self, window: bytearray, eof: bool) -> Outcome:
        if not window:
            return END_OF_STREAM if eof else NeedMoreBytes("No FASTQ could be parsed")
        if window[0] != ord('@'):
            raise ParseError("Valid FASTQ records start with '@'")

        # id line
        nl = window.find(b"\n")
        if nl < 0:
            return NeedMoreBytes("Record ended prematurely in header")
        header_end = nl - 1 if nl > 0 and window[nl - 1] == _CR else nl
        seq_start = nl + 1

        # sequence runs until the '+' line
        plus = window.find(b"+", seq_start)
        if plus < 0:
            return NeedMoreBytes("Record ended prematurely in sequence")
        if plus == seq_start or window[plus - 1] != _NL:
            raise ParseError("Unexpected + found in sequence")
        seq_end = plus - 1
        if seq_end > seq_start and window[seq_end - 1] == _CR:
            seq_end -= 1

        # skip the second id line
        nl2 = window.find(b"\n", plus)
        if nl2 < 0:
            return NeedMoreBytes("Record ended prematurely in second header")
        qual_start = nl2 + 1
        qual_end = qual_start + (seq_end - seq_start)

        # the record also owns the line terminator after the quality, which
        # may be missing on the last record of the input
        terminator = plus - seq_end
        rec_end = qual_end + terminator
        if rec_end > len(window) and eof:
            rec_end = qual_end
        if rec_end > len(window):
            return NeedMoreBytes("Record ended prematurely in quality")

        self._header_end = header_end
        self._seq = (seq_start, seq_end)
        self._qual = (qual_start, qual_end)
        return Parsed(rec_end)

    def get(self, window: bytearray) -> FastqRecord:
        return FastqRecord(
            id=decode_utf8(window[1:self._header_end], "header"),
            sequence=bytes(window[self._seq[0]:self._seq[1]]),
            quality=bytes(window[self._qual[0]:self._qual[1]]),
        )
