from __future__ import annotations

import struct
from typing import ClassVar, List, Tuple

from ..core.model import END_OF_STREAM, NeedMoreBytes, Outcome, ParseError, Parsed
from ..core.parser_base import RecordParser
from ..core.util import decode_utf8
from .sam import SamRecord

BAM_MAGIC = b"BAM\x01"

# refID, pos, l_read_name, mapq, bin, n_cigar_op, flag, l_seq, next_refID, next_pos, tlen
_CORE = struct.Struct("<iiBBHHHIiii")
_MIN_RECORD_LEN = _CORE.size    # 32
_CIGAR_OPS = "MIDNSHP=X"
_BASES = b"=ACMGRSVTWYHKDBN"
# one packed byte -> its two bases, high nibble first
_BASE_PAIRS = [bytes((_BASES[b >> 4], _BASES[b & 15])) for b in range(256)]
_PHRED_TO_ASCII = bytes((b + 33) & 0xFF for b in range(256))


class BamRecord(SamRecord):
    """A SAM-shaped alignment decoded from BAM; ``extra`` is always empty."""
    __slots__ = ()


class BamParser(RecordParser):
    """Binary alignment reader over the gzip-unwrapped BAM stream."""

    name: ClassVar = "bam"
    record_type: ClassVar = BamRecord
    position_errors: ClassVar = True

    def __init__(self) -> None:
        self.references: List[Tuple[str, int]] = []
        self._rec_len = 0

    # ------------------------------------------------------------------ #
    def setup(self, buffer) -> None:
        if buffer.extract(4, "magic") != BAM_MAGIC:
            raise ParseError("Not a valid BAM file")
        (header_len,) = buffer.extract_struct("<I", "header length")
        # the SAM header text is not surfaced
        buffer.skip(header_len, "header")

        (n_refs,) = buffer.extract_struct("<I", "reference count")
        references = []
        for _ in range(n_refs):
            (name_len,) = buffer.extract_struct("<I", "reference name length")
            raw_name = buffer.extract(name_len, "reference name")
            if raw_name.endswith(b"\x00"):
                raw_name = raw_name[:-1]
            (ref_len,) = buffer.extract_struct("<I", "reference length")
            references.append((decode_utf8(raw_name, "reference name"), ref_len))
        self.references = references

    def _ref_name(self, ref_id: int, what: str) -> str:
        if ref_id < 0:
            return ""
        if ref_id >= len(self.references):
            raise ParseError(f"Invalid {what} sequence ID")
        return self.references[ref_id][0]

    # ------------------------------------------------------------------ #
    def parse(self, window: bytearray, eof: bool) -> Outcome:
        if not window:
            return END_OF_STREAM if eof else NeedMoreBytes("No BAM could be parsed")
        if len(window) < 4:
            return NeedMoreBytes("Record ended prematurely in record length")
        (rec_len,) = struct.unpack_from("<I", window, 0)
        if rec_len < _MIN_RECORD_LEN:
            raise ParseError("Record is unexpectedly short")
        if len(window) < 4 + rec_len:
            return NeedMoreBytes("Record ended prematurely in alignment")
        self._rec_len = rec_len
        return Parsed(4 + rec_len)

    def get(self, window: bytearray) -> BamRecord:
        (ref_id, pos, name_len, mapq, _bin, n_cigar_op, flag, seq_len,
         next_ref_id, next_pos, tlen) = _CORE.unpack_from(window, 4)
        ref_name = self._ref_name(ref_id, "reference")
        rnext = self._ref_name(next_ref_id, "next reference")

        # variable-length section
        data = bytes(window[4 + _MIN_RECORD_LEN:4 + self._rec_len])
        if name_len > len(data):
            raise ParseError("Invalid query name length")
        query_name = data[:name_len]
        if query_name.endswith(b"\x00"):
            query_name = query_name[:-1]
        start = name_len

        cigar_end = start + 4 * n_cigar_op
        if cigar_end > len(data):
            raise ParseError("Record ended abruptly while reading CIGAR")
        ops = struct.unpack_from(f"<{n_cigar_op}I", data, start)
        cigar = "".join(f"{op >> 4}{_CIGAR_OPS[op & 7]}" for op in ops).encode("ascii")
        start = cigar_end

        packed_len = (seq_len + 1) // 2
        if start + packed_len + seq_len > len(data):
            raise ParseError("Record ended abruptly while reading sequence")
        seq = b"".join(_BASE_PAIRS[b] for b in data[start:start + packed_len])[:seq_len]
        start += packed_len

        raw_qual = data[start:start + seq_len]
        if not raw_qual or raw_qual[0] == 255:
            qual = b""
        else:
            qual = raw_qual.translate(_PHRED_TO_ASCII)

        return BamRecord(
            query_name=decode_utf8(query_name, "query name"),
            flag=flag,
            ref_name=ref_name,
            pos=None if pos == -1 else pos,
            mapq=None if mapq == 255 else mapq,
            cigar=cigar,
            rnext=rnext,
            pnext=None if next_pos == -1 else next_pos,
            tlen=tlen,
            seq=seq,
            qual=qual,
            extra=b"",
        )
