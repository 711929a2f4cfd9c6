"""Inficon Hapsite GC-MS acquisition files.

The layout is reverse-engineered. After the magic bytes there is an
instrument method section; a fixed 44-byte marker sits a constant distance
before the table of m/z ranges for each acquisition segment. The scan data
follows a ``HapsGPIR`` block and is a run of scans, each a 16-byte header
and then one float32 intensity per m/z of the scan's segment.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar, List

from ..core.model import END_OF_STREAM, NeedMoreBytes, Outcome, ParseError, Parsed
from ..core.parser_base import RecordParser

INFICON_MAGIC = b"\x04\x03\x02\x01"
MZ_LIST_MARKER = b"\xFF\xFF\xFF\xFF" + b"\x00" * 32 + b"\xF6\xFF\xFF\xFF" + b"\x00" * 4
SCAN_DATA_MARKER = b"\xFF\xFF\xFF\xFFHapsGPIR"

# sanity caps; only corrupt files come near these
MAX_SEGMENTS = 10_000
MAX_MZ_ENTRIES = 100_000
MAX_MZ_END = 4_000_000_000
MAX_MZ_SPAN = 200_000

# scan index, time (ms), constant 1, m/z count, constant 0xFFFF, segment
_SCAN_HEADER = struct.Struct("<IiHHHH")
_INTENSITY = struct.Struct("<f")


@dataclass(slots=True)
class InficonRecord:
    """One intensity reading; ``time`` is in minutes."""
    time: float
    mz: float
    intensity: float


def _expand_mz_entry(start: int, end: int, entry_type: int) -> List[float]:
    if entry_type == 0:
        # selected ion monitoring: a single m/z
        return [start / 100]
    if start >= end or end - start >= MAX_MZ_SPAN:
        raise ParseError("m/z range is too big or invalid")
    # full scan, one reading per unit m/z
    return [mz / 100 for mz in range(start, end + 1, 100)]


class InficonParser(RecordParser):
    """Inficon Hapsite reader; one record per m/z reading in each scan."""

    name: ClassVar = "inficon"
    record_type: ClassVar = InficonRecord
    position_errors: ClassVar = True

    def __init__(self) -> None:
        self.mz_segments: List[List[float]] = []
        self.data_left = 0
        self._time = 0.0
        self._segment = 0
        self._mzs_left = 0
        self._record = InficonRecord(0.0, 0.0, 0.0)

    # ------------------------------------------------------------------ #
    def setup(self, buffer) -> None:
        if buffer.extract(4, "magic") != INFICON_MAGIC:
            raise ParseError("Inficon file has bad magic bytes")

        if not buffer.seek_pattern(MZ_LIST_MARKER):
            raise ParseError("Could not find m/z header list")
        buffer.skip(148, "m/z header list")
        (n_segments,) = buffer.extract_struct("<I", "segment count")
        if n_segments > MAX_SEGMENTS:
            raise ParseError("Inficon file has too many segments")

        segments = []
        for _ in range(n_segments):
            # the first 4 bytes look like a segment name; the rest is unknown
            buffer.skip(96, "segment header")
            (n_mzs,) = buffer.extract_struct("<I", "m/z count")
            if n_mzs > MAX_MZ_ENTRIES:
                raise ParseError("Too many m/z ranges")
            mzs: List[float] = []
            for _ in range(n_mzs):
                start, end = buffer.extract_struct("<II", "m/z range")
                if end > MAX_MZ_END:
                    raise ParseError("End of m/z range is invalid")
                # dwell time and three unknown u32s
                buffer.skip(16, "m/z range")
                (entry_type,) = buffer.extract_struct("<I", "m/z range")
                buffer.skip(4, "m/z range")
                mzs.extend(_expand_mz_entry(start, end, entry_type))
            segments.append(mzs)

        if not buffer.seek_pattern(SCAN_DATA_MARKER):
            raise ParseError("Could not find start of scan data")
        # the scan section length sits right before the HapsScan header
        buffer.skip(180, "scan data header")
        (data_length,) = buffer.extract_struct("<I", "scan data header")
        buffer.skip(8, "scan data header")
        if buffer.extract(8, "scan data header") != b"HapsScan":
            raise ParseError("Data header was malformed")
        buffer.skip(56, "scan data header")

        self.mz_segments = segments
        self.data_left = data_length

    # ------------------------------------------------------------------ #
    def parse(self, window: bytearray, eof: bool) -> Outcome:
        if self.data_left == 0:
            return END_OF_STREAM

        pos = 0
        time, segment, mzs_left = self._time, self._segment, self._mzs_left
        if mzs_left == 0:
            if len(window) < _SCAN_HEADER.size:
                return NeedMoreBytes("Record ended prematurely in scan header")
            _index, raw_time, _, n_mzs, _, raw_segment = _SCAN_HEADER.unpack_from(window, 0)
            pos = _SCAN_HEADER.size
            time = raw_time / 60000.0
            # only the top nibble selects the segment; the low one is always F
            segment = raw_segment >> 4
            if segment >= len(self.mz_segments):
                raise ParseError(f"Invalid segment number ({segment}) specified")
            expected = len(self.mz_segments[segment])
            if n_mzs != expected:
                raise ParseError(
                    f"Number of intensities ({n_mzs}) doesn't match number of mzs ({expected})"
                )
            mzs_left = n_mzs

        if len(window) < pos + _INTENSITY.size:
            return NeedMoreBytes("Record ended prematurely in intensity")
        (intensity,) = _INTENSITY.unpack_from(window, pos)
        pos += _INTENSITY.size

        mzs = self.mz_segments[segment]
        if mzs_left == 0 or mzs_left > len(mzs):
            raise ParseError("Invalid m/z segment")

        self._record = InficonRecord(time=time, mz=mzs[len(mzs) - mzs_left], intensity=intensity)
        self._time, self._segment, self._mzs_left = time, segment, mzs_left - 1
        self.data_left = max(0, self.data_left - pos)
        return Parsed(pos)

    def get(self, window: bytearray) -> InficonRecord:
        return self._record
