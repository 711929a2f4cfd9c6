import struct

import pytest

from conftest import INFICON_MZ_MARKER, inficon_file, inficon_scan
from fastrecord import Reader, read_records
from fastrecord.core.model import ParseError
from fastrecord.parsers.inficon import InficonRecord

# offset of the u32 segment count: magic, 20 filler bytes, 148 from the marker
SEGMENT_COUNT_OFFSET = 4 + 20 + 148


def triples(data: bytes, **kw):
    return [(r.time, r.mz, r.intensity) for r in read_records(data, **kw)]


class TestInficonParser:
    """Test Hapsite scan decoding."""

    def test_single_scan(self, simple_inficon):
        """Test one full-scan segment expanded to unit m/z steps."""
        with Reader(simple_inficon) as reader:
            assert reader.parser == "inficon"
            assert reader.headers() == ["time", "mz", "intensity"]
            assert reader._parser.data_left == 28
            records = list(reader)
        assert records == [
            InficonRecord(1.0, 10.0, 1.5),
            InficonRecord(1.0, 11.0, 2.5),
            InficonRecord(1.0, 12.0, 3.5),
        ]

    def test_segments_and_scans(self):
        """Test selected-ion segments and several scans."""
        data = inficon_file(
            [[(1000, 1100, 1)], [(5000, 0, 0), (7250, 0, 0)]],
            [
                inficon_scan(1, [4.0, 8.0], index=1, time_ms=30000),
                inficon_scan(0, [0.5, 0.25], index=2, time_ms=90000),
            ],
        )
        assert triples(data) == [
            (0.5, 50.0, 4.0),
            (0.5, 72.5, 8.0),
            (1.5, 10.0, 0.5),
            (1.5, 11.0, 0.25),
        ]

    def test_payload_length_ends_stream(self):
        """Test that bytes past the announced payload are ignored."""
        data = inficon_file([[(1000, 1200, 1)]], [inficon_scan(0, [1.0, 2.0, 3.0])],
                            data_length=20)
        assert triples(data) == [(1.0, 10.0, 1.0)]

    def test_one_byte_chunks(self, simple_inficon):
        """Test that decoding does not depend on the chunk size."""
        assert triples(simple_inficon, chunk_size=1) == triples(simple_inficon)


class TestInficonSetupErrors:
    """Test failures while reading the method header."""

    def test_bad_magic(self):
        """Test a file with the wrong magic."""
        with pytest.raises(ParseError, match="bad magic bytes"):
            Reader(b"\x01\x02\x03\x04" + bytes(200), "inficon")

    def test_missing_mz_marker(self):
        """Test a file without the m/z list marker."""
        with pytest.raises(ParseError, match="Could not find m/z header list"):
            Reader(b"\x04\x03\x02\x01SPAH" + bytes(300), "inficon")

    def test_missing_scan_marker(self, simple_inficon):
        """Test a file without the scan data block."""
        data = simple_inficon.replace(b"HapsGPIR", b"HapsXXXX")
        with pytest.raises(ParseError, match="Could not find start of scan data"):
            Reader(data)

    def test_malformed_data_header(self, simple_inficon):
        """Test a corrupted HapsScan tag."""
        data = simple_inficon.replace(b"HapsScan", b"HapsSkan")
        with pytest.raises(ParseError, match="Data header was malformed"):
            Reader(data)

    def test_too_many_segments(self):
        """Test the segment count cap."""
        data = bytearray(inficon_file([], []))
        assert data[SEGMENT_COUNT_OFFSET - 148:].startswith(INFICON_MZ_MARKER)
        struct.pack_into("<I", data, SEGMENT_COUNT_OFFSET, 10_001)
        with pytest.raises(ParseError, match="too many segments"):
            Reader(bytes(data))

    def test_range_too_big(self):
        """Test a full-scan range wider than the cap."""
        with pytest.raises(ParseError, match="m/z range is too big or invalid"):
            Reader(inficon_file([[(1000, 300_000, 1)]], []))

    def test_inverted_range(self):
        """Test a full-scan range that ends before it starts."""
        with pytest.raises(ParseError, match="m/z range is too big or invalid"):
            Reader(inficon_file([[(2000, 1000, 1)]], []))

    def test_invalid_range_end(self):
        """Test an impossible range end."""
        with pytest.raises(ParseError, match="End of m/z range is invalid"):
            Reader(inficon_file([[(0, 4_000_000_001, 0)]], []))

    def test_fuzzed_header(self):
        """Test a fuzzed file whose method header is cut short."""
        data = bytes([
            4, 3, 2, 1, 83, 80, 65, 72, 66, 255, 255, 255, 255, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0,
            0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 246, 255, 255, 255, 0, 0,
            0, 0, 14, 14, 14, 14, 14, 14, 14, 255, 255, 255, 255, 255, 255, 255, 255, 255, 255,
            248, 10, 10, 10, 10, 35, 4, 0, 0, 0, 0, 0, 0, 10, 10, 10, 10, 10, 62, 10, 10, 26, 0, 0,
            0, 42, 42, 4, 0, 0, 0, 0, 0, 0, 10, 10, 10, 10, 10, 62, 10, 10, 10, 0, 0, 0, 0, 0, 0,
            0, 16, 42, 42, 42, 10, 62, 10, 10, 26, 0, 0, 0, 42, 42, 4, 0, 0, 0, 0, 0, 0, 10, 10,
            10, 10, 10, 62, 10, 10, 10, 0, 0, 0, 0, 0, 0, 0, 16, 42, 42, 42,
        ])
        with pytest.raises(ParseError):
            Reader(data, "inficon")


class TestInficonRecordErrors:
    """Test failures inside the scan payload, which carry positions."""

    def test_count_mismatch(self):
        """Test a scan whose m/z count disagrees with its segment."""
        scan = inficon_scan(0, [1.0, 2.0], n_mzs=2)
        data = inficon_file([[(1000, 1200, 1)]], [scan])
        reader = Reader(data)
        with pytest.raises(ParseError,
                           match=r"Number of intensities \(2\) doesn't match number of mzs \(3\)") as exc:
            reader.next()
        assert exc.value.byte == len(data) - len(scan)
        assert exc.value.record == 1

    def test_invalid_segment(self):
        """Test a scan naming a segment past the table."""
        data = inficon_file([[(1000, 1200, 1)]], [inficon_scan(5, [1.0])])
        with pytest.raises(ParseError, match=r"Invalid segment number \(5\) specified"):
            list(read_records(data))

    def test_truncated_payload(self, simple_inficon):
        """Test a payload shorter than announced."""
        data = inficon_file([[(1000, 1200, 1)]], [inficon_scan(0, [1.5, 2.5, 3.5])],
                            data_length=40)
        with Reader(data) as reader:
            for _ in range(3):
                reader.next()
            with pytest.raises(ParseError, match="prematurely in scan header") as exc:
                reader.next()
        assert exc.value.incomplete
        assert exc.value.record == 4
        assert exc.value.byte == len(data)

    def test_truncated_intensity(self, simple_inficon):
        """Test a file cut inside an intensity value."""
        reader = Reader(simple_inficon[:-2])
        reader.next()
        reader.next()
        with pytest.raises(ParseError, match="prematurely in intensity"):
            reader.next()
