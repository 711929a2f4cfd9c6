"""Builders for binary sample files used across the test-suite."""

import struct

import pytest

BAM_BASES = "=ACMGRSVTWYHKDBN"
CIGAR_CODES = {op: i for i, op in enumerate("MIDNSHP=X")}

INFICON_MZ_MARKER = b"\xFF\xFF\xFF\xFF" + b"\x00" * 32 + b"\xF6\xFF\xFF\xFF" + b"\x00" * 4
INFICON_SCAN_MARKER = b"\xFF\xFF\xFF\xFFHapsGPIR"


def bam_record(name: str, *, ref_id: int = 0, pos: int = 0, mapq: int = 60, flag: int = 0,
               cigar: str = "", seq: str = "", qual: str | None = None,
               next_ref_id: int = -1, next_pos: int = -1, tlen: int = 0) -> bytes:
    """Encode one alignment block, length prefix included. `cigar` looks like '4M1I'."""
    raw_name = name.encode() + b"\x00"

    ops = []
    run = ""
    for ch in cigar:
        if ch.isdigit():
            run += ch
        else:
            ops.append(int(run) << 4 | CIGAR_CODES[ch])
            run = ""
    raw_cigar = b"".join(struct.pack("<I", op) for op in ops)

    codes = [BAM_BASES.index(b) for b in seq]
    if len(codes) % 2:
        codes.append(0)
    packed = bytes(codes[i] << 4 | codes[i + 1] for i in range(0, len(codes), 2))
    raw_qual = bytes([255] * len(seq)) if qual is None else bytes(ord(q) - 33 for q in qual)

    body = struct.pack("<iiBBHHHIiii", ref_id, pos, len(raw_name), mapq, 0, len(ops), flag,
                       len(seq), next_ref_id, next_pos, tlen)
    body += raw_name + raw_cigar + packed + raw_qual
    return struct.pack("<I", len(body)) + body


def bam_file(references, records, header_text: bytes = b"@HD\tVN:1.6\n") -> bytes:
    """Uncompressed BAM stream: magic, header text, reference table, records."""
    out = bytearray(b"BAM\x01")
    out += struct.pack("<I", len(header_text)) + header_text
    out += struct.pack("<I", len(references))
    for name, length in references:
        raw = name.encode() + b"\x00"
        out += struct.pack("<I", len(raw)) + raw + struct.pack("<I", length)
    for rec in records:
        out += rec
    return bytes(out)


def inficon_scan(segment: int, intensities, *, index: int = 1, time_ms: int = 60000,
                 n_mzs: int | None = None) -> bytes:
    """One scan: 16-byte header then a float32 per m/z."""
    count = len(intensities) if n_mzs is None else n_mzs
    header = struct.pack("<IiHHHH", index, time_ms, 1, count, 0xFFFF, segment << 4 | 0xF)
    return header + b"".join(struct.pack("<f", v) for v in intensities)


def inficon_file(segments, scans, *, data_length: int | None = None) -> bytes:
    """Hapsite file with the given m/z tables and scan payload.

    ``segments`` is a list of segments, each a list of ``(start, end, type)``
    entries in hundredths of a unit.
    """
    out = bytearray(b"\x04\x03\x02\x01")
    out += b"SPAH" + b"\x00" * 16
    out += INFICON_MZ_MARKER + b"\x00" * (148 - len(INFICON_MZ_MARKER))
    out += struct.pack("<I", len(segments))
    for entries in segments:
        out += b"\x00" * 96
        out += struct.pack("<I", len(entries))
        for start, end, entry_type in entries:
            out += struct.pack("<II", start, end) + b"\x00" * 16
            out += struct.pack("<I", entry_type) + b"\x00" * 4
    out += b"\x00" * 8
    payload = b"".join(scans)
    out += INFICON_SCAN_MARKER + b"\x00" * (180 - len(INFICON_SCAN_MARKER))
    out += struct.pack("<I", len(payload) if data_length is None else data_length)
    out += b"\x00" * 8 + b"HapsScan" + b"\x00" * 56
    out += payload
    return bytes(out)


@pytest.fixture
def simple_bam():
    """Two alignments on one reference; the second is unmapped."""
    return bam_file(
        [("chr1", 1000)],
        [
            bam_record("read1", pos=9, cigar="4M", seq="ACGT", qual="IIII"),
            bam_record("read2", ref_id=-1, pos=-1, mapq=255, flag=4, seq="NNA"),
        ],
    )


@pytest.fixture
def simple_inficon():
    """One full-scan segment (m/z 10-12) and a single scan at one minute."""
    return inficon_file([[(1000, 1200, 1)]], [inficon_scan(0, [1.5, 2.5, 3.5])])
