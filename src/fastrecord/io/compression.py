"""Compression sniffing and single-layer decompression."""

from __future__ import annotations
import bz2
import gzip
import lzma
import warnings
import zlib
from typing import Callable, Dict, Tuple

import zstandard

from ..core.filetype import AnyFileType, FileType, classify, is_compression
from .base import ByteSource

SNIFF_SIZE = 4096


class ReplaySource:
    """Serves a sniffed prefix back before continuing with the wrapped stream."""

    def __init__(self, prefix: bytes, stream: ByteSource):
        self._prefix = prefix
        self._pos = 0
        self._stream = stream

    def read(self, size: int = -1) -> bytes:
        # 1. Prefix exhausted
        if self._pos >= len(self._prefix):
            return self._stream.read(size)

        # 2. Read all (rest of prefix + stream)
        if size is None or size < 0:
            chunk = self._prefix[self._pos:]
            self._pos = len(self._prefix)
            return chunk + self._stream.read()

        # 3. Read partial; never block on the stream while prefix bytes remain
        chunk = self._prefix[self._pos:self._pos + size]
        self._pos += len(chunk)
        return chunk

    def close(self):
        if hasattr(self._stream, 'close'):
            self._stream.close()


def read_prefix(stream: ByteSource, size: int) -> bytes:
    """Read up to `size` bytes, stopping early only at end of stream."""
    parts = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        parts.append(chunk)
        remaining -= len(chunk)
    return b"".join(parts)


def sniff(stream: ByteSource, size: int = SNIFF_SIZE) -> Tuple[ReplaySource, FileType]:
    """Classify the first `size` bytes and return a stream that replays them."""
    prefix = read_prefix(stream, size)
    return ReplaySource(prefix, stream), classify(prefix)


# raised by the codecs on corrupt or truncated input
_CODEC_ERRORS = (EOFError, zlib.error, lzma.LZMAError, zstandard.ZstdError)


class DecompressedStream:
    """Reads through a decompressor, reporting codec failures as OSError."""

    def __init__(self, reader, compression: FileType):
        self._reader = reader
        self._compression = compression

    def read(self, size: int = -1) -> bytes:
        try:
            return self._reader.read(size)
        except _CODEC_ERRORS as e:
            raise OSError(f"Corrupt or truncated {self._compression} stream: {e}") from e

    def close(self):
        self._reader.close()


_DECOMPRESSORS: Dict[FileType, Callable[[ByteSource], ByteSource]] = {
    FileType.GZIP: lambda s: gzip.GzipFile(fileobj=s, mode='rb'),    # handles multi-member (BGZF)
    FileType.BZIP: lambda s: bz2.BZ2File(s, mode='rb'),
    FileType.LZMA: lambda s: lzma.LZMAFile(s, mode='rb'),
    FileType.ZSTD: lambda s: zstandard.ZstdDecompressor().stream_reader(s, read_across_frames=True),
}


def decompress(stream: ByteSource, *, enabled: bool = True,
               sniff_size: int = SNIFF_SIZE) -> Tuple[ByteSource, AnyFileType, FileType | None]:
    """Unwrap one compression layer if present.

    Returns ``(stream, inner_type, compression)`` where ``compression`` is the
    container type that was removed, or None when the input was not compressed.
    With ``enabled=False`` compressed inputs are classified but left encoded.
    """
    wrapped, file_type = sniff(stream, sniff_size)
    if not is_compression(file_type):
        return wrapped, file_type, None
    if not enabled:
        warnings.warn(f"Input is {file_type} compressed but decompression is disabled; "
                      f"records will not be decoded")
        return wrapped, file_type, None

    decoded = DecompressedStream(_DECOMPRESSORS[file_type](wrapped), file_type)
    inner, inner_type = sniff(decoded, sniff_size)
    return inner, inner_type, file_type
