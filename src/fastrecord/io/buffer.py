"""Growable, consumable byte window over a sequential source."""

from __future__ import annotations
import struct
from typing import Any, Tuple

from ..core.model import ParseError
from .base import ByteSource, DEFAULT_CHUNK_SIZE


class ReadBuffer:
    """Holds the not-yet-consumed prefix of a ByteSource.

    ``window`` is the buffered bytes in source order. Parsers read it but never
    mutate it; anything they hand back to callers is copied out first, because
    the window changes on every ``consume`` and ``refill``.
    """

    def __init__(self, source: ByteSource, chunk_size: int = DEFAULT_CHUNK_SIZE, *, initial: bytes = b""):
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self._source = source
        self._chunk_size = chunk_size
        self._buf = bytearray(initial)
        self._eof = False
        self.absolute_offset = 0
        self.record_index = 0
        self.bytes_read = len(initial)

    @property
    def window(self) -> bytearray:
        return self._buf

    @property
    def eof(self) -> bool:
        return self._eof

    def __len__(self) -> int:
        return len(self._buf)

    # ------------------------------------------------------------------ #
    def refill(self) -> int:
        """Append the next chunk from the source; 0 means the source is done."""
        if self._eof:
            return 0
        chunk = self._source.read(self._chunk_size)
        if not chunk:
            self._eof = True
            return 0
        self._buf.extend(chunk)
        self.bytes_read += len(chunk)
        return len(chunk)

    def consume(self, n: int) -> bytes:
        """Return and drop the first `n` bytes of the window."""
        if n < 0 or n > len(self._buf):
            raise ValueError(f"Cannot consume {n} bytes from a window of {len(self._buf)}")
        out = bytes(self._buf[:n])
        del self._buf[:n]
        self.absolute_offset += n
        return out

    def reserve(self, n: int) -> bool:
        """Refill until at least `n` bytes are buffered; False if the source ends first."""
        while len(self._buf) < n:
            if not self.refill():
                return False
        return True

    def seek_pattern(self, needle: bytes) -> bool:
        """Advance until `needle` starts the window.

        Bytes before the match are consumed, the needle is not. Returns False
        (with the window drained) if the source ends without a match.
        """
        keep = len(needle) - 1
        while True:
            pos = self._buf.find(needle)
            if pos >= 0:
                self.consume(pos)
                return True
            # drop everything that cannot be the start of a match
            self.consume(max(len(self._buf) - keep, 0))
            if not self.refill():
                self.consume(len(self._buf))
                return False

    # --- helpers for fixed-layout setup sections ---------------------- #
    def extract(self, n: int, section: str) -> bytes:
        """Consume exactly `n` bytes or fail naming the truncated `section`."""
        if not self.reserve(n):
            raise ParseError(f"Record ended prematurely in {section}", incomplete=True)
        return self.consume(n)

    def extract_struct(self, fmt: str, section: str) -> Tuple[Any, ...]:
        return struct.unpack(fmt, self.extract(struct.calcsize(fmt), section))

    def skip(self, n: int, section: str) -> None:
        """Discard `n` bytes without holding more than a chunk of them."""
        while n > 0:
            if not self._buf and not self.refill():
                raise ParseError(f"Record ended prematurely in {section}", incomplete=True)
            step = min(n, len(self._buf))
            self.consume(step)
            n -= step
