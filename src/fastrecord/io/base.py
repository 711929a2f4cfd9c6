"""Base protocols and shared types for I/O layer."""

from typing import Protocol, runtime_checkable


HTTP_TIMEOUT = 30  # seconds per request

DEFAULT_CHUNK_SIZE = 64 * 1024  # 64 KiB per refill


@runtime_checkable
class ByteSource(Protocol):
    """Protocol for sequential byte providers."""

    def read(self, size: int = -1) -> bytes:
        """Return up to `size` bytes; an empty result means end of source.
        Read failures raise OSError.
        """
        ...
