"""Local byte sources: paths, open binary files and in-memory buffers."""

import io
from pathlib import Path
from typing import BinaryIO, Union


LocalSource = Union[Path, str, bytes, bytearray, memoryview, BinaryIO]


class LocalByteSource:
    """Sequential reader over a local file, file object or in-memory buffer."""

    def __init__(self, source: LocalSource):
        self.bytes_fetched = 0
        self.requests_made = 0
        self._file: BinaryIO | None = None
        self._should_close_file = False

        if isinstance(source, (bytes, bytearray, memoryview)):
            self._file = io.BytesIO(bytes(source))
            self._should_close_file = True
        elif hasattr(source, 'read'):
            # BinaryIO object; the caller keeps ownership
            self._file = source
        else:
            # Path or str
            self._file = open(source, 'rb')
            self._should_close_file = True

    def read(self, size: int = -1) -> bytes:
        """Return up to `size` bytes from the current position."""
        if self._file is None:
            raise IOError("Source is closed")
        self.requests_made += 1
        data = self._file.read(size)
        if isinstance(data, str):
            raise IOError("Source must be opened in binary mode")
        self.bytes_fetched += len(data)
        return data

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Close the file if we opened it."""
        if self._should_close_file and self._file is not None:
            self._file.close()
        self._file = None


def open_local_source(source: LocalSource) -> LocalByteSource:
    """Create a sequential local byte source."""
    return LocalByteSource(source)
