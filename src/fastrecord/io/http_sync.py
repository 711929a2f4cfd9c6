"""Synchronous HTTP byte source using requests."""

import requests
from typing import Iterator, Optional

from .base import DEFAULT_CHUNK_SIZE, HTTP_TIMEOUT


# Module-level session for connection pooling
_session = None


def _get_session():
    """Get or create the global requests session."""
    global _session
    if _session is None:
        _session = requests.Session()
    return _session


class HTTPByteSource:
    """Sequential HTTP byte source streaming a single GET response."""

    def __init__(self, url: str, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.url = url
        self.bytes_fetched = 0
        self.requests_made = 0
        self.content_length: Optional[int] = None
        self._chunk_size = chunk_size
        self._pending = b""
        self._exhausted = False
        self._session = _get_session()

        # Start the GET immediately so bad URLs fail at construction
        self._response = self._perform_get()
        self._chunks: Iterator[bytes] = self._response.iter_content(self._chunk_size)

    def _perform_get(self) -> requests.Response:
        """Open a streaming GET request."""
        self.requests_made += 1
        try:
            response = self._session.get(self.url, stream=True, timeout=HTTP_TIMEOUT)
        except requests.RequestException as e:
            raise IOError(f"GET request failed: {e}")
        if response.status_code >= 400:
            response.close()
            raise IOError(f"GET request failed with status {response.status_code}")

        content_length_header = response.headers.get('content-length')
        if content_length_header:
            self.content_length = int(content_length_header)
        return response

    def read(self, size: int = -1) -> bytes:
        """Return up to `size` bytes; b'' once the response body is exhausted."""
        if size is None or size < 0:
            parts = [self._pending]
            self._pending = b""
            while (chunk := self._next_chunk()):
                parts.append(chunk)
            return b"".join(parts)

        while not self._pending and not self._exhausted:
            self._pending = self._next_chunk()
        data, self._pending = self._pending[:size], self._pending[size:]
        return data

    def _next_chunk(self) -> bytes:
        if self._exhausted:
            return b""
        try:
            chunk = next(self._chunks, b"")
        except requests.RequestException as e:
            raise IOError(f"Reading response body failed: {e}")
        if not chunk:
            self._exhausted = True
        self.bytes_fetched += len(chunk)
        return chunk

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Release the connection; the session is shared and stays open."""
        self._response.close()


def open_http_source(url: str) -> HTTPByteSource:
    """Create a synchronous HTTP byte source."""
    return HTTPByteSource(url)
