"""I/O layer for FastRecord - sequential byte sources and the read buffer."""

# Re-export these for import convenience
from .base import ByteSource, DEFAULT_CHUNK_SIZE
from .buffer import ReadBuffer
from .compression import SNIFF_SIZE, decompress, sniff
from .local import open_local_source
from .http_sync import open_http_source


def open_source(source) -> ByteSource:
    """Factory function to create the appropriate ByteSource for `source`."""
    if hasattr(source, 'read') or isinstance(source, (bytes, bytearray, memoryview)):
        return open_local_source(source)

    source_str = str(source)
    if source_str.startswith(('http://', 'https://')):
        return open_http_source(source_str)
    return open_local_source(source)
