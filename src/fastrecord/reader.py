"""Pull-based record reader tying a source, the buffer and one parser together."""

from __future__ import annotations
from typing import Any, Dict, Iterator, List

from .core.filetype import AnyFileType, to_parser_name
from .core.model import END_OF_STREAM, NeedMoreBytes, ParseError, UnknownFormatError
from .core.registry import _REGISTRY
from .io import DEFAULT_CHUNK_SIZE, ReadBuffer, compression, open_source


class Reader:
    """Streams decoded records out of a path, URL, bytes or binary file object.

    Compression is sniffed and one layer is removed before the inner format
    is detected. Pass ``parser`` to skip detection. Records come out of
    ``next()`` (None once the input is exhausted) or by iterating.
    """

    def __init__(self, source, parser: str | None = None, *, decompress: bool = True,
                 chunk_size: int = DEFAULT_CHUNK_SIZE):
        self._source = open_source(source)
        self._stream = self._source
        self._error: Exception | None = None
        self._done = False
        try:
            self._stream, self.file_type, self.compression = compression.decompress(
                self._source, enabled=decompress)
            self.parser = parser or self._detect(self.file_type)
            self._parser = _REGISTRY.get(self.parser)()
            self._buffer = ReadBuffer(self._stream, chunk_size)
            self._parser.setup(self._buffer)
        except BaseException:
            self.close()
            raise

    @staticmethod
    def _detect(file_type: AnyFileType) -> str:
        name = to_parser_name(file_type)
        if name not in _REGISTRY.names():
            raise UnknownFormatError(f"No parser available for {file_type} data")
        return name

    # ------------------------------------------------------------------ #
    def headers(self) -> List[str]:
        return self._parser.field_names()

    def metadata(self) -> Dict[str, str]:
        return {
            "parser": self.parser,
            "file_type": str(self.file_type),
            "compression": str(self.compression) if self.compression else "",
        }

    @property
    def bytes_read(self) -> int:
        """Raw (still compressed) bytes pulled from the source so far."""
        return self._source.bytes_fetched

    def next(self) -> Any:
        """Return the next record, or None at the end of the input."""
        if self._error is not None:
            raise self._error
        if self._done:
            return None
        try:
            record = self._next_record()
        except Exception as e:
            self._error = e
            raise
        if record is None:
            self._done = True
        return record

    def _next_record(self) -> Any:
        buffer, parser = self._buffer, self._parser
        start_byte, index = buffer.absolute_offset, buffer.record_index
        try:
            while True:
                outcome = parser.parse(buffer.window, buffer.eof)
                if isinstance(outcome, NeedMoreBytes):
                    if buffer.eof:
                        raise ParseError(outcome.reason, incomplete=True)
                    buffer.refill()
                    continue
                if outcome is END_OF_STREAM:
                    return None
                # get() must see the window before consume() moves it
                record = parser.get(buffer.window)
                buffer.consume(outcome.consumed)
                buffer.record_index += 1
                return record
        except ParseError as e:
            if parser.position_errors and e.byte is None:
                e.with_position(start_byte, index + 1)
            raise

    # --- iteration / resource handling -------------------------------- #
    def __iter__(self) -> Iterator[Any]:
        while (record := self.next()) is not None:
            yield record

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        """Close any decompressor and the underlying source."""
        if self._stream is not self._source and hasattr(self._stream, 'close'):
            self._stream.close()
        self._source.close()

