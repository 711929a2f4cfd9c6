"""FastRecord - A python library for streaming records out of scientific file formats."""

from typing import Any, Iterator

from .core.model import Result, UnknownFormatError, ParseError, DecodeError   # re-export
from .core.filetype import FileType, DelimitedText, classify, from_extension, \
    from_parser_name, to_parser_name
from .core.registry import _REGISTRY                                       # singleton
from .reader import Reader

# Import parsers to trigger registration
from .parsers import fasta, fastq, sam, bam, inficon  # noqa: F401


def open_reader(source, parser: str | None = None, **reader_options) -> Reader:
    """Open a Reader on a source (path, URL, bytes or file-like object)."""
    return Reader(source, parser, **reader_options)


def read_records(source, parser: str | None = None, **reader_options) -> Iterator[Any]:
    """Yield every record of a source, closing it once exhausted."""
    with Reader(source, parser, **reader_options) as reader:
        yield from reader


def parser_names() -> list[str]:
    """Names of the formats a Reader can decode."""
    return _REGISTRY.names()


__all__ = [
    "Reader", "open_reader", "read_records", "parser_names",
    "FileType", "DelimitedText", "classify", "from_extension", "from_parser_name", "to_parser_name",
    "Result", "UnknownFormatError", "ParseError", "DecodeError",
]
