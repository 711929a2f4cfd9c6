from __future__ import annotations
from typing import Dict, List, Type

from .filetype import AnyFileType, to_parser_name
from .parser_base import RecordParser
from .model import UnknownFormatError


class ParserRegistry:
    def __init__(self) -> None:
        self._by_name: Dict[str, Type[RecordParser]] = {}

    # called from RecordParser.__init_subclass__
    def register(self, parser_cls: Type[RecordParser]) -> None:
        self._by_name[parser_cls.name] = parser_cls

    def names(self) -> List[str]:
        return sorted(self._by_name)

    def get(self, parser_name: str) -> Type[RecordParser]:
        parser = self._by_name.get(parser_name)
        if parser is None:
            raise UnknownFormatError(f"No parser named {parser_name!r}")
        return parser

    def for_file_type(self, file_type: AnyFileType) -> Type[RecordParser]:
        return self.get(to_parser_name(file_type))


# singleton used project-wide
_REGISTRY = ParserRegistry()
