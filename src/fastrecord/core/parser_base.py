from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import fields
from typing import Any, ClassVar, List

from .model import Outcome


class RecordParser(ABC):
    """One record format driven through the two-phase parse/get protocol.

    Instance attributes are the parser state; an instance serves exactly one
    stream.
    """

    # --- required by subclasses ---
    name: ClassVar[str]                     # parser name, e.g. "fasta"
    record_type: ClassVar[type]             # dataclass produced by get()
    position_errors: ClassVar[bool] = False  # tag record errors with byte/record

    def setup(self, buffer) -> None:
        """One-time header phase, run against the ReadBuffer before any record."""
        return None

    @abstractmethod
    def parse(self, window: bytearray, eof: bool) -> Outcome:
        """Recognise one record at the front of `window`.

        Return NeedMoreBytes when `window` is a valid but unfinished prefix,
        Parsed(n) when the first n bytes hold a record, END_OF_STREAM when
        the input cleanly ended. Grammar violations raise ParseError.
        """
        ...

    @abstractmethod
    def get(self, window: bytearray) -> Any:
        """Build the record located by the immediately preceding parse()."""
        ...

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls.record_type)]

    # --- registry hook ---
    def __init_subclass__(cls, **kw):
        super().__init_subclass__(**kw)
        from .registry import _REGISTRY
        _REGISTRY.register(cls)           # noqa: E402
