from __future__ import annotations
import re
from dataclasses import fields
from typing import Any, Dict, Iterable
from .model import DecodeError, Result


def decode_utf8(raw: bytes | bytearray, field: str) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"Invalid UTF-8 in {field}: {e}") from e


_DECIMAL = re.compile(rb"-?[0-9]+")


def parse_int(raw: bytes | bytearray, field: str,
              lo: int | None = None, hi: int | None = None) -> int:
    """Parse an ASCII decimal integer, optionally bounded to [lo, hi]."""
    if _DECIMAL.fullmatch(raw) is None:
        raise DecodeError(f"Invalid integer in {field}: {bytes(raw)!r}")
    value = int(raw)
    if (lo is not None and value < lo) or (hi is not None and value > hi):
        raise DecodeError(f"Integer out of range in {field}: {value}")
    return value


def _jsonable(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return value.decode("latin-1")
    return value


def record_asdict(record: Any, *, fields_wanted: Iterable[str] | None = None) -> Dict[str, Any]:
    """Return a JSON-serialisable dict of a record, in header order, optionally filtered."""
    wanted = set(fields_wanted) if fields_wanted else None
    return {
        f.name: _jsonable(getattr(record, f.name))
        for f in fields(record)
        if wanted is None or f.name in wanted
    }


def result_asdict(res: Result, *, fields: Iterable[str] | None = None) -> Dict[str, Any]:
    """Return a JSON-serialisable dict (skip None) optionally filtered."""
    if not res.success or res.data is None:
        return {"success": False, "error": res.error, "bytes_read": res.bytes_read}
    payload = {k: v for k, v in res.data.items() if v is not None}
    if fields:
        wanted = set(fields)
        payload = {k: v for k, v in payload.items() if k in wanted}
    payload.update({"success": True, "bytes_read": res.bytes_read})
    return payload
