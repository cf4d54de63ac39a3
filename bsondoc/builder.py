"""Build BSON values and documents from plain Python literals."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from .document import Document
from .oid import ObjectId
from .values import (
    Binary,
    DateTime,
    DbPointer,
    Int64,
    JavaScriptCode,
    JavaScriptCodeWithScope,
    MaxKey,
    MinKey,
    Regex,
    Symbol,
    Timestamp,
    Undefined,
)

__all__ = ["bson", "doc"]

_I32_MIN = -(1 << 31)
_I32_MAX = (1 << 31) - 1
_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1

_PASSTHROUGH = (
    str,
    float,
    Int64,
    ObjectId,
    DateTime,
    Binary,
    Timestamp,
    Regex,
    JavaScriptCode,
    JavaScriptCodeWithScope,
    Symbol,
    DbPointer,
    MinKey,
    MaxKey,
    Undefined,
)


def _convert_int(value: int) -> int | Int64:
    if _I32_MIN <= value <= _I32_MAX:
        return value
    if _I64_MIN <= value <= _I64_MAX:
        return Int64(value)
    raise OverflowError(f"{value} does not fit in a signed 64-bit integer")


def bson(value: Any) -> Any:
    """Convert a Python literal into a BSON value.

    Mappings become Documents and lists or tuples become lists, converted all the
    way down. Ints outside the 32-bit range become Int64, aware or naive datetimes
    become DateTime, and BSON value types are kept as they are.
    """
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int) and not isinstance(value, Int64):
        return _convert_int(value)
    if isinstance(value, _PASSTHROUGH):
        return value
    if isinstance(value, datetime):
        return DateTime.from_datetime(value)
    if isinstance(value, Mapping):
        return _build(value.items())
    if isinstance(value, (list, tuple)):
        return [bson(item) for item in value]
    raise TypeError(f"{type(value).__name__} cannot be converted to a BSON value")


def _build(pairs: Iterable[tuple[str, Any]]) -> Document:
    document = Document()
    for key, item in pairs:
        document[key] = bson(item)
    return document


def doc(*args: Any, **kwargs: Any) -> Document:
    """Build a Document from a mapping or key-value pairs, and keyword arguments.

    Entries keep the order they are given in; a repeated key replaces the
    earlier value in its original position.
    """
    if len(args) > 1:
        raise TypeError(f"doc expected at most 1 positional argument, got {len(args)}")
    document = Document()
    if args:
        source = args[0]
        pairs = source.items() if isinstance(source, Mapping) else source
        for key, item in pairs:
            document[key] = bson(item)
    for key, item in kwargs.items():
        document[key] = bson(item)
    return document