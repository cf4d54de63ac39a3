"""The BSON value types that have no direct Python counterpart, and their display form."""

from __future__ import annotations

import base64
import math
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, ClassVar

from .oid import ObjectId

__all__ = [
    "BinarySubtype",
    "Binary",
    "Timestamp",
    "Regex",
    "JavaScriptCode",
    "JavaScriptCodeWithScope",
    "Symbol",
    "DbPointer",
    "DateTime",
    "Int64",
    "MinKey",
    "MaxKey",
    "Undefined",
    "format_value",
]

_U32_MAX = 0xFFFF_FFFF
_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1

_USER_DEFINED_START = 0x80
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MILLI = timedelta(milliseconds=1)

_SUBTYPE_NAMES = {
    0x00: "GENERIC",
    0x01: "FUNCTION",
    0x02: "BINARY_OLD",
    0x03: "UUID_OLD",
    0x04: "UUID",
    0x05: "MD5",
    0x06: "ENCRYPTED",
    0x07: "COLUMN",
}


def _check_u32(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if not 0 <= value <= _U32_MAX:
        raise ValueError(f"{name} must fit in an unsigned 32-bit integer, got {value}")


def _check_i64(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if not _I64_MIN <= value <= _I64_MAX:
        raise ValueError(f"{name} must fit in a signed 64-bit integer, got {value}")


@dataclass(frozen=True)
class BinarySubtype:
    """The one-byte subtype of a BSON binary value."""

    value: int

    GENERIC: ClassVar[BinarySubtype]
    FUNCTION: ClassVar[BinarySubtype]
    BINARY_OLD: ClassVar[BinarySubtype]
    UUID_OLD: ClassVar[BinarySubtype]
    UUID: ClassVar[BinarySubtype]
    MD5: ClassVar[BinarySubtype]
    ENCRYPTED: ClassVar[BinarySubtype]
    COLUMN: ClassVar[BinarySubtype]

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"a binary subtype must be an int, got {type(self.value).__name__}")
        if not 0 <= self.value <= 0xFF:
            raise ValueError(f"a binary subtype must fit in one byte, got {self.value}")

    @classmethod
    def from_byte(cls, value: int) -> BinarySubtype:
        """Return the subtype for a raw byte."""
        return cls(value)

    @property
    def is_reserved(self) -> bool:
        """True for bytes in the range reserved for future subtypes."""
        return self.value not in _SUBTYPE_NAMES and self.value < _USER_DEFINED_START

    @property
    def is_user_defined(self) -> bool:
        """True for bytes in the user-defined range (0x80 and above)."""
        return self.value >= _USER_DEFINED_START

    def __int__(self) -> int:
        return self.value

    def __repr__(self) -> str:
        name = _SUBTYPE_NAMES.get(self.value)
        if name is not None:
            return f"BinarySubtype.{name}"
        kind = "user_defined" if self.is_user_defined else "reserved"
        return f"BinarySubtype({self.value:#04x}, {kind})"


BinarySubtype.GENERIC = BinarySubtype(0x00)
BinarySubtype.FUNCTION = BinarySubtype(0x01)
BinarySubtype.BINARY_OLD = BinarySubtype(0x02)
BinarySubtype.UUID_OLD = BinarySubtype(0x03)
BinarySubtype.UUID = BinarySubtype(0x04)
BinarySubtype.MD5 = BinarySubtype(0x05)
BinarySubtype.ENCRYPTED = BinarySubtype(0x06)
BinarySubtype.COLUMN = BinarySubtype(0x07)


@dataclass(frozen=True)
class Binary:
    """Binary data together with its subtype."""

    data: bytes
    subtype: BinarySubtype = BinarySubtype.GENERIC

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))
        if not isinstance(self.subtype, BinarySubtype):
            object.__setattr__(self, "subtype", BinarySubtype.from_byte(self.subtype))

    def __str__(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"Binary(0x{int(self.subtype):x}, {encoded})"


@dataclass(frozen=True, order=True)
class Timestamp:
    """An internal MongoDB timestamp: seconds and an ordinal within the second."""

    time: int
    increment: int

    def __post_init__(self) -> None:
        _check_u32("time", self.time)
        _check_u32("increment", self.increment)

    def __str__(self) -> str:
        return f"Timestamp({self.time}, {self.increment})"


@dataclass(frozen=True)
class Regex:
    """A regular expression pattern with its option letters."""

    pattern: str
    options: str = ""

    def __str__(self) -> str:
        return f"/{self.pattern}/{self.options}"


@dataclass(frozen=True)
class JavaScriptCode:
    """JavaScript source code without a scope."""

    code: str

    def __str__(self) -> str:
        return self.code


@dataclass
class JavaScriptCodeWithScope:
    """JavaScript source code together with the document it is evaluated in."""

    code: str
    scope: Mapping[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.code


@dataclass(frozen=True)
class Symbol:
    """A deprecated BSON symbol value."""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DbPointer:
    """A deprecated reference to a document in another namespace."""

    namespace: str
    id: ObjectId

    def __str__(self) -> str:
        return f"DbPointer({self.namespace}, {self.id})"


@dataclass(frozen=True, order=True)
class DateTime:
    """A UTC instant stored as signed milliseconds since the Unix epoch."""

    millis: int

    MIN: ClassVar[DateTime]
    MAX: ClassVar[DateTime]

    def __post_init__(self) -> None:
        _check_i64("millis", self.millis)

    @classmethod
    def from_millis(cls, millis: int) -> DateTime:
        return cls(millis)

    @classmethod
    def from_datetime(cls, value: datetime) -> DateTime:
        """Convert a datetime, truncating to millisecond precision.

        A naive datetime is taken to be in UTC.
        """
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return cls((value - _EPOCH) // _ONE_MILLI)

    @classmethod
    def now(cls) -> DateTime:
        return cls(time.time_ns() // 1_000_000)

    def timestamp_millis(self) -> int:
        return self.millis

    def _exact_datetime(self) -> datetime | None:
        try:
            return _EPOCH + timedelta(milliseconds=self.millis)
        except OverflowError:
            return None

    def to_datetime(self) -> datetime:
        """Return an aware UTC datetime, clamped to the range datetime can hold."""
        exact = self._exact_datetime()
        if exact is not None:
            return exact
        limit = datetime.max if self.millis > 0 else datetime.min
        return limit.replace(tzinfo=timezone.utc)

    def __str__(self) -> str:
        dt = self._exact_datetime()
        if dt is None:
            return str(self.millis)
        return (
            f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d} "
            f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}."
            f"{dt.microsecond // 1000:03d} UTC"
        )


DateTime.MIN = DateTime(_I64_MIN)
DateTime.MAX = DateTime(_I64_MAX)


@dataclass(frozen=True, order=True)
class Int64:
    """A 64-bit integer; plain Python ints stand for 32-bit BSON integers."""

    value: int

    def __post_init__(self) -> None:
        _check_i64("value", self.value)

    def __int__(self) -> int:
        return self.value

    def __index__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class MinKey:
    """The value that compares lower than every other BSON value."""

    def __str__(self) -> str:
        return "MinKey"


@dataclass(frozen=True)
class MaxKey:
    """The value that compares higher than every other BSON value."""

    def __str__(self) -> str:
        return "MaxKey"


@dataclass(frozen=True)
class Undefined:
    """The deprecated BSON undefined value."""

    def __str__(self) -> str:
        return "undefined"


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value.is_integer():
        if value == 0 and math.copysign(1.0, value) < 0:
            return "-0"
        return str(int(value))
    return format(Decimal(repr(value)), "f")


def format_value(value: Any) -> str:
    """Render a BSON value in its human-readable display form."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, Mapping):
        if not value:
            return "{}"
        body = ", ".join(f'"{key}": {format_value(item)}' for key, item in value.items())
        return f"{{ {body} }}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_value(item) for item in value) + "]"
    if isinstance(value, ObjectId):
        return f'ObjectId("{value.to_hex()}")'
    if isinstance(value, DateTime):
        return f'DateTime("{value}")'
    if isinstance(value, Symbol):
        return f'Symbol("{value.value}")'
    if isinstance(
        value,
        (
            Binary,
            Timestamp,
            Regex,
            JavaScriptCode,
            JavaScriptCodeWithScope,
            DbPointer,
            Int64,
            MinKey,
            MaxKey,
            Undefined,
        ),
    ):
        return str(value)
    raise TypeError(f"{type(value).__name__} is not a BSON value")