"""Reading MongoDB Extended JSON (v2) into BSON values.

Both canonical and relaxed forms are accepted, and the two may be mixed in one
input. Parsed JSON (dicts, lists, strings, numbers, booleans and None) is turned
into the values used by :class:`~bsondoc.document.Document`.
"""

from __future__ import annotations

import base64
import binascii
import json
import math
import re
from collections.abc import Mapping
from typing import Any

from .document import Document
from .oid import ObjectId, ObjectIdError
from .values import (
    Binary,
    BinarySubtype,
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

__all__ = [
    "ExtJsonError",
    "InvalidObjectIdError",
    "from_json",
    "from_json_object",
    "document_from_json",
    "loads",
]

_I32_MIN = -(1 << 31)
_I32_MAX = (1 << 31) - 1
_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1
_U32_MAX = 0xFFFF_FFFF
_U8_MAX = 0xFF

_INTEGER = re.compile(r"[+-]?[0-9]+")
_FLOAT = re.compile(
    r"[+-]?(?:inf|infinity|nan|[0-9]+\.?[0-9]*(?:[eE][+-]?[0-9]+)?|\.[0-9]+(?:[eE][+-]?[0-9]+)?)",
    re.IGNORECASE,
)
_HEX = re.compile(r"[0-9a-fA-F]*")
_UUID_HYPHENATED = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)
_UUID_SIMPLE = re.compile(r"[0-9a-fA-F]{32}")
_RFC3339 = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2})[Tt ]([0-9]{2}):([0-9]{2}):([0-9]{2})"
    r"(?:\.([0-9]+))?(?:([Zz])|([+-])([0-9]{2}):([0-9]{2}))"
)

_MILLIS_PER_DAY = 86_400_000


class ExtJsonError(ValueError):
    """The input is not valid Extended JSON."""


class InvalidObjectIdError(ExtJsonError):
    """An ObjectId in the input could not be parsed."""

    def __init__(self, error: ObjectIdError) -> None:
        self.error = error
        super().__init__(str(error))


def _describe(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return f"boolean `{'true' if value else 'false'}`"
    if isinstance(value, int):
        return f"integer `{value}`"
    if isinstance(value, float):
        return f"floating point `{value}`"
    if isinstance(value, str):
        return f'string "{value}"'
    if isinstance(value, (list, tuple)):
        return "sequence"
    if isinstance(value, Mapping):
        return "map"
    return type(value).__name__


def _invalid_type(value: Any, expected: str) -> ExtJsonError:
    return ExtJsonError(f"invalid type: {_describe(value)}, expected {expected}")


def _invalid_value(value: Any, expected: str) -> ExtJsonError:
    return ExtJsonError(f"invalid value: {_describe(value)}, expected {expected}")


def _fields(obj: Mapping[str, Any], required: tuple[str, ...], optional: tuple[str, ...] = ()) -> None:
    allowed = required + optional
    for key in obj:
        if key not in allowed:
            names = ", ".join(f"`{name}`" for name in allowed)
            raise ExtJsonError(f"unknown field `{key}`, expected one of {names}")
    for key in required:
        if key not in obj:
            raise ExtJsonError(f"missing field `{key}`")


def _string(value: Any) -> str:
    if not isinstance(value, str):
        raise _invalid_type(value, "a string")
    return value


def _object(value: Any) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise _invalid_type(value, "a map")
    return value


def _unsigned(value: Any, limit: int, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise _invalid_type(value, what)
    if not 0 <= value <= limit:
        raise _invalid_value(value, what)
    return value


def _parse_integer(text: str, low: int, high: int, expected: str) -> int:
    if _INTEGER.fullmatch(text):
        number = int(text)
        if low <= number <= high:
            return number
    raise _invalid_value(text, expected)


def _int32(body: Mapping[str, Any]) -> int:
    _fields(body, ("$numberInt",))
    text = _string(body["$numberInt"])
    return _parse_integer(text, _I32_MIN, _I32_MAX, "expected i32 as a string")


def _int64_value(body: Mapping[str, Any]) -> int:
    _fields(body, ("$numberLong",))
    text = _string(body["$numberLong"])
    return _parse_integer(text, _I64_MIN, _I64_MAX, "expected i64 as a string")


def _double(body: Mapping[str, Any]) -> float:
    _fields(body, ("$numberDouble",))
    text = _string(body["$numberDouble"])
    special = {"Infinity": math.inf, "-Infinity": -math.inf, "NaN": math.nan}
    if text in special:
        return special[text]
    if not _FLOAT.fullmatch(text):
        raise _invalid_value(text, "expected bson double as string")
    return float(text)


def _object_id(body: Mapping[str, Any]) -> ObjectId:
    _fields(body, ("$oid",))
    text = _string(body["$oid"])
    try:
        return ObjectId.parse_str(text)
    except ObjectIdError as err:
        raise InvalidObjectIdError(err) from err


def _symbol(body: Mapping[str, Any]) -> Symbol:
    _fields(body, ("$symbol",))
    return Symbol(_string(body["$symbol"]))


def _regex(body: Mapping[str, Any]) -> Regex:
    _fields(body, ("$regularExpression",))
    inner = _object(body["$regularExpression"])
    _fields(inner, ("pattern", "options"))
    return Regex(_string(inner["pattern"]), _string(inner["options"]))


def _binary(body: Mapping[str, Any]) -> Binary:
    _fields(body, ("$binary",))
    inner = _object(body["$binary"])
    _fields(inner, ("base64", "subType"))
    encoded = _string(inner["base64"])
    subtype_text = _string(inner["subType"])
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as err:
        raise _invalid_value(encoded, "base64 encoded bytes") from err
    if len(subtype_text) % 2 != 0 or not _HEX.fullmatch(subtype_text):
        raise _invalid_value(subtype_text, "hexadecimal number as a string")
    subtype = bytes.fromhex(subtype_text)
    if len(subtype) != 1:
        raise ExtJsonError(
            f"invalid value: byte array {list(subtype)}, expected one byte subtype"
        )
    return Binary(data, BinarySubtype.from_byte(subtype[0]))


def _uuid(body: Mapping[str, Any]) -> Binary:
    _fields(body, ("$uuid",))
    text = _string(body["$uuid"])
    candidate = text[len("urn:uuid:"):] if text.startswith("urn:uuid:") else text
    if _UUID_HYPHENATED.fullmatch(candidate) or _UUID_SIMPLE.fullmatch(candidate):
        return Binary(bytes.fromhex(candidate.replace("-", "")), BinarySubtype.UUID)
    raise _invalid_value(
        text, "$uuid value does not follow RFC 4122 format regarding length and hyphens"
    )


def _code(body: Mapping[str, Any]) -> JavaScriptCode | JavaScriptCodeWithScope:
    _fields(body, ("$code",), ("$scope",))
    code = _string(body["$code"])
    scope = body.get("$scope")
    if scope is None:
        return JavaScriptCode(code)
    return JavaScriptCodeWithScope(code, document_from_json(_object(scope)))


def _timestamp(body: Mapping[str, Any]) -> Timestamp:
    _fields(body, ("$timestamp",))
    inner = _object(body["$timestamp"])
    _fields(inner, ("t", "i"))
    what = "an unsigned 32-bit integer"
    return Timestamp(_unsigned(inner["t"], _U32_MAX, what), _unsigned(inner["i"], _U32_MAX, what))


def _is_leap(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def _days_in_month(year: int, month: int) -> int:
    if month == 2:
        return 29 if _is_leap(year) else 28
    return 30 if month in (4, 6, 9, 11) else 31


def _days_from_civil(year: int, month: int, day: int) -> int:
    if month <= 2:
        year -= 1
    era = year // 400
    yoe = year - era * 400
    doy = (153 * (month + (-3 if month > 2 else 9)) + 2) // 5 + day - 1
    doe = yoe * 365 + yoe // 4 - yoe // 100 + doy
    return era * 146_097 + doe - 719_468


def _rfc3339_millis(text: str) -> int:
    match = _RFC3339.fullmatch(text)
    if match is None:
        raise _invalid_value(text, "rfc3339 formatted utc datetime")
    year, month, day, hour, minute, second = (int(part) for part in match.group(1, 2, 3, 4, 5, 6))
    fraction, zulu, sign, off_hour, off_minute = match.group(7, 8, 9, 10, 11)
    valid = (
        1 <= month <= 12
        and 1 <= day <= _days_in_month(year, month)
        and hour <= 23
        and minute <= 59
        and second <= 60
    )
    offset = 0
    if not zulu:
        oh, om = int(off_hour), int(off_minute)
        valid = valid and oh <= 23 and om <= 59
        offset = (oh * 60 + om) * 60_000 * (-1 if sign == "-" else 1)
    if not valid:
        raise _invalid_value(text, "rfc3339 formatted utc datetime")
    millis = int((fraction or "").ljust(3, "0")[:3])
    return (
        _days_from_civil(year, month, day) * _MILLIS_PER_DAY
        + ((hour * 60 + minute) * 60 + second) * 1000
        + millis
        - offset
    )


def _date(body: Mapping[str, Any]) -> DateTime:
    _fields(body, ("$date",))
    inner = body["$date"]
    if isinstance(inner, Mapping):
        return DateTime.from_millis(_int64_value(inner))
    if isinstance(inner, str):
        millis = _rfc3339_millis(inner)
        if not _I64_MIN <= millis <= _I64_MAX:
            raise _invalid_value(inner, "rfc3339 formatted utc datetime")
        return DateTime.from_millis(millis)
    raise ExtJsonError("data did not match any variant of untagged enum DateTimeBody")


def _bound_key(body: Mapping[str, Any], key: str, value: Any) -> Any:
    _fields(body, (key,))
    flag = _unsigned(body[key], _U8_MAX, "u8")
    if flag != 1:
        raise _invalid_value(flag, f"value of {key} should always be 1")
    return value


def _db_pointer(body: Mapping[str, Any]) -> DbPointer:
    _fields(body, ("$dbPointer",))
    inner = _object(body["$dbPointer"])
    _fields(inner, ("$ref", "$id"))
    namespace = _string(inner["$ref"])
    return DbPointer(namespace, _object_id(_object(inner["$id"])))


def _undefined(body: Mapping[str, Any]) -> Undefined:
    _fields(body, ("$undefined",))
    flag = body["$undefined"]
    if not isinstance(flag, bool):
        raise _invalid_type(flag, "a boolean")
    if not flag:
        raise _invalid_value(False, "$undefined should always be true")
    return Undefined()


def _decimal(body: Mapping[str, Any]) -> Any:
    raise ExtJsonError("decimal128 extjson support not implemented")


_READERS = (
    ("$oid", _object_id),
    ("$symbol", _symbol),
    ("$regularExpression", _regex),
    ("$numberInt", _int32),
    ("$numberLong", lambda body: Int64(_int64_value(body))),
    ("$numberDouble", _double),
    ("$binary", _binary),
    ("$uuid", _uuid),
    ("$code", _code),
    ("$timestamp", _timestamp),
    ("$date", _date),
    ("$minKey", lambda body: _bound_key(body, "$minKey", MinKey())),
    ("$maxKey", lambda body: _bound_key(body, "$maxKey", MaxKey())),
    ("$dbPointer", _db_pointer),
    ("$numberDecimal", _decimal),
    ("$undefined", _undefined),
)


def from_json_object(obj: Mapping[str, Any]) -> Any:
    """Convert a JSON object, which may be an Extended JSON type wrapper."""
    for key, reader in _READERS:
        if key in obj:
            return reader(obj)
    return document_from_json(obj)


def document_from_json(obj: Mapping[str, Any]) -> Document:
    """Convert a JSON object into a Document, converting every value."""
    return Document((key, from_json(value)) for key, value in obj.items())


def _number(value: int) -> int | Int64 | float:
    if _I32_MIN <= value <= _I32_MAX:
        return value
    if _I64_MIN <= value <= _I64_MAX:
        return Int64(value)
    try:
        return float(value)
    except OverflowError as err:
        raise _invalid_value(value, "a number that could fit in i32, i64, or f64") from err


def from_json(value: Any) -> Any:
    """Convert a parsed JSON value into a BSON value."""
    if value is None or isinstance(value, (bool, str, float)):
        return value
    if isinstance(value, int):
        return _number(value)
    if isinstance(value, (list, tuple)):
        return [from_json(item) for item in value]
    if isinstance(value, Mapping):
        return from_json_object(value)
    raise ExtJsonError(f"{type(value).__name__} is not a JSON value")


def _reject_constant(name: str) -> Any:
    raise ExtJsonError(f"invalid JSON number `{name}`")


def loads(text: str | bytes) -> Any:
    """Parse Extended JSON text into a BSON value."""
    try:
        parsed = json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as err:
        raise ExtJsonError(str(err)) from err
    return from_json(parsed)