"""ObjectId: the 12-byte identifier used by BSON documents."""

from __future__ import annotations

import functools
import secrets
import threading
import time
from datetime import datetime, timedelta, timezone

__all__ = [
    "ObjectIdError",
    "InvalidHexStringCharacterError",
    "InvalidHexStringLengthError",
    "ObjectId",
]

TIMESTAMP_SIZE = 4
PROCESS_ID_SIZE = 5
COUNTER_SIZE = 3

TIMESTAMP_OFFSET = 0
PROCESS_ID_OFFSET = TIMESTAMP_OFFSET + TIMESTAMP_SIZE
COUNTER_OFFSET = PROCESS_ID_OFFSET + PROCESS_ID_SIZE

OBJECT_ID_SIZE = TIMESTAMP_SIZE + PROCESS_ID_SIZE + COUNTER_SIZE

MAX_U24 = 0xFF_FFFF
_COUNTER_WRAP = 1 << 64

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")


class ObjectIdError(ValueError):
    """Raised when an ObjectId cannot be built from the given input."""


class InvalidHexStringCharacterError(ObjectIdError):
    """A character outside 0-9, a-f, A-F was found in a hex string."""

    def __init__(self, c: str, index: int, hex: str) -> None:
        self.c = c
        self.index = index
        self.hex = hex
        super().__init__(
            f"invalid character '{c}' was found at index {index} in the provided "
            f'hex string: "{hex}"'
        )


class InvalidHexStringLengthError(ObjectIdError):
    """A hex string did not describe exactly 12 bytes."""

    def __init__(self, length: int, hex: str) -> None:
        self.length = length
        self.hex = hex
        super().__init__(
            "provided hex string representation must be exactly 12 bytes, "
            f'instead got: "{hex}", length {length}'
        )


class _Counter:
    """Process-wide incrementing counter, wrapping like a 64-bit unsigned integer."""

    def __init__(self, start: int) -> None:
        self._value = start
        self._lock = threading.Lock()

    def set(self, value: int) -> None:
        with self._lock:
            self._value = value % _COUNTER_WRAP

    def fetch_add(self) -> int:
        with self._lock:
            current = self._value
            self._value = (current + 1) % _COUNTER_WRAP
            return current


_COUNTER = _Counter(secrets.randbelow(MAX_U24 + 1))
_PROCESS_ID = secrets.token_bytes(PROCESS_ID_SIZE)


def _gen_timestamp() -> bytes:
    return int(time.time()).to_bytes(TIMESTAMP_SIZE, "big")


def _gen_count() -> bytes:
    value = _COUNTER.fetch_add() % (MAX_U24 + 1)
    return value.to_bytes(COUNTER_SIZE, "big")


@functools.total_ordering
class ObjectId:
    """An immutable wrapper around the raw 12-byte ObjectId representation."""

    __slots__ = ("_id",)

    def __init__(self, data: bytes | bytearray | memoryview | None = None) -> None:
        if data is None:
            raw = _gen_timestamp() + _PROCESS_ID + _gen_count()
        else:
            raw = bytes(data)
            if len(raw) != OBJECT_ID_SIZE:
                raise ValueError(
                    f"an ObjectId needs exactly {OBJECT_ID_SIZE} bytes, got {len(raw)}"
                )
        self._id = raw

    @classmethod
    def generate(cls) -> ObjectId:
        """Create a fresh ObjectId from the clock, process id and counter."""
        return cls()

    @classmethod
    def parse_str(cls, s: str) -> ObjectId:
        """Build an ObjectId from a 24-character hexadecimal string."""
        encoded = s.encode("utf-8")
        if len(encoded) % 2 != 0:
            raise InvalidHexStringLengthError(len(encoded), s)
        for index, byte in enumerate(encoded):
            if byte not in _HEX_DIGITS:
                raise InvalidHexStringCharacterError(chr(byte), index, s)
        if len(encoded) != OBJECT_ID_SIZE * 2:
            raise InvalidHexStringLengthError(len(encoded), s)
        return cls(bytes.fromhex(s))

    def timestamp(self) -> datetime:
        """Return the creation time stored in the first four bytes, in UTC."""
        seconds = int.from_bytes(self._id[:TIMESTAMP_SIZE], "big")
        return _EPOCH + timedelta(seconds=seconds)

    def to_hex(self) -> str:
        return self._id.hex()

    def __bytes__(self) -> bytes:
        return self._id

    def __str__(self) -> str:
        return self.to_hex()

    def __repr__(self) -> str:
        return f'ObjectId("{self.to_hex()}")'

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectId):
            return NotImplemented
        return self._id == other._id

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ObjectId):
            return NotImplemented
        return self._id < other._id

    def __hash__(self) -> int:
        return hash(self._id)