"""An insertion-ordered BSON document with typed accessors."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, MutableMapping
from typing import Any

from .oid import ObjectId
from .values import Binary, BinarySubtype, DateTime, Int64, Timestamp, format_value

__all__ = [
    "ValueAccessError",
    "NotPresentError",
    "UnexpectedTypeError",
    "Document",
]


class ValueAccessError(LookupError):
    """A typed accessor could not return a value for a key."""

    message = "value access failed"

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class NotPresentError(ValueAccessError):
    """The requested key is not in the document."""

    message = "field is not present"


class UnexpectedTypeError(ValueAccessError, TypeError):
    """The key is present but its value has a different BSON type."""

    message = "field does not have the expected type"


_MISSING = object()


class Document(MutableMapping[str, Any]):
    """A mapping of string keys to BSON values that keeps insertion order.

    Assigning to an existing key replaces its value in place; deleting a key
    keeps the order of the remaining entries.
    """

    __slots__ = ("_entries",)

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self._entries: dict[str, Any] = {}
        self.update(*args, **kwargs)

    def __getitem__(self, key: str) -> Any:
        return self._entries[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if not isinstance(key, str):
            raise TypeError(f"document keys must be str, got {type(key).__name__}")
        self._entries[key] = value

    def __delitem__(self, key: str) -> None:
        del self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __str__(self) -> str:
        return format_value(self)

    def __repr__(self) -> str:
        return f"Document({self._entries!r})"

    def setdefault_with(self, key: str, factory: Callable[[], Any]) -> Any:
        """Return the value for key, inserting factory() first if it is absent."""
        if key not in self._entries:
            self[key] = factory()
        return self._entries[key]

    def _lookup(self, key: str) -> Any:
        value = self._entries.get(key, _MISSING)
        if value is _MISSING:
            raise NotPresentError(key)
        return value

    def _typed(self, key: str, accepts: Callable[[Any], bool]) -> Any:
        value = self._lookup(key)
        if not accepts(value):
            raise UnexpectedTypeError(key)
        return value

    def get_f64(self, key: str) -> float:
        return self._typed(key, lambda v: isinstance(v, float))

    def get_str(self, key: str) -> str:
        return self._typed(key, lambda v: isinstance(v, str))

    def get_array(self, key: str) -> list[Any]:
        return self._typed(key, lambda v: isinstance(v, list))

    def get_document(self, key: str) -> Mapping[str, Any]:
        return self._typed(key, lambda v: isinstance(v, Mapping))

    def get_bool(self, key: str) -> bool:
        return self._typed(key, lambda v: isinstance(v, bool))

    def is_null(self, key: str) -> bool:
        """True if key is present and holds the null value."""
        return key in self._entries and self._entries[key] is None

    def get_i32(self, key: str) -> int:
        return self._typed(key, lambda v: isinstance(v, int) and not isinstance(v, bool))

    def get_i64(self, key: str) -> int:
        return self._typed(key, lambda v: isinstance(v, Int64)).value

    def get_timestamp(self, key: str) -> Timestamp:
        return self._typed(key, lambda v: isinstance(v, Timestamp))

    def get_binary_generic(self, key: str) -> bytes:
        binary = self._typed(
            key,
            lambda v: isinstance(v, Binary) and v.subtype == BinarySubtype.GENERIC,
        )
        return binary.data

    def get_object_id(self, key: str) -> ObjectId:
        return self._typed(key, lambda v: isinstance(v, ObjectId))

    def get_datetime(self, key: str) -> DateTime:
        return self._typed(key, lambda v: isinstance(v, DateTime))