# bsondoc

A pure-Python toolkit for BSON data: insertion-ordered documents with typed
accessors, the BSON value types, ObjectIds, and a reader for MongoDB Extended
JSON (canonical and relaxed forms, mixed freely). It has no dependencies
beyond the standard library.

## Installation

```
pip install bsondoc
```

To run the test suite:

```
pip install "bsondoc[test]"
pytest
```

## ObjectIds

```python
from bsondoc.oid import ObjectId

oid = ObjectId.parse_str("53e37d08776f724e42000000")
str(oid)          # '53e37d08776f724e42000000'
oid.to_hex()      # the same hex string
repr(oid)         # 'ObjectId("53e37d08776f724e42000000")'
bytes(oid)        # the raw 12 bytes
oid.timestamp()   # aware UTC datetime from the first four bytes

fresh = ObjectId.generate()     # same as ObjectId()
from_raw = ObjectId(b"abcdefghijkl")
```

A generated ObjectId holds the current time in seconds, five random bytes
chosen once per process, and a three-byte counter that starts at a random
value and increments with each new id. ObjectIds are immutable, hashable and
ordered by their bytes.

`parse_str` raises `InvalidHexStringLengthError` for a string that does not
describe exactly 12 bytes and `InvalidHexStringCharacterError` for a non-hex
character; both derive from `ObjectIdError`, itself a `ValueError`. Passing
anything other than 12 bytes to `ObjectId(...)` raises `ValueError`.

## Values

`bsondoc.values` holds the BSON types that have no plain Python equivalent:
`Binary`, `BinarySubtype`, `Timestamp`, `Regex`, `JavaScriptCode`,
`JavaScriptCodeWithScope`, `Symbol`, `DbPointer`, `DateTime`, `Int64`,
`MinKey`, `MaxKey` and `Undefined`. Plain Python values stand for the rest:
`None` is null, `bool`, `int` (32-bit integer), `float`, `str`, `list` and
mappings.

```python
from bsondoc.values import Binary, BinarySubtype, DateTime, Regex, Timestamp

str(Timestamp(100, 200))          # 'Timestamp(100, 200)'
str(Regex("pattern", "options"))  # '/pattern/options'
str(Binary(b"hello world"))       # 'Binary(0x0, aGVsbG8gd29ybGQ=)'

BinarySubtype.from_byte(0x06) == BinarySubtype.ENCRYPTED   # True
BinarySubtype.from_byte(0x80).is_user_defined              # True

DateTime.from_millis(1234).timestamp_millis()   # 1234
DateTime.now().to_datetime()                    # aware UTC datetime
```

`Timestamp` fields must fit in unsigned 32 bits; `DateTime` and `Int64` must
fit in signed 64 bits. `DateTime.from_datetime` truncates to milliseconds and
treats a naive datetime as UTC; `DateTime.MIN` and `DateTime.MAX` bound the
range, and `to_datetime` clamps to what `datetime` can hold. `format_value`
renders any value the way a document prints it.

## Documents

```python
from bsondoc.builder import doc

d = doc({
    "string": "a value",
    "i32": 1,
    "doc": {"key": 1},
    "array": [10, 20, 30],
})

d.get_str("string")      # 'a value'
d.get_document("doc")    # Document with key 'key'
d.get_i64("i32")         # raises UnexpectedTypeError
d.get_str("missing")     # raises NotPresentError
print(d)                 # { "string": "a value", "i32": 1, "doc": { "key": 1 }, "array": [10, 20, 30] }
```

`bsondoc.document.Document` is a mutable mapping with string keys that keeps
insertion order; assigning to an existing key replaces its value in place and
removing a key keeps the order of the rest. `setdefault_with(key, factory)`
inserts `factory()` only when the key is missing.

Typed accessors: `get_f64`, `get_str`, `get_array`, `get_document`,
`get_bool`, `get_i32`, `get_i64`, `get_timestamp`, `get_binary_generic`,
`get_object_id`, `get_datetime`, and `is_null`. A missing key raises
`NotPresentError` (a `LookupError`); a value of another type raises
`UnexpectedTypeError` (also a `TypeError`). Both derive from
`ValueAccessError`.

`bsondoc.builder` offers `bson(value)`, which converts Python literals all the
way down (mappings to `Document`, tuples and lists to lists, ints outside the
32-bit range to `Int64`, datetimes to `DateTime`; ints beyond 64 bits raise
`OverflowError`), and `doc(...)`, which builds a `Document` from a mapping or
key-value pairs plus keyword arguments.

## Extended JSON

```python
from bsondoc import extjson

value = extjson.loads(
    '{"x": 5, "y": {"$numberInt": "5"}, "d": {"$date": {"$numberLong": "1590972160292"}}}'
)
```

`from_json` takes an already-decoded JSON value, `from_json_object` a decoded
JSON object that may be a type wrapper such as `{"$oid": ...}`, and
`document_from_json` always returns a `Document`. JSON integers become `int`
or `Int64` by range, and larger ones `float`. Malformed input raises
`ExtJsonError`; an invalid `$oid` raises `InvalidObjectIdError`.

## What it does not do

- It does not encode documents to BSON bytes or decode them from bytes.
- It reads Extended JSON but does not write it.
- `$numberDecimal` values are rejected with `ExtJsonError`; there is no
  Decimal128 type.