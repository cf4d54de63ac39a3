import base64
from datetime import datetime, timedelta, timezone

import pytest

from bsondoc.oid import ObjectId
from bsondoc.values import (
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
    format_value,
)

UTC = timezone.utc
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def test_subtype_from_byte_endpoints():
    assert BinarySubtype.from_byte(0x00) == BinarySubtype.GENERIC
    assert BinarySubtype.from_byte(0x06) == BinarySubtype.ENCRYPTED
    assert BinarySubtype.from_byte(0x07) == BinarySubtype.COLUMN
    reserved = BinarySubtype.from_byte(0x7F)
    assert reserved.is_reserved and not reserved.is_user_defined
    assert int(reserved) == 0x7F
    low_user = BinarySubtype.from_byte(0x80)
    assert low_user.is_user_defined and not low_user.is_reserved
    assert int(low_user) == 0x80
    high_user = BinarySubtype.from_byte(0xFF)
    assert high_user.is_user_defined
    assert int(high_user) == 0xFF


def test_known_subtypes_are_neither_reserved_nor_user_defined():
    for byte in range(8):
        subtype = BinarySubtype.from_byte(byte)
        assert not subtype.is_reserved
        assert not subtype.is_user_defined


@pytest.mark.parametrize("byte", [-1, 256])
def test_subtype_out_of_range(byte):
    with pytest.raises(ValueError):
        BinarySubtype.from_byte(byte)


def test_display_timestamp():
    ts = Timestamp(100, 200)
    assert str(ts) == "Timestamp(100, 200)"
    assert format_value(ts) == "Timestamp(100, 200)"


def test_display_regex():
    regex = Regex("pattern", "options")
    assert str(regex) == "/pattern/options"
    assert format_value(regex) == "/pattern/options"


def test_display_code_with_scope():
    code = JavaScriptCodeWithScope("code", {"x": 2})
    assert str(code) == "code"
    assert format_value(code) == "code"


def test_display_binary():
    encoded = "aGVsbG8gd29ybGQ="
    binary = Binary(base64.b64decode(encoded), BinarySubtype.GENERIC)
    assert str(binary) == f"Binary(0x0, {encoded})"
    assert format_value(binary) == f"Binary(0x0, {encoded})"


def test_binary_equality_and_subtype_coercion():
    assert Binary(b"\x01\x02\x03") == Binary(bytes([1, 2, 3]), BinarySubtype.GENERIC)
    assert Binary(b"x", 5).subtype == BinarySubtype.MD5
    assert Binary(b"x", BinarySubtype.MD5) != Binary(b"x", BinarySubtype.GENERIC)


def test_timestamp_ordering():
    ts1 = Timestamp(0, 1)
    ts2 = Timestamp(0, 2)
    ts3 = Timestamp(1, 0)
    assert ts1 < ts2
    assert ts1 < ts3
    assert ts2 < ts3


def test_timestamp_rejects_out_of_range():
    with pytest.raises(ValueError):
        Timestamp(1 << 32, 0)
    with pytest.raises(ValueError):
        Timestamp(0, -1)


def test_datetime_from_millis_round_trip():
    dt = DateTime.from_millis(1234)
    assert dt.timestamp_millis() == 1234
    assert dt.to_datetime() == EPOCH + timedelta(milliseconds=1234)
    assert DateTime.from_datetime(dt.to_datetime()) == dt


def test_datetime_epoch_is_zero():
    assert DateTime.from_datetime(EPOCH).timestamp_millis() == 0


@pytest.mark.parametrize("micro", [123000, 123456, 123999])
def test_datetime_truncates_to_milliseconds(micro):
    value = datetime(2014, 11, 28, 12, 0, 9, micro, tzinfo=UTC)
    dt = DateTime.from_datetime(value)
    back = dt.to_datetime()
    assert back.microsecond == 123000
    assert back.microsecond % 1000 == 0


def test_datetime_without_subsecond_millis():
    value = datetime(2014, 11, 28, 12, 0, 9, tzinfo=UTC)
    assert DateTime.from_datetime(value).to_datetime().microsecond == 0


def test_datetime_before_epoch_floors():
    value = EPOCH - timedelta(microseconds=1500)
    assert DateTime.from_datetime(value).timestamp_millis() == -2


def test_datetime_now_has_millisecond_precision():
    before = datetime.now(UTC) - timedelta(seconds=1)
    now = DateTime.now().to_datetime()
    assert now.microsecond % 1000 == 0
    assert now >= before


def test_datetime_limits():
    assert DateTime.MAX.timestamp_millis() == (1 << 63) - 1
    assert DateTime.MIN.timestamp_millis() == -(1 << 63)
    assert DateTime.MAX.to_datetime() == datetime.max.replace(tzinfo=UTC)
    assert DateTime.MIN.to_datetime() == datetime.min.replace(tzinfo=UTC)
    with pytest.raises(ValueError):
        DateTime.from_millis(1 << 63)


def test_datetime_display():
    value = datetime(2014, 11, 28, 12, 0, 9, 123456, tzinfo=UTC)
    dt = DateTime.from_datetime(value)
    assert str(dt) == "2014-11-28 12:00:09.123 UTC"
    assert format_value(dt) == 'DateTime("2014-11-28 12:00:09.123 UTC")'


def test_int64_is_distinct_from_int():
    assert Int64(1) != 1
    assert int(Int64(-96)) == -96
    assert format_value(Int64(-55)) == "-55"
    with pytest.raises(ValueError):
        Int64(1 << 63)


def test_nested_document_display():
    value = {"a": "foo", "b": {"ok": "then"}}
    assert format_value(value) == '{ "a": "foo", "b": { "ok": "then" } }'
    assert format_value({}) == "{}"


def test_standard_format():
    oid = ObjectId(b"thisismyname")
    value = {
        "float": 2.4,
        "string": "hello",
        "array": ["testing", 1, True, [1, 2]],
        "doc": {"fish": "in", "a": "barrel", "!": 1},
        "bool": True,
        "null": None,
        "regexp": Regex("s[ao]d", "i"),
        "with_wrapped_parens": -20,
        "code": JavaScriptCode("function(x) { return x._id; }"),
        "i32": 12,
        "timestamp": Timestamp(0, 229_999_444),
        "binary": Binary(b"thingies", BinarySubtype.MD5),
        "encrypted": Binary(b"secret", BinarySubtype.ENCRYPTED),
        "_id": oid,
    }
    expected = (
        '{ "float": 2.4, "string": "hello", "array": ["testing", 1, true, [1, 2]], '
        '"doc": { "fish": "in", "a": "barrel", "!": 1 }, "bool": true, "null": null, '
        '"regexp": /s[ao]d/i, "with_wrapped_parens": -20, '
        '"code": function(x) { return x._id; }, "i32": 12, '
        '"timestamp": Timestamp(0, 229999444), '
        f'"binary": Binary(0x5, {base64.b64encode(b"thingies").decode()}), '
        f'"encrypted": Binary(0x6, {base64.b64encode(b"secret").decode()}), '
        f'"_id": ObjectId("{b"thisismyname".hex()}") }}'
    )
    assert format_value(value) == expected


def test_special_values_display():
    assert format_value(MinKey()) == "MinKey"
    assert format_value(MaxKey()) == "MaxKey"
    assert format_value(Undefined()) == "undefined"
    assert format_value(Symbol("sym")) == 'Symbol("sym")'
    oid = ObjectId.parse_str("507f1f77bcf86cd799439011")
    assert format_value(DbPointer("db.coll", oid)) == (
        "DbPointer(db.coll, 507f1f77bcf86cd799439011)"
    )


def test_singleton_like_values_compare_equal():
    assert MinKey() == MinKey()
    assert MaxKey() == MaxKey()
    assert Undefined() == Undefined()
    assert MinKey() != MaxKey()


def test_format_value_rejects_unknown_types():
    with pytest.raises(TypeError):
        format_value(object())