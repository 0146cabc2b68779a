from __future__ import annotations

import math

import pytest

from remblob.core.errors import TypeConversionError
from remblob.core.grammar import StorageType, TypeRank
from remblob.core.schema import ColumnDescriptor, Date, Timestamp
from remblob.core.values import (
    convert_cell,
    format_cell,
    format_date,
    format_float,
    format_timestamp,
    parse_date,
    parse_float,
    parse_provisional,
    parse_timestamp,
    rank_of_text,
    zero_value,
)


def test_provisional_typing_order() -> None:
    assert parse_provisional("") is None
    assert parse_provisional("42") == 42
    assert parse_provisional("-7") == -7
    assert parse_provisional("3.14") == 3.14
    assert parse_provisional("true") is True
    assert parse_provisional("F") is False
    assert parse_provisional("hello") == "hello"
    # "1" parses as an integer before it is tried as a boolean literal
    assert parse_provisional("1") == 1
    assert not isinstance(parse_provisional("1"), bool)


def test_integer_overflow_falls_through_to_float() -> None:
    value = parse_provisional("9223372036854775808")
    assert isinstance(value, float)


def test_float_parser_rejects_python_only_spellings() -> None:
    assert parse_float("1_000") is None
    assert parse_float(" 2") is None
    assert parse_float("") is None
    assert parse_float("1e3") == 1000.0
    assert math.isnan(parse_float("NaN"))


def test_rank_of_text() -> None:
    assert rank_of_text("") is TypeRank.EMPTY
    assert rank_of_text("true") is TypeRank.BOOLEAN
    assert rank_of_text("42") is TypeRank.INTEGER
    assert rank_of_text("2.2") is TypeRank.FLOAT
    assert rank_of_text("x") is TypeRank.STRING


@pytest.mark.parametrize(
    "value,expected",
    [
        (2.0, "2"),
        (95.5, "95.5"),
        (0.1, "0.1"),
        (100000.0, "100000"),
        (1234567.0, "1.234567e+06"),
        (0.0001, "0.0001"),
        (0.00001, "1e-05"),
        (-2.5, "-2.5"),
        (0.0, "0"),
        (-0.0, "-0"),
        (float("nan"), "NaN"),
        (float("inf"), "+Inf"),
        (float("-inf"), "-Inf"),
    ],
)
def test_format_float_go_style(value: float, expected: str) -> None:
    assert format_float(value) == expected


def test_format_float_single_precision_uses_float32_digits() -> None:
    # 0.1 stored as float32 widens to 0.10000000149011612
    widened = 0.10000000149011612
    assert format_float(widened, single=True) == "0.1"
    assert format_float(widened) == "0.10000000149011612"


def test_date_and_timestamp_display() -> None:
    assert format_date(20313) == "2025-08-13"
    assert format_date(0) == "1970-01-01"
    assert format_date(-1) == "1969-12-31"
    assert format_timestamp(1755126458027512000) == "2025-08-13 23:07:38.027512000"
    assert format_timestamp(1755126458027512, "us") == "2025-08-13 23:07:38.027512000"
    assert format_timestamp(-1) == "1969-12-31 23:59:59.999999999"


def test_date_and_timestamp_parse_back_exactly() -> None:
    assert parse_date("2025-08-13") == 20313
    assert parse_timestamp("2025-08-13 23:07:38.027512000") == 1755126458027512000
    assert parse_timestamp("2025-08-13 23:07:38.027512000", "us") == 1755126458027512
    assert parse_timestamp("1969-12-31 23:59:59.999999999") == -1


@pytest.mark.parametrize(
    "text",
    ["2025-8-13", "2025-02-30", "2025-08-13T00:00:00", " 2025-08-13", "13/08/2025"],
)
def test_parse_date_is_strict(text: str) -> None:
    assert parse_date(text) is None


def test_parse_timestamp_is_strict() -> None:
    assert parse_timestamp("2025-08-13 23:07:38") is None
    assert parse_timestamp("2025-08-13 23:07:38.027512") is None
    assert parse_timestamp("2025-08-13T23:07:38.027512000") is None
    # a millisecond column cannot hold sub-millisecond digits
    assert parse_timestamp("2025-08-13 23:07:38.027512000", "ms") is None


def test_format_cell_uses_column_semantics() -> None:
    day = ColumnDescriptor("day", StorageType.INT64, Date(), physical="int32")
    ts = ColumnDescriptor("ts", StorageType.INT64, Timestamp("ns"))
    flag = ColumnDescriptor("flag", StorageType.BOOLEAN)
    assert format_cell(20313, day) == "2025-08-13"
    assert format_cell(1755126458027512000, ts) == "2025-08-13 23:07:38.027512000"
    assert format_cell(True, flag) == "true"
    assert format_cell(False, flag) == "false"
    assert format_cell(None, flag) == ""
    assert format_cell(20313) == "20313"
    assert format_cell("a,b") == "a,b"


def test_convert_cell_targets_declared_type() -> None:
    age = ColumnDescriptor("age", StorageType.INT64)
    score = ColumnDescriptor("score", StorageType.FLOAT64)
    ok = ColumnDescriptor("ok", StorageType.BOOLEAN)
    name = ColumnDescriptor("name", StorageType.BYTE_STRING)
    assert convert_cell("25", age, 1) == 25
    assert convert_cell("25", score, 1) == 25.0
    assert convert_cell("True", ok, 1) is True
    assert convert_cell("42", name, 1) == "42"
    assert convert_cell("", age, 1) is None


def test_convert_cell_error_carries_location() -> None:
    age = ColumnDescriptor("age", StorageType.INT64)
    with pytest.raises(TypeConversionError) as ei:
        convert_cell("thirty", age, 2)
    err = ei.value
    assert (err.column, err.row, err.value) == ("age", 2, "thirty")
    assert "field 'age' at row 2" in str(err)


def test_convert_cell_respects_physical_range() -> None:
    small = ColumnDescriptor("n", StorageType.INT64, physical="int8")
    assert convert_cell("127", small, 1) == 127
    with pytest.raises(TypeConversionError):
        convert_cell("128", small, 1)
    unsigned = ColumnDescriptor("u", StorageType.INT64, physical="uint8")
    with pytest.raises(TypeConversionError):
        convert_cell("-1", unsigned, 1)


def test_boolean_in_numeric_column_only_when_widened() -> None:
    n = ColumnDescriptor("n", StorageType.INT64)
    with pytest.raises(TypeConversionError):
        convert_cell("true", n, 1)
    assert convert_cell("true", n, 1, widened=True) == 1
    x = ColumnDescriptor("x", StorageType.FLOAT64)
    assert convert_cell("false", x, 1, widened=True) == 0.0


def test_non_nullable_columns_get_zero_values() -> None:
    n = ColumnDescriptor("n", StorageType.INT64, nullable=False)
    s = ColumnDescriptor("s", StorageType.BYTE_STRING, nullable=False)
    assert convert_cell("", n, 1) == 0
    assert convert_cell("", s, 1) == ""
    assert zero_value(ColumnDescriptor("b", StorageType.BOOLEAN)) is False
