from __future__ import annotations

import pytest

from remblob.core.errors import ArityMismatch, EmptyInputError
from remblob.core.grammar import StorageType
from remblob.core.schema import ColumnDescriptor, Date, Schema
from remblob.io.text import read_text, write_text


def _schema() -> Schema:
    return Schema(
        (
            ColumnDescriptor("name", StorageType.BYTE_STRING),
            ColumnDescriptor("day", StorageType.INT64, Date()),
            ColumnDescriptor("ok", StorageType.BOOLEAN),
        )
    )


def test_write_text_formats_and_quotes() -> None:
    rows = [("Smith, Jo", 20313, True), ('say "hi"', None, None)]
    text = write_text(_schema(), rows)
    assert text == (
        "name,day,ok\n"
        '"Smith, Jo",2025-08-13,true\n'
        '"say ""hi""",,\n'
    )


def test_write_text_display_order() -> None:
    text = write_text(_schema(), [("a", 0, False)], order=[2, 0, 1])
    assert text.splitlines() == ["ok,name,day", "false,a,1970-01-01"]


def test_write_text_header_only_for_no_rows() -> None:
    assert write_text(_schema(), []) == "name,day,ok\n"


def test_read_text_keeps_row_numbers_and_drops_bad_arity() -> None:
    parsed = read_text("a,b\n1,2\n3\n4,5,6\n7,8\n")
    assert parsed.header == ("a", "b")
    assert parsed.rows == (("1", "2"), ("7", "8"))
    assert parsed.row_numbers == (1, 4)
    assert parsed.skipped == (ArityMismatch(2, 2, 1), ArityMismatch(3, 2, 3))


def test_read_text_handles_quoting_newlines_and_bom() -> None:
    parsed = read_text('\ufeffname,note\r\n"x","line one\nline two"\r\n')
    assert parsed.header == ("name", "note")
    assert parsed.rows == (("x", "line one\nline two"),)


def test_read_text_skips_blank_lines_without_counting_them() -> None:
    parsed = read_text("a\n\n1\n\n2\n")
    assert parsed.rows == (("1",), ("2",))
    assert parsed.row_numbers == (1, 2)


def test_read_text_accepts_cells_beyond_the_csv_default_limit() -> None:
    big = "y" * 150_000
    parsed = read_text(f"a,b\n{big},1\n")
    assert parsed.rows == ((big, "1"),)


def test_single_empty_cell_survives_a_round_trip() -> None:
    schema = Schema((ColumnDescriptor("only", StorageType.BYTE_STRING),))
    parsed = read_text(write_text(schema, [("",), ("x",)]))
    assert parsed.rows == (("",), ("x",))


@pytest.mark.parametrize("text", ["", "\n\n"])
def test_read_text_without_header(text: str) -> None:
    with pytest.raises(EmptyInputError):
        read_text(text)
