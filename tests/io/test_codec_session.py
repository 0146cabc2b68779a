from __future__ import annotations

import io
import json
import logging

import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from remblob.core.errors import (
    ArityMismatch,
    EmptyInputError,
    MalformedInputError,
    SessionStateError,
    TypeConversionError,
)
from remblob.core.grammar import StorageType
from remblob.core.schema import ColumnDescriptor, Schema
from remblob.io.codec import ParquetCodec, SessionState, match_columns
from remblob.io.config import CodecSettings


class Stream(io.BytesIO):
    """BytesIO that records close() instead of discarding its buffer."""

    def __init__(self, data: bytes = b"") -> None:
        super().__init__(data)
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1


def _parquet(table: pa.Table) -> bytes:
    buf = io.BytesIO()
    pq.write_table(table, buf)
    return buf.getvalue()


def _copy_in(codec: ParquetCodec, data: bytes) -> str:
    src, dst = Stream(data), Stream()
    codec.copy_in(dst, src)
    assert src.close_calls == 1
    assert dst.close_calls == 0
    return dst.getvalue().decode("utf-8")


def _copy_out(codec: ParquetCodec, text: str) -> bytes:
    src, dst = Stream(text.encode("utf-8")), Stream()
    codec.copy_out(dst, src)
    assert src.close_calls == 1
    assert dst.close_calls == 1
    return dst.getvalue()


def _people() -> pa.Table:
    return pa.table(
        {
            "name": ["Alice", "Bob", "Charlie"],
            "age": [25, 30, 35],
            "score": [95.5, 87.2, 92.1],
            "active": [True, False, True],
        }
    )


def test_round_trip_identity() -> None:
    source = _people()
    codec = ParquetCodec()
    text = _copy_in(codec, _parquet(source))
    assert text.splitlines() == [
        "name,age,score,active",
        "Alice,25,95.5,true",
        "Bob,30,87.2,false",
        "Charlie,35,92.1,true",
    ]
    assert codec.state is SessionState.SCHEMA_CAPTURED

    out = pq.read_table(io.BytesIO(_copy_out(codec, text)))
    assert out.column_names == source.column_names
    assert out.schema.types == source.schema.types
    assert out.to_pylist() == source.to_pylist()
    assert codec.state is SessionState.DONE


def test_date_and_timestamp_round_trip() -> None:
    source = pa.table(
        {
            "day": pa.array([20313], pa.int32()).cast(pa.date32()),
            "ts": pa.array([1755126458027512000], pa.int64()).cast(pa.timestamp("ns")),
        }
    )
    codec = ParquetCodec()
    text = _copy_in(codec, _parquet(source))
    assert text == "day,ts\n2025-08-13,2025-08-13 23:07:38.027512000\n"

    out = pq.read_table(io.BytesIO(_copy_out(codec, text)))
    assert out.column("day").cast(pa.int32()).to_pylist() == [20313]
    assert out.column("ts").cast(pa.int64()).to_pylist() == [1755126458027512000]


def test_metadata_passthrough_is_byte_exact() -> None:
    pandas_meta = json.dumps({"index_columns": ["name"], "columns": [], "pandas_version": "2.2.0"})
    source = _people().replace_schema_metadata({"pandas": pandas_meta, "note": "ünïcode"})
    data = _parquet(source)
    original = pq.ParquetFile(io.BytesIO(data)).metadata.metadata

    codec = ParquetCodec()
    text = _copy_in(codec, data)
    edited = text.replace("Bob,30", "Bob,31")
    rewritten = pq.ParquetFile(io.BytesIO(_copy_out(codec, edited))).metadata.metadata

    assert b"ARROW:schema" in original
    assert rewritten == original
    assert list(rewritten) == list(original)


def test_error_locality() -> None:
    schema = Schema(
        (
            ColumnDescriptor("name", StorageType.BYTE_STRING),
            ColumnDescriptor("age", StorageType.INT64),
        )
    )
    codec = ParquetCodec.from_captured(schema)
    src, dst = Stream(b"name,age\nAlice,25\nBob,thirty"), Stream()
    with pytest.raises(TypeConversionError) as ei:
        codec.copy_out(dst, src)
    err = ei.value
    assert (err.column, err.row, err.value) == ("age", 2, "thirty")
    # nothing written, destination left for the caller, session retryable
    assert dst.getvalue() == b""
    assert dst.close_calls == 0
    assert src.close_calls == 1
    assert codec.state is SessionState.SCHEMA_CAPTURED

    _copy_out(codec, "name,age\nAlice,25\nBob,30\n")
    assert codec.state is SessionState.DONE


def test_arity_tolerance() -> None:
    codec = ParquetCodec()
    out = _copy_out(codec, "a,b\n1,x\n2\n3,y\n")
    table = pq.read_table(io.BytesIO(out))
    assert table.num_rows == 2
    assert table.column("a").to_pylist() == [1, 3]
    assert codec.skipped == (ArityMismatch(2, 2, 1),)


def test_empty_file_handling() -> None:
    source = pa.table({"a": pa.array([], pa.int64()), "b": pa.array([], pa.string())})
    codec = ParquetCodec()
    text = _copy_in(codec, _parquet(source))
    assert text == "a,b\n"

    out = pq.read_table(io.BytesIO(_copy_out(codec, text)))
    assert out.num_rows == 0
    assert out.schema.types == source.schema.types
    assert out.column_names == ["a", "b"]


def test_header_only_text_without_schema_is_empty_input() -> None:
    src, dst = Stream(b"a,b\n"), Stream()
    with pytest.raises(EmptyInputError):
        ParquetCodec().copy_out(dst, src)
    with pytest.raises(EmptyInputError):
        ParquetCodec().copy_out(Stream(), Stream(b""))


def test_inferred_schema_with_widening() -> None:
    codec = ParquetCodec()
    out = _copy_out(codec, "n,x,s,e\ntrue,1,true,\n2,2.5,1,\n3,3,nope,\n")
    table = pq.read_table(io.BytesIO(out))
    assert table.schema.field("n").type == pa.int64()
    assert table.schema.field("x").type == pa.float64()
    assert table.schema.field("s").type == pa.string()
    assert table.schema.field("e").type == pa.string()
    assert table.column("n").to_pylist() == [1, 2, 3]
    assert table.column("x").to_pylist() == [1.0, 2.5, 3.0]
    assert table.column("s").to_pylist() == ["true", "1", "nope"]
    assert table.column("e").to_pylist() == [None, None, None]
    assert codec.schema is not None and codec.schema.inferred


def test_columns_are_matched_by_name_not_position(caplog: pytest.LogCaptureFixture) -> None:
    codec = ParquetCodec()
    _copy_in(codec, _parquet(_people()))
    with caplog.at_level(logging.WARNING, logger="remblob.io.codec"):
        out = _copy_out(codec, "active,extra,name,age\nfalse,zzz,Dora,40\n")
    table = pq.read_table(io.BytesIO(out))
    assert table.column_names == ["name", "age", "score", "active"]
    assert table.to_pylist() == [{"name": "Dora", "age": 40, "score": None, "active": False}]
    messages = " ".join(r.getMessage() for r in caplog.records)
    assert "'score'" in messages
    assert "'extra'" in messages


def test_match_columns_pairs_duplicates_in_order() -> None:
    assert match_columns(["x", "y", "x"], ["x", "x", "y"]) == [0, 2, 1]
    assert match_columns(["x", "x"], ["x"]) == [0, None]


def test_index_columns_first_changes_display_only() -> None:
    meta = {"pandas": json.dumps({"index_columns": ["idx"], "columns": []})}
    source = pa.table({"v": [1.5, 2.5], "idx": ["a", "b"]}).replace_schema_metadata(meta)
    data = _parquet(source)

    assert _copy_in(ParquetCodec(), data).splitlines()[0] == "v,idx"

    codec = ParquetCodec(CodecSettings(index_columns_first=True))
    text = _copy_in(codec, data)
    assert text.splitlines() == ["idx,v", "a,1.5", "b,2.5"]
    out = pq.read_table(io.BytesIO(_copy_out(codec, text)))
    assert out.column_names == ["v", "idx"]


def test_float32_columns_render_short_digits() -> None:
    source = pa.table({"f": pa.array([0.1, 2.0], pa.float32())})
    codec = ParquetCodec()
    text = _copy_in(codec, _parquet(source))
    assert text.splitlines() == ["f", "0.1", "2"]
    out = pq.read_table(io.BytesIO(_copy_out(codec, text)))
    assert out.schema.field("f").type == pa.float32()
    assert out.column("f").to_pylist() == source.column("f").to_pylist()


def test_nulls_round_trip_as_empty_cells() -> None:
    source = pa.table({"a": pa.array([1, None], pa.int64()), "b": ["x", None]})
    codec = ParquetCodec()
    text = _copy_in(codec, _parquet(source))
    assert text.splitlines() == ["a,b", "1,x", ","]
    out = pq.read_table(io.BytesIO(_copy_out(codec, text)))
    assert out.to_pylist() == source.to_pylist()


def test_session_state_machine() -> None:
    data = _parquet(_people())
    codec = ParquetCodec()
    text = _copy_in(codec, data)
    with pytest.raises(SessionStateError):
        codec.copy_in(Stream(), Stream(data))
    _copy_out(codec, text)
    with pytest.raises(SessionStateError):
        codec.copy_out(Stream(), Stream(text.encode()))
    with pytest.raises(SessionStateError):
        codec.discard_schema()


def test_discard_schema_forces_inference() -> None:
    codec = ParquetCodec()
    text = _copy_in(codec, _parquet(pa.table({"n": pa.array([1, 2], pa.int32())})))
    codec.discard_schema()
    assert codec.state is SessionState.FRESH
    assert codec.metadata == ()
    table = pq.read_table(io.BytesIO(_copy_out(codec, text)))
    assert table.schema.field("n").type == pa.int64()


def test_malformed_input_keeps_session_fresh() -> None:
    codec = ParquetCodec()
    src = Stream(b"definitely not parquet")
    with pytest.raises(MalformedInputError):
        codec.copy_in(Stream(), src)
    assert src.close_calls == 1
    assert codec.state is SessionState.FRESH


def test_cells_larger_than_the_csv_default_limit_round_trip() -> None:
    doc = "x" * 200_000
    source = pa.table({"doc": [doc, "short"]})
    codec = ParquetCodec()
    text = _copy_in(codec, _parquet(source))
    out = pq.read_table(io.BytesIO(_copy_out(codec, text)))
    assert out.column("doc").to_pylist() == [doc, "short"]


def test_null_typed_columns_round_trip() -> None:
    source = pa.table({"gap": pa.nulls(2), "n": [1, 2]})
    codec = ParquetCodec()
    text = _copy_in(codec, _parquet(source))
    assert text.splitlines() == ["gap,n", ",1", ",2"]
    out = pq.read_table(io.BytesIO(_copy_out(codec, text)))
    assert out.schema.field("gap").type == pa.null()
    assert out.column("n").to_pylist() == [1, 2]


def test_text_in_null_typed_column_is_a_located_error() -> None:
    codec = ParquetCodec()
    _copy_in(codec, _parquet(pa.table({"gap": pa.nulls(2), "n": [1, 2]})))
    with pytest.raises(TypeConversionError) as ei:
        codec.copy_out(Stream(), Stream(b"gap,n\n,1\nfilled,2\n"))
    assert (ei.value.column, ei.value.row, ei.value.target) == ("gap", 2, "NULL")
