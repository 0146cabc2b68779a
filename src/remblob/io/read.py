"""
Binary reader for flat Parquet files.

Overview
- read_columnar(): parse a whole Parquet blob held in memory into a ColumnarTable carrying
  the Schema, the footer Metadata and row access by index.

Source of truth
- Storage types and annotations: remblob.core.grammar / remblob.core.schema.
- Display formatting is not done here; remblob.core.values renders storage values.

Column mapping
- bool → BOOLEAN; (u)int8..64 → INT64 (physical kept); float32/float64 → FLOAT64;
  string/large_string/binary/large_binary (and their view types) → BYTE_STRING;
  null → BYTE_STRING with physical "null" (every cell must stay empty);
  date32/date64 → INT64 + Date (days); timestamp[unit, tz] → INT64 + Timestamp(unit, tz).
- Dictionary (categorical) columns are decoded to their value type.
- Anything else (struct, list, map, decimal, time, duration, half float, ...) is unsupported.
  A struct would come back as flat columns while the ARROW:schema footer entry still
  describes the group.

Notes
- Column names are the external names stored in the file; nothing is sanitized.
- Binary payloads are decoded as UTF-8 with surrogateescape so every byte survives a
  round trip through CSV text.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator

import pyarrow as pa
import pyarrow.parquet as pq

from remblob.core.constants import PANDAS_METADATA_KEY
from remblob.core.errors import MalformedInputError, UnsupportedColumnError
from remblob.core.grammar import StorageType
from remblob.core.schema import ColumnDescriptor, Date, Schema, Timestamp
from remblob.core.typing import CellValue, Metadata, Row

logger = logging.getLogger(__name__)

_BINARY_ALIASES = {"binary", "large_binary"}


class ColumnarTable:
    """
    Decoded contents of one Parquet file.

    Attributes:
        schema (Schema): Leaf columns in physical order.
        metadata (Metadata): Footer key/value pairs in file order.

    Notes:
        - Rows are tuples aligned with ``schema``; Date/Timestamp cells hold integers.
        - Supports len(), row(i) random access and in-order iteration (restartable).
    """

    def __init__(
        self,
        schema: Schema,
        metadata: Metadata,
        columns: list[list[CellValue]],
        num_rows: int,
    ) -> None:
        self.schema = schema
        self.metadata = metadata
        self._columns = columns
        self._num_rows = num_rows

    def __len__(self) -> int:
        return self._num_rows

    def row(self, index: int) -> Row:
        """Return the row at ``index`` (0-based)."""
        if index < 0 or index >= self._num_rows:
            raise IndexError(f"row index {index} out of range for {self._num_rows} rows")
        return tuple(col[index] for col in self._columns)

    def __iter__(self) -> Iterator[Row]:
        for index in range(self._num_rows):
            yield self.row(index)

    def index_columns(self) -> tuple[str, ...]:
        """
        Names of pandas index columns recorded in the footer metadata, if any.

        Notes:
            Only named index columns are returned; RangeIndex descriptors are not columns.
        """
        for key, value in self.metadata:
            if key != PANDAS_METADATA_KEY:
                continue
            try:
                doc = json.loads(value)
            except json.JSONDecodeError:
                logger.debug("ignoring unparsable %r footer metadata", key)
                return ()
            entries = doc.get("index_columns", []) if isinstance(doc, dict) else []
            return tuple(e for e in entries if isinstance(e, str))
        return ()


def _describe_field(field: pa.Field) -> ColumnDescriptor:
    t = field.type
    name = field.name
    nullable = field.nullable
    if pa.types.is_dictionary(t):
        t = t.value_type

    if pa.types.is_boolean(t):
        return ColumnDescriptor(name, StorageType.BOOLEAN, nullable=nullable)
    if pa.types.is_integer(t):
        physical = None if t == pa.int64() else str(t)
        return ColumnDescriptor(name, StorageType.INT64, physical=physical, nullable=nullable)
    if pa.types.is_float32(t):
        return ColumnDescriptor(name, StorageType.FLOAT64, physical="float", nullable=nullable)
    if pa.types.is_float64(t):
        return ColumnDescriptor(name, StorageType.FLOAT64, nullable=nullable)
    if pa.types.is_string(t):
        return ColumnDescriptor(name, StorageType.BYTE_STRING, nullable=nullable)
    if pa.types.is_large_string(t):
        return ColumnDescriptor(
            name, StorageType.BYTE_STRING, physical="large_string", nullable=nullable
        )
    if pa.types.is_binary(t):
        return ColumnDescriptor(name, StorageType.BYTE_STRING, physical="binary", nullable=nullable)
    if pa.types.is_large_binary(t):
        return ColumnDescriptor(
            name, StorageType.BYTE_STRING, physical="large_binary", nullable=nullable
        )
    if pa.types.is_string_view(t):
        return ColumnDescriptor(name, StorageType.BYTE_STRING, nullable=nullable)
    if pa.types.is_binary_view(t):
        return ColumnDescriptor(name, StorageType.BYTE_STRING, physical="binary", nullable=nullable)
    if pa.types.is_null(t):
        return ColumnDescriptor(name, StorageType.BYTE_STRING, physical="null", nullable=True)
    if pa.types.is_date(t):
        return ColumnDescriptor(name, StorageType.INT64, Date(), nullable=nullable)
    if pa.types.is_timestamp(t):
        return ColumnDescriptor(
            name, StorageType.INT64, Timestamp(unit=t.unit, timezone=t.tz), nullable=nullable
        )
    raise UnsupportedColumnError(name, str(field.type))


def _decode_column(column: ColumnDescriptor, data: pa.ChunkedArray) -> list[CellValue]:
    if pa.types.is_dictionary(data.type):
        data = data.cast(data.type.value_type)
    if isinstance(column.semantic, Date):
        if pa.types.is_date64(data.type):
            data = data.cast(pa.date32())
        return data.cast(pa.int32()).to_pylist()
    if isinstance(column.semantic, Timestamp):
        return data.cast(pa.int64()).to_pylist()
    if column.physical in _BINARY_ALIASES:
        return [
            None if v is None else v.decode("utf-8", "surrogateescape") for v in data.to_pylist()
        ]
    return data.to_pylist()


def _decode_metadata(raw: dict[bytes, bytes] | None) -> Metadata:
    if not raw:
        return ()
    return tuple(
        (k.decode("utf-8", "surrogateescape"), v.decode("utf-8", "surrogateescape"))
        for k, v in raw.items()
    )


def read_columnar(data: bytes) -> ColumnarTable:
    """
    Decode a Parquet blob held in memory.

    Args:
        data (bytes): Complete Parquet file contents.

    Returns:
        ColumnarTable: Schema, footer metadata and rows in file order.

    Raises:
        MalformedInputError: If the footer or schema cannot be parsed.
        UnsupportedColumnError: If a column type is outside the flat scalar model.
    """
    try:
        pf = pq.ParquetFile(pa.BufferReader(data))
        raw_metadata = pf.metadata.metadata
        table = pf.read()
    except (pa.ArrowException, OSError) as exc:
        raise MalformedInputError(f"failed to read parquet data: {exc}") from exc

    columns: list[ColumnDescriptor] = []
    values: list[list[CellValue]] = []
    for field, data_column in zip(table.schema, table.columns, strict=True):
        descriptor = _describe_field(field)
        columns.append(descriptor)
        values.append(_decode_column(descriptor, data_column))

    schema = Schema(tuple(columns))
    metadata = _decode_metadata(raw_metadata)
    logger.debug(
        "read parquet: %d columns, %d rows, %d metadata keys",
        len(schema),
        table.num_rows,
        len(metadata),
    )
    return ColumnarTable(schema, metadata, values, table.num_rows)
