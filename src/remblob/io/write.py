"""
Binary writer for flat Parquet files.

Overview
- arrow_type_for(): exact Arrow type for a ColumnDescriptor (semantic, then physical alias,
  then the storage default).
- build_table(): assemble an Arrow table from column-major storage values.
- write_columnar(): encode the table as Parquet bytes using CodecSettings, with the footer
  Metadata reattached.

Notes
- The writer runs with store_schema=False, which writes no key/value metadata of its own;
  the Metadata is then added as the complete footer key/value set. An ARROW:schema entry
  captured from the source file is passed through untouched.
- Column order and types follow the Schema; duplicate names are allowed.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import pyarrow as pa
import pyarrow.parquet as pq

from remblob.core.grammar import StorageType
from remblob.core.schema import ColumnDescriptor, Date, Schema, Timestamp
from remblob.core.typing import CellValue, Metadata

from .config import CodecSettings
from .errors import IoWriteError

logger = logging.getLogger(__name__)

_STORAGE_DEFAULTS: dict[StorageType, pa.DataType] = {
    StorageType.BOOLEAN: pa.bool_(),
    StorageType.INT64: pa.int64(),
    StorageType.FLOAT64: pa.float64(),
    StorageType.BYTE_STRING: pa.string(),
}

_BINARY_ALIASES = {"binary", "large_binary"}


def arrow_type_for(column: ColumnDescriptor) -> pa.DataType:
    """Return the Arrow type a column is written with."""
    semantic = column.semantic
    if isinstance(semantic, Date):
        return pa.date32()
    if isinstance(semantic, Timestamp):
        return pa.timestamp(semantic.unit, tz=semantic.timezone)
    if column.physical:
        return pa.type_for_alias(column.physical)
    return _STORAGE_DEFAULTS[column.storage]


def _to_array(column: ColumnDescriptor, values: Sequence[CellValue]) -> pa.Array:
    target = arrow_type_for(column)
    if isinstance(column.semantic, Date):
        return pa.array(values, type=pa.int32()).cast(target)
    if isinstance(column.semantic, Timestamp):
        return pa.array(values, type=pa.int64()).cast(target)
    if column.physical in _BINARY_ALIASES:
        encoded = [
            None if v is None else str(v).encode("utf-8", "surrogateescape") for v in values
        ]
        return pa.array(encoded, type=target)
    return pa.array(values, type=target)


def _encode_metadata(metadata: Metadata) -> dict[bytes, bytes]:
    return {
        k.encode("utf-8", "surrogateescape"): v.encode("utf-8", "surrogateescape")
        for k, v in metadata
    }


def build_table(schema: Schema, columns: Sequence[Sequence[CellValue]]) -> pa.Table:
    """
    Assemble an Arrow table matching ``schema`` exactly.

    Args:
        schema (Schema): Target columns, in on-disk order.
        columns (Sequence[Sequence[CellValue]]): One value list per schema column.

    Returns:
        pa.Table

    Raises:
        ValueError: If the number of value lists differs from the number of columns.
    """
    if len(columns) != len(schema):
        raise ValueError(f"expected {len(schema)} value columns, got {len(columns)}")
    fields = [pa.field(c.name, arrow_type_for(c), nullable=c.nullable) for c in schema]
    arrays = [_to_array(c, values) for c, values in zip(schema, columns, strict=True)]
    return pa.Table.from_arrays(arrays, schema=pa.schema(fields))


def write_columnar(
    schema: Schema,
    metadata: Metadata,
    columns: Sequence[Sequence[CellValue]],
    settings: CodecSettings | None = None,
) -> bytes:
    """
    Encode storage values as a complete Parquet file held in memory.

    Args:
        schema (Schema): Target columns.
        metadata (Metadata): Footer key/value pairs, reattached verbatim.
        columns (Sequence[Sequence[CellValue]]): Column-major converted values.
        settings (CodecSettings | None): Compression and row group size.

    Returns:
        bytes: The Parquet file contents.

    Raises:
        IoWriteError: If Arrow rejects the values or the Parquet encoding fails.
    """
    settings = settings or CodecSettings()
    sink = pa.BufferOutputStream()
    try:
        table = build_table(schema, columns)
        with pq.ParquetWriter(
            sink,
            table.schema,
            compression=settings.compression,
            store_schema=False,
        ) as writer:
            writer.write_table(table, row_group_size=settings.row_group_size)
            if metadata:
                writer.add_key_value_metadata(_encode_metadata(metadata))
    except (pa.ArrowException, ValueError, TypeError) as exc:
        raise IoWriteError(f"failed to encode parquet: {exc}") from exc
    payload = sink.getvalue().to_pybytes()
    logger.debug(
        "wrote parquet: %d columns, %d rows, %d bytes (compression=%s)",
        len(schema),
        table.num_rows,
        len(payload),
        settings.compression,
    )
    return payload
