"""
Parquet ↔ CSV codec session for remblob.io.

ParquetCodec converts a Parquet file into CSV text for editing (copy_in) and rebuilds a
Parquet file from the edited text (copy_out). One instance is one edit session: the
schema and footer metadata captured by copy_in are reused by copy_out; without a capture
the schema is inferred from the text.

State machine
- FRESH --copy_in--> SCHEMA_CAPTURED --copy_out--> DONE
- FRESH --copy_out (schema inferred)--> DONE
- SCHEMA_CAPTURED --discard_schema--> FRESH
Any other call raises SessionStateError. A failed copy_out leaves the state unchanged.

Source of truth
- Reader/writer: remblob.io.read, remblob.io.write, remblob.io.text.
- Conversion and inference: remblob.core.values, remblob.core.inference.

Import DAG discipline:
- Depends only on stdlib, pyarrow (through read/write) and remblob.core.*.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from enum import Enum
from typing import BinaryIO

from remblob.core.errors import ArityMismatch, EmptyInputError, SessionStateError
from remblob.core.inference import infer_schema
from remblob.core.schema import Schema
from remblob.core.typing import CellValue, Metadata
from remblob.core.values import convert_cell, zero_value

from .config import CodecSettings
from .read import ColumnarTable, read_columnar
from .text import TextTable, read_text, write_text
from .write import write_columnar

logger = logging.getLogger(__name__)


class SessionState(Enum):
    FRESH = "fresh"
    SCHEMA_CAPTURED = "schema_captured"
    DONE = "done"


def match_columns(names: Sequence[str], header: Sequence[str]) -> list[int | None]:
    """
    Map each schema column to its position in a CSV header.

    The k-th occurrence of a name in ``names`` matches the k-th occurrence in ``header``.
    Columns absent from the header map to None.
    """
    slots: dict[str, list[int]] = {}
    for position, name in enumerate(header):
        slots.setdefault(name, []).append(position)
    seen: Counter[str] = Counter()
    positions: list[int | None] = []
    for name in names:
        k = seen[name]
        seen[name] += 1
        candidates = slots.get(name, [])
        positions.append(candidates[k] if k < len(candidates) else None)
    return positions


def display_order(table: ColumnarTable, index_columns_first: bool) -> list[int]:
    """
    CSV column order for a decoded table.

    Physical order unless ``index_columns_first`` is set, in which case columns named in
    the pandas ``index_columns`` footer entry come first, in that entry's order.
    """
    physical = list(range(len(table.schema)))
    if not index_columns_first:
        return physical
    front: list[int] = []
    for name in table.index_columns():
        for i in physical:
            if table.schema[i].name == name and i not in front:
                front.append(i)
                break
    return front + [i for i in physical if i not in front]


def convert_rows(schema: Schema, text: TextTable) -> list[list[CellValue]]:
    """
    Convert parsed CSV rows to column-major storage values for ``schema``.

    Raises:
        TypeConversionError: On the first cell (row order, then schema order) that does
            not parse as its column's type.
    """
    positions = match_columns(schema.names, text.header)
    for column, position in zip(schema, positions, strict=True):
        if position is None:
            logger.warning(
                "column %r is missing from the CSV header; writing %s values",
                column.name,
                "null" if column.nullable else "zero",
            )
    used = {p for p in positions if p is not None}
    for position, name in enumerate(text.header):
        if position not in used:
            logger.warning("ignoring CSV column %r: not in the schema", name)

    widened = schema.inferred
    columns: list[list[CellValue]] = [[] for _ in schema]
    for cells, number in zip(text.rows, text.row_numbers, strict=True):
        for values, column, position in zip(columns, schema, positions, strict=True):
            if position is None:
                values.append(None if column.nullable else zero_value(column))
            else:
                values.append(convert_cell(cells[position], column, number, widened=widened))
    return columns


class ParquetCodec:
    """
    One Parquet ↔ CSV edit session.

    Attributes:
        settings (CodecSettings): Compression, row group size, display and text encoding.
        schema (Schema | None): Captured (or, after copy_out, inferred) schema.
        metadata (Metadata): Captured footer key/value pairs.
        state (SessionState): Current session state.
        skipped (tuple[ArityMismatch, ...]): Rows dropped by the last copy_out.

    Notes:
        - Streams are binary file-like objects. Inputs are read whole before decoding and
          outputs are built whole before a single write.
        - Instances are single-use; start a new one for each edit.
    """

    def __init__(self, settings: CodecSettings | None = None) -> None:
        self.settings = settings or CodecSettings()
        self.schema: Schema | None = None
        self.metadata: Metadata = ()
        self.state = SessionState.FRESH
        self.skipped: tuple[ArityMismatch, ...] = ()

    @classmethod
    def from_captured(
        cls,
        schema: Schema,
        metadata: Metadata = (),
        settings: CodecSettings | None = None,
    ) -> ParquetCodec:
        """Start a session that already holds a captured schema (e.g. from a sidecar)."""
        codec = cls(settings)
        codec.schema = schema
        codec.metadata = tuple(metadata)
        codec.state = SessionState.SCHEMA_CAPTURED
        return codec

    def _require(self, operation: str, *allowed: SessionState) -> None:
        if self.state not in allowed:
            raise SessionStateError(
                f"cannot {operation} in state {self.state.value}; start a new ParquetCodec"
            )

    # ---------------------------------------------------------------------
    # Session operations
    # ---------------------------------------------------------------------
    def copy_in(self, dst: BinaryIO, src: BinaryIO) -> None:
        """
        Read a whole Parquet file from ``src`` and write it to ``dst`` as CSV.

        ``src`` is closed; ``dst`` is left open for the caller.

        Raises:
            SessionStateError: If the session is not FRESH.
            MalformedInputError: If the Parquet footer cannot be parsed.
            UnsupportedColumnError: If a column type cannot be represented.
        """
        self._require("copy_in", SessionState.FRESH)
        try:
            data = src.read()
        finally:
            src.close()

        table = read_columnar(data)
        order = display_order(table, self.settings.index_columns_first)
        text = write_text(table.schema, table, order)
        dst.write(text.encode(self.settings.encoding, "surrogateescape"))

        self.schema = table.schema
        self.metadata = table.metadata
        self.state = SessionState.SCHEMA_CAPTURED
        logger.info(
            "captured schema: %d columns, %d rows, %d metadata keys",
            len(table.schema),
            len(table),
            len(table.metadata),
        )

    def copy_out(self, dst: BinaryIO, src: BinaryIO) -> None:
        """
        Read CSV text from ``src`` and write a complete Parquet file to ``dst``.

        ``src`` is always closed. ``dst`` receives one write and is closed on success;
        on failure nothing is written and ``dst`` stays open so the caller can discard it.

        Raises:
            SessionStateError: If the session is DONE.
            EmptyInputError: If the text has no header, or no usable rows and no schema.
            TypeConversionError: If a cell does not parse as its column's type.
        """
        self._require("copy_out", SessionState.FRESH, SessionState.SCHEMA_CAPTURED)
        try:
            raw = src.read()
        finally:
            src.close()

        text = read_text(raw.decode(self.settings.encoding, "surrogateescape"))
        if text.skipped:
            logger.info("dropped %d rows with a mismatched cell count", len(text.skipped))

        schema = self.schema
        if schema is None:
            if not text.rows:
                raise EmptyInputError("CSV text has no data rows to infer a schema from")
            schema = infer_schema(text.header, text.rows)
            logger.info("inferred schema: %s", ", ".join(c.describe() for c in schema))

        columns = convert_rows(schema, text)
        payload = write_columnar(schema, self.metadata, columns, self.settings)
        dst.write(payload)
        dst.close()

        self.schema = schema
        self.skipped = text.skipped
        self.state = SessionState.DONE
        logger.info("wrote %d rows, %d bytes", len(text.rows), len(payload))

    def discard_schema(self) -> None:
        """Drop the captured schema and metadata so the next copy_out infers."""
        self._require("discard_schema", SessionState.SCHEMA_CAPTURED)
        self.schema = None
        self.metadata = ()
        self.state = SessionState.FRESH
