"""
Core package aggregator for the remblob tabular codec (schema model, values, inference).

## Contracts (single source of truth)
- Grammar — storage types, widening ranks, timestamp units.
- Schema — frozen column descriptors and Date/Timestamp annotations.
- Values — provisional typing, display formatting, schema-directed conversion.
- Inference — type-widening schema inference from CSV rows.
- Serde — pydantic sidecar document for captured schemas.
- Errors — CodecError family.

## Notes
- Zero-IO policy: stdlib + pydantic only; no file/network IO.
- Column names are never normalized; duplicates are passed through.

## Downstream usage
- remblob.io — reads/writes Parquet and CSV, driving conversion through `values` and
  falling back to `inference` when no schema was captured.

## Examples
```python
from remblob.core import infer_schema, convert_cell
schema = infer_schema(("name", "age"), [("Alice", "25"), ("Bob", "30")])
convert_cell("25", schema[1], row=1)  # 25
```
"""

from __future__ import annotations

from .errors import (
    ArityMismatch,
    CodecError,
    EmptyInputError,
    MalformedInputError,
    SchemaDocumentError,
    SessionStateError,
    TypeConversionError,
    UnsupportedColumnError,
)
from .grammar import StorageType, TypeRank
from .inference import column_rank, infer_schema
from .schema import ColumnDescriptor, Date, Schema, Timestamp
from .values import convert_cell, format_cell, parse_provisional

__all__ = [
    "ArityMismatch",
    "CodecError",
    "EmptyInputError",
    "MalformedInputError",
    "SchemaDocumentError",
    "SessionStateError",
    "TypeConversionError",
    "UnsupportedColumnError",
    "StorageType",
    "TypeRank",
    "column_rank",
    "infer_schema",
    "ColumnDescriptor",
    "Date",
    "Schema",
    "Timestamp",
    "convert_cell",
    "format_cell",
    "parse_provisional",
]
