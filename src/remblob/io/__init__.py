"""
remblob.io — Parquet and CSV IO layer for the remblob codec.

## Responsibilities
- Decode Parquet files into a Schema, footer Metadata and rows (PyArrow).
- Render rows as CSV for editing and parse edited CSV back.
- Rebuild Parquet files from edited CSV with the captured (or inferred) schema and the
  footer metadata reattached verbatim.
- Copy blobs between stored and editable forms (plain, gzip, Parquet ↔ CSV).

## Public API
- CodecSettings — Configuration for writes and CSV display (defaults from remblob.core.constants).
- ParquetCodec — One edit session: copy_in (Parquet → CSV) then copy_out (CSV → Parquet).
- MultiShovel / PlainShovel / GzipShovel — Byte copiers chosen from file names.
- atomic_writer — All-or-nothing local file output.

## Import DAG discipline
- Depends only on stdlib, pyarrow, and remblob.core.*.

## Examples
```python
from remblob.io import ParquetCodec

codec = ParquetCodec()
with open("sales.parquet", "rb") as src, open("sales.csv", "wb") as dst:  # doctest: +SKIP
    codec.copy_in(dst, src)
# ... edit sales.csv ...
with open("sales.csv", "rb") as src, open("sales.parquet", "wb") as dst:  # doctest: +SKIP
    codec.copy_out(dst, src)
```

## Notes
- Whole inputs are buffered in memory; peak memory is proportional to the file size.
- CSV column order is the physical order unless CodecSettings.index_columns_first is set.
"""

from __future__ import annotations

from .codec import ParquetCodec, SessionState
from .config import CodecSettings
from .errors import IoConfigError, IoError, IoWriteError
from .fs import atomic_writer
from .read import ColumnarTable, read_columnar
from .shovel import GzipShovel, MultiShovel, PlainShovel, Shovel
from .text import TextTable, read_text, write_text
from .write import write_columnar

__all__ = [
    "CodecSettings",
    "ParquetCodec",
    "SessionState",
    "IoError",
    "IoConfigError",
    "IoWriteError",
    "atomic_writer",
    "ColumnarTable",
    "read_columnar",
    "Shovel",
    "PlainShovel",
    "GzipShovel",
    "MultiShovel",
    "TextTable",
    "read_text",
    "write_text",
    "write_columnar",
]
