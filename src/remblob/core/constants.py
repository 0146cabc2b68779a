"""
remblob core codec defaults.

Defines text formats, epoch anchors and Parquet write defaults consumed by the
codec layers. This module is zero-IO and uses only the Python standard library.

Notes:
    - Date cells are rendered as ``YYYY-MM-DD`` (days since 1970-01-01).
    - Timestamp cells are rendered as ``YYYY-MM-DD HH:MM:SS.nnnnnnnnn`` in UTC,
      always with nine fractional digits regardless of the column's unit.
    - Parquet writers size row groups and set compression according to these values
      unless overridden by remblob.io.config.CodecSettings.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Final

__all__ = [
    "EPOCH_DATE",
    "EPOCH_DATETIME",
    "NANOS_PER_SECOND",
    "NANOS_PER_UNIT",
    "TRUE_LITERALS",
    "FALSE_LITERALS",
    "CSV_DELIMITER",
    "CSV_LINE_TERMINATOR",
    "TEXT_ENCODING",
    "ROW_GROUP_SIZE",
    "COMPRESSION",
    "COMPRESSIONS",
    "PANDAS_METADATA_KEY",
]

EPOCH_DATE: Final[date] = date(1970, 1, 1)
EPOCH_DATETIME: Final[datetime] = datetime(1970, 1, 1, tzinfo=UTC)

NANOS_PER_SECOND: Final[int] = 1_000_000_000

# Multiplier from a timestamp unit to nanoseconds.
NANOS_PER_UNIT: Final[dict[str, int]] = {
    "s": NANOS_PER_SECOND,
    "ms": 1_000_000,
    "us": 1_000,
    "ns": 1,
}

# Literals accepted as booleans.
TRUE_LITERALS: Final[frozenset[str]] = frozenset({"1", "t", "T", "TRUE", "true", "True"})
FALSE_LITERALS: Final[frozenset[str]] = frozenset({"0", "f", "F", "FALSE", "false", "False"})

CSV_DELIMITER: Final[str] = ","
CSV_LINE_TERMINATOR: Final[str] = "\n"
TEXT_ENCODING: Final[str] = "utf-8"

# Target row group size for Parquet writes.
ROW_GROUP_SIZE: int = 128 * 1024

# Default compression codec for Parquet writes.
COMPRESSION: str = "snappy"
COMPRESSIONS: Final[frozenset[str]] = frozenset({"snappy", "zstd", "gzip", "lz4", "brotli", "none"})

# Footer key written by pandas; carries index column hints.
PANDAS_METADATA_KEY: Final[str] = "pandas"
