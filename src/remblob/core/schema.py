"""
Frozen schema model for flat columnar files.

Notes:
    - A Schema is an ordered tuple of ColumnDescriptor; order is the on-disk column order.
    - Semantic annotations (Date, Timestamp) ride on INT64 storage only.
    - ``physical`` keeps the exact Arrow alias of the on-disk type (e.g. "int32", "float",
      "large_string") so a captured schema writes back the same physical types.
    - Column names are never normalized and need not be unique.

Examples:
    >>> from remblob.core.schema import ColumnDescriptor, Date, Schema
    >>> from remblob.core.grammar import StorageType
    >>> s = Schema((
    ...     ColumnDescriptor("day", StorageType.INT64, Date(), physical="int32"),
    ...     ColumnDescriptor("name", StorageType.BYTE_STRING),
    ... ))
    >>> s.names
    ('day', 'name')
    >>> s[0].describe()
    'DATE'
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from .grammar import TIME_UNITS, StorageType

__all__ = [
    "Date",
    "Timestamp",
    "Semantic",
    "ColumnDescriptor",
    "Schema",
]


@dataclass(frozen=True)
class Date:
    """Days since 1970-01-01 stored as an integer."""

    def describe(self) -> str:
        return "DATE"


@dataclass(frozen=True)
class Timestamp:
    """
    Instant since the Unix epoch stored as an integer count of ``unit``.

    Attributes:
        unit (str): One of "s", "ms", "us", "ns".
        timezone (str | None): Arrow timezone name when the column is UTC-adjusted;
            values are always UTC-normalized on disk.

    Raises:
        ValueError: If ``unit`` is not a known time unit.
    """

    unit: str = "ns"
    timezone: str | None = None

    def __post_init__(self) -> None:
        if self.unit not in TIME_UNITS:
            raise ValueError(f"Timestamp unit must be one of {TIME_UNITS}, got {self.unit!r}")

    def describe(self) -> str:
        return f"TIMESTAMP[{self.unit}]"


Semantic = Date | Timestamp


@dataclass(frozen=True)
class ColumnDescriptor:
    """
    One column of a flat columnar file.

    Attributes:
        name (str): External column name as written in the file.
        storage (StorageType): Primitive storage type.
        semantic (Semantic | None): Optional Date/Timestamp annotation (INT64 storage only).
        physical (str | None): Arrow type alias of the on-disk type; None selects the
            storage default (bool, int64, double, string).
        nullable (bool): Whether nulls may be written; empty cells in non-nullable
            columns become the type's zero value.

    Raises:
        ValueError: If a semantic annotation is attached to non-INT64 storage.
    """

    name: str
    storage: StorageType
    semantic: Semantic | None = None
    physical: str | None = None
    nullable: bool = True

    def __post_init__(self) -> None:
        if self.semantic is not None and self.storage is not StorageType.INT64:
            raise ValueError(
                f"column {self.name!r}: {self.semantic.describe()} requires int64 storage, "
                f"got {self.storage.value}"
            )

    def describe(self) -> str:
        """Human-readable type used in error messages."""
        if self.semantic is not None:
            return self.semantic.describe()
        if self.physical == "null":
            return "NULL"
        return self.storage.name


@dataclass(frozen=True)
class Schema:
    """
    Ordered column descriptors for one file.

    Attributes:
        columns (tuple[ColumnDescriptor, ...]): Columns in on-disk order.
        inferred (bool): True when produced by schema inference rather than captured
            from a file; inferred schemas accept widened cell values on write.
    """

    columns: tuple[ColumnDescriptor, ...] = field(default_factory=tuple)
    inferred: bool = False

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    def __iter__(self) -> Iterator[ColumnDescriptor]:
        return iter(self.columns)

    def __getitem__(self, index: int) -> ColumnDescriptor:
        return self.columns[index]
