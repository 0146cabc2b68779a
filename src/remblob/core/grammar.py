"""
Enumerations for the codec's type system.

Defines the storage types a column may carry, the type ranks used when widening
inferred columns, and the timestamp units understood by the converter. Zero-IO.

Notes:
    - Enum ``.value`` strings are lower_snake and are what the sidecar document stores.
    - TypeRank order is the widening lattice: EMPTY < BOOLEAN < INTEGER < FLOAT < STRING.

Examples:
    >>> from remblob.core.grammar import TypeRank, storage_for_rank, StorageType
    >>> max(TypeRank.BOOLEAN, TypeRank.FLOAT) is TypeRank.FLOAT
    True
    >>> storage_for_rank(TypeRank.EMPTY) is StorageType.BYTE_STRING
    True
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Final

__all__ = [
    "StorageType",
    "TypeRank",
    "TIME_UNITS",
    "storage_for_rank",
    "storage_type_from_value",
]


class StorageType(Enum):
    """
    Primitive storage type of a column.
    """

    BOOLEAN = "boolean"
    INT64 = "int64"
    FLOAT64 = "float64"
    BYTE_STRING = "byte_string"


class TypeRank(IntEnum):
    """
    Widening rank of a single cell; a column takes the maximum rank of its cells.
    """

    EMPTY = 0
    BOOLEAN = 1
    INTEGER = 2
    FLOAT = 3
    STRING = 4


TIME_UNITS: Final[tuple[str, ...]] = ("s", "ms", "us", "ns")

_RANK_STORAGE: Final[dict[TypeRank, StorageType]] = {
    TypeRank.EMPTY: StorageType.BYTE_STRING,
    TypeRank.BOOLEAN: StorageType.BOOLEAN,
    TypeRank.INTEGER: StorageType.INT64,
    TypeRank.FLOAT: StorageType.FLOAT64,
    TypeRank.STRING: StorageType.BYTE_STRING,
}


def storage_for_rank(rank: TypeRank) -> StorageType:
    """
    Map a widened column rank to its storage type.

    Args:
        rank (TypeRank): Maximum rank observed in a column.

    Returns:
        StorageType: EMPTY and STRING both map to BYTE_STRING.
    """
    return _RANK_STORAGE[rank]


def storage_type_from_value(s: str) -> StorageType:
    """
    Parse a lower_snake storage type value.

    Raises:
        ValueError: If ``s`` is not a StorageType value.
    """
    try:
        return StorageType(s.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(t.value for t in StorageType)
        raise ValueError(f"unknown storage type {s!r}; expected one of: {allowed}") from exc
