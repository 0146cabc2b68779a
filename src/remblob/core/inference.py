"""
Schema inference from CSV rows using type widening.

Each column's storage type is the maximum widening rank of its cells
(EMPTY < BOOLEAN < INTEGER < FLOAT < STRING). The fold is order independent; scanning a
column stops as soon as STRING is reached. Columns that are empty in every row become
BYTE_STRING. Inference never produces Date/Timestamp annotations.

Examples:
    >>> from remblob.core.inference import infer_schema
    >>> s = infer_schema(("a", "b", "c"), [("1", "2", "true"), ("a", "2.2", "1"), ("3", "2", "nope")])
    >>> [c.storage.value for c in s]
    ['byte_string', 'float64', 'byte_string']
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .grammar import TypeRank, storage_for_rank
from .schema import ColumnDescriptor, Schema
from .typing import TextRow
from .values import rank_of_text

__all__ = [
    "column_rank",
    "infer_schema",
]


def column_rank(values: Iterable[str]) -> TypeRank:
    """
    Widest rank across a column's cell texts.

    Args:
        values (Iterable[str]): Raw cell texts of one column.

    Returns:
        TypeRank: Maximum rank observed; EMPTY for no values.
    """
    rank = TypeRank.EMPTY
    for text in values:
        rank = max(rank, rank_of_text(text))
        if rank is TypeRank.STRING:
            break
    return rank


def infer_schema(header: Sequence[str], rows: Sequence[TextRow]) -> Schema:
    """
    Derive a Schema from CSV rows, keeping header order.

    Args:
        header (Sequence[str]): Column names from the CSV header.
        rows (Sequence[TextRow]): Data rows, each with ``len(header)`` cells.

    Returns:
        Schema: One nullable column per header entry, flagged ``inferred=True``.
    """
    columns = tuple(
        ColumnDescriptor(
            name=name,
            storage=storage_for_rank(column_rank(row[index] for row in rows)),
        )
        for index, name in enumerate(header)
    )
    return Schema(columns, inferred=True)
