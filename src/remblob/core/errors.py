"""
Core exception types raised by the tabular codec.

Provides typed exceptions for codec failures:
- MalformedInputError when a Parquet footer or schema cannot be parsed.
- UnsupportedColumnError when a column type falls outside the flat scalar model.
- EmptyInputError when CSV text carries nothing to write.
- TypeConversionError when a cell cannot be coerced to its column's declared type.
- SessionStateError when a codec session is used outside its state machine.
- SchemaDocumentError when a sidecar schema document fails validation.

ArityMismatch is not an exception: it records a CSV row that was dropped because its
cell count disagreed with the header.

Notes:
    - This module uses only the Python standard library and has no side effects.
    - All codec errors derive from CodecError so callers can catch the whole family.

Examples:
    Point a user at the cell to fix.

    >>> from remblob.core.errors import TypeConversionError
    >>> err = TypeConversionError("age", 2, "thirty", "INT64")
    >>> (err.column, err.row, err.value)
    ('age', 2, 'thirty')
    >>> str(err)
    "field 'age' at row 2: cannot convert 'thirty' to INT64"
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "CodecError",
    "MalformedInputError",
    "UnsupportedColumnError",
    "EmptyInputError",
    "TypeConversionError",
    "SessionStateError",
    "SchemaDocumentError",
    "ArityMismatch",
]


class CodecError(Exception):
    """Base class for tabular codec failures."""


class MalformedInputError(CodecError, ValueError):
    """Parquet footer/schema could not be parsed."""


class UnsupportedColumnError(CodecError, ValueError):
    """
    Column type is outside the flat scalar model (list, map, decimal, time, duration, ...).

    Attributes:
        column (str): Column name as found in the file.
        arrow_type (str): Arrow type description of the offending column.
    """

    def __init__(self, column: str, arrow_type: str) -> None:
        self.column = column
        self.arrow_type = arrow_type
        super().__init__(f"column {column!r} has unsupported type {arrow_type}")


class EmptyInputError(CodecError, ValueError):
    """CSV text has no header, or no usable rows and no captured schema."""


class TypeConversionError(CodecError, ValueError):
    """
    A cell cannot be coerced to its column's declared type.

    Attributes:
        column (str): Column name.
        row (int): 1-based data row number in the CSV text (header excluded).
        value (str): Raw offending text.
        target (str): Description of the expected type.
    """

    def __init__(self, column: str, row: int, value: str, target: str) -> None:
        self.column = column
        self.row = row
        self.value = value
        self.target = target
        super().__init__(f"field {column!r} at row {row}: cannot convert {value!r} to {target}")


class SessionStateError(CodecError, RuntimeError):
    """Codec session operation invoked in the wrong state."""


class SchemaDocumentError(CodecError, ValueError):
    """Sidecar schema document is missing fields or carries invalid values."""


@dataclass(frozen=True, slots=True)
class ArityMismatch:
    """
    Record of a CSV row dropped because its cell count differs from the header.

    Attributes:
        row (int): 1-based data row number.
        expected (int): Header cell count.
        actual (int): Cell count of the dropped row.
    """

    row: int
    expected: int
    actual: int
