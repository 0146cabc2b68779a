"""
Value conversion between CSV cell text and column storage values.

Responsibilities
- Provisional typing of CSV cells when no schema is known (int, float, bool, string).
- Display formatting of storage values (Date, Timestamp, booleans, floats).
- Strict parsing of cell text back to a column's declared storage type.

Notes
- Zero-IO; stdlib only.
- Integer parsing is base-10 only and bounded by the column's physical type.
- Float parsing rejects whitespace and digit separators that Python's float() would
  otherwise tolerate, so "1_000" or " 2" stay strings.
- Floats are rendered with the shortest round-trip digits in %g layout: exponent form
  when the decimal exponent is < -4 or >= 6, plain form otherwise.
"""

from __future__ import annotations

import math
import re
import struct
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Final

from .constants import (
    EPOCH_DATE,
    EPOCH_DATETIME,
    FALSE_LITERALS,
    NANOS_PER_SECOND,
    NANOS_PER_UNIT,
    TRUE_LITERALS,
)
from .errors import TypeConversionError
from .grammar import StorageType, TypeRank
from .schema import ColumnDescriptor, Date, Timestamp
from .typing import CellValue

__all__ = [
    "parse_int",
    "parse_float",
    "parse_bool",
    "parse_provisional",
    "rank_of",
    "rank_of_text",
    "format_float",
    "format_date",
    "format_timestamp",
    "parse_date",
    "parse_timestamp",
    "format_cell",
    "convert_cell",
    "zero_value",
]

_INT_RE: Final[re.Pattern[str]] = re.compile(r"[+-]?[0-9]+")
_DATE_RE: Final[re.Pattern[str]] = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")
_TIMESTAMP_RE: Final[re.Pattern[str]] = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2}) ([0-9]{2}):([0-9]{2}):([0-9]{2})\.([0-9]{9})"
)

_INT64_BOUNDS: Final[tuple[int, int]] = (-(2**63), 2**63 - 1)
_INT_BOUNDS: Final[dict[str, tuple[int, int]]] = {
    "int8": (-(2**7), 2**7 - 1),
    "int16": (-(2**15), 2**15 - 1),
    "int32": (-(2**31), 2**31 - 1),
    "int64": _INT64_BOUNDS,
    "uint8": (0, 2**8 - 1),
    "uint16": (0, 2**16 - 1),
    "uint32": (0, 2**32 - 1),
    "uint64": (0, 2**64 - 1),
}

_SINGLE_PRECISION: Final[frozenset[str]] = frozenset({"float", "float32"})
_FLOAT32_MAX: Final[float] = 3.4028234663852886e38


# ---------------------------------------------------------------------------
# Primitive parsers
# ---------------------------------------------------------------------------


def parse_int(text: str, bounds: tuple[int, int] = _INT64_BOUNDS) -> int | None:
    """Parse a base-10 integer within ``bounds``; None when the text is not one."""
    if not _INT_RE.fullmatch(text):
        return None
    value = int(text)
    lo, hi = bounds
    if value < lo or value > hi:
        return None
    return value


def parse_float(text: str) -> float | None:
    """Parse a decimal/exponent float, NaN or Inf; None when the text is not one."""
    if not text or "_" in text or text != text.strip():
        return None
    try:
        return float(text)
    except ValueError:
        return None


def parse_bool(text: str) -> bool | None:
    if text in TRUE_LITERALS:
        return True
    if text in FALSE_LITERALS:
        return False
    return None


def parse_provisional(text: str) -> CellValue:
    """
    Type a CSV cell without a schema.

    Tries, in order: empty -> None, int64, float, boolean literal, else the text itself.

    Examples:
        >>> [parse_provisional(t) for t in ["", "42", "3.14", "true", "hello"]]
        [None, 42, 3.14, True, 'hello']
    """
    if text == "":
        return None
    as_int = parse_int(text)
    if as_int is not None:
        return as_int
    as_float = parse_float(text)
    if as_float is not None:
        return as_float
    as_bool = parse_bool(text)
    if as_bool is not None:
        return as_bool
    return text


def rank_of(value: CellValue) -> TypeRank:
    """Widening rank of a provisionally typed cell."""
    if value is None:
        return TypeRank.EMPTY
    # bool before int: bool is an int subclass.
    if isinstance(value, bool):
        return TypeRank.BOOLEAN
    if isinstance(value, int):
        return TypeRank.INTEGER
    if isinstance(value, float):
        return TypeRank.FLOAT
    return TypeRank.STRING


def rank_of_text(text: str) -> TypeRank:
    """Widening rank of raw cell text (``"42"`` -> INTEGER, ``"x"`` -> STRING)."""
    return rank_of(parse_provisional(text))


# ---------------------------------------------------------------------------
# Display formatting
# ---------------------------------------------------------------------------


def _shortest_repr(value: float, single: bool) -> str:
    if not single:
        return repr(value)
    target = struct.pack("<f", value)
    for precision in range(1, 10):
        candidate = f"{value:.{precision}g}"
        if struct.pack("<f", float(candidate)) == target:
            return candidate
    return repr(value)


def format_float(value: float, *, single: bool = False) -> str:
    """
    Render a float with the shortest digits that round-trip, in %g layout.

    Args:
        value (float): Value to render.
        single (bool): Treat the value as float32 and use float32-shortest digits.

    Examples:
        >>> [format_float(v) for v in (2.0, 95.5, 100000.0, 1234567.0, 1e-05)]
        ['2', '95.5', '100000', '1.234567e+06', '1e-05']
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"

    sign = "-" if value < 0 else ""
    dec = Decimal(_shortest_repr(abs(value), single))
    _, digit_tuple, exponent = dec.as_tuple()
    digits = "".join(str(d) for d in digit_tuple).rstrip("0") or "0"
    # position of the decimal point relative to the first significant digit
    point = len(digit_tuple) + int(exponent)
    exp10 = point - 1

    if exp10 < -4 or exp10 >= 6:
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        esign = "-" if exp10 < 0 else "+"
        return f"{sign}{mantissa}e{esign}{abs(exp10):02d}"
    if point <= 0:
        return f"{sign}0.{'0' * -point}{digits}"
    if point >= len(digits):
        return f"{sign}{digits}{'0' * (point - len(digits))}"
    return f"{sign}{digits[:point]}.{digits[point:]}"


def format_date(days: int) -> str:
    """
    Render days since 1970-01-01 as ``YYYY-MM-DD``.

    Values outside the representable calendar fall back to the raw integer.

    Examples:
        >>> format_date(20313)
        '2025-08-13'
    """
    try:
        d = EPOCH_DATE + timedelta(days=days)
    except OverflowError:
        return str(days)
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def format_timestamp(value: int, unit: str = "ns") -> str:
    """
    Render an epoch count in ``unit`` as ``YYYY-MM-DD HH:MM:SS.nnnnnnnnn`` (UTC).

    Values outside the representable calendar fall back to the raw integer.

    Examples:
        >>> format_timestamp(1755126458027512000)
        '2025-08-13 23:07:38.027512000'
    """
    nanos = value * NANOS_PER_UNIT[unit]
    seconds, fraction = divmod(nanos, NANOS_PER_SECOND)
    try:
        dt = EPOCH_DATETIME + timedelta(seconds=seconds)
    except OverflowError:
        return str(value)
    return (
        f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}.{fraction:09d}"
    )


def parse_date(text: str) -> int | None:
    """Parse strict ``YYYY-MM-DD`` into days since the epoch; None on mismatch."""
    m = _DATE_RE.fullmatch(text)
    if m is None:
        return None
    try:
        d = EPOCH_DATE.replace(year=int(m[1]), month=int(m[2]), day=int(m[3]))
    except ValueError:
        return None
    return (d - EPOCH_DATE).days


def parse_timestamp(text: str, unit: str = "ns") -> int | None:
    """
    Parse strict ``YYYY-MM-DD HH:MM:SS.nnnnnnnnn`` (UTC) into an epoch count in ``unit``.

    Returns None when the text does not match, or when the fraction is finer than
    ``unit`` can hold, or when the result leaves the int64 range.
    """
    m = _TIMESTAMP_RE.fullmatch(text)
    if m is None:
        return None
    try:
        dt = datetime(
            int(m[1]), int(m[2]), int(m[3]), int(m[4]), int(m[5]), int(m[6]), tzinfo=UTC
        )
    except ValueError:
        return None
    delta = dt - EPOCH_DATETIME
    nanos = (delta.days * 86_400 + delta.seconds) * NANOS_PER_SECOND + int(m[7])
    value, remainder = divmod(nanos, NANOS_PER_UNIT[unit])
    if remainder:
        return None
    lo, hi = _INT64_BOUNDS
    if value < lo or value > hi:
        return None
    return value


def format_cell(value: CellValue, column: ColumnDescriptor | None = None) -> str:
    """
    Render a storage value as CSV cell text.

    Args:
        value (CellValue): Storage value (Date/Timestamp columns carry integers).
        column (ColumnDescriptor | None): Column providing semantic/physical hints.

    Returns:
        str: Display text; "" for None.
    """
    if value is None:
        return ""
    semantic = column.semantic if column is not None else None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        if isinstance(semantic, Date):
            return format_date(value)
        if isinstance(semantic, Timestamp):
            return format_timestamp(value, semantic.unit)
        return str(value)
    if isinstance(value, float):
        single = column is not None and column.physical in _SINGLE_PRECISION
        return format_float(value, single=single)
    return str(value)


# ---------------------------------------------------------------------------
# Schema-directed conversion
# ---------------------------------------------------------------------------


def zero_value(column: ColumnDescriptor) -> CellValue:
    """Zero value written for empty cells of non-nullable columns."""
    if column.storage is StorageType.BOOLEAN:
        return False
    if column.storage is StorageType.INT64:
        return 0
    if column.storage is StorageType.FLOAT64:
        return 0.0
    return ""


def _convert(text: str, column: ColumnDescriptor, widened: bool) -> CellValue:
    semantic = column.semantic
    if isinstance(semantic, Date):
        return parse_date(text)
    if isinstance(semantic, Timestamp):
        return parse_timestamp(text, semantic.unit)

    storage = column.storage
    if storage is StorageType.BYTE_STRING:
        # Arrow null columns hold no values at all.
        return None if column.physical == "null" else text
    if storage is StorageType.BOOLEAN:
        return parse_bool(text)
    if storage is StorageType.INT64:
        as_int = parse_int(text, _INT_BOUNDS.get(column.physical or "int64", _INT64_BOUNDS))
        if as_int is None and widened:
            as_bool = parse_bool(text)
            return None if as_bool is None else int(as_bool)
        return as_int
    # FLOAT64
    as_float = parse_float(text)
    if as_float is None and widened:
        as_bool = parse_bool(text)
        return None if as_bool is None else float(as_bool)
    if (
        as_float is not None
        and column.physical in _SINGLE_PRECISION
        and math.isfinite(as_float)
        and abs(as_float) > _FLOAT32_MAX
    ):
        return None
    return as_float


def convert_cell(
    text: str,
    column: ColumnDescriptor,
    row: int,
    *,
    widened: bool = False,
) -> CellValue:
    """
    Convert CSV cell text to the column's storage value.

    Args:
        text (str): Raw cell text.
        column (ColumnDescriptor): Target column.
        row (int): 1-based data row number used in error reports.
        widened (bool): Accept values of a lower widening rank (boolean literals in
            numeric columns). Set for inferred schemas only.

    Returns:
        CellValue: None for empty text in nullable columns, the zero value for empty
        text in non-nullable columns, otherwise the parsed value.

    Raises:
        TypeConversionError: If the text does not parse as the column's type.

    Examples:
        >>> from remblob.core.schema import ColumnDescriptor, Date
        >>> from remblob.core.grammar import StorageType
        >>> convert_cell("2025-08-13", ColumnDescriptor("d", StorageType.INT64, Date()), 1)
        20313
    """
    if text == "":
        return None if column.nullable else zero_value(column)
    value = _convert(text, column, widened)
    if value is None:
        raise TypeConversionError(column.name, row, text, column.describe())
    return value
