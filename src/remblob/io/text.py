"""
CSV text reader and writer.

- write_text(): header plus one line per row, cells rendered by remblob.core.values.
- read_text(): header plus equal-arity data rows; rows of another arity are dropped and
  reported as ArityMismatch records.

CSV dialect: comma separated, double-quote escaping (RFC 4180), "\n" line endings on write.
Blank lines carry no record and are not counted as data rows.
read_text() raises the csv module field size limit to the input length before parsing.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from remblob.core.constants import CSV_DELIMITER, CSV_LINE_TERMINATOR
from remblob.core.errors import ArityMismatch, EmptyInputError, MalformedInputError
from remblob.core.schema import Schema
from remblob.core.typing import Row, TextRow
from remblob.core.values import format_cell

logger = logging.getLogger(__name__)

_BOM = "\ufeff"


@dataclass(frozen=True, slots=True)
class TextTable:
    """
    Parsed CSV text.

    Attributes:
        header (TextRow): Column names in text order.
        rows (tuple[TextRow, ...]): Kept data rows, each with len(header) cells.
        row_numbers (tuple[int, ...]): 1-based data row number of each kept row.
        skipped (tuple[ArityMismatch, ...]): Dropped rows.
    """

    header: TextRow
    rows: tuple[TextRow, ...]
    row_numbers: tuple[int, ...]
    skipped: tuple[ArityMismatch, ...] = ()


def write_text(schema: Schema, rows: Iterable[Row], order: Sequence[int] | None = None) -> str:
    """
    Render rows as CSV text.

    Args:
        schema (Schema): Columns the rows are aligned with.
        rows (Iterable[Row]): Storage values per row.
        order (Sequence[int] | None): Display order of schema positions; physical by default.

    Returns:
        str: Header line followed by one line per row.
    """
    positions = list(order) if order is not None else list(range(len(schema)))
    buf = io.StringIO()
    writer = csv.writer(
        buf,
        delimiter=CSV_DELIMITER,
        quotechar='"',
        lineterminator=CSV_LINE_TERMINATOR,
        quoting=csv.QUOTE_MINIMAL,
    )
    writer.writerow([schema[i].name for i in positions])
    for row in rows:
        writer.writerow([format_cell(row[i], schema[i]) for i in positions])
    return buf.getvalue()


def read_text(text: str) -> TextTable:
    """
    Parse CSV text into a header and equal-arity rows.

    Raises:
        EmptyInputError: If the text holds no header record.
        MalformedInputError: If the csv module rejects the text.
    """
    if text.startswith(_BOM):
        text = text[len(_BOM):]
    # A single cell may be as long as the whole text.
    if len(text) >= csv.field_size_limit():
        csv.field_size_limit(len(text) + 1)
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=CSV_DELIMITER, quotechar='"')

    header: TextRow | None = None
    rows: list[TextRow] = []
    numbers: list[int] = []
    skipped: list[ArityMismatch] = []
    number = 0
    try:
        for record in reader:
            if not record:
                continue
            if header is None:
                header = tuple(record)
                continue
            number += 1
            if len(record) != len(header):
                skipped.append(ArityMismatch(number, len(header), len(record)))
                logger.debug(
                    "dropping row %d: %d cells, header has %d", number, len(record), len(header)
                )
                continue
            rows.append(tuple(record))
            numbers.append(number)
    except csv.Error as exc:
        raise MalformedInputError(f"invalid CSV text near line {reader.line_num}: {exc}") from exc

    if header is None:
        raise EmptyInputError("CSV text has no header row")
    return TextTable(header, tuple(rows), tuple(numbers), tuple(skipped))
