"""
Lightweight typing aliases used across the codec.

Provides aliases for cell values, rows and footer metadata. This module contains no
runtime logic and is zero-IO.

Notes:
    - A Row is a tuple aligned with a Schema (binary side) or a CSV header (text side).
    - Metadata keeps footer key/value pairs in file order.
"""

from __future__ import annotations

from typing import TypeAlias

__all__ = [
    "CellValue",
    "Row",
    "TextRow",
    "Metadata",
]

# Tagged cell value: absent, boolean, integer, float or string.
CellValue: TypeAlias = bool | int | float | str | None

Row: TypeAlias = tuple[CellValue, ...]
TextRow: TypeAlias = tuple[str, ...]

Metadata: TypeAlias = tuple[tuple[str, str], ...]
