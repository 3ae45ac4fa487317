"""
Utilities for turning scraped stat-table text into typed values.

The functions here focus on:
    - Reshaping the flat cell stream into rows of a fixed width.
    - Splitting compound "made-attempted" cells into two values.
    - Cleaning irregular whitespace and name concatenation artifacts.
    - Coercing cleaned tokens into the declared column types.

Every function is pure; none of them touch the network or shared state.
"""

from __future__ import annotations

import math
import re
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .errors import CoercionError, CompoundFieldMalformed, ShapeMismatch
from .schema import FinalColumn, TableSchema

MISSING_TOKENS = {"", "-", "--", "—", "NA", "N/A"}

# Control characters and irregular spaces become a plain space; zero-width
# characters are dropped.
_WHITESPACE_TRANSLATION: Dict[int, Optional[str]] = {code: " " for code in range(0x00, 0x20)}
_WHITESPACE_TRANSLATION.update({0x7F: " "})
_WHITESPACE_TRANSLATION.update(
    {code: " " for code in (0x85, 0xA0, 0x1680, 0x2028, 0x2029, 0x202F, 0x205F, 0x3000)}
)
_WHITESPACE_TRANSLATION.update({code: " " for code in range(0x2000, 0x200B)})
_WHITESPACE_TRANSLATION.update({code: None for code in (0x200B, 0x200C, 0x200D, 0x2060, 0xFEFF)})

_WHITESPACE_RUN_RE = re.compile(r" {2,}")
_CASE_TRANSITION_RE = re.compile(r"(?<=[a-zß-öø-ÿ])(?=[A-ZÀ-ÖØ-Þ])")
NAME_STRIP_CHARS = " .,;:*"


def reshape(cells: Sequence[str], flat_column_count: int) -> List[List[str]]:
    """
    Partition a flat, row-major cell stream into rows of `flat_column_count`.

    Raises `ShapeMismatch` when the stream does not divide evenly; a truncated
    or padded result would shift every field of every later row.
    """
    if flat_column_count <= 0:
        raise ValueError(f"flat_column_count must be positive, got {flat_column_count}")
    if len(cells) % flat_column_count:
        raise ShapeMismatch(len(cells), flat_column_count)
    return [list(cells[start : start + flat_column_count]) for start in range(0, len(cells), flat_column_count)]


def split_compound_field(
    token: str,
    delimiter: str,
    *,
    column: Optional[str] = None,
    row_index: Optional[int] = None,
) -> Tuple[str, str]:
    """Split ``"7-15"`` into ``("7", "15")``; anything else is malformed."""
    if not delimiter:
        raise ValueError("delimiter must not be empty")
    if token.count(delimiter) != 1:
        raise CompoundFieldMalformed(token, delimiter, row_index=row_index, column=column)
    left, right = (part.strip() for part in token.split(delimiter))
    if not left or not right:
        raise CompoundFieldMalformed(token, delimiter, row_index=row_index, column=column)
    return left, right


def normalize_text(token: str, name_like: bool = False) -> str:
    """
    Best-effort cleanup of one scraped token.

    Rules, applied in order:
        1. control characters and irregular spaces become spaces, zero-width
           characters are removed;
        2. whitespace runs collapse to one space and the ends are trimmed;
        3. for name-like fields only, a space is inserted at each lower-to-upper
           letter transition ("JohnSmith" -> "John Smith") and stray
           punctuation is stripped from both ends.

    Applying it twice gives the same result as applying it once.
    """
    text = token.translate(_WHITESPACE_TRANSLATION)
    text = _WHITESPACE_RUN_RE.sub(" ", text).strip()
    if name_like:
        text = _CASE_TRANSITION_RE.sub(" ", text)
        text = text.strip(NAME_STRIP_CHARS)
    return text


def expand_row(row: Sequence[str], schema: TableSchema, row_index: int = 0) -> List[str]:
    """Apply the schema's split rules to one reshaped row."""
    if len(row) != schema.flat_column_count:
        raise ShapeMismatch(len(row), schema.flat_column_count, row_index=row_index)

    expanded: List[str] = []
    for column, token in zip(schema.columns, row):
        if column.split is None:
            expanded.append(token)
            continue
        left, right = split_compound_field(
            token,
            column.split.delimiter,
            column=column.name,
            row_index=row_index,
        )
        expanded.extend((left, right))
    return expanded


def normalize_row(tokens: Sequence[str], schema: TableSchema) -> List[str]:
    """Clean every post-split token according to its column."""
    return [
        normalize_text(token, name_like=column.name_like)
        for column, token in zip(schema.final_columns, tokens)
    ]


def coerce_value(token: str, column: FinalColumn, row_index: Optional[int] = None) -> Union[int, float, str]:
    """Convert one cleaned token to the column's declared type."""
    raw = token.strip()
    if raw in MISSING_TOKENS:
        if column.default is not None:
            return column.default
        if column.type == "string":
            return raw
        raise CoercionError(token, column.type, row_index=row_index, column=column.name)

    if column.type == "string":
        return raw

    numeric = raw.replace(",", "")
    try:
        if column.type == "integer":
            return int(numeric)
        value = float(numeric[:-1] if numeric.endswith("%") else numeric)
    except ValueError:
        raise CoercionError(token, column.type, row_index=row_index, column=column.name) from None
    if not math.isfinite(value):
        raise CoercionError(token, column.type, row_index=row_index, column=column.name)
    return value


def coerce(tokens: Sequence[str], schema: TableSchema, row_index: int = 0) -> Dict[str, object]:
    """
    Convert a post-split row into a mapping of column name to typed value.

    Only columns declaring a `default` tolerate a missing token; every other
    numeric column raises `CoercionError` naming the column and row.
    """
    columns = schema.final_columns
    if len(tokens) != len(columns):
        raise ShapeMismatch(len(tokens), len(columns), row_index=row_index)
    return {column.name: coerce_value(token, column, row_index) for column, token in zip(columns, tokens)}
