"""
Error types raised while scraping and reconstructing stat tables.

Two families live here:
    - SelectorValidationError: the page did not match the configured selectors.
    - ReconstructionError and subclasses: scraped text could not be turned
      into a valid table. Structural errors (ShapeMismatch) abort a whole
      page, row errors (CompoundFieldMalformed, CoercionError) carry enough
      context for the caller to skip the row or abort.

HeaderMismatch is a warning, never raised by the reconstructor.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class SelectorValidationError(RuntimeError):
    """Raised when configured selectors fail to match page elements."""

    def __init__(self, message: str, suggestion: str):
        super().__init__(message)
        self.suggestion = suggestion


class ReconstructionError(Exception):
    """Base class for failures turning scraped cells into a table."""

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value!r}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class ShapeMismatch(ReconstructionError):
    """The flat cell stream does not divide evenly into rows."""

    def __init__(self, cell_count: int, column_count: int, *, row_index: Optional[int] = None):
        self.cell_count = cell_count
        self.column_count = column_count
        self.row_index = row_index
        context: Dict[str, Any] = {"cell_count": cell_count, "column_count": column_count}
        if row_index is not None:
            context["row_index"] = row_index
            message = "Row token count does not match the schema column count"
        else:
            message = "Cell count is not an exact multiple of the flat column count"
        super().__init__(message, context=context)


class RowError(ReconstructionError):
    """A single reconstructed row could not be validated."""

    def __init__(
        self,
        message: str,
        *,
        row_index: Optional[int],
        column: Optional[str],
        raw_value: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.row_index = row_index
        self.column = column
        self.raw_value = raw_value
        merged: Dict[str, Any] = {"row_index": row_index, "column": column, "raw_value": raw_value}
        merged.update(context or {})
        super().__init__(message, context=merged)


class CompoundFieldMalformed(RowError):
    """A split-tagged cell is not of the form ``value<delimiter>value``."""

    def __init__(
        self,
        raw_value: str,
        delimiter: str,
        *,
        row_index: Optional[int] = None,
        column: Optional[str] = None,
    ):
        self.delimiter = delimiter
        super().__init__(
            f"Expected exactly one {delimiter!r} between two values",
            row_index=row_index,
            column=column,
            raw_value=raw_value,
            context={"delimiter": delimiter},
        )


class CoercionError(RowError):
    """A token cannot be converted to its declared column type."""

    def __init__(
        self,
        raw_value: str,
        expected_type: str,
        *,
        row_index: Optional[int] = None,
        column: Optional[str] = None,
    ):
        self.expected_type = expected_type
        super().__init__(
            f"Cannot convert value to {expected_type}",
            row_index=row_index,
            column=column,
            raw_value=raw_value,
            context={"expected_type": expected_type},
        )


class HeaderMismatch(UserWarning):
    """Scraped header count disagrees with the schema's flat column count."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Header has {actual} cells but the schema declares {expected} columns")
