"""
Rebuild a typed table from a flat stream of scraped cells.

`reconstruct` is a pure function of its inputs: reshape, split, normalize,
coerce, then attach the caller's identity fields as leading columns. Header
text is only cross-checked and logged; the declared schema alone decides
column order and types.
"""

from __future__ import annotations

import logging
from typing import List, Literal, Mapping, Optional, Sequence

from .errors import HeaderMismatch, RowError
from .parser import coerce, expand_row, normalize_row, normalize_text, reshape
from .schema import Record, Table, TableSchema

logger = logging.getLogger(__name__)

RowErrorPolicy = Literal["abort", "skip"]
ROW_ERROR_POLICIES = ("abort", "skip")


def check_headers(header_cells: Sequence[str], schema: TableSchema) -> Optional[HeaderMismatch]:
    """Return a warning when the header count disagrees with the schema."""
    if len(header_cells) == schema.flat_column_count:
        return None
    return HeaderMismatch(expected=schema.flat_column_count, actual=len(header_cells))


class TableReconstructor:
    """
    Stateless reconstruction of one schema's tables.

    Parameters
    ----------
    schema
        Column declarations; treated as read-only.
    on_row_error
        ``"abort"`` re-raises the first row error, ``"skip"`` drops the
        offending row and collects the error on `Table.row_errors`.
    """

    def __init__(self, schema: TableSchema, on_row_error: RowErrorPolicy = "abort"):
        if on_row_error not in ROW_ERROR_POLICIES:
            raise ValueError(f"on_row_error must be one of {ROW_ERROR_POLICIES}, got {on_row_error!r}")
        self.schema = schema
        self.on_row_error = on_row_error

    def reconstruct(
        self,
        cells: Sequence[str],
        header_cells: Sequence[str],
        identity: Mapping[str, str],
    ) -> Table:
        collisions = sorted(set(identity) & set(self.schema.column_names))
        if collisions:
            raise ValueError(f"Identity fields collide with schema columns: {', '.join(collisions)}")

        headers = tuple(normalize_text(cell) for cell in header_cells)
        table = Table(columns=tuple(identity) + self.schema.column_names, header_cells=headers)

        mismatch = check_headers(headers, self.schema)
        if mismatch is not None:
            logger.warning("%s; headers=%s", mismatch, list(headers))
            table.warnings.append(mismatch)

        grid = reshape(cells, self.schema.flat_column_count)
        records: List[Record] = []
        for row_index, row in enumerate(grid):
            try:
                tokens = normalize_row(expand_row(row, self.schema, row_index), self.schema)
                values = coerce(tokens, self.schema, row_index)
            except RowError as exc:
                if self.on_row_error == "abort":
                    raise
                logger.warning("Skipping row %s: %s", row_index, exc)
                table.row_errors.append(exc)
                continue
            records.append(Record(row_index=row_index, identity=dict(identity), values=values))

        table.records = records
        logger.debug(
            "Reconstructed %s rows (%s skipped) for schema %s",
            len(records),
            len(table.row_errors),
            self.schema.name,
        )
        return table


def reconstruct(
    cells: Sequence[str],
    header_cells: Sequence[str],
    schema: TableSchema,
    identity: Mapping[str, str],
    on_row_error: RowErrorPolicy = "abort",
) -> Table:
    """Convenience wrapper around `TableReconstructor`."""
    return TableReconstructor(schema, on_row_error=on_row_error).reconstruct(cells, header_cells, identity)
