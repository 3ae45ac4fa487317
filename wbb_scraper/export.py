"""
CSV export of reconstructed tables.

The writer emits identity columns first, then schema columns in order. The
reader re-coerces schema columns with the same rules used during
reconstruction and leaves any leading identity columns as text, so a table
written and read back yields the same values in the same order.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, TextIO

from .parser import coerce_value
from .schema import Table, TableSchema


def write_rows(handle: TextIO, columns: Sequence[str], rows: Iterable[Sequence[object]], include_header: bool = True) -> int:
    """Write rows to an open text handle; returns the number of data rows."""
    writer = csv.writer(handle)
    if include_header:
        writer.writerow(columns)
    count = 0
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
        count += 1
    return count


def write_csv(table: Table, output_path: Path, include_header: bool = True) -> Path:
    """Write a reconstructed table to `output_path`, creating parent directories."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8", newline="") as handle:
        write_rows(handle, table.columns, table.rows(), include_header=include_header)
    return output_path


def read_csv(input_path: Path, schema: TableSchema) -> List[Dict[str, object]]:
    """
    Parse a CSV written by `write_csv` back into typed dictionaries.

    Columns not declared by the schema are treated as identity fields and
    kept verbatim.
    """
    columns = {column.name: column for column in schema.final_columns}
    with input_path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.reader(handle)
        header = next(reader, None)
        if header is None:
            return []
        missing = [name for name in columns if name not in header]
        if missing:
            raise ValueError(f"{input_path} is missing schema columns: {', '.join(missing)}")

        parsed: List[Dict[str, object]] = []
        for row_index, row in enumerate(reader):
            item: Dict[str, object] = {}
            for name, value in zip(header, row):
                column = columns.get(name)
                item[name] = value if column is None else coerce_value(value, column, row_index)
            parsed.append(item)
    return parsed
