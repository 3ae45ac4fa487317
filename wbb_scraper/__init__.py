"""
Women's basketball season stats scraper package.

The modules expose:
    - schema: Column declarations, records and tables.
    - parser: Reshaping, compound splitting, text cleanup and type coercion.
    - reconstructor: Rebuilds a typed table from a flat cell stream.
    - errors: Structural, per-row and selector errors.
    - selectors: Structural selector strategies and page configuration.
    - browser: Playwright helpers for fetching pages.
    - export: CSV writer and reader.
    - storage: SQLAlchemy models and database helpers.
    - job: End-to-end scraping workflow orchestrating the above pieces.
"""

from .reconstructor import TableReconstructor, reconstruct
from .schema import ColumnSpec, Record, SplitRule, Table, TableSchema, wbb_season_schema

__all__ = [
    "ColumnSpec",
    "Record",
    "SplitRule",
    "Table",
    "TableReconstructor",
    "TableSchema",
    "reconstruct",
    "wbb_season_schema",
]
