"""
Schema and record model for reconstructed stat tables.

A `TableSchema` is declared by the caller and is the only authority on column
order and typing; scraped header text is never used for that. Pydantic models
keep schemas immutable and reject inconsistent declarations early, for
example a split rule on a string column or two columns sharing a name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import HeaderMismatch, RowError

ColumnType = Literal["integer", "real", "string"]
NUMERIC_TYPES = ("integer", "real")


class SplitRule(BaseModel):
    """One scraped cell encoding two values, e.g. ``"7-15"`` for made-attempted."""

    model_config = ConfigDict(frozen=True)

    delimiter: str = Field("-", min_length=1)
    left: str = Field(..., min_length=1)
    right: str = Field(..., min_length=1)


class ColumnSpec(BaseModel):
    """
    Declaration of one scraped column.

    Attributes
    ----------
    name:
        Output name; replaced by the split rule's names when `split` is set.
    type:
        Semantic type every output value is coerced to.
    split:
        Optional compound-cell rule applied before coercion.
    default:
        Value used when the token is missing. Leave unset unless the column
        genuinely means zero when blank.
    name_like:
        Enables the name cleanup heuristics of `parser.normalize_text`.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    type: ColumnType = "integer"
    split: Optional[SplitRule] = None
    default: Optional[Union[int, float, str]] = None
    name_like: bool = False

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @model_validator(mode="after")
    def _check_consistency(self) -> "ColumnSpec":
        if self.split is not None and self.type not in NUMERIC_TYPES:
            raise ValueError(f"column {self.name!r}: split rules require a numeric type")
        if self.default is not None:
            if self.type == "integer" and (isinstance(self.default, bool) or not isinstance(self.default, int)):
                raise ValueError(f"column {self.name!r}: default must be an integer")
            if self.type == "real" and not isinstance(self.default, (int, float)):
                raise ValueError(f"column {self.name!r}: default must be a number")
            if self.type == "string" and not isinstance(self.default, str):
                raise ValueError(f"column {self.name!r}: default must be text")
        return self


@dataclass(frozen=True)
class FinalColumn:
    """A post-split column; `source` names the scraped column it came from."""

    name: str
    type: ColumnType
    source: str
    default: Optional[Union[int, float, str]] = None
    name_like: bool = False


class TableSchema(BaseModel):
    """Ordered, immutable column declarations for one reconstructed table."""

    model_config = ConfigDict(frozen=True)

    name: str = "table"
    columns: Tuple[ColumnSpec, ...] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _check_unique_names(self) -> "TableSchema":
        seen = set()
        for column in self.final_columns:
            if column.name in seen:
                raise ValueError(f"duplicate column name {column.name!r} in schema {self.name!r}")
            seen.add(column.name)
        return self

    @property
    def flat_column_count(self) -> int:
        """Number of scraped cells per row, before compound splitting."""
        return len(self.columns)

    @property
    def final_columns(self) -> Tuple[FinalColumn, ...]:
        resolved: List[FinalColumn] = []
        for column in self.columns:
            if column.split is None:
                resolved.append(
                    FinalColumn(column.name, column.type, column.name, column.default, column.name_like)
                )
                continue
            for part in (column.split.left, column.split.right):
                resolved.append(FinalColumn(part, column.type, column.name, column.default))
        return tuple(resolved)

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(column.name for column in self.final_columns)


@dataclass(frozen=True)
class Record:
    """One reconstructed entity, e.g. a player's season line."""

    row_index: int
    identity: Mapping[str, str]
    values: Mapping[str, object]

    def __getitem__(self, key: str) -> object:
        if key in self.identity:
            return self.identity[key]
        return self.values[key]

    def as_dict(self) -> Dict[str, object]:
        """Identity fields first, then values in schema order."""
        merged: Dict[str, object] = dict(self.identity)
        merged.update(self.values)
        return merged


@dataclass
class Table:
    """
    Records sharing one schema, as returned by the reconstructor.

    `row_errors` is only populated under the skip policy; `warnings` holds
    non-fatal header mismatches.
    """

    columns: Tuple[str, ...]
    records: List[Record] = field(default_factory=list)
    header_cells: Tuple[str, ...] = ()
    row_errors: List[RowError] = field(default_factory=list)
    warnings: List[HeaderMismatch] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def rows(self) -> List[List[object]]:
        """Records as plain value lists aligned with `columns`."""
        return [[record[name] for name in self.columns] for record in self.records]


def _counting(name: str) -> ColumnSpec:
    return ColumnSpec(name=name, type="integer")


def _rate(name: str) -> ColumnSpec:
    return ColumnSpec(name=name, type="real")


def wbb_season_schema() -> TableSchema:
    """
    Individual overall season statistics as published on women's basketball
    team stats pages (32 scraped columns, 35 after splitting).
    """
    return TableSchema(
        name="wbb_season",
        columns=(
            ColumnSpec(name="number", type="string"),
            ColumnSpec(name="player", type="string", name_like=True),
            _counting("gp"),
            ColumnSpec(name="gs", type="integer", default=0),
            _counting("min"),
            _rate("min_avg"),
            ColumnSpec(name="fg", type="integer", split=SplitRule(delimiter="-", left="fgm", right="fga")),
            _rate("fg_pct"),
            ColumnSpec(name="fg3", type="integer", split=SplitRule(delimiter="-", left="fg3m", right="fg3a")),
            _rate("fg3_pct"),
            ColumnSpec(name="ft", type="integer", split=SplitRule(delimiter="-", left="ftm", right="fta")),
            _rate("ft_pct"),
            _counting("oreb"),
            _counting("dreb"),
            _counting("reb"),
            _rate("reb_avg"),
            _counting("pf"),
            _counting("dq"),
            _counting("ast"),
            _counting("tov"),
            _counting("blk"),
            _counting("stl"),
            _counting("pts"),
            _rate("pts_avg"),
            _rate("ast_avg"),
            _rate("tov_avg"),
            _rate("ast_tov"),
            _rate("stl_avg"),
            _rate("blk_avg"),
            _rate("pts_per_40"),
            _counting("dbl_dbl"),
            _counting("trp_dbl"),
        ),
    )


SCHEMAS: Dict[str, Callable[[], TableSchema]] = {
    "wbb_season": wbb_season_schema,
}


def get_schema(name: str) -> TableSchema:
    try:
        factory = SCHEMAS[name]
    except KeyError:
        raise ValueError(f"Unknown schema: {name!r}. Known schemas: {', '.join(sorted(SCHEMAS))}") from None
    return factory()
