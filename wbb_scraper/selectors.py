"""
Structural selectors for women's basketball stats pages.

Pydantic models are used so that a missing or malformed selector raises a
validation error when settings load, not halfway through a scrape. Each
strategy locates one structural group on the page (a section, a table) and
returns the text of the cells inside it in document order. Page-structure
drift should only ever require editing these values, never the
reconstruction logic.

Strategies:
    - IndexSelector: the Nth element matching a CSS selector.
    - AttributeSelector: the element carrying a given attribute value.
    - TextMatchSelector: the first element whose text contains a phrase.

A `target` is anything exposing Playwright's `query_selector_all` and
`inner_text` (a Page, a Frame, an ElementHandle).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .errors import SelectorValidationError
from .schema import SCHEMAS


def _collapse_lines(text: Optional[str]) -> str:
    if not text:
        return ""
    return " ".join(line.strip() for line in text.splitlines()).strip()


class _GroupSelector(BaseModel, ABC):
    """Base for strategies; subclasses define how the group is located."""

    cells: str = Field(
        "td",
        description="Selector for the cells inside the located group, in row-major order.",
    )

    @field_validator("cells", mode="before")
    @classmethod
    def _strip_cells(cls, value):
        """Normalize accidental whitespace in selector definitions."""
        if isinstance(value, str):
            return value.strip()
        return value

    @abstractmethod
    def locate(self, target: Any) -> Any:
        """Return the element holding the table cells."""

    def extract_texts(self, target: Any) -> List[str]:
        """Return the text of every cell inside the located group."""
        group = self.locate(target)
        return [_collapse_lines(cell.inner_text()) for cell in group.query_selector_all(self.cells)]


class IndexSelector(_GroupSelector):
    """Pick the `index`-th match of `group` (0-based, negative counts from the end)."""

    kind: Literal["index"] = "index"
    group: str = Field(..., min_length=1, description="CSS selector matching the candidate groups.")
    index: int = 0

    def locate(self, target: Any) -> Any:
        groups = target.query_selector_all(self.group)
        if not -len(groups) <= self.index < len(groups):
            raise SelectorValidationError(
                f"Selector {self.group!r} matched {len(groups)} elements, index {self.index} is out of range",
                "Re-count the structural groups on the page and update IndexSelector.index.",
            )
        return groups[self.index]


class AttributeSelector(_GroupSelector):
    """Pick the first element whose `attribute` equals `value`."""

    kind: Literal["attribute"] = "attribute"
    attribute: str = Field(..., min_length=1)
    value: str
    tag: str = "*"

    @property
    def css(self) -> str:
        escaped = self.value.replace("\\", "\\\\").replace('"', '\\"')
        return f'{self.tag}[{self.attribute}="{escaped}"]'

    def locate(self, target: Any) -> Any:
        matches = target.query_selector_all(self.css)
        if not matches:
            raise SelectorValidationError(
                f"No element found for {self.css}",
                "Confirm the attribute name and value in the browser inspector.",
            )
        return matches[0]


class TextMatchSelector(_GroupSelector):
    """Pick the first `group` element whose text contains `contains`."""

    kind: Literal["text"] = "text"
    group: str = Field(..., min_length=1)
    contains: str = Field(..., min_length=1)
    case_sensitive: bool = False

    def _matches(self, text: str) -> bool:
        if self.case_sensitive:
            return self.contains in text
        return self.contains.casefold() in text.casefold()

    def locate(self, target: Any) -> Any:
        for element in target.query_selector_all(self.group):
            if self._matches(_collapse_lines(element.inner_text())):
                return element
        raise SelectorValidationError(
            f"No {self.group!r} element contains the text {self.contains!r}",
            "Check the section heading on the live page; titles are matched as substrings.",
        )


SelectorStrategy = Annotated[
    Union[IndexSelector, AttributeSelector, TextMatchSelector],
    Field(discriminator="kind"),
]


class TableSelectors(BaseModel):
    """
    Where the player cells and the header cells live.

    `rows` must select data cells only. Footer rows such as team totals or
    opponent lines are excluded here (for example ``tbody tr:not(.totals) td``)
    so the reconstructor never has to guess a row count.
    """

    rows: SelectorStrategy
    headers: Optional[SelectorStrategy] = None


class PageSelectors(BaseModel):
    """
    Top-level configuration for a single page harvest.

    Attributes
    ----------
    url:
        Page URL to visit. Must be reachable without authentication.
    wait_for:
        Optional selector awaited after navigation, for pages rendering
        their tables client-side.
    identity:
        Fields attached verbatim as leading columns to every record.
    schema_name:
        Key into `schema.SCHEMAS`.
    table:
        `TableSelectors` describing where cells and headers are.
    """

    url: str
    wait_for: Optional[str] = None
    identity: Dict[str, str] = Field(default_factory=dict)
    schema_name: str = "wbb_season"
    table: TableSelectors

    @field_validator("schema_name")
    @classmethod
    def _known_schema(cls, value: str) -> str:
        if value not in SCHEMAS:
            raise ValueError(f"unknown schema {value!r}, expected one of: {', '.join(sorted(SCHEMAS))}")
        return value


def get_default_page() -> PageSelectors:
    """
    Individual season statistics of one team on a Sidearm-style athletics site.

    The "Individual Overall" section holds one table; its last two body rows
    are team totals and opponents, marked with the ``totals`` class.
    """
    return PageSelectors(
        url="https://gopsusports.com/sports/womens-basketball/stats/2023-24",
        wait_for="section#individual-overall table",
        identity={"team": "Penn State", "conference": "Big Ten"},
        table=TableSelectors(
            rows=AttributeSelector(
                attribute="id",
                value="individual-overall",
                tag="section",
                cells="table tbody tr:not(.totals) td",
            ),
            headers=AttributeSelector(
                attribute="id",
                value="individual-overall",
                tag="section",
                cells="table thead tr:last-child th",
            ),
        ),
    )


def get_all_pages(settings: Optional[Dict[str, Any]] = None) -> List[PageSelectors]:
    """
    Return the pages to process.

    Pages listed under ``pages:`` in the settings file take precedence; the
    single default page is used when none are configured.
    """
    configured = (settings or {}).get("pages") or []
    if not configured:
        return [get_default_page()]
    return [PageSelectors.model_validate(item) for item in configured]
