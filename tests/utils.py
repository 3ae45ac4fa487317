"""Test helpers: sample stat rows and fake Playwright elements."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

HEADER_CELLS = [
    "#", "Player", "GP", "GS", "MIN", "AVG", "FG-FGA", "FG%", "3FG-FGA", "3FG%",
    "FT-FTA", "FT%", "OFF", "DEF", "TOT", "AVG", "PF", "DQ", "A", "TO",
    "BLK", "STL", "PTS", "AVG", "A/G", "TO/G", "A/TO", "STL/G", "BLK/G", "PTS/40",
    "DBL", "TRP",
]


def player_cells(
    number: str = "12",
    name: str = "JaneSmith.",
    gs: str = "28",
    fg: str = "150-320",
    fg3: str = "40-110",
    ft: str = "60-75",
    pts: str = "400",
) -> List[str]:
    """One player's 32 scraped cells as they appear on the page."""
    return [
        number, name, "30", gs, "900", "30.0", fg, ".469", fg3, ".364",
        ft, ".800", "30", "90", "120", "4.0", "55", "1", "80", "60",
        "10", "35", pts, "13.3", "2.7", "2.0", "1.3", "1.2", "0.3", "17.8",
        "5", "0",
    ]


class FakeElement:
    """
    Minimal stand-in for a Playwright ElementHandle.

    `children` maps a CSS selector string to the elements it returns.
    """

    def __init__(self, text: str = "", children: Optional[Dict[str, Sequence["FakeElement"]]] = None):
        self._text = text
        self._children = children or {}
        self.queries: List[str] = []

    def inner_text(self) -> str:
        return self._text

    def query_selector_all(self, selector: str) -> List["FakeElement"]:
        self.queries.append(selector)
        return list(self._children.get(selector, []))


def cells(*texts: str) -> List[FakeElement]:
    return [FakeElement(text) for text in texts]
