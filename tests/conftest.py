"""Shared fixtures for reconstruction and scraping tests."""

from __future__ import annotations

from typing import List

import pytest

from tests.utils import HEADER_CELLS, player_cells
from wbb_scraper.schema import TableSchema, wbb_season_schema


@pytest.fixture
def schema() -> TableSchema:
    return wbb_season_schema()


@pytest.fixture
def header_cells() -> List[str]:
    return list(HEADER_CELLS)


@pytest.fixture
def three_player_cells() -> List[str]:
    """Three players; the second and third have no games-started value."""
    return (
        player_cells()
        + player_cells(number="3", name="Mary\xa0Jones\n", gs="", fg="90-200", fg3="0-4", ft="30-41", pts="210")
        + player_cells(number="00", name="AnnLee", gs="-", fg="12-30", fg3="5-15", ft="2-2", pts="31")
    )
