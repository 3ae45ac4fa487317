"""Unit tests for structural selector strategies and page configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tests.utils import FakeElement, cells
from wbb_scraper.errors import SelectorValidationError
from wbb_scraper.selectors import (
    AttributeSelector,
    IndexSelector,
    PageSelectors,
    TableSelectors,
    TextMatchSelector,
    _GroupSelector,
    get_all_pages,
    get_default_page,
)


def _page() -> FakeElement:
    schedule = FakeElement("Schedule\nDate Opponent", {"td": cells("Nov 6", "Vs. Towson")})
    overall = FakeElement(
        "Individual Overall\n# Player GP",
        {"td": cells("12", "Smith,\nJane", "30"), "th": cells("#", "Player", "GP")},
    )
    return FakeElement(
        children={
            "section": [schedule, overall],
            'section[id="individual-overall"]': [overall],
        }
    )


def test_index_selector_picks_nth_group() -> None:
    page = _page()

    assert IndexSelector(group="section", index=1).extract_texts(page) == ["12", "Smith, Jane", "30"]
    assert IndexSelector(group="section", index=-2).extract_texts(page) == ["Nov 6", "Vs. Towson"]


def test_index_selector_out_of_range() -> None:
    with pytest.raises(SelectorValidationError) as excinfo:
        IndexSelector(group="section", index=2).locate(_page())

    assert "index 2" in str(excinfo.value)
    assert excinfo.value.suggestion


def test_attribute_selector_builds_css() -> None:
    selector = AttributeSelector(attribute="id", value="individual-overall", tag="section", cells="th")

    assert selector.css == 'section[id="individual-overall"]'
    assert selector.extract_texts(_page()) == ["#", "Player", "GP"]


def test_attribute_selector_escapes_quotes() -> None:
    assert AttributeSelector(attribute="title", value='say "hi"').css == '*[title="say \\"hi\\""]'


def test_attribute_selector_missing_group() -> None:
    with pytest.raises(SelectorValidationError, match="No element found"):
        AttributeSelector(attribute="id", value="missing").locate(_page())


def test_text_match_selector_is_case_insensitive_by_default() -> None:
    page = _page()

    assert TextMatchSelector(group="section", contains="individual overall").extract_texts(page)[0] == "12"
    with pytest.raises(SelectorValidationError):
        TextMatchSelector(group="section", contains="individual overall", case_sensitive=True).locate(page)


def test_selectors_parse_from_settings_by_kind() -> None:
    table = TableSelectors.model_validate(
        {
            "rows": {"kind": "text", "group": "section", "contains": "Overall", "cells": " tbody td "},
            "headers": {"kind": "index", "group": "thead", "index": 0, "cells": "th"},
        }
    )

    assert isinstance(table.rows, TextMatchSelector)
    assert table.rows.cells == "tbody td"
    assert isinstance(table.headers, IndexSelector)


def test_unknown_selector_kind_is_rejected() -> None:
    with pytest.raises(ValidationError):
        TableSelectors.model_validate({"rows": {"kind": "xpath", "group": "//section"}})


def test_get_all_pages_prefers_configured_pages() -> None:
    settings = {
        "pages": [
            {
                "url": "https://example.edu/stats",
                "identity": {"team": "Example", "conference": "Ivy"},
                "table": {"rows": {"kind": "index", "group": "table", "index": 0}},
            }
        ]
    }

    pages = get_all_pages(settings)

    assert len(pages) == 1
    assert isinstance(pages[0], PageSelectors)
    assert pages[0].identity["team"] == "Example"
    assert pages[0].table.headers is None
    assert get_all_pages({}) == [get_default_page()]


def test_page_rejects_unknown_schema_name() -> None:
    page = {"url": "https://example.edu/stats", "table": {"rows": {"kind": "index", "group": "table"}}}

    assert PageSelectors.model_validate(page).schema_name == "wbb_season"
    with pytest.raises(ValidationError, match="unknown schema 'wbb_game'"):
        PageSelectors.model_validate(dict(page, schema_name="wbb_game"))


def test_group_selector_base_cannot_be_used_directly() -> None:
    with pytest.raises(TypeError):
        _GroupSelector(cells="td")
