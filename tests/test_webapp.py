"""Tests for the stats browser API."""

from __future__ import annotations

import csv
import io
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tests.utils import HEADER_CELLS, player_cells
from wbb_scraper.reconstructor import reconstruct
from wbb_scraper.storage import get_engine, get_session_factory, upsert_table
from webapp.main import create_app

BATCH = datetime(2024, 3, 20, tzinfo=timezone.utc)


@pytest.fixture
def client(tmp_path: Path, schema) -> TestClient:
    db_path = str(tmp_path / "stats.db")
    SessionFactory = get_session_factory(db_path)
    psu = reconstruct(
        player_cells(name="JaneSmith", pts="400") + player_cells(name="AnnLee", pts="510"),
        HEADER_CELLS,
        schema,
        {"team": "Penn State", "conference": "Big Ten", "season": "2023-24"},
    )
    uconn = reconstruct(
        player_cells(name="PaigeBueckers", pts="650"),
        HEADER_CELLS,
        schema,
        {"team": "UConn", "conference": "Big East", "season": "2023-24"},
    )
    with SessionFactory() as session:
        upsert_table(session, psu, BATCH)
        upsert_table(session, uconn, BATCH)
        session.commit()
    return TestClient(create_app(get_engine(db_path)))


def test_teams_lists_player_counts(client: TestClient) -> None:
    response = client.get("/api/teams")

    assert response.status_code == 200
    assert response.json() == [
        {"name": "UConn", "conference": "Big East", "players": 1},
        {"name": "Penn State", "conference": "Big Ten", "players": 2},
    ]


def test_players_filter_and_sort(client: TestClient) -> None:
    everyone = client.get("/api/players", params={"sort": "pts"}).json()
    big_ten = client.get("/api/players", params={"conference": "Big Ten"}).json()
    keyword = client.get("/api/players", params={"player": "Lee"}).json()

    assert [row["player"] for row in everyone] == ["Paige Bueckers", "Ann Lee", "Jane Smith"]
    assert [row["player"] for row in big_ten] == ["Ann Lee", "Jane Smith"]
    assert [row["team"] for row in keyword] == ["Penn State"]
    assert everyone[0]["fgm"] == 150


def test_players_rejects_unknown_sort(client: TestClient) -> None:
    response = client.get("/api/players", params={"sort": "player"})

    assert response.status_code == 400


def test_export_streams_csv(client: TestClient) -> None:
    response = client.get("/export", params={"team": "Penn State", "sort": "pts"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert [row["player"] for row in rows] == ["Ann Lee", "Jane Smith"]
    assert rows[0]["pts"] == "510"
    assert list(rows[0])[:3] == ["team", "conference", "season"]
