"""Unit tests for SQLite persistence of reconstructed tables."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from tests.utils import player_cells
from wbb_scraper.reconstructor import reconstruct
from wbb_scraper.schema import Record
from wbb_scraper.storage import PlayerSeason, Team, get_session_factory, upsert_record, upsert_table

IDENTITY = {"team": "Penn State", "conference": "Big Ten", "season": "2023-24"}
BATCH = datetime(2024, 3, 20, 12, 0, tzinfo=timezone.utc)


def test_upsert_table_is_idempotent(tmp_path: Path, schema, header_cells, three_player_cells) -> None:
    SessionFactory = get_session_factory(str(tmp_path / "db" / "stats.db"))
    table = reconstruct(three_player_cells, header_cells, schema, IDENTITY)

    with SessionFactory() as session:
        first = upsert_table(session, table, BATCH)
        session.commit()
        second = upsert_table(session, table, BATCH)
        session.commit()

        assert (first.created, first.updated) == (3, 0)
        assert (second.created, second.updated) == (0, 3)
        assert session.query(Team).count() == 1
        assert session.query(PlayerSeason).count() == 3

        stored = session.query(PlayerSeason).filter_by(player="Mary Jones").one()
        payload = json.loads(stored.payload)
        assert stored.season == "2023-24"
        assert stored.team.conference == "Big Ten"
        assert list(payload)[:3] == ["team", "conference", "season"]
        assert payload["gs"] == 0
        assert payload["fta"] == 41


def test_upsert_refreshes_changed_stats(tmp_path: Path, schema, header_cells) -> None:
    SessionFactory = get_session_factory(str(tmp_path / "stats.db"))
    before = reconstruct(player_cells(pts="400"), header_cells, schema, IDENTITY)
    after = reconstruct(player_cells(pts="420"), header_cells, schema, IDENTITY)

    with SessionFactory() as session:
        upsert_table(session, before, BATCH)
        upsert_table(session, after, BATCH)
        session.commit()

        (stored,) = session.query(PlayerSeason).all()
        assert json.loads(stored.payload)["pts"] == 420


def test_upsert_record_requires_team_and_player(tmp_path: Path) -> None:
    SessionFactory = get_session_factory(str(tmp_path / "stats.db"))

    with SessionFactory() as session:
        with pytest.raises(ValueError, match="team"):
            upsert_record(session, Record(row_index=0, identity={}, values={"player": "A"}), BATCH)
        with pytest.raises(ValueError, match="player"):
            upsert_record(session, Record(row_index=0, identity={"team": "X"}, values={}), BATCH)


def test_teammates_sharing_a_name_are_kept_apart(tmp_path: Path, schema, header_cells) -> None:
    SessionFactory = get_session_factory(str(tmp_path / "stats.db"))
    table = reconstruct(
        player_cells(number="5", name="JaneSmith") + player_cells(number="21", name="Jane Smith", pts="88"),
        header_cells,
        schema,
        IDENTITY,
    )

    with SessionFactory() as session:
        result = upsert_table(session, table, BATCH)
        session.commit()

        assert (result.created, result.updated) == (2, 0)
        rows = session.query(PlayerSeason).order_by(PlayerSeason.number).all()
        assert [(row.number, row.player) for row in rows] == [("21", "Jane Smith"), ("5", "Jane Smith")]
