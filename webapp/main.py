from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy import Float, Select, cast, func, select
from sqlalchemy.orm import Session

from wbb_scraper.export import write_rows
from wbb_scraper.job import DEFAULT_SETTINGS_PATH, PROJECT_ROOT, load_settings
from wbb_scraper.schema import wbb_season_schema
from wbb_scraper.storage import Base, PlayerSeason, Team, get_engine

EXPORT_LIMIT = 5000
DEFAULT_LIMIT = 100
SORTABLE_STATS = {
    column.name for column in wbb_season_schema().final_columns if column.type in ("integer", "real")
}


def _default_engine():
    settings = load_settings(DEFAULT_SETTINGS_PATH)
    db_path = Path(PROJECT_ROOT) / settings.get("database_path", "data/wbb_stats.db")
    return get_engine(str(db_path))


def _build_conditions(
    team: Optional[str],
    conference: Optional[str],
    season: Optional[str],
    player_keyword: Optional[str],
):
    conditions = []
    if team:
        conditions.append(Team.name == team)
    if conference:
        conditions.append(Team.conference == conference)
    if season:
        conditions.append(PlayerSeason.season == season)
    if player_keyword:
        conditions.append(PlayerSeason.player.contains(player_keyword))
    return conditions


def _base_select() -> Select:
    return select(PlayerSeason.payload).join(Team, PlayerSeason.team_id == Team.id)


def _ordered_select(conditions, sort: Optional[str]) -> Select:
    stmt = _base_select().where(*conditions)
    if sort:
        if sort not in SORTABLE_STATS:
            raise HTTPException(status_code=400, detail=f"Cannot sort by {sort!r}")
        stat_expr = cast(func.json_extract(PlayerSeason.payload, f"$.{sort}"), Float)
        return stmt.order_by(stat_expr.desc(), PlayerSeason.player)
    return stmt.order_by(Team.name, PlayerSeason.player)


def _prepare_rows(result_rows) -> List[Dict[str, object]]:
    prepared: List[Dict[str, object]] = []
    for (payload_text,) in result_rows:
        try:
            prepared.append(json.loads(payload_text))
        except json.JSONDecodeError:
            continue
    return prepared


def _export_columns(rows: List[Dict[str, object]]) -> List[str]:
    columns: List[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)
    return columns


def create_app(engine=None) -> FastAPI:
    """
    Build the stats browser.

    Run with ``uvicorn webapp.main:create_app --factory``; tests pass their
    own engine.
    """
    engine = engine if engine is not None else _default_engine()
    Base.metadata.create_all(engine)
    app = FastAPI(title="WBB Stats Browser")

    def _open_session() -> Session:
        return Session(engine)

    @app.get("/api/teams")
    def teams():
        with _open_session() as session:
            stmt = (
                select(Team.name, Team.conference, func.count(PlayerSeason.id))
                .outerjoin(PlayerSeason, PlayerSeason.team_id == Team.id)
                .group_by(Team.id)
                .order_by(Team.conference, Team.name)
            )
            rows = session.execute(stmt).all()
        return [{"name": name, "conference": conference, "players": count} for name, conference, count in rows]

    @app.get("/api/players")
    def players(
        team: Optional[str] = Query(default=None),
        conference: Optional[str] = Query(default=None),
        season: Optional[str] = Query(default=None),
        player: Optional[str] = Query(default=None, description="Substring of the player name"),
        sort: Optional[str] = Query(default=None, description="Numeric stat to sort by, descending"),
        limit: int = Query(DEFAULT_LIMIT, ge=1, le=EXPORT_LIMIT),
    ):
        conditions = _build_conditions(team, conference, season, player)
        with _open_session() as session:
            rows = session.execute(_ordered_select(conditions, sort).limit(limit)).all()
        return _prepare_rows(rows)

    @app.get("/export")
    def export_csv(
        team: Optional[str] = Query(default=None),
        conference: Optional[str] = Query(default=None),
        season: Optional[str] = Query(default=None),
        player: Optional[str] = Query(default=None),
        sort: Optional[str] = Query(default=None),
    ):
        conditions = _build_conditions(team, conference, season, player)
        with _open_session() as session:
            rows = session.execute(_ordered_select(conditions, sort).limit(EXPORT_LIMIT)).all()
        prepared_rows = _prepare_rows(rows)

        columns = _export_columns(prepared_rows)
        output = io.StringIO()
        write_rows(output, columns, ([row.get(key) for key in columns] for row in prepared_rows))

        output.seek(0)
        filename = "wbb_stats_export.csv"
        return StreamingResponse(
            iter([output.getvalue()]),
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    return app
