"""
Persistence layer built on SQLAlchemy for reconstructed stat tables.

Two tables are defined:
    - teams: identity of the team a table was scraped for.
    - player_seasons: one player's season line, stored as a JSON payload.

`upsert_record` ensures idempotency by de-duplicating on
(team_id, player, number, season), so re-running a scrape refreshes rows in place.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, create_engine
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker

from .schema import Record, Table

Base = declarative_base()

TEAM_FIELD = "team"
CONFERENCE_FIELD = "conference"
SEASON_FIELD = "season"
PLAYER_FIELD = "player"
NUMBER_FIELD = "number"


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True)
    name = Column(String(128), nullable=False)
    conference = Column(String(128), nullable=False, default="")

    player_seasons = relationship("PlayerSeason", back_populates="team", cascade="all, delete-orphan")

    __table_args__ = (UniqueConstraint("name", "conference", name="uq_team_conference"),)


class PlayerSeason(Base):
    __tablename__ = "player_seasons"

    id = Column(Integer, primary_key=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    player = Column(String(128), nullable=False)
    number = Column(String(16), nullable=False, default="")
    season = Column(String(32), nullable=False, default="")
    batch_time = Column(DateTime(timezone=True), nullable=False)
    payload = Column(Text, nullable=False)  # JSON blob of every record field

    team = relationship("Team", back_populates="player_seasons")

    __table_args__ = (UniqueConstraint("team_id", "player", "number", "season", name="uq_player_season"),)


def get_engine(database_path: str):
    """Create a SQLite engine, ensuring the parent directory is available."""
    parent = os.path.dirname(database_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    return create_engine(f"sqlite:///{database_path}", future=True)


def get_session_factory(database_path: str):
    engine = get_engine(database_path)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False, class_=Session)


@dataclass
class UpsertResult:
    created: int = 0
    updated: int = 0


def upsert_team(session: Session, name: str, conference: str = "") -> Team:
    """Find or create a team by name and conference."""
    instance = session.query(Team).filter_by(name=name, conference=conference).one_or_none()
    if instance is None:
        instance = Team(name=name, conference=conference)
        session.add(instance)
        session.flush()
    return instance


def upsert_record(session: Session, record: Record, batch_time: datetime) -> Tuple[PlayerSeason, bool]:
    """
    Insert or refresh one record.

    Returns the stored row and whether it was newly created. The record's
    identity must carry a ``team`` field and its values a ``player`` column.
    """
    team_name = record.identity.get(TEAM_FIELD)
    if not team_name:
        raise ValueError(f"Record {record.row_index} has no {TEAM_FIELD!r} identity field")
    player = record.values.get(PLAYER_FIELD)
    if not player:
        raise ValueError(f"Record {record.row_index} has no {PLAYER_FIELD!r} value")

    team = upsert_team(session, team_name, record.identity.get(CONFERENCE_FIELD, ""))
    season = record.identity.get(SEASON_FIELD, "")
    number = str(record.values.get(NUMBER_FIELD) or "")
    payload = json.dumps(record.as_dict(), ensure_ascii=False)

    existing: Optional[PlayerSeason] = (
        session.query(PlayerSeason)
        .filter(
            PlayerSeason.team_id == team.id,
            PlayerSeason.player == player,
            PlayerSeason.number == number,
            PlayerSeason.season == season,
        )
        .one_or_none()
    )
    if existing:
        existing.batch_time = batch_time
        existing.payload = payload
        return existing, False

    row = PlayerSeason(
        team=team, player=player, number=number, season=season, batch_time=batch_time, payload=payload
    )
    session.add(row)
    session.flush()
    return row, True


def upsert_table(session: Session, table: Table, batch_time: datetime) -> UpsertResult:
    """Convenience helper used by the scraping job."""
    result = UpsertResult()
    for record in table:
        _, created = upsert_record(session, record, batch_time)
        if created:
            result.created += 1
        else:
            result.updated += 1
    return result
