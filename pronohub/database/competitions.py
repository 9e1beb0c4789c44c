"""Competition database operations."""

import logging
from datetime import date, datetime
from sqlite3 import Connection, Row

from pronohub.core.types import Competition
from pronohub.utilities.tz import format_date, format_datetime, parse_date, parse_datetime

logger = logging.getLogger(__name__)


def _row_to_competition(row: Row) -> Competition:
    return Competition(
        id=row["id"],
        name=row["name"],
        code=row["code"],
        emblem=row["emblem"],
        area_name=row["area_name"],
        is_active=bool(row["is_active"]),
        api_provider=row["api_provider"],
        current_season_start_date=parse_date(row["current_season_start_date"]),
        current_season_end_date=parse_date(row["current_season_end_date"]),
        current_matchday=row["current_matchday"],
        total_matchdays=row["total_matchdays"],
        last_updated_at=parse_datetime(row["last_updated_at"]),
    )


def get_competition(conn: Connection, competition_id: int) -> Competition | None:
    """Get a competition by primary-provider id."""
    row = conn.execute("SELECT * FROM competitions WHERE id = ?", (competition_id,)).fetchone()
    return _row_to_competition(row) if row else None


def get_competitions(conn: Connection, ids: list[int]) -> dict[int, Competition]:
    """Get several competitions at once, keyed by id."""
    if not ids:
        return {}
    placeholders = ", ".join("?" for _ in ids)
    cursor = conn.execute(f"SELECT * FROM competitions WHERE id IN ({placeholders})", ids)
    return {row["id"]: _row_to_competition(row) for row in cursor.fetchall()}


def list_competitions(conn: Connection, active_only: bool = False) -> list[Competition]:
    query = "SELECT * FROM competitions"
    if active_only:
        query += " WHERE is_active = 1"
    query += " ORDER BY name"
    return [_row_to_competition(row) for row in conn.execute(query).fetchall()]


def get_sync_candidates(conn: Connection, today: date) -> list[Competition]:
    """Get active competitions whose season has not ended.

    A season end date that is unknown counts as ongoing.
    """
    cursor = conn.execute(
        """
        SELECT * FROM competitions
        WHERE is_active = 1
          AND (current_season_end_date IS NULL OR current_season_end_date >= ?)
        ORDER BY id
        """,
        (format_date(today),),
    )
    return [_row_to_competition(row) for row in cursor.fetchall()]


def upsert_competition(conn: Connection, competition: Competition) -> None:
    """Insert or replace a competition row (single-competition import)."""
    conn.execute(
        """
        INSERT INTO competitions (
            id, name, code, emblem, area_name, is_active, api_provider,
            current_season_start_date, current_season_end_date,
            current_matchday, total_matchdays, last_updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            name = excluded.name,
            code = excluded.code,
            emblem = excluded.emblem,
            area_name = excluded.area_name,
            is_active = excluded.is_active,
            api_provider = excluded.api_provider,
            current_season_start_date = excluded.current_season_start_date,
            current_season_end_date = excluded.current_season_end_date,
            current_matchday = excluded.current_matchday,
            total_matchdays = excluded.total_matchdays,
            last_updated_at = excluded.last_updated_at
        """,
        (
            competition.id,
            competition.name,
            competition.code,
            competition.emblem,
            competition.area_name,
            int(competition.is_active),
            competition.api_provider,
            format_date(competition.current_season_start_date),
            format_date(competition.current_season_end_date),
            competition.current_matchday,
            competition.total_matchdays,
            format_datetime(competition.last_updated_at),
        ),
    )


def update_competition_metadata(
    conn: Connection,
    competition_id: int,
    name: str,
    emblem: str | None,
    area_name: str | None,
    season_start: date | None,
    season_end: date | None,
    current_matchday: int | None,
    updated_at: datetime,
) -> bool:
    """Refresh the metadata fields the daily sync owns.

    Returns:
        True if a row was updated
    """
    cursor = conn.execute(
        """
        UPDATE competitions
        SET name = ?, emblem = ?, area_name = ?,
            current_season_start_date = ?, current_season_end_date = ?,
            current_matchday = ?, last_updated_at = ?
        WHERE id = ?
        """,
        (
            name,
            emblem,
            area_name,
            format_date(season_start),
            format_date(season_end),
            current_matchday,
            format_datetime(updated_at),
            competition_id,
        ),
    )
    return cursor.rowcount > 0


def update_total_matchdays(conn: Connection, competition_id: int, total: int) -> bool:
    cursor = conn.execute(
        "UPDATE competitions SET total_matchdays = ? WHERE id = ?",
        (total, competition_id),
    )
    return cursor.rowcount > 0


def set_competition_active(conn: Connection, competition_id: int, active: bool) -> bool:
    cursor = conn.execute(
        "UPDATE competitions SET is_active = ? WHERE id = ?",
        (int(active), competition_id),
    )
    return cursor.rowcount > 0


def get_total_matchdays_override(conn: Connection, competition_id: int) -> int | None:
    """Get the admin-configured total matchday count, if any."""
    row = conn.execute(
        "SELECT total_matchdays_override FROM competition_config WHERE competition_id = ?",
        (competition_id,),
    ).fetchone()
    return row["total_matchdays_override"] if row else None


def set_total_matchdays_override(
    conn: Connection, competition_id: int, total: int | None
) -> None:
    conn.execute(
        """
        INSERT INTO competition_config (competition_id, total_matchdays_override)
        VALUES (?, ?)
        ON CONFLICT(competition_id) DO UPDATE SET
            total_matchdays_override = excluded.total_matchdays_override
        """,
        (competition_id, total),
    )
