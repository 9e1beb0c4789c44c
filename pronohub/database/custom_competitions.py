"""Custom (user-defined) competition reads.

A custom competition groups primary-provider matches into its own
numbered matchdays; each entry caches the kickoff it had when last synced.
"""

from sqlite3 import Connection

from pronohub.core.types import MatchDate
from pronohub.utilities.tz import format_datetime, parse_datetime


def get_custom_match_dates(
    conn: Connection,
    custom_competition_id: int,
    from_matchday: int | None = None,
    to_matchday: int | None = None,
) -> list[MatchDate]:
    """Get (matchday_number, cached kickoff) pairs, ordered by matchday then kickoff.

    Matchdays with no matches yet are omitted.
    """
    query = """
        SELECT md.matchday_number, m.cached_utc_date
        FROM custom_competition_matchdays md
        JOIN custom_competition_matches m ON m.custom_matchday_id = md.id
        WHERE md.custom_competition_id = ?
    """
    params: list = [custom_competition_id]
    if from_matchday is not None:
        query += " AND md.matchday_number >= ?"
        params.append(from_matchday)
    if to_matchday is not None:
        query += " AND md.matchday_number <= ?"
        params.append(to_matchday)
    query += " ORDER BY md.matchday_number, m.cached_utc_date"

    return [
        MatchDate(
            matchday=row["matchday_number"],
            stage=None,
            utc_date=parse_datetime(row["cached_utc_date"]),
        )
        for row in conn.execute(query, params).fetchall()
    ]


def matchday_exists(conn: Connection, custom_competition_id: int, matchday_number: int) -> bool:
    row = conn.execute(
        """
        SELECT 1 FROM custom_competition_matchdays
        WHERE custom_competition_id = ? AND matchday_number = ?
        """,
        (custom_competition_id, matchday_number),
    ).fetchone()
    return row is not None


def add_custom_match(
    conn: Connection,
    custom_competition_id: int,
    matchday_number: int,
    football_data_match_id: int | None,
    cached_utc_date,
    cached_status: str | None = None,
) -> int:
    """Attach a match to a custom matchday, creating the matchday if needed."""
    conn.execute(
        """
        INSERT OR IGNORE INTO custom_competition_matchdays (custom_competition_id, matchday_number)
        VALUES (?, ?)
        """,
        (custom_competition_id, matchday_number),
    )
    matchday_id = conn.execute(
        """
        SELECT id FROM custom_competition_matchdays
        WHERE custom_competition_id = ? AND matchday_number = ?
        """,
        (custom_competition_id, matchday_number),
    ).fetchone()["id"]
    cursor = conn.execute(
        """
        INSERT INTO custom_competition_matches
            (custom_matchday_id, football_data_match_id, cached_utc_date, cached_status)
        VALUES (?, ?, ?, ?)
        """,
        (matchday_id, football_data_match_id, format_datetime(cached_utc_date), cached_status),
    )
    return cursor.lastrowid


def create_custom_competition(conn: Connection, name: str) -> int:
    cursor = conn.execute("INSERT INTO custom_competitions (name) VALUES (?)", (name,))
    return cursor.lastrowid
