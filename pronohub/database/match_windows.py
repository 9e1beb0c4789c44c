"""Match window database operations.

Windows are produced by an external generator; this module reads them
(and offers a plain insert for seeding and tests).
"""

from datetime import date, datetime
from sqlite3 import Connection, Row

from pronohub.core.types import MatchWindow
from pronohub.utilities.tz import format_date, format_datetime, parse_date, parse_datetime


def _row_to_window(row: Row) -> MatchWindow:
    return MatchWindow(
        competition_id=row["competition_id"],
        match_date=parse_date(row["match_date"]),
        window_start=parse_datetime(row["window_start"]),
        window_end=parse_datetime(row["window_end"]),
    )


def get_active_windows(conn: Connection, now: datetime) -> list[MatchWindow]:
    """Get windows whose [start, end] interval contains now."""
    stamp = format_datetime(now)
    cursor = conn.execute(
        """
        SELECT * FROM match_windows
        WHERE window_start <= ? AND window_end >= ?
        ORDER BY window_start, competition_id
        """,
        (stamp, stamp),
    )
    return [_row_to_window(row) for row in cursor.fetchall()]


def save_window(
    conn: Connection,
    competition_id: int,
    match_date: date,
    window_start: datetime,
    window_end: datetime,
) -> None:
    """Insert or replace the window for (competition, date)."""
    conn.execute(
        """
        INSERT INTO match_windows (competition_id, match_date, window_start, window_end)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(competition_id, match_date) DO UPDATE SET
            window_start = excluded.window_start,
            window_end = excluded.window_end
        """,
        (
            competition_id,
            format_date(match_date),
            format_datetime(window_start),
            format_datetime(window_end),
        ),
    )
