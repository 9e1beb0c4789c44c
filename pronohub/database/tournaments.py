"""Tournament database operations.

Covers the status transition, ending-date updates and the append-only
duration event history.
"""

import logging
from datetime import date, datetime
from sqlite3 import Connection, Row

from pronohub.core.types import DurationEvent, Tournament
from pronohub.utilities.tz import format_datetime, parse_date, parse_datetime

logger = logging.getLogger(__name__)


def _row_to_tournament(row: Row) -> Tournament:
    return Tournament(
        id=row["id"],
        name=row["name"],
        status=row["status"],
        competition_id=row["competition_id"],
        custom_competition_id=row["custom_competition_id"],
        starting_matchday=row["starting_matchday"],
        ending_matchday=row["ending_matchday"],
        ending_date=parse_datetime(row["ending_date"]),
        all_matchdays=bool(row["all_matchdays"]),
        updated_at=parse_datetime(row["updated_at"]),
    )


def _row_to_event(row: Row) -> DurationEvent:
    return DurationEvent(
        id=row["id"],
        tournament_id=row["tournament_id"],
        event_type=row["event_type"],
        reason=row["reason"],
        previous_ending_matchday=row["previous_ending_matchday"],
        new_ending_matchday=row["new_ending_matchday"],
        previous_ending_date=parse_datetime(row["previous_ending_date"]),
        new_ending_date=parse_datetime(row["new_ending_date"]),
        estimation_used=bool(row["estimation_used"]),
        estimation_details=row["estimation_details"],
        created_at=parse_datetime(row["created_at"]),
    )


# =============================================================================
# TOURNAMENTS
# =============================================================================


def get_tournament(conn: Connection, tournament_id: int) -> Tournament | None:
    row = conn.execute("SELECT * FROM tournaments WHERE id = ?", (tournament_id,)).fetchone()
    return _row_to_tournament(row) if row else None


def create_tournament(
    conn: Connection,
    name: str,
    status: str = "draft",
    competition_id: int | None = None,
    custom_competition_id: int | None = None,
    starting_matchday: int | None = None,
    ending_matchday: int | None = None,
    ending_date: datetime | None = None,
    all_matchdays: bool = False,
) -> int:
    """Create a tournament. Returns the new id."""
    cursor = conn.execute(
        """
        INSERT INTO tournaments (
            name, status, competition_id, custom_competition_id,
            starting_matchday, ending_matchday, ending_date, all_matchdays, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
        """,
        (
            name,
            status,
            competition_id,
            custom_competition_id,
            starting_matchday,
            ending_matchday,
            format_datetime(ending_date),
            int(all_matchdays),
        ),
    )
    return cursor.lastrowid


def get_overdue_tournaments(
    conn: Connection, now: datetime
) -> list[tuple[Tournament, date | None]]:
    """Get active tournaments whose ending date has passed.

    Returns:
        (tournament, competition season end date) pairs; the season end is
        None for custom competitions or when the competition doesn't know it.
    """
    cursor = conn.execute(
        """
        SELECT t.*, c.current_season_end_date AS season_end
        FROM tournaments t
        LEFT JOIN competitions c ON c.id = t.competition_id
        WHERE t.status = 'active'
          AND t.ending_date IS NOT NULL
          AND t.ending_date < ?
        ORDER BY t.ending_date, t.id
        """,
        (format_datetime(now),),
    )
    return [(_row_to_tournament(row), parse_date(row["season_end"])) for row in cursor.fetchall()]


def mark_tournament_completed(conn: Connection, tournament_id: int, now: datetime) -> bool:
    """Transition an active tournament to completed.

    Returns:
        True if the tournament was active and is now completed
    """
    cursor = conn.execute(
        """
        UPDATE tournaments SET status = 'completed', updated_at = ?
        WHERE id = ? AND status = 'active'
        """,
        (format_datetime(now), tournament_id),
    )
    return cursor.rowcount > 0


def update_tournament_ending(
    conn: Connection,
    tournament_id: int,
    ending_matchday: int | None,
    ending_date: datetime | None,
    now: datetime,
) -> bool:
    cursor = conn.execute(
        """
        UPDATE tournaments SET ending_matchday = ?, ending_date = ?, updated_at = ?
        WHERE id = ?
        """,
        (ending_matchday, format_datetime(ending_date), format_datetime(now), tournament_id),
    )
    return cursor.rowcount > 0


# =============================================================================
# DURATION EVENTS (append-only)
# =============================================================================


def insert_duration_event(conn: Connection, event: DurationEvent) -> int:
    """Append a duration event. Returns the new id."""
    cursor = conn.execute(
        """
        INSERT INTO tournament_duration_events (
            tournament_id, event_type, previous_ending_matchday, new_ending_matchday,
            previous_ending_date, new_ending_date, reason,
            estimation_used, estimation_details, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, COALESCE(?, strftime('%Y-%m-%dT%H:%M:%SZ', 'now')))
        """,
        (
            event.tournament_id,
            event.event_type,
            event.previous_ending_matchday,
            event.new_ending_matchday,
            format_datetime(event.previous_ending_date),
            format_datetime(event.new_ending_date),
            event.reason,
            int(event.estimation_used),
            event.estimation_details,
            format_datetime(event.created_at),
        ),
    )
    return cursor.lastrowid


def get_duration_events(conn: Connection, tournament_id: int) -> list[DurationEvent]:
    """Get a tournament's duration history, oldest first."""
    cursor = conn.execute(
        """
        SELECT * FROM tournament_duration_events
        WHERE tournament_id = ?
        ORDER BY id
        """,
        (tournament_id,),
    )
    return [_row_to_event(row) for row in cursor.fetchall()]
