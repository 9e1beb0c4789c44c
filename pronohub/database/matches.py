"""Imported match database operations.

Rows are keyed on football_data_match_id; every write is an idempotent
upsert or a single-row update, never a delete.
"""

import logging
from collections.abc import Iterable
from datetime import datetime
from sqlite3 import Connection, Row

from pronohub.core.types import MatchDate, MatchRecord
from pronohub.utilities.tz import format_datetime, parse_datetime

logger = logging.getLogger(__name__)

_COLUMNS = (
    "football_data_match_id",
    "competition_id",
    "matchday",
    "stage",
    "utc_date",
    "status",
    "finished",
    "home_team_id",
    "home_team_name",
    "home_team_crest",
    "away_team_id",
    "away_team_name",
    "away_team_crest",
    "home_score",
    "away_score",
    "score_duration",
    "home_score_90",
    "away_score_90",
    "home_extra_time",
    "away_extra_time",
    "home_penalties",
    "away_penalties",
    "winner_team_id",
    "last_updated_at",
)

_UPSERT_SQL = f"""
    INSERT INTO imported_matches ({", ".join(_COLUMNS)})
    VALUES ({", ".join("?" for _ in _COLUMNS)})
    ON CONFLICT(football_data_match_id) DO UPDATE SET
        {", ".join(f"{c} = excluded.{c}" for c in _COLUMNS[1:])}
"""


def _row_to_match(row: Row) -> MatchRecord:
    return MatchRecord(
        id=row["id"],
        football_data_match_id=row["football_data_match_id"],
        competition_id=row["competition_id"],
        matchday=row["matchday"],
        stage=row["stage"],
        utc_date=parse_datetime(row["utc_date"]),
        status=row["status"],
        home_team_id=row["home_team_id"],
        home_team_name=row["home_team_name"],
        home_team_crest=row["home_team_crest"],
        away_team_id=row["away_team_id"],
        away_team_name=row["away_team_name"],
        away_team_crest=row["away_team_crest"],
        home_score=row["home_score"],
        away_score=row["away_score"],
        score_duration=row["score_duration"],
        home_score_90=row["home_score_90"],
        away_score_90=row["away_score_90"],
        home_extra_time=row["home_extra_time"],
        away_extra_time=row["away_extra_time"],
        home_penalties=row["home_penalties"],
        away_penalties=row["away_penalties"],
        winner_team_id=row["winner_team_id"],
        last_updated_at=parse_datetime(row["last_updated_at"]),
    )


def _match_values(match: MatchRecord) -> tuple:
    return (
        match.football_data_match_id,
        match.competition_id,
        match.matchday,
        match.stage,
        format_datetime(match.utc_date),
        match.status,
        int(match.finished),
        match.home_team_id,
        match.home_team_name,
        match.home_team_crest,
        match.away_team_id,
        match.away_team_name,
        match.away_team_crest,
        match.home_score,
        match.away_score,
        match.score_duration,
        match.home_score_90,
        match.away_score_90,
        match.home_extra_time,
        match.away_extra_time,
        match.home_penalties,
        match.away_penalties,
        match.winner_team_id,
        format_datetime(match.last_updated_at),
    )


# =============================================================================
# READ
# =============================================================================


def get_match(conn: Connection, football_data_match_id: int) -> MatchRecord | None:
    """Get a stored match by its primary-provider id."""
    row = conn.execute(
        "SELECT * FROM imported_matches WHERE football_data_match_id = ?",
        (football_data_match_id,),
    ).fetchone()
    return _row_to_match(row) if row else None


def get_matches_by_ids(conn: Connection, ids: Iterable[int]) -> dict[int, MatchRecord]:
    """Get stored matches for a set of primary-provider ids.

    Returns:
        Dict of football_data_match_id -> MatchRecord (missing ids absent)
    """
    id_list = list(ids)
    if not id_list:
        return {}

    result: dict[int, MatchRecord] = {}
    # SQLite caps bound parameters; chunk large competitions
    for start in range(0, len(id_list), 500):
        chunk = id_list[start : start + 500]
        placeholders = ", ".join("?" for _ in chunk)
        cursor = conn.execute(
            f"SELECT * FROM imported_matches WHERE football_data_match_id IN ({placeholders})",
            chunk,
        )
        for row in cursor.fetchall():
            match = _row_to_match(row)
            result[match.football_data_match_id] = match
    return result


def get_competition_matches(
    conn: Connection,
    competition_id: int,
    matchday: int | None = None,
) -> list[MatchRecord]:
    """Get stored matches for a competition, ordered by kickoff."""
    query = "SELECT * FROM imported_matches WHERE competition_id = ?"
    params: list = [competition_id]
    if matchday is not None:
        query += " AND matchday = ?"
        params.append(matchday)
    query += " ORDER BY utc_date, football_data_match_id"
    return [_row_to_match(row) for row in conn.execute(query, params).fetchall()]


def get_matches_in_range(
    conn: Connection,
    competition_id: int,
    start: datetime,
    end: datetime,
    statuses: Iterable[str],
) -> list[MatchRecord]:
    """Get a competition's matches with kickoff in [start, end) and a given status."""
    status_list = list(statuses)
    placeholders = ", ".join("?" for _ in status_list)
    cursor = conn.execute(
        f"""
        SELECT * FROM imported_matches
        WHERE competition_id = ?
          AND utc_date >= ? AND utc_date < ?
          AND status IN ({placeholders})
        ORDER BY utc_date, football_data_match_id
        """,
        [competition_id, format_datetime(start), format_datetime(end), *status_list],
    )
    return [_row_to_match(row) for row in cursor.fetchall()]


def get_stuck_matches(
    conn: Connection,
    kickoff_after: datetime,
    kickoff_before: datetime,
    statuses: Iterable[str],
    limit: int = 200,
) -> list[MatchRecord]:
    """Get matches whose kickoff is in [kickoff_after, kickoff_before] and still not started.

    Most recent kickoff first.
    """
    status_list = list(statuses)
    placeholders = ", ".join("?" for _ in status_list)
    cursor = conn.execute(
        f"""
        SELECT * FROM imported_matches
        WHERE utc_date >= ? AND utc_date <= ?
          AND status IN ({placeholders})
        ORDER BY utc_date DESC, football_data_match_id
        LIMIT ?
        """,
        [format_datetime(kickoff_after), format_datetime(kickoff_before), *status_list, limit],
    )
    return [_row_to_match(row) for row in cursor.fetchall()]


def get_match_dates(
    conn: Connection,
    competition_id: int,
    from_matchday: int | None = None,
    to_matchday: int | None = None,
) -> list[MatchDate]:
    """Get (matchday, stage, kickoff) for a competition's matches.

    Ordered by matchday then kickoff. Rows without a matchday are skipped.
    """
    query = """
        SELECT matchday, stage, utc_date FROM imported_matches
        WHERE competition_id = ? AND matchday IS NOT NULL
    """
    params: list = [competition_id]
    if from_matchday is not None:
        query += " AND matchday >= ?"
        params.append(from_matchday)
    if to_matchday is not None:
        query += " AND matchday <= ?"
        params.append(to_matchday)
    query += " ORDER BY matchday, utc_date"

    return [
        MatchDate(
            matchday=row["matchday"],
            stage=row["stage"],
            utc_date=parse_datetime(row["utc_date"]),
        )
        for row in conn.execute(query, params).fetchall()
    ]


def count_unconcluded_matches(
    conn: Connection,
    competition_id: int,
    from_matchday: int | None,
    to_matchday: int,
    concluded_statuses: Iterable[str],
) -> int:
    """Count matches up to a matchday that are not finished or awarded."""
    status_list = list(concluded_statuses)
    placeholders = ", ".join("?" for _ in status_list)
    row = conn.execute(
        f"""
        SELECT COUNT(*) AS n FROM imported_matches
        WHERE competition_id = ?
          AND matchday >= ? AND matchday <= ?
          AND status NOT IN ({placeholders})
        """,
        [competition_id, from_matchday or 1, to_matchday, *status_list],
    ).fetchone()
    return row["n"]


# =============================================================================
# WRITE
# =============================================================================


def upsert_match(conn: Connection, match: MatchRecord) -> None:
    """Insert or fully replace a match keyed on its primary-provider id."""
    conn.execute(_UPSERT_SQL, _match_values(match))


def upsert_matches(conn: Connection, matches: Iterable[MatchRecord]) -> int:
    """Upsert a batch of matches. Returns the number written."""
    rows = [_match_values(m) for m in matches]
    if rows:
        conn.executemany(_UPSERT_SQL, rows)
    return len(rows)


def update_match_result(
    conn: Connection,
    football_data_match_id: int,
    status: str,
    home_score: int | None,
    away_score: int | None,
    updated_at: datetime,
    winner_team_id: int | None = None,
) -> bool:
    """Update status, finished flag, score and winner of a stored match.

    Returns:
        True if a row was updated
    """
    cursor = conn.execute(
        """
        UPDATE imported_matches
        SET status = ?, finished = ?, home_score = ?, away_score = ?,
            winner_team_id = COALESCE(?, winner_team_id), last_updated_at = ?
        WHERE football_data_match_id = ?
        """,
        (
            status,
            int(status == "FINISHED"),
            home_score,
            away_score,
            winner_team_id,
            format_datetime(updated_at),
            football_data_match_id,
        ),
    )
    return cursor.rowcount > 0


def patch_regular_time_result(
    conn: Connection,
    football_data_match_id: int,
    home_score: int,
    away_score: int,
    updated_at: datetime,
) -> bool:
    """Mark a match FINISHED in regulation with the given final score.

    The 90-minute score mirrors the full-time score. Winner is left untouched.

    Returns:
        True if a row was updated
    """
    cursor = conn.execute(
        """
        UPDATE imported_matches
        SET status = 'FINISHED', finished = 1, home_score = ?, away_score = ?,
            score_duration = 'REGULAR', home_score_90 = ?, away_score_90 = ?,
            last_updated_at = ?
        WHERE football_data_match_id = ?
        """,
        (
            home_score,
            away_score,
            home_score,
            away_score,
            format_datetime(updated_at),
            football_data_match_id,
        ),
    )
    return cursor.rowcount > 0


def update_match_scores(conn: Connection, match: MatchRecord) -> bool:
    """Update status and the full score breakdown, leaving identity fields alone."""
    cursor = conn.execute(
        """
        UPDATE imported_matches
        SET status = ?, finished = ?, home_score = ?, away_score = ?,
            score_duration = ?, home_score_90 = ?, away_score_90 = ?,
            home_extra_time = ?, away_extra_time = ?,
            home_penalties = ?, away_penalties = ?,
            winner_team_id = ?, last_updated_at = ?
        WHERE football_data_match_id = ?
        """,
        (
            match.status,
            int(match.finished),
            match.home_score,
            match.away_score,
            match.score_duration,
            match.home_score_90,
            match.away_score_90,
            match.home_extra_time,
            match.away_extra_time,
            match.home_penalties,
            match.away_penalties,
            match.winner_team_id,
            format_datetime(match.last_updated_at),
            match.football_data_match_id,
        ),
    )
    return cursor.rowcount > 0
