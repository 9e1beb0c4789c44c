"""Map primary-provider payloads onto local records.

Shared by every sync path so that status, score and winner are interpreted
the same way everywhere.

football-data score shape:
    "score": {
        "winner": "HOME_TEAM" | "AWAY_TEAM" | "DRAW" | null,
        "duration": "REGULAR" | "EXTRA_TIME" | "PENALTY_SHOOTOUT",
        "fullTime": {"home": 2, "away": 1},
        "regularTime": {...}, "extraTime": {...}, "penalties": {...}
    }
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from pronohub.core.types import Competition, MatchRecord
from pronohub.utilities.tz import parse_date, parse_datetime

logger = logging.getLogger(__name__)

REGULAR_DURATION = "REGULAR"

# Keys used when counting distinct (stage, matchday) rounds
DEFAULT_STAGE_KEY = "REGULAR_SEASON"
KNOCKOUT_MATCHDAY_KEY = "KO"


def count_total_matchdays(raw_matches: Iterable[dict]) -> int:
    """Count distinct (stage, matchday) rounds across a competition's matches.

    Knockout stages restart matchday numbering, and single-leg ties have no
    matchday at all, so the stage is part of the key.
    """
    rounds = set()
    for raw in raw_matches:
        stage = raw.get("stage") or DEFAULT_STAGE_KEY
        matchday = raw.get("matchday")
        rounds.add((stage, matchday if matchday is not None else KNOCKOUT_MATCHDAY_KEY))
    return len(rounds)


def _score_pair(score: dict, key: str) -> tuple[int | None, int | None]:
    part = score.get(key) or {}
    return part.get("home"), part.get("away")


def resolve_winner(
    winner: str | None,
    home_team_id: int | None,
    away_team_id: int | None,
) -> int | None:
    """Map the provider's HOME_TEAM/AWAY_TEAM tag to a local team id."""
    if winner == "HOME_TEAM":
        return home_team_id
    if winner == "AWAY_TEAM":
        return away_team_id
    return None


def apply_score(record: MatchRecord, score: dict | None, include_extended: bool) -> None:
    """Fill score fields of record from a provider score block.

    The extended breakdown (90-minute, extra time, penalties) is only
    written for finished matches and only when include_extended is set.
    """
    score = score or {}
    record.home_score, record.away_score = _score_pair(score, "fullTime")

    if not record.finished:
        return

    record.winner_team_id = resolve_winner(
        score.get("winner"), record.home_team_id, record.away_team_id
    )

    if not include_extended:
        return

    duration = score.get("duration") or REGULAR_DURATION
    record.score_duration = duration

    if duration == REGULAR_DURATION:
        record.home_score_90 = record.home_score
        record.away_score_90 = record.away_score
        return

    regular_home, regular_away = _score_pair(score, "regularTime")
    if regular_home is not None and regular_away is not None:
        record.home_score_90, record.away_score_90 = regular_home, regular_away
    else:
        record.home_score_90, record.away_score_90 = record.home_score, record.away_score

    extra_home, extra_away = _score_pair(score, "extraTime")
    if extra_home is not None and extra_away is not None:
        record.home_extra_time, record.away_extra_time = extra_home, extra_away

    pen_home, pen_away = _score_pair(score, "penalties")
    if pen_home is not None and pen_away is not None:
        record.home_penalties, record.away_penalties = pen_home, pen_away


def map_match(
    raw: dict,
    competition_id: int,
    now: datetime,
    include_extended: bool = True,
) -> MatchRecord | None:
    """Build a MatchRecord snapshot from a provider match payload.

    A null matchday defaults to 1 (single-leg knockout fixtures).

    Returns:
        MatchRecord, or None if the payload has no id or status
    """
    match_id = raw.get("id")
    status = raw.get("status")
    if match_id is None or not status:
        logger.debug("[MAP] Ignoring match payload without id/status: %r", raw.get("id"))
        return None

    home = raw.get("homeTeam") or {}
    away = raw.get("awayTeam") or {}
    matchday = raw.get("matchday")

    record = MatchRecord(
        football_data_match_id=int(match_id),
        competition_id=competition_id,
        utc_date=parse_datetime(raw.get("utcDate")),
        status=status,
        matchday=matchday if matchday is not None else 1,
        stage=raw.get("stage"),
        home_team_id=home.get("id"),
        home_team_name=home.get("name"),
        home_team_crest=home.get("crest"),
        away_team_id=away.get("id"),
        away_team_name=away.get("name"),
        away_team_crest=away.get("crest"),
        last_updated_at=now,
    )
    apply_score(record, raw.get("score"), include_extended)
    return record


def map_competition(data: dict, competition_id: int, now: datetime) -> Competition:
    """Build a Competition from a /competitions/{id} payload."""
    season = data.get("currentSeason") or {}
    area = data.get("area") or {}
    return Competition(
        id=competition_id,
        name=data.get("name") or f"Competition {competition_id}",
        code=data.get("code"),
        emblem=data.get("emblem"),
        area_name=area.get("name"),
        is_active=True,
        api_provider="football-data",
        current_season_start_date=parse_date(season.get("startDate")),
        current_season_end_date=parse_date(season.get("endDate")),
        current_matchday=season.get("currentMatchday"),
        last_updated_at=now,
    )
