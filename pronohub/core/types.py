"""Core data types for pronohub.

All persisted entities are dataclasses with attribute access.
Timestamps are timezone-aware UTC datetimes; calendar days are dates.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

# =============================================================================
# STATUS VOCABULARY
# =============================================================================

MatchStatus = Literal[
    "SCHEDULED",
    "TIMED",
    "IN_PLAY",
    "PAUSED",
    "FINISHED",
    "POSTPONED",
    "SUSPENDED",
    "CANCELLED",
    "AWARDED",
]

TournamentStatus = Literal["draft", "pending", "active", "completed"]

# Provider has not reported a kickoff or result yet
NOT_STARTED_STATUSES = frozenset({"SCHEDULED", "TIMED"})
LIVE_STATUSES = frozenset({"IN_PLAY", "PAUSED"})
REALTIME_STATUSES = frozenset({"TIMED", "IN_PLAY", "PAUSED"})
SCORED_STATUSES = frozenset({"IN_PLAY", "PAUSED", "FINISHED"})
CONCLUDED_STATUSES = frozenset({"FINISHED", "AWARDED"})

KNOCKOUT_STAGES = frozenset(
    {
        "LAST_32",
        "ROUND_OF_16",
        "QUARTER_FINALS",
        "SEMI_FINALS",
        "FINAL",
        "THIRD_PLACE",
        "PLAYOFFS",
    }
)


# =============================================================================
# MATCHES
# =============================================================================


@dataclass
class MatchRecord:
    """An imported match, keyed by the primary provider's match id.

    Freshly fetched provider data is mapped into the same shape before it is
    compared against the stored row, so a "snapshot" is simply a MatchRecord
    that has not been persisted yet.
    """

    football_data_match_id: int
    competition_id: int
    utc_date: datetime | None
    status: str
    matchday: int | None = None
    stage: str | None = None

    home_team_id: int | None = None
    home_team_name: str | None = None
    home_team_crest: str | None = None
    away_team_id: int | None = None
    away_team_name: str | None = None
    away_team_crest: str | None = None

    home_score: int | None = None
    away_score: int | None = None

    # Extended breakdown for matches decided after regulation
    score_duration: str | None = None  # REGULAR, EXTRA_TIME, PENALTY_SHOOTOUT
    home_score_90: int | None = None
    away_score_90: int | None = None
    home_extra_time: int | None = None
    away_extra_time: int | None = None
    home_penalties: int | None = None
    away_penalties: int | None = None
    winner_team_id: int | None = None

    last_updated_at: datetime | None = None
    id: int | None = None

    @property
    def finished(self) -> bool:
        return self.status == "FINISHED"

    @property
    def has_teams(self) -> bool:
        return self.home_team_id is not None and self.away_team_id is not None

    def to_dict(self) -> dict:
        """Convert to dict for API responses."""
        return {
            "id": self.id,
            "football_data_match_id": self.football_data_match_id,
            "competition_id": self.competition_id,
            "matchday": self.matchday,
            "stage": self.stage,
            "utc_date": self.utc_date.isoformat() if self.utc_date else None,
            "status": self.status,
            "finished": self.finished,
            "home_team_id": self.home_team_id,
            "home_team_name": self.home_team_name,
            "away_team_id": self.away_team_id,
            "away_team_name": self.away_team_name,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "score_duration": self.score_duration,
            "home_score_90": self.home_score_90,
            "away_score_90": self.away_score_90,
            "home_extra_time": self.home_extra_time,
            "away_extra_time": self.away_extra_time,
            "home_penalties": self.home_penalties,
            "away_penalties": self.away_penalties,
            "winner_team_id": self.winner_team_id,
            "last_updated_at": self.last_updated_at.isoformat() if self.last_updated_at else None,
        }


@dataclass(frozen=True)
class MatchDate:
    """Minimal (matchday, stage, kickoff) triple used for duration estimation.

    utc_date is None for placeholder fixtures whose date is still TBD.
    """

    matchday: int
    stage: str | None
    utc_date: datetime | None


# =============================================================================
# COMPETITIONS
# =============================================================================


@dataclass
class Competition:
    """A competition imported from the primary provider."""

    id: int
    name: str
    code: str | None = None
    emblem: str | None = None
    area_name: str | None = None
    is_active: bool = True
    api_provider: str = "football-data"
    current_season_start_date: date | None = None
    current_season_end_date: date | None = None
    current_matchday: int | None = None
    total_matchdays: int | None = None
    last_updated_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "emblem": self.emblem,
            "area_name": self.area_name,
            "is_active": self.is_active,
            "current_season_start_date": (
                self.current_season_start_date.isoformat()
                if self.current_season_start_date
                else None
            ),
            "current_season_end_date": (
                self.current_season_end_date.isoformat()
                if self.current_season_end_date
                else None
            ),
            "current_matchday": self.current_matchday,
            "total_matchdays": self.total_matchdays,
            "last_updated_at": self.last_updated_at.isoformat() if self.last_updated_at else None,
        }


@dataclass(frozen=True)
class MatchWindow:
    """Time interval around a kickoff during which realtime polling is warranted."""

    competition_id: int
    match_date: date
    window_start: datetime
    window_end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.window_start <= moment <= self.window_end


# =============================================================================
# TOURNAMENTS
# =============================================================================


@dataclass
class Tournament:
    """A prediction tournament built on a standard or custom competition."""

    id: int
    name: str
    status: str = "draft"
    competition_id: int | None = None
    custom_competition_id: int | None = None
    starting_matchday: int | None = None
    ending_matchday: int | None = None
    ending_date: datetime | None = None
    all_matchdays: bool = False
    updated_at: datetime | None = None

    @property
    def is_custom(self) -> bool:
        return self.custom_competition_id is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "competition_id": self.competition_id,
            "custom_competition_id": self.custom_competition_id,
            "starting_matchday": self.starting_matchday,
            "ending_matchday": self.ending_matchday,
            "ending_date": self.ending_date.isoformat() if self.ending_date else None,
            "all_matchdays": self.all_matchdays,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class DurationEvent:
    """Append-only record of one ending-date recalculation."""

    tournament_id: int
    event_type: str
    reason: str
    previous_ending_matchday: int | None = None
    new_ending_matchday: int | None = None
    previous_ending_date: datetime | None = None
    new_ending_date: datetime | None = None
    estimation_used: bool = False
    estimation_details: str | None = None
    created_at: datetime | None = None
    id: int | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tournament_id": self.tournament_id,
            "event_type": self.event_type,
            "reason": self.reason,
            "previous_ending_matchday": self.previous_ending_matchday,
            "new_ending_matchday": self.new_ending_matchday,
            "previous_ending_date": (
                self.previous_ending_date.isoformat() if self.previous_ending_date else None
            ),
            "new_ending_date": self.new_ending_date.isoformat() if self.new_ending_date else None,
            "estimation_used": self.estimation_used,
            "estimation_details": self.estimation_details,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


# =============================================================================
# AUDIT
# =============================================================================


@dataclass
class ApiCallLogEntry:
    """Audit record of one call to an external provider."""

    api_name: str  # 'football-data' or 'thesportsdb'
    call_type: str  # 'daily-sync', 'realtime', 'fallback-scores', ...
    success: bool
    response_time_ms: int | None = None
    competition_id: int | None = None
    endpoint: str | None = None
    status_code: int | None = None
    created_at: datetime | None = None
    id: int | None = None


# =============================================================================
# SECONDARY PROVIDER
# =============================================================================


@dataclass(frozen=True)
class SeasonEvent:
    """A finished event from the secondary provider's season list.

    Scores and round stay strings, exactly as the provider returns them.
    """

    id: str
    home_team: str
    away_team: str
    home_score: str | None
    away_score: str | None
    round: str | None
    event_date: str | None = None
    status: str | None = None


@dataclass
class CompetitionRunResult:
    """Outcome for one competition within a sync pass."""

    competition_id: int
    name: str | None = None
    success: bool = True
    error: str | None = None
    matches_count: int = 0
    skipped_stale: int = 0
    extra: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "competition_id": self.competition_id,
            "name": self.name,
            "success": self.success,
            "error": self.error,
            "matches_count": self.matches_count,
            "skipped_stale": self.skipped_stale,
            **self.extra,
        }
