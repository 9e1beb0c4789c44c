"""Core types and interfaces."""

from pronohub.core.interfaces import (
    ApiCallRecorder,
    LeagueMapping,
    LeagueMappingSource,
    PrimaryMatchSource,
    SeasonEventSource,
)
from pronohub.core.types import (
    CONCLUDED_STATUSES,
    KNOCKOUT_STAGES,
    LIVE_STATUSES,
    NOT_STARTED_STATUSES,
    REALTIME_STATUSES,
    SCORED_STATUSES,
    ApiCallLogEntry,
    Competition,
    CompetitionRunResult,
    DurationEvent,
    MatchDate,
    MatchRecord,
    MatchStatus,
    MatchWindow,
    SeasonEvent,
    Tournament,
    TournamentStatus,
)

__all__ = [
    # Interfaces
    "ApiCallRecorder",
    "LeagueMapping",
    "LeagueMappingSource",
    "PrimaryMatchSource",
    "SeasonEventSource",
    # Types
    "ApiCallLogEntry",
    "Competition",
    "CompetitionRunResult",
    "DurationEvent",
    "MatchDate",
    "MatchRecord",
    "MatchStatus",
    "MatchWindow",
    "SeasonEvent",
    "Tournament",
    "TournamentStatus",
    # Status sets
    "CONCLUDED_STATUSES",
    "KNOCKOUT_STAGES",
    "LIVE_STATUSES",
    "NOT_STARTED_STATUSES",
    "REALTIME_STATUSES",
    "SCORED_STATUSES",
]
