"""Abstract interfaces for pronohub.

Defines the contracts between consumers, providers and the audit log.
Consumers depend on these protocols, never on concrete clients.
"""

from dataclasses import dataclass
from typing import Protocol

from pronohub.core.types import ApiCallLogEntry

# =============================================================================
# LEAGUE MAPPING - primary competition id -> secondary provider league
# =============================================================================


@dataclass(frozen=True)
class LeagueMapping:
    """Competition mapping configuration.

    Maps a primary-provider competition id to a secondary-provider league.
    Immutable dataclass for thread safety.
    """

    competition_id: int  # football-data id: 2021, 2014, ...
    provider: str  # 'tsdb'
    provider_league_id: str  # TSDB idLeague: '4328'
    provider_league_name: str | None  # TSDB strLeague: 'English Premier League'
    display_name: str  # 'Premier League'
    calendar_year: bool = False  # season keyed "2025" instead of "2025-2026"


class LeagueMappingSource(Protocol):
    """Protocol for league mapping lookup.

    Implementations can be static, database-backed, or mocked for testing.
    """

    def get_mapping(self, competition_id: int, provider: str) -> LeagueMapping | None:
        """Get mapping for a specific competition and provider."""
        ...

    def supports_competition(self, competition_id: int, provider: str) -> bool:
        """Check if provider has a league for the given competition."""
        ...


# =============================================================================
# API CALL AUDIT
# =============================================================================


class ApiCallRecorder(Protocol):
    """Sink for provider call audit entries.

    Implementations must never raise; audit failures are swallowed.
    """

    def __call__(self, entry: ApiCallLogEntry) -> None: ...


# =============================================================================
# PROVIDERS
# =============================================================================


class PrimaryMatchSource(Protocol):
    """Primary provider surface used by the sync consumers.

    All methods return parsed JSON, or None on any HTTP/network failure.
    """

    @property
    def is_configured(self) -> bool:
        """False when credentials are missing."""
        ...

    async def get_competition(
        self, competition_id: int, call_type: str = "daily-sync"
    ) -> dict | None: ...

    async def get_competition_matches(
        self,
        competition_id: int,
        matchday: int | None = None,
        call_type: str = "daily-sync",
    ) -> dict | None: ...

    async def get_match(
        self, match_id: int, competition_id: int | None = None, call_type: str = "realtime"
    ) -> dict | None: ...


class SeasonEventSource(Protocol):
    """Secondary provider surface used by the fallback reconciler."""

    async def get_season_events(
        self, league_id: str, season: str, competition_id: int | None = None
    ) -> dict | None: ...
