"""League mapping service.

Implements the LeagueMappingSource protocol for the fallback reconciler:
primary-provider competition id -> TheSportsDB league id.

The mapping is static. Competitions missing from it are simply not
eligible for fallback reconciliation.
"""

import logging

from pronohub.core import LeagueMapping

logger = logging.getLogger(__name__)

# football-data competition id -> (TSDB idLeague, TSDB strLeague, display name)
TSDB_LEAGUES: dict[int, tuple[str, str, str]] = {
    2021: ("4328", "English Premier League", "Premier League"),
    2016: ("4329", "English League Championship", "Championship"),
    2015: ("4334", "French Ligue 1", "Ligue 1"),
    2014: ("4335", "Spanish La Liga", "La Liga"),
    2002: ("4331", "German Bundesliga", "Bundesliga"),
    2019: ("4332", "Italian Serie A", "Serie A"),
    2003: ("4337", "Dutch Eredivisie", "Eredivisie"),
    2017: ("4344", "Portuguese Primeira Liga", "Primeira Liga"),
    2013: ("4351", "Brazilian Serie A", "Campeonato Brasileiro"),
    2001: ("4480", "UEFA Champions League", "Champions League"),
    2146: ("4481", "UEFA Europa League", "Europa League"),
}

# Leagues that run January to December; TSDB keys their seasons by one year
CALENDAR_YEAR_LEAGUES: frozenset[int] = frozenset({2013})


class LeagueMappingService:
    """In-memory league mapping source.

    Thread-safe: the mapping table is built once at construction and only
    read afterwards.
    """

    def __init__(self, tsdb_leagues: dict[int, tuple[str, str, str]] | None = None):
        source = TSDB_LEAGUES if tsdb_leagues is None else tsdb_leagues
        self._mappings: dict[tuple[int, str], LeagueMapping] = {
            (competition_id, "tsdb"): LeagueMapping(
                competition_id=competition_id,
                provider="tsdb",
                provider_league_id=league_id,
                provider_league_name=league_name,
                display_name=display_name,
                calendar_year=competition_id in CALENDAR_YEAR_LEAGUES,
            )
            for competition_id, (league_id, league_name, display_name) in source.items()
        }
        logger.debug("[MAPPINGS] Loaded %d TSDB league mappings", len(self._mappings))

    def get_mapping(self, competition_id: int, provider: str) -> LeagueMapping | None:
        return self._mappings.get((competition_id, provider))

    def supports_competition(self, competition_id: int, provider: str) -> bool:
        return (competition_id, provider) in self._mappings

    def get_mappings_for_provider(self, provider: str) -> list[LeagueMapping]:
        return [m for (_, p), m in self._mappings.items() if p == provider]


_league_mapping_service: LeagueMappingService | None = None


def get_league_mapping_service() -> LeagueMappingService:
    """Get the process-wide mapping service (created on first use)."""
    global _league_mapping_service
    if _league_mapping_service is None:
        _league_mapping_service = LeagueMappingService()
    return _league_mapping_service
