"""Service layer."""

from pronohub.services.league_mappings import (
    TSDB_LEAGUES,
    LeagueMappingService,
    get_league_mapping_service,
)

__all__ = ["TSDB_LEAGUES", "LeagueMappingService", "get_league_mapping_service"]
