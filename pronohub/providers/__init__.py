"""Provider layer - external football data sources.

This is the SINGLE place where provider clients are configured.
Credentials come from Config (environment); the audit recorder is
injected so clients never touch the database themselves.
"""

from pronohub.config import Config
from pronohub.core.interfaces import ApiCallRecorder
from pronohub.providers.football_data import FootballDataClient, RateLimitStatus
from pronohub.providers.tsdb import TSDBClient

# =============================================================================
# PROVIDER FACTORY FUNCTIONS
# =============================================================================


def create_football_data_client(
    recorder: ApiCallRecorder | None = None,
) -> FootballDataClient:
    """Primary provider client from environment configuration."""
    return FootballDataClient(
        api_key=Config.FOOTBALL_DATA_API_KEY,
        base_url=Config.FOOTBALL_DATA_API_BASE,
        recorder=recorder,
    )


def create_tsdb_client(recorder: ApiCallRecorder | None = None) -> TSDBClient:
    """Secondary provider client from environment configuration."""
    return TSDBClient(
        api_key=Config.TSDB_API_KEY,
        base_url=Config.TSDB_API_BASE,
        recorder=recorder,
    )


__all__ = [
    "FootballDataClient",
    "RateLimitStatus",
    "TSDBClient",
    "create_football_data_client",
    "create_tsdb_client",
]
