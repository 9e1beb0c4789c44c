"""football-data.org v4 (primary provider)."""

from pronohub.providers.football_data.client import FootballDataClient, RateLimitStatus

__all__ = ["FootballDataClient", "RateLimitStatus"]
