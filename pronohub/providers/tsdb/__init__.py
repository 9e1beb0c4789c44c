"""TheSportsDB (secondary provider)."""

from pronohub.providers.tsdb.client import (
    TSDBClient,
    season_for_date,
    season_from_start,
)
from pronohub.providers.tsdb.events import finished_events, parse_season_events

__all__ = [
    "TSDBClient",
    "finished_events",
    "parse_season_events",
    "season_for_date",
    "season_from_start",
]
