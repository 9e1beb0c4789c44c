"""Normalize TSDB eventsseason.php payloads into SeasonEvent."""

from pronohub.core.types import SeasonEvent

FINISHED_STATUS = "Match Finished"


def parse_season_events(data: dict | None) -> list[SeasonEvent]:
    """Convert a raw eventsseason.php response into SeasonEvent objects.

    TSDB returns {"events": null} for an unknown league/season.
    """
    if not data:
        return []
    events = []
    for raw in data.get("events") or []:
        if not isinstance(raw, dict):
            continue
        events.append(
            SeasonEvent(
                id=str(raw.get("idEvent") or ""),
                home_team=raw.get("strHomeTeam") or "",
                away_team=raw.get("strAwayTeam") or "",
                home_score=_as_text(raw.get("intHomeScore")),
                away_score=_as_text(raw.get("intAwayScore")),
                round=_as_text(raw.get("intRound")),
                event_date=raw.get("dateEvent"),
                status=raw.get("strStatus"),
            )
        )
    return events


def finished_events(events: list[SeasonEvent]) -> list[SeasonEvent]:
    """Keep events reported as finished that carry both scores."""
    return [
        e
        for e in events
        if e.status == FINISHED_STATUS and e.home_score is not None and e.away_score is not None
    ]


def _as_text(value) -> str | None:
    # Scores and rounds are usually strings but some mirrors send ints
    if value is None:
        return None
    return str(value)
