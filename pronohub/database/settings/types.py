"""Settings dataclasses.

Each settings group is represented by a dataclass. The dataclass defaults
are the single source of truth; a missing or NULL row falls back to them.
"""

from dataclasses import dataclass, field


@dataclass
class DailySyncSettings:
    """Full refresh of active competitions from the primary provider."""

    enabled: bool = True
    hour: str = "06:00"  # HH:MM, UTC
    delay_between_competitions: float = 12.0  # seconds
    # Incoming SCHEDULED/TIMED snapshots older than this are rejected
    stale_after_hours: float = 3.0


@dataclass
class RealtimeSettings:
    """Narrow refresh of matches inside active match windows."""

    enabled: bool = False
    frequency_minutes: int = 2
    margin_before_kickoff: int = 10  # minutes
    margin_after_kickoff: int = 180  # minutes
    recent_refresh_minutes: int = 3
    live_call_delay: float = 3.0  # seconds, IN_PLAY/PAUSED
    call_delay: float = 6.0  # seconds, everything else


@dataclass
class FallbackSettings:
    """Secondary-provider reconciliation of stuck matches."""

    cooldown_hours: float = 4.0
    max_api_calls: int = 10
    call_delay: float = 2.5  # seconds
    daily_call_limit: int = 80
    stale_after_hours: float = 3.0
    lookback_days: int = 14
    candidate_limit: int = 200


@dataclass
class AllSettings:
    """Complete sync configuration."""

    daily_sync: DailySyncSettings = field(default_factory=DailySyncSettings)
    realtime: RealtimeSettings = field(default_factory=RealtimeSettings)
    fallback: FallbackSettings = field(default_factory=FallbackSettings)

    def to_dict(self) -> dict:
        from dataclasses import asdict

        return asdict(self)
