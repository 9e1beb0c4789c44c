"""Settings read operations.

Settings are stored one row per key in admin_settings, values as text.
Query functions coerce them back into the typed dataclasses.
"""

import logging
from datetime import datetime
from sqlite3 import Connection

from pronohub.utilities.tz import parse_datetime

from .types import AllSettings, DailySyncSettings, FallbackSettings, RealtimeSettings

logger = logging.getLogger(__name__)

# Single source of truth for defaults - the dataclasses themselves
_DAILY_DEFAULTS = DailySyncSettings()
_REALTIME_DEFAULTS = RealtimeSettings()
_FALLBACK_DEFAULTS = FallbackSettings()

# (group, field) -> admin_settings key
SETTING_KEYS: dict[tuple[str, str], str] = {
    ("daily_sync", "enabled"): "cron_daily_sync_enabled",
    ("daily_sync", "hour"): "cron_daily_sync_hour",
    ("daily_sync", "delay_between_competitions"): "cron_delay_between_competitions",
    ("daily_sync", "stale_after_hours"): "sync_stale_after_hours",
    ("realtime", "enabled"): "cron_auto_update_enabled",
    ("realtime", "frequency_minutes"): "cron_realtime_frequency",
    ("realtime", "margin_before_kickoff"): "cron_margin_before_kickoff",
    ("realtime", "margin_after_kickoff"): "cron_margin_after_match",
    ("realtime", "recent_refresh_minutes"): "cron_recent_refresh_minutes",
    ("realtime", "live_call_delay"): "cron_live_delay_between_calls",
    ("realtime", "call_delay"): "cron_min_delay_between_calls",
    ("fallback", "cooldown_hours"): "cron_fallback_interval",
    ("fallback", "max_api_calls"): "fallback_max_api_calls",
    ("fallback", "call_delay"): "fallback_delay_between_calls",
    ("fallback", "daily_call_limit"): "fallback_daily_call_limit",
    ("fallback", "stale_after_hours"): "fallback_stale_after_hours",
    ("fallback", "lookback_days"): "fallback_lookback_days",
    ("fallback", "candidate_limit"): "fallback_candidate_limit",
}

# One "last run" timestamp per mechanism
LAST_RUN_KEYS = {
    "daily_sync": "cron_daily_sync_last_run",
    "realtime": "cron_realtime_last_run",
    "fallback": "tsdb_last_fallback_run",
}


def get_setting(conn: Connection, key: str) -> str | None:
    """Get a raw setting value (None when missing)."""
    row = conn.execute(
        "SELECT setting_value FROM admin_settings WHERE setting_key = ?", (key,)
    ).fetchone()
    return row["setting_value"] if row else None


def _load_raw(conn: Connection) -> dict[str, str | None]:
    cursor = conn.execute("SELECT setting_key, setting_value FROM admin_settings")
    return {row["setting_key"]: row["setting_value"] for row in cursor.fetchall()}


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_int(value: str | None, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except ValueError:
        logger.warning("[SETTINGS] Invalid integer %r, using default %s", value, default)
        return default


def _as_float(value: str | None, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("[SETTINGS] Invalid number %r, using default %s", value, default)
        return default


def _as_str(value: str | None, default: str) -> str:
    return value if value else default


def _coerce(raw: dict[str, str | None], group: str, name: str, default):
    value = raw.get(SETTING_KEYS[(group, name)])
    if isinstance(default, bool):
        return _as_bool(value, default)
    if isinstance(default, int):
        return _as_int(value, default)
    if isinstance(default, float):
        return _as_float(value, default)
    return _as_str(value, default)


def _build_daily_sync_settings(raw: dict[str, str | None]) -> DailySyncSettings:
    d = _DAILY_DEFAULTS
    return DailySyncSettings(
        enabled=_coerce(raw, "daily_sync", "enabled", d.enabled),
        hour=_coerce(raw, "daily_sync", "hour", d.hour),
        delay_between_competitions=_coerce(
            raw, "daily_sync", "delay_between_competitions", d.delay_between_competitions
        ),
        stale_after_hours=_coerce(raw, "daily_sync", "stale_after_hours", d.stale_after_hours),
    )


def _build_realtime_settings(raw: dict[str, str | None]) -> RealtimeSettings:
    d = _REALTIME_DEFAULTS
    return RealtimeSettings(
        enabled=_coerce(raw, "realtime", "enabled", d.enabled),
        frequency_minutes=_coerce(raw, "realtime", "frequency_minutes", d.frequency_minutes),
        margin_before_kickoff=_coerce(
            raw, "realtime", "margin_before_kickoff", d.margin_before_kickoff
        ),
        margin_after_kickoff=_coerce(
            raw, "realtime", "margin_after_kickoff", d.margin_after_kickoff
        ),
        recent_refresh_minutes=_coerce(
            raw, "realtime", "recent_refresh_minutes", d.recent_refresh_minutes
        ),
        live_call_delay=_coerce(raw, "realtime", "live_call_delay", d.live_call_delay),
        call_delay=_coerce(raw, "realtime", "call_delay", d.call_delay),
    )


def _build_fallback_settings(raw: dict[str, str | None]) -> FallbackSettings:
    d = _FALLBACK_DEFAULTS
    return FallbackSettings(
        cooldown_hours=_coerce(raw, "fallback", "cooldown_hours", d.cooldown_hours),
        max_api_calls=_coerce(raw, "fallback", "max_api_calls", d.max_api_calls),
        call_delay=_coerce(raw, "fallback", "call_delay", d.call_delay),
        daily_call_limit=_coerce(raw, "fallback", "daily_call_limit", d.daily_call_limit),
        stale_after_hours=_coerce(raw, "fallback", "stale_after_hours", d.stale_after_hours),
        lookback_days=_coerce(raw, "fallback", "lookback_days", d.lookback_days),
        candidate_limit=_coerce(raw, "fallback", "candidate_limit", d.candidate_limit),
    )


def get_all_settings(conn: Connection) -> AllSettings:
    """Get the complete sync configuration.

    Args:
        conn: Database connection

    Returns:
        AllSettings with stored values, defaults where missing
    """
    raw = _load_raw(conn)
    return AllSettings(
        daily_sync=_build_daily_sync_settings(raw),
        realtime=_build_realtime_settings(raw),
        fallback=_build_fallback_settings(raw),
    )


def get_daily_sync_settings(conn: Connection) -> DailySyncSettings:
    return _build_daily_sync_settings(_load_raw(conn))


def get_realtime_settings(conn: Connection) -> RealtimeSettings:
    return _build_realtime_settings(_load_raw(conn))


def get_fallback_settings(conn: Connection) -> FallbackSettings:
    return _build_fallback_settings(_load_raw(conn))


def get_last_run(conn: Connection, mechanism: str) -> datetime | None:
    """Get the persisted last-run timestamp for a sync mechanism.

    Args:
        conn: Database connection
        mechanism: 'daily_sync', 'realtime' or 'fallback'
    """
    return parse_datetime(get_setting(conn, LAST_RUN_KEYS[mechanism]))
