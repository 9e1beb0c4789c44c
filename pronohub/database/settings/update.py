"""Settings update operations.

Functions to modify settings in the database.
"""

import logging
from datetime import datetime
from sqlite3 import Connection

from pronohub.utilities.tz import format_datetime

from .read import LAST_RUN_KEYS, SETTING_KEYS

logger = logging.getLogger(__name__)


def set_setting(conn: Connection, key: str, value: str | None) -> None:
    """Insert or replace a single raw setting."""
    conn.execute(
        """
        INSERT INTO admin_settings (setting_key, setting_value, updated_at)
        VALUES (?, ?, strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
        ON CONFLICT(setting_key) DO UPDATE SET
            setting_value = excluded.setting_value,
            updated_at = excluded.updated_at
        """,
        (key, value),
    )


def delete_setting(conn: Connection, key: str) -> bool:
    """Delete a setting. Returns True if a row was removed."""
    cursor = conn.execute("DELETE FROM admin_settings WHERE setting_key = ?", (key,))
    return cursor.rowcount > 0


def _to_text(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _update_group(conn: Connection, group: str, values: dict) -> bool:
    """Write only the provided (non-None) fields of a settings group."""
    updated = []
    for name, value in values.items():
        if value is None:
            continue
        set_setting(conn, SETTING_KEYS[(group, name)], _to_text(value))
        updated.append(name)

    if updated:
        logger.info("[UPDATED] %s settings: %s", group, ", ".join(updated))
    return bool(updated)


def update_daily_sync_settings(
    conn: Connection,
    enabled: bool | None = None,
    hour: str | None = None,
    delay_between_competitions: float | None = None,
    stale_after_hours: float | None = None,
) -> bool:
    """Update daily sync settings.

    Only updates fields that are explicitly provided.

    Returns:
        True if anything was written
    """
    return _update_group(
        conn,
        "daily_sync",
        {
            "enabled": enabled,
            "hour": hour,
            "delay_between_competitions": delay_between_competitions,
            "stale_after_hours": stale_after_hours,
        },
    )


def update_realtime_settings(
    conn: Connection,
    enabled: bool | None = None,
    frequency_minutes: int | None = None,
    margin_before_kickoff: int | None = None,
    margin_after_kickoff: int | None = None,
    recent_refresh_minutes: int | None = None,
    live_call_delay: float | None = None,
    call_delay: float | None = None,
) -> bool:
    """Update realtime window sync settings. Only provided fields are written."""
    return _update_group(
        conn,
        "realtime",
        {
            "enabled": enabled,
            "frequency_minutes": frequency_minutes,
            "margin_before_kickoff": margin_before_kickoff,
            "margin_after_kickoff": margin_after_kickoff,
            "recent_refresh_minutes": recent_refresh_minutes,
            "live_call_delay": live_call_delay,
            "call_delay": call_delay,
        },
    )


def update_fallback_settings(
    conn: Connection,
    cooldown_hours: float | None = None,
    max_api_calls: int | None = None,
    call_delay: float | None = None,
    daily_call_limit: int | None = None,
    stale_after_hours: float | None = None,
    lookback_days: int | None = None,
    candidate_limit: int | None = None,
) -> bool:
    """Update fallback reconciler settings. Only provided fields are written."""
    return _update_group(
        conn,
        "fallback",
        {
            "cooldown_hours": cooldown_hours,
            "max_api_calls": max_api_calls,
            "call_delay": call_delay,
            "daily_call_limit": daily_call_limit,
            "stale_after_hours": stale_after_hours,
            "lookback_days": lookback_days,
            "candidate_limit": candidate_limit,
        },
    )


def set_last_run(conn: Connection, mechanism: str, when: datetime) -> None:
    """Persist the last-run timestamp for a sync mechanism."""
    set_setting(conn, LAST_RUN_KEYS[mechanism], format_datetime(when))


def clear_last_run(conn: Connection, mechanism: str) -> bool:
    """Remove the last-run timestamp (bypasses any cooldown on the next run)."""
    return delete_setting(conn, LAST_RUN_KEYS[mechanism])
