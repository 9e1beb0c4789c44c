"""Database operations for sync settings.

Settings live in the admin_settings key-value table and are exposed as
typed dataclass groups.
"""

from .read import (
    LAST_RUN_KEYS,
    SETTING_KEYS,
    get_all_settings,
    get_daily_sync_settings,
    get_fallback_settings,
    get_last_run,
    get_realtime_settings,
    get_setting,
)
from .types import AllSettings, DailySyncSettings, FallbackSettings, RealtimeSettings
from .update import (
    clear_last_run,
    delete_setting,
    set_last_run,
    set_setting,
    update_daily_sync_settings,
    update_fallback_settings,
    update_realtime_settings,
)

__all__ = [
    # Types
    "AllSettings",
    "DailySyncSettings",
    "FallbackSettings",
    "RealtimeSettings",
    # Keys
    "LAST_RUN_KEYS",
    "SETTING_KEYS",
    # Read operations
    "get_all_settings",
    "get_daily_sync_settings",
    "get_fallback_settings",
    "get_last_run",
    "get_realtime_settings",
    "get_setting",
    # Update operations
    "clear_last_run",
    "delete_setting",
    "set_last_run",
    "set_setting",
    "update_daily_sync_settings",
    "update_fallback_settings",
    "update_realtime_settings",
]
