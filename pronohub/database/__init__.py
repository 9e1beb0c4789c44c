"""Database layer."""

from pronohub.database.connection import (
    get_connection,
    get_db,
    init_db,
    make_db_factory,
    reset_db,
)
from pronohub.database.settings import (
    AllSettings,
    DailySyncSettings,
    FallbackSettings,
    RealtimeSettings,
    get_all_settings,
    get_last_run,
    set_last_run,
)

__all__ = [
    "get_connection",
    "get_db",
    "init_db",
    "make_db_factory",
    "reset_db",
    "AllSettings",
    "DailySyncSettings",
    "FallbackSettings",
    "RealtimeSettings",
    "get_all_settings",
    "get_last_run",
    "set_last_run",
]
