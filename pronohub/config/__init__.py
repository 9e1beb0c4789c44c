"""Application configuration.

Single source of truth for environment-level configuration values.
Loads from environment variables with .env file support.

Runtime tunables (delays, margins, cooldowns) live in the admin_settings
table and are read through pronohub.database.settings, not here.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# =============================================================================
# VERSION - Read from pyproject.toml (single source of truth)
# =============================================================================


def _get_version() -> str:
    """Read version - prefer pyproject.toml, fall back to installed metadata."""
    try:
        import tomllib

        pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"
        if pyproject_path.exists():
            with open(pyproject_path, "rb") as f:
                data = tomllib.load(f)
                return data.get("project", {}).get("version", "0.0.0")
    except (OSError, KeyError, ValueError):
        pass

    try:
        from importlib.metadata import PackageNotFoundError, version

        return version("pronohub")
    except (ImportError, PackageNotFoundError):
        pass

    return "0.0.0"


VERSION = _get_version()

# Load .env file from project root
_PROJECT_ROOT = Path(__file__).parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"
load_dotenv(_ENV_FILE)


class Config:
    """Application configuration singleton.

    Values are loaded from environment variables with sensible defaults.
    Config does NOT import from database layer (layer separation).
    """

    # Database
    DATABASE_PATH: str = os.getenv(
        "DATABASE_PATH",
        str(_PROJECT_ROOT / "data" / "pronohub.db"),
    )

    # API
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))

    # Primary provider (football-data.org v4)
    FOOTBALL_DATA_API_BASE: str = os.getenv(
        "FOOTBALL_DATA_API_BASE",
        "https://api.football-data.org/v4",
    )
    FOOTBALL_DATA_API_KEY: str | None = os.getenv("FOOTBALL_DATA_API_KEY") or None

    # Secondary provider (TheSportsDB, free key works for eventsseason.php)
    TSDB_API_BASE: str = os.getenv(
        "TSDB_API_BASE",
        "https://www.thesportsdb.com/api/v1/json",
    )
    TSDB_API_KEY: str | None = os.getenv("TSDB_API_KEY") or None

    @classmethod
    def reload(cls) -> None:
        """Reload configuration from environment.

        Useful for testing or runtime config changes.
        """
        load_dotenv(_ENV_FILE, override=True)
        cls.DATABASE_PATH = os.getenv("DATABASE_PATH", cls.DATABASE_PATH)
        cls.FOOTBALL_DATA_API_BASE = os.getenv(
            "FOOTBALL_DATA_API_BASE", cls.FOOTBALL_DATA_API_BASE
        )
        cls.FOOTBALL_DATA_API_KEY = os.getenv("FOOTBALL_DATA_API_KEY") or None
        cls.TSDB_API_BASE = os.getenv("TSDB_API_BASE", cls.TSDB_API_BASE)
        cls.TSDB_API_KEY = os.getenv("TSDB_API_KEY") or None


def get_football_data_api_key() -> str | None:
    """Get the primary provider API key (None when not configured)."""
    return Config.FOOTBALL_DATA_API_KEY


def get_tsdb_api_key() -> str | None:
    """Get the TheSportsDB API key (None means use the free key)."""
    return Config.TSDB_API_KEY
