"""Logging setup for the sync service.

Every module logs through logging.getLogger(__name__) with a bracketed
subsystem tag ([SYNC], [REALTIME], [FALLBACK], [COMPLETION], [DURATION],
[SCHEDULER], ...) so one grep isolates a mechanism. setup_logging() is
called by the API lifespan before the scheduler starts.

Files land next to the SQLite database unless LOG_DIR says otherwise:
    pronohub.log         everything at DEBUG and above
    pronohub_errors.log  per-item sync failures (WARNING and above)

Environment variables:
    LOG_LEVEL: console level (default: INFO)
    LOG_DIR: directory for the log files
    LOG_FORMAT: "text" or "json" (default: text)
"""

import json
import logging
import os
import re
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

_configured = False

# Loggers that drown sync output at INFO
NOISY_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "httpx",
    "httpcore",
    "httpcore.connection",
    "httpcore.http11",
    "watchfiles",
)

_TAG_PATTERN = re.compile(r"^\[([A-Z][A-Z0-9_-]*)\]\s*")


class JSONFormatter(logging.Formatter):
    """One JSON object per line; the [TAG] prefix becomes a "tag" field."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        tag = None
        if match := _TAG_PATTERN.match(message):
            tag = match.group(1)
            message = message[match.end():]
        log_data = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "tag": tag,
            "message": message,
            "line": record.lineno,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def _get_log_dir() -> Path:
    if env_dir := os.getenv("LOG_DIR"):
        return Path(env_dir)

    from pronohub.config import Config

    return Path(Config.DATABASE_PATH).parent / "logs"


def _get_log_level() -> int:
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def _get_formatter(use_json: bool = False) -> logging.Formatter:
    if use_json:
        return JSONFormatter()

    return logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _rotating_handler(
    path: Path, level: int, backups: int, formatter: logging.Formatter
) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=backups,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    log_level: str | None = None,
    log_dir: str | Path | None = None,
    use_json: bool | None = None,
) -> None:
    """Initialize the logging system.

    Safe to call multiple times; subsequent calls are no-ops.

    Args:
        log_level: Override LOG_LEVEL env var
        log_dir: Override LOG_DIR env var
        use_json: Override LOG_FORMAT env var (True for JSON output)
    """
    global _configured
    if _configured:
        return

    level = getattr(logging, (log_level or "").upper(), None) or _get_log_level()
    log_path = Path(log_dir) if log_dir else _get_log_dir()
    if use_json is None:
        use_json = os.getenv("LOG_FORMAT", "text").lower() == "json"

    log_path.mkdir(parents=True, exist_ok=True)
    formatter = _get_formatter(use_json)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)
    root_logger.addHandler(
        _rotating_handler(log_path / "pronohub.log", logging.DEBUG, 5, formatter)
    )
    # Per-item sync failures land here, one line each
    root_logger.addHandler(
        _rotating_handler(log_path / "pronohub_errors.log", logging.WARNING, 3, formatter)
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)

    _configured = True

    from pronohub.config import VERSION

    logger = logging.getLogger("pronohub")
    logger.info("[STARTUP] pronohub %s - score sync service", VERSION)
    logger.info(
        "[STARTUP] Log level %s, files in %s (%s)",
        logging.getLevelName(level),
        log_path,
        "json" if use_json else "text",
    )
