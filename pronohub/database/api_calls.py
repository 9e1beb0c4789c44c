"""API call audit log.

Every call to an external provider is appended here. The log is used for
diagnostics and the fallback's daily quota check; recording must never
break a sync run.
"""

import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime
from sqlite3 import Connection
from typing import Any

from pronohub.core.types import ApiCallLogEntry
from pronohub.utilities.tz import format_datetime, parse_datetime

logger = logging.getLogger(__name__)


def log_api_call(conn: Connection, entry: ApiCallLogEntry) -> int:
    """Append one audit entry. Returns the new id."""
    cursor = conn.execute(
        """
        INSERT INTO api_calls_log (
            api_name, call_type, endpoint, competition_id, success,
            status_code, response_time_ms, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, COALESCE(?, strftime('%Y-%m-%dT%H:%M:%SZ', 'now')))
        """,
        (
            entry.api_name,
            entry.call_type,
            entry.endpoint,
            entry.competition_id,
            int(entry.success),
            entry.status_code,
            entry.response_time_ms,
            format_datetime(entry.created_at),
        ),
    )
    return cursor.lastrowid


def make_api_call_recorder(db_factory: Any) -> Callable[[ApiCallLogEntry], None]:
    """Build a recorder that writes audit entries through db_factory.

    The returned callable swallows storage errors (logged at DEBUG).
    """

    def record(entry: ApiCallLogEntry) -> None:
        try:
            with db_factory() as conn:
                log_api_call(conn, entry)
        except (sqlite3.Error, OSError) as e:
            logger.debug("[AUDIT] Failed to log %s call: %s", entry.api_name, e)

    return record


def count_calls_since(
    conn: Connection,
    api_name: str,
    since: datetime,
    call_type: str | None = None,
) -> int:
    """Count calls to a provider since a moment (optionally one call type)."""
    query = "SELECT COUNT(*) AS n FROM api_calls_log WHERE api_name = ? AND created_at >= ?"
    params: list = [api_name, format_datetime(since)]
    if call_type:
        query += " AND call_type = ?"
        params.append(call_type)
    return conn.execute(query, params).fetchone()["n"]


def get_api_call_stats(conn: Connection, since: datetime) -> dict:
    """Aggregate calls per provider and call type since a moment."""
    cursor = conn.execute(
        """
        SELECT api_name, call_type,
               COUNT(*) AS total,
               SUM(CASE WHEN success = 1 THEN 1 ELSE 0 END) AS succeeded,
               AVG(response_time_ms) AS avg_ms
        FROM api_calls_log
        WHERE created_at >= ?
        GROUP BY api_name, call_type
        ORDER BY api_name, call_type
        """,
        (format_datetime(since),),
    )
    providers: dict[str, dict] = {}
    for row in cursor.fetchall():
        provider = providers.setdefault(row["api_name"], {"total": 0, "failed": 0, "by_type": {}})
        failed = row["total"] - (row["succeeded"] or 0)
        provider["total"] += row["total"]
        provider["failed"] += failed
        provider["by_type"][row["call_type"]] = {
            "total": row["total"],
            "failed": failed,
            "avg_response_ms": round(row["avg_ms"]) if row["avg_ms"] is not None else None,
        }
    return {"since": format_datetime(since), "providers": providers}


def get_recent_calls(conn: Connection, limit: int = 50) -> list[ApiCallLogEntry]:
    cursor = conn.execute(
        "SELECT * FROM api_calls_log ORDER BY id DESC LIMIT ?",
        (limit,),
    )
    return [
        ApiCallLogEntry(
            id=row["id"],
            api_name=row["api_name"],
            call_type=row["call_type"],
            endpoint=row["endpoint"],
            competition_id=row["competition_id"],
            success=bool(row["success"]),
            status_code=row["status_code"],
            response_time_ms=row["response_time_ms"],
            created_at=parse_datetime(row["created_at"]),
        )
        for row in cursor.fetchall()
    ]
