"""Sync run database operations.

One row per scheduled or manual sync invocation, with its outcome counts.
This is the operational log the scheduler and trigger routes write to.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from sqlite3 import Connection
from typing import Literal

from pronohub.utilities.tz import format_datetime, now_utc, parse_datetime

logger = logging.getLogger(__name__)


# =============================================================================
# TYPES
# =============================================================================

RunType = Literal["daily_sync", "realtime", "fallback", "score_sync", "import", "duration"]
RunStatus = Literal["running", "completed", "failed", "partial", "skipped"]


@dataclass
class SyncRun:
    """A sync run record."""

    id: int | None = None
    run_type: RunType = "daily_sync"
    started_at: datetime = field(default_factory=now_utc)
    completed_at: datetime | None = None
    duration_ms: int | None = None
    status: RunStatus = "running"
    message: str | None = None
    items_processed: int = 0
    items_failed: int = 0
    extra_metrics: dict = field(default_factory=dict)

    def complete(self, status: RunStatus = "completed", message: str | None = None):
        """Mark run as complete and calculate duration."""
        self.completed_at = now_utc()
        self.status = status
        self.message = message
        if self.started_at:
            delta = self.completed_at - self.started_at
            self.duration_ms = int(delta.total_seconds() * 1000)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "run_type": self.run_type,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.duration_ms,
            "status": self.status,
            "message": self.message,
            "items_processed": self.items_processed,
            "items_failed": self.items_failed,
            "extra_metrics": self.extra_metrics,
        }


# =============================================================================
# CRUD
# =============================================================================


def create_run(conn: Connection, run_type: RunType) -> SyncRun:
    """Create a run in 'running' state."""
    run = SyncRun(run_type=run_type)
    cursor = conn.execute(
        "INSERT INTO sync_runs (run_type, started_at, status) VALUES (?, ?, ?)",
        (run.run_type, format_datetime(run.started_at), run.status),
    )
    run.id = cursor.lastrowid
    return run


def save_run(conn: Connection, run: SyncRun) -> None:
    """Save a completed run with its metrics."""
    if run.id is None:
        raise ValueError("Run must have an ID (call create_run first)")

    conn.execute(
        """
        UPDATE sync_runs SET
            completed_at = ?,
            duration_ms = ?,
            status = ?,
            message = ?,
            items_processed = ?,
            items_failed = ?,
            extra_metrics = ?
        WHERE id = ?
        """,
        (
            format_datetime(run.completed_at),
            run.duration_ms,
            run.status,
            run.message,
            run.items_processed,
            run.items_failed,
            json.dumps(run.extra_metrics, default=str),
            run.id,
        ),
    )


def get_recent_runs(
    conn: Connection,
    limit: int = 50,
    run_type: RunType | None = None,
) -> list[SyncRun]:
    """Get recent runs, newest first."""
    query = "SELECT * FROM sync_runs WHERE 1=1"
    params: list = []

    if run_type:
        query += " AND run_type = ?"
        params.append(run_type)

    query += " ORDER BY id DESC LIMIT ?"
    params.append(limit)

    runs = []
    for row in conn.execute(query, params).fetchall():
        try:
            extra = json.loads(row["extra_metrics"]) if row["extra_metrics"] else {}
        except json.JSONDecodeError:
            extra = {}
        runs.append(
            SyncRun(
                id=row["id"],
                run_type=row["run_type"],
                started_at=parse_datetime(row["started_at"]),
                completed_at=parse_datetime(row["completed_at"]),
                duration_ms=row["duration_ms"],
                status=row["status"],
                message=row["message"],
                items_processed=row["items_processed"] or 0,
                items_failed=row["items_failed"] or 0,
                extra_metrics=extra,
            )
        )
    return runs
