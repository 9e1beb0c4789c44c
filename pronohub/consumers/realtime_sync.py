"""Realtime sync of matches inside active match windows.

A match window is a (competition, day) interval produced elsewhere. While a
window is open, matches of that day close to kickoff or in play are
refreshed one by one from GET /matches/{id}.

Only status, score and winner are written here; the extended score
breakdown is left to the daily and score syncs.
"""

import asyncio
import logging
import sqlite3
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, time, timedelta
from typing import Any

from pronohub.consumers.score_mapping import map_match
from pronohub.consumers.staleness import StalenessPolicy
from pronohub.core.interfaces import PrimaryMatchSource
from pronohub.core.types import LIVE_STATUSES, REALTIME_STATUSES, MatchRecord, MatchWindow
from pronohub.database.match_windows import get_active_windows
from pronohub.database.matches import get_matches_in_range, update_match_result
from pronohub.database.settings import RealtimeSettings
from pronohub.utilities.tz import now_utc

logger = logging.getLogger(__name__)


@dataclass
class RealtimeResult:
    success: bool = True
    error: str | None = None
    windows: int = 0
    checked: int = 0
    updated: list[dict] = field(default_factory=list)
    skipped_recent: int = 0
    skipped_stale: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "error": self.error,
            "windows": self.windows,
            "checked": self.checked,
            "updated": self.updated,
            "skipped_recent": self.skipped_recent,
            "skipped_stale": self.skipped_stale,
            "errors": self.errors,
        }


class RealtimeWindowSync:
    """Refreshes live and about-to-start matches of open match windows.

    Usage:
        sync = RealtimeWindowSync(get_db, client, settings.realtime)
        result = await sync.run()
    """

    def __init__(
        self,
        db_factory: Any,
        client: PrimaryMatchSource,
        settings: RealtimeSettings,
        stale_after_hours: float = 3.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._db_factory = db_factory
        self._client = client
        self._settings = settings
        self._policy = StalenessPolicy(stale_after_hours)
        self._sleep = sleep
        self._clock = clock

    def _in_proximity(self, match: MatchRecord, now: datetime) -> bool:
        """Live matches always qualify; TIMED ones only near kickoff."""
        if match.status in LIVE_STATUSES:
            return True
        if match.utc_date is None:
            return False
        since_kickoff = now - match.utc_date
        return (
            -timedelta(minutes=self._settings.margin_before_kickoff)
            <= since_kickoff
            <= timedelta(minutes=self._settings.margin_after_kickoff)
        )

    def _recently_refreshed(self, match: MatchRecord, now: datetime) -> bool:
        if match.status in LIVE_STATUSES or match.last_updated_at is None:
            return False
        return now - match.last_updated_at < timedelta(
            minutes=self._settings.recent_refresh_minutes
        )

    def _collect(self, windows: list[MatchWindow], now: datetime, result: RealtimeResult):
        """Matches to refresh, deduplicated across windows, in kickoff order."""
        due: dict[int, MatchRecord] = {}
        with self._db_factory() as conn:
            for window in windows:
                day_start = datetime.combine(window.match_date, time.min, tzinfo=UTC)
                matches = get_matches_in_range(
                    conn,
                    window.competition_id,
                    day_start,
                    day_start + timedelta(days=1),
                    REALTIME_STATUSES,
                )
                for match in matches:
                    if match.football_data_match_id in due:
                        continue
                    if not self._in_proximity(match, now):
                        continue
                    if self._recently_refreshed(match, now):
                        result.skipped_recent += 1
                        continue
                    due[match.football_data_match_id] = match
        return list(due.values())

    async def run(self) -> RealtimeResult:
        """Run one realtime pass."""
        if not self._client.is_configured:
            logger.error("[REALTIME] football-data API key is not configured")
            return RealtimeResult(success=False, error="football-data API key is not configured")

        now = self._clock()
        result = RealtimeResult()

        with self._db_factory() as conn:
            windows = get_active_windows(conn, now)
        result.windows = len(windows)
        if not windows:
            logger.debug("[REALTIME] No active match window")
            return result

        due = self._collect(windows, now, result)
        logger.info(
            "[REALTIME] %d window(s) open, %d match(es) to refresh", len(windows), len(due)
        )

        for index, match in enumerate(due):
            if index > 0:
                if match.status in LIVE_STATUSES:
                    await self._sleep(self._settings.live_call_delay)
                else:
                    await self._sleep(self._settings.call_delay)
            result.checked += 1
            await self._refresh(match, result)

        return result

    async def _refresh(self, match: MatchRecord, result: RealtimeResult) -> None:
        match_id = match.football_data_match_id
        data = await self._client.get_match(
            match_id, competition_id=match.competition_id, call_type="realtime"
        )
        if data is None:
            result.errors.append(f"match {match_id}: fetch failed")
            return

        now = self._clock()
        snapshot = map_match(data.get("match", data), match.competition_id, now, False)
        if snapshot is None:
            result.errors.append(f"match {match_id}: unreadable payload")
            return

        if not self._policy.should_accept(match, snapshot, now):
            result.skipped_stale += 1
            return

        try:
            with self._db_factory() as conn:
                update_match_result(
                    conn,
                    match_id,
                    snapshot.status,
                    snapshot.home_score,
                    snapshot.away_score,
                    now,
                    snapshot.winner_team_id,
                )
        except sqlite3.Error as e:
            logger.warning("[REALTIME] Failed to update match %d: %s", match_id, e)
            result.errors.append(f"match {match_id}: {e}")
            return

        changed = (snapshot.status, snapshot.home_score, snapshot.away_score) != (
            match.status,
            match.home_score,
            match.away_score,
        )
        if changed:
            logger.info(
                "[REALTIME] %s vs %s: %s %s-%s",
                match.home_team_name,
                match.away_team_name,
                snapshot.status,
                snapshot.home_score,
                snapshot.away_score,
            )
        result.updated.append(
            {
                "id": match_id,
                "status": snapshot.status,
                "home_score": snapshot.home_score,
                "away_score": snapshot.away_score,
            }
        )
