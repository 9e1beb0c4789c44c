"""Primary-provider sync.

Daily full refresh of every active competition from football-data.org,
plus the single-competition import and the score-only sync used by manual
triggers.

Daily sync flow:
1. Select active competitions whose season has not ended
2. For each, sequentially: fetch metadata, fetch matches, filter stale
   snapshots, upsert (delay_between_competitions between competitions)
3. Push back ending dates of overdue tournaments with unfinished matches
4. Evaluate tournament completion
5. Run the fallback reconciler (self-throttled)

A failed competition is recorded and the run continues; the run itself
only fails when the provider is not configured.
"""

import asyncio
import logging
import sqlite3
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pronohub.consumers.completion import CompletionResult, TournamentCompletionEvaluator
from pronohub.consumers.duration import DurationEstimator, OverdueRecalculationResult
from pronohub.consumers.fallback import FallbackReconciler, FallbackResult
from pronohub.consumers.score_mapping import count_total_matchdays, map_competition, map_match
from pronohub.consumers.staleness import StalenessPolicy
from pronohub.core.interfaces import PrimaryMatchSource
from pronohub.core.types import SCORED_STATUSES, Competition, CompetitionRunResult, MatchRecord
from pronohub.database.competitions import (
    get_competition,
    get_sync_candidates,
    get_total_matchdays_override,
    update_competition_metadata,
    update_total_matchdays,
    upsert_competition,
)
from pronohub.database.matches import get_matches_by_ids, update_match_scores, upsert_matches
from pronohub.database.settings import DailySyncSettings
from pronohub.utilities.tz import now_utc

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "football-data API key is not configured"


# =============================================================================
# RESULTS
# =============================================================================


@dataclass
class PrimarySyncResult:
    """Outcome of a daily sync or score sync pass."""

    success: bool = True
    error: str | None = None
    competitions: list[CompetitionRunResult] = field(default_factory=list)
    duration: OverdueRecalculationResult | None = None
    completion: CompletionResult | None = None
    fallback: FallbackResult | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for c in self.competitions if c.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for c in self.competitions if not c.success)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "error": self.error,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "competitions": [c.to_dict() for c in self.competitions],
            "duration": self.duration.to_dict() if self.duration else None,
            "completion": self.completion.to_dict() if self.completion else None,
            "fallback": self.fallback.to_dict() if self.fallback else None,
            "errors": self.errors,
        }


@dataclass
class ImportResult:
    """Outcome of importing one competition."""

    competition_id: int
    success: bool = True
    error: str | None = None
    name: str | None = None
    matches_imported: int = 0
    skipped_without_teams: int = 0
    skipped_stale: int = 0
    total_matchdays: int | None = None

    def to_dict(self) -> dict:
        return {
            "competition_id": self.competition_id,
            "success": self.success,
            "error": self.error,
            "name": self.name,
            "matches_imported": self.matches_imported,
            "skipped_without_teams": self.skipped_without_teams,
            "skipped_stale": self.skipped_stale,
            "total_matchdays": self.total_matchdays,
        }


# =============================================================================
# CONSUMER
# =============================================================================


class PrimarySourceSync:
    """Synchronizes competitions and matches from the primary provider.

    Usage:
        sync = PrimarySourceSync(get_db, client, settings.daily_sync,
                                 completion=evaluator, fallback=reconciler)
        result = await sync.run()
        print(result.success_count, result.failure_count)
    """

    def __init__(
        self,
        db_factory: Any,
        client: PrimaryMatchSource,
        settings: DailySyncSettings,
        completion: TournamentCompletionEvaluator | None = None,
        fallback: FallbackReconciler | None = None,
        duration: DurationEstimator | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._db_factory = db_factory
        self._client = client
        self._settings = settings
        self._completion = completion
        self._fallback = fallback
        self._duration = duration
        self._sleep = sleep
        self._clock = clock
        self._policy = StalenessPolicy(settings.stale_after_hours)

    # -------------------------------------------------------------------------
    # Daily sync
    # -------------------------------------------------------------------------

    async def run(self) -> PrimarySyncResult:
        """Run the daily full sync."""
        if not self._client.is_configured:
            logger.error("[SYNC] %s", NOT_CONFIGURED)
            return PrimarySyncResult(success=False, error=NOT_CONFIGURED)

        now = self._clock()
        result = PrimarySyncResult()

        with self._db_factory() as conn:
            competitions = get_sync_candidates(conn, now.date())

        logger.info("[SYNC] Daily sync of %d competition(s)", len(competitions))

        for index, competition in enumerate(competitions):
            if index > 0:
                await self._sleep(self._settings.delay_between_competitions)
            outcome = await self._sync_competition(competition, self._clock())
            result.competitions.append(outcome)
            if not outcome.success:
                result.errors.append(f"competition {competition.id}: {outcome.error}")

        if self._duration is not None:
            try:
                result.duration = self._duration.recalculate_overdue_tournaments()
            except sqlite3.Error as e:
                logger.warning("[SYNC] Overdue recalculation failed: %s", e)
                result.errors.append(f"duration: {e}")

        self._evaluate_completion(result)

        if self._fallback is not None:
            try:
                result.fallback = await self._fallback.run()
            except sqlite3.Error as e:
                logger.warning("[SYNC] Fallback reconciler failed: %s", e)
                result.errors.append(f"fallback: {e}")

        logger.info(
            "[SYNC] Daily sync done: %d succeeded, %d failed",
            result.success_count,
            result.failure_count,
        )
        return result

    async def _sync_competition(
        self, competition: Competition, now: datetime
    ) -> CompetitionRunResult:
        outcome = CompetitionRunResult(competition_id=competition.id, name=competition.name)

        data = await self._client.get_competition(competition.id, call_type="daily-sync")
        if data is None:
            return self._failed(outcome, "competition fetch failed")

        matches_data = await self._client.get_competition_matches(
            competition.id, call_type="daily-sync"
        )
        if matches_data is None:
            return self._failed(outcome, "matches fetch failed")

        raw_matches = matches_data.get("matches") or []
        metadata = map_competition(data, competition.id, now)
        snapshots = self._map_all(raw_matches, competition.id, now)
        outcome.name = metadata.name

        try:
            with self._db_factory() as conn:
                update_competition_metadata(
                    conn,
                    competition.id,
                    metadata.name,
                    metadata.emblem,
                    metadata.area_name,
                    metadata.current_season_start_date,
                    metadata.current_season_end_date,
                    metadata.current_matchday,
                    now,
                )
                override = get_total_matchdays_override(conn, competition.id)
                total = override or count_total_matchdays(raw_matches)
                update_total_matchdays(conn, competition.id, total)

                written, rejected = self._upsert_fresh(conn, snapshots, now)
        except sqlite3.Error as e:
            return self._failed(outcome, f"database error: {e}")

        outcome.matches_count = written
        outcome.skipped_stale = rejected
        outcome.extra["total_matchdays"] = total
        logger.info(
            "[SYNC] %s: %d match(es) upserted, %d stale skipped",
            metadata.name,
            written,
            rejected,
        )
        return outcome

    # -------------------------------------------------------------------------
    # Single competition import
    # -------------------------------------------------------------------------

    async def import_competition(self, competition_id: int) -> ImportResult:
        """Import (or re-import) one competition with its fixtures.

        Fixtures whose teams are not assigned yet are skipped.
        """
        result = ImportResult(competition_id=competition_id)
        if not self._client.is_configured:
            result.success = False
            result.error = NOT_CONFIGURED
            return result

        now = self._clock()
        data = await self._client.get_competition(competition_id, call_type="import")
        if data is None:
            result.success = False
            result.error = "competition fetch failed"
            return result

        matches_data = await self._client.get_competition_matches(
            competition_id, call_type="import"
        )
        if matches_data is None:
            result.success = False
            result.error = "matches fetch failed"
            return result

        raw_matches = matches_data.get("matches") or []
        competition = map_competition(data, competition_id, now)
        result.name = competition.name

        snapshots = []
        for snapshot in self._map_all(raw_matches, competition_id, now):
            if snapshot.has_teams:
                snapshots.append(snapshot)
            else:
                result.skipped_without_teams += 1

        try:
            with self._db_factory() as conn:
                override = get_total_matchdays_override(conn, competition_id)
                competition.total_matchdays = override or count_total_matchdays(raw_matches)
                upsert_competition(conn, competition)
                written, rejected = self._upsert_fresh(conn, snapshots, now)
        except sqlite3.Error as e:
            logger.warning("[IMPORT] Database error for competition %d: %s", competition_id, e)
            result.success = False
            result.error = f"database error: {e}"
            return result

        result.matches_imported = written
        result.skipped_stale = rejected
        result.total_matchdays = competition.total_matchdays
        logger.info(
            "[IMPORT] %s: %d match(es), %d without teams, %d matchdays",
            competition.name,
            written,
            result.skipped_without_teams,
            competition.total_matchdays,
        )
        return result

    # -------------------------------------------------------------------------
    # Score sync
    # -------------------------------------------------------------------------

    async def sync_scores(
        self, competition_id: int | None = None, matchday: int | None = None
    ) -> PrimarySyncResult:
        """Refresh scores of started matches, with the full score breakdown.

        Args:
            competition_id: Limit to one competition (default: all sync candidates)
            matchday: Limit to one matchday
        """
        if not self._client.is_configured:
            logger.error("[SCORES] %s", NOT_CONFIGURED)
            return PrimarySyncResult(success=False, error=NOT_CONFIGURED)

        now = self._clock()
        result = PrimarySyncResult()

        with self._db_factory() as conn:
            if competition_id is not None:
                competition = get_competition(conn, competition_id)
                competitions = [competition] if competition else []
            else:
                competitions = get_sync_candidates(conn, now.date())

        if competition_id is not None and not competitions:
            result.success = False
            result.error = f"competition {competition_id} not found"
            return result

        for index, competition in enumerate(competitions):
            if index > 0:
                await self._sleep(self._settings.delay_between_competitions)
            outcome = await self._sync_competition_scores(competition, matchday, self._clock())
            result.competitions.append(outcome)
            if not outcome.success:
                result.errors.append(f"competition {competition.id}: {outcome.error}")

        self._evaluate_completion(result)
        return result

    async def _sync_competition_scores(
        self, competition: Competition, matchday: int | None, now: datetime
    ) -> CompetitionRunResult:
        outcome = CompetitionRunResult(competition_id=competition.id, name=competition.name)

        data = await self._client.get_competition_matches(
            competition.id, matchday=matchday, call_type="score-sync"
        )
        if data is None:
            return self._failed(outcome, "matches fetch failed")

        scored = [
            m
            for m in self._map_all(data.get("matches") or [], competition.id, now)
            if m.status in SCORED_STATUSES and m.has_teams
        ]

        updated = 0
        try:
            with self._db_factory() as conn:
                for match in scored:
                    if update_match_scores(conn, match):
                        updated += 1
        except sqlite3.Error as e:
            return self._failed(outcome, f"database error: {e}")

        outcome.matches_count = updated
        logger.info("[SCORES] %s: %d match(es) updated", competition.name, updated)
        return outcome

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _map_all(raw_matches: list[dict], competition_id: int, now: datetime) -> list[MatchRecord]:
        snapshots = []
        for raw in raw_matches:
            snapshot = map_match(raw, competition_id, now, include_extended=True)
            if snapshot is not None:
                snapshots.append(snapshot)
        return snapshots

    def _upsert_fresh(self, conn, snapshots: list[MatchRecord], now: datetime) -> tuple[int, int]:
        """Upsert snapshots that pass the staleness policy. Returns (written, rejected)."""
        stored = get_matches_by_ids(conn, [s.football_data_match_id for s in snapshots])
        accepted, rejected = self._policy.filter(snapshots, stored, now)
        return upsert_matches(conn, accepted), len(rejected)

    @staticmethod
    def _failed(outcome: CompetitionRunResult, error: str) -> CompetitionRunResult:
        logger.warning("[SYNC] Competition %d failed: %s", outcome.competition_id, error)
        outcome.success = False
        outcome.error = error
        return outcome

    def _evaluate_completion(self, result: PrimarySyncResult) -> None:
        if self._completion is None:
            return
        try:
            result.completion = self._completion.evaluate()
        except sqlite3.Error as e:
            logger.warning("[SYNC] Completion evaluation failed: %s", e)
            result.errors.append(f"completion: {e}")
