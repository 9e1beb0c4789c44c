"""Run entry points shared by the scheduler and the HTTP triggers.

Each function reads the current settings, builds provider clients and
consumers, runs one pass, and records it in sync_runs. Clients passed in
by the caller are used as-is and left open; clients created here are
closed when the run ends.
"""

import logging
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from pronohub.consumers.completion import TournamentCompletionEvaluator
from pronohub.consumers.duration import DurationEstimator
from pronohub.consumers.fallback import FallbackReconciler, FallbackResult
from pronohub.consumers.primary_sync import ImportResult, PrimarySourceSync, PrimarySyncResult
from pronohub.consumers.realtime_sync import RealtimeResult, RealtimeWindowSync
from pronohub.database.api_calls import make_api_call_recorder
from pronohub.database.settings import AllSettings, get_all_settings, set_last_run
from pronohub.database.sync_runs import RunStatus, RunType, SyncRun, create_run, save_run
from pronohub.providers import (
    FootballDataClient,
    TSDBClient,
    create_football_data_client,
    create_tsdb_client,
)
from pronohub.services import get_league_mapping_service
from pronohub.utilities.tz import now_utc

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _football_data(
    db_factory: Any, client: FootballDataClient | None
) -> AsyncIterator[FootballDataClient]:
    if client is not None:
        yield client
        return
    async with create_football_data_client(make_api_call_recorder(db_factory)) as created:
        yield created


@asynccontextmanager
async def _tsdb(db_factory: Any, client: TSDBClient | None) -> AsyncIterator[TSDBClient]:
    if client is not None:
        yield client
        return
    async with create_tsdb_client(make_api_call_recorder(db_factory)) as created:
        yield created


def _start(db_factory: Any, run_type: RunType) -> tuple[AllSettings, SyncRun]:
    with db_factory() as conn:
        return get_all_settings(conn), create_run(conn, run_type)


def _finish(
    db_factory: Any,
    run: SyncRun,
    status: RunStatus,
    message: str | None,
    processed: int = 0,
    failed: int = 0,
    extra: dict | None = None,
) -> None:
    run.items_processed = processed
    run.items_failed = failed
    run.extra_metrics = extra or {}
    run.complete(status, message)
    try:
        with db_factory() as conn:
            save_run(conn, run)
    except sqlite3.Error as e:
        logger.warning("[RUN] Failed to save %s run %s: %s", run.run_type, run.id, e)


def _mark(db_factory: Any, mechanism: str) -> None:
    try:
        with db_factory() as conn:
            set_last_run(conn, mechanism, now_utc())
    except sqlite3.Error as e:
        logger.warning("[RUN] Failed to store %s last run: %s", mechanism, e)


def _primary_status(result: PrimarySyncResult) -> RunStatus:
    if not result.success:
        return "failed"
    return "partial" if result.failure_count else "completed"


# =============================================================================
# ENTRY POINTS
# =============================================================================


async def run_daily_sync(
    db_factory: Any,
    football_data: FootballDataClient | None = None,
    tsdb: TSDBClient | None = None,
) -> PrimarySyncResult:
    """Daily sync followed by overdue recalculation, completion and fallback."""
    settings, run = _start(db_factory, "daily_sync")

    async with _football_data(db_factory, football_data) as fd, _tsdb(db_factory, tsdb) as sdb:
        sync = PrimarySourceSync(
            db_factory,
            fd,
            settings.daily_sync,
            completion=TournamentCompletionEvaluator(db_factory),
            fallback=FallbackReconciler(
                db_factory, sdb, get_league_mapping_service(), settings.fallback
            ),
            duration=DurationEstimator(db_factory),
        )
        result = await sync.run()

    _finish(
        db_factory,
        run,
        _primary_status(result),
        result.error,
        processed=result.success_count,
        failed=result.failure_count,
        extra={
            "completed_tournaments": len(result.completion.completed) if result.completion else 0,
            "fallback_patched": result.fallback.patched if result.fallback else 0,
        },
    )
    if result.success:
        _mark(db_factory, "daily_sync")
    return result


async def run_realtime_sync(
    db_factory: Any, football_data: FootballDataClient | None = None
) -> RealtimeResult:
    settings, run = _start(db_factory, "realtime")

    async with _football_data(db_factory, football_data) as fd:
        sync = RealtimeWindowSync(
            db_factory,
            fd,
            settings.realtime,
            stale_after_hours=settings.daily_sync.stale_after_hours,
        )
        result = await sync.run()

    if not result.success:
        status: RunStatus = "failed"
    elif result.errors:
        status = "partial"
    else:
        status = "completed"
    _finish(
        db_factory,
        run,
        status,
        result.error,
        processed=len(result.updated),
        failed=len(result.errors),
        extra={"windows": result.windows, "checked": result.checked},
    )
    if result.success:
        _mark(db_factory, "realtime")
    return result


async def run_fallback(
    db_factory: Any, force: bool = False, tsdb: TSDBClient | None = None
) -> FallbackResult:
    """Standalone fallback pass (manual trigger). Records its own last run."""
    settings, run = _start(db_factory, "fallback")

    async with _tsdb(db_factory, tsdb) as sdb:
        reconciler = FallbackReconciler(
            db_factory, sdb, get_league_mapping_service(), settings.fallback
        )
        result = await reconciler.run(force=force)

    if result.skipped:
        status: RunStatus = "skipped"
    elif result.errors:
        status = "partial"
    else:
        status = "completed"
    _finish(
        db_factory,
        run,
        status,
        result.skip_reason,
        processed=result.patched,
        failed=len(result.errors),
        extra={"checked": result.checked, "api_calls": result.api_calls},
    )
    return result


async def run_score_sync(
    db_factory: Any,
    competition_id: int | None = None,
    matchday: int | None = None,
    football_data: FootballDataClient | None = None,
) -> PrimarySyncResult:
    settings, run = _start(db_factory, "score_sync")

    async with _football_data(db_factory, football_data) as fd:
        sync = PrimarySourceSync(
            db_factory,
            fd,
            settings.daily_sync,
            completion=TournamentCompletionEvaluator(db_factory),
        )
        result = await sync.sync_scores(competition_id=competition_id, matchday=matchday)

    _finish(
        db_factory,
        run,
        _primary_status(result),
        result.error,
        processed=sum(c.matches_count for c in result.competitions),
        failed=result.failure_count,
    )
    return result


async def run_import(
    db_factory: Any,
    competition_id: int,
    football_data: FootballDataClient | None = None,
) -> ImportResult:
    settings, run = _start(db_factory, "import")

    async with _football_data(db_factory, football_data) as fd:
        sync = PrimarySourceSync(db_factory, fd, settings.daily_sync)
        result = await sync.import_competition(competition_id)

    _finish(
        db_factory,
        run,
        "completed" if result.success else "failed",
        result.error,
        processed=result.matches_imported,
        extra={"competition_id": competition_id},
    )
    return result
