"""Secondary-provider reconciliation of stuck matches.

The primary provider sometimes never moves a match past TIMED/SCHEDULED.
This consumer looks for matches whose kickoff is well in the past but which
are still reported as not started, pulls the season's finished events from
TheSportsDB, and patches the ones it can correlate.

Throttling:
- cooldown between runs (fallback_cooldown_hours)
- hard cap on secondary-provider calls per run (fallback_max_api_calls)
- daily quota over api_calls_log (fallback_daily_call_limit)
"""

import asyncio
import logging
import sqlite3
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from pronohub.core.interfaces import LeagueMappingSource, SeasonEventSource
from pronohub.core.types import NOT_STARTED_STATUSES, MatchRecord, SeasonEvent
from pronohub.database.api_calls import count_calls_since
from pronohub.database.competitions import get_competitions
from pronohub.database.matches import get_stuck_matches, patch_regular_time_result
from pronohub.database.settings import (
    FallbackSettings,
    clear_last_run,
    get_last_run,
    set_last_run,
)
from pronohub.providers.tsdb import (
    finished_events,
    parse_season_events,
    season_for_date,
    season_from_start,
)
from pronohub.providers.tsdb.client import API_NAME as TSDB_API_NAME
from pronohub.utilities.fuzzy_match import TeamNameMatcher
from pronohub.utilities.tz import now_utc

logger = logging.getLogger(__name__)

PROVIDER = "tsdb"
MECHANISM = "fallback"


@dataclass
class FallbackResult:
    """Outcome of one reconciliation pass."""

    patched: int = 0
    checked: int = 0
    api_calls: int = 0
    skipped: bool = False
    skip_reason: str | None = None
    errors: list[str] = field(default_factory=list)
    unmapped_competitions: list[int] = field(default_factory=list)
    budget_exhausted: bool = False

    def to_dict(self) -> dict:
        return {
            "patched": self.patched,
            "checked": self.checked,
            "api_calls": self.api_calls,
            "skipped": self.skipped,
            "skip_reason": self.skip_reason,
            "errors": self.errors,
            "unmapped_competitions": self.unmapped_competitions,
            "budget_exhausted": self.budget_exhausted,
        }


def _parse_score(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class FallbackReconciler:
    """Patches stuck matches from the secondary provider's season results.

    Usage:
        reconciler = FallbackReconciler(get_db, tsdb_client, get_league_mapping_service(),
                                        settings.fallback)
        result = await reconciler.run()
    """

    def __init__(
        self,
        db_factory: Any,
        client: SeasonEventSource,
        mappings: LeagueMappingSource,
        settings: FallbackSettings,
        matcher: TeamNameMatcher | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._db_factory = db_factory
        self._client = client
        self._mappings = mappings
        self._settings = settings
        self._matcher = matcher or TeamNameMatcher()
        self._sleep = sleep
        self._clock = clock

    # -------------------------------------------------------------------------
    # Throttling
    # -------------------------------------------------------------------------

    def _skip_reason(self, now: datetime) -> tuple[str | None, int]:
        """Check cooldown and daily quota.

        Returns:
            (skip reason or None, secondary-provider calls already made today)
        """
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        with self._db_factory() as conn:
            last_run = get_last_run(conn, MECHANISM)
            calls_today = count_calls_since(conn, TSDB_API_NAME, start_of_day)

        cooldown = timedelta(hours=self._settings.cooldown_hours)
        if last_run is not None and now - last_run < cooldown:
            elapsed = (now - last_run).total_seconds() / 3600
            return (
                f"cooldown: last run {elapsed:.1f}h ago "
                f"(< {self._settings.cooldown_hours:g}h)",
                calls_today,
            )

        if calls_today >= self._settings.daily_call_limit:
            return (
                f"daily quota reached: {calls_today}/{self._settings.daily_call_limit} calls",
                calls_today,
            )
        return None, calls_today

    def _mark_run(self, now: datetime) -> None:
        try:
            with self._db_factory() as conn:
                set_last_run(conn, MECHANISM, now)
        except sqlite3.Error as e:
            logger.warning("[FALLBACK] Failed to store last run timestamp: %s", e)

    # -------------------------------------------------------------------------
    # Correlation
    # -------------------------------------------------------------------------

    def _find_event(
        self, match: MatchRecord, events: list[SeasonEvent]
    ) -> tuple[SeasonEvent | None, bool]:
        """Find the secondary event for a stored match.

        Returns:
            (event, swapped) where swapped means the providers disagree on
            which team is at home
        """
        round_key = str(match.matchday)
        home = match.home_team_name or ""
        away = match.away_team_name or ""
        same_round = [e for e in events if e.round == round_key]

        for event in same_round:
            if self._matcher(home, event.home_team) and self._matcher(away, event.away_team):
                return event, False
        for event in same_round:
            if self._matcher(home, event.away_team) and self._matcher(away, event.home_team):
                return event, True

        if same_round:
            best = self._matcher.closest(home, [e.home_team for e in same_round])
            if best is not None:
                logger.debug(
                    "[FALLBACK] No match for %s vs %s (closest home '%s', %.0f)",
                    home,
                    away,
                    best.candidate,
                    best.score,
                )
        return None, False

    def _patch(
        self, match: MatchRecord, event: SeasonEvent, swapped: bool, now: datetime
    ) -> bool:
        home_score = _parse_score(event.home_score)
        away_score = _parse_score(event.away_score)
        if home_score is None or away_score is None:
            logger.debug(
                "[FALLBACK] Unparseable score for event %s: %r-%r",
                event.id,
                event.home_score,
                event.away_score,
            )
            return False
        if swapped:
            home_score, away_score = away_score, home_score

        with self._db_factory() as conn:
            updated = patch_regular_time_result(
                conn, match.football_data_match_id, home_score, away_score, now
            )
        if updated:
            logger.info(
                "[FALLBACK] Patched %s %d-%d %s (match %d)",
                match.home_team_name,
                home_score,
                away_score,
                match.away_team_name,
                match.football_data_match_id,
            )
        return updated

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    async def run(self, force: bool = False) -> FallbackResult:
        """Run one reconciliation pass.

        Args:
            force: Clear the cooldown timestamp first (manual trigger)
        """
        now = self._clock()
        result = FallbackResult()

        if force:
            with self._db_factory() as conn:
                clear_last_run(conn, MECHANISM)
            logger.info("[FALLBACK] Force mode: cooldown reset")

        reason, calls_today = self._skip_reason(now)
        if reason:
            logger.info("[FALLBACK] Skipped: %s", reason)
            result.skipped = True
            result.skip_reason = reason
            return result

        budget = min(
            self._settings.max_api_calls,
            self._settings.daily_call_limit - calls_today,
        )

        try:
            await self._reconcile(now, budget, result)
        finally:
            self._mark_run(now)

        logger.info(
            "[FALLBACK] Done: %d patched / %d checked, %d API call(s)%s",
            result.patched,
            result.checked,
            result.api_calls,
            f", {len(result.errors)} error(s)" if result.errors else "",
        )
        return result

    async def _reconcile(self, now: datetime, budget: int, result: FallbackResult) -> None:
        stale_after = timedelta(hours=self._settings.stale_after_hours)
        lookback = timedelta(days=self._settings.lookback_days)

        with self._db_factory() as conn:
            candidates = get_stuck_matches(
                conn,
                kickoff_after=now - lookback,
                kickoff_before=now - stale_after,
                statuses=NOT_STARTED_STATUSES,
                limit=self._settings.candidate_limit,
            )
            if not candidates:
                logger.info("[FALLBACK] No stuck matches")
                return
            competitions = get_competitions(conn, list({m.competition_id for m in candidates}))

        by_competition: dict[int, list[MatchRecord]] = {}
        for match in candidates:
            by_competition.setdefault(match.competition_id, []).append(match)

        logger.info(
            "[FALLBACK] %d stuck match(es) across %d competition(s)",
            len(candidates),
            len(by_competition),
        )

        season_cache: dict[tuple[str, str], list[SeasonEvent]] = {}

        for competition_id, matches in by_competition.items():
            mapping = self._mappings.get_mapping(competition_id, PROVIDER)
            if mapping is None:
                logger.debug("[FALLBACK] No league mapping for competition %d", competition_id)
                result.unmapped_competitions.append(competition_id)
                continue

            competition = competitions.get(competition_id)
            if competition and competition.current_season_start_date:
                season = season_from_start(
                    competition.current_season_start_date, mapping.calendar_year
                )
            else:
                season = season_for_date(now.date(), mapping.calendar_year)

            key = (mapping.provider_league_id, season)
            if key not in season_cache:
                if result.api_calls >= budget:
                    logger.info("[FALLBACK] API call budget exhausted (%d)", budget)
                    result.budget_exhausted = True
                    break
                if result.api_calls > 0:
                    await self._sleep(self._settings.call_delay)

                data = await self._client.get_season_events(
                    mapping.provider_league_id, season, competition_id
                )
                result.api_calls += 1
                if data is None:
                    result.errors.append(
                        f"competition {competition_id}: season {season} fetch failed"
                    )
                    season_cache[key] = []
                    result.checked += len(matches)
                    continue
                season_cache[key] = finished_events(parse_season_events(data))

            events = season_cache[key]
            for match in matches:
                result.checked += 1
                event, swapped = self._find_event(match, events)
                if event is None:
                    continue
                try:
                    if self._patch(match, event, swapped, now):
                        result.patched += 1
                except sqlite3.Error as e:
                    logger.warning(
                        "[FALLBACK] Failed to patch match %d: %s", match.football_data_match_id, e
                    )
                    result.errors.append(f"match {match.football_data_match_id}: {e}")
