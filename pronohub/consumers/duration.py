"""Tournament duration estimation.

Computes a tournament's ending date from its ending matchday. When the
fixtures of the ending matchday have no date yet (TBD placeholders), the
date is projected from the average interval between earlier matchdays
(league, custom competition) or stages (knockout).

Every recalculation appends a tournament_duration_events row recording
whether an estimate was used and how it was obtained.
"""

import logging
import sqlite3
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from pronohub.core.types import (
    CONCLUDED_STATUSES,
    KNOCKOUT_STAGES,
    DurationEvent,
    MatchDate,
    Tournament,
)
from pronohub.database.custom_competitions import get_custom_match_dates, matchday_exists
from pronohub.database.matches import count_unconcluded_matches, get_match_dates
from pronohub.database.tournaments import (
    get_overdue_tournaments,
    get_tournament,
    insert_duration_event,
    update_tournament_ending,
)
from pronohub.utilities.tz import now_utc

logger = logging.getLogger(__name__)

NOT_ENOUGH_DATA = "not enough data"
OVERDUE_REASON = "automatic recalculation - matches unfinished at the scheduled date"


# =============================================================================
# TYPES
# =============================================================================


@dataclass
class DurationEstimate:
    """Computed ending date for a tournament."""

    ending_date: datetime | None
    ending_matchday: int
    estimation_used: bool
    estimation_details: str | None = None

    def to_dict(self) -> dict:
        return {
            "ending_date": self.ending_date.isoformat() if self.ending_date else None,
            "ending_matchday": self.ending_matchday,
            "estimation_used": self.estimation_used,
            "estimation_details": self.estimation_details,
        }


@dataclass
class OverdueRecalculationResult:
    processed: int = 0
    recalculated: list[dict] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "processed": self.processed,
            "recalculated": self.recalculated,
            "errors": self.errors,
        }


# =============================================================================
# PURE ESTIMATION
# =============================================================================


def is_knockout(dates: Iterable[MatchDate]) -> bool:
    """A competition is knockout if any match carries a knockout stage tag."""
    return any(d.stage in KNOCKOUT_STAGES for d in dates)


def _days(delta: timedelta) -> float:
    return delta.total_seconds() / 86400


def _average(intervals: list[timedelta]) -> timedelta:
    return sum(intervals, timedelta()) / len(intervals)


def _project_by_matchday(
    dates: list[MatchDate], ending_matchday: int, label: str
) -> DurationEstimate:
    """Project from the latest dated matchday using the mean matchday interval."""
    latest_by_matchday: dict[int, datetime] = {}
    for d in dates:
        if d.utc_date is None:
            continue
        current = latest_by_matchday.get(d.matchday)
        if current is None or d.utc_date > current:
            latest_by_matchday[d.matchday] = d.utc_date

    known = sorted(latest_by_matchday.items())
    if len(known) < 2:
        return DurationEstimate(
            ending_date=None,
            ending_matchday=ending_matchday,
            estimation_used=True,
            estimation_details=f"{NOT_ENOUGH_DATA}: fewer than two {label}s with dates",
        )

    intervals = [known[i][1] - known[i - 1][1] for i in range(1, len(known))]
    average = _average(intervals)
    last_matchday, last_date = known[-1]
    remaining = ending_matchday - last_matchday

    return DurationEstimate(
        ending_date=last_date + average * remaining,
        ending_matchday=ending_matchday,
        estimation_used=True,
        estimation_details=(
            f"estimated from {len(intervals)} interval(s), "
            f"average {_days(average):.1f} days per {label}"
        ),
    )


def estimate_league(dates: list[MatchDate], ending_matchday: int) -> DurationEstimate:
    """Ending date for a league: latest date of the ending matchday, else projection."""
    ending_dates = [d.utc_date for d in dates if d.matchday == ending_matchday and d.utc_date]
    if ending_dates:
        return DurationEstimate(
            ending_date=max(ending_dates),
            ending_matchday=ending_matchday,
            estimation_used=False,
        )
    return _project_by_matchday(dates, ending_matchday, "matchday")


def estimate_knockout(dates: list[MatchDate], ending_matchday: int) -> DurationEstimate:
    """Ending date for a competition with knockout stages.

    Exact when every match up to the ending matchday has a date; otherwise
    projected from the gaps between fully dated stages (one stage's last
    match to the next stage's first match).
    """
    up_to_end = [d for d in dates if d.matchday <= ending_matchday]
    if up_to_end and all(d.utc_date is not None for d in up_to_end):
        return DurationEstimate(
            ending_date=max(d.utc_date for d in up_to_end),
            ending_matchday=ending_matchday,
            estimation_used=False,
        )

    by_stage: dict[str, list[MatchDate]] = {}
    for d in dates:
        if d.stage:
            by_stage.setdefault(d.stage, []).append(d)

    # (matchday, first date, last date) for stages where every match is dated
    complete_stages = []
    for stage_dates in by_stage.values():
        if all(d.utc_date is not None for d in stage_dates):
            kickoffs = [d.utc_date for d in stage_dates]
            complete_stages.append((stage_dates[0].matchday, min(kickoffs), max(kickoffs)))

    if len(complete_stages) < 2:
        return DurationEstimate(
            ending_date=None,
            ending_matchday=ending_matchday,
            estimation_used=True,
            estimation_details=f"{NOT_ENOUGH_DATA}: fewer than two fully dated stages",
        )

    complete_stages.sort(key=lambda s: s[0])
    intervals = [
        complete_stages[i][1] - complete_stages[i - 1][2] for i in range(1, len(complete_stages))
    ]
    average = _average(intervals)
    last_matchday, _, last_date = complete_stages[-1]
    remaining = ending_matchday - last_matchday

    return DurationEstimate(
        ending_date=last_date + average * remaining,
        ending_matchday=ending_matchday,
        estimation_used=True,
        estimation_details=(
            f"knockout estimate from {len(intervals)} interval(s) between stages, "
            f"average {_days(average):.1f} days"
        ),
    )


def estimate_custom(
    dates: list[MatchDate], ending_matchday: int, ending_matchday_exists: bool
) -> DurationEstimate:
    """Ending date for a custom competition, over its own matchday numbering."""
    if not ending_matchday_exists:
        return DurationEstimate(
            ending_date=None,
            ending_matchday=ending_matchday,
            estimation_used=True,
            estimation_details="final matchday not found",
        )
    if not dates:
        return DurationEstimate(
            ending_date=None,
            ending_matchday=ending_matchday,
            estimation_used=True,
            estimation_details="no matchday found",
        )
    return estimate_league(dates, ending_matchday)


# =============================================================================
# ESTIMATOR
# =============================================================================


class DurationEstimator:
    """Computes, persists and audits tournament ending dates.

    Usage:
        estimator = DurationEstimator(get_db)
        estimate = estimator.recalculate(tournament_id, reason="ending matchday changed",
                                         new_ending_matchday=34)
    """

    def __init__(self, db_factory: Any, clock=now_utc):
        self._db_factory = db_factory
        self._clock = clock

    def compute(self, tournament: Tournament, ending_matchday: int) -> DurationEstimate:
        """Compute the ending date for a tournament without persisting anything."""
        with self._db_factory() as conn:
            if tournament.is_custom:
                exists = matchday_exists(conn, tournament.custom_competition_id, ending_matchday)
                dates = get_custom_match_dates(
                    conn, tournament.custom_competition_id, to_matchday=ending_matchday
                )
                return estimate_custom(dates, ending_matchday, exists)

            if tournament.competition_id is None:
                raise ValueError(f"Tournament {tournament.id} has no competition")

            dates = get_match_dates(
                conn,
                tournament.competition_id,
                from_matchday=tournament.starting_matchday or 1,
                to_matchday=ending_matchday,
            )

        if not dates:
            return DurationEstimate(
                ending_date=None,
                ending_matchday=ending_matchday,
                estimation_used=True,
                estimation_details="no matches found for this competition",
            )
        if is_knockout(dates):
            return estimate_knockout(dates, ending_matchday)
        return estimate_league(dates, ending_matchday)

    def recalculate(
        self,
        tournament_id: int,
        reason: str,
        new_ending_matchday: int | None = None,
        event_type: str = "recalculation",
    ) -> DurationEstimate:
        """Recompute a tournament's ending date and record a duration event.

        The stored ending date is only replaced when a date could be
        computed; the event is written either way.

        Raises:
            ValueError: Unknown tournament, or no ending matchday to work from
        """
        with self._db_factory() as conn:
            tournament = get_tournament(conn, tournament_id)
        if tournament is None:
            raise ValueError(f"Tournament {tournament_id} not found")

        ending_matchday = new_ending_matchday or tournament.ending_matchday
        if ending_matchday is None:
            raise ValueError(f"Tournament {tournament_id} has no ending matchday")

        estimate = self.compute(tournament, ending_matchday)
        now = self._clock()

        with self._db_factory() as conn:
            update_tournament_ending(
                conn,
                tournament.id,
                ending_matchday,
                estimate.ending_date or tournament.ending_date,
                now,
            )
            insert_duration_event(
                conn,
                DurationEvent(
                    tournament_id=tournament.id,
                    event_type=event_type,
                    reason=reason,
                    previous_ending_matchday=tournament.ending_matchday,
                    new_ending_matchday=ending_matchday,
                    previous_ending_date=tournament.ending_date,
                    new_ending_date=estimate.ending_date,
                    estimation_used=estimate.estimation_used,
                    estimation_details=estimate.estimation_details,
                    created_at=now,
                ),
            )

        logger.info(
            "[DURATION] Tournament %d: matchday %s -> %s, ending %s%s",
            tournament.id,
            tournament.ending_matchday,
            ending_matchday,
            estimate.ending_date.isoformat() if estimate.ending_date else "unknown",
            f" ({estimate.estimation_details})" if estimate.estimation_used else "",
        )
        return estimate

    def recalculate_overdue_tournaments(
        self, now: datetime | None = None
    ) -> OverdueRecalculationResult:
        """Push back the ending date of overdue tournaments with unfinished matches.

        Only standard competitions are checked. Never completes a tournament;
        that is TournamentCompletionEvaluator's job.
        """
        now = now or self._clock()
        result = OverdueRecalculationResult()

        with self._db_factory() as conn:
            overdue = get_overdue_tournaments(conn, now)

        for tournament, _ in overdue:
            if tournament.is_custom or tournament.competition_id is None:
                continue
            if tournament.ending_matchday is None:
                continue
            result.processed += 1

            try:
                with self._db_factory() as conn:
                    unfinished = count_unconcluded_matches(
                        conn,
                        tournament.competition_id,
                        tournament.starting_matchday,
                        tournament.ending_matchday,
                        CONCLUDED_STATUSES,
                    )
                if unfinished == 0:
                    continue

                estimate = self.recalculate(tournament.id, OVERDUE_REASON)
                result.recalculated.append(
                    {
                        "id": tournament.id,
                        "name": tournament.name,
                        "unfinished_matches": unfinished,
                        **estimate.to_dict(),
                    }
                )
            except (sqlite3.Error, ValueError) as e:
                logger.warning("[DURATION] Recalculation failed for %d: %s", tournament.id, e)
                result.errors.append(f"tournament {tournament.id}: {e}")

        return result
