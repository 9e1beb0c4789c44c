"""Tournament completion evaluation.

Decides which active tournaments whose ending date has passed can be
marked completed.

Rules:
- Custom competition: trust the ending date (no independent season end).
- Fixed number of matchdays: trust the ending date (creator chose the window).
- Whole season ("all matchdays") on a standard competition: also require the
  competition's current season to have ended. Knockout tails often run past
  the matchday-based ending date.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from pronohub.core.types import Tournament
from pronohub.database.tournaments import get_overdue_tournaments, mark_tournament_completed
from pronohub.utilities.tz import now_utc

logger = logging.getLogger(__name__)


def completion_decision(
    tournament: Tournament,
    season_end: date | None,
    today: date,
) -> tuple[bool, str]:
    """Decide whether an overdue tournament should complete.

    Returns:
        (complete, reason)
    """
    if tournament.is_custom:
        return True, "custom competition"
    if not tournament.all_matchdays:
        return True, "fixed duration"
    if season_end is None:
        return True, "season end unknown"
    if season_end <= today:
        return True, f"season ended {season_end.isoformat()}"
    return False, f"season runs until {season_end.isoformat()}"


@dataclass
class CompletionResult:
    """Outcome of one evaluation pass."""

    completed: list[Tournament] = field(default_factory=list)
    deferred: list[dict] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "completed": [{"id": t.id, "name": t.name} for t in self.completed],
            "deferred": self.deferred,
            "errors": self.errors,
        }


class TournamentCompletionEvaluator:
    """Transitions overdue active tournaments to completed.

    Usage:
        evaluator = TournamentCompletionEvaluator(get_db)
        result = evaluator.evaluate()
        for tournament in result.completed:
            ...  # notify participants
    """

    def __init__(self, db_factory: Any, clock=now_utc):
        self._db_factory = db_factory
        self._clock = clock

    def evaluate(self, now: datetime | None = None) -> CompletionResult:
        """Evaluate every overdue active tournament.

        Each tournament is updated on its own; a failed update is logged and
        does not block the others.
        """
        now = now or self._clock()
        today = now.date()
        result = CompletionResult()

        with self._db_factory() as conn:
            overdue = get_overdue_tournaments(conn, now)

        if not overdue:
            return result

        logger.info("[COMPLETION] %d overdue tournament(s) to check", len(overdue))

        for tournament, season_end in overdue:
            complete, reason = completion_decision(tournament, season_end, today)
            if not complete:
                logger.info("[COMPLETION] Keeping '%s' active: %s", tournament.name, reason)
                result.deferred.append(
                    {"id": tournament.id, "name": tournament.name, "reason": reason}
                )
                continue

            try:
                with self._db_factory() as conn:
                    updated = mark_tournament_completed(conn, tournament.id, now)
            except sqlite3.Error as e:
                logger.warning(
                    "[COMPLETION] Failed to complete tournament %d: %s", tournament.id, e
                )
                result.errors.append(f"tournament {tournament.id}: {e}")
                continue

            if updated:
                tournament.status = "completed"
                tournament.updated_at = now
                result.completed.append(tournament)
                logger.info("[COMPLETION] Tournament '%s' completed (%s)", tournament.name, reason)

        return result
