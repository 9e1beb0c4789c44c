"""Tests for tournament completion evaluation."""

from datetime import UTC, date, datetime, timedelta

from conftest import NOW, failing_db_factory, seed_competition

from pronohub.consumers.completion import TournamentCompletionEvaluator, completion_decision
from pronohub.core.types import Tournament
from pronohub.database.custom_competitions import create_custom_competition
from pronohub.database.tournaments import create_tournament, get_tournament

YESTERDAY = NOW - timedelta(days=1)


def _create(db_factory, **kwargs) -> int:
    values = {"name": "Office league", "status": "active", "ending_date": YESTERDAY}
    values.update(kwargs)
    with db_factory() as conn:
        return create_tournament(conn, **values)


def _status(db_factory, tournament_id) -> str:
    with db_factory() as conn:
        return get_tournament(conn, tournament_id).status


# =============================================================================
# DECISION
# =============================================================================


class TestCompletionDecision:
    def test_custom_competition_completes(self):
        t = Tournament(id=1, name="t", custom_competition_id=3, all_matchdays=True)
        assert completion_decision(t, None, NOW.date())[0] is True

    def test_fixed_duration_completes(self):
        t = Tournament(id=1, name="t", competition_id=2021, all_matchdays=False)
        assert completion_decision(t, date(2025, 5, 25), NOW.date())[0] is True

    def test_whole_season_waits_for_season_end(self):
        t = Tournament(id=1, name="t", competition_id=2001, all_matchdays=True)
        complete, reason = completion_decision(t, date(2025, 5, 31), NOW.date())
        assert complete is False
        assert "2025-05-31" in reason

    def test_whole_season_completes_after_season_end(self):
        t = Tournament(id=1, name="t", competition_id=2001, all_matchdays=True)
        assert completion_decision(t, date(2025, 3, 15), NOW.date())[0] is True

    def test_whole_season_unknown_end_completes(self):
        t = Tournament(id=1, name="t", competition_id=2001, all_matchdays=True)
        assert completion_decision(t, None, NOW.date())[0] is True


# =============================================================================
# EVALUATOR
# =============================================================================


class TestTournamentCompletionEvaluator:
    def test_whole_season_stays_active_until_season_end(self, db_factory, clock):
        seed_competition(
            db_factory, 2001, "Champions League", current_season_end_date=date(2025, 5, 31)
        )
        tid = _create(db_factory, competition_id=2001, ending_matchday=8, all_matchdays=True)

        result = TournamentCompletionEvaluator(db_factory, clock).evaluate()

        assert result.completed == []
        assert [d["id"] for d in result.deferred] == [tid]
        assert _status(db_factory, tid) == "active"

    def test_fixed_duration_completes_regardless_of_season(self, db_factory, clock):
        seed_competition(db_factory, 2021, current_season_end_date=date(2025, 5, 25))
        tid = _create(db_factory, competition_id=2021, starting_matchday=20, ending_matchday=27)

        result = TournamentCompletionEvaluator(db_factory, clock).evaluate()

        assert [t.id for t in result.completed] == [tid]
        assert result.completed[0].status == "completed"
        assert _status(db_factory, tid) == "completed"

    def test_custom_competition_completes(self, db_factory, clock):
        with db_factory() as conn:
            custom_id = create_custom_competition(conn, "Derbies")
        tid = _create(db_factory, custom_competition_id=custom_id, all_matchdays=True)

        result = TournamentCompletionEvaluator(db_factory, clock).evaluate()

        assert [t.id for t in result.completed] == [tid]

    def test_future_ending_and_other_statuses_ignored(self, db_factory, clock):
        seed_competition(db_factory, 2021)
        future = _create(db_factory, competition_id=2021, ending_date=NOW + timedelta(days=3))
        draft = _create(db_factory, competition_id=2021, status="draft")
        done = _create(db_factory, competition_id=2021, status="completed")

        result = TournamentCompletionEvaluator(db_factory, clock).evaluate()

        assert result.completed == []
        assert _status(db_factory, future) == "active"
        assert _status(db_factory, draft) == "draft"
        assert _status(db_factory, done) == "completed"

    def test_now_parameter_overrides_clock(self, db_factory, clock):
        seed_competition(db_factory, 2021)
        tid = _create(
            db_factory,
            competition_id=2021,
            ending_date=datetime(2025, 3, 20, tzinfo=UTC),
        )

        evaluator = TournamentCompletionEvaluator(db_factory, clock)
        assert evaluator.evaluate().completed == []
        later = evaluator.evaluate(now=datetime(2025, 3, 21, tzinfo=UTC))
        assert [t.id for t in later.completed] == [tid]

    def test_failed_update_does_not_block_others(self, db_factory, clock):
        seed_competition(db_factory, 2021)
        broken = _create(db_factory, name="Broken", competition_id=2021, ending_matchday=27)
        healthy = _create(db_factory, name="Healthy", competition_id=2021, ending_matchday=27)
        factory = failing_db_factory(
            db_factory,
            lambda sql, params: (
                "UPDATE tournaments SET status" in sql and params and params[-1] == broken
            ),
        )

        result = TournamentCompletionEvaluator(factory, clock).evaluate()

        assert [t.id for t in result.completed] == [healthy]
        assert result.errors == [f"tournament {broken}: database is locked"]
        assert _status(db_factory, broken) == "active"
        assert _status(db_factory, healthy) == "completed"
