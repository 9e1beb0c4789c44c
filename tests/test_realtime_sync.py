"""Tests for the realtime match window sync."""

from datetime import UTC, date, datetime, timedelta

import pytest
from conftest import NOW, FakePrimarySource, make_match, match_payload, seed_matches

from pronohub.consumers.realtime_sync import RealtimeWindowSync
from pronohub.database.match_windows import save_window
from pronohub.database.matches import get_match
from pronohub.database.settings import RealtimeSettings


def at(hour, minute=0):
    return datetime(2025, 3, 15, hour, minute, tzinfo=UTC)


def _open_window(db_factory, start=at(12), end=at(23, 59)):
    with db_factory() as conn:
        save_window(conn, 2021, date(2025, 3, 15), start, end)


def _sync(db_factory, source, sleeper, clock, **settings):
    return RealtimeWindowSync(
        db_factory, source, RealtimeSettings(**settings), sleep=sleeper, clock=clock
    )


def _stored(db_factory, match_id):
    with db_factory() as conn:
        return get_match(conn, match_id)


@pytest.fixture
def match_day(db_factory):
    """Window open; matches at various distances from NOW (18:00)."""
    _open_window(db_factory)
    seed_matches(
        db_factory,
        make_match(1, status="IN_PLAY", utc_date=at(17), home_score=0, away_score=0),
        make_match(2, status="TIMED", utc_date=at(18, 5)),
        make_match(3, status="TIMED", utc_date=at(20)),
        make_match(4, status="TIMED", utc_date=at(16)),
        make_match(5, status="FINISHED", utc_date=at(13), home_score=1, away_score=1),
    )
    return db_factory


def _single_payloads():
    return {
        1: match_payload(
            1,
            status="IN_PLAY",
            utc_date="2025-03-15T17:00:00Z",
            score={"winner": None, "fullTime": {"home": 1, "away": 0}},
        ),
        2: match_payload(2, status="TIMED", utc_date="2025-03-15T18:05:00Z"),
        4: {
            "match": match_payload(
                4,
                status="FINISHED",
                utc_date="2025-03-15T16:00:00Z",
                score={
                    "winner": "AWAY_TEAM",
                    "duration": "REGULAR",
                    "fullTime": {"home": 0, "away": 3},
                },
            )
        },
    }


# =============================================================================
# SELECTION AND PACING
# =============================================================================


class TestSelection:
    @pytest.mark.asyncio
    async def test_refreshes_matches_near_kickoff_or_live(self, match_day, sleeper, clock):
        source = FakePrimarySource(single=_single_payloads())

        result = await _sync(match_day, source, sleeper, clock).run()

        assert result.windows == 1
        assert result.checked == 3
        assert [call[1] for call in source.calls] == [4, 1, 2]
        assert all(call[2] == "realtime" for call in source.calls)

    @pytest.mark.asyncio
    async def test_live_and_regular_delays(self, match_day, sleeper, clock):
        source = FakePrimarySource(single=_single_payloads())

        await _sync(match_day, source, sleeper, clock).run()

        # 4 (no delay), then live 1, then TIMED 2
        assert sleeper.delays == [3.0, 6.0]

    @pytest.mark.asyncio
    async def test_recently_refreshed_skipped_unless_live(self, db_factory, sleeper, clock):
        _open_window(db_factory)
        seed_matches(
            db_factory,
            make_match(1, status="IN_PLAY", utc_date=at(17), last_updated_at=NOW),
            make_match(
                2, status="TIMED", utc_date=at(18, 5), last_updated_at=NOW - timedelta(minutes=1)
            ),
        )
        source = FakePrimarySource(single=_single_payloads())

        result = await _sync(db_factory, source, sleeper, clock).run()

        assert result.skipped_recent == 1
        assert [call[1] for call in source.calls] == [1]

    @pytest.mark.asyncio
    async def test_no_open_window(self, db_factory, sleeper, clock):
        _open_window(db_factory, start=at(8), end=at(12))
        seed_matches(db_factory, make_match(1, status="IN_PLAY", utc_date=at(17)))
        source = FakePrimarySource()

        result = await _sync(db_factory, source, sleeper, clock).run()

        assert result.windows == 0
        assert result.checked == 0
        assert source.calls == []

    @pytest.mark.asyncio
    async def test_not_configured(self, match_day, sleeper, clock):
        source = FakePrimarySource(configured=False)

        result = await _sync(match_day, source, sleeper, clock).run()

        assert result.success is False
        assert source.calls == []


# =============================================================================
# WRITES
# =============================================================================


class TestWrites:
    @pytest.mark.asyncio
    async def test_status_score_and_winner_written(self, match_day, sleeper, clock):
        source = FakePrimarySource(single=_single_payloads())

        result = await _sync(match_day, source, sleeper, clock).run()

        live = _stored(match_day, 1)
        assert live.status == "IN_PLAY"
        assert (live.home_score, live.away_score) == (1, 0)
        assert live.last_updated_at == NOW

        finished = _stored(match_day, 4)
        assert finished.status == "FINISHED"
        assert finished.finished is True
        assert (finished.home_score, finished.away_score) == (0, 3)
        assert finished.winner_team_id == 61
        assert finished.score_duration is None

        assert {u["id"] for u in result.updated} == {1, 2, 4}
        assert _stored(match_day, 3).last_updated_at == datetime(2025, 3, 14, 6, 0, tzinfo=UTC)

    @pytest.mark.asyncio
    async def test_stale_snapshot_rejected(self, db_factory, sleeper, clock):
        _open_window(db_factory)
        seed_matches(db_factory, make_match(7, status="TIMED", utc_date=at(14, 50)))
        source = FakePrimarySource(
            single={7: match_payload(7, status="TIMED", utc_date="2025-03-15T14:50:00Z")}
        )

        result = await _sync(db_factory, source, sleeper, clock, margin_after_kickoff=240).run()

        assert result.checked == 1
        assert result.skipped_stale == 1
        assert result.updated == []
        assert _stored(db_factory, 7).last_updated_at == datetime(2025, 3, 14, 6, 0, tzinfo=UTC)

    @pytest.mark.asyncio
    async def test_fetch_failure_recorded(self, db_factory, sleeper, clock):
        _open_window(db_factory)
        seed_matches(db_factory, make_match(1, status="IN_PLAY", utc_date=at(17)))
        source = FakePrimarySource()

        result = await _sync(db_factory, source, sleeper, clock).run()

        assert result.errors == ["match 1: fetch failed"]
        assert result.updated == []
