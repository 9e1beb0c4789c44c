"""Tests for the HTTP API (FastAPI TestClient, lifespan not started)."""

from datetime import timedelta

import pytest
from conftest import NOW, make_match, seed_competition, seed_matches
from fastapi.testclient import TestClient

from pronohub.api import create_app
from pronohub.api.routes import sync as sync_routes
from pronohub.config import Config
from pronohub.consumers.fallback import FallbackResult
from pronohub.consumers.primary_sync import PrimarySyncResult
from pronohub.database import make_db_factory
from pronohub.database.tournaments import create_tournament


@pytest.fixture
def api(db_path, monkeypatch):
    monkeypatch.setattr(Config, "DATABASE_PATH", str(db_path))
    return TestClient(create_app())


@pytest.fixture
def factory(db_path):
    return make_db_factory(db_path)


# =============================================================================
# HEALTH
# =============================================================================


class TestHealth:
    def test_health(self, api):
        response = api.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["scheduler"] == {"running": False, "jobs": []}


# =============================================================================
# SYNC TRIGGERS
# =============================================================================


class TestSyncTriggers:
    def test_full_sync_without_api_key(self, api, monkeypatch):
        monkeypatch.setattr(Config, "FOOTBALL_DATA_API_KEY", None)

        response = api.post("/api/v1/sync/full")

        assert response.status_code == 500
        assert "not configured" in response.json()["detail"]

        runs = api.get("/api/v1/stats/runs").json()
        assert runs["count"] == 1
        assert runs["runs"][0]["run_type"] == "daily_sync"
        assert runs["runs"][0]["status"] == "failed"

    def test_full_sync_reports_summary(self, api, monkeypatch):
        async def fake_daily_sync(db_factory):
            return PrimarySyncResult(errors=["competition 2014: matches fetch failed"])

        monkeypatch.setattr(sync_routes, "run_daily_sync", fake_daily_sync)

        response = api.post("/api/v1/sync/full")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["errors"] == ["competition 2014: matches fetch failed"]

    def test_fallback_force_flag(self, api, monkeypatch):
        seen = {}

        async def fake_fallback(db_factory, force=False):
            seen["force"] = force
            return FallbackResult(patched=2, checked=3, api_calls=1)

        monkeypatch.setattr(sync_routes, "run_fallback", fake_fallback)

        response = api.post("/api/v1/sync/fallback", params={"force": "true"})

        assert response.status_code == 200
        assert seen["force"] is True
        assert response.json()["forced"] is True
        assert response.json()["patched"] == 2

    def test_score_sync_unknown_competition(self, api, monkeypatch):
        monkeypatch.setattr(Config, "FOOTBALL_DATA_API_KEY", "test-key")

        response = api.post("/api/v1/sync/scores", json={"competition_id": 999})

        assert response.status_code == 404
        assert response.json()["detail"] == "competition 999 not found"

    def test_score_sync_rejects_invalid_matchday(self, api):
        response = api.post("/api/v1/sync/scores", json={"competition_id": 2021, "matchday": 0})
        assert response.status_code == 422


# =============================================================================
# COMPETITIONS
# =============================================================================


class TestCompetitions:
    def test_list(self, api, factory):
        seed_competition(factory, 2021)
        seed_competition(factory, 2014, "La Liga")

        response = api.get("/api/v1/competitions")

        assert response.status_code == 200
        assert [c["name"] for c in response.json()] == ["La Liga", "Premier League"]

    def test_import_without_api_key(self, api, monkeypatch):
        monkeypatch.setattr(Config, "FOOTBALL_DATA_API_KEY", None)

        response = api.post("/api/v1/competitions/2021/import")

        assert response.status_code == 500


# =============================================================================
# TOURNAMENTS
# =============================================================================


class TestTournamentDuration:
    @pytest.fixture
    def tournament_id(self, factory):
        seed_competition(factory, 2021)
        seed_matches(
            factory,
            make_match(1, matchday=27, utc_date=NOW - timedelta(days=7)),
            make_match(2, matchday=28, utc_date=NOW),
            make_match(3, matchday=29, utc_date=NOW + timedelta(days=7)),
        )
        with factory() as conn:
            return create_tournament(
                conn, "Spring", status="active", competition_id=2021,
                starting_matchday=27, ending_matchday=28,
            )

    def test_recalculate_with_new_ending_matchday(self, api, tournament_id):
        response = api.post(
            f"/api/v1/tournaments/{tournament_id}/recalculate-duration",
            json={"ending_matchday": 29, "reason": "extended"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["ending_matchday"] == 29
        assert body["estimation_used"] is False
        assert body["ending_date"].startswith("2025-03-22T18:00:00")

        events = api.get(f"/api/v1/tournaments/{tournament_id}/duration-events").json()
        assert len(events) == 1
        assert events[0]["reason"] == "extended"
        assert events[0]["previous_ending_matchday"] == 28
        assert events[0]["new_ending_matchday"] == 29

    def test_recalculate_without_body(self, api, tournament_id):
        response = api.post(f"/api/v1/tournaments/{tournament_id}/recalculate-duration")

        assert response.status_code == 200
        assert response.json()["ending_matchday"] == 28

    def test_unknown_tournament(self, api):
        assert api.post("/api/v1/tournaments/999/recalculate-duration").status_code == 404
        assert api.get("/api/v1/tournaments/999/duration-events").status_code == 404

    def test_missing_ending_matchday(self, api, factory):
        with factory() as conn:
            tid = create_tournament(conn, "Open", status="active", competition_id=2021)

        response = api.post(f"/api/v1/tournaments/{tid}/recalculate-duration")

        assert response.status_code == 400


# =============================================================================
# STATS
# =============================================================================


class TestStats:
    def test_api_call_stats_empty(self, api):
        response = api.get("/api/v1/stats/api-calls", params={"hours": 6})
        assert response.status_code == 200
        assert response.json()["providers"] == {}

    def test_recent_calls_empty(self, api):
        assert api.get("/api/v1/stats/api-calls/recent").json() == []

    def test_rate_limit_not_configured(self, api, monkeypatch):
        monkeypatch.setattr(Config, "FOOTBALL_DATA_API_KEY", None)
        assert api.get("/api/v1/stats/rate-limit").json() == {"configured": False}
