"""Tests for the provider HTTP clients (httpx MockTransport, no network)."""

from datetime import date

import httpx
import pytest

from pronohub.database.api_calls import get_recent_calls, make_api_call_recorder
from pronohub.providers import FootballDataClient, TSDBClient
from pronohub.providers.tsdb import (
    finished_events,
    parse_season_events,
    season_for_date,
    season_from_start,
)


class Recorder:
    def __init__(self):
        self.entries = []

    def __call__(self, entry):
        self.entries.append(entry)


def _transport(handler):
    return httpx.MockTransport(handler)


# =============================================================================
# FOOTBALL-DATA
# =============================================================================


class TestFootballDataClient:
    @pytest.mark.asyncio
    async def test_get_competition(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["token"] = request.headers.get("X-Auth-Token")
            return httpx.Response(
                200,
                json={"id": 2021, "name": "Premier League"},
                headers={"X-Requests-Available-Minute": "9", "X-RequestCounter-Reset": "42"},
            )

        recorder = Recorder()
        async with FootballDataClient(
            "secret", recorder=recorder, transport=_transport(handler)
        ) as client:
            data = await client.get_competition(2021)

        assert data == {"id": 2021, "name": "Premier League"}
        assert seen["url"] == "https://api.football-data.org/v4/competitions/2021"
        assert seen["token"] == "secret"
        assert client.rate_limit.available_minute == 9
        assert client.rate_limit.reset_seconds == 42

        entry = recorder.entries[0]
        assert entry.api_name == "football-data"
        assert entry.call_type == "daily-sync"
        assert entry.competition_id == 2021
        assert entry.success is True
        assert entry.status_code == 200

    @pytest.mark.asyncio
    async def test_matchday_query_and_call_type(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"matches": []})

        recorder = Recorder()
        async with FootballDataClient(
            "secret", recorder=recorder, transport=_transport(handler)
        ) as client:
            await client.get_competition_matches(2021, matchday=28, call_type="score-sync")

        assert seen["params"] == {"matchday": "28"}
        assert recorder.entries[0].call_type == "score-sync"

    @pytest.mark.asyncio
    async def test_http_error_returns_none_and_is_recorded(self):
        recorder = Recorder()
        transport = _transport(lambda request: httpx.Response(429, json={"message": "slow down"}))
        async with FootballDataClient("secret", recorder=recorder, transport=transport) as client:
            data = await client.get_match(123, competition_id=2021)

        assert data is None
        entry = recorder.entries[0]
        assert entry.success is False
        assert entry.status_code == 429
        assert entry.call_type == "realtime"

    @pytest.mark.asyncio
    async def test_network_error_returns_none(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        recorder = Recorder()
        async with FootballDataClient(
            "secret", recorder=recorder, transport=_transport(handler)
        ) as client:
            assert await client.get_competition(2021) is None

        assert recorder.entries[0].success is False
        assert recorder.entries[0].status_code is None

    @pytest.mark.asyncio
    async def test_invalid_json_returns_none(self):
        transport = _transport(lambda request: httpx.Response(200, text="<html>oops</html>"))
        async with FootballDataClient("secret", transport=transport) as client:
            assert await client.get_competition(2021) is None

    @pytest.mark.asyncio
    async def test_account_includes_rate_limit(self):
        def handler(request):
            return httpx.Response(
                200,
                json={"plan": "TIER_ONE"},
                headers={"X-Requests-Available-Day": "100"},
            )

        async with FootballDataClient("secret", transport=_transport(handler)) as client:
            account = await client.get_account()

        assert account["account"] == {"plan": "TIER_ONE"}
        assert account["rate_limit"]["available_day"] == 100

    @pytest.mark.asyncio
    async def test_failing_recorder_does_not_break_request(self):
        def recorder(entry):
            raise RuntimeError("audit table missing")

        transport = _transport(lambda request: httpx.Response(200, json={"id": 2021}))
        async with FootballDataClient("secret", recorder=recorder, transport=transport) as client:
            assert await client.get_competition(2021) == {"id": 2021}

    def test_not_configured_without_key(self):
        assert FootballDataClient(None).is_configured is False
        assert FootballDataClient("secret").is_configured is True


# =============================================================================
# THESPORTSDB
# =============================================================================


class TestTSDBClient:
    @pytest.mark.asyncio
    async def test_season_events_url(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"events": []})

        recorder = Recorder()
        async with TSDBClient(recorder=recorder, transport=_transport(handler)) as client:
            data = await client.get_season_events("4328", "2024-2025", competition_id=2021)

        assert data == {"events": []}
        assert seen["path"] == "/api/v1/json/123/eventsseason.php"
        assert seen["params"] == {"id": "4328", "s": "2024-2025"}
        entry = recorder.entries[0]
        assert entry.api_name == "thesportsdb"
        assert entry.call_type == "fallback-scores"
        assert entry.competition_id == 2021

    @pytest.mark.asyncio
    async def test_server_error_returns_none(self):
        recorder = Recorder()
        transport = _transport(lambda request: httpx.Response(500))
        async with TSDBClient(recorder=recorder, transport=transport) as client:
            assert await client.get_season_events("4328", "2024-2025") is None
        assert recorder.entries[0].success is False

    @pytest.mark.asyncio
    async def test_failing_recorder_does_not_break_request(self):
        def recorder(entry):
            raise RuntimeError("audit table missing")

        transport = _transport(lambda request: httpx.Response(200, json={"events": None}))
        async with TSDBClient(recorder=recorder, transport=transport) as client:
            data = await client.get_season_events("4328", "2024-2025")

        assert data == {"events": None}

    def test_premium_key(self):
        assert TSDBClient().is_premium is False
        assert TSDBClient(api_key="abc").is_premium is True


class TestSeasons:
    def test_season_for_date(self):
        assert season_for_date(date(2025, 3, 15)) == "2024-2025"
        assert season_for_date(date(2025, 8, 1)) == "2025-2026"

    def test_season_from_start(self):
        assert season_from_start(date(2024, 8, 16)) == "2024-2025"

    def test_calendar_year_league(self):
        assert season_for_date(date(2025, 3, 15), calendar_year=True) == "2025"
        assert season_from_start(date(2025, 3, 29), calendar_year=True) == "2025"


class TestSeasonEvents:
    def test_null_events(self):
        assert parse_season_events({"events": None}) == []
        assert parse_season_events(None) == []

    def test_finished_only(self):
        events = parse_season_events(
            {
                "events": [
                    {
                        "idEvent": 1,
                        "strHomeTeam": "Arsenal",
                        "strAwayTeam": "Chelsea",
                        "intHomeScore": 2,
                        "intAwayScore": "1",
                        "intRound": 28,
                        "strStatus": "Match Finished",
                    },
                    {
                        "idEvent": 2,
                        "strHomeTeam": "Everton",
                        "strAwayTeam": "Fulham",
                        "intHomeScore": None,
                        "intAwayScore": None,
                        "intRound": "28",
                        "strStatus": "Not Started",
                    },
                ]
            }
        )

        kept = finished_events(events)

        assert [e.id for e in kept] == ["1"]
        assert (kept[0].home_score, kept[0].away_score, kept[0].round) == ("2", "1", "28")


# =============================================================================
# AUDIT RECORDER
# =============================================================================


class TestApiCallRecorder:
    @pytest.mark.asyncio
    async def test_calls_persisted(self, db_factory):
        transport = _transport(lambda request: httpx.Response(200, json={"id": 2021}))
        recorder = make_api_call_recorder(db_factory)
        async with FootballDataClient("secret", recorder=recorder, transport=transport) as client:
            await client.get_competition(2021, call_type="import")

        with db_factory() as conn:
            calls = get_recent_calls(conn)
        assert len(calls) == 1
        assert calls[0].api_name == "football-data"
        assert calls[0].call_type == "import"
        assert calls[0].endpoint == "/competitions/2021"
        assert calls[0].success is True
