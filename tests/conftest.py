"""Shared fixtures: temporary database, fake providers, fixed clock."""

import sqlite3
from contextlib import contextmanager
from datetime import UTC, date, datetime

import pytest

from pronohub.core.types import Competition, MatchRecord
from pronohub.database import init_db, make_db_factory
from pronohub.database.competitions import upsert_competition
from pronohub.database.matches import upsert_match

NOW = datetime(2025, 3, 15, 18, 0, tzinfo=UTC)


# =============================================================================
# DATABASE
# =============================================================================


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "pronohub-test.db"
    init_db(path)
    return path


@pytest.fixture
def db_factory(db_path):
    return make_db_factory(db_path)


class FailingConnection:
    """Connection wrapper that raises for statements matching should_fail(sql, params)."""

    def __init__(self, conn, should_fail):
        self._conn = conn
        self._should_fail = should_fail

    def execute(self, sql, params=()):
        if self._should_fail(sql, params):
            raise sqlite3.OperationalError("database is locked")
        return self._conn.execute(sql, params)

    def executemany(self, sql, seq_of_params):
        rows = list(seq_of_params)
        if any(self._should_fail(sql, params) for params in rows):
            raise sqlite3.OperationalError("database is locked")
        return self._conn.executemany(sql, rows)

    def __getattr__(self, name):
        return getattr(self._conn, name)


def failing_db_factory(db_factory, should_fail):
    """Wrap a connection factory so matching statements hit a storage error."""

    @contextmanager
    def factory():
        with db_factory() as conn:
            yield FailingConnection(conn, should_fail)

    return factory


# =============================================================================
# PACING AND TIME
# =============================================================================


class SleepRecorder:
    """Async sleep stand-in that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def clock():
    return lambda: NOW


# =============================================================================
# FAKE PROVIDERS
# =============================================================================


class FakePrimarySource:
    """In-memory primary provider.

    competitions: id -> /competitions/{id} payload (missing id = failure)
    matches: id -> list of match payloads (missing id = failure)
    single: match id -> /matches/{id} payload (missing id = failure)
    """

    def __init__(self, competitions=None, matches=None, single=None, configured=True):
        self.competitions = competitions or {}
        self.matches = matches or {}
        self.single = single or {}
        self.configured = configured
        self.calls: list[tuple] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def get_competition(self, competition_id, call_type="daily-sync"):
        self.calls.append(("competition", competition_id, call_type))
        return self.competitions.get(competition_id)

    async def get_competition_matches(self, competition_id, matchday=None, call_type="daily-sync"):
        self.calls.append(("matches", competition_id, matchday, call_type))
        if competition_id not in self.matches:
            return None
        matches = self.matches[competition_id]
        if matchday is not None:
            matches = [m for m in matches if m.get("matchday") == matchday]
        return {"matches": matches}

    async def get_match(self, match_id, competition_id=None, call_type="realtime"):
        self.calls.append(("match", match_id, call_type))
        return self.single.get(match_id)


class FakeSeasonSource:
    """In-memory secondary provider keyed on (league_id, season)."""

    def __init__(self, seasons=None):
        self.seasons = seasons or {}
        self.calls: list[tuple[str, str]] = []

    async def get_season_events(self, league_id, season, competition_id=None):
        self.calls.append((league_id, season))
        events = self.seasons.get((league_id, season))
        if events is None:
            return None
        return {"events": events}


# =============================================================================
# BUILDERS
# =============================================================================


def competition_payload(competition_id, name="Premier League", end="2025-05-25"):
    return {
        "id": competition_id,
        "name": name,
        "code": "PL",
        "emblem": f"https://crests.example/{competition_id}.png",
        "area": {"name": "England"},
        "currentSeason": {
            "startDate": "2024-08-16",
            "endDate": end,
            "currentMatchday": 28,
        },
    }


def match_payload(
    match_id,
    status="TIMED",
    utc_date="2025-03-15T15:00:00Z",
    matchday=28,
    stage="REGULAR_SEASON",
    home=(57, "Arsenal FC"),
    away=(61, "Chelsea FC"),
    score=None,
):
    return {
        "id": match_id,
        "utcDate": utc_date,
        "status": status,
        "matchday": matchday,
        "stage": stage,
        "homeTeam": {"id": home[0], "name": home[1], "crest": None} if home else {},
        "awayTeam": {"id": away[0], "name": away[1], "crest": None} if away else {},
        "score": score
        or {"winner": None, "duration": "REGULAR", "fullTime": {"home": None, "away": None}},
    }


def make_match(match_id, competition_id=2021, **overrides) -> MatchRecord:
    values = {
        "football_data_match_id": match_id,
        "competition_id": competition_id,
        "utc_date": datetime(2025, 3, 15, 15, 0, tzinfo=UTC),
        "status": "TIMED",
        "matchday": 28,
        "stage": "REGULAR_SEASON",
        "home_team_id": 57,
        "home_team_name": "Arsenal FC",
        "away_team_id": 61,
        "away_team_name": "Chelsea FC",
        "last_updated_at": datetime(2025, 3, 14, 6, 0, tzinfo=UTC),
    }
    values.update(overrides)
    return MatchRecord(**values)


def seed_competition(db_factory, competition_id=2021, name="Premier League", **overrides):
    values = {
        "id": competition_id,
        "name": name,
        "current_season_start_date": date(2024, 8, 16),
        "current_season_end_date": date(2025, 5, 25),
    }
    values.update(overrides)
    with db_factory() as conn:
        upsert_competition(conn, Competition(**values))


def seed_matches(db_factory, *matches: MatchRecord):
    with db_factory() as conn:
        for match in matches:
            upsert_match(conn, match)
