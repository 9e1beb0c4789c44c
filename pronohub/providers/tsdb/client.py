"""TheSportsDB API HTTP client.

Handles raw HTTP requests to TSDB endpoints. No data transformation -
just fetch and return JSON. Parsing into SeasonEvent lives in events.py.

Only eventsseason.php is needed: the fallback reconciler pulls one full
season per league and correlates results locally.

API key resolution:
1. Explicit api_key parameter (TSDB_API_KEY env var via the factory)
2. Free test key "123"

This client has NO direct database access - the audit recorder is injected.
"""

import logging
import time
from datetime import date

import httpx

from pronohub.core.interfaces import ApiCallRecorder
from pronohub.core.types import ApiCallLogEntry

logger = logging.getLogger(__name__)

TSDB_BASE_URL = "https://www.thesportsdb.com/api/v1/json"
API_NAME = "thesportsdb"

# European seasons start in August
SEASON_START_MONTH = 8


def season_for_date(today: date, calendar_year: bool = False) -> str:
    """Estimate the TSDB season string for a calendar date.

    Split seasons look like "2025-2026"; calendar-year leagues
    (e.g. Brazil) are keyed by a single year, "2025".
    """
    year = today.year
    if calendar_year:
        return str(year)
    if today.month < SEASON_START_MONTH:
        return f"{year - 1}-{year}"
    return f"{year}-{year + 1}"


def season_from_start(season_start: date, calendar_year: bool = False) -> str:
    """Season string for a competition whose season starts on season_start."""
    if calendar_year:
        return str(season_start.year)
    return f"{season_start.year}-{season_start.year + 1}"


class TSDBClient:
    """Low-level TheSportsDB API client.

    Free tier limitations:
    - 30 requests/minute
    - eventsseason.php capped on some leagues (enough for recent rounds)
    """

    FREE_API_KEY = "123"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = TSDB_BASE_URL,
        timeout: float = 10.0,
        recorder: ApiCallRecorder | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._explicit_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._recorder = recorder
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def _api_key(self) -> str:
        return self._explicit_key or self.FREE_API_KEY

    @property
    def is_premium(self) -> bool:
        return self._api_key != self.FREE_API_KEY

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                limits=httpx.Limits(max_connections=5, max_keepalive_connections=2),
                transport=self._transport,
            )
        return self._client

    def _record(
        self,
        endpoint: str,
        call_type: str,
        competition_id: int | None,
        success: bool,
        elapsed_ms: int,
        status_code: int | None,
    ) -> None:
        if self._recorder is None:
            return
        try:
            self._recorder(
                ApiCallLogEntry(
                    api_name=API_NAME,
                    call_type=call_type,
                    competition_id=competition_id,
                    endpoint=endpoint,
                    success=success,
                    status_code=status_code,
                    response_time_ms=elapsed_ms,
                )
            )
        except Exception as e:
            logger.debug("[TSDB] Audit recorder failed: %s", e)

    async def _request(
        self,
        endpoint: str,
        params: dict | None = None,
        call_type: str = "fallback-scores",
        competition_id: int | None = None,
    ) -> dict | None:
        """Make one HTTP request. Returns parsed JSON or None on any failure."""
        url = f"{self._base_url}/{self._api_key}/{endpoint}"
        started = time.perf_counter()
        status_code: int | None = None

        try:
            response = await self._get_client().get(url, params=params)
            status_code = response.status_code
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning("[TSDB] HTTP %d for %s", e.response.status_code, endpoint)
            data = None
        except (httpx.RequestError, RuntimeError, OSError) as e:
            logger.warning("[TSDB] Request failed for %s: %s", endpoint, e)
            data = None
        except ValueError as e:
            logger.warning("[TSDB] Invalid JSON from %s: %s", endpoint, e)
            data = None

        elapsed = int((time.perf_counter() - started) * 1000)
        success = isinstance(data, dict)
        self._record(endpoint, call_type, competition_id, success, elapsed, status_code)
        return data if success else None

    async def get_season_events(
        self,
        league_id: str,
        season: str,
        competition_id: int | None = None,
    ) -> dict | None:
        """Fetch every event of a league season.

        Uses eventsseason.php with league ID (idLeague) and "YYYY-YYYY" season.
        """
        logger.debug("[TSDB] eventsseason.php league=%s season=%s", league_id, season)
        return await self._request(
            "eventsseason.php",
            {"id": league_id, "s": season},
            competition_id=competition_id,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "TSDBClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
