"""football-data.org v4 HTTP client.

Handles raw HTTP requests to the primary provider. No data transformation -
just fetch and return JSON.

Rate limits (free tier): 10 requests/minute. Pacing between calls is the
caller's job (the sync consumers sleep between competitions/matches); this
client only reports the remaining quota from response headers.

Failure policy: a non-2xx response, network error or unparseable body is
logged and returned as None. There is no retry inside a run; the next
scheduled invocation is the retry.

Every call, successful or not, is reported to the injected recorder for
the api_calls_log audit table.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime

import httpx

from pronohub.core.interfaces import ApiCallRecorder
from pronohub.core.types import ApiCallLogEntry
from pronohub.utilities.tz import now_utc

logger = logging.getLogger(__name__)

FOOTBALL_DATA_BASE_URL = "https://api.football-data.org/v4"
API_NAME = "football-data"


@dataclass
class RateLimitStatus:
    """Quota snapshot taken from the last response headers."""

    available_minute: int | None = None
    available_day: int | None = None
    reset_seconds: int | None = None
    observed_at: datetime | None = None
    total_requests: int = field(default=0)

    def to_dict(self) -> dict:
        return {
            "available_minute": self.available_minute,
            "available_day": self.available_day,
            "reset_seconds": self.reset_seconds,
            "observed_at": self.observed_at.isoformat() if self.observed_at else None,
            "total_requests": self.total_requests,
        }


def _header_int(headers: httpx.Headers, name: str) -> int | None:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class FootballDataClient:
    """Low-level football-data.org client.

    The API key is sent in the X-Auth-Token header. A client without a key
    is not configured; consumers must check is_configured before running.

    Usage:
        async with FootballDataClient(api_key=key, recorder=recorder) as client:
            data = await client.get_competition(2021)
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str = FOOTBALL_DATA_BASE_URL,
        timeout: float = 15.0,
        recorder: ApiCallRecorder | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._recorder = recorder
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._rate_limit = RateLimitStatus()

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    @property
    def rate_limit(self) -> RateLimitStatus:
        return self._rate_limit

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={"X-Auth-Token": self._api_key or ""},
                timeout=self._timeout,
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
            logger.debug("[FOOTBALL-DATA] Audit recorder failed: %s", e)

    def _track_rate_limit(self, response: httpx.Response) -> None:
        status = self._rate_limit
        status.total_requests += 1
        status.available_minute = _header_int(response.headers, "X-Requests-Available-Minute")
        status.available_day = _header_int(response.headers, "X-Requests-Available-Day")
        status.reset_seconds = _header_int(response.headers, "X-RequestCounter-Reset")
        status.observed_at = now_utc()
        if status.available_minute is not None:
            logger.debug(
                "[FOOTBALL-DATA] Quota: %s/min left, reset in %ss",
                status.available_minute,
                status.reset_seconds,
            )

    async def _request(
        self,
        endpoint: str,
        params: dict | None = None,
        call_type: str = "daily-sync",
        competition_id: int | None = None,
    ) -> httpx.Response | None:
        """GET an endpoint once. Returns the response on 2xx, None otherwise."""
        started = time.perf_counter()
        status_code: int | None = None
        try:
            response = await self._get_client().get(endpoint, params=params)
            status_code = response.status_code
            self._track_rate_limit(response)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            elapsed = int((time.perf_counter() - started) * 1000)
            logger.warning("[FOOTBALL-DATA] HTTP %d for %s", e.response.status_code, endpoint)
            self._record(endpoint, call_type, competition_id, False, elapsed, status_code)
            return None
        except (httpx.RequestError, RuntimeError, OSError) as e:
            # RuntimeError: "Cannot send a request, as the client has been closed"
            elapsed = int((time.perf_counter() - started) * 1000)
            logger.warning("[FOOTBALL-DATA] Request failed for %s: %s", endpoint, e)
            self._record(endpoint, call_type, competition_id, False, elapsed, status_code)
            return None

        elapsed = int((time.perf_counter() - started) * 1000)
        self._record(endpoint, call_type, competition_id, True, elapsed, status_code)
        return response

    async def _get_json(
        self,
        endpoint: str,
        params: dict | None = None,
        call_type: str = "daily-sync",
        competition_id: int | None = None,
    ) -> dict | None:
        response = await self._request(endpoint, params, call_type, competition_id)
        if response is None:
            return None
        try:
            data = response.json()
        except ValueError as e:
            logger.warning("[FOOTBALL-DATA] Invalid JSON from %s: %s", endpoint, e)
            return None
        return data if isinstance(data, dict) else None

    # =========================================================================
    # Endpoints
    # =========================================================================

    async def get_competition(
        self, competition_id: int, call_type: str = "daily-sync"
    ) -> dict | None:
        """GET /competitions/{id} - name, emblem, area, currentSeason."""
        return await self._get_json(
            f"/competitions/{competition_id}",
            call_type=call_type,
            competition_id=competition_id,
        )

    async def get_competition_matches(
        self,
        competition_id: int,
        matchday: int | None = None,
        call_type: str = "daily-sync",
    ) -> dict | None:
        """GET /competitions/{id}/matches, optionally for one matchday."""
        params = {"matchday": matchday} if matchday is not None else None
        return await self._get_json(
            f"/competitions/{competition_id}/matches",
            params=params,
            call_type=call_type,
            competition_id=competition_id,
        )

    async def get_match(
        self,
        match_id: int,
        competition_id: int | None = None,
        call_type: str = "realtime",
    ) -> dict | None:
        """GET /matches/{id} - single match with score breakdown."""
        return await self._get_json(
            f"/matches/{match_id}",
            call_type=call_type,
            competition_id=competition_id,
        )

    async def get_account(self) -> dict | None:
        """GET / - plan and permissions, plus the quota from response headers."""
        response = await self._request("/", call_type="account")
        if response is None:
            return None
        try:
            body = response.json()
        except ValueError:
            body = {}
        return {
            "account": body if isinstance(body, dict) else {},
            "rate_limit": self._rate_limit.to_dict(),
        }

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "FootballDataClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
