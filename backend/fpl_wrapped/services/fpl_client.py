"""FPL API client with retries and typed failure classification."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from cachetools import TTLCache
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)
from tenacity.wait import wait_base

from fpl_wrapped.config import Settings, get_settings
from fpl_wrapped.errors import FplApiError, FplErrorType
from fpl_wrapped.services.bootstrap_cache import BootstrapCache

logger = logging.getLogger(__name__)

SQUAD_SIZE = 15

REQUEST_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; FPL-Wrapped/1.0)",
    "Accept": "application/json",
    "Accept-Language": "en-GB,en;q=0.9",
}


def _safe_int(val: Any, default: int = 0) -> int:
    """Safely convert API value to int, handling None and empty strings."""
    if val is None or val == "":
        return default
    try:
        return int(val)
    except (ValueError, TypeError):
        return default


def _optional_int(val: Any) -> int | None:
    """Convert API value to int, keeping missing values as None."""
    if val is None or val == "":
        return None
    return _safe_int(val)


def _is_retryable_error(exception: BaseException) -> bool:
    """Check if an error should trigger a retry."""
    return isinstance(exception, FplApiError) and exception.retryable


def retry_wait(settings: Settings) -> wait_base:
    """Exponential backoff doubling from the base delay, capped, plus random jitter."""
    return wait_exponential(
        multiplier=settings.retry_backoff_base, max=settings.retry_backoff_max
    ) + wait_random(0, settings.retry_jitter)


def _malformed(message: str, retryable: bool = False) -> FplApiError:
    return FplApiError(FplErrorType.MALFORMED_RESPONSE, message, retryable=retryable)


def _require_dicts(items: list[Any], what: str) -> list[dict[str, Any]]:
    """Reject a list payload containing anything other than JSON objects."""
    if not all(isinstance(item, dict) for item in items):
        raise _malformed(f"Invalid {what} entry in FPL API response")
    return items


def _classify_status(response: httpx.Response) -> FplApiError | None:
    """Map a non-2xx response onto the error taxonomy."""
    if response.is_success:
        return None

    status = response.status_code
    if status == 404:
        return FplApiError(
            FplErrorType.NOT_FOUND,
            "Manager not found. Please check your FPL Manager ID and try again.",
            status_code=status,
        )
    if status == 429:
        return FplApiError(
            FplErrorType.RATE_LIMITED,
            "FPL API rate limit reached. Please try again shortly.",
            status_code=status,
        )
    # 5xx is transient; other 4xx (403 during maintenance) will not fix itself
    return FplApiError(
        FplErrorType.SERVER_ERROR,
        "FPL API is currently unavailable. Please try again later.",
        status_code=status,
        retryable=status >= 500,
    )


def _parse_body(response: httpx.Response) -> Any:
    """Decode a JSON body, rejecting empty and HTML responses."""
    text = response.text.strip()
    if not text:
        raise _malformed("Empty response from FPL API", retryable=True)
    if text.startswith("<"):
        # Maintenance pages and CDN error pages come back as HTML with a 200
        raise _malformed(
            "FPL API returned HTML instead of JSON - service may be down",
            retryable=True,
        )
    try:
        data = response.json()
    except ValueError as e:
        raise _malformed("FPL API returned invalid JSON", retryable=True) from e

    if not isinstance(data, (dict, list)):
        raise _malformed("Invalid data structure from FPL API", retryable=True)
    return data


@dataclass(slots=True)
class ManagerEntry:
    """Manager profile from the entry endpoint."""

    manager_id: int
    first_name: str
    last_name: str
    team_name: str
    overall_points: int | None
    overall_rank: int | None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(slots=True)
class HistoryEntry:
    """One finished gameweek from the entry history endpoint."""

    gameweek: int
    points: int
    total_points: int
    overall_rank: int | None
    points_on_bench: int
    event_transfers: int
    event_transfers_cost: int  # Positive: 4 per hit


@dataclass(slots=True)
class ChipUsage:
    """A chip used by a manager in a season."""

    name: str  # "wildcard", "bboost", "3xc", "freehit"
    event: int  # Gameweek number when used


@dataclass(slots=True)
class ManagerHistory:
    """Season history: per-gameweek entries plus chips played."""

    current: list[HistoryEntry]
    chips: list[ChipUsage]


@dataclass(slots=True)
class Pick:
    """A squad slot in a manager's gameweek picks."""

    element: int
    position: int  # 1-11 starting XI, 12-15 bench
    multiplier: int  # 0 bench, 1 playing, 2 captain, 3 triple captain
    is_captain: bool
    is_vice_captain: bool


@dataclass(slots=True)
class GameweekPicks:
    """Picks endpoint response for one gameweek."""

    gameweek: int
    picks: list[Pick]
    active_chip: str | None
    entry_history: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class LiveStats:
    """A player's live stats for one gameweek."""

    minutes: int
    goals_scored: int
    assists: int
    clean_sheets: int
    bonus: int
    total_points: int


@dataclass(slots=True)
class TransferRecord:
    """A transfer made by a manager."""

    event: int
    element_in: int
    element_out: int
    element_in_cost: int
    element_out_cost: int


@dataclass
class BootstrapData:
    """Core bootstrap data from FPL API."""

    players: list[dict[str, Any]]
    teams: list[dict[str, Any]]
    events: list[dict[str, Any]]
    players_by_id: dict[int, dict[str, Any]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.players_by_id = {
            p["id"]: p for p in self.players if isinstance(p, dict) and "id" in p
        }

    def player_name(self, player_id: int, default: str = "Unknown") -> str:
        player = self.players_by_id.get(player_id)
        if player is None:
            logger.debug(f"Player not found in bootstrap: {player_id}")
            return default
        return player.get("web_name") or default


class FplApiClient:
    """
    FPL API client with bounded retries.

    Every endpoint goes through _get, which applies the timeout, classifies
    failures into FplApiError and retries the retryable ones with exponential
    backoff. A 404 is definitive and never retried.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        bootstrap_cache: BootstrapCache | None = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Timeouts, retry policy and base URL (defaults to env settings)
            bootstrap_cache: Shared bootstrap cache; a private one is created if omitted
        """
        self.settings = settings or get_settings()
        self.base_url = self.settings.fpl_api_base_url.rstrip("/")
        self.semaphore = asyncio.Semaphore(self.settings.max_concurrent_requests)
        self._lock = asyncio.Lock()
        self._client: httpx.AsyncClient | None = None
        self.bootstrap_cache = bootstrap_cache or BootstrapCache(
            ttl=self.settings.cache_ttl_bootstrap
        )
        # Live data for a gameweek is the same for every manager
        self._live_cache: TTLCache[int, dict[int, LiveStats]] = TTLCache(
            maxsize=64, ttl=self.settings.cache_ttl_live
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client (lazy initialization, coroutine-safe)."""
        if self._client is None:
            async with self._lock:
                if self._client is None:  # Double-check after acquiring lock
                    self._client = httpx.AsyncClient(
                        timeout=self.settings.request_timeout,
                        headers=REQUEST_HEADERS,
                    )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources (coroutine-safe)."""
        async with self._lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None

    async def __aenter__(self) -> "FplApiClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Exit async context manager and close client."""
        await self.close()

    async def _request(self, url: str) -> Any:
        """Single attempt: GET, classify status, decode body."""
        async with self.semaphore:
            client = await self._get_client()
            try:
                response = await client.get(url)
            except httpx.TimeoutException as e:
                raise FplApiError(
                    FplErrorType.TIMEOUT, "FPL API request timed out. Please try again."
                ) from e
            except httpx.TransportError as e:
                raise FplApiError(
                    FplErrorType.NETWORK, "Could not connect to the FPL API."
                ) from e

        error = _classify_status(response)
        if error is not None:
            raise error
        return _parse_body(response)

    async def _get(self, url: str) -> Any:
        """GET a JSON resource with retries on transient failures."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.settings.max_attempts),
            wait=retry_wait(self.settings),
            retry=retry_if_exception(_is_retryable_error),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                data = await self._request(url)
        return data

    async def _fetch_bootstrap_static(self) -> dict[str, Any]:
        data = await self._get(f"{self.base_url}/bootstrap-static/")
        if not isinstance(data, dict) or not isinstance(data.get("elements"), list):
            raise _malformed("Invalid bootstrap data structure")
        return data

    async def get_bootstrap(self) -> BootstrapData:
        """
        Fetch bootstrap-static data (players, teams, gameweeks).

        Served from the shared bootstrap cache when fresh.
        """
        data = await self.bootstrap_cache.get(self._fetch_bootstrap_static)
        return BootstrapData(
            players=data.get("elements", []),
            teams=data.get("teams", []),
            events=data.get("events", []),
        )

    async def get_entry(self, manager_id: int) -> ManagerEntry:
        """Fetch a manager's profile (names and season summary)."""
        data = await self._get(f"{self.base_url}/entry/{manager_id}/")
        if not isinstance(data, dict) or not data.get("name"):
            raise _malformed("Invalid manager data structure")

        return ManagerEntry(
            manager_id=_safe_int(data.get("id"), manager_id),
            first_name=data.get("player_first_name") or "",
            last_name=data.get("player_last_name") or "",
            team_name=data["name"],
            overall_points=_optional_int(data.get("summary_overall_points")),
            overall_rank=_optional_int(data.get("summary_overall_rank")),
        )

    async def get_entry_history(self, manager_id: int) -> ManagerHistory:
        """
        Fetch a manager's season history including chip usage.

        The /entry/{id}/history endpoint returns:
        - current: gameweek entries for current season
        - past: summary of past seasons
        - chips: list of chips used (name, time, event)
        """
        data = await self._get(f"{self.base_url}/entry/{manager_id}/history/")
        if not isinstance(data, dict) or not isinstance(data.get("current"), list):
            raise _malformed("Invalid history data structure")

        current = [
            HistoryEntry(
                gameweek=_safe_int(h.get("event")),
                points=_safe_int(h.get("points")),
                total_points=_safe_int(h.get("total_points")),
                overall_rank=_optional_int(h.get("overall_rank")),
                points_on_bench=_safe_int(h.get("points_on_bench")),
                event_transfers=_safe_int(h.get("event_transfers")),
                event_transfers_cost=_safe_int(h.get("event_transfers_cost")),
            )
            for h in _require_dicts(data["current"], "history")
        ]
        current.sort(key=lambda h: h.gameweek)

        chips = []
        for chip in _require_dicts(data.get("chips") or [], "chip"):
            name = chip.get("name", "")
            event = _safe_int(chip.get("event"))
            if name and event > 0:
                chips.append(ChipUsage(name=name, event=event))

        return ManagerHistory(current=current, chips=chips)

    async def get_entry_transfers(self, manager_id: int) -> list[TransferRecord]:
        """Fetch all transfers made by a manager this season."""
        data = await self._get(f"{self.base_url}/entry/{manager_id}/transfers/")
        if not isinstance(data, list):
            raise _malformed("Invalid transfers data structure")

        return [
            TransferRecord(
                event=_safe_int(t.get("event")),
                element_in=_safe_int(t.get("element_in")),
                element_out=_safe_int(t.get("element_out")),
                element_in_cost=_safe_int(t.get("element_in_cost")),
                element_out_cost=_safe_int(t.get("element_out_cost")),
            )
            for t in _require_dicts(data, "transfer")
        ]

    async def get_entry_picks(self, manager_id: int, gameweek: int) -> GameweekPicks:
        """Fetch a manager's 15 picks for one gameweek."""
        data = await self._get(
            f"{self.base_url}/entry/{manager_id}/event/{gameweek}/picks/"
        )
        raw_picks = data.get("picks") if isinstance(data, dict) else None
        if not isinstance(raw_picks, list) or len(raw_picks) != SQUAD_SIZE:
            raise _malformed(f"Invalid picks data for GW{gameweek}")

        picks = [
            Pick(
                element=_safe_int(p.get("element")),
                position=_safe_int(p.get("position")),
                multiplier=_safe_int(p.get("multiplier")),
                is_captain=bool(p.get("is_captain")),
                is_vice_captain=bool(p.get("is_vice_captain")),
            )
            for p in _require_dicts(raw_picks, "pick")
        ]
        return GameweekPicks(
            gameweek=gameweek,
            picks=picks,
            active_chip=data.get("active_chip"),
            entry_history=data.get("entry_history") or {},
        )

    async def get_event_live(self, gameweek: int) -> dict[int, LiveStats]:
        """Fetch live per-player stats for a gameweek, keyed by player id."""
        cached = self._live_cache.get(gameweek)
        if cached is not None:
            logger.debug(f"Live cache hit for GW{gameweek}")
            return cached

        data = await self._get(f"{self.base_url}/event/{gameweek}/live/")
        elements = data.get("elements") if isinstance(data, dict) else None
        if not isinstance(elements, list):
            raise _malformed(f"Invalid live data for GW{gameweek}")

        live: dict[int, LiveStats] = {}
        for element in _require_dicts(elements, "live element"):
            stats = element.get("stats") or {}
            if not isinstance(stats, dict):
                raise _malformed(f"Invalid live stats for GW{gameweek}")
            live[_safe_int(element.get("id"))] = LiveStats(
                minutes=_safe_int(stats.get("minutes")),
                goals_scored=_safe_int(stats.get("goals_scored")),
                assists=_safe_int(stats.get("assists")),
                clean_sheets=_safe_int(stats.get("clean_sheets")),
                bonus=_safe_int(stats.get("bonus")),
                total_points=_safe_int(stats.get("total_points")),
            )

        self._live_cache[gameweek] = live
        return live
