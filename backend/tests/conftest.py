"""Shared pytest fixtures and FPL API payload builders for backend tests."""

import pytest
import respx
from httpx import ASGITransport, AsyncClient, Response

from fpl_wrapped.config import Settings
from fpl_wrapped.main import create_app
from fpl_wrapped.services.aggregator import GameweekSnapshot
from fpl_wrapped.services.fpl_client import BootstrapData, HistoryEntry, LiveStats, Pick

BASE_URL = "https://fantasy.premierleague.com/api"
MANAGER_ID = 123456

# (id, web_name, element_type); squad position == id
SQUAD = [
    (1, "Raya", 1),
    (2, "Gabriel", 2),
    (3, "Saliba", 2),
    (4, "Gvardiol", 2),
    (5, "Porro", 2),
    (6, "Salah", 3),
    (7, "Palmer", 3),
    (8, "Saka", 3),
    (9, "Mbeumo", 3),
    (10, "Haaland", 4),
    (11, "Watkins", 4),
    (12, "Flekken", 1),
    (13, "Mykolenko", 2),
    (14, "Wissa", 4),
    (15, "Hall", 2),
]
# (id, web_name, element_type, total_points) never picked by the test manager
UNOWNED = [
    (16, "Isak", 4, 210),
    (17, "Mitoma", 3, 95),
]
# Managers (element_type 5) never count as "never owned" candidates
ASSISTANT_MANAGER = (99, "Arteta", 5, 500)
CAPTAIN_ID = 10
VICE_CAPTAIN_ID = 6


def make_bootstrap(current_gw: int | None = 20, most_captained: int = CAPTAIN_ID) -> dict:
    elements = [
        {"id": pid, "web_name": name, "element_type": et, "total_points": 100 + pid}
        for pid, name, et in SQUAD
    ]
    elements += [
        {"id": pid, "web_name": name, "element_type": et, "total_points": tp}
        for pid, name, et, tp in [*UNOWNED, ASSISTANT_MANAGER]
    ]
    events = [
        {
            "id": gw,
            "is_current": gw == current_gw,
            "is_next": current_gw is not None and gw == current_gw + 1,
            "finished": current_gw is not None and gw < current_gw,
            "most_captained": most_captained,
        }
        for gw in range(1, 39)
    ]
    return {
        "elements": elements,
        "teams": [{"id": 1, "name": "Arsenal", "short_name": "ARS"}],
        "events": events,
    }


def make_entry(
    manager_id: int = MANAGER_ID, total_points: int | None = 1140, rank: int | None = 310_000
) -> dict:
    return {
        "id": manager_id,
        "name": "Wrapped XI",
        "player_first_name": "Alex",
        "player_last_name": "Morgan",
        "summary_overall_points": total_points,
        "summary_overall_rank": rank,
    }


def make_history(
    gameweeks: int = 19,
    points: list[int] | None = None,
    chips: list[dict] | None = None,
    hit_gameweeks: tuple[int, ...] = (5,),
) -> dict:
    """History with 60 points, 4 bench points and one transfer per gameweek.

    Overall rank improves by 10,000 each gameweek.
    """
    points = points or [60] * gameweeks
    current = []
    total = 0
    for gw, gw_points in enumerate(points, start=1):
        total += gw_points
        current.append(
            {
                "event": gw,
                "points": gw_points,
                "total_points": total,
                "overall_rank": 500_000 - gw * 10_000,
                "points_on_bench": 4,
                "event_transfers": 1,
                "event_transfers_cost": 4 if gw in hit_gameweeks else 0,
            }
        )
    return {"current": current, "past": [], "chips": chips or []}


def make_picks(
    captain: int = CAPTAIN_ID, active_chip: str | None = None, points: int = 60
) -> dict:
    captain_multiplier = 3 if active_chip == "3xc" else 2
    picks = []
    for pid, _, _ in SQUAD:
        if pid == captain:
            multiplier = captain_multiplier
        elif pid <= 11 or active_chip == "bboost":
            multiplier = 1
        else:
            multiplier = 0
        picks.append(
            {
                "element": pid,
                "position": pid,
                "multiplier": multiplier,
                "is_captain": pid == captain,
                "is_vice_captain": pid == VICE_CAPTAIN_ID,
            }
        )
    return {
        "active_chip": active_chip,
        "picks": picks,
        "entry_history": {"points": points, "points_on_bench": 4},
    }


def make_live(points: dict[int, int] | None = None, default: int = 2) -> dict:
    points = points or {}
    ids = [pid for pid, _, _ in SQUAD] + [pid for pid, _, _, _ in UNOWNED]
    return {
        "elements": [
            {
                "id": pid,
                "stats": {
                    "minutes": 90,
                    "goals_scored": 0,
                    "assists": 0,
                    "clean_sheets": 0,
                    "bonus": 0,
                    "total_points": points.get(pid, default),
                },
            }
            for pid in ids
        ]
    }


def mock_fpl_api(
    manager_id: int = MANAGER_ID,
    gameweeks: range = range(17, 20),
    transfers: Response | None = None,
    live_points: dict[int, int] | None = None,
    router: respx.MockRouter | None = None,
) -> dict[str, respx.Route]:
    """Register FPL API routes for one manager.

    Routes go on the given router (the respx_mock fixture), else on the global
    router activated by a bare @respx.mock.
    """
    if router is None:
        router = respx.mock
    if transfers is None:
        transfers = Response(
            200,
            json=[
                {
                    "event": 17,
                    "element_in": 7,
                    "element_out": 16,
                    "element_in_cost": 105,
                    "element_out_cost": 90,
                }
            ],
        )
    routes = {
        "bootstrap": router.get(f"{BASE_URL}/bootstrap-static/").mock(
            return_value=Response(200, json=make_bootstrap())
        ),
        "entry": router.get(f"{BASE_URL}/entry/{manager_id}/").mock(
            return_value=Response(200, json=make_entry(manager_id))
        ),
        "history": router.get(f"{BASE_URL}/entry/{manager_id}/history/").mock(
            return_value=Response(200, json=make_history())
        ),
        "transfers": router.get(f"{BASE_URL}/entry/{manager_id}/transfers/").mock(
            return_value=transfers
        ),
    }
    for gw in gameweeks:
        routes[f"picks_{gw}"] = router.get(
            f"{BASE_URL}/entry/{manager_id}/event/{gw}/picks/"
        ).mock(return_value=Response(200, json=make_picks()))
        routes[f"live_{gw}"] = router.get(f"{BASE_URL}/event/{gw}/live/").mock(
            return_value=Response(200, json=make_live(live_points))
        )
    return routes


class FakeTimer:
    """Manually advanced clock for TTL and window tests."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def settings() -> Settings:
    """Settings with no retry backoff or gameweek delay and a three-gameweek window."""
    return Settings(
        _env_file=None,
        retry_backoff_base=0,
        retry_backoff_max=0,
        retry_jitter=0,
        gameweek_fetch_delay=0,
        gameweek_window=3,
    )


@pytest.fixture
def app(settings: Settings):
    """A fresh app per test so caches and rate limits never leak between tests."""
    return create_app(settings)


@pytest.fixture
async def async_client(app):
    """Async HTTP client for testing the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    await app.state.fpl_client.close()


# =============================================================================
# Parsed-model builders for pure derivation tests
# =============================================================================


def history_entry(
    gw: int,
    points: int = 60,
    rank: int | None = None,
    bench: int = 4,
    transfers: int = 1,
    cost: int = 0,
) -> HistoryEntry:
    return HistoryEntry(
        gameweek=gw,
        points=points,
        total_points=gw * points,
        overall_rank=rank,
        points_on_bench=bench,
        event_transfers=transfers,
        event_transfers_cost=cost,
    )


def live_stats(points: int) -> LiveStats:
    return LiveStats(
        minutes=90, goals_scored=0, assists=0, clean_sheets=0, bonus=0, total_points=points
    )


def snapshot(
    gw: int,
    points: dict[int, int] | None = None,
    captain: int = 10,
    captain_multiplier: int = 2,
    bench_boost: bool = False,
) -> GameweekSnapshot:
    """Snapshot where every player scores 2 unless overridden in points."""
    points = points or {}
    picks = []
    for pid in range(1, 16):
        if pid == captain:
            multiplier = captain_multiplier
        elif pid <= 11 or bench_boost:
            multiplier = 1
        else:
            multiplier = 0
        picks.append(
            Pick(
                element=pid,
                position=pid,
                multiplier=multiplier,
                is_captain=pid == captain,
                is_vice_captain=pid == 6,
            )
        )
    live = {pid: live_stats(points.get(pid, 2)) for pid in range(1, 18)}
    return GameweekSnapshot(gameweek=gw, picks=picks, live=live)


@pytest.fixture
def bootstrap() -> BootstrapData:
    """Parsed bootstrap for the test squad with GW20 current."""
    payload = make_bootstrap()
    return BootstrapData(
        players=payload["elements"],
        teams=payload["teams"],
        events=payload["events"],
    )

