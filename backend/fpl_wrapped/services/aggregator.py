"""Season data aggregator - collects everything one season summary needs.

Essential endpoints (bootstrap, entry, history) must all succeed. Optional
endpoints (transfers, per-gameweek picks/live) degrade to empty values so a
flaky upstream costs one section of the summary, not the whole response.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from fpl_wrapped.config import Settings, get_settings
from fpl_wrapped.errors import FplApiError, FplErrorType
from fpl_wrapped.services.fpl_client import (
    BootstrapData,
    ChipUsage,
    FplApiClient,
    GameweekPicks,
    HistoryEntry,
    LiveStats,
    ManagerEntry,
    Pick,
    TransferRecord,
)

logger = logging.getLogger(__name__)

MIN_MANAGER_ID = 1
MAX_MANAGER_ID = 99_999_999
DEMO_MANAGER_IDS = frozenset({"demo", "1"})


@dataclass(frozen=True, slots=True)
class ManagerIdRequest:
    """A validated manager identifier."""

    raw: str
    manager_id: int | None  # None for demo requests

    @property
    def is_demo(self) -> bool:
        return self.manager_id is None


def validate_manager_id(raw: str | None) -> ManagerIdRequest:
    """Validate an inbound manager id before any network call.

    Args:
        raw: Path parameter as received

    Returns:
        ManagerIdRequest, with manager_id None for the demo fixture

    Raises:
        FplApiError: validation error for non-numeric or out-of-range ids
    """
    sanitized = (raw or "").strip().lower()

    if sanitized in DEMO_MANAGER_IDS:
        return ManagerIdRequest(raw=sanitized, manager_id=None)

    if not sanitized.isascii() or not sanitized.isdigit():
        raise FplApiError(
            FplErrorType.VALIDATION,
            "Invalid manager ID. Please enter a valid FPL manager ID (numbers only).",
        )

    manager_id = int(sanitized)
    if not MIN_MANAGER_ID <= manager_id <= MAX_MANAGER_ID:
        raise FplApiError(
            FplErrorType.VALIDATION,
            f"Manager ID out of valid range. IDs must be between "
            f"{MIN_MANAGER_ID} and {MAX_MANAGER_ID}.",
        )

    return ManagerIdRequest(raw=sanitized, manager_id=manager_id)


def determine_current_gameweek(events: list[dict], default: int) -> int:
    """Resolve the current gameweek pointer from bootstrap events.

    Fallback chain: is_current -> (is_next - 1) -> default
    """
    for event in events:
        if event.get("is_current") and event.get("id"):
            return int(event["id"])

    for event in events:
        if event.get("is_next") and event.get("id"):
            return int(event["id"]) - 1

    logger.warning(f"No current or next gameweek in bootstrap, defaulting to GW{default}")
    return default


@dataclass(slots=True)
class GameweekSnapshot:
    """A manager's picks for one gameweek joined with that gameweek's live stats."""

    gameweek: int
    picks: list[Pick]
    live: dict[int, LiveStats]
    active_chip: str | None = None
    entry_history: dict = field(default_factory=dict)

    def points_for(self, player_id: int) -> int | None:
        """Raw (unmultiplied) points for a player, None if absent from live data."""
        stats = self.live.get(player_id)
        return stats.total_points if stats is not None else None

    @property
    def captain(self) -> Pick | None:
        return next((p for p in self.picks if p.is_captain), None)


@dataclass(slots=True)
class SeasonBundle:
    """Raw structures collected for one manager, ready for derivation."""

    manager_id: int
    bootstrap: BootstrapData
    entry: ManagerEntry
    history: list[HistoryEntry]
    chips: list[ChipUsage]
    transfers: list[TransferRecord] | None  # None when the endpoint failed
    snapshots: list[GameweekSnapshot]
    current_gameweek: int
    last_finished_gameweek: int


class SeasonDataAggregator:
    """Orchestrates the FPL API calls needed for one season summary."""

    def __init__(self, client: FplApiClient, settings: Settings | None = None):
        self.client = client
        self.settings = settings or get_settings()

    async def collect(self, manager_id: int) -> SeasonBundle:
        """Fetch and join all data for a manager.

        Raises:
            FplApiError: If any essential endpoint fails
        """
        logger.info(f"Collecting season data for manager {manager_id}")

        bootstrap, entry, history = await asyncio.gather(
            self.client.get_bootstrap(),
            self.client.get_entry(manager_id),
            self.client.get_entry_history(manager_id),
        )

        transfers = await self._fetch_transfers(manager_id)

        current_gw = determine_current_gameweek(
            bootstrap.events, self.settings.default_current_gameweek
        )
        last_finished = min(current_gw - 1, len(history.current))

        window = max(0, min(last_finished, self.settings.gameweek_window))
        start_gw = last_finished - window + 1
        snapshots = await self._fetch_gameweeks(manager_id, start_gw, last_finished)

        logger.info(
            f"Manager {manager_id}: {len(history.current)} history entries, "
            f"{len(snapshots)}/{window} gameweek snapshots (up to GW{last_finished})"
        )

        return SeasonBundle(
            manager_id=manager_id,
            bootstrap=bootstrap,
            entry=entry,
            history=history.current,
            chips=history.chips,
            transfers=transfers,
            snapshots=snapshots,
            current_gameweek=current_gw,
            last_finished_gameweek=last_finished,
        )

    async def _fetch_transfers(self, manager_id: int) -> list[TransferRecord] | None:
        try:
            return await self.client.get_entry_transfers(manager_id)
        except FplApiError as e:
            logger.warning(
                f"Could not fetch transfers for manager {manager_id} "
                f"({e.error_type.value}), continuing without transfer data"
            )
            return None

    async def _fetch_gameweeks(
        self, manager_id: int, start_gw: int, end_gw: int
    ) -> list[GameweekSnapshot]:
        """Fetch picks + live for each gameweek in order, pausing between gameweeks."""
        snapshots: list[GameweekSnapshot] = []

        for gw in range(start_gw, end_gw + 1):
            try:
                picks, live = await asyncio.gather(
                    self.client.get_entry_picks(manager_id, gw),
                    self.client.get_event_live(gw),
                )
            except FplApiError as e:
                logger.warning(
                    f"Skipping GW{gw} for manager {manager_id}: "
                    f"{e.error_type.value} ({e.message})"
                )
            else:
                snapshots.append(_join_gameweek(picks, live))

            if gw < end_gw and self.settings.gameweek_fetch_delay > 0:
                await asyncio.sleep(self.settings.gameweek_fetch_delay)

        return snapshots


def _join_gameweek(picks: GameweekPicks, live: dict[int, LiveStats]) -> GameweekSnapshot:
    return GameweekSnapshot(
        gameweek=picks.gameweek,
        picks=picks.picks,
        live=live,
        active_chip=picks.active_chip,
        entry_history=picks.entry_history,
    )
