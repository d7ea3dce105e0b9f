"""Pure calculation functions for season summary statistics.

These functions are stateless and have no network dependencies, making them
easy to test in isolation. They operate on the structures collected by the
aggregator (history entries, gameweek snapshots, bootstrap metadata).

Functions that need fetched gameweek data return None when there is nothing to
work with; the summary builder substitutes the matching fallback_* value. All
fallbacks are fixed constants so identical input always yields identical output.
"""

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from fpl_wrapped.schemas.summary import (
    BenchAnalysis,
    BenchCall,
    BestChip,
    CaptainPerformance,
    CaptainPick,
    ChipPlay,
    Comparisons,
    FormPlayer,
    GameweekResult,
    MvpPlayer,
    NamedPoints,
    OneGotAway,
    RankChange,
    TopContributor,
    TransferActivity,
    TransferIn,
    TransferOut,
    UserVsAverage,
    UserVsGlobal,
    UserVsTop10k,
)
from fpl_wrapped.services.aggregator import GameweekSnapshot
from fpl_wrapped.services.fpl_client import (
    BootstrapData,
    ChipUsage,
    HistoryEntry,
    TransferRecord,
)

# =============================================================================
# Constants
# =============================================================================

SEASON_GAMEWEEKS = 38
HIT_COST = 4  # Points deducted per transfer beyond the free allowance
FAILED_CAPTAINCY_THRESHOLD = 6  # Contribution below this is a failed captaincy
BENCH_CALL_THRESHOLD = 5  # Bench scores above this count as a bad bench call
FORM_WINDOW = 6  # Most recent fetched gameweeks considered for the form player
TOP_CONTRIBUTOR_COUNT = 3

# element_type: GK=1, DEF=2, MID=3, FWD=4 (managers are excluded)
PLAYER_ELEMENT_TYPES = frozenset({1, 2, 3, 4})

CHIP_DISPLAY_NAMES = {
    "3xc": "TRIPLE CAPTAIN",
    "wildcard": "WILDCARD",
    "bboost": "BENCH BOOST",
    "freehit": "FREE HIT",
}

# Reference figures shown next to the manager's own numbers
GAME_AVERAGE_BENCH_POINTS = 215
GAME_AVERAGE_HIT_POINTS = 48
TOP_10K_CAPTAIN_AVERAGE = 15.4

# Fallback estimates used when the underlying data could not be fetched
FALLBACK_CAPTAIN_BASE_POINTS = 7.8
FALLBACK_CAPTAIN_AVERAGE = 15.6  # Captain doubles the base points
FALLBACK_CAPTAIN_FAIL_RATE = 25
FALLBACK_BEST_CAPTAIN = ("Erling Haaland", 26, 15)
FALLBACK_WORST_CAPTAIN = ("Bruno Fernandes", 2, 8)
FALLBACK_BEST_TRANSFER_IN = ("Cole Palmer", 67, 12)
FALLBACK_MVP = ("Mohamed Salah", 35, 15.0, 9.3)
FALLBACK_MVP_SHARE = 0.15
# (name, season total, best gameweek, best gameweek points); the first entry is used
FALLBACK_TOP_SCORERS = (
    ("Alexander Isak", 198, 9, 24),
    ("Bukayo Saka", 189, 12, 22),
    ("Phil Foden", 176, 15, 20),
)


def round_half_up(value: float, places: int = 0) -> float:
    """Round with halves going up (12.5 -> 13), unlike round()'s half-to-even."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _round1(value: float) -> float:
    return round_half_up(value, 1)


# =============================================================================
# Season totals
# =============================================================================


def season_total_points(overall_points: int | None, history: list[HistoryEntry]) -> int:
    """Season total from the entry summary, falling back to the last history row."""
    if overall_points is not None:
        return max(0, overall_points)
    if history:
        return max(0, history[-1].total_points)
    return 0


def average_points(total: int | float, count: int) -> float:
    """Per-gameweek average rounded to one decimal, 0 when there is nothing to average."""
    if count <= 0:
        return 0.0
    return _round1(total / count)


def gameweek_extremes(history: list[HistoryEntry]) -> tuple[GameweekResult, GameweekResult]:
    """Best and worst gameweek by points. Ties go to the earliest gameweek."""
    if not history:
        empty = GameweekResult(gameweek=1, points=0)
        return empty, empty.model_copy()

    best = max(history, key=lambda h: h.points)
    worst = min(history, key=lambda h: h.points)
    return (
        GameweekResult(gameweek=best.gameweek, points=best.points),
        GameweekResult(gameweek=worst.gameweek, points=worst.points),
    )


def best_overall_rank(history: list[HistoryEntry]) -> int | None:
    """Lowest positive overall rank reached during the season."""
    ranks = [h.overall_rank for h in history if h.overall_rank and h.overall_rank > 0]
    return min(ranks) if ranks else None


# =============================================================================
# Rank movement
# =============================================================================


@dataclass(slots=True)
class RankMovements:
    green_arrows: int
    red_arrows: int
    biggest_jump: RankChange | None
    biggest_drop: RankChange | None


def calculate_rank_movements(history: list[HistoryEntry]) -> RankMovements:
    """Count rank rises (green arrows) and falls (red arrows) between consecutive gameweeks.

    A pair where either rank is missing or non-positive is skipped. The largest
    single-step rise and fall are tagged with the gameweek they happened in.

    Args:
        history: History entries ordered by gameweek

    Returns:
        RankMovements with counts and extremes (None when no movement in that direction)
    """
    green = red = 0
    jump: RankChange | None = None
    drop: RankChange | None = None

    for prev, curr in zip(history, history[1:]):
        if not prev.overall_rank or not curr.overall_rank:
            continue
        if prev.overall_rank <= 0 or curr.overall_rank <= 0:
            continue

        change = prev.overall_rank - curr.overall_rank
        if change > 0:
            green += 1
            if jump is None or change > jump.places:
                jump = RankChange(gameweek=curr.gameweek, places=change)
        elif change < 0:
            red += 1
            if drop is None or -change > drop.places:
                drop = RankChange(gameweek=curr.gameweek, places=-change)

    return RankMovements(
        green_arrows=green, red_arrows=red, biggest_jump=jump, biggest_drop=drop
    )


# =============================================================================
# Captaincy
# =============================================================================


@dataclass(slots=True)
class CaptainChoice:
    """The captain pick for one gameweek."""

    gameweek: int
    player_id: int
    player_name: str
    base_points: int  # What the player actually scored
    multiplier: int  # 2 for captain, 3 for triple captain

    @property
    def captain_points(self) -> int:
        return self.base_points * self.multiplier


def extract_captain_choices(
    snapshots: list[GameweekSnapshot], bootstrap: BootstrapData
) -> list[CaptainChoice]:
    """Captain choice per snapshot. Gameweeks without a captain or live data are skipped."""
    choices = []
    for snapshot in snapshots:
        captain = snapshot.captain
        if captain is None:
            continue
        base_points = snapshot.points_for(captain.element)
        if base_points is None:
            continue
        choices.append(
            CaptainChoice(
                gameweek=snapshot.gameweek,
                player_id=captain.element,
                player_name=bootstrap.player_name(captain.element),
                base_points=base_points,
                multiplier=captain.multiplier,
            )
        )
    return choices


def analyze_captains(choices: list[CaptainChoice]) -> CaptainPerformance | None:
    """Summarize captain contributions over the analyzed gameweeks.

    Returns None when there are no choices to analyze.
    """
    if not choices:
        return None

    total = sum(c.captain_points for c in choices)
    failed = sum(1 for c in choices if c.captain_points < FAILED_CAPTAINCY_THRESHOLD)
    best = max(choices, key=lambda c: c.captain_points)
    worst = min(choices, key=lambda c: c.captain_points)

    return CaptainPerformance(
        total_points=total,
        average_points=average_points(total, len(choices)),
        fail_rate=int(round_half_up(failed / len(choices) * 100)),
        gameweeks_analyzed=len(choices),
        best_captain=CaptainPick(
            name=best.player_name, points=best.captain_points, gameweek=best.gameweek
        ),
        worst_captain=CaptainPick(
            name=worst.player_name, points=worst.captain_points, gameweek=worst.gameweek
        ),
    )


def fallback_captain_performance(gameweeks_played: int) -> CaptainPerformance:
    """Plausible captaincy estimate when no gameweek picks could be fetched."""
    best_name, best_points, best_gw = FALLBACK_BEST_CAPTAIN
    worst_name, worst_points, worst_gw = FALLBACK_WORST_CAPTAIN
    analyzed = max(gameweeks_played, 1)
    return CaptainPerformance(
        total_points=int(round_half_up(FALLBACK_CAPTAIN_AVERAGE * analyzed)),
        average_points=FALLBACK_CAPTAIN_AVERAGE,
        fail_rate=FALLBACK_CAPTAIN_FAIL_RATE,
        gameweeks_analyzed=analyzed,
        best_captain=CaptainPick(name=best_name, points=best_points, gameweek=best_gw),
        worst_captain=CaptainPick(name=worst_name, points=worst_points, gameweek=worst_gw),
    )


# =============================================================================
# Bench
# =============================================================================


def find_worst_bench_call(
    snapshots: list[GameweekSnapshot], bootstrap: BootstrapData
) -> BenchCall:
    """Highest single bench score above the threshold across fetched gameweeks."""
    worst = BenchCall(player_name="Unknown", gameweek=1, points=0)
    for snapshot in snapshots:
        for pick in snapshot.picks:
            if pick.position <= 11:
                continue
            points = snapshot.points_for(pick.element)
            if points is None or points <= BENCH_CALL_THRESHOLD:
                continue
            if points > worst.points:
                worst = BenchCall(
                    player_name=bootstrap.player_name(pick.element),
                    gameweek=snapshot.gameweek,
                    points=points,
                )
    return worst


def bench_boost_impact(history: list[HistoryEntry], chips: list[ChipUsage]) -> int:
    """Bench points scored in bench boost gameweeks."""
    boost_gameweeks = {c.event for c in chips if c.name == "bboost"}
    return sum(h.points_on_bench for h in history if h.gameweek in boost_gameweeks)


def analyze_bench(
    history: list[HistoryEntry],
    snapshots: list[GameweekSnapshot],
    chips: list[ChipUsage],
    bootstrap: BootstrapData,
) -> BenchAnalysis:
    """Bench totals come straight from history; the worst call needs fetched picks."""
    total = max(0, sum(h.points_on_bench for h in history))
    return BenchAnalysis(
        total_bench_points=total,
        average_per_gw=average_points(total, len(history)),
        worst_bench_call=find_worst_bench_call(snapshots, bootstrap),
        bench_boost_impact=bench_boost_impact(history, chips),
    )


def fallback_bench_analysis(history: list[HistoryEntry]) -> BenchAnalysis:
    total = max(0, sum(h.points_on_bench for h in history))
    return BenchAnalysis(
        total_bench_points=total,
        average_per_gw=average_points(total, len(history)),
        worst_bench_call=BenchCall(player_name="Unknown", gameweek=1, points=0),
        bench_boost_impact=0,
    )


# =============================================================================
# Players
# =============================================================================


def _tally_played(snapshots: list[GameweekSnapshot]) -> dict[int, list[int]]:
    """player_id -> [appearances, multiplied points] for picks that counted (multiplier > 0)."""
    tallies: dict[int, list[int]] = {}
    for snapshot in sorted(snapshots, key=lambda s: s.gameweek):
        for pick in snapshot.picks:
            if pick.multiplier <= 0:
                continue
            points = snapshot.points_for(pick.element)
            if points is None:
                continue
            tally = tallies.setdefault(pick.element, [0, 0])
            tally[0] += 1
            tally[1] += points * pick.multiplier
    return tallies


def find_mvp(
    snapshots: list[GameweekSnapshot], bootstrap: BootstrapData, season_total: int
) -> MvpPlayer | None:
    """Player with the most appearances; ties broken by higher multiplied points."""
    tallies = _tally_played(snapshots)
    if not tallies:
        return None

    player_id, (appearances, points) = max(
        tallies.items(), key=lambda item: (item[1][0], item[1][1])
    )
    share = points / season_total * 100 if season_total > 0 else 0.0
    return MvpPlayer(
        name=bootstrap.player_name(player_id),
        appearances=appearances,
        total_points=points,
        percentage_of_team_score=_round1(share),
        points_per_game=_round1(points / appearances),
    )


def fallback_mvp(season_total: int) -> MvpPlayer:
    name, appearances, share, ppg = FALLBACK_MVP
    return MvpPlayer(
        name=name,
        appearances=appearances,
        total_points=int(round_half_up(season_total * FALLBACK_MVP_SHARE)),
        percentage_of_team_score=share,
        points_per_game=ppg,
    )


def find_form_player(
    snapshots: list[GameweekSnapshot], bootstrap: BootstrapData
) -> FormPlayer | None:
    """Highest multiplied points over the most recent fetched gameweeks."""
    recent = sorted(snapshots, key=lambda s: s.gameweek)[-FORM_WINDOW:]
    tallies = _tally_played(recent)
    if not tallies:
        return None

    player_id, (appearances, points) = max(
        tallies.items(), key=lambda item: (item[1][1], item[1][0])
    )
    return FormPlayer(
        name=bootstrap.player_name(player_id),
        recent_points=points,
        appearances=appearances,
        points_per_game=_round1(points / appearances),
    )


def fallback_form_player() -> FormPlayer:
    return FormPlayer(name="N/A", recent_points=0, appearances=0, points_per_game=0.0)


def find_top_scorer_never_owned(
    bootstrap: BootstrapData, snapshots: list[GameweekSnapshot]
) -> OneGotAway | None:
    """Highest season scorer absent from every fetched squad.

    Ownership is only known for fetched gameweeks, so with no snapshots there
    is no answer. Ties on season points go to the first player in bootstrap order.
    """
    if not snapshots:
        return None

    owned = {pick.element for s in snapshots for pick in s.picks}
    top: dict | None = None
    for player in bootstrap.players:
        if player.get("element_type") not in PLAYER_ELEMENT_TYPES:
            continue
        if player.get("id") in owned:
            continue
        if top is None or (player.get("total_points") or 0) > (top.get("total_points") or 0):
            top = player

    if top is None:
        return None

    ordered = sorted(snapshots, key=lambda s: s.gameweek)
    best_gw, best_points = ordered[0].gameweek, 0
    for snapshot in ordered:
        points = snapshot.points_for(top["id"])
        if points is not None and points > best_points:
            best_gw, best_points = snapshot.gameweek, points

    return OneGotAway(
        player_name=top.get("web_name") or "Unknown",
        gameweek=best_gw,
        points_missed=best_points,
        season_total=top.get("total_points") or 0,
    )


def fallback_top_scorer() -> OneGotAway:
    name, season_total, gameweek, points = FALLBACK_TOP_SCORERS[0]
    return OneGotAway(
        player_name=name, gameweek=gameweek, points_missed=points, season_total=season_total
    )


def top_contributors(
    gameweek: int, snapshots: list[GameweekSnapshot], bootstrap: BootstrapData
) -> list[TopContributor]:
    """Top three multiplied scorers of a gameweek, empty if it was not fetched."""
    snapshot = next((s for s in snapshots if s.gameweek == gameweek), None)
    if snapshot is None:
        return []

    contributors = []
    for pick in snapshot.picks:
        points = snapshot.points_for(pick.element)
        if points is None:
            continue
        contributors.append(
            TopContributor(
                name=bootstrap.player_name(pick.element),
                points=points * pick.multiplier,
                is_captain=pick.is_captain,
            )
        )
    # sorted() is stable, so equal scores keep squad order
    return sorted(contributors, key=lambda c: c.points, reverse=True)[:TOP_CONTRIBUTOR_COUNT]


# =============================================================================
# Transfers
# =============================================================================


def count_hits(history: list[HistoryEntry]) -> int:
    """Number of point hits taken (each costs HIT_COST points)."""
    return max(0, sum(h.event_transfers_cost for h in history) // HIT_COST)


def points_after_gameweek(
    player_id: int, gameweek: int, snapshots: list[GameweekSnapshot]
) -> int:
    """A player's raw points in fetched gameweeks strictly after the given one."""
    total = 0
    for snapshot in snapshots:
        if snapshot.gameweek <= gameweek:
            continue
        points = snapshot.points_for(player_id)
        if points is not None:
            total += points
    return total


def analyze_transfers(
    transfers: list[TransferRecord],
    history: list[HistoryEntry],
    snapshots: list[GameweekSnapshot],
    bootstrap: BootstrapData,
) -> TransferActivity:
    """Transfer counts plus best signing and costliest sale within the fetched window."""
    best_in: TransferIn | None = None
    worst_out: TransferOut | None = None

    for transfer in transfers:
        gained = points_after_gameweek(transfer.element_in, transfer.event, snapshots)
        if best_in is None or gained > best_in.points_gained:
            best_in = TransferIn(
                name=bootstrap.player_name(transfer.element_in),
                points_gained=gained,
                gameweek=transfer.event,
            )

        lost = points_after_gameweek(transfer.element_out, transfer.event, snapshots)
        if worst_out is None or lost > worst_out.points_lost:
            worst_out = TransferOut(
                name=bootstrap.player_name(transfer.element_out),
                points_lost=lost,
                gameweek=transfer.event,
            )

    return TransferActivity(
        total_transfers=len(transfers),
        total_hits=count_hits(history),
        best_transfer_in=best_in,
        worst_transfer_out=worst_out,
    )


def fallback_transfer_activity(history: list[HistoryEntry]) -> TransferActivity:
    """Counts from history when the transfers endpoint is unavailable."""
    name, points, gameweek = FALLBACK_BEST_TRANSFER_IN
    return TransferActivity(
        total_transfers=max(0, sum(h.event_transfers for h in history)),
        total_hits=count_hits(history),
        best_transfer_in=TransferIn(name=name, points_gained=points, gameweek=gameweek),
        worst_transfer_out=None,
    )


# =============================================================================
# Chips
# =============================================================================


def chip_display_name(name: str) -> str:
    return CHIP_DISPLAY_NAMES.get(name, name.upper())


def process_chips(chips: list[ChipUsage]) -> list[ChipPlay]:
    return [
        ChipPlay(
            name=chip_display_name(chip.name),
            gameweek=max(1, min(SEASON_GAMEWEEKS, chip.event)),
        )
        for chip in chips
    ]


def find_best_chip(
    chips: list[ChipUsage],
    history: list[HistoryEntry],
    snapshots: list[GameweekSnapshot],
) -> BestChip | None:
    """Chip with the largest measurable impact.

    Triple captain: the captain's raw points that gameweek (the extra multiplier).
    Bench boost: bench points that gameweek. Other chips have no direct measure.
    """
    history_by_gw = {h.gameweek: h for h in history}
    snapshot_by_gw = {s.gameweek: s for s in snapshots}
    best: BestChip | None = None

    for chip in chips:
        impact = 0
        if chip.name == "3xc":
            snapshot = snapshot_by_gw.get(chip.event)
            captain = snapshot.captain if snapshot else None
            if snapshot is not None and captain is not None:
                impact = snapshot.points_for(captain.element) or 0
        elif chip.name == "bboost":
            entry = history_by_gw.get(chip.event)
            impact = entry.points_on_bench if entry else 0

        if impact > 0 and (best is None or impact > best.points):
            best = BestChip(
                name=chip_display_name(chip.name), gameweek=chip.event, points=impact
            )

    return best


# =============================================================================
# Badges, titles, comparisons
# =============================================================================


@dataclass(frozen=True, slots=True)
class BadgeInputs:
    total_points: int
    overall_rank: int | None
    best_gw_points: int
    green_arrows: int
    captain_success_rate: int
    average_points_per_gw: float
    chips_used: int


# Evaluated in order; every rule that matches adds its badge
BADGE_RULES: tuple[tuple[str, Callable[[BadgeInputs], bool]], ...] = (
    ("POINTS MACHINE", lambda s: s.total_points >= 2500),
    ("CENTURY CLUB", lambda s: s.total_points >= 2200),
    ("TOP 100K", lambda s: s.overall_rank is not None and s.overall_rank <= 100_000),
    ("TRIPLE DIGITS", lambda s: s.best_gw_points >= 100),
    ("GREEN MACHINE", lambda s: s.green_arrows >= 20),
    ("CAPTAIN MARVEL", lambda s: s.captain_success_rate >= 75),
    ("ABOVE AVERAGE", lambda s: s.average_points_per_gw >= 55),
    ("CHIP MASTER", lambda s: s.chips_used >= 4),
)


def calculate_badges(inputs: BadgeInputs) -> list[str]:
    return [name for name, rule in BADGE_RULES if rule(inputs)]


def determine_manager_title(
    total_points: int, overall_rank: int | None, best_gw_points: int
) -> str:
    rank = overall_rank if overall_rank is not None else 999_999
    if rank <= 1_000:
        return "🏆 THE LEGEND"
    if rank <= 10_000:
        return "⭐ THE ELITE"
    if rank <= 100_000:
        return "🥇 THE ACHIEVER"
    if total_points >= 2200:
        return "💪 THE SOLID"
    if best_gw_points >= 100:
        return "🔥 THE EXPLOSIVE"
    return "⚽ THE MANAGER"


def personalized_intro(first_name: str, total_points: int) -> str:
    if total_points >= 2200:
        verdict = "exceptional"
    elif total_points >= 2000:
        verdict = "solid"
    else:
        verdict = "a learning experience"
    return f"Welcome back, {first_name or 'Manager'}! Your season was {verdict}..."


def most_captained_globally(bootstrap: BootstrapData) -> str:
    """Player most often the most-captained pick across gameweeks."""
    counts = Counter(
        e["most_captained"] for e in bootstrap.events if e.get("most_captained")
    )
    if not counts:
        return "Unknown"
    player_id, _ = counts.most_common(1)[0]
    return bootstrap.player_name(player_id)


def build_comparisons(
    one_got_away: OneGotAway,
    bench: BenchAnalysis,
    transfers: TransferActivity,
    captain: CaptainPerformance,
    mvp: MvpPlayer,
    bootstrap: BootstrapData,
) -> Comparisons:
    return Comparisons(
        top_scorer_never_owned=NamedPoints(
            name=one_got_away.player_name, points=one_got_away.season_total
        ),
        bench_points_vs_average=UserVsAverage(
            user=bench.total_bench_points, game_average=GAME_AVERAGE_BENCH_POINTS
        ),
        transfer_hits_vs_average=UserVsAverage(
            user=transfers.total_hits * HIT_COST, game_average=GAME_AVERAGE_HIT_POINTS
        ),
        captain_avg_vs_top10k=UserVsTop10k(
            user=captain.average_points, top10k=TOP_10K_CAPTAIN_AVERAGE
        ),
        most_trusted_vs_global=UserVsGlobal(
            user=mvp.name, global_=most_captained_globally(bootstrap)
        ),
    )
