"""Tests for SummaryBuilder: section derivation, fallbacks and serialization."""

import pytest

from fpl_wrapped.services import calculations
from fpl_wrapped.services.aggregator import SeasonBundle
from fpl_wrapped.services.fpl_client import (
    BootstrapData,
    ChipUsage,
    ManagerEntry,
    TransferRecord,
)
from fpl_wrapped.services.summary import SummaryBuilder
from fpl_wrapped.services.validation import validate
from tests.conftest import MANAGER_ID, history_entry, snapshot

# 18 gameweeks of 60 and a 90 in GW18
SEASON_POINTS = 60 * 18 + 90


def make_bundle(
    bootstrap: BootstrapData,
    snapshots: list | None = None,
    transfers: list[TransferRecord] | None = None,
    transfers_failed: bool = False,
) -> SeasonBundle:
    history = [
        history_entry(
            gw,
            points=90 if gw == 18 else 60,
            rank=500_000 - gw * 10_000,
            cost=4 if gw == 5 else 0,
        )
        for gw in range(1, 20)
    ]
    if snapshots is None:
        snapshots = [snapshot(gw, {10: 8, 6: 7}) for gw in (17, 18, 19)]
    if transfers is None and not transfers_failed:
        transfers = [
            TransferRecord(
                event=17, element_in=7, element_out=16, element_in_cost=0, element_out_cost=0
            )
        ]
    return SeasonBundle(
        manager_id=MANAGER_ID,
        bootstrap=bootstrap,
        entry=ManagerEntry(
            manager_id=MANAGER_ID,
            first_name="Alex",
            last_name="Morgan",
            team_name="Wrapped XI",
            overall_points=SEASON_POINTS,
            overall_rank=310_000,
        ),
        history=history,
        chips=[ChipUsage(name="bboost", event=5)],
        transfers=transfers,
        snapshots=snapshots,
        current_gameweek=20,
        last_finished_gameweek=19,
    )


@pytest.fixture
def builder() -> SummaryBuilder:
    return SummaryBuilder()


class TestSummaryBuilderComplete:
    """A bundle with every endpoint available."""

    def test_headline_fields(self, builder, bootstrap):
        summary = builder.build(make_bundle(bootstrap))

        assert summary.manager_name == "Alex Morgan"
        assert summary.team_name == "Wrapped XI"
        assert summary.total_points == 1170
        assert summary.gameweeks_played == 19
        assert summary.average_points_per_gw == 61.6
        assert summary.overall_rank == 310_000
        assert summary.best_rank == 310_000
        assert summary.personalized_intro.startswith("Welcome back, Alex!")

    def test_nothing_estimated(self, builder, bootstrap):
        summary = builder.build(make_bundle(bootstrap))

        assert summary.estimated_fields == []

    def test_best_gameweek_with_contributors(self, builder, bootstrap):
        summary = builder.build(make_bundle(bootstrap))

        assert (summary.best_gw.gameweek, summary.best_gw.points) == (18, 90)
        top = summary.best_gw.top_contributors[0]
        assert (top.name, top.points, top.is_captain) == ("Haaland", 16, True)
        assert summary.worst_gw.points == 60

    def test_rank_movement(self, builder, bootstrap):
        summary = builder.build(make_bundle(bootstrap))

        assert summary.green_arrows == 18
        assert summary.red_arrows == 0
        assert summary.biggest_rank_jump.places == 10_000
        assert summary.biggest_rank_drop is None

    def test_sections(self, builder, bootstrap):
        summary = builder.build(make_bundle(bootstrap))

        assert summary.captain_performance.total_points == 48
        assert summary.captain_performance.average_points == 16.0
        assert summary.transfer_activity.total_transfers == 1
        assert summary.transfer_activity.total_hits == 1
        assert summary.bench_analysis.total_bench_points == 76
        assert summary.bench_analysis.bench_boost_impact == 4
        assert summary.mvp_player.name == "Haaland"
        assert summary.one_got_away.player_name == "Isak"
        assert [c.name for c in summary.chips_used] == ["BENCH BOOST"]
        assert summary.best_chip.name == "BENCH BOOST"
        assert summary.manager_title == "⚽ THE MANAGER"
        assert summary.badges == ["CAPTAIN MARVEL", "ABOVE AVERAGE"]

    def test_passes_validation(self, builder, bootstrap):
        report = validate(builder.build(make_bundle(bootstrap)))

        assert report.is_valid
        assert report.warnings == []
        assert report.score == 100

    def test_identical_input_gives_identical_output(self, builder, bootstrap):
        first = builder.build(make_bundle(bootstrap)).to_response()
        second = builder.build(make_bundle(bootstrap)).to_response()

        assert first == second


class TestSummaryBuilderFallbacks:
    """Missing inputs or failing derivations degrade one section at a time."""

    def test_transfers_unavailable(self, builder, bootstrap):
        summary = builder.build(make_bundle(bootstrap, transfers_failed=True))

        assert summary.estimated_fields == ["transferActivity"]
        activity = summary.transfer_activity
        assert activity.total_transfers == 19
        assert activity.total_hits == 1
        assert activity.best_transfer_in.name == "Cole Palmer"
        assert activity.worst_transfer_out is None

    def test_no_gameweek_data(self, builder, bootstrap):
        summary = builder.build(make_bundle(bootstrap, snapshots=[]))

        assert summary.estimated_fields == [
            "bestGw.topContributors",
            "captainPerformance",
            "mvpPlayer",
            "formPlayer",
            "oneGotAway",
        ]
        assert summary.captain_performance.average_points == 15.6
        assert summary.mvp_player.name == "Mohamed Salah"
        assert summary.one_got_away.player_name == "Alexander Isak"
        # Bench totals never need gameweek picks
        assert summary.bench_analysis.total_bench_points == 76

    def test_fallback_output_is_deterministic(self, builder, bootstrap):
        first = builder.build(make_bundle(bootstrap, snapshots=[])).to_response()
        second = builder.build(make_bundle(bootstrap, snapshots=[])).to_response()

        assert first == second

    def test_failing_derivation_uses_fallback(self, builder, bootstrap, monkeypatch):
        def broken(*args, **kwargs):
            raise ZeroDivisionError("boom")

        monkeypatch.setattr(calculations, "analyze_bench", broken)

        summary = builder.build(make_bundle(bootstrap))

        assert summary.estimated_fields == ["benchAnalysis"]
        assert summary.bench_analysis.total_bench_points == 76
        assert summary.bench_analysis.worst_bench_call.player_name == "Unknown"

    def test_failing_best_chip_is_dropped(self, builder, bootstrap, monkeypatch):
        def broken(*args, **kwargs):
            raise KeyError("3xc")

        monkeypatch.setattr(calculations, "find_best_chip", broken)

        summary = builder.build(make_bundle(bootstrap))

        assert summary.best_chip is None
        assert summary.estimated_fields == ["bestChip"]
        assert [c.name for c in summary.chips_used] == ["BENCH BOOST"]

    def test_estimated_sections_lower_quality_score(self, builder, bootstrap):
        complete = validate(builder.build(make_bundle(bootstrap)))
        degraded = validate(builder.build(make_bundle(bootstrap, snapshots=[])))

        assert degraded.is_valid
        assert degraded.score < complete.score
        assert any("captainPerformance" in w for w in degraded.warnings)


class TestSummarySerialization:
    """Wire format of the summary."""

    def test_camel_case_keys(self, builder, bootstrap):
        data = builder.build(make_bundle(bootstrap)).to_response()

        assert data["managerId"] == MANAGER_ID
        assert data["averagePointsPerGW"] == 61.6
        assert data["bestGw"]["topContributors"][0]["isCaptain"] is True
        assert data["captainPerformance"]["gameweeksAnalyzed"] == 3
        assert data["benchAnalysis"]["worstBenchCall"]["playerName"] == "Unknown"
        assert data["benchAnalysis"]["averagePerGW"] == 4.0
        assert "last6GWPoints" in data["formPlayer"]
        assert data["comparisons"]["captainAvgVsTop10k"]["top10k"] == 15.4
        assert data["comparisons"]["mostTrustedVsGlobal"]["global"] == "Haaland"
        assert data["estimatedFields"] == []
