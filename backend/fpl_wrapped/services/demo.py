"""Static demo summary served for the "demo" manager id.

Lets the frontend be exercised without touching the FPL API.
"""

from fpl_wrapped.schemas.summary import (
    BenchAnalysis,
    BenchCall,
    BestChip,
    BestGameweek,
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
    SeasonSummary,
    TopContributor,
    TransferActivity,
    TransferIn,
    TransferOut,
    UserVsAverage,
    UserVsGlobal,
    UserVsTop10k,
)

DEMO_CACHE_CONTROL = "public, max-age=3600"

DEMO_SUMMARY = SeasonSummary(
    manager_id=None,
    manager_name="Demo Manager",
    team_name="Demo Team FC",
    total_points=2156,
    overall_rank=234567,
    best_rank=180000,
    average_points_per_gw=56.7,
    gameweeks_played=38,
    personalized_intro="Welcome back, Demo Manager! Your 2024/25 season was quite the journey...",
    best_gw=BestGameweek(
        gameweek=15,
        points=89,
        top_contributors=[
            TopContributor(name="Erling Haaland", points=26, is_captain=True),
            TopContributor(name="Mohamed Salah", points=18, is_captain=False),
            TopContributor(name="Bukayo Saka", points=15, is_captain=False),
        ],
    ),
    worst_gw=GameweekResult(gameweek=8, points=31),
    biggest_rank_jump=RankChange(gameweek=15, places=45000),
    biggest_rank_drop=RankChange(gameweek=8, places=25000),
    green_arrows=18,
    red_arrows=12,
    captain_performance=CaptainPerformance(
        total_points=539,
        average_points=14.2,
        fail_rate=23,
        gameweeks_analyzed=38,
        best_captain=CaptainPick(name="Erling Haaland", points=26, gameweek=15),
        worst_captain=CaptainPick(name="Bruno Fernandes", points=2, gameweek=8),
    ),
    transfer_activity=TransferActivity(
        total_transfers=42,
        total_hits=4,
        best_transfer_in=TransferIn(name="Cole Palmer", points_gained=67, gameweek=12),
        worst_transfer_out=TransferOut(name="Darwin Nunez", points_lost=45, gameweek=6),
    ),
    bench_analysis=BenchAnalysis(
        total_bench_points=187,
        average_per_gw=4.9,
        worst_bench_call=BenchCall(player_name="Ollie Watkins", gameweek=22, points=18),
        bench_boost_impact=34,
    ),
    mvp_player=MvpPlayer(
        name="Mohamed Salah",
        appearances=35,
        total_points=324,
        percentage_of_team_score=15.0,
        points_per_game=9.3,
    ),
    form_player=FormPlayer(
        name="Cole Palmer", recent_points=78, appearances=6, points_per_game=13.0
    ),
    one_got_away=OneGotAway(
        player_name="Alexander Isak", gameweek=9, points_missed=24, season_total=198
    ),
    comparisons=Comparisons(
        top_scorer_never_owned=NamedPoints(name="Alexander Isak", points=198),
        bench_points_vs_average=UserVsAverage(user=187, game_average=215),
        transfer_hits_vs_average=UserVsAverage(user=16, game_average=48),
        captain_avg_vs_top10k=UserVsTop10k(user=14.2, top10k=15.4),
        most_trusted_vs_global=UserVsGlobal(user="Mohamed Salah", global_="Erling Haaland"),
    ),
    chips_used=[
        ChipPlay(name="WILDCARD", gameweek=9),
        ChipPlay(name="BENCH BOOST", gameweek=26),
        ChipPlay(name="FREE HIT", gameweek=33),
        ChipPlay(name="TRIPLE CAPTAIN", gameweek=18),
    ],
    best_chip=BestChip(name="BENCH BOOST", gameweek=26, points=78),
    manager_title="💪 THE SOLID",
    badges=["CENTURY CLUB", "ABOVE AVERAGE", "GREEN MACHINE", "CHIP MASTER"],
)


def demo_summary() -> SeasonSummary:
    """Fresh copy of the demo summary, safe for callers to modify."""
    return DEMO_SUMMARY.model_copy(deep=True)
