"""Season summary response schemas.

The summary is the only externally visible contract of the service. Fields are
snake_case in Python and camelCase on the wire; names the generator would
spell differently from the frontend contract carry explicit aliases. Plausibility ranges are not
enforced here; the validation service reports them so that sanitization can
repair a summary instead of the model rejecting it.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SummaryModel(BaseModel):
    """Base for all summary models: camelCase aliases, populate by name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TopContributor(SummaryModel):
    name: str
    points: int
    is_captain: bool


class BestGameweek(SummaryModel):
    gameweek: int
    points: int
    top_contributors: list[TopContributor] = Field(default_factory=list)


class GameweekResult(SummaryModel):
    gameweek: int
    points: int


class RankChange(SummaryModel):
    """A single-gameweek overall rank movement."""

    gameweek: int
    places: int


class CaptainPick(SummaryModel):
    name: str
    points: int  # Contribution after multiplier
    gameweek: int


class CaptainPerformance(SummaryModel):
    total_points: int
    average_points: float
    fail_rate: int = Field(description="% of captaincies returning under 6 points")
    gameweeks_analyzed: int
    best_captain: CaptainPick
    worst_captain: CaptainPick


class TransferIn(SummaryModel):
    name: str
    points_gained: int
    gameweek: int


class TransferOut(SummaryModel):
    name: str
    points_lost: int
    gameweek: int


class TransferActivity(SummaryModel):
    total_transfers: int
    total_hits: int
    best_transfer_in: TransferIn | None = None
    worst_transfer_out: TransferOut | None = None


class BenchCall(SummaryModel):
    player_name: str
    gameweek: int
    points: int


class BenchAnalysis(SummaryModel):
    total_bench_points: int
    average_per_gw: float = Field(alias="averagePerGW")
    worst_bench_call: BenchCall
    bench_boost_impact: int


class MvpPlayer(SummaryModel):
    name: str
    appearances: int
    total_points: int
    percentage_of_team_score: float
    points_per_game: float


class FormPlayer(SummaryModel):
    name: str
    recent_points: int = Field(alias="last6GWPoints")
    appearances: int
    points_per_game: float


class OneGotAway(SummaryModel):
    """Top scorer the manager never owned in the analyzed gameweeks."""

    player_name: str
    gameweek: int
    points_missed: int
    season_total: int


class NamedPoints(SummaryModel):
    name: str
    points: int


class UserVsAverage(SummaryModel):
    user: float
    game_average: float


class UserVsTop10k(SummaryModel):
    user: float
    top10k: float


class UserVsGlobal(SummaryModel):
    user: str
    global_: str = Field(alias="global")


class Comparisons(SummaryModel):
    top_scorer_never_owned: NamedPoints
    bench_points_vs_average: UserVsAverage
    transfer_hits_vs_average: UserVsAverage
    captain_avg_vs_top10k: UserVsTop10k = Field(alias="captainAvgVsTop10k")
    most_trusted_vs_global: UserVsGlobal


class ChipPlay(SummaryModel):
    name: str
    gameweek: int


class BestChip(SummaryModel):
    name: str
    gameweek: int
    points: int


class SeasonSummary(SummaryModel):
    """Aggregate season summary for one manager."""

    manager_id: int | None = None
    manager_name: str
    team_name: str
    total_points: int
    overall_rank: int | None
    best_rank: int | None
    average_points_per_gw: float = Field(alias="averagePointsPerGW")
    gameweeks_played: int
    personalized_intro: str

    best_gw: BestGameweek
    worst_gw: GameweekResult

    biggest_rank_jump: RankChange | None
    biggest_rank_drop: RankChange | None
    green_arrows: int
    red_arrows: int

    captain_performance: CaptainPerformance
    transfer_activity: TransferActivity
    bench_analysis: BenchAnalysis

    mvp_player: MvpPlayer
    form_player: FormPlayer | None
    one_got_away: OneGotAway
    comparisons: Comparisons

    chips_used: list[ChipPlay] = Field(default_factory=list)
    best_chip: BestChip | None = None

    manager_title: str
    badges: list[str] = Field(default_factory=list)

    # Sections filled from documented fallbacks rather than measured data
    estimated_fields: list[str] = Field(default_factory=list)

    def to_response(self) -> dict:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")
