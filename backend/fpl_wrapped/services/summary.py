"""Summary builder - turns a collected SeasonBundle into a SeasonSummary.

Each section is derived independently. When a section's inputs are missing or
its derivation raises, the section is filled from its fallback and its name is
recorded in estimated_fields, so one bad endpoint degrades one field rather
than the whole summary.
"""

import logging
from collections.abc import Callable
from typing import TypeVar

from fpl_wrapped.schemas.summary import BestGameweek, SeasonSummary
from fpl_wrapped.services import calculations as calc
from fpl_wrapped.services.aggregator import SeasonBundle

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SummaryBuilder:
    """Derives every summary section from one bundle."""

    def build(self, bundle: SeasonBundle) -> SeasonSummary:
        estimated: list[str] = []

        def derive(
            section: str, compute: Callable[[], T | None], fallback: Callable[[], T]
        ) -> T:
            try:
                result = compute()
            except Exception:
                logger.warning(
                    f"Derivation of {section} failed for manager {bundle.manager_id}",
                    exc_info=True,
                )
                result = None

            if result is None:
                logger.warning(
                    f"Using fallback for {section} (manager {bundle.manager_id})"
                )
                estimated.append(section)
                return fallback()
            return result

        history = bundle.history
        snapshots = bundle.snapshots
        bootstrap = bundle.bootstrap
        entry = bundle.entry

        total_points = calc.season_total_points(entry.overall_points, history)
        gameweeks_played = len(history)
        overall_rank = entry.overall_rank
        if not overall_rank or overall_rank <= 0:
            overall_rank = history[-1].overall_rank if history else None
        average = calc.average_points(total_points, gameweeks_played)

        best_gw, worst_gw = calc.gameweek_extremes(history)
        contributors = derive(
            "bestGw.topContributors",
            lambda: calc.top_contributors(best_gw.gameweek, snapshots, bootstrap) or None,
            list,
        )
        movements = calc.calculate_rank_movements(history)

        captain = derive(
            "captainPerformance",
            lambda: calc.analyze_captains(calc.extract_captain_choices(snapshots, bootstrap)),
            lambda: calc.fallback_captain_performance(gameweeks_played),
        )
        transfers = derive(
            "transferActivity",
            lambda: (
                calc.analyze_transfers(bundle.transfers, history, snapshots, bootstrap)
                if bundle.transfers is not None
                else None
            ),
            lambda: calc.fallback_transfer_activity(history),
        )
        bench = derive(
            "benchAnalysis",
            lambda: calc.analyze_bench(history, snapshots, bundle.chips, bootstrap),
            lambda: calc.fallback_bench_analysis(history),
        )
        mvp = derive(
            "mvpPlayer",
            lambda: calc.find_mvp(snapshots, bootstrap, total_points),
            lambda: calc.fallback_mvp(total_points),
        )
        form = derive(
            "formPlayer",
            lambda: calc.find_form_player(snapshots, bootstrap),
            calc.fallback_form_player,
        )
        one_got_away = derive(
            "oneGotAway",
            lambda: calc.find_top_scorer_never_owned(bootstrap, snapshots),
            calc.fallback_top_scorer,
        )
        chips_used = calc.process_chips(bundle.chips)
        try:
            best_chip = calc.find_best_chip(bundle.chips, history, snapshots)
        except Exception:
            logger.warning(
                f"Derivation of bestChip failed for manager {bundle.manager_id}",
                exc_info=True,
            )
            estimated.append("bestChip")
            best_chip = None

        badges = calc.calculate_badges(
            calc.BadgeInputs(
                total_points=total_points,
                overall_rank=overall_rank,
                best_gw_points=best_gw.points,
                green_arrows=movements.green_arrows,
                captain_success_rate=100 - captain.fail_rate,
                average_points_per_gw=average,
                chips_used=len(chips_used),
            )
        )

        summary = SeasonSummary(
            manager_id=bundle.manager_id,
            manager_name=entry.display_name or entry.team_name,
            team_name=entry.team_name,
            total_points=total_points,
            overall_rank=overall_rank,
            best_rank=calc.best_overall_rank(history),
            average_points_per_gw=average,
            gameweeks_played=gameweeks_played,
            personalized_intro=calc.personalized_intro(entry.first_name, total_points),
            best_gw=BestGameweek(
                gameweek=best_gw.gameweek,
                points=best_gw.points,
                top_contributors=contributors,
            ),
            worst_gw=worst_gw,
            biggest_rank_jump=movements.biggest_jump,
            biggest_rank_drop=movements.biggest_drop,
            green_arrows=movements.green_arrows,
            red_arrows=movements.red_arrows,
            captain_performance=captain,
            transfer_activity=transfers,
            bench_analysis=bench,
            mvp_player=mvp,
            form_player=form,
            one_got_away=one_got_away,
            comparisons=calc.build_comparisons(
                one_got_away, bench, transfers, captain, mvp, bootstrap
            ),
            chips_used=chips_used,
            best_chip=best_chip,
            manager_title=calc.determine_manager_title(
                total_points, overall_rank, best_gw.points
            ),
            badges=badges,
            estimated_fields=estimated,
        )

        logger.info(
            f"Built summary for manager {bundle.manager_id}: {total_points} pts, "
            f"{len(snapshots)} gameweeks analyzed, estimated={estimated}"
        )
        return summary
