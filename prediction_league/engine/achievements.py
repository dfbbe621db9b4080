"""
Trophy detection.

For one tournament, every participant is walked through the tournament's
matchdays in ascending order. Shared per-matchday facts (journey ranking,
leader and last place) are computed once; each participant then gets an
AchievementState of its own that carries the running streak counters and the
set of trophies already held.

A trophy the user already holds, from this tournament or any other, is never
evaluated again. The output only ever contains new unlocks.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from . import ranking
from .aggregation import Aggregation, cumulative, journey_lines
from .types import (
    AchievementType,
    AchievementUnlock,
    MatchEvidence,
    MatchResult,
    RankEntry,
    TournamentConfig,
    UserId,
)
from .window import MatchWindow

logger = logging.getLogger(__name__)

# "legend" needs more than 10 participants
LEGEND_MIN_PARTICIPANTS = 11
MIN_JOURNEYS_FOR_TOURNAMENT_TROPHIES = 2


@dataclass(frozen=True)
class JourneySummary:
    """Ranking facts of one complete matchday, shared by all participants."""

    matchday: int
    ranking: Tuple[RankEntry, ...]
    points: Dict[UserId, int]
    latest_date: datetime
    last_match: Optional[MatchResult]
    max_points: int = 0
    min_points: int = 0
    users_at_max: int = 0
    users_at_min: int = 0

    @classmethod
    def build(
        cls,
        matchday: int,
        journey_ranking: List[RankEntry],
        latest_date: datetime,
        last_match: Optional[MatchResult],
    ) -> "JourneySummary":
        points = {entry.user_id: entry.total_points for entry in journey_ranking}
        values = list(points.values())
        top, bottom = (max(values), min(values)) if values else (0, 0)
        return cls(
            matchday=matchday,
            ranking=tuple(journey_ranking),
            points=points,
            latest_date=latest_date,
            last_match=last_match,
            max_points=top,
            min_points=bottom,
            users_at_max=values.count(top),
            users_at_min=values.count(bottom),
        )

    def is_sole_leader(self, user_id: UserId) -> bool:
        if self.points.get(user_id) != self.max_points:
            return False
        # A scoreless journey only crowns someone who is alone at zero
        return self.max_points > 0 or self.users_at_max == 1

    def is_sole_last(self, user_id: UserId) -> bool:
        if len(self.points) < 2 or self.points.get(user_id) != self.min_points:
            return False
        return self.users_at_min == 1


@dataclass
class AchievementState:
    """Running trophy state of one user within one tournament evaluation."""

    user_id: UserId
    tournament_id: object
    held: Set[AchievementType] = field(default_factory=set)
    consecutive_top_finishes: int = 0
    consecutive_bottom_finishes: int = 0
    total_top_finishes: int = 0
    total_completed_journeys: int = 0
    unlocks: List[AchievementUnlock] = field(default_factory=list)

    def pending(self, achievement: AchievementType) -> bool:
        return achievement not in self.held

    def unlock(self, achievement: AchievementType, when: datetime, evidence: Optional[MatchEvidence]) -> None:
        if achievement in self.held:
            return
        self.held.add(achievement)
        self.unlocks.append(
            AchievementUnlock(
                user_id=self.user_id,
                tournament_id=self.tournament_id,
                achievement_type=achievement,
                first_qualifying_date=when,
                triggering_match=evidence,
            )
        )

    def reset_streaks(self) -> None:
        self.consecutive_top_finishes = 0
        self.consecutive_bottom_finishes = 0


class TournamentContext:
    """Data shared by every participant's evaluation. Read-only once built."""

    def __init__(self, config: TournamentConfig, window: MatchWindow, aggregation: Aggregation):
        self.config = config
        self.window = window
        self.aggregation = aggregation
        self.participants = aggregation.participants
        self.matches_by_id = {m.match_id: m for m in window.matches}
        self.summaries: Dict[int, JourneySummary] = {}

        for matchday in window.complete_matchdays:
            self.summaries[matchday] = self._summarize(matchday)

        totals = {line.user_id: line.total_points for line in cumulative(aggregation.tallies)}
        self.final_totals = totals
        values = list(totals.values())
        self.final_top = max(values) if values else None
        self.final_bottom = min(values) if values else None
        self.users_at_final_top = values.count(self.final_top)
        self.users_at_final_bottom = values.count(self.final_bottom)

    def _summarize(self, matchday: int) -> JourneySummary:
        journey_ranking = ranking.rank(journey_lines(self.aggregation.tallies, matchday))
        last_match = self.window.last_match_of(matchday)
        return JourneySummary.build(matchday, journey_ranking, last_match.kickoff_time, last_match)

    def is_bonus(self, match: MatchResult) -> bool:
        return match.is_bonus or match.match_id in self.config.bonus_match_ids

    def evidence(self, user_id: UserId, match: MatchResult) -> MatchEvidence:
        home, away = self.aggregation.guess(user_id, match.match_id)
        return MatchEvidence.build(match, home, away)

    def journey_evidence(self, user_id: UserId, matchday: int) -> Optional[MatchEvidence]:
        summary = self.summaries.get(matchday)
        if summary is None or summary.last_match is None:
            return None
        return self.evidence(user_id, summary.last_match)

    def is_sole_winner(self, user_id: UserId) -> bool:
        if not self.final_totals:
            return False
        return self.final_totals.get(user_id) == self.final_top and self.users_at_final_top == 1

    def is_sole_bottom(self, user_id: UserId) -> bool:
        if len(self.final_totals) < 2:
            return False
        return self.final_totals.get(user_id) == self.final_bottom and self.users_at_final_bottom == 1


def _check_first_hits(state: AchievementState, ctx: TournamentContext) -> None:
    """First correct result and first exact score, in match order."""
    for scored in ctx.aggregation.scored.get(state.user_id, ()):
        if not (state.pending(AchievementType.EXACT_SCORE) or state.pending(AchievementType.CORRECT_RESULT)):
            return
        if scored.is_default:
            continue
        match = ctx.matches_by_id[scored.match_id]
        if scored.is_exact_score and state.pending(AchievementType.EXACT_SCORE):
            state.unlock(AchievementType.EXACT_SCORE, match.kickoff_time, ctx.evidence(state.user_id, match))
        if scored.is_correct_outcome and state.pending(AchievementType.CORRECT_RESULT):
            state.unlock(AchievementType.CORRECT_RESULT, match.kickoff_time, ctx.evidence(state.user_id, match))


def _check_standing(state: AchievementState, ctx: TournamentContext, summary: JourneySummary) -> None:
    user_id, matchday, when = state.user_id, summary.matchday, summary.latest_date

    if summary.is_sole_leader(user_id):
        state.consecutive_top_finishes += 1
        state.total_top_finishes += 1
        if state.pending(AchievementType.KING_OF_DAY):
            state.unlock(AchievementType.KING_OF_DAY, when, ctx.journey_evidence(user_id, matchday))
        if state.pending(AchievementType.DOUBLE_KING) and state.consecutive_top_finishes >= 2:
            state.unlock(AchievementType.DOUBLE_KING, when, ctx.journey_evidence(user_id, matchday))
    else:
        state.consecutive_top_finishes = 0

    if summary.is_sole_last(user_id):
        state.consecutive_bottom_finishes += 1
        if state.pending(AchievementType.LANTERN):
            state.unlock(AchievementType.LANTERN, when, ctx.journey_evidence(user_id, matchday))
        if state.pending(AchievementType.DOWNWARD_SPIRAL) and state.consecutive_bottom_finishes >= 2:
            state.unlock(AchievementType.DOWNWARD_SPIRAL, when, ctx.journey_evidence(user_id, matchday))
    else:
        state.consecutive_bottom_finishes = 0


def _check_journey_predictions(state: AchievementState, ctx: TournamentContext, summary: JourneySummary) -> None:
    user_id = state.user_id
    played = [s for s in ctx.aggregation.scored_on(user_id, summary.matchday) if not s.is_default]

    last_correct = last_exact = None
    correct_count = exact_count = 0
    for scored in played:
        match = ctx.matches_by_id[scored.match_id]
        if scored.is_correct_outcome:
            correct_count += 1
            last_correct = match
        if scored.is_exact_score:
            exact_count += 1
            last_exact = match

        if ctx.is_bonus(match):
            if scored.is_correct_outcome and state.pending(AchievementType.BONUS_PROFITEER):
                state.unlock(AchievementType.BONUS_PROFITEER, match.kickoff_time, ctx.evidence(user_id, match))
            if scored.is_exact_score and state.pending(AchievementType.BONUS_OPTIMIZER):
                state.unlock(AchievementType.BONUS_OPTIMIZER, match.kickoff_time, ctx.evidence(user_id, match))

    if state.pending(AchievementType.OPPORTUNIST) and correct_count >= 2:
        state.unlock(AchievementType.OPPORTUNIST, summary.latest_date, ctx.evidence(user_id, last_correct))
    if state.pending(AchievementType.NOSTRADAMUS) and exact_count >= 2:
        state.unlock(AchievementType.NOSTRADAMUS, summary.latest_date, ctx.evidence(user_id, last_exact))
    if state.pending(AchievementType.CURSED) and played and correct_count == 0:
        state.unlock(AchievementType.CURSED, summary.latest_date, ctx.journey_evidence(user_id, summary.matchday))


def _check_tournament_end(state: AchievementState, ctx: TournamentContext) -> None:
    journeys = len(ctx.window.matchdays)
    if not ctx.config.is_finished or journeys == 0 or state.total_completed_journeys != journeys:
        return

    user_id = state.user_id
    final_matchday = ctx.window.matchdays[-1]
    when = ctx.summaries[final_matchday].latest_date
    evidence = ctx.journey_evidence(user_id, final_matchday)

    if journeys >= MIN_JOURNEYS_FOR_TOURNAMENT_TROPHIES:
        if state.pending(AchievementType.ULTRA_DOMINATOR) and state.total_top_finishes == journeys:
            state.unlock(AchievementType.ULTRA_DOMINATOR, when, evidence)
        if state.pending(AchievementType.POULIDOR) and state.total_top_finishes == 0:
            state.unlock(AchievementType.POULIDOR, when, evidence)

    if state.pending(AchievementType.TOURNAMENT_WINNER) and ctx.is_sole_winner(user_id):
        state.unlock(AchievementType.TOURNAMENT_WINNER, when, evidence)
    if (
        state.pending(AchievementType.LEGEND)
        and len(ctx.participants) >= LEGEND_MIN_PARTICIPANTS
        and ctx.is_sole_winner(user_id)
    ):
        state.unlock(AchievementType.LEGEND, when, evidence)
    if state.pending(AchievementType.ABYSSAL) and ctx.is_sole_bottom(user_id):
        state.unlock(AchievementType.ABYSSAL, when, evidence)


def evaluate_user(
    ctx: TournamentContext,
    user_id: UserId,
    recorded: Iterable[AchievementType] = (),
) -> List[AchievementUnlock]:
    """Walk one participant through the tournament and return new unlocks."""
    state = AchievementState(
        user_id=user_id,
        tournament_id=ctx.config.tournament_id,
        held={AchievementType(t) for t in recorded},
    )
    _check_first_hits(state, ctx)

    for matchday in ctx.window.matchdays:
        summary = ctx.summaries.get(matchday)
        if summary is None:
            state.reset_streaks()
            continue
        state.total_completed_journeys += 1
        _check_standing(state, ctx, summary)
        _check_journey_predictions(state, ctx, summary)

    _check_tournament_end(state, ctx)
    return state.unlocks


def evaluate_tournament(
    config: TournamentConfig,
    window: MatchWindow,
    aggregation: Aggregation,
    recorded: Optional[Mapping[UserId, Iterable]] = None,
) -> Dict[UserId, List[AchievementUnlock]]:
    """
    Find the trophies each participant newly qualifies for.

    Args:
        config: Tournament configuration
        window: Resolved match window of the whole tournament
        aggregation: Tallies of that window
        recorded: Trophy types each user already holds, in any tournament

    Returns:
        Dict of user id to new unlocks (empty list when nothing is new)
    """
    recorded = recorded or {}
    results: Dict[UserId, List[AchievementUnlock]] = {user_id: [] for user_id in aggregation.participants}
    if window.is_empty or not aggregation.participants:
        return results

    ctx = TournamentContext(config, window, aggregation)
    for user_id in aggregation.participants:
        results[user_id] = evaluate_user(ctx, user_id, recorded.get(user_id, ()))

    logger.info(
        "Tournament %s: %d new trophies across %d participants",
        config.tournament_id, sum(len(u) for u in results.values()), len(results),
    )
    return results
