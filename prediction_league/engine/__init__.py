"""
Pure scoring, ranking and trophy engine.

Nothing in this package performs I/O. Callers fetch rows, normalize them into
the value types of `engine.types`, resolve a match window and call one of the
three entry points below.
"""

from typing import Dict, Iterable, List, Mapping, Optional

from . import achievements, aggregation, ranking
from .errors import EngineError, PreconditionError, TournamentNotFound
from .types import (
    AchievementType,
    AchievementUnlock,
    PredictionInput,
    RankEntry,
    ScoredPrediction,
    TournamentConfig,
    UserId,
)
from .window import EMPTY_WINDOW, CustomCompetition, FlatCompetition, MatchWindow, resolve

__all__ = [
    "EngineError",
    "PreconditionError",
    "TournamentNotFound",
    "CustomCompetition",
    "FlatCompetition",
    "MatchWindow",
    "EMPTY_WINDOW",
    "resolve",
    "compute_scored_predictions",
    "compute_ranking",
    "compute_new_achievements",
]


def compute_scored_predictions(
    config: TournamentConfig,
    window: MatchWindow,
    participants: Iterable[UserId],
    predictions: Iterable[PredictionInput],
) -> List[ScoredPrediction]:
    """Every participant's scored prediction on every finished match of the window."""
    if window.is_empty:
        return []
    scored = aggregation.score_predictions(
        participants,
        window.matches,
        predictions,
        config.scoring_rules,
        config.bonus_match_ids,
        qualifier_bonus=config.bonus_qualified,
    )
    return [item for user_items in scored.values() for item in user_items]


def compute_ranking(
    config: TournamentConfig,
    window: MatchWindow,
    participants: Iterable[UserId],
    predictions: Iterable[PredictionInput],
    with_previous: bool = True,
) -> List[RankEntry]:
    """
    Rank participants over a window.

    With `with_previous`, the standings up to the second-to-last complete
    matchday serve as the previous ranking for rank deltas.
    """
    if window.is_empty:
        return []
    tallies = aggregation.aggregate_window(config, window, participants, predictions).tallies

    previous = None
    complete = window.complete_matchdays
    if with_previous and len(complete) >= 2:
        previous = ranking.rank(aggregation.cumulative(tallies, up_to=complete[-2]))
    return ranking.rank(aggregation.cumulative(tallies), previous)


def compute_new_achievements(
    config: TournamentConfig,
    window: MatchWindow,
    participants: Iterable[UserId],
    predictions: Iterable[PredictionInput],
    recorded: Optional[Mapping[UserId, Iterable[AchievementType]]] = None,
) -> Dict[UserId, List[AchievementUnlock]]:
    """Trophies each participant qualifies for that are not recorded yet."""
    aggregated = aggregation.aggregate_window(config, window, participants, predictions)
    return achievements.evaluate_tournament(config, window, aggregated, recorded)
