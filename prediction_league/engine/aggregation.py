"""
Joins predictions to finished matches and tallies points per matchday.

Every participant is scored on every finished match. A participant who never
predicted a match gets a synthesized 0-0 default prediction, which earns
points but never counts toward exact/correct statistics.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import PreconditionError
from .points import score_match
from .types import (
    MatchId,
    MatchResult,
    ParticipantJourneyTally,
    PredictionInput,
    ScoredPrediction,
    ScoringRuleSet,
    StandingsLine,
    TournamentConfig,
    UserId,
)
from .window import MatchWindow

logger = logging.getLogger(__name__)

PredictionKey = Tuple[UserId, MatchId]


@dataclass(frozen=True)
class Aggregation:
    """Scored predictions and journey tallies for one window."""

    participants: Tuple[UserId, ...] = ()
    scored: Dict[UserId, Tuple[ScoredPrediction, ...]] = field(default_factory=dict)
    tallies: Dict[UserId, Tuple[ParticipantJourneyTally, ...]] = field(default_factory=dict)
    effective_predictions: Dict[PredictionKey, PredictionInput] = field(default_factory=dict)
    scored_by_matchday: Dict[Tuple[UserId, int], Tuple[ScoredPrediction, ...]] = field(default_factory=dict)

    def tally(self, user_id: UserId, matchday: int) -> Optional[ParticipantJourneyTally]:
        for tally in self.tallies.get(user_id, ()):
            if tally.matchday_number == matchday:
                return tally
        return None

    def scored_on(self, user_id: UserId, matchday: int) -> List[ScoredPrediction]:
        return list(self.scored_by_matchday.get((user_id, matchday), ()))

    def guess(self, user_id: UserId, match_id: MatchId) -> Tuple[int, int]:
        prediction = self.effective_predictions.get((user_id, match_id))
        if prediction is None:
            return 0, 0
        return prediction.predicted_home_goals, prediction.predicted_away_goals


def unique_participants(participants: Iterable[UserId]) -> Tuple[UserId, ...]:
    seen = set()
    ordered = []
    for user_id in participants:
        if user_id not in seen:
            seen.add(user_id)
            ordered.append(user_id)
    return tuple(ordered)


def index_predictions(predictions: Iterable[PredictionInput]) -> Dict[PredictionKey, PredictionInput]:
    """Map (user, match) to its prediction; two rows for the same pair is bad data."""
    indexed: Dict[PredictionKey, PredictionInput] = {}
    for prediction in predictions:
        key = (prediction.user_id, prediction.match_id)
        if key in indexed:
            raise PreconditionError(f"Duplicate prediction for user {key[0]} on match {key[1]}")
        indexed[key] = prediction
    return indexed


def _score_all(
    participants: Sequence[UserId],
    matches: Sequence[MatchResult],
    indexed: Dict[PredictionKey, PredictionInput],
    rules: ScoringRuleSet,
    bonus_match_ids,
    qualifier_bonus: bool,
):
    scored: Dict[UserId, List[ScoredPrediction]] = {user_id: [] for user_id in participants}
    effective: Dict[PredictionKey, PredictionInput] = {}

    for user_id in participants:
        for match in matches:
            prediction = indexed.get((user_id, match.match_id))
            if prediction is None:
                prediction = PredictionInput.default_for(user_id, match.match_id)
            effective[(user_id, match.match_id)] = prediction

            is_bonus = match.is_bonus or match.match_id in bonus_match_ids
            scored[user_id].append(
                score_match(prediction, match, rules, is_bonus, qualifier_bonus_enabled=qualifier_bonus)
            )
    return scored, effective


def score_predictions(
    participants: Iterable[UserId],
    matches: Sequence[MatchResult],
    predictions: Iterable[PredictionInput],
    rules: ScoringRuleSet,
    bonus_match_ids=frozenset(),
    qualifier_bonus: bool = False,
) -> Dict[UserId, List[ScoredPrediction]]:
    """Score every participant on every finished match, defaults included."""
    scored, _ = _score_all(
        unique_participants(participants), matches, index_predictions(predictions),
        rules, frozenset(bonus_match_ids), qualifier_bonus,
    )
    return scored


def _early_bonus(user_id, matchday: int, window: MatchWindow, indexed) -> int:
    """+1 when every fixture of a complete matchday was predicted by hand."""
    for match_id in window.scheduled.get(matchday, ()):
        prediction = indexed.get((user_id, match_id))
        if prediction is None or prediction.is_default:
            return 0
    return 1


def _tally(user_id, matchday: int, scored: List[ScoredPrediction], is_complete: bool, early_bonus: int):
    played = [s for s in scored if not s.is_default]
    return ParticipantJourneyTally(
        user_id=user_id,
        matchday_number=matchday,
        points=sum(s.points for s in scored),
        exact_count=sum(1 for s in played if s.is_exact_score),
        correct_count=sum(1 for s in played if s.is_correct_outcome),
        matches_played=len(played),
        matches_scored=len(scored),
        early_bonus_points=early_bonus,
        is_complete=is_complete,
    )


def _build(
    participants: Tuple[UserId, ...],
    matches: Sequence[MatchResult],
    predictions: Iterable[PredictionInput],
    rules: ScoringRuleSet,
    bonus_match_ids,
    window: Optional[MatchWindow],
    early_prediction_bonus: bool,
    qualifier_bonus: bool,
) -> Aggregation:
    indexed = index_predictions(predictions)
    scored, effective = _score_all(participants, matches, indexed, rules, frozenset(bonus_match_ids), qualifier_bonus)
    matchdays = sorted({m.matchday_number for m in matches})
    complete = set(window.complete_matchdays) if window is not None else None
    predicted_by_hand = {uid for (uid, _), p in indexed.items() if not p.is_default}

    tallies: Dict[UserId, Tuple[ParticipantJourneyTally, ...]] = {}
    scored_by_matchday: Dict[Tuple[UserId, int], Tuple[ScoredPrediction, ...]] = {}
    for user_id in participants:
        by_matchday = defaultdict(list)
        for scored_prediction in scored[user_id]:
            by_matchday[scored_prediction.matchday_number].append(scored_prediction)

        user_tallies = []
        for matchday in matchdays:
            is_complete = complete is None or matchday in complete
            early_bonus = 0
            if early_prediction_bonus and is_complete and user_id in predicted_by_hand and window is not None:
                early_bonus = _early_bonus(user_id, matchday, window, indexed)
            user_tallies.append(_tally(user_id, matchday, by_matchday[matchday], is_complete, early_bonus))
            scored_by_matchday[(user_id, matchday)] = tuple(by_matchday[matchday])
        tallies[user_id] = tuple(user_tallies)

    return Aggregation(
        participants=participants,
        scored={user_id: tuple(items) for user_id, items in scored.items()},
        tallies=tallies,
        effective_predictions=effective,
        scored_by_matchday=scored_by_matchday,
    )


def aggregate(
    participants: Iterable[UserId],
    matches: Sequence[MatchResult],
    predictions: Iterable[PredictionInput],
    rules: ScoringRuleSet,
    bonus_match_ids=frozenset(),
) -> Dict[UserId, List[ParticipantJourneyTally]]:
    """
    Per-participant journey tallies over a set of finished matches.

    Without a window every matchday present in `matches` is taken as complete.
    """
    aggregation = _build(
        unique_participants(participants), matches, predictions, rules,
        bonus_match_ids, None, False, False,
    )
    return {user_id: list(tallies) for user_id, tallies in aggregation.tallies.items()}


def aggregate_window(
    config: TournamentConfig,
    window: MatchWindow,
    participants: Iterable[UserId],
    predictions: Iterable[PredictionInput],
) -> Aggregation:
    """Aggregate a resolved window with the tournament's own options."""
    participants = unique_participants(participants)
    if window.is_empty:
        return Aggregation(participants=participants, tallies={user_id: () for user_id in participants})

    aggregation = _build(
        participants,
        window.matches,
        predictions,
        config.scoring_rules,
        config.bonus_match_ids,
        window,
        config.early_prediction_bonus,
        config.bonus_qualified,
    )
    logger.debug(
        "Tournament %s: aggregated %d participants over %d finished matches",
        config.tournament_id, len(participants), len(window.matches),
    )
    return aggregation


def cumulative(
    tallies: Dict[UserId, Sequence[ParticipantJourneyTally]],
    up_to: Optional[int] = None,
) -> List[StandingsLine]:
    """Sum journey tallies up to and including a matchday into standings lines."""
    lines = []
    for user_id, user_tallies in tallies.items():
        selected = [t for t in user_tallies if up_to is None or t.matchday_number <= up_to]
        lines.append(
            StandingsLine(
                user_id=user_id,
                total_points=sum(t.total_points for t in selected),
                exact_count=sum(t.exact_count for t in selected),
                correct_count=sum(t.correct_count for t in selected),
                matches_played=sum(t.matches_played for t in selected),
                matches_available=sum(t.matches_scored for t in selected),
            )
        )
    return lines


def journey_lines(tallies: Dict[UserId, Sequence[ParticipantJourneyTally]], matchday: int) -> List[StandingsLine]:
    """Standings lines of a single matchday, match points only."""
    lines = []
    for user_id, user_tallies in tallies.items():
        tally = next((t for t in user_tallies if t.matchday_number == matchday), None)
        if tally is None:
            lines.append(StandingsLine(user_id=user_id))
            continue
        lines.append(
            StandingsLine(
                user_id=user_id,
                total_points=tally.points,
                exact_count=tally.exact_count,
                correct_count=tally.correct_count,
                matches_played=tally.matches_played,
                matches_available=tally.matches_scored,
            )
        )
    return lines
