from typing import Optional

from .types import MatchResult, Outcome, PredictionInput, ScoredPrediction, ScoringRuleSet


def score(
    prediction: PredictionInput,
    result: MatchResult,
    rules: ScoringRuleSet,
    is_bonus: bool = False,
    is_default: Optional[bool] = None,
    home_goals: Optional[int] = None,
    away_goals: Optional[int] = None,
) -> ScoredPrediction:
    """
    Calculate points earned for a single match prediction.

    Rules:
    - Default 0-0 prediction on a draw: rules.default_draw_reward (checked first,
      never counted as an exact score)
    - Exact score: rules.exact_score_points
    - Correct outcome (home win / draw / away win): rules.correct_outcome_points
    - Anything else: rules.incorrect_outcome_points
    - Bonus match: whatever applies above, x2

    home_goals/away_goals override the result's score (knockout matches are
    scored on the regulation-time score).
    """
    if is_default is None:
        is_default = prediction.is_default
    if home_goals is None or away_goals is None:
        home_goals, away_goals = result.home_goals, result.away_goals

    multiplier = 2 if is_bonus else 1
    guess = (prediction.predicted_home_goals, prediction.predicted_away_goals)
    actual_outcome = Outcome.from_goals(home_goals, away_goals)

    if is_default and guess == (0, 0) and actual_outcome == Outcome.DRAW:
        base, exact, correct = rules.default_draw_reward, False, True
    elif guess == (home_goals, away_goals):
        base, exact, correct = rules.exact_score_points, True, True
    elif Outcome.from_goals(*guess) == actual_outcome:
        base, exact, correct = rules.correct_outcome_points, False, True
    else:
        base, exact, correct = rules.incorrect_outcome_points, False, False

    return ScoredPrediction(
        user_id=prediction.user_id,
        match_id=prediction.match_id,
        points=base * multiplier,
        is_exact_score=exact,
        is_correct_outcome=correct,
        matchday_number=result.matchday_number,
        is_default=is_default,
    )


def score_knockout(
    prediction: PredictionInput,
    result: MatchResult,
    rules: ScoringRuleSet,
    is_bonus: bool = False,
    is_default: Optional[bool] = None,
    qualifier_bonus_enabled: bool = False,
) -> ScoredPrediction:
    """
    Score a knockout match on its 90 minute score.

    With the qualifier bonus enabled, +1 (never doubled) when the predicted
    qualifier side is the side that went through.
    """
    home, away = result.regulation_score
    scored = score(prediction, result, rules, is_bonus, is_default, home, away)

    qualifier_bonus = 0
    if qualifier_bonus_enabled and prediction.predicted_qualifier and result.winner_side:
        if prediction.predicted_qualifier == result.winner_side:
            qualifier_bonus = 1

    if not qualifier_bonus:
        return scored
    return ScoredPrediction(
        user_id=scored.user_id,
        match_id=scored.match_id,
        points=scored.points + qualifier_bonus,
        is_exact_score=scored.is_exact_score,
        is_correct_outcome=scored.is_correct_outcome,
        matchday_number=scored.matchday_number,
        is_default=scored.is_default,
        qualifier_bonus=qualifier_bonus,
    )


def score_match(
    prediction: PredictionInput,
    result: MatchResult,
    rules: ScoringRuleSet,
    is_bonus: bool = False,
    qualifier_bonus_enabled: bool = False,
) -> ScoredPrediction:
    """Dispatch to the league or knockout rule depending on the match stage."""
    if result.is_knockout:
        return score_knockout(
            prediction, result, rules, is_bonus,
            qualifier_bonus_enabled=qualifier_bonus_enabled,
        )
    return score(prediction, result, rules, is_bonus)
