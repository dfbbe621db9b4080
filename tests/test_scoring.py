import pytest
from datetime import datetime, timezone

from prediction_league.engine.errors import PreconditionError
from prediction_league.engine.points import score, score_knockout, score_match
from prediction_league.engine.types import MatchResult, PredictionInput, ScoringRuleSet

KICKOFF = datetime(2024, 8, 10, 15, 0, tzinfo=timezone.utc)
RULES = ScoringRuleSet()


def result(home, away, **kwargs):
    return MatchResult(match_id=1, matchday_number=1, home_goals=home, away_goals=away, kickoff_time=KICKOFF, **kwargs)


def guess(home, away, **kwargs):
    return PredictionInput(user_id=7, match_id=1, predicted_home_goals=home, predicted_away_goals=away, **kwargs)


def test_exact_score():
    scored = score(guess(2, 1), result(2, 1), RULES)
    assert scored.points == 3
    assert scored.is_exact_score
    assert scored.is_correct_outcome
    assert scored.matchday_number == 1


def test_correct_outcome():
    scored = score(guess(1, 0), result(3, 1), RULES)
    assert scored.points == 1
    assert not scored.is_exact_score
    assert scored.is_correct_outcome


def test_correct_draw_is_an_outcome():
    assert score(guess(1, 1), result(2, 2), RULES).points == 1


def test_incorrect_outcome():
    scored = score(guess(0, 2), result(1, 0), RULES)
    assert scored.points == 0
    assert not scored.is_correct_outcome


def test_custom_rules():
    rules = ScoringRuleSet(exact_score_points=5, correct_outcome_points=2, incorrect_outcome_points=-1)
    assert score(guess(2, 1), result(2, 1), rules).points == 5
    assert score(guess(3, 1), result(2, 1), rules).points == 2
    assert score(guess(0, 1), result(2, 1), rules).points == -1


def test_default_prediction_on_draw_uses_default_reward():
    default = PredictionInput.default_for(7, 1)
    scored = score(default, result(1, 1), RULES)
    assert scored.points == RULES.correct_outcome_points
    assert scored.is_default
    assert not scored.is_exact_score

    rules = ScoringRuleSet(default_draw_points=2)
    assert score(default, result(1, 1), rules).points == 2


def test_default_prediction_on_goalless_draw_is_not_exact():
    scored = score(PredictionInput.default_for(7, 1), result(0, 0), RULES)
    assert scored.points == 1
    assert not scored.is_exact_score


def test_default_prediction_on_win_scores_incorrect():
    assert score(PredictionInput.default_for(7, 1), result(2, 0), RULES).points == 0


def test_submitted_goalless_guess_is_exact():
    scored = score(guess(0, 0), result(0, 0), RULES)
    assert scored.points == 3
    assert scored.is_exact_score


def test_bonus_match_doubles_points():
    assert score(guess(2, 1), result(2, 1), RULES, is_bonus=True).points == 6
    assert score(guess(1, 0), result(2, 1), RULES, is_bonus=True).points == 2
    assert score(guess(0, 1), result(2, 1), RULES, is_bonus=True).points == 0


def test_knockout_scored_on_regulation_time():
    final = result(2, 1, stage="LAST_16", home_goals_90=1, away_goals_90=1, winner_side="home")
    scored = score_match(guess(1, 1), final, RULES)
    assert scored.points == 3
    assert scored.is_exact_score


def test_knockout_qualifier_bonus_is_not_doubled():
    final = result(2, 1, stage="FINAL", home_goals_90=1, away_goals_90=1, winner_side="home")
    prediction = guess(1, 1, predicted_qualifier="home")

    scored = score_knockout(prediction, final, RULES, is_bonus=True, qualifier_bonus_enabled=True)
    assert scored.points == 7
    assert scored.qualifier_bonus == 1

    no_bonus = score_knockout(prediction, final, RULES, qualifier_bonus_enabled=False)
    assert no_bonus.points == 3
    assert no_bonus.qualifier_bonus == 0


def test_wrong_qualifier_gets_nothing_extra():
    final = result(0, 0, stage="SEMI_FINALS", winner_side="away")
    scored = score_knockout(guess(1, 0, predicted_qualifier="home"), final, RULES, qualifier_bonus_enabled=True)
    assert scored.points == 0


def test_negative_goals_rejected():
    with pytest.raises(PreconditionError):
        guess(-1, 0)
    with pytest.raises(ValueError):
        result(0, -2)


def test_default_prediction_must_be_goalless():
    with pytest.raises(PreconditionError):
        guess(1, 0, is_default=True)


def test_default_draw_reward_takes_precedence_over_exact_score():
    rules = ScoringRuleSet(3, 1, 0, 2)
    scored = score(PredictionInput.default_for(7, 1), result(0, 0), rules)
    assert scored.points == 2
    assert not scored.is_exact_score
    assert scored.is_correct_outcome


def test_default_draw_reward_is_doubled_on_bonus_match():
    rules = ScoringRuleSet(3, 1, 0, 2)
    assert score(PredictionInput.default_for(7, 1), result(0, 0), rules, is_bonus=True).points == 4
