import random

import pytest
from datetime import datetime, timezone

from prediction_league.engine import aggregation, compute_ranking, compute_scored_predictions
from prediction_league.engine.errors import PreconditionError
from prediction_league.engine.types import (
    Fixture,
    MatchResult,
    MatchStatus,
    PredictionInput,
    ScoringRuleSet,
    TournamentConfig,
)
from prediction_league.engine.window import FlatCompetition, resolve

RULES = ScoringRuleSet()


def at(day, hour=15):
    return datetime(2024, 8, day, hour, 0, tzinfo=timezone.utc)


def match(match_id, matchday, home, away, day=10):
    return MatchResult(match_id=match_id, matchday_number=matchday, home_goals=home, away_goals=away,
                       kickoff_time=at(day))


def predict(user_id, match_id, home, away):
    return PredictionInput(user_id=user_id, match_id=match_id, predicted_home_goals=home, predicted_away_goals=away)


MATCHES = [match(1, 1, 2, 1), match(2, 1, 1, 1), match(3, 2, 0, 3, day=17)]


def test_missing_predictions_become_defaults():
    predictions = [predict("ann", 1, 2, 1), predict("ann", 2, 0, 2), predict("ann", 3, 0, 1)]
    tallies = aggregation.aggregate(["ann", "ben"], MATCHES, predictions, RULES)

    ann = tallies["ann"][0]
    assert (ann.points, ann.exact_count, ann.correct_count) == (3, 1, 1)
    assert ann.matches_played == 2

    # ben's 0-0 defaults earn the draw reward but no statistics
    ben = tallies["ben"][0]
    assert ben.points == 1
    assert (ben.exact_count, ben.correct_count, ben.matches_played) == (0, 0, 0)
    assert ben.matches_scored == 2


def test_one_tally_per_matchday_in_order():
    tallies = aggregation.aggregate(["ann"], MATCHES, [], RULES)
    assert [t.matchday_number for t in tallies["ann"]] == [1, 2]
    assert all(t.is_complete for t in tallies["ann"])


def test_participants_without_matches_get_no_tallies():
    assert aggregation.aggregate(["ann", "ben"], [], [], RULES) == {"ann": [], "ben": []}


def test_duplicate_participants_collapse():
    tallies = aggregation.aggregate(["ann", "ann"], MATCHES, [], RULES)
    assert list(tallies) == ["ann"]


def test_duplicate_predictions_rejected():
    predictions = [predict("ann", 1, 2, 1), predict("ann", 1, 0, 0)]
    with pytest.raises(PreconditionError):
        aggregation.aggregate(["ann"], MATCHES, predictions, RULES)


def test_bonus_match_doubles_tally_points():
    tallies = aggregation.aggregate(["ann"], MATCHES, [predict("ann", 1, 2, 1)], RULES, bonus_match_ids={1})
    # 6 for the doubled exact score, 1 for the default on the 1-1 draw
    assert tallies["ann"][0].points == 7


def test_cumulative_and_journey_lines():
    predictions = [predict("ann", 1, 2, 1), predict("ann", 3, 0, 3), predict("ben", 1, 1, 0)]
    tallies = aggregation.aggregate(["ann", "ben"], MATCHES, predictions, RULES)

    totals = {line.user_id: line for line in aggregation.cumulative(tallies)}
    assert totals["ann"].total_points == 3 + 1 + 3
    assert totals["ann"].exact_count == 2
    assert totals["ann"].matches_available == 3
    assert totals["ben"].total_points == 1 + 1 + 0

    first = {line.user_id: line.total_points for line in aggregation.cumulative(tallies, up_to=1)}
    assert first == {"ann": 4, "ben": 2}

    second = {line.user_id: line.total_points for line in aggregation.journey_lines(tallies, 2)}
    assert second == {"ann": 3, "ben": 0}


def test_score_predictions_covers_every_participant_and_match():
    scored = aggregation.score_predictions(["ann", "ben"], MATCHES, [predict("ann", 2, 1, 1)], RULES)
    assert [s.match_id for s in scored["ben"]] == [1, 2, 3]
    assert all(s.is_default for s in scored["ben"])
    assert scored["ann"][1].is_exact_score


@pytest.fixture(name="window_source")
def window_source_fixture():
    return FlatCompetition(fixtures=[
        Fixture(1, 1, at(10), MatchStatus.FINISHED, 2, 1),
        Fixture(2, 1, at(10, 17), MatchStatus.FINISHED, 1, 1),
        Fixture(3, 2, at(17), MatchStatus.FINISHED, 0, 3),
        Fixture(4, 2, at(17, 17), MatchStatus.TIMED),
    ])


def test_early_prediction_bonus_for_complete_matchdays(window_source):
    config = TournamentConfig(tournament_id=1, starting_journey=1, ending_journey=2, early_prediction_bonus=True)
    window = resolve(config, window_source)
    predictions = [
        predict("ann", 1, 2, 1), predict("ann", 2, 0, 0),
        predict("ann", 3, 0, 3), predict("ann", 4, 1, 1),
        predict("ben", 1, 1, 0),
    ]
    result = aggregation.aggregate_window(config, window, ["ann", "ben"], predictions)

    ann_first = result.tally("ann", 1)
    assert ann_first.early_bonus_points == 1
    assert ann_first.total_points == ann_first.points + 1
    # matchday 2 is still open
    ann_second = result.tally("ann", 2)
    assert not ann_second.is_complete
    assert ann_second.early_bonus_points == 0

    assert result.tally("ben", 1).early_bonus_points == 0


def test_no_early_bonus_unless_enabled(window_source):
    config = TournamentConfig(tournament_id=1, starting_journey=1, ending_journey=2)
    window = resolve(config, window_source)
    predictions = [predict("ann", 1, 2, 1), predict("ann", 2, 0, 0)]
    result = aggregation.aggregate_window(config, window, ["ann"], predictions)
    assert result.tally("ann", 1).early_bonus_points == 0


def test_aggregate_empty_window():
    config = TournamentConfig(tournament_id=1)
    window = resolve(config, FlatCompetition())
    result = aggregation.aggregate_window(config, window, ["ann"], [])
    assert result.tallies == {"ann": ()}
    assert aggregation.cumulative(result.tallies)[0].total_points == 0


def test_results_do_not_depend_on_input_order(window_source):
    config = TournamentConfig(tournament_id=1, starting_journey=1, ending_journey=2, early_prediction_bonus=True)
    window = resolve(config, window_source)
    participants = ["ann", "ben", "cat", "dan"]
    predictions = [
        predict("ann", 1, 2, 1), predict("ann", 2, 0, 0), predict("ann", 3, 0, 3),
        predict("ben", 1, 1, 0), predict("ben", 3, 1, 2),
        predict("cat", 2, 1, 1), predict("cat", 1, 0, 2),
    ]

    first = compute_scored_predictions(config, window, participants, predictions)
    assert compute_scored_predictions(config, window, participants, predictions) == first
    ranking = compute_ranking(config, window, participants, predictions)

    shuffler = random.Random(7)
    for _ in range(5):
        shuffled_participants = list(participants)
        shuffled_predictions = list(predictions)
        shuffler.shuffle(shuffled_participants)
        shuffler.shuffle(shuffled_predictions)

        scored = compute_scored_predictions(config, window, shuffled_participants, shuffled_predictions)
        assert set(scored) == set(first)
        assert compute_ranking(config, window, shuffled_participants, shuffled_predictions) == ranking


def test_scored_on_groups_by_matchday(window_source):
    config = TournamentConfig(tournament_id=1, starting_journey=1, ending_journey=2)
    window = resolve(config, window_source)
    result = aggregation.aggregate_window(config, window, ["ann"], [predict("ann", 3, 0, 3)])

    assert [s.match_id for s in result.scored_on("ann", 1)] == [1, 2]
    assert [s.match_id for s in result.scored_on("ann", 2)] == [3]
    assert result.scored_on("ann", 5) == []
