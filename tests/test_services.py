import pytest
from datetime import datetime, timedelta, timezone
from sqlmodel import select

from prediction_league.engine.errors import TournamentNotFound
from prediction_league.engine.types import (
    AchievementType,
    AchievementUnlock,
    MatchStatus,
    ScoringRuleSet,
    TournamentStatus,
)
from prediction_league.engine.window import CustomCompetition, FlatCompetition
from prediction_league.models import (
    CustomCompetition as CustomCompetitionRow,
    CustomCompetitionMatch,
    CustomCompetitionMatchday,
    ImportedMatch,
    Tournament,
    TournamentBonusMatch,
    UserTrophy,
)
from prediction_league.services.tournament_data import (
    get_match_results,
    get_participants,
    get_predictions,
    get_recorded_achievements,
    get_tournament_config,
    record_achievements,
)
from prediction_league.services import trophies as trophies_service
from prediction_league.services.trophies import check_all_trophies, check_tournament_trophies


def test_unknown_tournament(session):
    with pytest.raises(TournamentNotFound):
        get_tournament_config(session, 999)


def test_tournament_config_defaults(session, league):
    config = get_tournament_config(session, league["tournament"].id)
    assert config.scoring_rules == ScoringRuleSet(default_draw_points=1)
    assert config.status == TournamentStatus.ACTIVE
    assert (config.starting_journey, config.ending_journey) == (1, 2)
    assert config.bonus_match_ids == frozenset()


def test_tournament_config_custom_scoring_and_bonus(session, league):
    tournament = league["tournament"]
    tournament.scoring_exact_score = 5
    tournament.scoring_correct_winner = 2
    tournament.bonus_match = True
    session.add(tournament)
    session.add(TournamentBonusMatch(tournament_id=tournament.id, match_id=league["matches"][0].id, matchday=1))
    session.commit()

    config = get_tournament_config(session, tournament.id)
    assert config.scoring_rules.exact_score_points == 5
    assert config.scoring_rules.correct_outcome_points == 2
    assert config.bonus_match_ids == frozenset({league["matches"][0].id})


def test_match_results_from_flat_competition(session, league):
    source = get_match_results(session, league["tournament"])
    assert isinstance(source, FlatCompetition)
    assert len(source.fixtures) == 4

    fixture = next(f for f in source.fixtures if f.match_id == league["matches"][0].id)
    assert fixture.is_finished
    assert fixture.status == MatchStatus.FINISHED
    assert fixture.kickoff_time.tzinfo is not None
    assert (fixture.home_goals, fixture.away_goals) == (2, 1)


def test_match_results_from_custom_competition(session):
    competition = CustomCompetitionRow(name="Derbies")
    session.add(competition)
    session.commit()
    matchday = CustomCompetitionMatchday(custom_competition_id=competition.id, matchday_number=1)
    session.add(matchday)
    imported = ImportedMatch(football_data_match_id=777, competition_id=2015, matchday=5,
                             utc_date=datetime(2024, 9, 1, 19, 0), home_team_name="PSG",
                             away_team_name="Marseille", home_score=1, away_score=0,
                             home_team_id=524, away_team_id=516, winner_team_id=524,
                             status="FINISHED", finished=True)
    session.add(imported)
    session.commit()
    session.add_all([
        CustomCompetitionMatch(custom_matchday_id=matchday.id, football_data_match_id=777),
        CustomCompetitionMatch(custom_matchday_id=matchday.id, cached_home_team_name="Lyon",
                               cached_away_team_name="Saint-Etienne"),
    ])
    tournament = Tournament(name="Derby Cup", custom_competition_id=competition.id, status="active")
    session.add(tournament)
    session.commit()

    source = get_match_results(session, tournament)
    assert isinstance(source, CustomCompetition)
    assert [md.number for md in source.matchdays] == [1]
    assert len(source.fixtures) == 2
    external = source.external_fixtures[777]
    assert external.match_id == imported.id
    assert external.winner_side == "home"

    config = get_tournament_config(session, tournament.id)
    assert config.starting_journey is None


def test_participants_and_predictions(session, league):
    tournament_id = league["tournament"].id
    participants = get_participants(session, tournament_id)
    assert participants == [league["alice"].id, league["bob"].id, league["carol"].id]

    match_ids = [m.id for m in league["matches"][:2]]
    predictions = get_predictions(session, tournament_id, match_ids + ["custom-3"])
    assert len(predictions) == 4
    assert {p.match_id for p in predictions} == set(match_ids)
    assert get_predictions(session, tournament_id, []) == []


def test_record_achievements_ignores_existing(session, league):
    alice = league["alice"]
    when = datetime(2024, 8, 10, 15, 0, tzinfo=timezone.utc)
    session.add(UserTrophy(user_id=alice.id, trophy_type="exact_score", unlocked_at=when))
    session.commit()

    unlocks = [
        AchievementUnlock(alice.id, league["tournament"].id, AchievementType.EXACT_SCORE, when),
        AchievementUnlock(alice.id, league["tournament"].id, AchievementType.KING_OF_DAY, when),
    ]
    assert record_achievements(session, alice.id, league["tournament"].id, unlocks) == 1

    recorded = get_recorded_achievements(session, [alice.id, league["bob"].id])
    assert recorded[alice.id] == {AchievementType.EXACT_SCORE, AchievementType.KING_OF_DAY}
    assert recorded[league["bob"].id] == set()


def test_check_tournament_trophies_is_idempotent(session, league):
    tournament = league["tournament"]
    tournament.status = "finished"
    session.add(tournament)
    session.commit()

    assert check_tournament_trophies(session, tournament.id) == 13
    assert check_tournament_trophies(session, tournament.id) == 0

    alice_trophies = session.exec(select(UserTrophy).where(UserTrophy.user_id == league["alice"].id)).all()
    assert len(alice_trophies) == 7
    king = next(t for t in alice_trophies if t.trophy_type == "king_of_day")
    assert king.tournament_id == tournament.id
    assert king.trigger_match["home_team_name"] == "Everton"
    assert king.trigger_match["predicted_home_score"] == 1


def test_check_tournament_trophies_unknown(session):
    with pytest.raises(TournamentNotFound):
        check_tournament_trophies(session, 404)


def test_check_all_trophies_selects_recent_tournaments(session, league):
    now = datetime(2024, 9, 1, 12, 0, tzinfo=timezone.utc)
    session.add_all([
        Tournament(name="Old", competition_id=2021, starting_matchday=1, ending_matchday=2,
                   status="finished", updated_at=now - timedelta(days=10)),
        Tournament(name="Recent", competition_id=2021, starting_matchday=1, ending_matchday=2,
                   status="completed", updated_at=now - timedelta(hours=3)),
        Tournament(name="Upcoming", competition_id=2021, status="pending"),
    ])
    session.commit()

    summary = check_all_trophies(session, now)
    assert summary["tournaments_checked"] == 2
    assert summary["errors"] == 0
    assert summary["trophies_awarded"] > 0


def test_check_all_trophies_keeps_going_after_a_failure(session, league):
    now = datetime(2024, 9, 1, 12, 0, tzinfo=timezone.utc)
    session.add(Tournament(name="Broken", competition_id=2021, starting_matchday=5, ending_matchday=1,
                           status="active"))
    session.commit()

    summary = check_all_trophies(session, now)
    assert summary["tournaments_checked"] == 2
    assert summary["errors"] == 1
    assert summary["trophies_awarded"] > 0


def test_check_all_trophies_skips_unknown_status(session, league):
    now = datetime(2024, 9, 1, 12, 0, tzinfo=timezone.utc)
    session.add(Tournament(name="Archived", competition_id=2021, starting_matchday=1, ending_matchday=2,
                           status="archived"))
    session.commit()

    summary = check_all_trophies(session, now)
    assert summary["tournaments_checked"] == 1
    assert summary["errors"] == 0


def test_tournament_lock_released_after_check(session, league):
    check_tournament_trophies(session, league["tournament"].id)
    assert trophies_service._locks == {}

    with pytest.raises(TournamentNotFound):
        check_tournament_trophies(session, 404)
    assert trophies_service._locks == {}
