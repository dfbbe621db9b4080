"""
Reads tournaments, fixtures and predictions out of the database and
normalizes them into the engine's value types.

Datetimes come back from SQLite without a timezone; they are stored as UTC
and made aware here so the engine never compares naive and aware values.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .. import config as settings
from ..engine.errors import TournamentNotFound
from ..engine.types import (
    AchievementType,
    AchievementUnlock,
    CustomFixture,
    CustomMatchday,
    Fixture,
    MatchStatus,
    PredictionInput,
    ScoringRuleSet,
    TournamentConfig,
    TournamentStatus,
)
from ..engine.window import CompetitionSource, CustomCompetition, FlatCompetition, as_utc
from ..models import (
    CustomCompetitionMatch,
    CustomCompetitionMatchday,
    ImportedMatch,
    Prediction,
    Tournament,
    TournamentBonusMatch,
    TournamentParticipant,
    UserTrophy,
)

logger = logging.getLogger(__name__)


def _or_default(value: Optional[int], default: int) -> int:
    return default if value is None else value


def get_tournament(db: Session, tournament_id: int) -> Tournament:
    tournament = db.get(Tournament, tournament_id)
    if tournament is None:
        raise TournamentNotFound(f"Tournament {tournament_id} not found")
    return tournament


def get_scoring_rules(tournament: Tournament) -> ScoringRuleSet:
    return ScoringRuleSet(
        exact_score_points=_or_default(tournament.scoring_exact_score, settings.DEFAULT_EXACT_SCORE_POINTS),
        correct_outcome_points=_or_default(tournament.scoring_correct_winner, settings.DEFAULT_CORRECT_RESULT_POINTS),
        incorrect_outcome_points=_or_default(
            tournament.scoring_incorrect_result, settings.DEFAULT_INCORRECT_RESULT_POINTS
        ),
        default_draw_points=_or_default(
            tournament.scoring_draw_with_default_prediction, settings.DEFAULT_DRAW_WITH_DEFAULT_POINTS
        ),
    )


def get_tournament_config(db: Session, tournament_id: int) -> TournamentConfig:
    """Build the engine configuration of a tournament. Raises TournamentNotFound."""
    tournament = get_tournament(db, tournament_id)

    bonus_match_ids = frozenset()
    if tournament.bonus_match:
        statement = select(TournamentBonusMatch.match_id).where(TournamentBonusMatch.tournament_id == tournament_id)
        bonus_match_ids = frozenset(db.exec(statement).all())

    return TournamentConfig(
        tournament_id=tournament.id,
        starting_journey=tournament.starting_matchday,
        ending_journey=tournament.ending_matchday,
        start_date=as_utc(tournament.start_date),
        status=TournamentStatus(tournament.status),
        scoring_rules=get_scoring_rules(tournament),
        bonus_match_ids=bonus_match_ids,
        bonus_qualified=tournament.bonus_qualified,
        early_prediction_bonus=tournament.early_prediction_bonus,
    )


def _status(match: ImportedMatch) -> MatchStatus:
    if match.finished:
        return MatchStatus.FINISHED
    try:
        return MatchStatus(match.status)
    except ValueError:
        logger.warning("Match %s has unknown status %r, treated as scheduled", match.id, match.status)
        return MatchStatus.SCHEDULED


def _winner_side(match: ImportedMatch) -> Optional[str]:
    if match.winner_team_id is None:
        return None
    if match.winner_team_id == match.home_team_id:
        return "home"
    if match.winner_team_id == match.away_team_id:
        return "away"
    return None


def to_fixture(match: ImportedMatch) -> Fixture:
    """Normalize an imported fixture row."""
    return Fixture(
        match_id=match.id,
        matchday_number=match.matchday,
        kickoff_time=as_utc(match.utc_date),
        status=_status(match),
        home_goals=match.home_score,
        away_goals=match.away_score,
        home_team_name=match.home_team_name,
        away_team_name=match.away_team_name,
        home_team_crest=match.home_team_crest,
        away_team_crest=match.away_team_crest,
        stage=match.stage,
        home_goals_90=match.home_score_90,
        away_goals_90=match.away_score_90,
        winner_side=_winner_side(match),
    )


def _custom_source(db: Session, custom_competition_id: int) -> CustomCompetition:
    matchdays = db.exec(
        select(CustomCompetitionMatchday).where(
            CustomCompetitionMatchday.custom_competition_id == custom_competition_id
        )
    ).all()
    if not matchdays:
        return CustomCompetition()

    custom_matches = db.exec(
        select(CustomCompetitionMatch).where(
            CustomCompetitionMatch.custom_matchday_id.in_([md.id for md in matchdays])
        )
    ).all()

    linked_ids = {m.football_data_match_id for m in custom_matches if m.football_data_match_id is not None}
    external = {}
    if linked_ids:
        rows = db.exec(select(ImportedMatch).where(ImportedMatch.football_data_match_id.in_(linked_ids))).all()
        external = {row.football_data_match_id: to_fixture(row) for row in rows}

    return CustomCompetition(
        matchdays=[CustomMatchday(matchday_id=md.id, number=md.matchday_number) for md in matchdays],
        fixtures=[
            CustomFixture(
                # Unlinked fixtures never score; keep their ids apart from imported match ids
                custom_match_id=f"custom-{m.id}",
                matchday_id=m.custom_matchday_id,
                external_match_id=m.football_data_match_id,
                cached_kickoff_time=as_utc(m.cached_utc_date),
                home_team_name=m.cached_home_team_name,
                away_team_name=m.cached_away_team_name,
                home_team_crest=m.cached_home_team_crest,
                away_team_crest=m.cached_away_team_crest,
            )
            for m in custom_matches
        ],
        external_fixtures=external,
    )


def get_match_results(db: Session, tournament: Tournament) -> CompetitionSource:
    """Fixtures of the competition a tournament follows, finished or not."""
    if tournament.custom_competition_id is not None:
        return _custom_source(db, tournament.custom_competition_id)
    if tournament.competition_id is None:
        logger.info("Tournament %s follows no competition", tournament.id)
        return FlatCompetition()

    statement = select(ImportedMatch).where(ImportedMatch.competition_id == tournament.competition_id)
    return FlatCompetition(fixtures=[to_fixture(row) for row in db.exec(statement).all()])


def get_participants(db: Session, tournament_id: int) -> List[int]:
    statement = (
        select(TournamentParticipant.user_id)
        .where(TournamentParticipant.tournament_id == tournament_id)
        .order_by(TournamentParticipant.id)
    )
    return list(db.exec(statement).all())


def get_predictions(db: Session, tournament_id: int, match_ids: Iterable) -> List[PredictionInput]:
    """Stored predictions of a tournament on the given matches."""
    # Only imported matches can carry predictions
    wanted = [match_id for match_id in match_ids if isinstance(match_id, int)]
    if not wanted:
        return []

    statement = select(Prediction).where(
        Prediction.tournament_id == tournament_id,
        Prediction.match_id.in_(wanted),
    )
    return [
        PredictionInput(
            user_id=row.user_id,
            match_id=row.match_id,
            predicted_home_goals=row.predicted_home_score,
            predicted_away_goals=row.predicted_away_score,
            is_default=row.is_default_prediction,
            submitted_at=as_utc(row.updated_at),
            predicted_qualifier=row.predicted_qualifier,
        )
        for row in db.exec(statement).all()
    ]


def get_recorded_achievements(db: Session, user_ids: Iterable[int]) -> Dict[int, Set[AchievementType]]:
    """Trophy types each user already holds, whatever tournament awarded them."""
    user_ids = list(user_ids)
    recorded: Dict[int, Set[AchievementType]] = {user_id: set() for user_id in user_ids}
    if not user_ids:
        return recorded

    rows = db.exec(select(UserTrophy).where(UserTrophy.user_id.in_(user_ids))).all()
    for row in rows:
        try:
            recorded[row.user_id].add(AchievementType(row.trophy_type))
        except ValueError:
            logger.debug("Ignoring unknown trophy type %r of user %s", row.trophy_type, row.user_id)
    return recorded


def record_achievements(
    db: Session,
    user_id: int,
    tournament_id: int,
    unlocks: Iterable[AchievementUnlock],
) -> int:
    """
    Persist new unlocks of one user.

    A trophy type the user already holds is skipped, including one written by
    a concurrent sweep between our read and our insert.

    Returns:
        Number of rows actually inserted
    """
    existing = set(db.exec(select(UserTrophy.trophy_type).where(UserTrophy.user_id == user_id)).all())
    inserted = 0

    for unlock in unlocks:
        trophy_type = AchievementType(unlock.achievement_type).value
        if trophy_type in existing:
            continue

        db.add(
            UserTrophy(
                user_id=user_id,
                trophy_type=trophy_type,
                tournament_id=tournament_id,
                unlocked_at=unlock.first_qualifying_date,
                trigger_match=unlock.triggering_match.to_dict() if unlock.triggering_match else None,
            )
        )
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info("Trophy %s already recorded for user %s", trophy_type, user_id)
            continue

        existing.add(trophy_type)
        inserted += 1

    return inserted
