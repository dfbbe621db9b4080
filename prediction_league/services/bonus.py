import logging

from sqlmodel import Session, select

from ..engine.bonus import pick_bonus_match
from ..engine.window import resolve
from ..models import TournamentBonusMatch
from .tournament_data import get_match_results, get_tournament, get_tournament_config

logger = logging.getLogger(__name__)


def generate_bonus_matches(db: Session, tournament_id: int) -> int:
    """
    Store a bonus match for every matchday of a tournament that lacks one.

    Matchdays without an imported fixture yet are left for a later run.
    Returns the number of bonus matches created.
    """
    tournament = get_tournament(db, tournament_id)
    if not tournament.bonus_match:
        return 0

    window = resolve(get_tournament_config(db, tournament_id), get_match_results(db, tournament))
    existing = set(
        db.exec(select(TournamentBonusMatch.matchday).where(TournamentBonusMatch.tournament_id == tournament_id)).all()
    )

    created = 0
    for matchday in window.matchdays:
        if matchday in existing:
            continue
        candidates = [match_id for match_id in window.scheduled.get(matchday, ()) if isinstance(match_id, int)]
        if not candidates:
            continue
        match_id = pick_bonus_match(tournament_id, matchday, candidates)
        db.add(TournamentBonusMatch(tournament_id=tournament_id, match_id=match_id, matchday=matchday))
        created += 1

    if created:
        db.commit()
        logger.info("Tournament %s: created %d bonus matches", tournament_id, created)
    return created
