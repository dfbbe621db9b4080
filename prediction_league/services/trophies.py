"""
Trophy sweep: evaluate tournaments and persist new unlocks.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Dict, List

from sqlmodel import Session, select

from .. import config as settings
from ..engine import compute_new_achievements, resolve
from ..engine.types import TournamentStatus
from ..engine.window import as_utc
from ..models import Tournament
from .tournament_data import (
    get_match_results,
    get_participants,
    get_predictions,
    get_recorded_achievements,
    get_tournament,
    get_tournament_config,
    record_achievements,
)

logger = logging.getLogger(__name__)

# tournament id -> [lock, number of holders and waiters]
_locks: Dict[int, List] = {}
_locks_guard = threading.Lock()


@contextmanager
def _tournament_lock(tournament_id: int):
    """Serialize checks of one tournament; the lock is dropped once nobody needs it."""
    with _locks_guard:
        entry = _locks.setdefault(tournament_id, [threading.Lock(), 0])
        entry[1] += 1
    try:
        with entry[0]:
            yield
    finally:
        with _locks_guard:
            entry[1] -= 1
            if entry[1] == 0:
                del _locks[tournament_id]


def check_tournament_trophies(db: Session, tournament_id: int) -> int:
    """Evaluate one tournament and record new trophies. Returns how many were awarded."""
    with _tournament_lock(tournament_id):
        tournament = get_tournament(db, tournament_id)
        config = get_tournament_config(db, tournament_id)
        window = resolve(config, get_match_results(db, tournament))
        if window.is_empty:
            return 0

        participants = get_participants(db, tournament_id)
        if not participants:
            return 0
        predictions = get_predictions(db, tournament_id, window.match_ids)
        recorded = get_recorded_achievements(db, participants)

        unlocks = compute_new_achievements(config, window, participants, predictions, recorded)
        awarded = 0
        for user_id, user_unlocks in unlocks.items():
            if user_unlocks:
                awarded += record_achievements(db, user_id, tournament_id, user_unlocks)

    if awarded:
        logger.info("Tournament %s: awarded %d trophies", tournament_id, awarded)
    return awarded


def tournaments_to_check(db: Session, now: datetime):
    """Active tournaments, plus those that finished recently."""
    cutoff = as_utc(now) - timedelta(hours=settings.RECENTLY_FINISHED_HOURS)
    tournaments = db.exec(select(Tournament).order_by(Tournament.id)).all()

    selected = []
    for tournament in tournaments:
        try:
            status = TournamentStatus(tournament.status)
        except ValueError:
            logger.warning("Tournament %s has unknown status %r, skipped", tournament.id, tournament.status)
            continue
        if status == TournamentStatus.ACTIVE:
            selected.append(tournament)
        elif status.is_terminal and as_utc(tournament.updated_at) >= cutoff:
            selected.append(tournament)
    return selected


def check_all_trophies(db: Session, now: datetime) -> dict:
    """
    Run the trophy check over every tournament that may have changed.

    One tournament failing does not stop the sweep; the failure is logged and
    counted in the summary.
    """
    tournaments = tournaments_to_check(db, now)
    summary = {"tournaments_checked": 0, "trophies_awarded": 0, "errors": 0}

    for tournament in tournaments:
        tournament_id = tournament.id
        try:
            summary["trophies_awarded"] += check_tournament_trophies(db, tournament_id)
        except Exception:
            logger.exception("Trophy check failed for tournament %s", tournament_id)
            db.rollback()
            summary["errors"] += 1
        summary["tournaments_checked"] += 1

    logger.info(
        "Trophy sweep: %d tournaments, %d trophies awarded, %d errors",
        summary["tournaments_checked"], summary["trophies_awarded"], summary["errors"],
    )
    return summary
