from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlmodel import Session, select

from ..database import get_session
from ..engine import compute_ranking, resolve
from ..engine.errors import PreconditionError, TournamentNotFound
from ..engine.types import RankEntry, TournamentStatus
from ..models import User
from ..services.tournament_data import (
    get_match_results,
    get_participants,
    get_predictions,
    get_tournament,
    get_tournament_config,
)

router = APIRouter(prefix="/api", tags=["rankings"])


class RankingEntryResponse(BaseModel):
    """One line of a leaderboard."""
    user_id: int
    username: str
    avatar: str
    total_points: int
    exact_scores: int
    correct_results: int
    matches_played: int
    matches_available: int
    rank: Optional[int] = None
    previous_rank: Optional[int] = None
    rank_change: Optional[str] = None


class PointsSettingsResponse(BaseModel):
    exact_score: int
    correct_result: int
    incorrect_result: int
    draw_with_default_prediction: int


class RankingsResponse(BaseModel):
    """Schema for the rankings of a tournament."""
    tournament_id: int
    matchday: Optional[int] = None
    rankings: List[RankingEntryResponse]
    points_settings: PointsSettingsResponse
    matches_finished: int
    matches_total: int
    has_in_progress_matches: bool
    has_pending_matchdays: bool


def _user_fields(users: Dict[int, User], user_id: int) -> dict:
    user = users.get(user_id)
    return {
        "username": user.username if user else "Unknown",
        "avatar": user.avatar if user else "avatar1",
    }


@router.get("/tournaments/{tournament_id}/rankings", response_model=RankingsResponse)
async def get_rankings(
    tournament_id: int,
    matchday: Optional[int] = None,
    db: Session = Depends(get_session)
):
    """
    Leaderboard of a tournament.

    Without `matchday` the general ranking is returned, with rank movement
    since the previous complete matchday. With `matchday` only that journey
    is ranked.
    """
    try:
        tournament = get_tournament(db, tournament_id)
        config = get_tournament_config(db, tournament_id)
    except TournamentNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Tournament not found"
        )

    participants = get_participants(db, tournament_id)
    users = {}
    if participants:
        users = {u.id: u for u in db.exec(select(User).where(User.id.in_(participants))).all()}
    points_settings = PointsSettingsResponse(**config.scoring_rules.to_dict())

    # Nothing is scored before the tournament starts
    if TournamentStatus(tournament.status) == TournamentStatus.PENDING:
        return RankingsResponse(
            tournament_id=tournament_id,
            matchday=matchday,
            rankings=[
                RankingEntryResponse(
                    user_id=user_id,
                    total_points=0,
                    exact_scores=0,
                    correct_results=0,
                    matches_played=0,
                    matches_available=0,
                    **_user_fields(users, user_id)
                )
                for user_id in participants
            ],
            points_settings=points_settings,
            matches_finished=0,
            matches_total=0,
            has_in_progress_matches=False,
            has_pending_matchdays=False,
        )

    try:
        window = resolve(config, get_match_results(db, tournament), matchday)
    except PreconditionError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc)
        )

    predictions = get_predictions(db, tournament_id, window.match_ids)
    ranking: List[RankEntry] = compute_ranking(
        config, window, participants, predictions, with_previous=matchday is None
    )

    return RankingsResponse(
        tournament_id=tournament_id,
        matchday=matchday,
        rankings=[
            RankingEntryResponse(**entry.to_dict(), **_user_fields(users, entry.user_id))
            for entry in ranking
        ],
        points_settings=points_settings,
        matches_finished=len(window.matches),
        matches_total=window.matches_total,
        has_in_progress_matches=window.has_in_progress,
        has_pending_matchdays=window.has_pending_matchdays,
    )
