from datetime import datetime, UTC
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint


class Tournament(SQLModel, table=True):
    __tablename__ = "tournaments"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str

    # Exactly one of the two is set
    competition_id: Optional[int] = Field(default=None, index=True)
    custom_competition_id: Optional[int] = Field(default=None, foreign_key="custom_competitions.id")

    starting_matchday: Optional[int] = Field(default=None)
    ending_matchday: Optional[int] = Field(default=None)
    start_date: Optional[datetime] = Field(default=None)
    status: str = Field(default="pending", index=True)  # pending, active, finished, completed

    # Scoring (None falls back to config defaults)
    scoring_exact_score: Optional[int] = Field(default=None)
    scoring_correct_winner: Optional[int] = Field(default=None)
    scoring_incorrect_result: Optional[int] = Field(default=None)
    scoring_draw_with_default_prediction: Optional[int] = Field(default=None)

    # Options
    bonus_match: bool = Field(default=False)
    bonus_qualified: bool = Field(default=False)
    early_prediction_bonus: bool = Field(default=False)

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class TournamentParticipant(SQLModel, table=True):
    __tablename__ = "tournament_participants"
    __table_args__ = (UniqueConstraint("tournament_id", "user_id", name="unique_tournament_user"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournaments.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    joined_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class TournamentBonusMatch(SQLModel, table=True):
    __tablename__ = "tournament_bonus_matches"
    __table_args__ = (UniqueConstraint("tournament_id", "matchday", name="unique_tournament_bonus_matchday"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournaments.id", index=True)
    match_id: int = Field(foreign_key="imported_matches.id")
    matchday: int
