from datetime import datetime, UTC
from typing import Optional
from sqlmodel import SQLModel, Field


class ImportedMatch(SQLModel, table=True):
    """A fixture imported from the football data feed."""

    __tablename__ = "imported_matches"

    id: Optional[int] = Field(default=None, primary_key=True)
    football_data_match_id: Optional[int] = Field(default=None, unique=True, index=True)
    competition_id: int = Field(index=True)
    matchday: Optional[int] = Field(default=None, index=True)
    stage: Optional[str] = Field(default=None)  # REGULAR_SEASON, LEAGUE_STAGE, LAST_16, FINAL, ...
    utc_date: datetime

    # Teams
    home_team_id: Optional[int] = Field(default=None)
    away_team_id: Optional[int] = Field(default=None)
    home_team_name: str = Field(default="")
    away_team_name: str = Field(default="")
    home_team_crest: Optional[str] = Field(default=None)
    away_team_crest: Optional[str] = Field(default=None)

    # Results (filled by the feed)
    home_score: Optional[int] = Field(default=None)
    away_score: Optional[int] = Field(default=None)
    home_score_90: Optional[int] = Field(default=None)
    away_score_90: Optional[int] = Field(default=None)
    winner_team_id: Optional[int] = Field(default=None)

    # Status
    status: str = Field(default="SCHEDULED")  # SCHEDULED, TIMED, IN_PLAY, PAUSED, FINISHED, AWARDED, POSTPONED, ...
    finished: bool = Field(default=False)

    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
