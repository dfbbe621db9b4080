from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint


class CustomCompetition(SQLModel, table=True):
    """A hand-picked competition assembled from fixtures of several feeds."""

    __tablename__ = "custom_competitions"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str


class CustomCompetitionMatchday(SQLModel, table=True):
    __tablename__ = "custom_competition_matchdays"
    __table_args__ = (
        UniqueConstraint("custom_competition_id", "matchday_number", name="unique_custom_matchday"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    custom_competition_id: int = Field(foreign_key="custom_competitions.id", index=True)
    matchday_number: int


class CustomCompetitionMatch(SQLModel, table=True):
    __tablename__ = "custom_competition_matches"

    id: Optional[int] = Field(default=None, primary_key=True)
    custom_matchday_id: int = Field(foreign_key="custom_competition_matchdays.id", index=True)

    # Link to the feed fixture holding the authoritative score (None until mapped)
    football_data_match_id: Optional[int] = Field(default=None, index=True)

    # Copies kept for display before the link exists
    cached_utc_date: Optional[datetime] = Field(default=None)
    cached_home_team_name: str = Field(default="")
    cached_away_team_name: str = Field(default="")
    cached_home_team_crest: Optional[str] = Field(default=None)
    cached_away_team_crest: Optional[str] = Field(default=None)
