from datetime import datetime, UTC
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint


class Prediction(SQLModel, table=True):
    __tablename__ = "predictions"
    __table_args__ = (
        UniqueConstraint("user_id", "tournament_id", "match_id", name="unique_user_tournament_match"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    tournament_id: int = Field(foreign_key="tournaments.id", index=True)
    match_id: int = Field(foreign_key="imported_matches.id", index=True)

    # Prediction
    predicted_home_score: int
    predicted_away_score: int
    is_default_prediction: bool = Field(default=False)
    predicted_qualifier: Optional[str] = Field(default=None)  # home / away, knockout only

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
