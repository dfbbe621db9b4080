from datetime import datetime, UTC
from typing import Optional
from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field, UniqueConstraint


class UserTrophy(SQLModel, table=True):
    __tablename__ = "user_trophies"
    __table_args__ = (UniqueConstraint("user_id", "trophy_type", name="unique_user_trophy"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    trophy_type: str = Field(index=True)
    tournament_id: Optional[int] = Field(default=None, foreign_key="tournaments.id")
    unlocked_at: datetime
    is_new: bool = Field(default=True)
    trigger_match: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
