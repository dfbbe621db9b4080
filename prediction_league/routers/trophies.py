from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlmodel import Session, select

from ..database import get_session
from ..engine.trophy_info import get_trophy_info
from ..models import User, UserTrophy

router = APIRouter(prefix="/api", tags=["trophies"])


class TrophyResponse(BaseModel):
    """Schema for an unlocked trophy."""
    trophy_type: str
    name: str
    description: str
    image_path: str
    tournament_id: Optional[int] = None
    unlocked_at: datetime
    is_new: bool
    trigger_match: Optional[dict] = None


@router.get("/users/{user_id}/trophies", response_model=List[TrophyResponse])
async def get_user_trophies(
    user_id: int,
    db: Session = Depends(get_session)
):
    """Trophies of a user, oldest first."""
    if db.get(User, user_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    statement = select(UserTrophy).where(UserTrophy.user_id == user_id).order_by(UserTrophy.unlocked_at)
    trophies = []
    for trophy in db.exec(statement).all():
        info = get_trophy_info(trophy.trophy_type)
        trophies.append(
            TrophyResponse(
                trophy_type=trophy.trophy_type,
                name=info.name,
                description=info.description,
                image_path=info.image_path,
                tournament_id=trophy.tournament_id,
                unlocked_at=trophy.unlocked_at,
                is_new=trophy.is_new,
                trigger_match=trophy.trigger_match,
            )
        )
    return trophies
