import logging
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlmodel import Session

from .. import config as settings
from ..database import get_session
from ..services.trophies import check_all_trophies

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cron", tags=["cron"])


@router.post("/check-trophies")
async def check_trophies(
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_session)
):
    """Scheduled trophy sweep. Requires `Authorization: Bearer <CRON_SECRET>`."""
    if not settings.CRON_SECRET or authorization != f"Bearer {settings.CRON_SECRET}":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )

    if not settings.CRON_ENABLED:
        logger.info("Trophy sweep skipped, cron disabled")
        return {"status": "disabled"}

    summary = check_all_trophies(db, datetime.now(timezone.utc))
    return {"status": "ok", **summary}
