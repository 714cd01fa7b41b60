from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mentorhub.database import get_db
from mentorhub.schemas import Actor
from mentorhub.services import dashboard_service
from mentorhub.utils.security import get_current_actor, require_mentor

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


# ─────────────────────────────────────────
# GET /dashboard/stats
# ─────────────────────────────────────────
@router.get("/stats")
def get_stats(
    period: str = Query("month", pattern="^(week|month|year)$"),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    return dashboard_service.session_stats(db, actor.id, period=period)


# ─────────────────────────────────────────
# GET /dashboard/earnings
# ─────────────────────────────────────────
@router.get("/earnings")
def get_earnings(
    actor: Actor = Depends(require_mentor),
    db: Session = Depends(get_db)
):
    return dashboard_service.mentor_earnings(db, actor.id)
