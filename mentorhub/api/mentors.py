from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mentorhub.database import get_db
from mentorhub.schemas import Actor, MentorListing
from mentorhub.services import mentor_directory
from mentorhub.utils.security import get_current_actor

router = APIRouter(prefix="/mentors", tags=["Mentors"])


# ─────────────────────────────────────────
# GET /mentors
# ─────────────────────────────────────────
@router.get("", response_model=List[MentorListing])
def list_mentors(
    search: Optional[str] = Query(None, max_length=100),
    max_rate: Optional[float] = Query(None, gt=0),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=50),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Active mentors, flagged with the caller's relationship and pending request."""
    return mentor_directory.list_mentors(
        db,
        actor.id,
        search=search,
        max_rate=max_rate,
        page=page,
        limit=limit,
    )
