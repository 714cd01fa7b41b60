from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from mentorhub import models


def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_with_role(db: Session, user_id: int, role: str) -> Optional[models.User]:
    return db.query(models.User).filter(
        models.User.id == user_id,
        models.User.role == role,
        models.User.is_active.is_(True),
    ).first()


def lock_users(db: Session, user_ids: Iterable[int]) -> List[models.User]:
    """SELECT ... FOR UPDATE on the given users, always in id order."""
    ids = sorted(set(user_ids))
    return (
        db.query(models.User)
        .filter(models.User.id.in_(ids))
        .order_by(models.User.id)
        .with_for_update()
        .all()
    )
