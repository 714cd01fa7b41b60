# mentorhub/models/request.py
from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text, TIMESTAMP, func, text
from sqlalchemy.orm import relationship

from mentorhub.database import Base


class RequestStatus:
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"

    ACTIVE = (PENDING, ACCEPTED)


_ACTIVE_REQUEST_CLAUSE = text("status IN ('pending', 'accepted')")


class MentoringRequest(Base):
    __tablename__ = "mentoring_requests"

    id = Column(Integer, primary_key=True, index=True)
    mentee_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    mentor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(Text)
    goals = Column(Text)
    preferred_schedule = Column(String(255))
    status = Column(String(20), nullable=False, default=RequestStatus.PENDING, index=True)
    decline_reason = Column(Text)
    decided_at = Column(TIMESTAMP)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    # At most one pending/accepted request per pair, enforced by the store.
    __table_args__ = (
        Index(
            "uq_mentoring_requests_active_pair",
            "mentor_id",
            "mentee_id",
            unique=True,
            postgresql_where=_ACTIVE_REQUEST_CLAUSE,
            sqlite_where=_ACTIVE_REQUEST_CLAUSE,
        ),
    )

    mentee = relationship("User", foreign_keys=[mentee_id], back_populates="sent_requests")
    mentor = relationship("User", foreign_keys=[mentor_id], back_populates="received_requests")
