# mentorhub/models/session.py
from datetime import timedelta

from sqlalchemy import Column, Float, ForeignKey, Integer, String, Text, TIMESTAMP, func
from sqlalchemy.orm import relationship

from mentorhub.database import Base


class SessionStatus:
    UPCOMING = "upcoming"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    ACTIVE = (UPCOMING, IN_PROGRESS)
    ALL = (UPCOMING, IN_PROGRESS, COMPLETED, CANCELLED)


# Legal status moves; anything not listed is rejected.
SESSION_TRANSITIONS = {
    SessionStatus.UPCOMING: (SessionStatus.IN_PROGRESS, SessionStatus.CANCELLED),
    SessionStatus.IN_PROGRESS: (SessionStatus.COMPLETED, SessionStatus.CANCELLED),
    SessionStatus.COMPLETED: (),
    SessionStatus.CANCELLED: (),
}


class PaymentStatus:
    PENDING = "pending"
    PAID = "paid"


class MentoringSession(Base):
    __tablename__ = "mentoring_sessions"

    id = Column(Integer, primary_key=True, index=True)
    mentor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    mentee_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    message = Column(Text)
    scheduled_at = Column(TIMESTAMP, nullable=False, index=True)
    duration = Column(Integer, nullable=False, default=60)  # minutes
    amount = Column(Float, nullable=False, default=0.0)
    status = Column(String(20), nullable=False, default=SessionStatus.UPCOMING, index=True)
    actual_start_time = Column(TIMESTAMP)
    actual_end_time = Column(TIMESTAMP)
    notes = Column(Text)
    summary = Column(Text)
    cancellation_reason = Column(Text)
    reschedule_reason = Column(Text)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING)
    meeting_link = Column(String(255))
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    mentor = relationship("User", foreign_keys=[mentor_id], back_populates="mentor_sessions")
    mentee = relationship("User", foreign_keys=[mentee_id], back_populates="mentee_sessions")

    @property
    def ends_at(self):
        return self.scheduled_at + timedelta(minutes=self.duration or 0)

    def is_participant(self, user_id: int) -> bool:
        return user_id in (self.mentor_id, self.mentee_id)

    def counterparty_id(self, user_id: int) -> int:
        return self.mentee_id if user_id == self.mentor_id else self.mentor_id
