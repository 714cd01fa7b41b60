from sqlalchemy import Boolean, Column, Float, Integer, String, Text, TIMESTAMP, func
from sqlalchemy.orm import relationship

from mentorhub.database import Base


class UserRole:
    MENTOR = "mentor"
    MENTEE = "mentee"
    ADMIN = "admin"

    ALL = (MENTOR, MENTEE, ADMIN)


# ---------------- USER (IDENTITY TABLE) ----------------
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    role = Column(String(20), nullable=False, index=True)
    hourly_rate = Column(Float, nullable=True)  # mentors only
    availability = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, onupdate=func.now())

    mentor_sessions = relationship(
        "MentoringSession", foreign_keys="MentoringSession.mentor_id", back_populates="mentor"
    )
    mentee_sessions = relationship(
        "MentoringSession", foreign_keys="MentoringSession.mentee_id", back_populates="mentee"
    )
    sent_requests = relationship(
        "MentoringRequest", foreign_keys="MentoringRequest.mentee_id", back_populates="mentee"
    )
    received_requests = relationship(
        "MentoringRequest", foreign_keys="MentoringRequest.mentor_id", back_populates="mentor"
    )
