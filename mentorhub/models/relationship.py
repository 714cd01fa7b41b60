from sqlalchemy import Column, ForeignKey, Integer, String, TIMESTAMP, UniqueConstraint, func
from sqlalchemy.orm import relationship

from mentorhub.database import Base


class RelationshipStatus:
    ACTIVE = "active"
    INACTIVE = "inactive"
    COMPLETED = "completed"


class MentorMenteeRelationship(Base):
    __tablename__ = "mentor_mentee_relationships"

    id = Column(Integer, primary_key=True, index=True)
    mentor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    mentee_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=RelationshipStatus.ACTIVE)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("mentor_id", "mentee_id", name="uq_relationship_pair"),
    )

    mentor = relationship("User", foreign_keys=[mentor_id])
    mentee = relationship("User", foreign_keys=[mentee_id])
