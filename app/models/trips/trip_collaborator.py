from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.core.database import Base
import enum
import sqlalchemy as sa


class CollaboratorRole(str, enum.Enum):
    EDITOR = "editor"
    VIEWER = "viewer"


class TripCollaborator(Base):
    __tablename__ = "trip_collaborators"

    id = Column(Integer, primary_key=True, index=True)

    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    collaborator_role_enum = sa.Enum(
        CollaboratorRole,
        name="collaboratorrole",
        values_callable=lambda obj: [e.value for e in obj]
    )
    role = Column(collaborator_role_enum, nullable=False, default=CollaboratorRole.VIEWER)

    added_at = Column(DateTime(timezone=True), server_default=func.now())

    # A user collaborates on a trip at most once
    __table_args__ = (
        UniqueConstraint('trip_id', 'user_id', name='uq_trip_collaborator'),
    )

    trip = relationship("Trip", back_populates="collaborators")
    user = relationship("User", back_populates="collaborations")
