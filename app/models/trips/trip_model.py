from sqlalchemy import Column, Integer, String, Text, Boolean, Date, ForeignKey, DateTime, JSON, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class Trip(Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True, default="")
    thumbnail_url = Column(String, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    owner = relationship("User", back_populates="owned_trips")

    # Events live inside the trip document, in submission order
    events = Column(JSON, nullable=False, default=list)
    # Shared notepad: current content plus edit history
    note = Column(JSON, nullable=True)

    is_public = Column(Boolean, nullable=False, default=False)
    share_token = Column(String, unique=True, index=True, nullable=True)

    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    collaborators = relationship(
        "TripCollaborator",
        back_populates="trip",
        cascade="all, delete-orphan",
        order_by="TripCollaborator.id",
    )

    __mapper_args__ = {"version_id_col": version}

    def member_ids(self) -> list[int]:
        return [self.owner_id] + [c.user_id for c in self.collaborators]
