from sqlalchemy import Column, String, Boolean, Integer, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    hashed_password = Column(String, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    photo_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    owned_trips = relationship("Trip", back_populates="owner", cascade="all, delete")
    collaborations = relationship("TripCollaborator", back_populates="user", cascade="all, delete")

    def to_ref(self) -> dict:
        """Snapshot embedded in events and expanded trip responses"""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "photo_url": self.photo_url,
        }
