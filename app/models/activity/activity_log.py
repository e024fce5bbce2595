from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, JSON, Index, func
from sqlalchemy.orm import relationship
from app.core.database import Base
import enum
import sqlalchemy as sa


class ActivityAction(str, enum.Enum):
    TRIP_CREATE = "trip_create"
    TRIP_UPDATE = "trip_update"
    TRIP_DELETE = "trip_delete"
    TRIP_SHARE = "trip_share"
    TRIP_UNSHARE = "trip_unshare"
    EVENT_CREATE = "event_create"
    EVENT_UPDATE = "event_update"
    EVENT_DELETE = "event_delete"
    EVENT_LIKE = "event_like"
    EVENT_DISLIKE = "event_dislike"
    EVENT_VOTE_REMOVE = "event_vote_remove"
    NOTE_UPDATE = "note_update"
    COLLABORATOR_ADD = "collaborator_add"
    COLLABORATOR_REMOVE = "collaborator_remove"
    COLLABORATOR_ROLE_CHANGE = "collaborator_role_change"


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # No foreign key: entries outlive the trip they describe
    trip_id = Column(Integer, nullable=False)
    event_id = Column(String, nullable=True)

    action_enum = sa.Enum(
        ActivityAction,
        name="activityaction",
        values_callable=lambda obj: [e.value for e in obj]
    )
    action_type = Column(action_enum, nullable=False)
    description = Column(Text, nullable=False)
    details = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User")

    __table_args__ = (
        Index("ix_activity_logs_trip_created", "trip_id", "created_at"),
        Index("ix_activity_logs_user_created", "user_id", "created_at"),
    )
