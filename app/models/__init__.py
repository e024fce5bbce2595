from .user.user import User
from .trips.trip_model import Trip
from .trips.trip_collaborator import TripCollaborator, CollaboratorRole
from .activity.activity_log import ActivityLog, ActivityAction
