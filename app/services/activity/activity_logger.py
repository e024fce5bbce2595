from typing import Any, Dict, Optional

from app.core.config import settings
from app.core.logger import logger
from app.models.activity.activity_log import ActivityAction
from app.schemas.activity.activity_log import ActivityLogEntry
from app.services.activity.activity_queue import ActivityLogQueue
from app.services.activity.activity_service import persist_activity_entry
from app.services.trips.event_reconciler import DiffKind, EventDiff
from app.utils.event_labels import event_label, event_type_name

DIFF_ACTIONS = {
    DiffKind.CREATE: ActivityAction.EVENT_CREATE,
    DiffKind.UPDATE: ActivityAction.EVENT_UPDATE,
    DiffKind.DELETE: ActivityAction.EVENT_DELETE,
}


def _visible_values(event) -> Dict[str, Any]:
    dumped = event.model_dump(mode="json", include=set(type(event).visible_fields()))
    return {k: v for k, v in dumped.items() if v not in (None, "", [], {})}


def build_event_entry(diff: EventDiff, trip_id: int, trip_name: str, user_id: int) -> ActivityLogEntry:
    event = diff.event
    label = event_label(event)
    type_name = event_type_name(event)
    details: Dict[str, Any] = {
        "tripName": trip_name,
        "eventType": event.type,
        "eventId": event.id,
        "eventName": label,
    }

    if diff.kind == DiffKind.CREATE:
        description = f'Added {type_name} "{label}" to trip "{trip_name}"'
        details["event"] = _visible_values(event)
    elif diff.kind == DiffKind.UPDATE:
        description = (
            f'Updated {type_name} "{label}" in trip "{trip_name}" '
            f'(changed: {", ".join(diff.changed_fields)})'
        )
        details["changedFields"] = diff.changed_fields
        details["previousValues"] = diff.previous_values
        details["newValues"] = diff.new_values
    else:
        description = f'Removed {type_name} "{label}" from trip "{trip_name}"'
        details["startDate"] = event.start_date
        details["endDate"] = event.end_date

    return ActivityLogEntry(
        user_id=user_id,
        trip_id=trip_id,
        event_id=event.id,
        action_type=DIFF_ACTIONS[diff.kind],
        description=description,
        details=details,
    )


class ActivityLogger:
    """Fire-and-forget front of the activity log: ``log`` never raises."""

    def __init__(self, queue: ActivityLogQueue):
        self.queue = queue

    def log(self, entry: ActivityLogEntry) -> None:
        try:
            self.queue.enqueue(entry)
        except Exception:
            logger.exception(f"Could not record activity {entry.action_type.value} for trip {entry.trip_id}")

    def log_event_diff(self, diff: EventDiff, trip_id: int, trip_name: str, user_id: int) -> None:
        try:
            entry = build_event_entry(diff, trip_id, trip_name, user_id)
        except Exception:
            logger.exception(f"Could not describe {diff.kind.value} of event {diff.event_id} on trip {trip_id}")
            return
        self.log(entry)

    def log_trip(
        self,
        action: ActivityAction,
        trip_id: int,
        user_id: Optional[int],
        description: str,
        details: Optional[Dict[str, Any]] = None,
        event_id: Optional[str] = None,
    ) -> None:
        self.log(ActivityLogEntry(
            user_id=user_id,
            trip_id=trip_id,
            event_id=event_id,
            action_type=action,
            description=description,
            details=details or {},
        ))


activity_queue = ActivityLogQueue(
    sink=persist_activity_entry,
    maxsize=settings.ACTIVITY_LOG_QUEUE_SIZE,
    max_retries=settings.ACTIVITY_LOG_MAX_RETRIES,
    base_delay=settings.ACTIVITY_LOG_RETRY_BASE_DELAY,
    max_delay=settings.ACTIVITY_LOG_RETRY_MAX_DELAY,
)


def get_activity_logger() -> ActivityLogger:
    return ActivityLogger(activity_queue)
