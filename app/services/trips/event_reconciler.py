"""
Reconciliation of a trip's stored events against a submitted event list.

Events are matched by their client-generated ``id``. Matching events are
updates, unmatched submitted events are creates and stored events missing
from the submission are deletes. Authorship is stamped here; persistence and
activity logging are left to the caller.
"""
import enum
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.core.exceptions import ValidationFailedError
from app.schemas.trip.event import Event, EventStatus
from app.schemas.user.user import UserRef
from app.utils.normalize import normalize_value


class DiffKind(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class EventDiff(BaseModel):
    kind: DiffKind
    event_id: str
    # Merged event for create/update, removed event for delete
    event: Event
    previous: Optional[Event] = None
    changed_fields: List[str] = Field(default_factory=list)
    previous_values: Dict[str, Any] = Field(default_factory=dict)
    new_values: Dict[str, Any] = Field(default_factory=dict)


class ReconcileResult(BaseModel):
    merged_events: List[Event]
    diffs: List[EventDiff]

    def ordered_diffs(self) -> List[EventDiff]:
        """Deletes first, then creates and updates in submission order."""
        deletes = [d for d in self.diffs if d.kind == DiffKind.DELETE]
        others = [d for d in self.diffs if d.kind != DiffKind.DELETE]
        return deletes + others


def tracked_fields(old: Event, new: Event) -> List[str]:
    fields = ["type"]
    for name in list(type(old).visible_fields()) + list(type(new).visible_fields()):
        if name not in fields:
            fields.append(name)
    return fields


def diff_fields(old: Event, new: Event) -> List[str]:
    changed = []
    for name in tracked_fields(old, new):
        before = normalize_value(getattr(old, name, None))
        after = normalize_value(getattr(new, name, None))
        if before != after:
            changed.append(name)
    return changed


def _field_value(event: Event, name: str):
    value = getattr(event, name, None)
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, enum.Enum):
        return value.value
    return value


def duplicate_event_ids(events: List[Event]) -> List[str]:
    seen, duplicates = set(), []
    for event in events:
        if event.id in seen and event.id not in duplicates:
            duplicates.append(event.id)
        seen.add(event.id)
    return duplicates


def reconcile(
    old_events: List[Event],
    new_events: List[Event],
    actor: UserRef,
    now: datetime,
) -> ReconcileResult:
    old_by_id = {event.id: event for event in old_events}
    new_ids = {event.id for event in new_events}

    merged: List[Event] = []
    diffs: List[EventDiff] = []

    for incoming in new_events:
        old = old_by_id.get(incoming.id)

        if old is None:
            created = incoming.model_copy(update={
                "created_by": actor,
                "created_at": now,
                "updated_by": actor,
                "updated_at": now,
                "likes": [],
                "dislikes": [],
            })
            merged.append(created)
            diffs.append(EventDiff(kind=DiffKind.CREATE, event_id=created.id, event=created))
            continue

        changed = diff_fields(old, incoming)
        stamp = {
            "created_by": old.created_by,
            "created_at": old.created_at,
            "updated_by": actor if changed else old.updated_by,
            "updated_at": now if changed else old.updated_at,
            # Vote lists change only through apply_vote
            "likes": old.likes,
            "dislikes": old.dislikes,
        }
        updated = incoming.model_copy(update=stamp)
        merged.append(updated)

        if changed:
            diffs.append(EventDiff(
                kind=DiffKind.UPDATE,
                event_id=updated.id,
                event=updated,
                previous=old,
                changed_fields=changed,
                previous_values={name: _field_value(old, name) for name in changed},
                new_values={name: _field_value(updated, name) for name in changed},
            ))

    for old in old_events:
        if old.id not in new_ids:
            diffs.append(EventDiff(kind=DiffKind.DELETE, event_id=old.id, event=old))

    return ReconcileResult(merged_events=merged, diffs=diffs)


VOTES = ("like", "dislike", "remove")


def apply_vote(event: Event, user_id: int, vote: str) -> Event:
    """Record ``user_id``'s vote on an exploring event.

    A user holds at most one of like/dislike; ``remove`` clears both.
    """
    if vote not in VOTES:
        raise ValidationFailedError(f"Unknown vote '{vote}'")
    if event.status != EventStatus.EXPLORING:
        raise ValidationFailedError("Only events being explored can be voted on")

    likes = [uid for uid in event.likes if uid != user_id]
    dislikes = [uid for uid in event.dislikes if uid != user_id]
    if vote == "like":
        likes.append(user_id)
    elif vote == "dislike":
        dislikes.append(user_id)

    return event.model_copy(update={"likes": likes, "dislikes": dislikes})
