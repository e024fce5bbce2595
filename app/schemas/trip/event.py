from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from app.schemas.base import CamelModel
from app.schemas.user.user import UserRef


class EventType(str, Enum):
    ARRIVAL = "arrival"
    DEPARTURE = "departure"
    FLIGHT = "flight"
    TRAIN = "train"
    BUS = "bus"
    RENTAL_CAR = "rental_car"
    STAY = "stay"
    ACTIVITY = "activity"
    DESTINATION = "destination"


class EventStatus(str, Enum):
    CONFIRMED = "confirmed"
    EXPLORING = "exploring"


# Owned by the server or by the vote operation, never diffed
SERVER_FIELDS = frozenset({
    "id", "type",
    "created_by", "created_at", "updated_by", "updated_at",
    "likes", "dislikes",
})


class Location(CamelModel):
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None


class EventBase(CamelModel):
    id: str = Field(min_length=1)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    status: EventStatus = EventStatus.CONFIRMED
    notes: Optional[str] = None
    thumbnail_url: Optional[str] = None
    location: Optional[Location] = None
    source: Optional[str] = None

    created_by: Optional[UserRef] = None
    created_at: Optional[datetime] = None
    updated_by: Optional[UserRef] = None
    updated_at: Optional[datetime] = None

    likes: List[int] = Field(default_factory=list)
    dislikes: List[int] = Field(default_factory=list)

    @classmethod
    def visible_fields(cls) -> list[str]:
        return [name for name in cls.model_fields if name not in SERVER_FIELDS]


class _AirportEvent(EventBase):
    time: Optional[str] = None
    airport: Optional[str] = None
    airline: Optional[str] = None
    flight_number: Optional[str] = None
    terminal: Optional[str] = None
    gate: Optional[str] = None
    booking_reference: Optional[str] = None


class ArrivalEvent(_AirportEvent):
    type: Literal["arrival"] = "arrival"


class DepartureEvent(_AirportEvent):
    type: Literal["departure"] = "departure"


class FlightEvent(EventBase):
    type: Literal["flight"] = "flight"
    airline: Optional[str] = None
    flight_number: Optional[str] = None
    departure_airport: Optional[str] = None
    arrival_airport: Optional[str] = None
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    terminal: Optional[str] = None
    gate: Optional[str] = None
    booking_reference: Optional[str] = None


class TrainEvent(EventBase):
    type: Literal["train"] = "train"
    train_operator: Optional[str] = None
    train_number: Optional[str] = None
    departure_station: Optional[str] = None
    arrival_station: Optional[str] = None
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    carriage_number: Optional[str] = None
    seat_number: Optional[str] = None
    booking_reference: Optional[str] = None


class BusEvent(EventBase):
    type: Literal["bus"] = "bus"
    bus_operator: Optional[str] = None
    bus_number: Optional[str] = None
    departure_station: Optional[str] = None
    arrival_station: Optional[str] = None
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    seat_number: Optional[str] = None
    booking_reference: Optional[str] = None


class RentalCarEvent(EventBase):
    type: Literal["rental_car"] = "rental_car"
    car_company: Optional[str] = None
    car_type: Optional[str] = None
    pickup_location: Optional[str] = None
    dropoff_location: Optional[str] = None
    pickup_time: Optional[str] = None
    dropoff_time: Optional[str] = None
    dropoff_date: Optional[str] = None
    booking_reference: Optional[str] = None
    license_plate: Optional[str] = None


class StayEvent(EventBase):
    type: Literal["stay"] = "stay"
    accommodation_name: Optional[str] = None
    address: Optional[str] = None
    check_in_date: Optional[str] = None
    check_in_time: Optional[str] = None
    check_out_date: Optional[str] = None
    check_out_time: Optional[str] = None
    reservation_number: Optional[str] = None
    contact_info: Optional[str] = None


class ActivityEvent(EventBase):
    type: Literal["activity"] = "activity"
    title: Optional[str] = None
    activity_type: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None


class DestinationEvent(EventBase):
    type: Literal["destination"] = "destination"
    place_name: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None
    opening_hours: Optional[str] = None


Event = Annotated[
    Union[
        ArrivalEvent,
        DepartureEvent,
        FlightEvent,
        TrainEvent,
        BusEvent,
        RentalCarEvent,
        StayEvent,
        ActivityEvent,
        DestinationEvent,
    ],
    Field(discriminator="type"),
]

EventListAdapter = TypeAdapter(List[Event])


def load_events(raw: Optional[list]) -> list:
    """Parse the stored JSON event list of a trip"""
    return EventListAdapter.validate_python(raw or [])


def dump_events(events: list) -> list[dict]:
    """Serialize events for the trip's JSON column"""
    return [event.model_dump(mode="json") for event in events]
