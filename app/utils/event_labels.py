# utils/event_labels.py
from typing import Callable, Dict

from app.schemas.trip.event import Event, EventType


def _route(departure, arrival) -> str:
    if departure and arrival:
        return f" ({departure} -> {arrival})"
    return ""


def _flight(event) -> str:
    name = f"{event.airline or 'Flight'} {event.flight_number or ''}".strip()
    return name + _route(event.departure_airport, event.arrival_airport)


def _train(event) -> str:
    return (event.train_operator or "Train") + _route(event.departure_station, event.arrival_station)


def _bus(event) -> str:
    name = f"Bus #{event.bus_number}" if event.bus_number else "Bus"
    return name + _route(event.departure_station, event.arrival_station)


EVENT_LABELS: Dict[EventType, Callable[[Event], str]] = {
    EventType.ARRIVAL: lambda e: f"Arrival at {e.airport or 'Airport'}",
    EventType.DEPARTURE: lambda e: f"Departure from {e.airport or 'Airport'}",
    EventType.FLIGHT: _flight,
    EventType.TRAIN: _train,
    EventType.BUS: _bus,
    EventType.RENTAL_CAR: lambda e: e.car_company or "Rental Car",
    EventType.STAY: lambda e: e.accommodation_name or "Stay",
    EventType.ACTIVITY: lambda e: e.title or "Activity",
    EventType.DESTINATION: lambda e: e.place_name or "Destination",
}

EVENT_TYPE_NAMES: Dict[EventType, str] = {
    EventType.ARRIVAL: "Arrival",
    EventType.DEPARTURE: "Departure",
    EventType.FLIGHT: "Flight",
    EventType.TRAIN: "Train",
    EventType.BUS: "Bus",
    EventType.RENTAL_CAR: "Rental Car",
    EventType.STAY: "Stay",
    EventType.ACTIVITY: "Activity",
    EventType.DESTINATION: "Destination",
}


def event_label(event: Event) -> str:
    return EVENT_LABELS[EventType(event.type)](event)


def event_type_name(event: Event) -> str:
    return EVENT_TYPE_NAMES[EventType(event.type)]
