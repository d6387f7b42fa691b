from .event_ride import EventRide
from .registration import (
    Driver,
    DriverRegistrationCreate,
    Passenger,
    PassengerRegistrationCreate,
)

__all__ = [
    "EventRide",
    "Driver",
    "DriverRegistrationCreate",
    "Passenger",
    "PassengerRegistrationCreate",
]
