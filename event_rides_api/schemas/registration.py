from pydantic import BaseModel, Field
from typing import Optional


class DriverRegistrationCreate(BaseModel):
    EventID: int = Field(gt=0)
    DriverID: int = Field(gt=0)
    Capacity: int = Field(ge=1)
    Name: Optional[str] = None


class PassengerRegistrationCreate(BaseModel):
    EventID: int = Field(gt=0)
    PassengerID: int = Field(gt=0)
    Name: Optional[str] = None


class Driver(BaseModel):
    """Driver registered for an event, with seat usage"""

    DriverRegistrationID: int
    DriverID: int
    EventID: int
    Name: Optional[str] = None
    Capacity: int
    AssignedSeats: int
    AvailableSeats: int


class Passenger(BaseModel):
    """Passenger registered for an event and the ride they are in, if any"""

    PassengerRegistrationID: int
    PassengerID: int
    EventID: int
    Name: Optional[str] = None
    AssignedRideID: Optional[int] = None
    AssignedDriverID: Optional[int] = None
