from pydantic import BaseModel, Field

# Identifiers are 32-bit signed integers on the wire
MAX_ID = 2**31 - 1


class EventRide(BaseModel):
    """A driver/passenger pairing for one event.

    Identifiers default to 0 so that an omitted field reaches the
    endpoint and is rejected there as non-positive.  Values above
    ``MAX_ID`` are rejected by the parser.
    """

    ID: int = Field(default=0, le=MAX_ID)
    EventID: int = Field(default=0, le=MAX_ID)
    DriverID: int = Field(default=0, le=MAX_ID)
    PassengerID: int = Field(default=0, le=MAX_ID)
    DriverRegistrationID: int = Field(default=0, le=MAX_ID)
    PassengerRegistrationID: int = Field(default=0, le=MAX_ID)
