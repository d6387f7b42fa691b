import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, status

from event_rides_api.core.config import settings
from event_rides_api.database.dynamodb import get_db_connection
from event_rides_api.results import Err, ErrorKind, call_service, validate_positive
from event_rides_api.schemas.event_ride import MAX_ID, EventRide
from event_rides_api.schemas.registration import Driver, Passenger
from event_rides_api.services.event_ride_service import EventRideService
from event_rides_api.services.exceptions import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

INVALID_RIDE_MESSAGE = "Invalid event ride data."


def get_event_ride_service():
    """Dependency to get EventRideService instance"""
    db = get_db_connection()
    return EventRideService(db, settings.table_name)


def raise_for(err: Err):
    if err.kind is ErrorKind.FAILED:
        # Collaborator said no without raising; reported as a client error.
        logger.warning("Event ride operation failed silently: %s", err.message)
    raise HTTPException(status_code=err.status_code, detail=err.message)


def create_event_ride(
    event_ride: Optional[EventRide] = Body(None),
    service: EventRideService = Depends(get_event_ride_service),
):
    """Create a new event ride"""
    if event_ride is None:
        raise_for(Err(ErrorKind.VALIDATION, INVALID_RIDE_MESSAGE))
    invalid = validate_positive(
        INVALID_RIDE_MESSAGE,
        event_id=event_ride.EventID,
        driver_id=event_ride.DriverID,
        passenger_id=event_ride.PassengerID,
        passenger_registration_id=event_ride.PassengerRegistrationID,
        driver_registration_id=event_ride.DriverRegistrationID,
    )
    if invalid:
        raise_for(invalid)

    result = call_service(service.create_event_ride, event_ride, handles=(ConflictError,))
    if isinstance(result, Err):
        raise_for(result)
    if not result.value:
        raise_for(Err(ErrorKind.FAILED, "Failed to create event ride."))
    return event_ride


def update_event_ride(
    event_ride: Optional[EventRide] = Body(None),
    service: EventRideService = Depends(get_event_ride_service),
):
    """Update an existing event ride"""
    if event_ride is None:
        raise_for(Err(ErrorKind.VALIDATION, INVALID_RIDE_MESSAGE))
    invalid = validate_positive(
        INVALID_RIDE_MESSAGE,
        id=event_ride.ID,
        event_id=event_ride.EventID,
        driver_id=event_ride.DriverID,
        passenger_id=event_ride.PassengerID,
        passenger_registration_id=event_ride.PassengerRegistrationID,
        driver_registration_id=event_ride.DriverRegistrationID,
    )
    if invalid:
        raise_for(invalid)

    result = call_service(service.update_event_ride, event_ride, handles=(NotFoundError,))
    if isinstance(result, Err):
        raise_for(result)
    if not result.value:
        raise_for(Err(ErrorKind.FAILED, "Failed to update event ride."))
    return {"message": "Event ride updated successfully."}


def get_event_ride_by_id(
    eventRideID: int = Path(le=MAX_ID),
    service: EventRideService = Depends(get_event_ride_service),
):
    """Get a single event ride"""
    invalid = validate_positive("Invalid eventRideID.", event_ride_id=eventRideID)
    if invalid:
        raise_for(invalid)

    result = call_service(
        service.get_event_ride_by_id, eventRideID, handles=(NotFoundError,)
    )
    if isinstance(result, Err):
        raise_for(result)
    return result.value


def get_event_rides_by_event_and_driver(
    eventID: int = Path(le=MAX_ID),
    driverID: int = Path(le=MAX_ID),
    service: EventRideService = Depends(get_event_ride_service),
):
    """Get all rides in a driver's car for an event"""
    invalid = validate_positive(
        "Invalid event or driver ID.", event_id=eventID, driver_id=driverID
    )
    if invalid:
        raise_for(invalid)
    return service.get_event_rides_by_event_and_driver(eventID, driverID)


def _list_passengers(lookup: Callable[[int], List[Passenger]], event_id: int):
    result = call_service(
        lookup, event_id, handles=(Exception,), unclassified=True
    )
    if isinstance(result, Err):
        logger.error("Passenger listing for event %s failed: %s", event_id, result.message)
        raise HTTPException(
            status_code=result.status_code,
            detail=f"Internal Server Error: {result.message}",
        )
    return result.value


def get_all_passengers_for_event(
    eventID: int = Path(le=MAX_ID),
    service: EventRideService = Depends(get_event_ride_service),
):
    """Get every passenger registered for an event"""
    return _list_passengers(service.get_all_passengers_for_event, eventID)


def get_passengers_with_no_car_assigned(
    eventID: int = Path(le=MAX_ID),
    service: EventRideService = Depends(get_event_ride_service),
):
    """Get passengers of an event that are not in any car yet"""
    return _list_passengers(service.get_passengers_with_no_car_assigned, eventID)


def get_all_drivers_for_event(
    eventID: int = Path(le=MAX_ID),
    service: EventRideService = Depends(get_event_ride_service),
):
    """Get every driver registered for an event"""
    drivers = service.get_all_drivers_for_event(eventID)
    if len(drivers) == 0:
        raise_for(Err(ErrorKind.NOT_FOUND, f"No drivers found for event ID {eventID}!"))
    return drivers


def get_drivers_with_available_capacity(
    eventID: int = Path(le=MAX_ID),
    service: EventRideService = Depends(get_event_ride_service),
):
    """Get drivers of an event that still have free seats"""
    drivers = service.get_drivers_with_available_capacity(eventID)
    if len(drivers) == 0:
        raise_for(
            Err(
                ErrorKind.NOT_FOUND,
                f"No drivers with available capacity found for event ID {eventID}!",
            )
        )
    return drivers


@dataclass(frozen=True)
class RouteSpec:
    method: str
    path: str
    endpoint: Callable[..., Any]
    name: str
    status_code: int = status.HTTP_200_OK
    response_model: Any = None
    # Documented error status code -> description shown in the OpenAPI schema
    errors: Dict[int, str] = field(default_factory=dict)

    def responses(self) -> Dict[int, Dict[str, str]]:
        return {code: {"description": text} for code, text in self.errors.items()}


ROUTES = [
    RouteSpec(
        "POST",
        "",
        create_event_ride,
        name="CreateEventRide",
        status_code=status.HTTP_201_CREATED,
        response_model=EventRide,
        errors={
            400: "Invalid identifiers, or the ride could not be created",
            409: "Passenger already has a ride, or the driver's car is full",
        },
    ),
    RouteSpec(
        "PUT",
        "",
        update_event_ride,
        name="UpdateEventRide",
        errors={
            400: "Invalid identifiers, or the ride could not be updated",
            404: "No event ride with this ID",
        },
    ),
    RouteSpec(
        "GET",
        "/by-event-driver/{eventID}/{driverID}",
        get_event_rides_by_event_and_driver,
        name="GetEventRidesByEventIDAndDriverID",
        response_model=List[EventRide],
        errors={400: "Event ID or driver ID is not a positive integer"},
    ),
    RouteSpec(
        "GET",
        "/passengers/no-car/{eventID}",
        get_passengers_with_no_car_assigned,
        name="GetPassengersForEventWithNoCarAssigned",
        response_model=List[Passenger],
        errors={500: "Passenger lookup failed"},
    ),
    RouteSpec(
        "GET",
        "/passengers/{eventID}",
        get_all_passengers_for_event,
        name="GetAllPassengersForEvent",
        response_model=List[Passenger],
        errors={500: "Passenger lookup failed"},
    ),
    RouteSpec(
        "GET",
        "/Drivers/{eventID}",
        get_all_drivers_for_event,
        name="GetAllDriversForEvent",
        response_model=List[Driver],
        errors={404: "No drivers registered for the event"},
    ),
    RouteSpec(
        "GET",
        "/DriversWithAvailableCapacity/{eventID}",
        get_drivers_with_available_capacity,
        name="GetDriversWithAvailableCapacityForEvent",
        response_model=List[Driver],
        errors={404: "No driver of the event has a free seat"},
    ),
    RouteSpec(
        "GET",
        "/{eventRideID}",
        get_event_ride_by_id,
        name="GetEventRideByID",
        response_model=EventRide,
        errors={
            400: "Event ride ID is not a positive integer",
            404: "No event ride with this ID",
        },
    ),
]


def build_router(routes=ROUTES) -> APIRouter:
    router = APIRouter(prefix="/api/EventRides", tags=["event-rides"])
    for route in routes:
        router.add_api_route(
            route.path,
            route.endpoint,
            methods=[route.method],
            name=route.name,
            status_code=route.status_code,
            response_model=route.response_model,
            responses=route.responses(),
        )
    return router


router = build_router()
