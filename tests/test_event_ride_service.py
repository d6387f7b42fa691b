import pytest
from event_rides_api.schemas.event_ride import EventRide
from event_rides_api.schemas.registration import (
    Driver,
    DriverRegistrationCreate,
    Passenger,
    PassengerRegistrationCreate,
)
from event_rides_api.services.event_ride_service import EventRideService
from event_rides_api.services.exceptions import ConflictError, NotFoundError
from tests.conftest import TEST_TABLE_NAME

EVENT_ID = 5


@pytest.fixture
def ride_service(dynamodb_resource):
    """Create EventRideService instance with test table"""
    return EventRideService(dynamodb_resource, TEST_TABLE_NAME)


@pytest.fixture
def drivers(ride_service):
    """Two drivers for the event: one with two seats, one with a single seat"""
    return [
        ride_service.register_driver(
            DriverRegistrationCreate(EventID=EVENT_ID, DriverID=21, Capacity=2, Name="Dana")
        ),
        ride_service.register_driver(
            DriverRegistrationCreate(EventID=EVENT_ID, DriverID=22, Capacity=1)
        ),
    ]


@pytest.fixture
def passengers(ride_service):
    return [
        ride_service.register_passenger(
            PassengerRegistrationCreate(EventID=EVENT_ID, PassengerID=pid)
        )
        for pid in (31, 32, 33)
    ]


def _ride(driver: Driver, passenger: Passenger, ride_id: int = 0) -> EventRide:
    return EventRide(
        ID=ride_id,
        EventID=EVENT_ID,
        DriverID=driver.DriverID,
        PassengerID=passenger.PassengerID,
        DriverRegistrationID=driver.DriverRegistrationID,
        PassengerRegistrationID=passenger.PassengerRegistrationID,
    )


def test_register_driver(ride_service):
    driver = ride_service.register_driver(
        DriverRegistrationCreate(EventID=EVENT_ID, DriverID=21, Capacity=4, Name="Dana")
    )

    assert driver.DriverRegistrationID == 1
    assert driver.Name == "Dana"
    assert driver.Capacity == 4
    assert driver.AssignedSeats == 0
    assert driver.AvailableSeats == 4


def test_registration_ids_increase(ride_service, passengers):
    assert [p.PassengerRegistrationID for p in passengers] == [1, 2, 3]


def test_create_event_ride_success(ride_service, drivers, passengers):
    ride = _ride(drivers[0], passengers[0])

    assert ride_service.create_event_ride(ride) is True
    assert ride.ID == 1

    stored = ride_service.get_event_ride_by_id(ride.ID)
    assert stored == ride

    driver = ride_service.get_all_drivers_for_event(EVENT_ID)[0]
    assert driver.AssignedSeats == 1
    assert driver.AvailableSeats == 1

    passenger = ride_service.get_all_passengers_for_event(EVENT_ID)[0]
    assert passenger.AssignedRideID == ride.ID
    assert passenger.AssignedDriverID == drivers[0].DriverID


def test_create_event_ride_twice_for_passenger_conflicts(
    ride_service, drivers, passengers
):
    ride_service.create_event_ride(_ride(drivers[0], passengers[0]))

    with pytest.raises(ConflictError) as exc_info:
        ride_service.create_event_ride(_ride(drivers[1], passengers[0]))

    assert "already has a ride" in str(exc_info.value)
    # The second driver's seat was not consumed
    second = ride_service.get_all_drivers_for_event(EVENT_ID)[1]
    assert second.AssignedSeats == 0


def test_create_event_ride_full_car_conflicts(ride_service, drivers, passengers):
    ride_service.create_event_ride(_ride(drivers[1], passengers[0]))

    with pytest.raises(ConflictError) as exc_info:
        ride_service.create_event_ride(_ride(drivers[1], passengers[1]))

    assert "no available capacity" in str(exc_info.value)
    assert ride_service.get_passengers_with_no_car_assigned(EVENT_ID)[0].PassengerID == 32


def test_create_event_ride_unknown_registration_fails(
    ride_service, drivers, passengers
):
    ride = _ride(drivers[0], passengers[0])
    ride.DriverRegistrationID = 999

    assert ride_service.create_event_ride(ride) is False
    assert ride_service.get_all_passengers_for_event(EVENT_ID)[0].AssignedRideID is None
    assert ride.ID == 0


def test_create_event_ride_mismatched_driver_fails(ride_service, drivers, passengers):
    ride = _ride(drivers[0], passengers[0])
    ride.DriverID = drivers[1].DriverID

    assert ride_service.create_event_ride(ride) is False


def test_get_event_ride_by_id_not_found(ride_service):
    with pytest.raises(NotFoundError):
        ride_service.get_event_ride_by_id(12345)


def test_get_event_rides_by_event_and_driver(ride_service, drivers, passengers):
    ride_service.create_event_ride(_ride(drivers[0], passengers[0]))
    ride_service.create_event_ride(_ride(drivers[1], passengers[1]))
    ride_service.create_event_ride(_ride(drivers[0], passengers[2]))

    rides = ride_service.get_event_rides_by_event_and_driver(EVENT_ID, drivers[0].DriverID)

    assert [r.PassengerID for r in rides] == [31, 33]
    assert ride_service.get_event_rides_by_event_and_driver(EVENT_ID, 999) == []


def test_passenger_listings(ride_service, drivers, passengers):
    ride_service.create_event_ride(_ride(drivers[0], passengers[1]))

    everyone = ride_service.get_all_passengers_for_event(EVENT_ID)
    unassigned = ride_service.get_passengers_with_no_car_assigned(EVENT_ID)

    assert [p.PassengerID for p in everyone] == [31, 32, 33]
    assert [p.PassengerID for p in unassigned] == [31, 33]


def test_driver_listings(ride_service, drivers, passengers):
    ride_service.create_event_ride(_ride(drivers[1], passengers[0]))

    available = ride_service.get_drivers_with_available_capacity(EVENT_ID)

    assert len(ride_service.get_all_drivers_for_event(EVENT_ID)) == 2
    assert [d.DriverID for d in available] == [21]


def test_listings_for_unknown_event_are_empty(ride_service, drivers, passengers):
    assert ride_service.get_all_drivers_for_event(777) == []
    assert ride_service.get_all_passengers_for_event(777) == []


def test_update_event_ride_moves_seat(ride_service, drivers, passengers):
    ride = _ride(drivers[0], passengers[0])
    ride_service.create_event_ride(ride)

    moved = _ride(drivers[1], passengers[0], ride_id=ride.ID)
    assert ride_service.update_event_ride(moved) is True

    first, second = ride_service.get_all_drivers_for_event(EVENT_ID)
    assert first.AssignedSeats == 0
    assert second.AssignedSeats == 1
    assert ride_service.get_event_ride_by_id(ride.ID).DriverID == drivers[1].DriverID
    passenger = ride_service.get_all_passengers_for_event(EVENT_ID)[0]
    assert passenger.AssignedDriverID == drivers[1].DriverID


def test_update_event_ride_swaps_passenger(ride_service, drivers, passengers):
    ride = _ride(drivers[0], passengers[0])
    ride_service.create_event_ride(ride)

    assert ride_service.update_event_ride(_ride(drivers[0], passengers[1], ride.ID))

    unassigned = ride_service.get_passengers_with_no_car_assigned(EVENT_ID)
    assert [p.PassengerID for p in unassigned] == [31, 33]


def test_update_event_ride_into_full_car_fails(ride_service, drivers, passengers):
    ride_service.create_event_ride(_ride(drivers[1], passengers[0]))
    ride = _ride(drivers[0], passengers[1])
    ride_service.create_event_ride(ride)

    assert ride_service.update_event_ride(_ride(drivers[1], passengers[1], ride.ID)) is False
    # Nothing moved
    assert ride_service.get_event_ride_by_id(ride.ID).DriverID == drivers[0].DriverID


def test_update_event_ride_not_found(ride_service, drivers, passengers):
    with pytest.raises(NotFoundError) as exc_info:
        ride_service.update_event_ride(_ride(drivers[0], passengers[0], ride_id=404))

    assert "404" in str(exc_info.value)


def test_rejected_create_keeps_record_id(ride_service, drivers, passengers):
    ride_service.create_event_ride(_ride(drivers[1], passengers[0]))
    ride = _ride(drivers[1], passengers[1])

    with pytest.raises(ConflictError):
        ride_service.create_event_ride(ride)

    assert ride.ID == 0


def test_create_event_ride_fills_car_to_capacity(ride_service, drivers, passengers):
    """A two-seat car takes exactly two passengers"""
    assert ride_service.create_event_ride(_ride(drivers[0], passengers[0]))
    assert ride_service.create_event_ride(_ride(drivers[0], passengers[1]))

    with pytest.raises(ConflictError):
        ride_service.create_event_ride(_ride(drivers[0], passengers[2]))

    driver = ride_service.get_all_drivers_for_event(EVENT_ID)[0]
    assert driver.AssignedSeats == 2
    assert driver.AvailableSeats == 0
