import logging
from typing import Any, Dict, List

from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from event_rides_api.schemas.event_ride import EventRide
from event_rides_api.schemas.registration import (
    Driver,
    DriverRegistrationCreate,
    Passenger,
    PassengerRegistrationCreate,
)
from event_rides_api.services.exceptions import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

RIDES_BY_EVENT_DRIVER_INDEX = "GSI_RidesByEventDriver"


class EventRideService:
    """Business logic for pairing drivers and passengers at an event.

    Rides live under ``RIDE#<id>``; driver and passenger registrations
    live in the event partition ``EVENT#<eventId>``.  Seat usage and
    passenger assignment are kept on the registration items and changed
    in the same transaction as the ride itself.
    """

    def __init__(self, dynamodb_resource, table_name="EventRides"):
        self.dynamodb = dynamodb_resource
        self.table = dynamodb_resource.Table(table_name)

    # ------------------------------------------------------------------
    # Registrations
    # ------------------------------------------------------------------

    def register_driver(self, data: DriverRegistrationCreate) -> Driver:
        """Register a driver for an event with a number of free seats"""
        registration_id = self._next_id("DRIVER_REG")

        item = {
            **self._driver_key(data.EventID, registration_id),
            "registrationId": registration_id,
            "eventId": data.EventID,
            "driverId": data.DriverID,
            "capacity": data.Capacity,
            "assignedSeats": 0,
        }
        if data.Name:
            item["name"] = data.Name

        try:
            self.table.put_item(Item=item)
        except ClientError as e:
            raise Exception(f"Failed to register driver: {e}")

        logger.info(
            "Registered driver %s for event %s (registration %s)",
            data.DriverID,
            data.EventID,
            registration_id,
        )
        return self._to_driver(item)

    def register_passenger(self, data: PassengerRegistrationCreate) -> Passenger:
        """Register a passenger for an event"""
        registration_id = self._next_id("PASSENGER_REG")

        item = {
            **self._passenger_key(data.EventID, registration_id),
            "registrationId": registration_id,
            "eventId": data.EventID,
            "passengerId": data.PassengerID,
        }
        if data.Name:
            item["name"] = data.Name

        try:
            self.table.put_item(Item=item)
        except ClientError as e:
            raise Exception(f"Failed to register passenger: {e}")

        logger.info(
            "Registered passenger %s for event %s (registration %s)",
            data.PassengerID,
            data.EventID,
            registration_id,
        )
        return self._to_passenger(item)

    # ------------------------------------------------------------------
    # Rides
    # ------------------------------------------------------------------

    def create_event_ride(self, ride: EventRide) -> bool:
        """
        Put a passenger into a driver's car.

        Sets ``ride.ID`` only once the ride is stored.  Returns False when
        either registration is missing or belongs to someone else, and
        raises ConflictError when the passenger already rides with someone
        or the car is full.
        """
        # A rejected create leaves a gap in the counter; ride IDs are not dense.
        new_ride = ride.model_copy(update={"ID": self._next_id("EVENT_RIDE")})

        passenger_key = self._passenger_key(ride.EventID, ride.PassengerRegistrationID)
        driver_key = self._driver_key(ride.EventID, ride.DriverRegistrationID)

        transact_items = [
            {
                "Put": {
                    "TableName": self.table.table_name,
                    "Item": self._ride_item(new_ride),
                    "ConditionExpression": "attribute_not_exists(PK)",
                }
            },
            self._claim_passenger(passenger_key, new_ride),
            self._claim_seat(driver_key, new_ride),
        ]

        try:
            self.dynamodb.meta.client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            if e.response["Error"]["Code"] != "TransactionCanceledException":
                raise Exception(f"Failed to create event ride: {e}")
            return self._explain_rejected_create(ride, passenger_key, driver_key)

        ride.ID = new_ride.ID
        logger.info(
            "Created event ride %s: driver %s, passenger %s, event %s",
            ride.ID,
            ride.DriverID,
            ride.PassengerID,
            ride.EventID,
        )
        return True

    def update_event_ride(self, ride: EventRide) -> bool:
        """
        Rewrite an existing ride, moving the seat and the passenger
        assignment when the registrations change.

        Raises NotFoundError for an unknown ride ID.  Returns False when a
        registration is missing, mismatched, already taken or full.
        """
        existing = self.table.get_item(Key=self._ride_key(ride.ID)).get("Item")
        if not existing:
            raise NotFoundError(f"Event ride with ID {ride.ID} not found.")
        old = self._to_event_ride(existing)

        transact_items = [
            {
                "Put": {
                    "TableName": self.table.table_name,
                    "Item": self._ride_item(ride),
                    "ConditionExpression": "attribute_exists(PK)",
                }
            }
        ]

        old_driver_key = self._driver_key(old.EventID, old.DriverRegistrationID)
        new_driver_key = self._driver_key(ride.EventID, ride.DriverRegistrationID)
        if old_driver_key != new_driver_key:
            transact_items.append(self._release_seat(old_driver_key))
            transact_items.append(self._claim_seat(new_driver_key, ride))
        else:
            transact_items.append(
                {
                    "ConditionCheck": {
                        "TableName": self.table.table_name,
                        "Key": new_driver_key,
                        "ConditionExpression": "driverId = :driver",
                        "ExpressionAttributeValues": {":driver": ride.DriverID},
                    }
                }
            )

        old_passenger_key = self._passenger_key(old.EventID, old.PassengerRegistrationID)
        new_passenger_key = self._passenger_key(ride.EventID, ride.PassengerRegistrationID)
        if old_passenger_key != new_passenger_key:
            transact_items.append(self._release_passenger(old_passenger_key, old.ID))
            transact_items.append(self._claim_passenger(new_passenger_key, ride))
        else:
            transact_items.append(
                {
                    "Update": {
                        "TableName": self.table.table_name,
                        "Key": new_passenger_key,
                        "UpdateExpression": "SET assignedDriverId = :driver",
                        "ConditionExpression": "passengerId = :passenger AND assignedRideId = :ride",
                        "ExpressionAttributeValues": {
                            ":driver": ride.DriverID,
                            ":passenger": ride.PassengerID,
                            ":ride": ride.ID,
                        },
                    }
                }
            )

        try:
            self.dynamodb.meta.client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            if e.response["Error"]["Code"] == "TransactionCanceledException":
                logger.warning("Update of event ride %s rejected: %s", ride.ID, e)
                return False
            raise Exception(f"Failed to update event ride: {e}")

        logger.info("Updated event ride %s", ride.ID)
        return True

    def get_event_ride_by_id(self, event_ride_id: int) -> EventRide:
        item = self.table.get_item(Key=self._ride_key(event_ride_id)).get("Item")
        if not item:
            raise NotFoundError(f"Event ride with ID {event_ride_id} not found.")
        return self._to_event_ride(item)

    def get_event_rides_by_event_and_driver(
        self, event_id: int, driver_id: int
    ) -> List[EventRide]:
        """Rides in one driver's car for one event, oldest first"""
        items = self._query_all(
            IndexName=RIDES_BY_EVENT_DRIVER_INDEX,
            KeyConditionExpression=Key("GSI_RidesByEventDriver_PK").eq(
                f"EVENT#{event_id}#DRIVER#{driver_id}"
            ),
        )
        return [self._to_event_ride(item) for item in items]

    # ------------------------------------------------------------------
    # Event listings
    # ------------------------------------------------------------------

    def get_all_passengers_for_event(self, event_id: int) -> List[Passenger]:
        return [
            self._to_passenger(item)
            for item in self._query_event(event_id, "PASSENGER_REG#")
        ]

    def get_passengers_with_no_car_assigned(self, event_id: int) -> List[Passenger]:
        return [
            self._to_passenger(item)
            for item in self._query_event(event_id, "PASSENGER_REG#")
            if "assignedRideId" not in item
        ]

    def get_all_drivers_for_event(self, event_id: int) -> List[Driver]:
        return [
            self._to_driver(item) for item in self._query_event(event_id, "DRIVER_REG#")
        ]

    def get_drivers_with_available_capacity(self, event_id: int) -> List[Driver]:
        drivers = self.get_all_drivers_for_event(event_id)
        return [driver for driver in drivers if driver.AvailableSeats > 0]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _next_id(self, counter: str) -> int:
        """Atomically increment a named counter and return the new value"""
        try:
            response = self.table.update_item(
                Key={"PK": "COUNTER", "SK": counter},
                UpdateExpression="ADD currentValue :one",
                ExpressionAttributeValues={":one": 1},
                ReturnValues="UPDATED_NEW",
            )
        except ClientError as e:
            raise Exception(f"Failed to allocate {counter} id: {e}")
        return int(response["Attributes"]["currentValue"])

    def _query_event(self, event_id: int, sk_prefix: str) -> List[Dict[str, Any]]:
        return self._query_all(
            KeyConditionExpression=Key("PK").eq(f"EVENT#{event_id}")
            & Key("SK").begins_with(sk_prefix)
        )

    def _query_all(self, **query_kwargs) -> List[Dict[str, Any]]:
        items = []
        while True:
            response = self.table.query(**query_kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            query_kwargs["ExclusiveStartKey"] = last_key

    def _explain_rejected_create(self, ride, passenger_key, driver_key) -> bool:
        passenger = self.table.get_item(Key=passenger_key).get("Item")
        driver = self.table.get_item(Key=driver_key).get("Item")

        if passenger is None or int(passenger["passengerId"]) != ride.PassengerID:
            logger.warning(
                "Passenger registration %s not valid for passenger %s",
                ride.PassengerRegistrationID,
                ride.PassengerID,
            )
            return False
        if driver is None or int(driver["driverId"]) != ride.DriverID:
            logger.warning(
                "Driver registration %s not valid for driver %s",
                ride.DriverRegistrationID,
                ride.DriverID,
            )
            return False
        if "assignedRideId" in passenger:
            raise ConflictError(
                f"Passenger {ride.PassengerID} already has a ride for event {ride.EventID}."
            )
        if int(driver["assignedSeats"]) >= int(driver["capacity"]):
            raise ConflictError(
                f"Driver {ride.DriverID} has no available capacity for event {ride.EventID}."
            )
        return False

    def _claim_seat(self, driver_key, ride: EventRide) -> Dict[str, Any]:
        return {
            "Update": {
                "TableName": self.table.table_name,
                "Key": driver_key,
                "UpdateExpression": "SET assignedSeats = assignedSeats + :one",
                # "capacity" is a DynamoDB reserved word
                "ConditionExpression": "attribute_exists(PK) AND driverId = :driver AND assignedSeats < #capacity",
                "ExpressionAttributeNames": {"#capacity": "capacity"},
                "ExpressionAttributeValues": {":one": 1, ":driver": ride.DriverID},
            }
        }

    def _release_seat(self, driver_key) -> Dict[str, Any]:
        return {
            "Update": {
                "TableName": self.table.table_name,
                "Key": driver_key,
                "UpdateExpression": "SET assignedSeats = assignedSeats - :one",
                "ConditionExpression": "attribute_exists(PK) AND assignedSeats > :zero",
                "ExpressionAttributeValues": {":one": 1, ":zero": 0},
            }
        }

    def _claim_passenger(self, passenger_key, ride: EventRide) -> Dict[str, Any]:
        return {
            "Update": {
                "TableName": self.table.table_name,
                "Key": passenger_key,
                "UpdateExpression": "SET assignedRideId = :ride, assignedDriverId = :driver",
                "ConditionExpression": "attribute_exists(PK) AND passengerId = :passenger AND attribute_not_exists(assignedRideId)",
                "ExpressionAttributeValues": {
                    ":ride": ride.ID,
                    ":driver": ride.DriverID,
                    ":passenger": ride.PassengerID,
                },
            }
        }

    def _release_passenger(self, passenger_key, ride_id: int) -> Dict[str, Any]:
        return {
            "Update": {
                "TableName": self.table.table_name,
                "Key": passenger_key,
                "UpdateExpression": "REMOVE assignedRideId, assignedDriverId",
                "ConditionExpression": "assignedRideId = :ride",
                "ExpressionAttributeValues": {":ride": ride_id},
            }
        }

    @staticmethod
    def _ride_key(ride_id: int) -> Dict[str, str]:
        return {"PK": f"RIDE#{ride_id}", "SK": "DETAIL"}

    @staticmethod
    def _driver_key(event_id: int, registration_id: int) -> Dict[str, str]:
        return {"PK": f"EVENT#{event_id}", "SK": f"DRIVER_REG#{registration_id:010d}"}

    @staticmethod
    def _passenger_key(event_id: int, registration_id: int) -> Dict[str, str]:
        return {
            "PK": f"EVENT#{event_id}",
            "SK": f"PASSENGER_REG#{registration_id:010d}",
        }

    def _ride_item(self, ride: EventRide) -> Dict[str, Any]:
        return {
            **self._ride_key(ride.ID),
            "id": ride.ID,
            "eventId": ride.EventID,
            "driverId": ride.DriverID,
            "passengerId": ride.PassengerID,
            "driverRegistrationId": ride.DriverRegistrationID,
            "passengerRegistrationId": ride.PassengerRegistrationID,
            # GSI attributes for listing a car's passengers
            "GSI_RidesByEventDriver_PK": f"EVENT#{ride.EventID}#DRIVER#{ride.DriverID}",
            "GSI_RidesByEventDriver_SK": f"RIDE#{ride.ID:010d}",
        }

    @staticmethod
    def _to_event_ride(item: Dict[str, Any]) -> EventRide:
        return EventRide(
            ID=int(item["id"]),
            EventID=int(item["eventId"]),
            DriverID=int(item["driverId"]),
            PassengerID=int(item["passengerId"]),
            DriverRegistrationID=int(item["driverRegistrationId"]),
            PassengerRegistrationID=int(item["passengerRegistrationId"]),
        )

    @staticmethod
    def _to_driver(item: Dict[str, Any]) -> Driver:
        capacity = int(item["capacity"])
        assigned = int(item["assignedSeats"])
        return Driver(
            DriverRegistrationID=int(item["registrationId"]),
            DriverID=int(item["driverId"]),
            EventID=int(item["eventId"]),
            Name=item.get("name"),
            Capacity=capacity,
            AssignedSeats=assigned,
            AvailableSeats=capacity - assigned,
        )

    @staticmethod
    def _to_passenger(item: Dict[str, Any]) -> Passenger:
        ride_id = item.get("assignedRideId")
        driver_id = item.get("assignedDriverId")
        return Passenger(
            PassengerRegistrationID=int(item["registrationId"]),
            PassengerID=int(item["passengerId"]),
            EventID=int(item["eventId"]),
            Name=item.get("name"),
            AssignedRideID=int(ride_id) if ride_id is not None else None,
            AssignedDriverID=int(driver_id) if driver_id is not None else None,
        )
