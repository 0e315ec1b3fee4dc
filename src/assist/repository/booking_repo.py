from botocore.exceptions import ClientError
import logging
from typing import Any, Dict, List, Optional, Tuple
from boto3.dynamodb.conditions import Attr, Key
from assist.models.bookings import (
    Booking,
    BookingStatus,
    ContactInfo,
    Coordinates,
    Location,
    Note,
    PreferredContact,
    Rating,
    Timeline,
    UrgencyLevel,
    VehicleInfo,
    VehicleType,
)
from assist.repository.storage import is_conditional_failure, storage_call
from assist.utils.custom_exceptions import (
    Forbidden,
    InvalidInput,
    InvalidTransition,
    NotFoundException,
)
from assist.utils.datetime_normaliser import (
    from_iso_string,
    optional_from_iso,
    to_iso_string,
)
from decimal import Decimal
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
else:
    Table = object


logger = logging.getLogger(__name__)

CUSTOMER_INDEX = "CustomerIndex"
MECHANIC_INDEX = "MechanicIndex"
STATUS_INDEX = "StatusIndex"
CREATED_INDEX = "CreatedIndex"
BOOKING_ENTITY = "BOOKING"

TIMELINE_FIELDS = {
    BookingStatus.ACCEPTED: "accepted_at",
    BookingStatus.IN_PROGRESS: "started_at",
    BookingStatus.COMPLETED: "completed_at",
    BookingStatus.CANCELLED: "cancelled_at",
}


def _decimal(value: Optional[float]) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def _float(value) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def _compact(mapping: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in mapping.items() if v is not None}


class BookingRepository:
    def __init__(self, table: Table):
        self.table = table

    # -------------------------
    # serialization
    # -------------------------
    @staticmethod
    def location_item(location: Location) -> dict:
        item = {
            "address": location.address,
            "city": location.city,
            "state": location.state,
        }
        if location.coordinates:
            item["coordinates"] = {
                "lat": _decimal(location.coordinates.lat),
                "lng": _decimal(location.coordinates.lng),
            }
        return item

    @staticmethod
    def vehicle_item(vehicle: VehicleInfo) -> dict:
        return _compact(
            {
                "make": vehicle.make,
                "model": vehicle.model,
                "year": vehicle.year,
                "license_plate": vehicle.license_plate,
                "vehicle_type": vehicle.vehicle_type.value,
            }
        )

    @staticmethod
    def contact_item(contact: ContactInfo) -> dict:
        return _compact(
            {
                "phone": contact.phone,
                "alternate_phone": contact.alternate_phone,
                "preferred_contact": contact.preferred_contact.value,
            }
        )

    @staticmethod
    def note_item(note: Note) -> dict:
        return {
            "author_id": note.author_id,
            "message": note.message,
            "timestamp": to_iso_string(note.timestamp),
            "is_internal": note.is_internal,
        }

    @staticmethod
    def _mechanic_sk(status: BookingStatus, created_at: datetime) -> str:
        return f"{status.value}#{to_iso_string(created_at)}"

    def _to_item(self, booking: Booking) -> dict:
        timeline = booking.timeline
        item = {
            "pk": f"BOOKING#{booking.booking_id}",
            "sk": "DETAILS",
            "booking_id": booking.booking_id,
            "customer_id": booking.customer_id,
            "service_id": booking.service_id,
            "booking_status": booking.status.value,
            "scheduled_at": to_iso_string(booking.scheduled_at),
            "location": self.location_item(booking.location),
            "vehicle_info": self.vehicle_item(booking.vehicle_info),
            "contact_info": self.contact_item(booking.contact_info),
            "urgency_level": booking.urgency_level.value,
            "estimated_cost": _decimal(booking.estimated_cost),
            "timeline": _compact(
                {
                    "created_at": to_iso_string(timeline.created_at),
                    "accepted_at": timeline.accepted_at
                    and to_iso_string(timeline.accepted_at),
                    "started_at": timeline.started_at
                    and to_iso_string(timeline.started_at),
                    "completed_at": timeline.completed_at
                    and to_iso_string(timeline.completed_at),
                    "cancelled_at": timeline.cancelled_at
                    and to_iso_string(timeline.cancelled_at),
                }
            ),
            "notes": [self.note_item(note) for note in booking.notes],
            "created_at": to_iso_string(booking.created_at),
            "customer_pk": f"CUSTOMER#{booking.customer_id}",
            "status_pk": f"STATUS#{booking.status.value}",
            "entity_pk": BOOKING_ENTITY,
        }
        if booking.problem_description:
            item["problem_description"] = booking.problem_description
        if booking.actual_cost is not None:
            item["actual_cost"] = _decimal(booking.actual_cost)
        if booking.mechanic_id:
            item["mechanic_id"] = booking.mechanic_id
            item["mechanic_pk"] = f"MECHANIC#{booking.mechanic_id}"
            item["mechanic_sk"] = self._mechanic_sk(booking.status, booking.created_at)
        if booking.updated_at:
            item["updated_at"] = to_iso_string(booking.updated_at)
        return item

    @staticmethod
    def _to_domain(item: dict) -> Booking:
        location_raw = item["location"]
        coordinates = None
        if location_raw.get("coordinates"):
            coordinates = Coordinates(
                lat=float(location_raw["coordinates"]["lat"]),
                lng=float(location_raw["coordinates"]["lng"]),
            )
        vehicle_raw = item.get("vehicle_info") or {}
        contact_raw = item["contact_info"]
        timeline_raw = item.get("timeline") or {}
        rating_raw = item.get("rating")

        return Booking(
            booking_id=item["booking_id"],
            customer_id=item["customer_id"],
            service_id=item["service_id"],
            mechanic_id=item.get("mechanic_id"),
            status=BookingStatus(item["booking_status"]),
            scheduled_at=from_iso_string(item["scheduled_at"]),
            location=Location(
                address=location_raw["address"],
                city=location_raw["city"],
                state=location_raw["state"],
                coordinates=coordinates,
            ),
            vehicle_info=VehicleInfo(
                make=vehicle_raw.get("make"),
                model=vehicle_raw.get("model"),
                year=int(vehicle_raw["year"]) if vehicle_raw.get("year") else None,
                license_plate=vehicle_raw.get("license_plate"),
                vehicle_type=VehicleType(vehicle_raw.get("vehicle_type", "car")),
            ),
            contact_info=ContactInfo(
                phone=contact_raw["phone"],
                alternate_phone=contact_raw.get("alternate_phone"),
                preferred_contact=PreferredContact(
                    contact_raw.get("preferred_contact", "phone")
                ),
            ),
            problem_description=item.get("problem_description"),
            urgency_level=UrgencyLevel(item.get("urgency_level", "medium")),
            estimated_cost=_float(item.get("estimated_cost")) or 0.0,
            actual_cost=_float(item.get("actual_cost")),
            timeline=Timeline(
                created_at=from_iso_string(timeline_raw.get("created_at", item["created_at"])),
                accepted_at=optional_from_iso(timeline_raw.get("accepted_at")),
                started_at=optional_from_iso(timeline_raw.get("started_at")),
                completed_at=optional_from_iso(timeline_raw.get("completed_at")),
                cancelled_at=optional_from_iso(timeline_raw.get("cancelled_at")),
            ),
            notes=[
                Note(
                    author_id=note["author_id"],
                    message=note["message"],
                    timestamp=from_iso_string(note["timestamp"]),
                    is_internal=bool(note.get("is_internal", False)),
                )
                for note in item.get("notes", [])
            ],
            rating=Rating(
                score=int(rating_raw["score"]),
                feedback=rating_raw.get("feedback"),
                rated_at=from_iso_string(rating_raw["rated_at"]),
            )
            if rating_raw
            else None,
            created_at=from_iso_string(item["created_at"]),
            updated_at=optional_from_iso(item.get("updated_at")),
        )

    # -------------------------
    # writes
    # -------------------------
    def add_booking(self, booking: Booking):
        try:
            with storage_call(f"creating booking {booking.booking_id}"):
                self.table.put_item(
                    Item=self._to_item(booking),
                    ConditionExpression="attribute_not_exists(pk)",
                )
        except ClientError as err:
            logger.error(f"Error creating booking {booking.booking_id}: {err}")
            raise

    def apply_transition(
        self,
        booking: Booking,
        new_status: BookingStatus,
        now: datetime,
        assign_mechanic_id: Optional[str] = None,
        actual_cost: Optional[float] = None,
        note: Optional[Note] = None,
    ) -> Booking:
        """Writes a status change only if (status, mechanic_id) still match the snapshot.

        An optional note is appended in the same conditional write, so the status
        change and its note are stored together or not at all.
        """
        now_iso = to_iso_string(now)
        names = {"#status": "booking_status"}
        values = {
            ":expected": booking.status.value,
            ":new": new_status.value,
            ":status_pk": f"STATUS#{new_status.value}",
            ":now": now_iso,
        }
        assignments = [
            "#status = :new",
            "status_pk = :status_pk",
            "updated_at = :now",
        ]

        stamp = TIMELINE_FIELDS.get(new_status)
        if stamp:
            names["#tl"] = "timeline"
            names["#stamp"] = stamp
            assignments.append("#tl.#stamp = if_not_exists(#tl.#stamp, :now)")

        mechanic_id = assign_mechanic_id or booking.mechanic_id
        if assign_mechanic_id:
            values[":mechanic_id"] = assign_mechanic_id
            values[":mechanic_pk"] = f"MECHANIC#{assign_mechanic_id}"
            assignments.append("mechanic_id = :mechanic_id")
            assignments.append("mechanic_pk = :mechanic_pk")
        if mechanic_id:
            values[":mechanic_sk"] = self._mechanic_sk(new_status, booking.created_at)
            assignments.append("mechanic_sk = :mechanic_sk")

        if actual_cost is not None:
            values[":actual_cost"] = _decimal(actual_cost)
            assignments.append("actual_cost = :actual_cost")

        if note is not None:
            values[":empty"] = []
            values[":note"] = [self.note_item(note)]
            assignments.append("notes = list_append(if_not_exists(notes, :empty), :note)")

        condition = "#status = :expected"
        if booking.mechanic_id:
            values[":expected_mechanic"] = booking.mechanic_id
            condition += " AND mechanic_id = :expected_mechanic"
        else:
            condition += " AND attribute_not_exists(mechanic_id)"

        try:
            with storage_call(f"updating booking {booking.booking_id} status"):
                response = self.table.update_item(
                    Key={"pk": f"BOOKING#{booking.booking_id}", "sk": "DETAILS"},
                    UpdateExpression="SET " + ", ".join(assignments),
                    ConditionExpression=condition,
                    ExpressionAttributeNames=names,
                    ExpressionAttributeValues=values,
                    ReturnValues="ALL_NEW",
                )
        except ClientError as err:
            if is_conditional_failure(err):
                logger.warning(
                    "Conditional status update lost for booking %s (%s -> %s)",
                    booking.booking_id,
                    booking.status.value,
                    new_status.value,
                )
                raise InvalidTransition(
                    booking.status.value,
                    new_status.value,
                    "booking was modified by another request",
                )
            logger.error(f"Error updating booking {booking.booking_id} status: {err}")
            raise

        return self._to_domain(response["Attributes"])

    def update_booking_fields(
        self, booking_id: str, customer_id: str, updates: Dict[str, Any], now: datetime
    ) -> Booking:
        names = {"#status": "booking_status"}
        values = {
            ":pending": BookingStatus.PENDING.value,
            ":owner": customer_id,
            ":now": to_iso_string(now),
        }
        assignments = ["updated_at = :now"]
        removals = []
        for index, (attribute, value) in enumerate(sorted(updates.items())):
            placeholder = f"#f{index}"
            names[placeholder] = attribute
            if value is None:
                removals.append(placeholder)
                continue
            values[f":v{index}"] = value
            assignments.append(f"{placeholder} = :v{index}")

        expression = "SET " + ", ".join(assignments)
        if removals:
            expression += " REMOVE " + ", ".join(removals)

        try:
            with storage_call(f"updating booking {booking_id} details"):
                response = self.table.update_item(
                    Key={"pk": f"BOOKING#{booking_id}", "sk": "DETAILS"},
                    UpdateExpression=expression,
                    ConditionExpression=(
                        "attribute_exists(pk) AND #status = :pending "
                        "AND customer_id = :owner"
                    ),
                    ExpressionAttributeNames=names,
                    ExpressionAttributeValues=values,
                    ReturnValues="ALL_NEW",
                )
        except ClientError as err:
            if is_conditional_failure(err):
                raise Forbidden("Can only update your own pending bookings")
            logger.error(f"Error updating booking {booking_id} details: {err}")
            raise

        return self._to_domain(response["Attributes"])

    def append_note(self, booking_id: str, note: Note):
        try:
            with storage_call(f"adding note to booking {booking_id}"):
                self.table.update_item(
                    Key={"pk": f"BOOKING#{booking_id}", "sk": "DETAILS"},
                    UpdateExpression=(
                        "SET notes = list_append(if_not_exists(notes, :empty), :note), "
                        "updated_at = :now"
                    ),
                    ConditionExpression="attribute_exists(pk)",
                    ExpressionAttributeValues={
                        ":empty": [],
                        ":note": [self.note_item(note)],
                        ":now": to_iso_string(note.timestamp),
                    },
                )
        except ClientError as err:
            if is_conditional_failure(err):
                raise NotFoundException("booking", booking_id)
            logger.error(f"Error adding note to booking {booking_id}: {err}")
            raise

    def set_rating(self, booking_id: str, customer_id: str, rating: Rating) -> Booking:
        try:
            with storage_call(f"rating booking {booking_id}"):
                response = self.table.update_item(
                    Key={"pk": f"BOOKING#{booking_id}", "sk": "DETAILS"},
                    UpdateExpression="SET rating = :rating, updated_at = :now",
                    ConditionExpression=(
                        "#status = :completed AND customer_id = :owner "
                        "AND attribute_not_exists(rating)"
                    ),
                    ExpressionAttributeNames={"#status": "booking_status"},
                    ExpressionAttributeValues={
                        ":rating": _compact(
                            {
                                "score": rating.score,
                                "feedback": rating.feedback,
                                "rated_at": to_iso_string(rating.rated_at),
                            }
                        ),
                        ":completed": BookingStatus.COMPLETED.value,
                        ":owner": customer_id,
                        ":now": to_iso_string(rating.rated_at),
                    },
                    ReturnValues="ALL_NEW",
                )
        except ClientError as err:
            if is_conditional_failure(err):
                raise InvalidInput("Only completed, unrated bookings can be rated")
            logger.error(f"Error rating booking {booking_id}: {err}")
            raise

        return self._to_domain(response["Attributes"])

    # -------------------------
    # reads
    # -------------------------
    def get_booking_by_id(self, booking_id: str) -> Optional[Booking]:
        try:
            with storage_call(f"retrieving booking {booking_id}"):
                response = self.table.get_item(
                    Key={"pk": f"BOOKING#{booking_id}", "sk": "DETAILS"},
                    ConsistentRead=True,
                )
        except ClientError as err:
            logger.error(f"Error retrieving booking {booking_id}: {err}")
            raise

        item = response.get("Item")
        if not item:
            return None
        return self._to_domain(item)

    def _collect(self, operation, description: str, **kwargs) -> List[Booking]:
        items = []
        try:
            with storage_call(description):
                resp = operation(**kwargs)
                items.extend(resp.get("Items", []))
                while "LastEvaluatedKey" in resp:
                    resp = operation(
                        **kwargs, ExclusiveStartKey=resp["LastEvaluatedKey"]
                    )
                    items.extend(resp.get("Items", []))
        except ClientError as err:
            logger.error(f"Error {description}: {err}")
            raise
        return [self._to_domain(item) for item in items]

    def _count(self, description: str, **kwargs) -> int:
        total = 0
        try:
            with storage_call(description):
                resp = self.table.query(Select="COUNT", **kwargs)
                total += resp.get("Count", 0)
                while "LastEvaluatedKey" in resp:
                    resp = self.table.query(
                        Select="COUNT",
                        ExclusiveStartKey=resp["LastEvaluatedKey"],
                        **kwargs,
                    )
                    total += resp.get("Count", 0)
        except ClientError as err:
            logger.error(f"Error {description}: {err}")
            raise
        return total

    def _window(self, description: str, skip: int, limit: int, **kwargs) -> List[Booking]:
        wanted = skip + limit
        items = []
        try:
            with storage_call(description):
                resp = self.table.query(Limit=wanted, **kwargs)
                items.extend(resp.get("Items", []))
                while len(items) < wanted and "LastEvaluatedKey" in resp:
                    resp = self.table.query(
                        Limit=wanted - len(items),
                        ExclusiveStartKey=resp["LastEvaluatedKey"],
                        **kwargs,
                    )
                    items.extend(resp.get("Items", []))
        except ClientError as err:
            logger.error(f"Error {description}: {err}")
            raise
        return [self._to_domain(item) for item in items[skip:wanted]]

    def find_page(
        self,
        skip: int,
        limit: int,
        customer_id: Optional[str] = None,
        mechanic_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        scheduled_from: Optional[datetime] = None,
        scheduled_to: Optional[datetime] = None,
    ) -> Tuple[List[Booking], int]:
        """Newest-first page of bookings plus the total match count.

        Reads in index order (``ScanIndexForward=False``) and stops once the
        page is filled. Customers page over CustomerIndex, admins over
        CreatedIndex. MechanicIndex sorts by status before creation time, so a
        mechanic page needs ``status``.
        """
        filters = []
        if customer_id:
            index = CUSTOMER_INDEX
            key = Key("customer_pk").eq(f"CUSTOMER#{customer_id}")
            if status:
                filters.append(Attr("booking_status").eq(status.value))
        elif mechanic_id:
            if status is None:
                raise ValueError("mechanic pages need a status")
            index = MECHANIC_INDEX
            key = Key("mechanic_pk").eq(f"MECHANIC#{mechanic_id}") & Key(
                "mechanic_sk"
            ).begins_with(f"{status.value}#")
        else:
            index = CREATED_INDEX
            key = Key("entity_pk").eq(BOOKING_ENTITY)
            if status:
                filters.append(Attr("booking_status").eq(status.value))

        if scheduled_from:
            filters.append(Attr("scheduled_at").gte(to_iso_string(scheduled_from)))
        if scheduled_to:
            filters.append(Attr("scheduled_at").lte(to_iso_string(scheduled_to)))

        kwargs = {
            "IndexName": index,
            "KeyConditionExpression": key,
            "ScanIndexForward": False,
        }
        if filters:
            condition = filters[0]
            for extra in filters[1:]:
                condition = condition & extra
            kwargs["FilterExpression"] = condition

        description = f"paging bookings on {index}"
        total = self._count(description, **kwargs)
        if total <= skip:
            return [], total
        return self._window(description, skip, limit, **kwargs), total

    def get_mechanic_bookings(
        self, mechanic_id: str, status: Optional[BookingStatus] = None
    ) -> List[Booking]:
        condition = Key("mechanic_pk").eq(f"MECHANIC#{mechanic_id}")
        if status:
            condition = condition & Key("mechanic_sk").begins_with(f"{status.value}#")
        return self._collect(
            self.table.query,
            f"retrieving mechanic {mechanic_id} bookings",
            IndexName=MECHANIC_INDEX,
            KeyConditionExpression=condition,
        )

    def get_bookings_by_status(
        self, status: BookingStatus, scheduled_after: Optional[datetime] = None
    ) -> List[Booking]:
        condition = Key("status_pk").eq(f"STATUS#{status.value}")
        if scheduled_after:
            condition = condition & Key("scheduled_at").gt(to_iso_string(scheduled_after))
        return self._collect(
            self.table.query,
            f"retrieving {status.value} bookings",
            IndexName=STATUS_INDEX,
            KeyConditionExpression=condition,
        )

    def scan_bookings(
        self,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> List[Booking]:
        condition = Attr("pk").begins_with("BOOKING#") & Attr("sk").eq("DETAILS")
        if created_from:
            condition = condition & Attr("created_at").gte(to_iso_string(created_from))
        if created_to:
            condition = condition & Attr("created_at").lte(to_iso_string(created_to))
        return self._collect(
            self.table.scan,
            "scanning bookings",
            FilterExpression=condition,
        )
