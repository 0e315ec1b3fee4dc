import logging

from pydantic import ValidationError

from assist.repository.booking_repo import BookingRepository
from assist.repository.catalog_repo import CatalogRepository
from assist.repository.user_repo import UserRepository
from assist.schemas.bookings import PendingQueueQuery
from assist.schemas.responses import booking_response
from assist.services.booking_service import BookingService
from assist.utils.custom_exceptions import AssistError
from assist.utils.custom_response import send_custom_response, send_error_response
from assist.utils.handler_utils import (
    configure_logging,
    get_actor,
    open_storage,
    query_params,
    validation_error_response,
)

configure_logging()
logger = logging.getLogger(__name__)

storage = open_storage()

booking_service = BookingService(
    booking_repo=BookingRepository(storage.table),
    user_repo=UserRepository(storage.table),
    catalog_repo=CatalogRepository(storage.table),
)


def get_pending_bookings(event, context):
    try:
        actor = get_actor(event)
        query = PendingQueueQuery.model_validate(query_params(event))

        bookings = booking_service.list_unassigned(actor, query.limit)

        return send_custom_response(
            200,
            "Pending bookings retrieved successfully",
            {
                "count": len(bookings),
                "bookings": [booking_response(b) for b in bookings],
            },
        )

    except ValidationError as e:
        return validation_error_response(e)
    except AssistError as err:
        return send_error_response(err)
    except Exception:
        logger.exception("Unhandled error while listing pending bookings")
        return send_custom_response(500, "Internal server error")
