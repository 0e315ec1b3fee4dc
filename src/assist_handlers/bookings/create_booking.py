import logging

from pydantic import ValidationError

from assist.repository.booking_repo import BookingRepository
from assist.repository.catalog_repo import CatalogRepository
from assist.repository.user_repo import UserRepository
from assist.schemas.bookings import BookingRequest
from assist.schemas.responses import booking_response
from assist.services.booking_service import BookingService
from assist.utils.custom_exceptions import AssistError
from assist.utils.custom_response import send_custom_response, send_error_response
from assist.utils.handler_utils import (
    configure_logging,
    get_actor,
    open_storage,
    parse_body,
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


def create_booking(event, context):
    try:
        actor = get_actor(event)
        request_body = parse_body(event, BookingRequest)

        booking = booking_service.create_booking(actor, request_body)

        return send_custom_response(
            201, "Booking created successfully", booking_response(booking)
        )

    except ValidationError as e:
        return validation_error_response(e)
    except AssistError as err:
        return send_error_response(err)
    except Exception:
        logger.exception("Unhandled error while creating booking")
        return send_custom_response(500, "Internal server error")
