import logging

from pydantic import ValidationError

from assist.repository.booking_repo import BookingRepository
from assist.repository.catalog_repo import CatalogRepository
from assist.repository.user_repo import UserRepository
from assist.schemas.bookings import CancelRequest
from assist.schemas.responses import booking_response
from assist.services.booking_service import BookingService
from assist.utils.custom_exceptions import AssistError
from assist.utils.custom_response import send_custom_response, send_error_response
from assist.utils.handler_utils import (
    configure_logging,
    get_actor,
    open_storage,
    path_param,
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


def cancel_booking(event, context):
    try:
        actor = get_actor(event)
        booking_id = path_param(event, "booking_id")
        # body is optional here; an empty one means no reason was given
        if event.get("body"):
            request_body = CancelRequest.model_validate_json(event["body"])
        else:
            request_body = CancelRequest()

        booking = booking_service.cancel_booking(
            actor, booking_id, reason=request_body.reason
        )

        return send_custom_response(
            200, "Booking cancelled successfully", booking_response(booking)
        )

    except ValidationError as e:
        return validation_error_response(e)
    except AssistError as err:
        return send_error_response(err)
    except Exception:
        logger.exception("Unhandled error while cancelling booking")
        return send_custom_response(500, "Internal server error")
