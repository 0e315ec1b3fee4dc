import logging

from pydantic import ValidationError

from assist.repository.booking_repo import BookingRepository
from assist.repository.catalog_repo import CatalogRepository
from assist.repository.user_repo import UserRepository
from assist.schemas.bookings import NoteRequest
from assist.schemas.responses import note_response
from assist.services.booking_service import BookingService
from assist.utils.custom_exceptions import AssistError
from assist.utils.custom_response import send_custom_response, send_error_response
from assist.utils.handler_utils import (
    configure_logging,
    get_actor,
    open_storage,
    parse_body,
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


def add_note(event, context):
    try:
        actor = get_actor(event)
        booking_id = path_param(event, "booking_id")
        request_body = parse_body(event, NoteRequest)

        note = booking_service.add_note(
            actor,
            booking_id,
            request_body.message,
            is_internal=request_body.is_internal,
        )

        return send_custom_response(201, "Note added successfully", note_response(note))

    except ValidationError as e:
        return validation_error_response(e)
    except AssistError as err:
        return send_error_response(err)
    except Exception:
        logger.exception("Unhandled error while adding note")
        return send_custom_response(500, "Internal server error")
