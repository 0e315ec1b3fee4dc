import logging

from pydantic import ValidationError

from assist.repository.booking_repo import BookingRepository
from assist.repository.catalog_repo import CatalogRepository
from assist.repository.user_repo import UserRepository
from assist.schemas.bookings import BookingListQuery
from assist.schemas.responses import booking_page_response
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


def get_bookings(event, context):
    try:
        actor = get_actor(event)
        query = BookingListQuery.model_validate(query_params(event))

        page = booking_service.list_bookings(actor, query)

        return send_custom_response(
            200, "Bookings retrieved successfully", booking_page_response(page)
        )

    except ValidationError as e:
        return validation_error_response(e)
    except AssistError as err:
        return send_error_response(err)
    except Exception:
        logger.exception("Unhandled error while listing bookings")
        return send_custom_response(500, "Internal server error")
