import logging

from assist.repository.booking_repo import BookingRepository
from assist.schemas.responses import stats_response
from assist.services.stats_service import BookingStatsService
from assist.utils.custom_exceptions import AssistError
from assist.utils.custom_response import send_custom_response, send_error_response
from assist.utils.handler_utils import (
    configure_logging,
    get_actor,
    open_storage,
    query_params,
)

configure_logging()
logger = logging.getLogger(__name__)

storage = open_storage()

stats_service = BookingStatsService(booking_repo=BookingRepository(storage.table))


def get_booking_stats(event, context):
    try:
        actor = get_actor(event)
        params = query_params(event)

        stats = stats_service.get_stats(
            actor,
            start_date=params.get("startDate") or params.get("start_date"),
            end_date=params.get("endDate") or params.get("end_date"),
        )

        return send_custom_response(
            200, "Booking statistics retrieved successfully", stats_response(stats)
        )

    except AssistError as err:
        return send_error_response(err)
    except Exception:
        logger.exception("Unhandled error while computing booking stats")
        return send_custom_response(500, "Internal server error")
