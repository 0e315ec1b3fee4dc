import logging

from pydantic import ValidationError

from assist.repository.catalog_repo import CatalogRepository
from assist.schemas.catalog import ServiceStatusRequest
from assist.services.catalog_service import CatalogManager
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
catalog_manager = CatalogManager(catalog_repo=CatalogRepository(storage.table))


def update_service_status(event, context):
    try:
        actor = get_actor(event)
        service_id = path_param(event, "service_id")
        request_body = parse_body(event, ServiceStatusRequest)

        catalog_manager.set_service_active(actor, service_id, request_body.is_active)

        return send_custom_response(
            200,
            "Service status updated successfully",
            {"service_id": service_id, "is_active": request_body.is_active},
        )

    except ValidationError as e:
        return validation_error_response(e)
    except AssistError as err:
        return send_error_response(err)
    except Exception:
        logger.exception("Unhandled error while updating service status")
        return send_custom_response(500, "Internal server error")
