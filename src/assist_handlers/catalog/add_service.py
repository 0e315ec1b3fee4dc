import logging

from pydantic import ValidationError

from assist.repository.catalog_repo import CatalogRepository
from assist.schemas.catalog import ServiceRequest
from assist.schemas.responses import service_response
from assist.services.catalog_service import CatalogManager
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
catalog_manager = CatalogManager(catalog_repo=CatalogRepository(storage.table))


def add_service(event, context):
    try:
        actor = get_actor(event)
        request_body = parse_body(event, ServiceRequest)

        service = catalog_manager.add_service(actor, request_body)

        return send_custom_response(
            201, "Service added successfully", service_response(service)
        )

    except ValidationError as e:
        return validation_error_response(e)
    except AssistError as err:
        return send_error_response(err)
    except Exception:
        logger.exception("Unhandled error while adding service")
        return send_custom_response(500, "Internal server error")
