import logging

from pydantic import ValidationError

from assist.repository.user_repo import UserRepository
from assist.schemas.users import LoginRequest
from assist.services.user_service import UserService
from assist.utils.custom_exceptions import (
    AssistError,
    IncorrectCredentials,
    NotFoundException,
)
from assist.utils.custom_response import send_custom_response, send_error_response
from assist.utils.handler_utils import (
    configure_logging,
    open_storage,
    parse_body,
    validation_error_response,
)

configure_logging()
logger = logging.getLogger(__name__)

storage = open_storage()
service = UserService(user_repo=UserRepository(table=storage.table))


def login_handler(event, context):
    try:
        request_body = parse_body(event, LoginRequest)
        token = service.login(request_body.email, request_body.password)
        return send_custom_response(
            status_code=200, message="login successful", data=token
        )
    except ValidationError as e:
        return validation_error_response(e)
    except (IncorrectCredentials, NotFoundException):
        # unknown email and wrong password look the same to the caller
        return send_custom_response(
            status_code=401, message="Invalid email or password"
        )
    except AssistError as err:
        return send_error_response(err)
    except Exception:
        logger.exception("Unhandled error during login")
        return send_custom_response(status_code=500, message="Internal server error")
