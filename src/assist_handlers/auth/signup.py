import logging

from pydantic import ValidationError

from assist.repository.user_repo import UserRepository
from assist.schemas.users import SignupRequest
from assist.services.user_service import UserService
from assist.utils.custom_exceptions import AssistError, UserAlreadyExists
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


def signup_handler(event, context):
    try:
        request_body = parse_body(event, SignupRequest)
        token = service.signup(
            request_body.email,
            request_body.username,
            request_body.password,
            request_body.phone_number,
            role=request_body.role,
        )
        return send_custom_response(
            status_code=201, message="signup successful", data=token
        )
    except ValidationError as e:
        return validation_error_response(e)
    except UserAlreadyExists as e:
        return send_custom_response(status_code=409, message=str(e))
    except AssistError as err:
        return send_error_response(err)
    except Exception:
        logger.exception("Unhandled error during signup")
        return send_custom_response(status_code=500, message="Internal server error")
