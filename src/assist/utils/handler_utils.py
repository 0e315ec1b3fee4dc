import atexit
import logging
import os
from typing import Type, TypeVar

from pydantic import BaseModel, ValidationError

from assist.models.users import Actor, UserRole
from assist.repository.storage import DynamoStorage
from assist.utils.custom_exceptions import InvalidInput, Unauthenticated
from assist.utils.custom_response import send_custom_response

M = TypeVar("M", bound=BaseModel)


def configure_logging():
    logging.getLogger().setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())


def open_storage() -> DynamoStorage:
    """Opens the table once per cold start; closed when the runtime exits."""
    storage = DynamoStorage.from_env().open()
    atexit.register(storage.close)
    return storage


def get_actor(event) -> Actor:
    try:
        authorizer = event["requestContext"]["authorizer"]
        user_id = authorizer["user_id"]
        role = UserRole(authorizer["role"].upper())
    except (KeyError, TypeError, AttributeError, ValueError):
        raise Unauthenticated()
    if not user_id:
        raise Unauthenticated()
    return Actor(user_id=user_id, role=role)


def path_param(event, name: str) -> str:
    value = (event.get("pathParameters") or {}).get(name)
    if not value:
        raise InvalidInput(f"{name} is required in the path")
    return value


def query_params(event) -> dict:
    return event.get("queryStringParameters") or {}


def parse_body(event, model: Type[M]) -> M:
    if not event.get("body"):
        raise InvalidInput("Request body is required")
    return model.model_validate_json(event["body"])


def validation_error_response(err: ValidationError):
    formatted = "; ".join(
        f"{'.'.join(map(str, e['loc']))}: {e['msg']}" if e["loc"] else e["msg"]
        for e in err.errors()
    )
    return send_custom_response(
        400, formatted, {"kind": "ValidationError", "retryable": False}
    )
