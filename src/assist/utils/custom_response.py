from pydantic import BaseModel
from typing import Any, Generic, TypeVar, Optional
from assist.utils.custom_exceptions import AssistError

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    status_code: int
    message: Any
    data: Optional[T] = None


def send_custom_response(status_code: int, message, data: Optional[T] = None):
    return {
        "statusCode": status_code,
        "headers": {
            "Content-Type": "application/json",
        },
        "body": APIResponse(
            status_code=status_code, message=message, data=data
        ).model_dump_json(),
    }


def send_error_response(err: AssistError):
    return send_custom_response(
        err.status_code,
        str(err),
        {"kind": err.kind, "retryable": err.retryable},
    )
