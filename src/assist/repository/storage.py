import logging
import os
from contextlib import contextmanager
from typing import Optional

from boto3 import resource
from botocore.config import Config
from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from assist.utils.custom_exceptions import StorageUnavailable

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
else:
    Table = object


logger = logging.getLogger(__name__)

TRANSIENT_ERROR_CODES = frozenset(
    {
        "ProvisionedThroughputExceededException",
        "RequestLimitExceeded",
        "ThrottlingException",
        "InternalServerError",
        "ServiceUnavailable",
        "TransactionConflictException",
    }
)


def error_code(err: ClientError) -> Optional[str]:
    return err.response.get("Error", {}).get("Code")


def is_conditional_failure(err: ClientError) -> bool:
    return error_code(err) == "ConditionalCheckFailedException"


@contextmanager
def storage_call(description: str):
    """Turns transient backend failures into StorageUnavailable.

    Non-transient ClientErrors are re-raised untouched so the repository can
    interpret them (conditional check failures in particular).
    """
    try:
        yield
    except (ConnectTimeoutError, ReadTimeoutError, EndpointConnectionError) as err:
        logger.warning("Storage timeout while %s: %s", description, err)
        raise StorageUnavailable(f"Storage timed out while {description}") from err
    except ClientError as err:
        if error_code(err) in TRANSIENT_ERROR_CODES:
            logger.warning("Transient storage failure while %s: %s", description, err)
            raise StorageUnavailable(
                f"Storage temporarily unavailable while {description}"
            ) from err
        raise


class DynamoStorage:
    """Owns the DynamoDB connection shared by every repository of a process."""

    def __init__(
        self,
        table_name: str,
        region: str = "ap-south-1",
        timeout_seconds: float = 3.0,
        max_attempts: int = 2,
    ):
        if not table_name:
            raise RuntimeError("TABLE_NAME environment variable is not set")
        self.table_name = table_name
        self.region = region
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max_attempts
        self._dynamodb = None
        self._table = None

    @classmethod
    def from_env(cls) -> "DynamoStorage":
        return cls(
            table_name=os.environ.get("TABLE_NAME"),
            region=os.environ.get("AWS_REGION", "ap-south-1"),
            timeout_seconds=float(os.environ.get("STORAGE_TIMEOUT_SECONDS", "3")),
            max_attempts=int(os.environ.get("STORAGE_MAX_ATTEMPTS", "2")),
        )

    def open(self) -> "DynamoStorage":
        if self._table is not None:
            return self
        config = Config(
            connect_timeout=self.timeout_seconds,
            read_timeout=self.timeout_seconds,
            retries={"max_attempts": self.max_attempts, "mode": "standard"},
        )
        self._dynamodb = resource("dynamodb", region_name=self.region, config=config)
        self._table = self._dynamodb.Table(self.table_name)
        logger.info("Opened DynamoDB table %s in %s", self.table_name, self.region)
        return self

    def close(self):
        if self._dynamodb is None:
            return
        self._dynamodb.meta.client.close()
        self._dynamodb = None
        self._table = None
        logger.info("Closed DynamoDB table %s", self.table_name)

    @property
    def table(self) -> Table:
        if self._table is None:
            raise RuntimeError("Storage is not open")
        return self._table

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
