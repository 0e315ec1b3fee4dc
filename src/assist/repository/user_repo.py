from botocore.exceptions import ClientError
import logging
from typing import Optional
from boto3.dynamodb.conditions import Key
from assist.models.users import User, UserRole
from assist.repository.storage import is_conditional_failure, storage_call
from assist.utils.custom_exceptions import UserAlreadyExists

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
    from types_boto3_dynamodb import DynamoDBClient
else:
    Table = object
    DynamoDBClient = object

logger = logging.getLogger(__name__)


class UserRepository:
    def __init__(self, table: Table, client: DynamoDBClient = None):
        self.table = table
        self.client = client if client else table.meta.client

    def add_user(self, user: User):
        try:
            with storage_call(f"adding user {user.email}"):
                self.client.transact_write_items(
                    TransactItems=[
                        {
                            "Put": {
                                "TableName": self.table.name,
                                "Item": {
                                    "pk": {"S": f"EMAIL#{user.email}"},
                                    "sk": {"S": f"USER#{user.user_id}"},
                                },
                                "ConditionExpression": "attribute_not_exists(pk)",
                            }
                        },
                        {
                            "Put": {
                                "TableName": self.table.name,
                                "Item": {
                                    "pk": {"S": f"USER#{user.user_id}"},
                                    "sk": {"S": "DETAILS"},
                                    "username": {"S": user.username},
                                    "email": {"S": user.email},
                                    "phone_number": {"S": user.phone_number or ""},
                                    "password": {"S": user.password},
                                    "role": {"S": user.role.value},
                                },
                                "ConditionExpression": "attribute_not_exists(pk)",
                            }
                        },
                    ]
                )

        except ClientError as err:
            logger.error(
                "couldn't add user %s. Error: %s",
                user.email,
                err.response["Error"]["Message"],
            )
            reasons = err.response.get("CancellationReasons") or []
            if any(r.get("Code") == "ConditionalCheckFailed" for r in reasons) or (
                is_conditional_failure(err)
            ):
                raise UserAlreadyExists("email is already in use")
            raise

    def get_by_mail(self, mail: str) -> Optional[User]:
        try:
            with storage_call(f"retrieving user {mail}"):
                response = self.table.query(
                    KeyConditionExpression=(
                        Key("pk").eq(f"EMAIL#{mail}") & Key("sk").begins_with("USER#")
                    )
                )
        except ClientError as err:
            logger.error(f"Error retrieving user by mail {mail}: {err}")
            raise

        items = response.get("Items", [])
        if not items:
            return None

        item = items[0]
        user_id = item["sk"].split("#", 1)[1]
        return self.get_by_id(user_id=user_id)

    def get_by_id(self, user_id: str) -> Optional[User]:
        try:
            with storage_call(f"retrieving user {user_id}"):
                response = self.table.get_item(
                    Key={"pk": f"USER#{user_id}", "sk": "DETAILS"}
                )
        except ClientError as err:
            logger.error(f"Error retrieving user by id {user_id}: {err}")
            raise

        item = response.get("Item")
        if not item:
            return None

        return self._to_domain(item=item)

    @staticmethod
    def _to_domain(item: dict) -> User:
        return User(
            user_id=item["pk"].split("#", 1)[1],
            username=item["username"],
            email=item["email"],
            phone_number=item.get("phone_number") or None,
            role=UserRole(item["role"]),
            password=item["password"],
        )
