from botocore.exceptions import ClientError
import logging
from typing import Optional
from assist.models.catalog import CatalogService, ServiceCategory
from assist.repository.storage import is_conditional_failure, storage_call
from assist.utils.custom_exceptions import NotFoundException
from decimal import Decimal

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
else:
    Table = object


logger = logging.getLogger(__name__)


class CatalogRepository:
    def __init__(self, table: Table):
        self.table = table

    def add_service(self, service: CatalogService):
        try:
            with storage_call(f"creating service {service.service_id}"):
                self.table.put_item(
                    Item={
                        "pk": f"SERVICE#{service.service_id}",
                        "sk": "DETAILS",
                        "title": service.title,
                        "category": service.category.value,
                        "price": Decimal(str(service.price)),
                        "duration_minutes": service.duration_minutes,
                        "is_active": service.is_active,
                    },
                    ConditionExpression="attribute_not_exists(pk)",
                )
        except ClientError as err:
            logger.error(f"Error creating service {service.service_id}: {err}")
            raise

    def get_service_by_id(self, service_id: str) -> Optional[CatalogService]:
        try:
            with storage_call(f"retrieving service {service_id}"):
                response = self.table.get_item(
                    Key={"pk": f"SERVICE#{service_id}", "sk": "DETAILS"}
                )
        except ClientError as err:
            logger.error(f"Error retrieving service by id {service_id}: {err}")
            raise

        item = response.get("Item")
        if not item:
            return None
        return CatalogService(
            service_id=service_id,
            title=item["title"],
            category=ServiceCategory(item["category"]),
            price=float(item["price"]),
            duration_minutes=int(item["duration_minutes"]),
            is_active=bool(item.get("is_active", True)),
        )

    def update_service_status(self, service_id: str, is_active: bool):
        try:
            with storage_call(f"updating service {service_id}"):
                self.table.update_item(
                    Key={"pk": f"SERVICE#{service_id}", "sk": "DETAILS"},
                    UpdateExpression="SET #attribute=:value",
                    ExpressionAttributeNames={"#attribute": "is_active"},
                    ExpressionAttributeValues={":value": is_active},
                    ConditionExpression="attribute_exists(pk)",
                )
        except ClientError as err:
            if is_conditional_failure(err):
                raise NotFoundException("service", service_id)
            logger.error(f"Error updating service {service_id} status: {err}")
            raise
