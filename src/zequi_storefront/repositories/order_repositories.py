"""DynamoDB repository for customer orders."""

import logging
from datetime import UTC, datetime

from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from zequi_storefront.models.order_models import Order, OrderStatus
from zequi_storefront.repositories.menu_repositories import scan_all
from zequi_storefront.services.errors import InvalidTransitionError, NotFoundError, StorageError

logger = logging.getLogger(__name__)


class OrderRepository:
    """Repository for order CRUD operations.

    Manages order records in DynamoDB with ``id`` as partition key. The
    creation timestamp is assigned here, at write time, never by the caller.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def create_order(self, order: Order) -> Order:
        """Store a new order, stamping its creation time.

        Args:
            order: Order to store (its ``created_at`` is overwritten)

        Returns:
            Order: The stored order

        Raises:
            StorageError: If the write fails
        """
        stored = order.model_copy(update={"created_at": datetime.now(UTC)})

        try:
            self.table.put_item(
                Item=stored.to_dynamodb_item(),
                ConditionExpression="attribute_not_exists(id)",
            )
            return stored

        except ClientError as e:
            logger.error(f"Failed to create order {order.order_number}: {e}")
            raise StorageError(f"Failed to create order {order.order_number}") from e

    def get_order(self, order_id: str) -> Order | None:
        """Retrieve an order by ID.

        Args:
            order_id: Order identifier

        Returns:
            Order if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"id": order_id})

            if "Item" not in response:
                return None

            return Order.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get order {order_id}: {e}")  # pragma: no cover
            return None

    def list_orders(self) -> list[Order]:
        """List every order, newest first.

        Returns:
            list: Orders sorted by creation time descending (empty list on failure)
        """
        try:
            orders = [Order.from_dynamodb_item(item) for item in scan_all(self.table)]
            return sorted(orders, key=lambda o: o.created_at, reverse=True)

        except ClientError as e:
            logger.error(f"Failed to list orders: {e}")  # pragma: no cover
            return []

    def update_status(self, order_id: str, status: OrderStatus, expected: OrderStatus) -> None:
        """Move an order from ``expected`` to ``status``.

        The write is conditional on the stored status still being ``expected``,
        so two admins acting on the same order cannot both succeed.

        Args:
            order_id: Order identifier
            status: New status
            expected: Status the caller read before deciding on the change

        Raises:
            NotFoundError: If the order no longer exists
            InvalidTransitionError: If the order moved on since it was read
            StorageError: If the write fails
        """
        try:
            self.table.update_item(
                Key={"id": order_id},
                UpdateExpression="SET #status = :status",
                ConditionExpression="attribute_exists(id) AND #status = :expected",
                ExpressionAttributeNames={"#status": "status"},
                ExpressionAttributeValues={":status": status.value, ":expected": expected.value},
            )

        except ClientError as e:
            if e.response.get("Error", {}).get("Code") != "ConditionalCheckFailedException":
                logger.error(f"Failed to update status of order {order_id}: {e}")
                raise StorageError(f"Failed to update order {order_id}") from e

            current = self.get_order(order_id)
            if current is None:
                raise NotFoundError(f"Order {order_id} not found") from e
            logger.warning(
                f"Stale status change on order {current.order_number}: "
                f"expected {expected.value}, found {current.status.value}"
            )
            raise InvalidTransitionError(
                f"Order {current.order_number} is now {current.status.value}"
            ) from e

    def delete_order(self, order_id: str) -> None:
        """Delete an order.

        Args:
            order_id: Order identifier

        Raises:
            StorageError: If the delete fails
        """
        try:
            self.table.delete_item(Key={"id": order_id})

        except ClientError as e:
            logger.error(f"Failed to delete order {order_id}: {e}")
            raise StorageError(f"Failed to delete order {order_id}") from e
