"""DynamoDB repository classes for menu items and site documents.

Reads follow the simple convention of returning None/empty results on expected
failures. Writes raise StorageError so callers can tell the user that the
save did not happen.
"""

import logging
from typing import Any

from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from zequi_storefront.models.menu_models import MenuItem
from zequi_storefront.services.errors import NotFoundError, StorageError

logger = logging.getLogger(__name__)


def scan_all(table: Table) -> list[dict[str, Any]]:
    """Scan a whole table, following pagination.

    Args:
        table: DynamoDB table to scan

    Returns:
        list: Every item in the table
    """
    items: list[dict[str, Any]] = []
    response = table.scan()
    items.extend(response.get("Items", []))

    while "LastEvaluatedKey" in response:
        response = table.scan(ExclusiveStartKey=response["LastEvaluatedKey"])
        items.extend(response.get("Items", []))

    return items


class MenuItemRepository:
    """Repository for menu item CRUD operations.

    Manages menu item records in DynamoDB with ``id`` as partition key.
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

    def list_items(self) -> list[MenuItem]:
        """List every menu item.

        Returns:
            list: MenuItem objects sorted by category, then name (empty list on failure)
        """
        try:
            items = [MenuItem.from_dynamodb_item(item) for item in scan_all(self.table)]
            return sorted(items, key=lambda i: (i.category, i.name.lower()))

        except ClientError as e:
            logger.error(f"Failed to list menu items: {e}")  # pragma: no cover
            return []

    def get_item(self, item_id: str) -> MenuItem | None:
        """Retrieve a menu item by ID.

        Args:
            item_id: Menu item identifier

        Returns:
            MenuItem if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"id": item_id})

            if "Item" not in response:
                return None

            return MenuItem.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get menu item {item_id}: {e}")  # pragma: no cover
            return None

    def save_item(self, item: MenuItem) -> None:
        """Create or replace a menu item.

        Args:
            item: MenuItem to save

        Raises:
            StorageError: If the write fails
        """
        try:
            self.table.put_item(Item=item.to_dynamodb_item())

        except ClientError as e:
            logger.error(f"Failed to save menu item {item.id}: {e}")
            raise StorageError(f"Failed to save menu item {item.id}") from e

    def update_fields(self, item_id: str, fields: dict[str, Any]) -> None:
        """Set some attributes of an existing menu item.

        Args:
            item_id: Menu item identifier
            fields: Attribute names and their new values

        Raises:
            NotFoundError: If the item does not exist
            StorageError: If the write fails
        """
        names = {f"#f{i}": name for i, name in enumerate(fields)}
        values = {f":f{i}": value for i, value in enumerate(fields.values())}
        assignments = ", ".join(f"#f{i} = :f{i}" for i in range(len(fields)))

        try:
            self.table.update_item(
                Key={"id": item_id},
                UpdateExpression=f"SET {assignments}",
                ConditionExpression="attribute_exists(id)",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
            )

        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                raise NotFoundError(f"Menu item {item_id} not found") from e
            logger.error(f"Failed to update menu item {item_id}: {e}")
            raise StorageError(f"Failed to update menu item {item_id}") from e

    def delete_item(self, item_id: str) -> None:
        """Delete a menu item.

        Args:
            item_id: Menu item identifier

        Raises:
            StorageError: If the delete fails
        """
        try:
            self.table.delete_item(Key={"id": item_id})

        except ClientError as e:
            logger.error(f"Failed to delete menu item {item_id}: {e}")
            raise StorageError(f"Failed to delete menu item {item_id}") from e


class SiteDocumentRepository:
    """Repository for single configuration documents.

    Each document is stored under its path (e.g. ``siteConfig/logo``) in a
    table with ``path`` as partition key and the content under ``data``.
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

    def get_document(self, path: str) -> dict[str, Any] | None:
        """Retrieve a document's content.

        Args:
            path: Document path

        Returns:
            The stored content, or None if absent or unreadable
        """
        try:
            response = self.table.get_item(Key={"path": path})

            if "Item" not in response:
                return None

            data: dict[str, Any] = response["Item"].get("data", {})
            return data

        except ClientError as e:
            logger.error(f"Failed to get document {path}: {e}")  # pragma: no cover
            return None

    def save_document(self, path: str, data: dict[str, Any]) -> None:
        """Create or replace a document.

        Args:
            path: Document path
            data: Document content

        Raises:
            StorageError: If the write fails
        """
        try:
            self.table.put_item(Item={"path": path, "data": data})

        except ClientError as e:
            logger.error(f"Failed to save document {path}: {e}")
            raise StorageError(f"Failed to save document {path}") from e
