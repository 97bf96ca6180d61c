"""Shared pytest fixtures and configuration for all tests."""

import os
from datetime import UTC, datetime
from typing import Any

import pytest
from botocore.exceptions import ClientError

# Entry-point modules skip wiring when imported under test
os.environ.setdefault("ENVIRONMENT", "test")

from zequi_storefront.models.menu_models import MenuItem  # noqa: E402
from zequi_storefront.models.order_models import Order, OrderItem, OrderStatus  # noqa: E402
from zequi_storefront.models.settings_models import StorefrontSettings  # noqa: E402


class InMemoryTable:
    """Dict-backed stand-in for a DynamoDB Table keyed by one attribute.

    Supports the calls the repositories make. Conditions are evaluated as
    ``AND``-joined ``attribute_exists`` and equality clauses.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        self.items: dict[str, dict[str, Any]] = {}

    def _condition_failed(self, operation: str) -> ClientError:
        return ClientError(
            {"Error": {"Code": "ConditionalCheckFailedException", "Message": "failed"}},
            operation,
        )

    def put_item(self, Item: dict[str, Any], ConditionExpression: str | None = None) -> dict:
        key = Item[self.key]
        if ConditionExpression == f"attribute_not_exists({self.key})" and key in self.items:
            raise self._condition_failed("PutItem")
        self.items[key] = dict(Item)
        return {}

    def get_item(self, Key: dict[str, Any]) -> dict[str, Any]:
        item = self.items.get(Key[self.key])
        return {"Item": dict(item)} if item is not None else {}

    def scan(self, **_kwargs: Any) -> dict[str, Any]:
        return {"Items": [dict(item) for item in self.items.values()]}

    def delete_item(self, Key: dict[str, Any]) -> dict:
        self.items.pop(Key[self.key], None)
        return {}

    def _condition_holds(
        self,
        key: str,
        condition: str,
        names: dict[str, str],
        values: dict[str, Any],
    ) -> bool:
        item = self.items.get(key)
        for clause in condition.split(" AND "):
            clause = clause.strip()
            if clause == f"attribute_exists({self.key})":
                if item is None:
                    return False
            else:
                name, value = (part.strip() for part in clause.split("="))
                if item is None or item.get(names[name]) != values[value]:
                    return False
        return True

    def update_item(
        self,
        Key: dict[str, Any],
        UpdateExpression: str,
        ExpressionAttributeNames: dict[str, str],
        ExpressionAttributeValues: dict[str, Any],
        ConditionExpression: str | None = None,
    ) -> dict:
        key = Key[self.key]
        if ConditionExpression is not None and not self._condition_holds(
            key, ConditionExpression, ExpressionAttributeNames, ExpressionAttributeValues
        ):
            raise self._condition_failed("UpdateItem")
        assignments = UpdateExpression.removeprefix("SET ").split(",")
        for assignment in assignments:
            name, value = (part.strip() for part in assignment.split("="))
            self.items[key][ExpressionAttributeNames[name]] = ExpressionAttributeValues[value]
        return {}


class InMemoryDynamoDB:
    """Resource exposing ``Table(name)`` over in-memory tables."""

    def __init__(self) -> None:
        self.tables: dict[str, InMemoryTable] = {}

    def Table(self, name: str) -> InMemoryTable:  # noqa: N802
        if name not in self.tables:
            key = "path" if "documents" in name else "id"
            self.tables[name] = InMemoryTable(key)
        return self.tables[name]


@pytest.fixture
def in_memory_dynamodb() -> InMemoryDynamoDB:
    """Fixture providing an in-memory DynamoDB resource."""
    return InMemoryDynamoDB()


@pytest.fixture
def settings() -> StorefrontSettings:
    """Fixture providing settings with a known admin password."""
    return StorefrontSettings(admin_passwords=["secreto"])


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Fixture providing headers accepted by admin endpoints."""
    return {"X-Admin-Password": "secreto"}


@pytest.fixture
def mock_menu_items() -> list[MenuItem]:
    """Fixture providing sample menu items for testing."""
    return [
        MenuItem(
            id="item_1",
            name="Smash Doble",
            description="Doble carne, doble queso",
            price="5.00",
            category="Burgers",
            tag="Popular",
        ),
        MenuItem(
            id="item_2",
            name="Papas Fritas",
            description="Crujientes",
            price="2.50",
            category="Sides",
        ),
        MenuItem(
            id="item_3",
            name="Limonada",
            price="2.10",
            category="Bebidas",
            available=False,
        ),
    ]


@pytest.fixture
def mock_order() -> Order:
    """Fixture providing a sample pending order."""
    return Order(
        id="order_1",
        order_number="ZSB-AB12CD",
        customer_name="Ana",
        customer_phone="0995498027",
        notes="Sin cebolla",
        items=[
            OrderItem(id="item_1", name="Smash Doble", price="5.00", quantity=2),
            OrderItem(id="item_2", name="Papas Fritas", price="2.50", quantity=1),
        ],
        total=12.5,
        status=OrderStatus.PENDING,
        created_at=datetime(2024, 1, 15, 18, 30, tzinfo=UTC),
    )
