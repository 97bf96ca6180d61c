"""Order models and the order status workflow.

An order embeds a snapshot of the cart lines at checkout time. Items are never
edited after creation; only the status moves.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from zequi_storefront.models.menu_models import check_price, coerce_price


class OrderStatus(str, Enum):
    """Enumeration of order lifecycle states."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


NEXT_STATUS: dict[OrderStatus, OrderStatus] = {
    OrderStatus.PENDING: OrderStatus.CONFIRMED,
    OrderStatus.CONFIRMED: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.READY: OrderStatus.DELIVERED,
}

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

STATUS_LABELS: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Pendiente",
    OrderStatus.CONFIRMED: "Confirmado",
    OrderStatus.PREPARING: "Preparando",
    OrderStatus.READY: "Listo",
    OrderStatus.DELIVERED: "Entregado",
    OrderStatus.CANCELLED: "Cancelado",
}


def next_status(status: OrderStatus) -> OrderStatus | None:
    """Return the single forward transition from ``status``, if any."""
    return NEXT_STATUS.get(status)


def can_cancel(status: OrderStatus) -> bool:
    """Cancellation is allowed from every non-terminal state."""
    return status not in TERMINAL_STATUSES


def is_allowed_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """Check a requested status change against the workflow table.

    Args:
        current: Status the order is in now
        target: Requested status

    Returns:
        bool: True for the forward step or a cancellation of a live order
    """
    if target == OrderStatus.CANCELLED:
        return can_cancel(current)
    return next_status(current) == target


class OrderItem(BaseModel):
    """A cart/order line."""

    id: str = Field(..., description="Menu item identifier")
    name: str = Field(..., description="Item name at time of order")
    price: str = Field(..., description="Exact unit price string")
    quantity: int = Field(default=1, description="Units ordered", ge=1)
    image: str = Field(default="", description="Item image reference")

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: str) -> str:
        """Reject prices that cannot be priced in cents."""
        return check_price(v)

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB map format."""
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "image": self.image,
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "OrderItem":
        """Create OrderItem from a DynamoDB map."""
        return cls(
            id=item["id"],
            name=item.get("name", ""),
            price=coerce_price(item.get("price")),
            quantity=int(item.get("quantity", 1)),
            image=item.get("image", ""),
        )


class OrderCreateRequest(BaseModel):
    """Checkout payload submitted by a customer."""

    customer_name: str = Field(..., description="Customer name")
    customer_phone: str = Field(..., description="Customer WhatsApp number")
    notes: str = Field(default="", description="Free-text notes")
    items: list[OrderItem] = Field(..., description="Cart lines")

    @field_validator("customer_name", "customer_phone")
    @classmethod
    def validate_required_text(cls, v: str) -> str:
        """Reject blank name and phone."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, v: str) -> str:
        """Store notes without surrounding whitespace."""
        return v.strip()

    @field_validator("items")
    @classmethod
    def validate_items(cls, v: list[OrderItem]) -> list[OrderItem]:
        """An order needs at least one line."""
        if not v:
            raise ValueError("order must contain at least one item")
        return v


class Order(BaseModel):
    """Stored customer order."""

    id: str = Field(..., description="Document identifier")
    order_number: str = Field(..., description="Human-readable order number")
    customer_name: str = Field(..., description="Customer name")
    customer_phone: str = Field(..., description="Customer phone as entered")
    notes: str = Field(default="", description="Free-text notes")
    items: list[OrderItem] = Field(default_factory=list, description="Line snapshot")
    total: float = Field(..., description="Order total in currency units", ge=0)
    status: OrderStatus = Field(default=OrderStatus.PENDING, description="Lifecycle state")
    created_at: datetime = Field(..., description="Assigned by the storage layer")

    @property
    def status_label(self) -> str:
        """Display label for the current status."""
        return STATUS_LABELS[self.status]

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        DynamoDB rejects floats, so the total goes through its string form.

        Returns:
            dict: DynamoDB-compatible representation
        """
        return {
            "id": self.id,
            "order_number": self.order_number,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "notes": self.notes,
            "items": [item.to_dynamodb_item() for item in self.items],
            "total": Decimal(str(self.total)),
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Order":
        """Create Order from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Order: Parsed model instance
        """
        return cls(
            id=item["id"],
            order_number=item.get("order_number", ""),
            customer_name=item.get("customer_name", ""),
            customer_phone=item.get("customer_phone", ""),
            notes=item.get("notes", ""),
            items=[OrderItem.from_dynamodb_item(i) for i in item.get("items", [])],
            total=float(item.get("total", 0)),
            status=OrderStatus(item.get("status", OrderStatus.PENDING.value)),
            created_at=datetime.fromisoformat(item["created_at"]),
        )


class OrderStats(BaseModel):
    """Counters shown at the top of the admin orders tab."""

    total: int = 0
    pending: int = 0
    preparing: int = 0
    ready: int = 0

    @classmethod
    def from_orders(cls, orders: list[Order]) -> "OrderStats":
        """Count orders overall and in the states the kitchen watches."""
        return cls(
            total=len(orders),
            pending=sum(1 for o in orders if o.status == OrderStatus.PENDING),
            preparing=sum(1 for o in orders if o.status == OrderStatus.PREPARING),
            ready=sum(1 for o in orders if o.status == OrderStatus.READY),
        )
