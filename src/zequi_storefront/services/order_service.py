"""Order service: checkout and the order status workflow."""

import logging
import secrets
import string
import uuid
from datetime import UTC, datetime

from zequi_storefront.models.order_models import (
    Order,
    OrderCreateRequest,
    OrderItem,
    OrderStats,
    OrderStatus,
    can_cancel,
    is_allowed_transition,
    next_status,
)
from zequi_storefront.observability import traced
from zequi_storefront.observability.metrics import (
    record_order_created,
    record_status_transition,
)
from zequi_storefront.repositories.menu_repositories import MenuItemRepository
from zequi_storefront.repositories.order_repositories import OrderRepository
from zequi_storefront.services.cart import Cart
from zequi_storefront.services.errors import (
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)
from zequi_storefront.services.subscription_hub import (
    SnapshotCallback,
    Subscription,
    SubscriptionHub,
)

logger = logging.getLogger(__name__)

ORDERS_TOPIC = "orders"
ORDER_NUMBER_PREFIX = "ZSB-"
ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
ORDER_NUMBER_LENGTH = 6


def generate_order_number() -> str:
    """Short human-readable order number, e.g. ``ZSB-7K2Q9D``."""
    suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(ORDER_NUMBER_LENGTH))
    return f"{ORDER_NUMBER_PREFIX}{suffix}"


class OrderService:
    """Service for customer orders.

    Customers create orders; the admin advances, cancels or deletes them.
    Status only moves along the workflow defined in ``order_models``.
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        menu_repository: MenuItemRepository,
        hub: SubscriptionHub,
    ) -> None:
        """Initialize the OrderService.

        Args:
            order_repository: Repository for orders
            menu_repository: Repository the line prices are taken from
            hub: Subscription hub to publish changes to
        """
        self.order_repository = order_repository
        self.menu_repository = menu_repository
        self.hub = hub

        hub.register_topic(ORDERS_TOPIC, self.order_repository.list_orders)

    def quote_cart(self, lines: list[OrderItem]) -> Cart:
        """Price client cart lines against the stored menu.

        Repeated lines merge. Only identity and quantity come from the client;
        name, price and image are taken from the current menu item.

        Args:
            lines: Lines as sent by the client

        Returns:
            Cart: Lines snapshotted from the menu

        Raises:
            ValidationFailedError: If an item is unknown, unavailable or unpriceable
        """
        cart = Cart()
        for line in Cart.from_lines(lines).lines:
            item = self.menu_repository.get_item(line.id)
            if item is None:
                raise ValidationFailedError(f"'{line.name}' is no longer on the menu")
            if not item.available:
                raise ValidationFailedError(f"'{item.name}' is not available")
            try:
                cart.add_item(item)
            except ValueError as e:
                raise ValidationFailedError(f"'{item.name}' has an unusable price") from e
            cart.update_quantity(item.id, line.quantity - 1)
        return cart

    @traced("orders.create")
    async def create_order(self, request: OrderCreateRequest) -> Order:
        """Submit a customer order.

        The lines are priced from the stored menu, accumulated like a cart
        (repeated items merge) and totalled in integer cents.

        Args:
            request: Validated checkout payload

        Returns:
            Order: The stored order, status pending

        Raises:
            ValidationFailedError: If a line refers to an unknown or unavailable
                item, or the total cannot be computed
            StorageError: If the write fails
        """
        cart = self.quote_cart(request.items)
        try:
            total_cents = cart.total_cents
        except ValueError as e:
            raise ValidationFailedError(str(e)) from e

        order = Order(
            id=uuid.uuid4().hex,
            order_number=generate_order_number(),
            customer_name=request.customer_name,
            customer_phone=request.customer_phone,
            notes=request.notes,
            items=cart.lines,
            total=cart.total,
            status=OrderStatus.PENDING,
            created_at=datetime.now(UTC),
        )

        stored = self.order_repository.create_order(order)
        logger.info(
            f"Order {stored.order_number} created for {stored.customer_name}: "
            f"{cart.item_count} items, total {cart.display_total}"
        )
        record_order_created(total_cents, cart.item_count)

        self.hub.publish(ORDERS_TOPIC)
        return stored

    def get_order(self, order_id: str) -> Order:
        """Retrieve an order.

        Raises:
            NotFoundError: If the order does not exist
        """
        order = self.order_repository.get_order(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    def list_orders(self, status: OrderStatus | None = None) -> list[Order]:
        """Orders newest first, optionally only those in ``status``."""
        orders = self.order_repository.list_orders()
        if status is not None:
            orders = [o for o in orders if o.status == status]
        return orders

    def order_stats(self) -> OrderStats:
        """Counts for the admin dashboard."""
        return OrderStats.from_orders(self.order_repository.list_orders())

    def subscribe_to_orders(self, callback: SnapshotCallback) -> Subscription:
        """Follow the order list, newest first."""
        return self.hub.subscribe(ORDERS_TOPIC, callback)

    async def advance_order(self, order_id: str) -> Order:
        """Move an order to its next workflow state.

        Raises:
            NotFoundError: If the order does not exist
            InvalidTransitionError: If the order is delivered or cancelled
        """
        order = self.get_order(order_id)
        target = next_status(order.status)
        if target is None:
            raise InvalidTransitionError(f"Order {order.order_number} is already {order.status.value}")
        return await self._set_status(order, target)

    async def cancel_order(self, order_id: str) -> Order:
        """Cancel a live order.

        Raises:
            NotFoundError: If the order does not exist
            InvalidTransitionError: If the order is delivered or cancelled
        """
        order = self.get_order(order_id)
        if not can_cancel(order.status):
            raise InvalidTransitionError(
                f"Order {order.order_number} is {order.status.value} and cannot be cancelled"
            )
        return await self._set_status(order, OrderStatus.CANCELLED)

    async def update_status(self, order_id: str, status: OrderStatus) -> Order:
        """Apply an explicit status change if the workflow allows it.

        Raises:
            NotFoundError: If the order does not exist
            InvalidTransitionError: If the change is not allowed
        """
        order = self.get_order(order_id)
        if not is_allowed_transition(order.status, status):
            raise InvalidTransitionError(
                f"Cannot move order {order.order_number} from {order.status.value} to {status.value}"
            )
        return await self._set_status(order, status)

    @traced("orders.delete")
    async def delete_order(self, order_id: str) -> None:
        """Delete an order in any state. This cannot be undone."""
        self.order_repository.delete_order(order_id)
        logger.info(f"Order {order_id} deleted")

        self.hub.publish(ORDERS_TOPIC)

    @traced("orders.set_status")
    async def _set_status(self, order: Order, status: OrderStatus) -> Order:
        # The write only lands if nobody moved the order since it was read
        self.order_repository.update_status(order.id, status, expected=order.status)
        logger.info(f"Order {order.order_number}: {order.status.value} -> {status.value}")
        record_status_transition(status.value)

        self.hub.publish(ORDERS_TOPIC)
        return order.model_copy(update={"status": status})
