"""Cart accumulator.

Lines are keyed by menu item identity. Adding an item that is already in the
cart bumps its quantity; a quantity update that reaches zero drops the line.
Totals are computed in integer cents.
"""

import logging

from zequi_storefront.models.menu_models import MenuItem
from zequi_storefront.models.order_models import OrderItem
from zequi_storefront.services.pricing import cents_to_amount, format_amount, line_total_cents

logger = logging.getLogger(__name__)


class Cart:
    """In-memory cart for one customer session.

    The cart is never persisted; it lives as long as the object does.
    """

    def __init__(self) -> None:
        """Initialize an empty cart."""
        self._lines: dict[str, OrderItem] = {}

    @classmethod
    def from_lines(cls, lines: list[OrderItem]) -> "Cart":
        """Rebuild a cart from line snapshots, merging repeated items.

        Args:
            lines: Lines as sent by a client

        Returns:
            Cart: Accumulated cart
        """
        cart = cls()
        for line in lines:
            existing = cart._lines.get(line.id)
            if existing is not None:
                cart._lines[line.id] = existing.model_copy(
                    update={"quantity": existing.quantity + line.quantity}
                )
            else:
                cart._lines[line.id] = line.model_copy()
        return cart

    @property
    def lines(self) -> list[OrderItem]:
        """Current lines in insertion order."""
        return list(self._lines.values())

    @property
    def item_count(self) -> int:
        """Total number of units across all lines."""
        return sum(line.quantity for line in self._lines.values())

    @property
    def total_cents(self) -> int:
        """Sum of price x quantity over every line, in cents."""
        return sum(
            line_total_cents(line.price, line.quantity) for line in self._lines.values()
        )

    @property
    def total(self) -> float:
        """Total as a currency amount, derived from the cent sum."""
        return float(cents_to_amount(self.total_cents))

    @property
    def display_total(self) -> str:
        """Total formatted for display."""
        return format_amount(self.total_cents)

    def is_empty(self) -> bool:
        """True when the cart has no lines."""
        return not self._lines

    def add_item(self, item: MenuItem) -> OrderItem:
        """Add one unit of a menu item.

        Args:
            item: The menu item picked by the customer

        Returns:
            OrderItem: The resulting line
        """
        existing = self._lines.get(item.id)
        if existing is not None:
            line = existing.model_copy(update={"quantity": existing.quantity + 1})
        else:
            line = OrderItem(
                id=item.id, name=item.name, price=item.price, quantity=1, image=item.image
            )
        self._lines[item.id] = line
        return line

    def update_quantity(self, item_id: str, delta: int) -> OrderItem | None:
        """Change a line's quantity by ``delta``.

        Args:
            item_id: Identity of the line to change
            delta: Units to add (positive) or remove (negative)

        Returns:
            The updated line, or None if the line was removed or never existed
        """
        existing = self._lines.get(item_id)
        if existing is None:
            logger.debug(f"Ignoring quantity update for item {item_id} not in cart")
            return None

        quantity = existing.quantity + delta
        if quantity <= 0:
            del self._lines[item_id]
            return None

        line = existing.model_copy(update={"quantity": quantity})
        self._lines[item_id] = line
        return line

    def clear(self) -> None:
        """Remove every line."""
        self._lines.clear()
