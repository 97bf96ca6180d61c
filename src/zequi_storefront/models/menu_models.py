"""Menu data models.

Menu items keep their price as the exact string the admin typed. Arithmetic on
prices happens in integer cents (see ``zequi_storefront.services.pricing``);
the string itself is never turned into a float.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, Field, field_validator

DEFAULT_CATEGORIES: list[str] = ["Burgers", "Sides", "Bebidas"]

# Upper bound for a unit price; keeps cent arithmetic inside decimal precision
MAX_PRICE = Decimal("100000")


def check_price(raw: str) -> str:
    """Check a typed price and return it trimmed.

    Args:
        raw: Price string, e.g. "5.00"

    Returns:
        str: The trimmed price, unchanged otherwise

    Raises:
        ValueError: If the price is blank, not a number, negative or too large
    """
    price = raw.strip()
    if not price:
        raise ValueError("price is required")
    try:
        amount = Decimal(price)
    except InvalidOperation as e:
        raise ValueError(f"price '{price}' is not a number") from e
    if not amount.is_finite() or amount < 0:
        raise ValueError("price must be a non-negative amount")
    if amount > MAX_PRICE:
        raise ValueError(f"price must not exceed {MAX_PRICE}")
    return price


def coerce_price(raw: Any) -> str:
    """Normalize a stored price value to its exact string form.

    Args:
        raw: Price as returned by the document store

    Returns:
        str: The price string, "0" when the stored value is not usable
    """
    if isinstance(raw, str):
        return raw
    if isinstance(raw, bool):
        return "0"
    if isinstance(raw, (int, float, Decimal)):
        return str(raw)
    return "0"


class MenuItemInput(BaseModel):
    """Writable fields of a menu item as submitted from the admin panel."""

    name: str = Field(..., description="Item name")
    description: str = Field(default="", description="Item description")
    price: str = Field(..., description="Exact price string, e.g. '5.00'")
    category: str = Field(..., description="Category label")
    image: str = Field(default="", description="Inline data URL of the item photo")
    tag: str | None = Field(None, description="Optional badge such as 'Nuevo'")
    available: bool = Field(default=True, description="Whether item can be ordered")

    @field_validator("name", "category")
    @classmethod
    def validate_required_text(cls, v: str) -> str:
        """Reject blank names and categories."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: str) -> str:
        """Keep the trimmed price string, provided it is a usable amount."""
        return check_price(v)


class MenuItemPatch(BaseModel):
    """Subset of menu item fields to change; omitted fields keep their value."""

    name: str | None = Field(None, description="Item name")
    description: str | None = Field(None, description="Item description")
    price: str | None = Field(None, description="Exact price string, e.g. '5.00'")
    category: str | None = Field(None, description="Category label")
    image: str | None = Field(None, description="Inline data URL of the item photo")
    tag: str | None = Field(None, description="Badge; empty string clears it")
    available: bool | None = Field(None, description="Whether item can be ordered")

    @field_validator("name", "category")
    @classmethod
    def validate_required_text(cls, v: str | None) -> str | None:
        """Reject blank names and categories when they are being changed."""
        if v is None:
            return v
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: str | None) -> str | None:
        """Keep the trimmed price string, provided it is a usable amount."""
        return v if v is None else check_price(v)

    def changes(self) -> dict[str, Any]:
        """Fields the client actually sent, with nulls dropped."""
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class MenuItem(BaseModel):
    """Menu item as stored and displayed."""

    id: str = Field(..., description="Document identifier")
    name: str = Field(..., description="Item name")
    description: str = Field(default="", description="Item description")
    price: str = Field(..., description="Exact price string")
    category: str = Field(..., description="Category label")
    image: str = Field(default="", description="Inline data URL of the item photo")
    tag: str | None = Field(None, description="Optional badge")
    available: bool = Field(default=True, description="Whether item can be ordered")

    @classmethod
    def from_input(cls, item_id: str, data: MenuItemInput) -> "MenuItem":
        """Build a stored item from validated admin input."""
        return cls(id=item_id, **data.model_dump())

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "image": self.image,
            "available": self.available,
        }

        if self.tag:
            item["tag"] = self.tag

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "MenuItem":
        """Create MenuItem from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            MenuItem: Parsed model instance
        """
        return cls(
            id=item["id"],
            name=item.get("name", ""),
            description=item.get("description", ""),
            price=coerce_price(item.get("price")),
            category=item.get("category", ""),
            image=item.get("image", ""),
            tag=item.get("tag") or None,
            available=bool(item.get("available", True)),
        )
