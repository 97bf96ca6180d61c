"""Menu service: menu items and categories."""

import logging
import uuid

from zequi_storefront.models.menu_models import (
    DEFAULT_CATEGORIES,
    MenuItem,
    MenuItemInput,
    MenuItemPatch,
)
from zequi_storefront.observability import traced
from zequi_storefront.repositories.menu_repositories import (
    MenuItemRepository,
    SiteDocumentRepository,
)
from zequi_storefront.services.errors import NotFoundError, StorageError
from zequi_storefront.services.subscription_hub import (
    SnapshotCallback,
    Subscription,
    SubscriptionHub,
)

logger = logging.getLogger(__name__)

MENU_TOPIC = "menu"
CATEGORIES_TOPIC = "categories"
CATEGORIES_DOC = "config/categories"


def clean_categories(categories: list[str]) -> list[str]:
    """Strip labels, dropping blanks and repeats while keeping order."""
    cleaned: list[str] = []
    for category in categories:
        label = category.strip()
        if label and label not in cleaned:
            cleaned.append(label)
    return cleaned


class MenuService:
    """Service for menu items and the category list.

    Every successful write publishes the affected topic so that live
    subscribers see the change.
    """

    def __init__(
        self,
        item_repository: MenuItemRepository,
        document_repository: SiteDocumentRepository,
        hub: SubscriptionHub,
    ) -> None:
        """Initialize the MenuService.

        Args:
            item_repository: Repository for menu items
            document_repository: Repository holding the categories document
            hub: Subscription hub to publish changes to
        """
        self.item_repository = item_repository
        self.document_repository = document_repository
        self.hub = hub

        hub.register_topic(MENU_TOPIC, self.list_items)
        hub.register_topic(CATEGORIES_TOPIC, self.get_categories)

    def list_items(self) -> list[MenuItem]:
        """Every menu item, available or not."""
        return self.item_repository.list_items()

    def get_categories(self) -> list[str]:
        """Current category list.

        Falls back to the defaults when the stored list is absent or empty.
        An absent document is created with the defaults.

        Returns:
            list: Category labels in display order
        """
        document = self.document_repository.get_document(CATEGORIES_DOC)

        if document is None:
            try:
                self.document_repository.save_document(
                    CATEGORIES_DOC, {"list": list(DEFAULT_CATEGORIES)}
                )
                logger.info("Created categories document with defaults")
            except StorageError as e:
                logger.warning(f"Could not create default categories: {e}")
            return list(DEFAULT_CATEGORIES)

        categories = list(document.get("list") or [])
        return categories if categories else list(DEFAULT_CATEGORIES)

    def subscribe_to_menu(self, callback: SnapshotCallback) -> Subscription:
        """Follow the menu item list."""
        return self.hub.subscribe(MENU_TOPIC, callback)

    def subscribe_to_categories(self, callback: SnapshotCallback) -> Subscription:
        """Follow the category list."""
        return self.hub.subscribe(CATEGORIES_TOPIC, callback)

    def get_item(self, item_id: str) -> MenuItem:
        """Retrieve a menu item.

        Raises:
            NotFoundError: If the item does not exist
        """
        item = self.item_repository.get_item(item_id)
        if item is None:
            raise NotFoundError(f"Menu item {item_id} not found")
        return item

    @traced("menu.add_item")
    async def add_item(self, data: MenuItemInput) -> MenuItem:
        """Create a menu item.

        Args:
            data: Validated item fields

        Returns:
            MenuItem: The stored item
        """
        item = MenuItem.from_input(uuid.uuid4().hex, data)
        self.item_repository.save_item(item)
        logger.info(f"Menu item {item.id} ({item.name}) added")

        self.hub.publish(MENU_TOPIC)
        return item

    @traced("menu.update_item")
    async def update_item(self, item_id: str, data: MenuItemInput) -> MenuItem:
        """Replace the fields of an existing menu item.

        Raises:
            NotFoundError: If the item does not exist
        """
        self.get_item(item_id)

        item = MenuItem.from_input(item_id, data)
        self.item_repository.save_item(item)
        logger.info(f"Menu item {item_id} updated")

        self.hub.publish(MENU_TOPIC)
        return item

    @traced("menu.patch_item")
    async def patch_item(self, item_id: str, patch: MenuItemPatch) -> MenuItem:
        """Change only the fields present in ``patch``.

        Used for quick toggles such as marking an item sold out.

        Raises:
            NotFoundError: If the item does not exist
        """
        changes = patch.changes()
        if not changes:
            return self.get_item(item_id)

        self.item_repository.update_fields(item_id, changes)
        logger.info(f"Menu item {item_id} patched: {', '.join(sorted(changes))}")

        self.hub.publish(MENU_TOPIC)
        return self.get_item(item_id)

    @traced("menu.delete_item")
    async def delete_item(self, item_id: str) -> None:
        """Delete a menu item. Deleting a missing item is not an error."""
        self.item_repository.delete_item(item_id)
        logger.info(f"Menu item {item_id} deleted")

        self.hub.publish(MENU_TOPIC)

    @traced("menu.save_categories")
    async def save_categories(self, categories: list[str]) -> list[str]:
        """Replace the whole category list.

        Args:
            categories: New labels in display order

        Returns:
            list: The labels as stored
        """
        cleaned = clean_categories(categories)
        self.document_repository.save_document(CATEGORIES_DOC, {"list": cleaned})
        logger.info(f"Categories saved: {', '.join(cleaned)}")

        self.hub.publish(CATEGORIES_TOPIC)
        return cleaned

    async def add_category(self, name: str) -> list[str]:
        """Append a category. Blank or existing labels leave the list unchanged."""
        categories = self.get_categories()
        label = name.strip()
        if not label or label in categories:
            return categories
        return await self.save_categories([*categories, label])

    async def remove_category(self, name: str) -> list[str]:
        """Remove a category. Items keep their label."""
        categories = self.get_categories()
        if name not in categories:
            return categories
        return await self.save_categories([c for c in categories if c != name])
