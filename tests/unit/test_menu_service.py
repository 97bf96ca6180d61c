"""Unit tests for MenuService."""

from typing import Any
from unittest.mock import MagicMock

import pytest

from zequi_storefront.models.menu_models import (
    DEFAULT_CATEGORIES,
    MenuItem,
    MenuItemInput,
    MenuItemPatch,
)
from zequi_storefront.repositories.menu_repositories import (
    MenuItemRepository,
    SiteDocumentRepository,
)
from zequi_storefront.services.errors import NotFoundError, StorageError
from zequi_storefront.services.menu_service import (
    CATEGORIES_DOC,
    MenuService,
    clean_categories,
)
from zequi_storefront.services.subscription_hub import SubscriptionHub


@pytest.mark.unit
class TestCleanCategories:
    """Tests for clean_categories."""

    def test_strips_and_deduplicates(self) -> None:
        """Test that labels are trimmed and repeats dropped in order."""
        assert clean_categories([" Burgers", "Sides", "", "Burgers ", "  "]) == [
            "Burgers",
            "Sides",
        ]


@pytest.mark.unit
class TestMenuService:
    """Test suite for MenuService."""

    @pytest.fixture
    def mock_item_repo(self) -> MagicMock:
        """Create a mock MenuItemRepository."""
        return MagicMock(spec=MenuItemRepository)

    @pytest.fixture
    def mock_document_repo(self) -> MagicMock:
        """Create a mock SiteDocumentRepository."""
        return MagicMock(spec=SiteDocumentRepository)

    @pytest.fixture
    def hub(self) -> SubscriptionHub:
        """Create a real hub."""
        return SubscriptionHub()

    @pytest.fixture
    def menu_service(
        self, mock_item_repo: MagicMock, mock_document_repo: MagicMock, hub: SubscriptionHub
    ) -> MenuService:
        """Create a MenuService with mocked repositories."""
        return MenuService(
            item_repository=mock_item_repo, document_repository=mock_document_repo, hub=hub
        )

    def test_registers_topics(self, menu_service: MenuService, hub: SubscriptionHub) -> None:
        """Test that the menu and category topics exist."""
        assert "menu" in hub.topics
        assert "categories" in hub.topics

    def test_get_categories_stored(
        self, menu_service: MenuService, mock_document_repo: MagicMock
    ) -> None:
        """Test reading the stored list."""
        mock_document_repo.get_document.return_value = {"list": ["Burgers", "Postres"]}

        assert menu_service.get_categories() == ["Burgers", "Postres"]

    def test_get_categories_absent_creates_defaults(
        self, menu_service: MenuService, mock_document_repo: MagicMock
    ) -> None:
        """Test that a missing document is created with the defaults."""
        mock_document_repo.get_document.return_value = None

        categories = menu_service.get_categories()

        assert categories == DEFAULT_CATEGORIES
        mock_document_repo.save_document.assert_called_once_with(
            CATEGORIES_DOC, {"list": ["Burgers", "Sides", "Bebidas"]}
        )

    def test_get_categories_absent_and_write_fails(
        self, menu_service: MenuService, mock_document_repo: MagicMock
    ) -> None:
        """Test that a failed default write still returns the defaults."""
        mock_document_repo.get_document.return_value = None
        mock_document_repo.save_document.side_effect = StorageError("down")

        assert menu_service.get_categories() == DEFAULT_CATEGORIES

    def test_get_categories_empty_list_falls_back(
        self, menu_service: MenuService, mock_document_repo: MagicMock
    ) -> None:
        """Test that an empty stored list reads as the defaults without a write."""
        mock_document_repo.get_document.return_value = {"list": []}

        assert menu_service.get_categories() == DEFAULT_CATEGORIES
        mock_document_repo.save_document.assert_not_called()

    def test_get_item_missing(self, menu_service: MenuService, mock_item_repo: MagicMock) -> None:
        """Test that a missing item raises NotFoundError."""
        mock_item_repo.get_item.return_value = None

        with pytest.raises(NotFoundError):
            menu_service.get_item("missing")

    @pytest.mark.asyncio
    async def test_add_item_publishes(
        self,
        menu_service: MenuService,
        mock_item_repo: MagicMock,
        mock_menu_items: list[MenuItem],
    ) -> None:
        """Test that adding an item saves it and notifies menu subscribers."""
        snapshots: list[Any] = []
        mock_item_repo.list_items.return_value = []
        menu_service.subscribe_to_menu(snapshots.append)

        mock_item_repo.list_items.return_value = mock_menu_items[:1]
        item = await menu_service.add_item(
            MenuItemInput(name="Smash Doble", price="5.00", category="Burgers")
        )

        assert len(item.id) == 32
        mock_item_repo.save_item.assert_called_once_with(item)
        assert snapshots == [[], mock_menu_items[:1]]

    @pytest.mark.asyncio
    async def test_add_item_failure_does_not_publish(
        self, menu_service: MenuService, mock_item_repo: MagicMock
    ) -> None:
        """Test that a failed write raises and leaves subscribers untouched."""
        snapshots: list[Any] = []
        mock_item_repo.list_items.return_value = []
        menu_service.subscribe_to_menu(snapshots.append)
        mock_item_repo.save_item.side_effect = StorageError("down")

        with pytest.raises(StorageError):
            await menu_service.add_item(MenuItemInput(name="X", price="1", category="Sides"))

        assert snapshots == [[]]

    @pytest.mark.asyncio
    async def test_update_item(
        self,
        menu_service: MenuService,
        mock_item_repo: MagicMock,
        mock_menu_items: list[MenuItem],
    ) -> None:
        """Test replacing an item's fields."""
        mock_item_repo.get_item.return_value = mock_menu_items[0]

        item = await menu_service.update_item(
            "item_1", MenuItemInput(name="Smash Triple", price="6.50", category="Burgers")
        )

        assert item.id == "item_1"
        assert item.price == "6.50"
        mock_item_repo.save_item.assert_called_once_with(item)

    @pytest.mark.asyncio
    async def test_update_missing_item(
        self, menu_service: MenuService, mock_item_repo: MagicMock
    ) -> None:
        """Test that updating an absent item raises NotFoundError."""
        mock_item_repo.get_item.return_value = None

        with pytest.raises(NotFoundError):
            await menu_service.update_item(
                "missing", MenuItemInput(name="X", price="1", category="Sides")
            )
        mock_item_repo.save_item.assert_not_called()

    @pytest.mark.asyncio
    async def test_patch_item_sets_only_sent_fields(
        self,
        menu_service: MenuService,
        mock_item_repo: MagicMock,
        mock_menu_items: list[MenuItem],
        hub: SubscriptionHub,
    ) -> None:
        """Test marking an item sold out and notifying menu subscribers."""
        sold_out = mock_menu_items[0].model_copy(update={"available": False})
        mock_item_repo.get_item.return_value = sold_out
        mock_item_repo.list_items.return_value = [sold_out]
        snapshots: list[Any] = []
        hub.subscribe("menu", snapshots.append)

        item = await menu_service.patch_item("item_1", MenuItemPatch(available=False))

        assert item == sold_out
        mock_item_repo.update_fields.assert_called_once_with("item_1", {"available": False})
        assert len(snapshots) == 2

    @pytest.mark.asyncio
    async def test_empty_patch_writes_nothing(
        self,
        menu_service: MenuService,
        mock_item_repo: MagicMock,
        mock_menu_items: list[MenuItem],
    ) -> None:
        """Test that a patch without fields just returns the item."""
        mock_item_repo.get_item.return_value = mock_menu_items[1]

        item = await menu_service.patch_item("item_2", MenuItemPatch())

        assert item == mock_menu_items[1]
        mock_item_repo.update_fields.assert_not_called()

    @pytest.mark.asyncio
    async def test_patch_missing_item(
        self, menu_service: MenuService, mock_item_repo: MagicMock, hub: SubscriptionHub
    ) -> None:
        """Test that patching an absent item raises NotFoundError without publishing."""
        mock_item_repo.update_fields.side_effect = NotFoundError("gone")
        mock_item_repo.list_items.return_value = []
        snapshots: list[Any] = []
        hub.subscribe("menu", snapshots.append)

        with pytest.raises(NotFoundError):
            await menu_service.patch_item("missing", MenuItemPatch(available=True))
        assert snapshots == [[]]

    @pytest.mark.asyncio
    async def test_delete_item(self, menu_service: MenuService, mock_item_repo: MagicMock) -> None:
        """Test deleting an item."""
        await menu_service.delete_item("item_1")

        mock_item_repo.delete_item.assert_called_once_with("item_1")

    @pytest.mark.asyncio
    async def test_add_category(
        self, menu_service: MenuService, mock_document_repo: MagicMock
    ) -> None:
        """Test appending a category."""
        mock_document_repo.get_document.return_value = {"list": ["Burgers"]}

        categories = await menu_service.add_category(" Postres ")

        assert categories == ["Burgers", "Postres"]
        mock_document_repo.save_document.assert_called_once_with(
            CATEGORIES_DOC, {"list": ["Burgers", "Postres"]}
        )

    @pytest.mark.asyncio
    async def test_add_existing_category_is_noop(
        self, menu_service: MenuService, mock_document_repo: MagicMock
    ) -> None:
        """Test that a repeated label is ignored."""
        mock_document_repo.get_document.return_value = {"list": ["Burgers"]}

        assert await menu_service.add_category("Burgers") == ["Burgers"]
        mock_document_repo.save_document.assert_not_called()

    @pytest.mark.asyncio
    async def test_remove_category(
        self, menu_service: MenuService, mock_document_repo: MagicMock
    ) -> None:
        """Test removing a category."""
        mock_document_repo.get_document.return_value = {"list": ["Burgers", "Sides"]}

        assert await menu_service.remove_category("Sides") == ["Burgers"]

    @pytest.mark.asyncio
    async def test_save_categories_publishes(
        self, menu_service: MenuService, mock_document_repo: MagicMock
    ) -> None:
        """Test that category subscribers see the new list."""
        snapshots: list[Any] = []
        mock_document_repo.get_document.return_value = {"list": ["Burgers"]}
        menu_service.subscribe_to_categories(snapshots.append)

        mock_document_repo.get_document.return_value = {"list": ["Bebidas", "Burgers"]}
        await menu_service.save_categories(["Bebidas", "Burgers"])

        assert snapshots == [["Burgers"], ["Bebidas", "Burgers"]]
