"""Storefront page data: every public section in one snapshot."""

from pydantic import BaseModel, Field

from zequi_storefront.models.menu_models import MenuItem
from zequi_storefront.models.site_models import AboutData, ContactData, LogoData
from zequi_storefront.services.menu_service import MenuService
from zequi_storefront.services.site_service import SiteService


class MenuSection(BaseModel):
    """One category tab of the menu grid."""

    category: str
    items: list[MenuItem] = Field(default_factory=list)


class StorefrontView(BaseModel):
    """Everything the public page renders."""

    logo: LogoData
    about: AboutData
    contact: ContactData
    categories: list[str]
    sections: list[MenuSection]


def group_by_category(items: list[MenuItem], categories: list[str]) -> list[MenuSection]:
    """One section per category, in category order.

    Items whose category is not in the list are not shown, and unavailable
    items stay visible (the page marks them as not orderable).
    """
    return [
        MenuSection(category=category, items=[i for i in items if i.category == category])
        for category in categories
    ]


def build_storefront(menu_service: MenuService, site_service: SiteService) -> StorefrontView:
    """Load the current snapshot of every public section."""
    categories = menu_service.get_categories()
    return StorefrontView(
        logo=site_service.get_logo(),
        about=site_service.get_about(),
        contact=site_service.get_contact(),
        categories=categories,
        sections=group_by_category(menu_service.list_items(), categories),
    )
