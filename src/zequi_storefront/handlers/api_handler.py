"""FastAPI application for the storefront and the admin panel."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, File, Header, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from zequi_storefront.auth.admin_password_validator import AdminPasswordValidator
from zequi_storefront.auth.api_dependencies import require_admin_password
from zequi_storefront.handlers.stream_handler import stream_response
from zequi_storefront.models.menu_models import MenuItem, MenuItemInput, MenuItemPatch
from zequi_storefront.models.order_models import (
    Order,
    OrderCreateRequest,
    OrderItem,
    OrderStats,
    OrderStatus,
)
from zequi_storefront.models.settings_models import StorefrontSettings
from zequi_storefront.models.site_models import AboutData, ContactData, LogoData
from zequi_storefront.services.cart import Cart
from zequi_storefront.services.errors import (
    ImageProcessingError,
    InvalidTransitionError,
    NotFoundError,
    StorageError,
    ValidationFailedError,
)
from zequi_storefront.services.image_service import ImageService
from zequi_storefront.services.manifest_service import MANIFEST_MEDIA_TYPE, ManifestService
from zequi_storefront.services.menu_service import CATEGORIES_TOPIC, MENU_TOPIC, MenuService
from zequi_storefront.services.offline_cache import (
    TEMPLATES_DIR,
    WORKER_MEDIA_TYPE,
    OfflineCacheWorker,
)
from zequi_storefront.services.order_service import ORDERS_TOPIC, OrderService
from zequi_storefront.services.site_service import (
    ABOUT_TOPIC,
    CONTACT_TOPIC,
    LOGO_TOPIC,
    SiteService,
)
from zequi_storefront.services.storefront import StorefrontView, build_storefront
from zequi_storefront.services.subscription_hub import SubscriptionHub
from zequi_storefront.services.whatsapp import build_whatsapp_link

logger = logging.getLogger(__name__)

PUBLIC_TOPICS = (MENU_TOPIC, CATEGORIES_TOPIC, ABOUT_TOPIC, CONTACT_TOPIC, LOGO_TOPIC)

# Uploads above this are refused even after compression
MAX_UPLOAD_RESULT_KB = 900


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


class CartQuoteRequest(BaseModel):
    """Cart lines to price."""

    items: list[OrderItem]


class CartQuoteResponse(BaseModel):
    """Priced cart."""

    items: list[OrderItem]
    item_count: int
    total: float
    display_total: str


class CategoryRequest(BaseModel):
    """A single category label."""

    name: str


class CategoriesRequest(BaseModel):
    """A full category list."""

    categories: list[str]


class StatusUpdateRequest(BaseModel):
    """Requested order status."""

    status: OrderStatus


class ImageUploadResponse(BaseModel):
    """Compressed upload ready to be put into a menu item or logo."""

    image: str
    size_kb: int
    within_limit: bool


class WhatsAppLinkResponse(BaseModel):
    """Deep link to message the customer."""

    url: str


class LoginResponse(BaseModel):
    """Result of an admin login."""

    authenticated: bool


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": message})


def register_error_handlers(app: FastAPI) -> None:
    """Translate service exceptions into short user-facing messages."""

    @app.exception_handler(ValidationFailedError)
    async def handle_validation(_request: Request, exc: ValidationFailedError) -> JSONResponse:
        return _error_response(422, str(exc))

    @app.exception_handler(NotFoundError)
    async def handle_not_found(_request: Request, exc: NotFoundError) -> JSONResponse:
        return _error_response(404, str(exc))

    @app.exception_handler(InvalidTransitionError)
    async def handle_transition(_request: Request, exc: InvalidTransitionError) -> JSONResponse:
        return _error_response(409, str(exc))

    @app.exception_handler(ImageProcessingError)
    async def handle_image(_request: Request, exc: ImageProcessingError) -> JSONResponse:
        logger.warning(f"Image upload rejected: {exc}")
        return _error_response(400, "No se pudo procesar la imagen.")

    @app.exception_handler(StorageError)
    async def handle_storage(_request: Request, exc: StorageError) -> JSONResponse:
        logger.error(f"Write failed: {exc}")
        return _error_response(503, "Error al guardar.")


def create_app(
    menu_service: MenuService,
    order_service: OrderService,
    site_service: SiteService,
    image_service: ImageService,
    hub: SubscriptionHub,
    settings: StorefrontSettings,
    seed_defaults: bool = False,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        menu_service: Service for menu items and categories
        order_service: Service for orders
        site_service: Service for site content
        image_service: Service for compressing uploads
        hub: Subscription hub backing the live streams
        settings: Runtime settings
        seed_defaults: Write missing default documents on startup

    Returns:
        Configured FastAPI application
    """
    manifest_service = ManifestService(site_service=site_service, settings=settings)
    offline_worker = OfflineCacheWorker(settings=settings)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if seed_defaults:
            await site_service.initialize_defaults()
        manifest_service.start()
        yield
        manifest_service.stop()

    app = FastAPI(
        title="Zequi Storefront API",
        description="Storefront, ordering and admin panel API for a single restaurant",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.menu_service = menu_service
    app.state.order_service = order_service
    app.state.site_service = site_service
    app.state.image_service = image_service
    app.state.manifest_service = manifest_service
    app.state.offline_worker = offline_worker
    app.state.hub = hub
    app.state.settings = settings
    app.state.admin_validator = AdminPasswordValidator(passwords=settings.admin_passwords)

    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    register_error_handlers(app)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy")

    # ── Storefront shell and installable-app assets ─────────────────

    @app.get("/", response_class=HTMLResponse, tags=["Storefront"])
    @app.get("/index.html", response_class=HTMLResponse, tags=["Storefront"])
    async def storefront_page(request: Request) -> HTMLResponse:
        """Render the public page with every section."""
        view = build_storefront(app.state.menu_service, app.state.site_service)
        return templates.TemplateResponse(request, "index.html", {"view": view})

    @app.get("/sw.js", tags=["Storefront"])
    async def service_worker() -> Response:
        """Offline cache worker script."""
        return Response(
            content=app.state.offline_worker.render(),
            media_type=WORKER_MEDIA_TYPE,
            headers={"Cache-Control": "no-cache"},
        )

    @app.get("/manifest.webmanifest", tags=["Storefront"])
    async def web_manifest() -> JSONResponse:
        """Installable-app manifest built from the current logo."""
        return JSONResponse(content=app.state.manifest_service.manifest, media_type=MANIFEST_MEDIA_TYPE)

    @app.get("/apple-touch-icon.png", tags=["Storefront"])
    async def touch_icon() -> Response:
        """Home-screen icon built from the current logo."""
        return Response(content=app.state.manifest_service.touch_icon, media_type="image/png")

    # ── Public data ─────────────────────────────────────────────────

    @app.get("/api/storefront", response_model=StorefrontView, tags=["Storefront"])
    async def get_storefront() -> StorefrontView:
        """Every public section in one response."""
        return build_storefront(app.state.menu_service, app.state.site_service)

    @app.get("/api/menu", response_model=list[MenuItem], tags=["Menu"])
    async def get_menu() -> list[MenuItem]:
        """All menu items."""
        items: list[MenuItem] = app.state.menu_service.list_items()
        return items

    @app.get("/api/categories", response_model=list[str], tags=["Menu"])
    async def get_categories() -> list[str]:
        """Category labels in display order."""
        categories: list[str] = app.state.menu_service.get_categories()
        return categories

    @app.get("/api/site/about", response_model=AboutData, tags=["Site"])
    async def get_about() -> AboutData:
        """About section content."""
        about: AboutData = app.state.site_service.get_about()
        return about

    @app.get("/api/site/contact", response_model=ContactData, tags=["Site"])
    async def get_contact() -> ContactData:
        """Contact section content."""
        contact: ContactData = app.state.site_service.get_contact()
        return contact

    @app.get("/api/site/logo", response_model=LogoData, tags=["Site"])
    async def get_logo() -> LogoData:
        """Brand mark."""
        logo: LogoData = app.state.site_service.get_logo()
        return logo

    @app.get("/api/stream/{topic}", tags=["Live"])
    async def stream_topic(topic: str, request: Request) -> Any:
        """Live updates of a public topic as Server-Sent Events."""
        if topic not in PUBLIC_TOPICS:
            raise HTTPException(status_code=404, detail=f"Unknown topic '{topic}'")
        return stream_response(app.state.hub, topic, request)

    # ── Cart and checkout ───────────────────────────────────────────

    @app.post("/api/cart/quote", response_model=CartQuoteResponse, tags=["Orders"])
    async def quote_cart(body: CartQuoteRequest) -> CartQuoteResponse:
        """Merge repeated lines and price the cart from the menu in integer cents."""
        cart: Cart = app.state.order_service.quote_cart(body.items)
        try:
            total = cart.total
            display_total = cart.display_total
        except ValueError as e:
            raise ValidationFailedError(str(e)) from e
        return CartQuoteResponse(
            items=cart.lines,
            item_count=cart.item_count,
            total=total,
            display_total=display_total,
        )

    @app.post("/api/orders", response_model=Order, status_code=201, tags=["Orders"])
    async def submit_order(body: OrderCreateRequest) -> Order:
        """Submit a delivery order."""
        order: Order = await app.state.order_service.create_order(body)
        return order

    # ── Admin panel ─────────────────────────────────────────────────

    def validate_admin(x_admin_password: str | None = Header(None)) -> str:
        """Dependency to validate the admin password."""
        return require_admin_password(
            x_admin_password=x_admin_password, validator=app.state.admin_validator
        )

    admin = APIRouter(prefix="/api/admin", dependencies=[Depends(validate_admin)])

    @admin.post("/login", response_model=LoginResponse, tags=["Admin"])
    async def login() -> LoginResponse:
        """Confirm the password; every admin request sends it again."""
        return LoginResponse(authenticated=True)

    @admin.get("/menu", response_model=list[MenuItem], tags=["Admin menu"])
    async def admin_list_menu() -> list[MenuItem]:
        """All menu items."""
        items: list[MenuItem] = app.state.menu_service.list_items()
        return items

    @admin.post("/menu", response_model=MenuItem, status_code=201, tags=["Admin menu"])
    async def admin_add_item(body: MenuItemInput) -> MenuItem:
        """Create a menu item."""
        item: MenuItem = await app.state.menu_service.add_item(body)
        return item

    @admin.put("/menu/{item_id}", response_model=MenuItem, tags=["Admin menu"])
    async def admin_update_item(item_id: str, body: MenuItemInput) -> MenuItem:
        """Replace a menu item's fields."""
        item: MenuItem = await app.state.menu_service.update_item(item_id, body)
        return item

    @admin.patch("/menu/{item_id}", response_model=MenuItem, tags=["Admin menu"])
    async def admin_patch_item(item_id: str, body: MenuItemPatch) -> MenuItem:
        """Change some of a menu item's fields, e.g. its availability."""
        item: MenuItem = await app.state.menu_service.patch_item(item_id, body)
        return item

    @admin.delete("/menu/{item_id}", status_code=204, tags=["Admin menu"])
    async def admin_delete_item(item_id: str) -> Response:
        """Delete a menu item."""
        await app.state.menu_service.delete_item(item_id)
        return Response(status_code=204)

    @admin.put("/categories", response_model=list[str], tags=["Admin menu"])
    async def admin_save_categories(body: CategoriesRequest) -> list[str]:
        """Replace the category list."""
        categories: list[str] = await app.state.menu_service.save_categories(body.categories)
        return categories

    @admin.post("/categories", response_model=list[str], tags=["Admin menu"])
    async def admin_add_category(body: CategoryRequest) -> list[str]:
        """Append a category."""
        categories: list[str] = await app.state.menu_service.add_category(body.name)
        return categories

    @admin.delete("/categories/{name}", response_model=list[str], tags=["Admin menu"])
    async def admin_remove_category(name: str) -> list[str]:
        """Remove a category."""
        categories: list[str] = await app.state.menu_service.remove_category(name)
        return categories

    @admin.post("/images", response_model=ImageUploadResponse, tags=["Admin menu"])
    async def admin_upload_image(file: UploadFile = File(...)) -> ImageUploadResponse:
        """Compress an uploaded photo or logo into an inline data URL."""
        data = await file.read()
        result = await run_in_threadpool(app.state.image_service.compress_image, data)
        if result.size_kb > MAX_UPLOAD_RESULT_KB:
            raise HTTPException(status_code=413, detail="Imagen aún muy grande.")
        return ImageUploadResponse(
            image=result.data_url, size_kb=result.size_kb, within_limit=result.within_limit
        )

    @admin.put("/site/about", response_model=AboutData, tags=["Admin site"])
    async def admin_save_about(body: AboutData) -> AboutData:
        """Replace the about section."""
        about: AboutData = await app.state.site_service.save_about(body)
        return about

    @admin.put("/site/contact", response_model=ContactData, tags=["Admin site"])
    async def admin_save_contact(body: ContactData) -> ContactData:
        """Replace the contact section."""
        contact: ContactData = await app.state.site_service.save_contact(body)
        return contact

    @admin.put("/site/logo", response_model=LogoData, tags=["Admin site"])
    async def admin_save_logo(body: LogoData) -> LogoData:
        """Replace the brand mark."""
        logo: LogoData = await app.state.site_service.save_logo(body)
        return logo

    @admin.get("/orders", response_model=list[Order], tags=["Admin orders"])
    async def admin_list_orders(status: OrderStatus | None = None) -> list[Order]:
        """Orders newest first, optionally filtered by status."""
        orders: list[Order] = app.state.order_service.list_orders(status=status)
        return orders

    @admin.get("/orders/stats", response_model=OrderStats, tags=["Admin orders"])
    async def admin_order_stats() -> OrderStats:
        """Order counters for the dashboard."""
        stats: OrderStats = app.state.order_service.order_stats()
        return stats

    @admin.get("/orders/{order_id}", response_model=Order, tags=["Admin orders"])
    async def admin_get_order(order_id: str) -> Order:
        """A single order."""
        order: Order = app.state.order_service.get_order(order_id)
        return order

    @admin.post("/orders/{order_id}/advance", response_model=Order, tags=["Admin orders"])
    async def admin_advance_order(order_id: str) -> Order:
        """Move an order to its next state."""
        order: Order = await app.state.order_service.advance_order(order_id)
        return order

    @admin.post("/orders/{order_id}/cancel", response_model=Order, tags=["Admin orders"])
    async def admin_cancel_order(order_id: str) -> Order:
        """Cancel a live order."""
        order: Order = await app.state.order_service.cancel_order(order_id)
        return order

    @admin.put("/orders/{order_id}/status", response_model=Order, tags=["Admin orders"])
    async def admin_set_order_status(order_id: str, body: StatusUpdateRequest) -> Order:
        """Apply an explicit status change allowed by the workflow."""
        order: Order = await app.state.order_service.update_status(order_id, body.status)
        return order

    @admin.delete("/orders/{order_id}", status_code=204, tags=["Admin orders"])
    async def admin_delete_order(order_id: str) -> Response:
        """Delete an order permanently."""
        await app.state.order_service.delete_order(order_id)
        return Response(status_code=204)

    @admin.get("/orders/{order_id}/whatsapp", response_model=WhatsAppLinkResponse, tags=["Admin orders"])
    async def admin_whatsapp_link(order_id: str) -> WhatsAppLinkResponse:
        """Deep link for messaging the customer about their order."""
        order: Order = app.state.order_service.get_order(order_id)
        url = build_whatsapp_link(
            order,
            business_name=app.state.settings.business_name,
            country_code=app.state.settings.whatsapp_country_code,
        )
        return WhatsAppLinkResponse(url=url)

    @admin.get("/stream/orders", tags=["Live"])
    async def admin_stream_orders(request: Request) -> Any:
        """Live order list as Server-Sent Events."""
        return stream_response(app.state.hub, ORDERS_TOPIC, request)

    app.include_router(admin)

    return app
