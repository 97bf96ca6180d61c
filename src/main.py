"""Main application entry point for the storefront service.

This module wires repositories, services and the FastAPI application
for running the service locally or in production.
"""

import logging
import os
from typing import Any

import boto3
from fastapi import FastAPI

from zequi_storefront.handlers.api_handler import create_app
from zequi_storefront.models.settings_models import load_settings
from zequi_storefront.observability import configure_logging, setup_observability
from zequi_storefront.repositories.menu_repositories import (
    MenuItemRepository,
    SiteDocumentRepository,
)
from zequi_storefront.repositories.order_repositories import OrderRepository
from zequi_storefront.services.image_service import ImageService
from zequi_storefront.services.menu_service import MenuService
from zequi_storefront.services.order_service import OrderService
from zequi_storefront.services.site_service import SiteService
from zequi_storefront.services.subscription_hub import SubscriptionHub

logger = logging.getLogger(__name__)


def get_dynamodb_resource() -> Any:
    """Create DynamoDB resource with appropriate configuration.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        return boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
        )

    logger.info(f"Using AWS DynamoDB in region {region}")
    return boto3.resource("dynamodb", region_name=region)


def create_application() -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    Returns:
        Configured FastAPI application instance
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    logger.info("Initializing storefront service...")

    dynamodb_resource = get_dynamodb_resource()

    menu_table = os.getenv("DYNAMODB_MENU_ITEMS_TABLE", "zequi-menu-items")
    orders_table = os.getenv("DYNAMODB_ORDERS_TABLE", "zequi-orders")
    documents_table = os.getenv("DYNAMODB_SITE_DOCUMENTS_TABLE", "zequi-site-documents")

    item_repository = MenuItemRepository(dynamodb_resource=dynamodb_resource, table_name=menu_table)
    order_repository = OrderRepository(dynamodb_resource=dynamodb_resource, table_name=orders_table)
    document_repository = SiteDocumentRepository(
        dynamodb_resource=dynamodb_resource, table_name=documents_table
    )
    logger.info(
        f"Repositories configured - menu: {menu_table}, orders: {orders_table}, "
        f"documents: {documents_table}"
    )

    hub = SubscriptionHub()
    menu_service = MenuService(
        item_repository=item_repository, document_repository=document_repository, hub=hub
    )
    order_service = OrderService(
        order_repository=order_repository, menu_repository=item_repository, hub=hub
    )
    site_service = SiteService(document_repository=document_repository, hub=hub)
    image_service = ImageService()

    app = create_app(
        menu_service=menu_service,
        order_service=order_service,
        site_service=site_service,
        image_service=image_service,
        hub=hub,
        settings=load_settings(),
        seed_defaults=os.getenv("SEED_DEFAULTS", "true").lower() == "true",
    )
    setup_observability(app)

    logger.info("Storefront service initialized successfully")
    return app


# Skip wiring during test collection
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    app = FastAPI()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting development server on {host}:{port}")

    # One worker: live subscriptions are held in process memory
    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
