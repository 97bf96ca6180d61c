"""Cached dependency factory for the Lambda entry point.

Dependencies are created once per container and reused by warm invocations.
"""

import logging
import os
from typing import Any

import boto3
from fastapi import FastAPI

from zequi_storefront.handlers.api_handler import create_app
from zequi_storefront.models.settings_models import load_settings
from zequi_storefront.observability import configure_logging
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

_dynamodb_resource: Any | None = None
_hub: SubscriptionHub | None = None
_document_repository: SiteDocumentRepository | None = None
_menu_item_repository: MenuItemRepository | None = None
_menu_service: MenuService | None = None
_order_service: OrderService | None = None
_site_service: SiteService | None = None
_fastapi_app: FastAPI | None = None


def get_dynamodb_resource() -> Any:
    """Create or retrieve the cached DynamoDB resource.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    global _dynamodb_resource

    if _dynamodb_resource is not None:
        return _dynamodb_resource

    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        _dynamodb_resource = boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
        )
    else:
        logger.info(f"Using AWS DynamoDB in region {region}")
        _dynamodb_resource = boto3.resource("dynamodb", region_name=region)

    return _dynamodb_resource


def get_hub() -> SubscriptionHub:
    """Create or retrieve the container's subscription hub."""
    global _hub

    if _hub is None:
        _hub = SubscriptionHub()
    return _hub


def get_document_repository() -> SiteDocumentRepository:
    """Create or retrieve the site document repository."""
    global _document_repository

    if _document_repository is None:
        table = os.getenv("DYNAMODB_SITE_DOCUMENTS_TABLE", "zequi-site-documents")
        _document_repository = SiteDocumentRepository(
            dynamodb_resource=get_dynamodb_resource(), table_name=table
        )
    return _document_repository


def get_menu_item_repository() -> MenuItemRepository:
    """Create or retrieve the menu item repository."""
    global _menu_item_repository

    if _menu_item_repository is None:
        table = os.getenv("DYNAMODB_MENU_ITEMS_TABLE", "zequi-menu-items")
        _menu_item_repository = MenuItemRepository(
            dynamodb_resource=get_dynamodb_resource(), table_name=table
        )
    return _menu_item_repository


def get_menu_service() -> MenuService:
    """Create or retrieve the cached menu service.

    Returns:
        Configured MenuService instance
    """
    global _menu_service

    if _menu_service is not None:
        return _menu_service

    _menu_service = MenuService(
        item_repository=get_menu_item_repository(),
        document_repository=get_document_repository(),
        hub=get_hub(),
    )

    logger.info("Menu service initialized")
    return _menu_service


def get_order_service() -> OrderService:
    """Create or retrieve the cached order service.

    Returns:
        Configured OrderService instance
    """
    global _order_service

    if _order_service is not None:
        return _order_service

    table = os.getenv("DYNAMODB_ORDERS_TABLE", "zequi-orders")
    _order_service = OrderService(
        order_repository=OrderRepository(dynamodb_resource=get_dynamodb_resource(), table_name=table),
        menu_repository=get_menu_item_repository(),
        hub=get_hub(),
    )

    logger.info("Order service initialized")
    return _order_service


def get_site_service() -> SiteService:
    """Create or retrieve the cached site service.

    Returns:
        Configured SiteService instance
    """
    global _site_service

    if _site_service is not None:
        return _site_service

    _site_service = SiteService(document_repository=get_document_repository(), hub=get_hub())

    logger.info("Site service initialized")
    return _site_service


def get_fastapi_app() -> FastAPI:
    """Create or retrieve the cached FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    global _fastapi_app

    if _fastapi_app is not None:
        return _fastapi_app

    _fastapi_app = create_app(
        menu_service=get_menu_service(),
        order_service=get_order_service(),
        site_service=get_site_service(),
        image_service=ImageService(),
        hub=get_hub(),
        settings=load_settings(),
    )

    logger.info("FastAPI application initialized")
    return _fastapi_app


def initialize_lambda_environment() -> None:
    """Configure logging once per cold start."""
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Lambda environment initialized")
