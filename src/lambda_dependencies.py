"""Shared dependency factory for the Lambda handler and the dev server.

Dependencies are created once and reused across invocations within the same
Lambda container.
"""

import logging
import os
from typing import Any

import boto3
from fastapi import FastAPI

from restaurant_order_service.auth.api_dependencies import SessionAuthenticator
from restaurant_order_service.auth.session_validator import AuthServiceClient
from restaurant_order_service.handlers.api_handler import create_app
from restaurant_order_service.observability import configure_logging
from restaurant_order_service.repositories.catalog_repositories import (
    CatalogRepository,
    DeliveryZoneRepository,
    LunchRepository,
)
from restaurant_order_service.repositories.order_repositories import (
    OrderItemRepository,
    OrderRepository,
)
from restaurant_order_service.repositories.store_repositories import (
    SettingsRepository,
    UserRoleRepository,
)
from restaurant_order_service.services.business_hours import StoreClock
from restaurant_order_service.services.menu_service import MenuService
from restaurant_order_service.services.order_service import OrderService
from restaurant_order_service.services.pricing_service import OrderPolicy
from restaurant_order_service.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

# Module-level caches for Lambda container reuse
_dynamodb_resource: Any | None = None
_store_clock: StoreClock | None = None
_order_service: OrderService | None = None
_menu_service: MenuService | None = None
_settings_service: SettingsService | None = None
_authenticator: SessionAuthenticator | None = None
_fastapi_app: FastAPI | None = None


def table_name(name: str) -> str:
    """Physical table name for a logical table, e.g. ``orders``."""
    return f"{os.getenv('DYNAMODB_TABLE_PREFIX', 'restaurant-')}{name}"


def get_dynamodb_resource() -> Any:
    """Create or retrieve cached DynamoDB resource.

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


def get_store_clock() -> StoreClock:
    global _store_clock

    if _store_clock is None:
        _store_clock = StoreClock(utc_offset_hours=int(os.getenv("STORE_UTC_OFFSET_HOURS", "-3")))
    return _store_clock


def get_catalog_repository() -> CatalogRepository:
    return CatalogRepository(
        dynamodb_resource=get_dynamodb_resource(),
        items_table=table_name("items"),
        categories_table=table_name("categories"),
        extras_table=table_name("extras"),
        global_extras_table=table_name("global_extras"),
    )


def get_delivery_zone_repository() -> DeliveryZoneRepository:
    return DeliveryZoneRepository(get_dynamodb_resource(), table_name("delivery_zones"))


def get_lunch_repository() -> LunchRepository:
    return LunchRepository(
        dynamodb_resource=get_dynamodb_resource(),
        bases_table=table_name("lunch_bases"),
        menu_table=table_name("lunch_menu"),
        extra_meats_table=table_name("extra_meats"),
        sides_table=table_name("lunch_sides"),
    )


def get_order_service() -> OrderService:
    """Create or retrieve cached order service.

    Returns:
        Configured OrderService instance
    """
    global _order_service

    if _order_service is not None:
        return _order_service

    dynamodb_resource = get_dynamodb_resource()
    policy = OrderPolicy(
        cancellation_window_minutes=int(os.getenv("CANCELLATION_WINDOW_MINUTES", "10")),
    )

    _order_service = OrderService(
        order_repository=OrderRepository(dynamodb_resource, table_name("orders")),
        order_item_repository=OrderItemRepository(dynamodb_resource, table_name("order_items")),
        catalog_repository=get_catalog_repository(),
        delivery_zone_repository=get_delivery_zone_repository(),
        lunch_repository=get_lunch_repository(),
        policy=policy,
        clock=get_store_clock(),
    )

    logger.info(f"Order service initialized (table prefix: {table_name('')})")
    return _order_service


def get_menu_service() -> MenuService:
    global _menu_service

    if _menu_service is None:
        _menu_service = MenuService(
            catalog_repository=get_catalog_repository(),
            delivery_zone_repository=get_delivery_zone_repository(),
            lunch_repository=get_lunch_repository(),
            clock=get_store_clock(),
        )
        logger.info("Menu service initialized")
    return _menu_service


def get_settings_service() -> SettingsService:
    global _settings_service

    if _settings_service is None:
        _settings_service = SettingsService(
            SettingsRepository(get_dynamodb_resource(), table_name("settings")),
            clock=get_store_clock(),
        )
        logger.info("Settings service initialized")
    return _settings_service


def get_authenticator() -> SessionAuthenticator:
    """Create or retrieve cached session authenticator.

    Raises:
        ValueError: If the auth service is not configured
    """
    global _authenticator

    if _authenticator is not None:
        return _authenticator

    auth_url = os.getenv("AUTH_SERVICE_URL")
    auth_api_key = os.getenv("AUTH_SERVICE_API_KEY")

    if not auth_url or not auth_api_key:
        raise ValueError("AUTH_SERVICE_URL and AUTH_SERVICE_API_KEY must be set in environment")

    _authenticator = SessionAuthenticator(
        auth_client=AuthServiceClient(base_url=auth_url, api_key=auth_api_key),
        role_repository=UserRoleRepository(get_dynamodb_resource(), table_name("user_roles")),
    )

    logger.info(f"Auth service client configured - URL: {auth_url}")
    return _authenticator


def get_fastapi_app() -> FastAPI:
    """Create or retrieve cached FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    global _fastapi_app

    if _fastapi_app is not None:
        return _fastapi_app

    _fastapi_app = create_app(
        order_service=get_order_service(),
        menu_service=get_menu_service(),
        settings_service=get_settings_service(),
        authenticator=get_authenticator(),
    )

    logger.info("FastAPI application initialized")
    return _fastapi_app


def initialize_lambda_environment() -> None:
    """Configure logging once during Lambda cold start."""
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Lambda environment initialized")
