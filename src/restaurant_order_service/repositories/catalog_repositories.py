"""DynamoDB repositories for read-only reference data.

Reference data is fetched fresh on every request; nothing here caches.
"""

import logging

from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from restaurant_order_service.models.catalog_models import (
    CatalogItem,
    Category,
    DeliveryZone,
    Extra,
    ExtraMeat,
    LunchBase,
    LunchConfiguration,
    LunchMeat,
    LunchSide,
)
from restaurant_order_service.repositories.dynamodb_utils import scan_all
from restaurant_order_service.services.exceptions import PersistenceError

logger = logging.getLogger(__name__)

READ_ERROR = "Erro ao consultar cardápio"


class CatalogRepository:
    """Repository for categories, menu items and extras."""

    def __init__(
        self,
        dynamodb_resource: DynamoDBServiceResource,
        items_table: str,
        categories_table: str,
        extras_table: str,
        global_extras_table: str,
    ) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            items_table: Table holding menu items
            categories_table: Table holding categories
            extras_table: Table holding item-specific extras
            global_extras_table: Table holding global extras
        """
        self.dynamodb = dynamodb_resource
        self.items: Table = dynamodb_resource.Table(items_table)
        self.categories: Table = dynamodb_resource.Table(categories_table)
        self.extras: Table = dynamodb_resource.Table(extras_table)
        self.global_extras: Table = dynamodb_resource.Table(global_extras_table)

    def get_items(self, item_ids: list[str]) -> dict[str, CatalogItem]:
        """Fetch catalog items by id.

        Args:
            item_ids: Item identifiers (duplicates are fetched once)

        Returns:
            dict: Item id to CatalogItem; ids that do not exist are absent
        """
        found: dict[str, CatalogItem] = {}
        try:
            for item_id in dict.fromkeys(item_ids):
                response = self.items.get_item(Key={"id": item_id})
                if "Item" in response:
                    found[item_id] = CatalogItem.from_dynamodb_item(response["Item"])
        except ClientError as e:
            logger.error(f"Failed to get catalog items: {e}")
            raise PersistenceError(READ_ERROR) from e

        return found

    def list_items(
        self, category_id: str | None = None, include_unavailable: bool = False
    ) -> list[CatalogItem]:
        """List menu items ordered by name.

        Args:
            category_id: Restrict to one category
            include_unavailable: Include items flagged unavailable
        """
        try:
            raw_items = scan_all(self.items)
        except ClientError as e:
            logger.error(f"Failed to list catalog items: {e}")
            raise PersistenceError(READ_ERROR) from e

        items = [CatalogItem.from_dynamodb_item(i) for i in raw_items]
        if not include_unavailable:
            items = [i for i in items if i.available]
        if category_id:
            items = [i for i in items if i.category_id == category_id]
        return sorted(items, key=lambda i: i.name)

    def list_categories(self) -> list[Category]:
        try:
            raw_items = scan_all(self.categories)
        except ClientError as e:
            logger.error(f"Failed to list categories: {e}")
            raise PersistenceError(READ_ERROR) from e

        return sorted((Category.from_dynamodb_item(c) for c in raw_items), key=lambda c: c.name)

    def list_global_extras(self) -> list[Extra]:
        try:
            raw_items = scan_all(self.global_extras)
        except ClientError as e:
            logger.error(f"Failed to list global extras: {e}")
            raise PersistenceError(READ_ERROR) from e

        return [Extra.from_dynamodb_item({**e, "item_id": None}) for e in raw_items]

    def list_item_extras(self, item_ids: list[str]) -> list[Extra]:
        """List item-specific extras belonging to any of the given items."""
        if not item_ids:
            return []
        try:
            raw_items = scan_all(self.extras, FilterExpression=Attr("item_id").is_in(item_ids))
        except ClientError as e:
            logger.error(f"Failed to list item extras: {e}")
            raise PersistenceError(READ_ERROR) from e

        return [Extra.from_dynamodb_item(e) for e in raw_items]


class DeliveryZoneRepository:
    """Repository for neighborhood delivery fees."""

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def list_zones(self) -> list[DeliveryZone]:
        """List all delivery zones ordered by neighborhood."""
        try:
            raw_items = scan_all(self.table)
        except ClientError as e:
            logger.error(f"Failed to list delivery zones: {e}")
            raise PersistenceError("Erro ao consultar bairros") from e

        zones = [DeliveryZone.from_dynamodb_item(z) for z in raw_items]
        return sorted(zones, key=lambda z: z.neighborhood.casefold())

    def find_zone(self, neighborhood: str) -> DeliveryZone | None:
        """Find the zone whose name matches exactly, ignoring case and padding."""
        return next((z for z in self.list_zones() if z.matches(neighborhood)), None)

    def search_zones(self, term: str) -> list[DeliveryZone]:
        """Case-insensitive substring search used by the public lookup."""
        wanted = term.strip().casefold()
        return [z for z in self.list_zones() if wanted in z.neighborhood.casefold()]


class LunchRepository:
    """Repository for the lunch configuration tables."""

    def __init__(
        self,
        dynamodb_resource: DynamoDBServiceResource,
        bases_table: str,
        menu_table: str,
        extra_meats_table: str,
        sides_table: str,
    ) -> None:
        self.dynamodb = dynamodb_resource
        self.bases: Table = dynamodb_resource.Table(bases_table)
        self.menu: Table = dynamodb_resource.Table(menu_table)
        self.extra_meats: Table = dynamodb_resource.Table(extra_meats_table)
        self.sides: Table = dynamodb_resource.Table(sides_table)

    def list_meats_for_weekday(self, weekday: int) -> list[LunchMeat]:
        """List the meats included on a weekday (0 = Sunday)."""
        try:
            raw_items = scan_all(self.menu, FilterExpression=Attr("weekday").eq(weekday))
        except ClientError as e:
            logger.error(f"Failed to list lunch menu for weekday {weekday}: {e}")
            raise PersistenceError("Erro ao consultar almoço") from e

        return [LunchMeat.from_dynamodb_item(m) for m in raw_items]

    def get_configuration(self, weekday: int) -> LunchConfiguration:
        """Load everything needed to price a lunch combo on a weekday."""
        try:
            bases = [LunchBase.from_dynamodb_item(b) for b in scan_all(self.bases)]
            extra_meats = [ExtraMeat.from_dynamodb_item(m) for m in scan_all(self.extra_meats)]
            sides = [LunchSide.from_dynamodb_item(s) for s in scan_all(self.sides)]
        except ClientError as e:
            logger.error(f"Failed to load lunch configuration: {e}")
            raise PersistenceError("Erro ao consultar almoço") from e

        return LunchConfiguration(
            bases=bases,
            meats_of_the_day=self.list_meats_for_weekday(weekday),
            extra_meats=extra_meats,
            sides=sides,
        )
