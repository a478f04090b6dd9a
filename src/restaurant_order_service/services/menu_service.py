"""Read-only catalog views: menu, categories, items, delivery zones and lunch."""

import logging

from restaurant_order_service.models.catalog_models import CatalogItem, Category, DeliveryZone
from restaurant_order_service.models.menu_models import LunchToday, Menu, MenuCategory, MenuItemView
from restaurant_order_service.models.settings_models import StoreSettings
from restaurant_order_service.repositories.catalog_repositories import (
    CatalogRepository,
    DeliveryZoneRepository,
    LunchRepository,
)
from restaurant_order_service.services.business_hours import (
    LUNCH_CATEGORY,
    LUNCH_WEEKDAYS,
    WEEKDAY_NAMES,
    StoreClock,
)
from restaurant_order_service.services.exceptions import StoreClosedError

logger = logging.getLogger(__name__)


class MenuService:
    """Service assembling catalog data for customers and staff."""

    def __init__(
        self,
        catalog_repository: CatalogRepository,
        delivery_zone_repository: DeliveryZoneRepository,
        lunch_repository: LunchRepository,
        clock: StoreClock | None = None,
    ) -> None:
        self.catalog_repository = catalog_repository
        self.delivery_zone_repository = delivery_zone_repository
        self.lunch_repository = lunch_repository
        self.clock = clock or StoreClock()

    async def build_menu(
        self,
        settings: StoreSettings,
        category_id: str | None = None,
        include_unavailable: bool = False,
        skip_time_check: bool = False,
    ) -> Menu:
        """Assemble the menu as it can be ordered right now.

        When the store is closed an empty menu flagged ``closed`` is returned.
        Categories outside their sale window are emptied and carry the
        window's message instead.

        Args:
            settings: Current store settings
            category_id: Restrict items to one category
            include_unavailable: Include items flagged unavailable
            skip_time_check: Ignore the store-open flag and sale windows
        """
        if not skip_time_check and not settings.is_open:
            return Menu(closed=True, message=StoreClosedError().message)

        now = self.clock.now()
        local_now = self.clock.local(now)
        weekday = self.clock.weekday(now)

        categories = self.catalog_repository.list_categories()
        catalog_items = self.catalog_repository.list_items(category_id, include_unavailable)
        item_extras = self.catalog_repository.list_item_extras([i.id for i in catalog_items])
        global_extras = self.catalog_repository.list_global_extras()
        lunch_menu = self.lunch_repository.list_meats_for_weekday(weekday)

        items = [
            MenuItemView(
                **item.model_dump(),
                extras=[e for e in item_extras if e.item_id == item.id],
            )
            for item in catalog_items
        ]

        messages: dict[str, str] = {}
        if not skip_time_check:
            for category in categories:
                window = self.clock.closed_window(category.name, now)
                if window is None:
                    continue
                messages[category.id] = window.message
                items = [i for i in items if i.category_id != category.id]

        sections = [
            MenuCategory(
                **category.model_dump(),
                items=[i for i in items if i.category_id == category.id],
                unavailable_message=messages.get(category.id),
            )
            for category in categories
        ]

        logger.info(
            f"Built menu with {len(items)} items at local hour {local_now.hour}, weekday {weekday}"
        )

        return Menu(
            categories=categories,
            items=items,
            menu_by_category=[s for s in sections if s.items or s.unavailable_message],
            global_extras=global_extras,
            lunch_menu=lunch_menu,
            current_hour=local_now.hour,
            day_of_week=weekday,
        )

    async def lunch_today(self, settings: StoreSettings, skip_time_check: bool = False) -> LunchToday:
        """Today's lunch: the fixed lunch items and the meats of the day.

        Lunch is offered Monday to Saturday.
        """
        weekday = self.clock.weekday()
        if not skip_time_check and not settings.is_open:
            return LunchToday(
                weekday=weekday,
                weekday_name=WEEKDAY_NAMES[weekday],
                closed=True,
                message=StoreClosedError().message,
            )

        lunch_category = next(
            (c for c in self.catalog_repository.list_categories() if c.name == LUNCH_CATEGORY),
            None,
        )
        fixed_items = (
            self.catalog_repository.list_items(lunch_category.id) if lunch_category else []
        )
        meats = self.lunch_repository.list_meats_for_weekday(weekday)

        logger.info(
            f"Lunch menu for weekday {weekday}: {len(fixed_items)} items, {len(meats)} meats"
        )

        return LunchToday(
            weekday=weekday,
            weekday_name=WEEKDAY_NAMES[weekday],
            fixed_items=fixed_items,
            meats=meats,
            available=weekday in LUNCH_WEEKDAYS,
        )

    async def list_categories(self) -> list[Category]:
        return self.catalog_repository.list_categories()

    async def list_items(self, category_id: str | None = None) -> list[CatalogItem]:
        return self.catalog_repository.list_items(category_id)

    async def list_delivery_zones(self) -> list[DeliveryZone]:
        return self.delivery_zone_repository.list_zones()

    async def find_delivery_zone(self, neighborhood: str) -> DeliveryZone | None:
        """First zone whose name contains the search term, ignoring case."""
        zones = self.delivery_zone_repository.search_zones(neighborhood)
        if not zones:
            logger.info(f"No delivery zone found for '{neighborhood}'")
            return None
        return zones[0]
