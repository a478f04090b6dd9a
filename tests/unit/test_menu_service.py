"""Unit tests for MenuService."""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from restaurant_order_service.models.catalog_models import (
    CatalogItem,
    Category,
    DeliveryZone,
    Extra,
    LunchMeat,
)
from restaurant_order_service.models.settings_models import StoreSettings
from restaurant_order_service.repositories.catalog_repositories import (
    CatalogRepository,
    DeliveryZoneRepository,
    LunchRepository,
)
from restaurant_order_service.services.business_hours import StoreClock
from restaurant_order_service.services.menu_service import MenuService


@pytest.fixture
def catalog_repository(
    categories: list[Category],
    catalog_items: dict[str, CatalogItem],
    item_extras: list[Extra],
    global_extras: list[Extra],
) -> MagicMock:
    repo = MagicMock(spec=CatalogRepository)
    repo.list_categories.return_value = categories
    repo.list_items.return_value = [i for i in catalog_items.values() if i.available]
    repo.list_item_extras.return_value = item_extras
    repo.list_global_extras.return_value = global_extras
    return repo


@pytest.fixture
def zone_repository(delivery_zones: list[DeliveryZone]) -> MagicMock:
    repo = MagicMock(spec=DeliveryZoneRepository)
    repo.list_zones.return_value = delivery_zones
    return repo


@pytest.fixture
def lunch_repository() -> MagicMock:
    repo = MagicMock(spec=LunchRepository)
    repo.list_meats_for_weekday.return_value = [
        LunchMeat(id="lm1", weekday=3, meat_name="Frango Assado")
    ]
    return repo


def build_service(
    clock: StoreClock,
    catalog_repository: MagicMock,
    zone_repository: MagicMock,
    lunch_repository: MagicMock,
) -> MenuService:
    return MenuService(
        catalog_repository=catalog_repository,
        delivery_zone_repository=zone_repository,
        lunch_repository=lunch_repository,
        clock=clock,
    )


@pytest.mark.unit
class TestBuildMenu:
    """Test suite for menu assembly."""

    @pytest.mark.asyncio
    async def test_closed_store_returns_empty_menu(
        self,
        morning_clock: StoreClock,
        catalog_repository: MagicMock,
        zone_repository: MagicMock,
        lunch_repository: MagicMock,
    ) -> None:
        service = build_service(morning_clock, catalog_repository, zone_repository, lunch_repository)

        menu = await service.build_menu(StoreSettings(is_open=False))

        assert menu.closed is True
        assert menu.items == []
        assert menu.message is not None
        assert menu.message.startswith("A lanchonete está fechada")
        catalog_repository.list_items.assert_not_called()

    @pytest.mark.asyncio
    async def test_morning_menu(
        self,
        morning_clock: StoreClock,
        open_settings: StoreSettings,
        catalog_repository: MagicMock,
        zone_repository: MagicMock,
        lunch_repository: MagicMock,
    ) -> None:
        service = build_service(morning_clock, catalog_repository, zone_repository, lunch_repository)

        menu = await service.build_menu(open_settings)

        assert menu.closed is False
        assert menu.current_hour == 8
        assert menu.day_of_week == 3
        assert "item_misto" in [i.id for i in menu.items]
        sections = {s.name: s for s in menu.menu_by_category}
        assert sections["Almoço"].unavailable_message == "Almoço disponível a partir das 11h"
        assert sections["Almoço"].items == []
        assert sections["Lanches"].unavailable_message is None
        assert [i.id for i in sections["Lanches"].items] == ["item_misto"]
        assert len(menu.global_extras) == 2
        assert menu.lunch_menu[0].meat_name == "Frango Assado"
        lunch_repository.list_meats_for_weekday.assert_called_once_with(3)

    @pytest.mark.asyncio
    async def test_item_extras_attached(
        self,
        morning_clock: StoreClock,
        open_settings: StoreSettings,
        catalog_repository: MagicMock,
        zone_repository: MagicMock,
        lunch_repository: MagicMock,
    ) -> None:
        service = build_service(morning_clock, catalog_repository, zone_repository, lunch_repository)

        menu = await service.build_menu(open_settings)

        by_id = {i.id: i for i in menu.items}
        assert [e.name for e in by_id["item_x"].extras] == ["Coco Ralado"]
        assert by_id["item_y"].extras == []

    @pytest.mark.asyncio
    async def test_noon_menu_hides_lanches(
        self,
        noon_clock: StoreClock,
        open_settings: StoreSettings,
        catalog_repository: MagicMock,
        zone_repository: MagicMock,
        lunch_repository: MagicMock,
    ) -> None:
        service = build_service(noon_clock, catalog_repository, zone_repository, lunch_repository)

        menu = await service.build_menu(open_settings)

        assert "item_misto" not in [i.id for i in menu.items]
        sections = {s.name: s for s in menu.menu_by_category}
        assert sections["Lanches"].unavailable_message == "Lanches disponíveis somente até 10h"
        assert "Almoço" not in sections
        assert menu.current_hour == 12

    @pytest.mark.asyncio
    async def test_skip_time_check(
        self,
        noon_clock: StoreClock,
        catalog_repository: MagicMock,
        zone_repository: MagicMock,
        lunch_repository: MagicMock,
    ) -> None:
        service = build_service(noon_clock, catalog_repository, zone_repository, lunch_repository)

        menu = await service.build_menu(StoreSettings(is_open=False), skip_time_check=True)

        assert menu.closed is False
        assert "item_misto" in [i.id for i in menu.items]
        assert all(s.unavailable_message is None for s in menu.menu_by_category)

    @pytest.mark.asyncio
    async def test_filters_forwarded(
        self,
        morning_clock: StoreClock,
        open_settings: StoreSettings,
        catalog_repository: MagicMock,
        zone_repository: MagicMock,
        lunch_repository: MagicMock,
    ) -> None:
        service = build_service(morning_clock, catalog_repository, zone_repository, lunch_repository)

        await service.build_menu(open_settings, category_id="cat_tapiocas", include_unavailable=True)

        catalog_repository.list_items.assert_called_once_with("cat_tapiocas", True)


@pytest.mark.unit
class TestLunchToday:
    """Test suite for today's lunch view."""

    @pytest.mark.asyncio
    async def test_weekday_lunch(
        self,
        noon_clock: StoreClock,
        open_settings: StoreSettings,
        catalog_repository: MagicMock,
        zone_repository: MagicMock,
        lunch_repository: MagicMock,
    ) -> None:
        service = build_service(noon_clock, catalog_repository, zone_repository, lunch_repository)

        lunch = await service.lunch_today(open_settings)

        assert lunch.weekday == 3
        assert lunch.weekday_name == "Quarta"
        assert lunch.available is True
        assert lunch.meats[0].meat_name == "Frango Assado"
        catalog_repository.list_items.assert_called_once_with("cat_almoco")

    @pytest.mark.asyncio
    async def test_no_lunch_on_sunday(
        self,
        make_clock: type,
        open_settings: StoreSettings,
        catalog_repository: MagicMock,
        zone_repository: MagicMock,
        lunch_repository: MagicMock,
    ) -> None:
        sunday = make_clock(datetime(2024, 1, 21, 15, 0, tzinfo=UTC))
        service = build_service(sunday, catalog_repository, zone_repository, lunch_repository)

        lunch = await service.lunch_today(open_settings)

        assert lunch.weekday == 0
        assert lunch.weekday_name == "Domingo"
        assert lunch.available is False

    @pytest.mark.asyncio
    async def test_closed_store(
        self,
        noon_clock: StoreClock,
        catalog_repository: MagicMock,
        zone_repository: MagicMock,
        lunch_repository: MagicMock,
    ) -> None:
        service = build_service(noon_clock, catalog_repository, zone_repository, lunch_repository)

        lunch = await service.lunch_today(StoreSettings(is_open=False))

        assert lunch.closed is True
        assert lunch.fixed_items == []
        lunch_repository.list_meats_for_weekday.assert_not_called()

    @pytest.mark.asyncio
    async def test_without_lunch_category(
        self,
        noon_clock: StoreClock,
        open_settings: StoreSettings,
        catalog_repository: MagicMock,
        zone_repository: MagicMock,
        lunch_repository: MagicMock,
    ) -> None:
        catalog_repository.list_categories.return_value = [Category(id="c1", name="Bebidas")]
        service = build_service(noon_clock, catalog_repository, zone_repository, lunch_repository)

        lunch = await service.lunch_today(open_settings)

        assert lunch.fixed_items == []
        catalog_repository.list_items.assert_not_called()


@pytest.mark.unit
class TestCatalogLookups:
    """Test suite for simple catalog reads."""

    @pytest.mark.asyncio
    async def test_find_delivery_zone(
        self,
        morning_clock: StoreClock,
        catalog_repository: MagicMock,
        zone_repository: MagicMock,
        lunch_repository: MagicMock,
    ) -> None:
        zone_repository.search_zones.return_value = [
            DeliveryZone(id="z2", neighborhood="Jardim América", fee=Decimal("7.50"))
        ]
        service = build_service(morning_clock, catalog_repository, zone_repository, lunch_repository)

        zone = await service.find_delivery_zone("jardim")

        assert zone is not None
        assert zone.fee == Decimal("7.50")
        zone_repository.search_zones.assert_called_once_with("jardim")

    @pytest.mark.asyncio
    async def test_find_delivery_zone_missing(
        self,
        morning_clock: StoreClock,
        catalog_repository: MagicMock,
        zone_repository: MagicMock,
        lunch_repository: MagicMock,
    ) -> None:
        zone_repository.search_zones.return_value = []
        service = build_service(morning_clock, catalog_repository, zone_repository, lunch_repository)

        assert await service.find_delivery_zone("Lua") is None

    @pytest.mark.asyncio
    async def test_list_delivery_zones(
        self,
        morning_clock: StoreClock,
        catalog_repository: MagicMock,
        zone_repository: MagicMock,
        lunch_repository: MagicMock,
    ) -> None:
        service = build_service(morning_clock, catalog_repository, zone_repository, lunch_repository)

        zones = await service.list_delivery_zones()

        assert [z.neighborhood for z in zones] == ["Centro", "Jardim América"]

    @pytest.mark.asyncio
    async def test_list_items(
        self,
        morning_clock: StoreClock,
        catalog_repository: MagicMock,
        zone_repository: MagicMock,
        lunch_repository: MagicMock,
    ) -> None:
        service = build_service(morning_clock, catalog_repository, zone_repository, lunch_repository)

        await service.list_items("cat_bebidas")

        catalog_repository.list_items.assert_called_once_with("cat_bebidas")
