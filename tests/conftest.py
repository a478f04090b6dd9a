"""Shared pytest fixtures and configuration for all tests."""

import os
from datetime import UTC, datetime
from decimal import Decimal

import pytest

# Entry modules skip app creation and exporters in test mode
os.environ["ENVIRONMENT"] = "test"

from restaurant_order_service.models.catalog_models import (  # noqa: E402
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
from restaurant_order_service.models.settings_models import StoreSettings  # noqa: E402
from restaurant_order_service.services.business_hours import StoreClock  # noqa: E402


class FixedClock(StoreClock):
    """StoreClock frozen at a given UTC instant."""

    def __init__(self, instant: datetime, utc_offset_hours: int = -3) -> None:
        super().__init__(utc_offset_hours=utc_offset_hours)
        self.instant = instant

    def now(self) -> datetime:
        return self.instant


@pytest.fixture
def morning_clock() -> FixedClock:
    """Wednesday 08:00 local (11:00 UTC): Lanches open, Almoço closed."""
    return FixedClock(datetime(2024, 1, 17, 11, 0, tzinfo=UTC))


@pytest.fixture
def noon_clock() -> FixedClock:
    """Wednesday 12:00 local (15:00 UTC): Lanches closed, Almoço open."""
    return FixedClock(datetime(2024, 1, 17, 15, 0, tzinfo=UTC))


@pytest.fixture
def open_settings() -> StoreSettings:
    return StoreSettings(is_open=True)


@pytest.fixture
def categories() -> list[Category]:
    return [
        Category(id="cat_lanches", name="Lanches"),
        Category(id="cat_tapiocas", name="Tapiocas"),
        Category(id="cat_almoco", name="Almoço"),
        Category(id="cat_bebidas", name="Bebidas"),
    ]


@pytest.fixture
def catalog_items() -> dict[str, CatalogItem]:
    """Sample catalog keyed by id."""
    items = [
        CatalogItem(
            id="item_x",
            name="Tapioca de Queijo",
            price=Decimal("10.00"),
            category_id="cat_tapiocas",
            allow_extras=True,
            allow_tapioca_molhada=True,
        ),
        CatalogItem(
            id="item_y",
            name="Suco de Laranja",
            price=Decimal("5.50"),
            category_id="cat_bebidas",
        ),
        CatalogItem(
            id="item_molhada",
            name="Tapioca Molhada Tradicional",
            price=Decimal("9.00"),
            category_id="cat_tapiocas",
            allow_tapioca_molhada=True,
            is_molhado_by_default=True,
        ),
        CatalogItem(
            id="item_misto",
            name="Misto Quente",
            price=Decimal("7.00"),
            category_id="cat_lanches",
        ),
        CatalogItem(
            id="item_cuscuz",
            name="Cuscuz",
            price=Decimal("8.00"),
            category_id="cat_tapiocas",
            requires_variation=True,
            variation_options=["Com ovo", "Com carne"],
        ),
        CatalogItem(
            id="item_off",
            name="Bolo de Milho",
            price=Decimal("4.00"),
            category_id="cat_lanches",
            available=False,
        ),
    ]
    return {item.id: item for item in items}


@pytest.fixture
def global_extras() -> list[Extra]:
    return [
        Extra(id="g1", name="Queijo Extra", code="QJ", price=Decimal("2.00")),
        Extra(
            id="g2",
            name="Bacon",
            code="BC",
            price=Decimal("3.00"),
            applies_to_category="Lanches",
        ),
    ]


@pytest.fixture
def item_extras() -> list[Extra]:
    return [Extra(id="e1", name="Coco Ralado", price=Decimal("1.50"), item_id="item_x")]


@pytest.fixture
def delivery_zones() -> list[DeliveryZone]:
    return [
        DeliveryZone(id="z1", neighborhood="Centro", fee=Decimal("5.00")),
        DeliveryZone(id="z2", neighborhood="Jardim América", fee=Decimal("7.50")),
    ]


@pytest.fixture
def lunch_configuration() -> LunchConfiguration:
    return LunchConfiguration(
        bases=[
            LunchBase(
                id="base_1",
                name="Prato Feito",
                price=Decimal("22.00"),
                price_one_meat=Decimal("18.00"),
            ),
            LunchBase(
                id="base_2",
                name="Marmita Grande",
                price=Decimal("25.00"),
                price_one_meat=Decimal("0"),
            ),
        ],
        meats_of_the_day=[
            LunchMeat(id="lm1", weekday=3, meat_name="Frango"),
            LunchMeat(id="lm2", weekday=3, meat_name="Carne"),
        ],
        extra_meats=[ExtraMeat(id="m1", name="Frango Grelhado", price=Decimal("6.00"))],
        sides=[
            LunchSide(id="s1", name="Arroz", is_free=True),
            LunchSide(id="s2", name="Batata Frita", is_free=False, price=Decimal("4.00")),
        ],
    )


@pytest.fixture
def make_clock() -> type[FixedClock]:
    """Factory for clocks frozen at an arbitrary UTC instant."""
    return FixedClock
