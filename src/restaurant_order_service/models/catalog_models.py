"""Catalog and reference data models.

These models represent the read-only reference data that feeds order pricing:
menu categories, items, extras, delivery zones, and the daily lunch configuration.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from restaurant_order_service.models.order_models import Money


def _to_decimal(value: Any) -> Decimal:
    """Convert a stored numeric value to Decimal (DynamoDB returns Decimal already)."""
    if value is None:
        return Decimal("0")
    return value if isinstance(value, Decimal) else Decimal(str(value))


class Category(BaseModel):
    """Menu category model."""

    id: str = Field(..., description="Unique identifier for the category")
    name: str = Field(..., description="Category name")

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Category":
        return cls(id=item["id"], name=item["name"])


class CatalogItem(BaseModel):
    """Menu item as stored in the catalog."""

    id: str = Field(..., description="Unique identifier for the item")
    name: str = Field(..., description="Item name")
    description: str | None = Field(None, description="Item description")
    price: Money = Field(..., description="Base unit price", ge=0)
    category_id: str | None = Field(None, description="Category this item belongs to")
    available: bool = Field(default=True, description="Whether item can be ordered")
    allow_extras: bool = Field(default=False, description="Whether extras may be added")
    allow_quantity: bool = Field(default=True, description="Whether quantity may exceed one")
    allow_tapioca_molhada: bool = Field(default=False, description="Whether wet modifier applies")
    is_molhado_by_default: bool = Field(default=False, description="Item is already wet")
    requires_variation: bool = Field(default=False, description="A variation must be chosen")
    variation_options: list[str] = Field(default_factory=list, description="Allowed variations")

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "CatalogItem":
        """Create CatalogItem from DynamoDB item.

        Nullable boolean flags are stored as absent attributes and fall back to defaults.
        """
        return cls(
            id=item["id"],
            name=item["name"],
            description=item.get("description"),
            price=_to_decimal(item.get("price")),
            category_id=item.get("category_id"),
            available=bool(item.get("available", True)),
            allow_extras=bool(item.get("allow_extras", False)),
            allow_quantity=bool(item.get("allow_quantity", True)),
            allow_tapioca_molhada=bool(item.get("allow_tapioca_molhada", False)),
            is_molhado_by_default=bool(item.get("is_molhado_by_default", False)),
            requires_variation=bool(item.get("requires_variation", False)),
            variation_options=list(item.get("variation_options") or []),
        )


class Extra(BaseModel):
    """Priced add-on for menu items.

    Item-specific extras carry ``item_id``. Global extras leave it empty and may be
    restricted to a category by name through ``applies_to_category``.
    """

    id: str
    name: str
    price: Money = Field(..., ge=0)
    code: str | None = Field(None, description="Short lookup code for global extras")
    item_id: str | None = None
    applies_to_category: str | None = None

    @property
    def is_global(self) -> bool:
        return self.item_id is None

    def matches(self, reference: str) -> bool:
        """Whether a client reference (code or name) identifies this extra."""
        wanted = reference.strip().casefold()
        if self.code and self.code.casefold() == wanted:
            return True
        return self.name.casefold() == wanted

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Extra":
        return cls(
            id=item["id"],
            name=item["name"],
            price=_to_decimal(item.get("price")),
            code=item.get("code"),
            item_id=item.get("item_id"),
            applies_to_category=item.get("applies_to_category"),
        )


class DeliveryZone(BaseModel):
    """Neighborhood-keyed delivery fee."""

    id: str
    neighborhood: str = Field(..., description="Neighborhood (bairro) name")
    fee: Money = Field(..., ge=0, description="Delivery fee (taxa)")
    distance_km: Money | None = None

    def matches(self, neighborhood: str) -> bool:
        return self.neighborhood.strip().casefold() == neighborhood.strip().casefold()

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "DeliveryZone":
        distance = item.get("dist_km")
        return cls(
            id=item["id"],
            neighborhood=item["bairro"],
            fee=_to_decimal(item.get("taxa")),
            distance_km=_to_decimal(distance) if distance is not None else None,
        )


class LunchBase(BaseModel):
    """Lunch plate base with its two-meat and one-meat prices."""

    id: str
    name: str
    price: Money = Field(..., ge=0, description="Price with two meats included")
    price_one_meat: Money = Field(..., ge=0, description="Price with a single meat")
    is_available: bool = True

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "LunchBase":
        return cls(
            id=item["id"],
            name=item["name"],
            price=_to_decimal(item.get("price")),
            price_one_meat=_to_decimal(item.get("price_one_meat")),
            is_available=bool(item.get("is_available", True)),
        )


class LunchMeat(BaseModel):
    """Meat included in the lunch plate on a given weekday (0 = Sunday)."""

    id: str
    weekday: int = Field(..., ge=0, le=6)
    meat_name: str
    meat_price: Money = Decimal("0")

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "LunchMeat":
        return cls(
            id=item["id"],
            weekday=int(item["weekday"]),
            meat_name=item["meat_name"],
            meat_price=_to_decimal(item.get("meat_price")),
        )


class ExtraMeat(BaseModel):
    """Additional meat that can be added to a lunch plate for a price."""

    id: str
    name: str
    price: Money = Field(..., ge=0)
    available: bool = True

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "ExtraMeat":
        return cls(
            id=item["id"],
            name=item["name"],
            price=_to_decimal(item.get("price")),
            available=bool(item.get("available", True)),
        )


class LunchSide(BaseModel):
    """Lunch side dish, free or priced."""

    id: str
    name: str
    is_free: bool = True
    price: Money = Decimal("0")
    available: bool = True

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "LunchSide":
        return cls(
            id=item["id"],
            name=item["name"],
            is_free=bool(item.get("is_free", True)),
            price=_to_decimal(item.get("price")),
            available=bool(item.get("available", True)),
        )


class LunchConfiguration(BaseModel):
    """Snapshot of everything needed to price lunch combos."""

    bases: list[LunchBase] = Field(default_factory=list)
    meats_of_the_day: list[LunchMeat] = Field(default_factory=list)
    extra_meats: list[ExtraMeat] = Field(default_factory=list)
    sides: list[LunchSide] = Field(default_factory=list)

    def find_base(self, base_id: str | None, base_name: str | None) -> LunchBase | None:
        for base in self.bases:
            if base_id and base.id == base_id:
                return base
        for base in self.bases:
            if base_name and base.name.casefold() == base_name.strip().casefold():
                return base
        return None

    def find_extra_meat(self, name: str) -> ExtraMeat | None:
        wanted = name.strip().casefold()
        return next(
            (m for m in self.extra_meats if m.available and m.name.casefold() == wanted), None
        )

    def find_side(self, name: str) -> LunchSide | None:
        wanted = name.strip().casefold()
        return next((s for s in self.sides if s.available and s.name.casefold() == wanted), None)

    def find_meat_of_the_day(self, name: str) -> LunchMeat | None:
        wanted = name.strip().casefold()
        return next((m for m in self.meats_of_the_day if m.meat_name.casefold() == wanted), None)
