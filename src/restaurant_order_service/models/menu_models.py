"""Read models returned by the public catalog endpoints."""

from pydantic import BaseModel, Field

from restaurant_order_service.models.catalog_models import (
    CatalogItem,
    Category,
    Extra,
    LunchMeat,
)


class MenuItemView(CatalogItem):
    """Catalog item with its item-specific extras attached."""

    extras: list[Extra] = Field(default_factory=list)


class MenuCategory(Category):
    """A category section of the menu.

    ``unavailable_message`` is set when the category is outside its sale window.
    """

    items: list[MenuItemView] = Field(default_factory=list)
    unavailable_message: str | None = None


class Menu(BaseModel):
    """Full customer-facing menu."""

    categories: list[Category] = Field(default_factory=list)
    items: list[MenuItemView] = Field(default_factory=list)
    menu_by_category: list[MenuCategory] = Field(default_factory=list)
    global_extras: list[Extra] = Field(default_factory=list)
    lunch_menu: list[LunchMeat] = Field(default_factory=list)
    current_hour: int | None = None
    day_of_week: int | None = None
    closed: bool = False
    message: str | None = None


class LunchToday(BaseModel):
    """Today's lunch offer."""

    weekday: int
    weekday_name: str
    fixed_items: list[CatalogItem] = Field(default_factory=list)
    meats: list[LunchMeat] = Field(default_factory=list)
    available: bool = False
    closed: bool = False
    message: str | None = None
