"""Server-side order pricing.

The server is the only source of truth for prices. Client-sent prices and
totals are never used; every line is re-priced from current reference data.

Rule: subtotal = SUM(unit_price * quantity), where unit_price already includes
the wet modifier and the per-unit extras. Quantity is applied once per line and
rounding happens only when the final sums are taken.
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from restaurant_order_service.models.catalog_models import (
    CatalogItem,
    Category,
    Extra,
    LunchConfiguration,
)
from restaurant_order_service.models.order_models import (
    AppliedExtra,
    CostSummary,
    LunchBaseSelection,
    LunchExtras,
)
from restaurant_order_service.models.request_models import (
    ExtraReference,
    LunchSelection,
    OrderItemRequest,
)
from restaurant_order_service.services.business_hours import LUNCH_CATEGORY
from restaurant_order_service.services.exceptions import (
    ItemNotFoundError,
    ItemUnavailableError,
    OrderValidationError,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# A lunch plate includes one or two of the day's meats
MAX_INCLUDED_MEATS = 2


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class OrderPolicy:
    """Store policy constants for ordering."""

    molhada_surcharge: Decimal = Decimal("1.00")
    cancellation_window_minutes: int = 10


@dataclass
class PricingContext:
    """Reference data loaded for one pricing run."""

    catalog_items: dict[str, CatalogItem] = field(default_factory=dict)
    categories: dict[str, Category] = field(default_factory=dict)
    global_extras: list[Extra] = field(default_factory=list)
    item_extras: list[Extra] = field(default_factory=list)
    lunch: LunchConfiguration | None = None

    def category_name(self, item: CatalogItem) -> str | None:
        category = self.categories.get(item.category_id or "")
        return category.name if category else None


@dataclass
class PricedLine:
    """One order line after pricing.

    Attributes:
        unit_price: Price of one unit including modifier and extras
        surcharge_unit: Modifier plus extras portion of ``unit_price``
    """

    item_id: str | None
    item_name: str
    quantity: int
    unit_price: Decimal
    surcharge_unit: Decimal
    extras: list[AppliedExtra] | LunchExtras
    tapioca_molhada: bool = False
    selected_variation: str | None = None
    category_name: str | None = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class PricedOrder:
    lines: list[PricedLine]
    subtotal: Decimal
    extras_fee: Decimal
    delivery_fee: Decimal
    total: Decimal

    def summary(self) -> CostSummary:
        return CostSummary(
            subtotal=self.subtotal,
            extras_fee=self.extras_fee,
            delivery_fee=self.delivery_fee,
            total=self.total,
        )


class OrderPricer:
    """Prices submitted order lines against reference data."""

    def __init__(self, policy: OrderPolicy | None = None) -> None:
        self.policy = policy or OrderPolicy()

    def price_order(
        self,
        items: list[OrderItemRequest],
        context: PricingContext,
        delivery_fee: Decimal = Decimal("0"),
        enforce_availability: bool = True,
    ) -> PricedOrder:
        """Price every line and compute order totals.

        Args:
            items: Submitted order lines
            context: Reference data for this run
            delivery_fee: Fee already resolved for the order
            enforce_availability: Reject unavailable items (creation only)

        Returns:
            PricedOrder with rounded subtotal, extras fee and total

        Raises:
            ItemNotFoundError: An item id does not resolve
            ItemUnavailableError: One or more items are unavailable
            OrderValidationError: A line breaks an item rule
        """
        missing = [
            i.item_id for i in items if i.item_id is not None and i.item_id not in context.catalog_items
        ]
        if missing:
            raise ItemNotFoundError(missing[0])

        if enforce_availability:
            unavailable = [
                context.catalog_items[i.item_id].name
                for i in items
                if i.item_id is not None and not context.catalog_items[i.item_id].available
            ]
            if unavailable:
                raise ItemUnavailableError(list(dict.fromkeys(unavailable)))

        lines = [self.price_line(item, context, enforce_availability) for item in items]

        subtotal = round_money(sum((line.line_total for line in lines), Decimal("0")))
        extras_fee = round_money(
            sum((line.surcharge_unit * line.quantity for line in lines), Decimal("0"))
        )
        delivery_fee = round_money(delivery_fee)
        total = round_money(subtotal + delivery_fee)

        logger.info(
            f"Priced {len(lines)} lines: subtotal={subtotal}, extras_fee={extras_fee}, "
            f"delivery_fee={delivery_fee}, total={total}"
        )

        return PricedOrder(
            lines=lines,
            subtotal=subtotal,
            extras_fee=extras_fee,
            delivery_fee=delivery_fee,
            total=total,
        )

    def price_line(
        self,
        item: OrderItemRequest,
        context: PricingContext,
        enforce_availability: bool = True,
    ) -> PricedLine:
        if item.lunch is not None:
            return self._price_lunch_line(item, item.lunch, context, enforce_availability)

        return self._price_catalog_line(item, context.catalog_items[item.item_id or ""], context)

    def _price_catalog_line(
        self, request: OrderItemRequest, item: CatalogItem, context: PricingContext
    ) -> PricedLine:
        if not item.allow_quantity and request.quantity > 1:
            raise OrderValidationError(
                "Quantidade inválida", f"O item '{item.name}' não permite quantidade maior que 1"
            )

        variation = request.selected_variation
        if item.requires_variation:
            if not variation:
                raise OrderValidationError(
                    "Variação obrigatória", f"Escolha uma opção para '{item.name}'"
                )
            if item.variation_options and variation not in item.variation_options:
                raise OrderValidationError(
                    "Variação inválida", f"Opção '{variation}' não existe para '{item.name}'"
                )
        elif variation and variation not in item.variation_options:
            variation = None

        surcharge = Decimal("0")
        molhada = False
        if request.tapioca_molhada and item.allow_tapioca_molhada and not item.is_molhado_by_default:
            surcharge += self.policy.molhada_surcharge
            molhada = True

        category_name = context.category_name(item)
        applied = self.resolve_extras(item, category_name, request.extra_references, context)
        surcharge += sum((e.price for e in applied), Decimal("0"))

        return PricedLine(
            item_id=item.id,
            item_name=item.name,
            quantity=request.quantity,
            unit_price=item.price + surcharge,
            surcharge_unit=surcharge,
            extras=applied,
            tapioca_molhada=molhada,
            selected_variation=variation,
            category_name=category_name,
        )

    def resolve_extras(
        self,
        item: CatalogItem,
        category_name: str | None,
        references: list[ExtraReference],
        context: PricingContext,
    ) -> list[AppliedExtra]:
        """Resolve client extra references to server-priced extras.

        Global extras (unscoped or scoped to the item's category) are checked
        first, then extras belonging to the item. References that resolve to
        nothing are dropped.
        """
        if not references:
            return []
        if not item.allow_extras:
            logger.warning(f"Item {item.id} does not allow extras, dropping {len(references)}")
            return []

        candidates = [
            e
            for e in context.global_extras
            if not e.applies_to_category or e.applies_to_category == category_name
        ] + [e for e in context.item_extras if e.item_id == item.id]

        applied: list[AppliedExtra] = []
        for ref in references:
            extra = next((e for e in candidates if e.matches(ref.reference)), None)
            if extra is None:
                logger.warning(f"Dropping unresolvable extra '{ref.reference}' for item {item.id}")
                continue
            applied.append(AppliedExtra(name=extra.name, price=extra.price))
        return applied

    def _price_lunch_line(
        self,
        request: OrderItemRequest,
        selection: LunchSelection,
        context: PricingContext,
        enforce_availability: bool,
    ) -> PricedLine:
        """Price a lunch combo from the base, the day's meats and the sides.

        Included meats must be on the day's lunch menu and at most two are
        kept. Sides are priced by their ``is_free`` flag regardless of whether
        the client listed them under ``sides`` or ``paidSides``.
        """
        lunch = context.lunch or LunchConfiguration()
        base = lunch.find_base(selection.base.id, selection.base.name)
        if base is None:
            raise ItemNotFoundError(selection.base.id or selection.base.name or "")
        if enforce_availability and not base.is_available:
            raise ItemUnavailableError([base.name])

        meats = self._resolve_included_meats(selection.meats, lunch)
        single_meat = len(meats) < 2 and base.price_one_meat > 0
        base_price = base.price_one_meat if single_meat else base.price

        extra_meats: list[str] = []
        meats_total = Decimal("0")
        for name in selection.extra_meats:
            meat = lunch.find_extra_meat(name)
            if meat is None:
                logger.warning(f"Dropping unresolvable extra meat '{name}'")
                continue
            extra_meats.append(meat.name)
            meats_total += meat.price

        free_sides: list[str] = []
        paid_sides: list[AppliedExtra] = []
        for name in [*selection.sides, *(ref.name for ref in selection.paid_sides)]:
            side = lunch.find_side(name)
            if side is None:
                logger.warning(f"Dropping unresolvable lunch side '{name}'")
                continue
            if side.is_free:
                if side.name not in free_sides:
                    free_sides.append(side.name)
            elif all(s.name != side.name for s in paid_sides):
                paid_sides.append(AppliedExtra(name=side.name, price=side.price))
        sides_total = sum((s.price for s in paid_sides), Decimal("0"))

        surcharge = meats_total + sides_total
        payload = LunchExtras(
            base=LunchBaseSelection(id=base.id, name=base.name, price=base_price),
            meats=meats,
            extra_meats=extra_meats,
            sides=free_sides,
            paid_sides=paid_sides,
        )

        return PricedLine(
            item_id=None,
            item_name=f"Almoço - {base.name}",
            quantity=request.quantity,
            unit_price=base_price + surcharge,
            surcharge_unit=surcharge,
            extras=payload,
            category_name=LUNCH_CATEGORY,
        )

    @staticmethod
    def _resolve_included_meats(names: list[str], lunch: LunchConfiguration) -> list[str]:
        meats: list[str] = []
        for name in names:
            meat = lunch.find_meat_of_the_day(name)
            if meat is None:
                logger.warning(f"Dropping meat '{name}' not on today's lunch menu")
                continue
            if meat.meat_name in meats:
                continue
            if len(meats) == MAX_INCLUDED_MEATS:
                logger.warning(f"Dropping meat '{meat.meat_name}', plate already has two")
                continue
            meats.append(meat.meat_name)
        return meats
