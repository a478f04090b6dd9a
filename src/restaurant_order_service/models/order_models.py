"""Order and order item models.

These models represent persisted orders and their line items, plus conversion
to and from DynamoDB items. Monetary values are Decimals in storage and are
rendered as JSON numbers in API responses.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


class OrderStatus(str, Enum):
    """Order lifecycle status."""

    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Kanban order; cancelled sits outside the sequence
STATUS_SEQUENCE: tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.DELIVERED,
)


class OrderType(str, Enum):
    """How the customer receives the order."""

    LOCAL = "local"
    PICKUP = "pickup"
    DELIVERY = "delivery"


class Address(BaseModel):
    """Delivery address attached to an order."""

    street: str | None = None
    neighborhood: str | None = None
    postal_code: str | None = None
    reference: str | None = None

    def to_dynamodb_item(self) -> dict[str, Any]:
        return {k: v for k, v in self.model_dump().items() if v is not None}


class AppliedExtra(BaseModel):
    """A resolved regular extra as persisted on an order item."""

    name: str
    price: Money


class LunchBaseSelection(BaseModel):
    """Lunch base as persisted, with the server-resolved price."""

    id: str | None = None
    name: str
    price: Money


class LunchExtras(BaseModel):
    """Structured lunch combo payload, tagged with ``type == "lunch"``."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["lunch"] = "lunch"
    base: LunchBaseSelection
    meats: list[str] = Field(default_factory=list)
    extra_meats: list[str] = Field(default_factory=list, alias="extraMeats")
    sides: list[str] = Field(default_factory=list)
    paid_sides: list[AppliedExtra] = Field(default_factory=list, alias="paidSides")


def is_lunch_payload(extras: Any) -> bool:
    """Whether a raw extras payload is the lunch-tagged object form."""
    return isinstance(extras, dict) and extras.get("type") == "lunch"


class OrderItem(BaseModel):
    """A single line within an order.

    ``price`` is always the unit price including the item's own modifier and
    extras premium. It is never a pre-multiplied line total.
    """

    id: str
    order_id: str
    item_id: str | None = None
    item_name: str | None = None
    quantity: int = Field(..., ge=1)
    price: Money = Field(..., ge=0)
    extras: list[AppliedExtra] | LunchExtras = Field(default_factory=list)
    tapioca_molhada: bool = False
    selected_variation: str | None = None

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    @property
    def is_lunch(self) -> bool:
        return isinstance(self.extras, LunchExtras)

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        if isinstance(self.extras, LunchExtras):
            extras: Any = self.extras.model_dump(by_alias=True)
        else:
            extras = [e.model_dump() for e in self.extras]

        item: dict[str, Any] = {
            "order_id": self.order_id,
            "id": self.id,
            "quantity": self.quantity,
            "price": self.price,
            "extras": extras,
            "tapioca_molhada": self.tapioca_molhada,
        }
        if self.item_id is not None:
            item["item_id"] = self.item_id
        if self.item_name is not None:
            item["item_name"] = self.item_name
        if self.selected_variation is not None:
            item["selected_variation"] = self.selected_variation
        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "OrderItem":
        """Create OrderItem from DynamoDB item, branching on the extras tag."""
        raw_extras = item.get("extras") or []
        extras: list[AppliedExtra] | LunchExtras
        if is_lunch_payload(raw_extras):
            extras = LunchExtras.model_validate(raw_extras)
        else:
            extras = [AppliedExtra.model_validate(e) for e in raw_extras]

        return cls(
            id=item["id"],
            order_id=item["order_id"],
            item_id=item.get("item_id"),
            item_name=item.get("item_name"),
            quantity=int(item["quantity"]),
            price=Decimal(str(item["price"])),
            extras=extras,
            tapioca_molhada=bool(item.get("tapioca_molhada", False)),
            selected_variation=item.get("selected_variation"),
        )


class CostSummary(BaseModel):
    """Server-computed cost breakdown returned on order creation."""

    subtotal: Money
    extras_fee: Money
    delivery_fee: Money
    total: Money


class Order(BaseModel):
    """One customer transaction.

    ``total`` always equals ``subtotal + delivery_fee``; extras are folded into
    the subtotal per item and ``extras_fee`` is reported separately.
    """

    id: str
    customer_name: str
    customer_phone: str | None = None
    order_type: OrderType
    address: Address | None = None
    scheduled_for: str | None = None
    payment_method: str | None = None
    observations: str | None = None
    subtotal: Money = Field(..., ge=0)
    extras_fee: Money = Field(default=Decimal("0"), ge=0)
    delivery_fee: Money = Field(default=Decimal("0"), ge=0)
    total: Money = Field(..., ge=0)
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime
    last_modified_at: datetime | None = None
    last_modified_by: str | None = None
    cancelled_at: datetime | None = None
    cancelled_by: str | None = None
    cancellation_reason: str | None = None
    user_id: str | None = None
    items: list[OrderItem] = Field(default_factory=list)

    @property
    def order_number(self) -> str:
        """Short display number derived from the id."""
        return self.id[-6:].upper()

    @property
    def is_cancelled(self) -> bool:
        return self.status == OrderStatus.CANCELLED

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert the order row (without items) to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "id": self.id,
            "customer_name": self.customer_name,
            "order_type": self.order_type.value,
            "subtotal": self.subtotal,
            "extras_fee": self.extras_fee,
            "delivery_fee": self.delivery_fee,
            "total": self.total,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }

        optional: dict[str, Any] = {
            "customer_phone": self.customer_phone,
            "address": self.address.to_dynamodb_item() if self.address else None,
            "scheduled_for": self.scheduled_for,
            "payment_method": self.payment_method,
            "observations": self.observations,
            "last_modified_at": (
                self.last_modified_at.isoformat() if self.last_modified_at else None
            ),
            "last_modified_by": self.last_modified_by,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "cancelled_by": self.cancelled_by,
            "cancellation_reason": self.cancellation_reason,
            "user_id": self.user_id,
        }
        item.update({k: v for k, v in optional.items() if v is not None})
        return item

    @classmethod
    def from_dynamodb_item(
        cls, item: dict[str, Any], items: list[OrderItem] | None = None
    ) -> "Order":
        """Create Order from DynamoDB item.

        Args:
            item: DynamoDB item dictionary for the order row
            items: Already-loaded order items to attach

        Returns:
            Order: Parsed model instance
        """
        data: dict[str, Any] = {
            "id": item["id"],
            "customer_name": item["customer_name"],
            "order_type": OrderType(item["order_type"]),
            "subtotal": Decimal(str(item.get("subtotal", 0))),
            "extras_fee": Decimal(str(item.get("extras_fee", 0))),
            "delivery_fee": Decimal(str(item.get("delivery_fee", 0))),
            "total": Decimal(str(item.get("total", 0))),
            "status": OrderStatus(item["status"]),
            "created_at": datetime.fromisoformat(item["created_at"]),
            "items": items or [],
        }

        for key in (
            "customer_phone",
            "scheduled_for",
            "payment_method",
            "observations",
            "last_modified_by",
            "cancelled_by",
            "cancellation_reason",
            "user_id",
        ):
            if key in item:
                data[key] = item[key]

        for key in ("last_modified_at", "cancelled_at"):
            if key in item:
                data[key] = datetime.fromisoformat(item[key])

        if "address" in item:
            data["address"] = Address.model_validate(item["address"])

        return cls(**data)
