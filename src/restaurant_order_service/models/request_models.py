"""Request payload models for the order endpoints.

Validation here runs before any reference data is read. Field validators raise
``ValueError`` with Portuguese messages intended for direct display.
"""

import re
from decimal import Decimal
from typing import Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from restaurant_order_service.models.order_models import OrderStatus, OrderType

PHONE_PATTERN = re.compile(r"^[\d\s()\-+]*$")

ORDER_TYPE_ALIASES = {
    "retirada": OrderType.PICKUP.value,
    "entrega": OrderType.DELIVERY.value,
}

MAX_ITEMS = 30
MAX_QUANTITY = 50


class ExtraReference(BaseModel):
    """Client reference to an extra, by code or by name.

    A ``price`` may be echoed by the client but is never used for pricing.
    """

    code: str | None = Field(None, max_length=100)
    name: str | None = Field(None, max_length=100)
    price: Decimal | None = Field(None, ge=0)

    @model_validator(mode="after")
    def require_code_or_name(self) -> "ExtraReference":
        if not (self.code or self.name):
            raise ValueError("Adicional deve ter código ou nome")
        return self

    @property
    def reference(self) -> str:
        return self.code or self.name or ""


class LunchBaseReference(BaseModel):
    id: str | None = None
    name: str | None = None
    price: Decimal | None = None


class LunchSideReference(BaseModel):
    name: str
    price: Decimal | None = None


class LunchSelection(BaseModel):
    """Lunch combo choices submitted by the client; prices are re-resolved."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["lunch"]
    base: LunchBaseReference
    meats: list[str] = Field(default_factory=list, max_length=10)
    extra_meats: list[str] = Field(default_factory=list, alias="extraMeats", max_length=10)
    sides: list[str] = Field(default_factory=list, max_length=20)
    paid_sides: list[LunchSideReference] = Field(
        default_factory=list, alias="paidSides", max_length=20
    )

    @model_validator(mode="after")
    def require_base(self) -> "LunchSelection":
        if not (self.base.id or self.base.name):
            raise ValueError("Base do almoço é obrigatória")
        return self


class OrderItemRequest(BaseModel):
    """One submitted order line.

    ``item_id`` is null only for lunch combo lines. ``price`` may be included
    for display purposes and is ignored.
    """

    item_id: str | None = Field(None, max_length=64)
    quantity: int = Field(1, ge=1, le=MAX_QUANTITY)
    price: Decimal | None = Field(None, ge=0, le=Decimal("9999.99"))
    tapioca_molhada: bool = False
    extras: LunchSelection | list[ExtraReference] | None = None
    selected_variation: str | None = Field(None, max_length=100)

    @field_validator("extras", mode="before")
    @classmethod
    def normalize_extras(cls, v: Any) -> Any:
        # Legacy clients send {"selected_variation": ..., "regularExtras": [...]}
        if isinstance(v, dict) and v.get("type") != "lunch":
            return v.get("regularExtras") or []
        return v

    @model_validator(mode="before")
    @classmethod
    def lift_variation(cls, data: Any) -> Any:
        if isinstance(data, dict):
            extras = data.get("extras")
            if (
                isinstance(extras, dict)
                and extras.get("type") != "lunch"
                and not data.get("selected_variation")
                and extras.get("selected_variation")
            ):
                data = {**data, "selected_variation": extras["selected_variation"]}
        return data

    @model_validator(mode="after")
    def lunch_lines_have_no_item(self) -> "OrderItemRequest":
        if self.item_id is None and not isinstance(self.extras, LunchSelection):
            raise ValueError("item_id ausente")
        return self

    @property
    def lunch(self) -> LunchSelection | None:
        return self.extras if isinstance(self.extras, LunchSelection) else None

    @property
    def extra_references(self) -> list[ExtraReference]:
        return self.extras if isinstance(self.extras, list) else []


class AddressRequest(BaseModel):
    """Delivery address fields, accepting the Portuguese field names too."""

    model_config = ConfigDict(populate_by_name=True)

    street: str | None = Field(None, max_length=200)
    neighborhood: str | None = Field(
        None, max_length=100, validation_alias=AliasChoices("neighborhood", "bairro")
    )
    postal_code: str | None = Field(
        None, max_length=20, validation_alias=AliasChoices("postal_code", "cep")
    )
    reference: str | None = Field(None, max_length=200)

    @field_validator("street", "neighborhood", "postal_code", "reference")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class CreateOrderRequest(BaseModel):
    """Order submission payload."""

    customer_name: str
    customer_phone: str | None = None
    order_type: OrderType = OrderType.LOCAL
    address: AddressRequest | None = None
    scheduled_for: str | None = Field(None, max_length=64)
    payment_method: str | None = Field(None, max_length=50)
    observations: str | None = Field(None, max_length=500)
    items: list[OrderItemRequest] = Field(..., max_length=MAX_ITEMS)

    @field_validator("customer_name")
    @classmethod
    def validate_customer_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Nome do cliente é obrigatório")
        if len(v) < 2:
            raise ValueError("Nome deve ter pelo menos 2 caracteres")
        if len(v) > 100:
            raise ValueError("Nome muito longo")
        return v

    @field_validator("customer_phone")
    @classmethod
    def validate_customer_phone(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            return None
        if len(v) > 20 or not PHONE_PATTERN.match(v):
            raise ValueError("Telefone inválido")
        return v

    @field_validator("order_type", mode="before")
    @classmethod
    def normalize_order_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return ORDER_TYPE_ALIASES.get(v.strip().lower(), v.strip().lower())
        return v

    @field_validator("items")
    @classmethod
    def validate_items(cls, v: list[OrderItemRequest]) -> list[OrderItemRequest]:
        if not v:
            raise ValueError("Pedido deve conter pelo menos um item")
        return v

    @property
    def neighborhood(self) -> str | None:
        return self.address.neighborhood if self.address else None


class UpdateOrderRequest(BaseModel):
    """Order edit payload.

    ``subtotal`` and ``total`` are accepted for display only; the server
    recomputes both.
    """

    id: str = Field(..., min_length=1, max_length=64)
    items: list[OrderItemRequest] = Field(..., max_length=MAX_ITEMS)
    observations: str | None = Field(None, max_length=500)
    subtotal: Decimal | None = Field(None, ge=0, le=Decimal("99999.99"))
    total: Decimal | None = Field(None, ge=0, le=Decimal("99999.99"))

    @field_validator("items")
    @classmethod
    def validate_items(cls, v: list[OrderItemRequest]) -> list[OrderItemRequest]:
        if not v:
            raise ValueError("Pedido deve ter pelo menos um item")
        return v


class StatusUpdateRequest(BaseModel):
    status: OrderStatus


class CancelOrderRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)
