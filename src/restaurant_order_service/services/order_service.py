"""Order service for creating, editing, cancelling and advancing orders.

Orders and their items live in two tables with no cross-table transaction
available, so multi-step writes use compensating actions: a failed item insert
deletes the just-created order, and a failed edit restores the item set that
was read before the edit started.

Concurrent edits are not serialized. There is no version check before writes,
so the last write wins.
"""

import logging
import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from restaurant_order_service.models.order_models import (
    STATUS_SEQUENCE,
    Address,
    CostSummary,
    Order,
    OrderItem,
    OrderStatus,
    OrderType,
)
from restaurant_order_service.models.request_models import (
    CreateOrderRequest,
    OrderItemRequest,
    UpdateOrderRequest,
)
from restaurant_order_service.models.settings_models import StoreSettings
from restaurant_order_service.observability import metrics
from restaurant_order_service.observability.decorators import traced
from restaurant_order_service.repositories.catalog_repositories import (
    CatalogRepository,
    DeliveryZoneRepository,
    LunchRepository,
)
from restaurant_order_service.repositories.order_repositories import (
    OrderItemRepository,
    OrderRepository,
)
from restaurant_order_service.services.business_hours import (
    LUNCH_CATEGORY,
    LUNCH_CLOSED_MESSAGE,
    StoreClock,
)
from restaurant_order_service.services.exceptions import (
    CancellationWindowExpiredError,
    CategoryUnavailableError,
    DeliveryZoneNotFoundError,
    InvalidStatusTransitionError,
    OrderCancelledError,
    OrderNotFoundError,
    OrderValidationError,
    PersistenceError,
    PreconditionError,
    StoreClosedError,
)
from restaurant_order_service.services.pricing_service import (
    OrderPolicy,
    OrderPricer,
    PricedOrder,
    PricingContext,
)

logger = logging.getLogger(__name__)


class OrderService:
    """Service for the order lifecycle.

    This service validates submissions against store state, prices them from
    reference data, and persists orders with their items as one logical unit.
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        order_item_repository: OrderItemRepository,
        catalog_repository: CatalogRepository,
        delivery_zone_repository: DeliveryZoneRepository,
        lunch_repository: LunchRepository,
        policy: OrderPolicy | None = None,
        clock: StoreClock | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        """Initialize the OrderService.

        Args:
            order_repository: Repository for order rows
            order_item_repository: Repository for order line items
            catalog_repository: Read access to items, categories and extras
            delivery_zone_repository: Read access to delivery fees
            lunch_repository: Read access to the lunch configuration
            policy: Store policy constants
            clock: Store clock for time windows and timestamps
            id_factory: Generates ids for new rows
        """
        self.order_repository = order_repository
        self.order_item_repository = order_item_repository
        self.catalog_repository = catalog_repository
        self.delivery_zone_repository = delivery_zone_repository
        self.lunch_repository = lunch_repository
        self.policy = policy or OrderPolicy()
        self.clock = clock or StoreClock()
        self.pricer = OrderPricer(self.policy)
        self.id_factory = id_factory or (lambda: str(uuid.uuid4()))

    @traced("create_order", service_name="order-svc")
    async def create_order(
        self,
        request: CreateOrderRequest,
        settings: StoreSettings,
        user_id: str | None = None,
        bypass_hours: bool = False,
    ) -> tuple[Order, CostSummary]:
        """Validate, price and persist a new order.

        Args:
            request: Validated submission
            settings: Current store settings
            user_id: Verified customer identity, if a session was present
            bypass_hours: Skip the store-open and category window checks

        Returns:
            Tuple of (created order with items, cost summary)

        Raises:
            PreconditionError: Store closed, item unavailable, zone unknown, etc.
            PersistenceError: The order could not be written
        """
        now = self.clock.now()

        if not bypass_hours and not settings.is_open:
            metrics.record_order_rejected("store_closed")
            raise StoreClosedError()

        delivery_fee = Decimal("0")
        neighborhood = request.neighborhood
        if request.order_type == OrderType.DELIVERY and not neighborhood:
            metrics.record_order_rejected("missing_neighborhood")
            raise OrderValidationError("Bairro é obrigatório para entregas")

        context = self._load_pricing_context(request.items, now)

        try:
            if request.order_type == OrderType.DELIVERY:
                delivery_fee = self._resolve_delivery_fee(neighborhood or "")
            priced = self.pricer.price_order(request.items, context, delivery_fee=delivery_fee)
            if not bypass_hours:
                self._check_category_windows(priced, now)
        except PreconditionError as e:
            metrics.record_order_rejected(type(e).__name__)
            raise

        order_id = self.id_factory()
        address = (
            Address(**request.address.model_dump()) if request.address is not None else None
        )
        order = Order(
            id=order_id,
            customer_name=request.customer_name,
            customer_phone=request.customer_phone,
            order_type=request.order_type,
            address=address,
            scheduled_for=request.scheduled_for,
            payment_method=request.payment_method,
            observations=request.observations,
            subtotal=priced.subtotal,
            extras_fee=priced.extras_fee,
            delivery_fee=priced.delivery_fee,
            total=priced.total,
            status=OrderStatus.PENDING,
            created_at=now,
            user_id=user_id,
        )
        items = self._build_items(order_id, priced)

        if not self.order_repository.save_order(order):
            raise PersistenceError()

        logger.info(f"Order created: {order_id}")

        if not self.order_item_repository.save_items(items):
            logger.error(f"Failed to create items for order {order_id}, rolling back order")
            self._rollback_created_order(order_id)
            raise PersistenceError("Erro ao salvar itens do pedido")

        logger.info(f"Created {len(items)} order items for order {order_id}")
        metrics.record_order_created(order.order_type.value, float(order.total))

        return order.model_copy(update={"items": items}), priced.summary()

    @traced("update_order", service_name="order-svc")
    async def update_order(self, request: UpdateOrderRequest, acting_user_id: str) -> Order:
        """Replace the items of an order and recompute its totals.

        Client-sent subtotal/total are ignored. The stored delivery fee is kept.

        Args:
            request: Validated edit payload
            acting_user_id: Verified staff/admin identity

        Returns:
            The updated order with its new items

        Raises:
            OrderNotFoundError: The order does not exist
            OrderCancelledError: The order is cancelled
            PersistenceError: The edit could not be applied (items are restored)
        """
        order_id = request.id
        existing = self._get_order_row(order_id)
        if existing.is_cancelled:
            raise OrderCancelledError()

        context = self._load_pricing_context(request.items, self.clock.now())
        priced = self.pricer.price_order(
            request.items,
            context,
            delivery_fee=existing.delivery_fee,
            enforce_availability=False,
        )
        logger.info(
            f"Recalculated order {order_id}: subtotal={priced.subtotal}, total={priced.total} "
            f"(client sent subtotal={request.subtotal}, total={request.total})"
        )

        original_items = self.order_item_repository.list_items(order_id)
        new_items = self._build_items(order_id, priced)

        if not self.order_item_repository.delete_items(order_id):
            self._restore_items(order_id, original_items)
            raise PersistenceError("Erro ao atualizar itens do pedido")

        if not self.order_item_repository.save_items(new_items):
            logger.error(f"Failed to insert new items for order {order_id}, restoring originals")
            self._restore_items(order_id, original_items)
            raise PersistenceError("Erro ao atualizar itens do pedido")

        modified_at = self.clock.now()
        updated = self.order_repository.update_fields(
            order_id,
            {
                "subtotal": priced.subtotal,
                "extras_fee": priced.extras_fee,
                "total": priced.total,
                "observations": request.observations,
                "last_modified_at": modified_at.isoformat(),
                "last_modified_by": acting_user_id,
            },
        )
        if not updated:
            logger.error(f"Failed to update order row {order_id}, restoring original items")
            self._restore_items(order_id, original_items)
            raise PersistenceError("Erro ao atualizar pedido")

        logger.info(f"Order updated successfully: {order_id}")

        changes: dict = {
            "subtotal": priced.subtotal,
            "extras_fee": priced.extras_fee,
            "total": priced.total,
            "last_modified_at": modified_at,
            "last_modified_by": acting_user_id,
            "items": new_items,
        }
        if request.observations is not None:
            changes["observations"] = request.observations
        return existing.model_copy(update=changes)

    @traced("cancel_order", service_name="order-svc")
    async def cancel_order(
        self, order_id: str, acting_user_id: str, reason: str | None = None
    ) -> Order:
        """Cancel a pending order inside the cancellation window.

        Raises:
            OrderNotFoundError: The order does not exist
            PreconditionError: The order is not pending
            CancellationWindowExpiredError: Too much time passed since creation
        """
        order = self._get_order_row(order_id)
        if order.is_cancelled:
            raise PreconditionError("Pedido já está cancelado")
        if order.status != OrderStatus.PENDING:
            raise PreconditionError(
                "Cancelamento não permitido", "Pedido já foi encaminhado para cozinha."
            )

        now = self.clock.now()
        window = timedelta(minutes=self.policy.cancellation_window_minutes)
        if now - order.created_at > window:
            raise CancellationWindowExpiredError(self.policy.cancellation_window_minutes)

        changes = {
            "status": OrderStatus.CANCELLED,
            "cancelled_at": now,
            "cancelled_by": acting_user_id,
            "cancellation_reason": reason,
        }
        if not self.order_repository.update_fields(order_id, self._to_store(changes)):
            raise PersistenceError("Erro ao cancelar pedido")

        logger.info(f"Order {order_id} cancelled by {acting_user_id}")
        metrics.record_status_transition(order.status.value, OrderStatus.CANCELLED.value)
        return order.model_copy(update=changes)

    @traced("advance_order_status", service_name="order-svc")
    async def advance_status(self, order_id: str, acting_user_id: str) -> tuple[Order, bool]:
        """Move an order to the next kanban stage.

        Returns:
            Tuple of (order, changed). ``changed`` is False when the order was
            already delivered.

        Raises:
            InvalidStatusTransitionError: The order is cancelled
        """
        order = self._get_order_row(order_id)
        if order.is_cancelled:
            raise InvalidStatusTransitionError(order.status.value, "next")
        if order.status == STATUS_SEQUENCE[-1]:
            return order, False

        next_status = STATUS_SEQUENCE[STATUS_SEQUENCE.index(order.status) + 1]
        return self._apply_status(order, next_status, acting_user_id), True

    @traced("set_order_status", service_name="order-svc")
    async def set_status(
        self, order_id: str, status: OrderStatus, acting_user_id: str
    ) -> tuple[Order, bool]:
        """Set an explicit status, allowed only as the immediate next stage.

        Setting the current status again is a no-op. Cancellation goes through
        ``cancel_order`` only.
        """
        order = self._get_order_row(order_id)
        if status == OrderStatus.CANCELLED or order.is_cancelled:
            raise InvalidStatusTransitionError(order.status.value, status.value)
        if status == order.status:
            return order, False

        current_index = STATUS_SEQUENCE.index(order.status)
        if STATUS_SEQUENCE.index(status) != current_index + 1:
            raise InvalidStatusTransitionError(order.status.value, status.value)

        return self._apply_status(order, status, acting_user_id), True

    async def get_order(self, order_id: str) -> Order:
        """Fetch an order with its items.

        Raises:
            OrderNotFoundError: The order does not exist
        """
        order = self._get_order_row(order_id)
        return self._attach_items(order)

    async def list_orders(self, user_id: str | None = None) -> list[Order]:
        """List orders newest first, with items, optionally for one customer."""
        orders = self.order_repository.list_orders(user_id=user_id)
        return [self._attach_items(order) for order in orders]

    def _get_order_row(self, order_id: str) -> Order:
        order = self.order_repository.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def _attach_items(self, order: Order) -> Order:
        items = self.order_item_repository.list_items(order.id)
        if any(i.item_id and not i.item_name for i in items):
            catalog = self.catalog_repository.get_items([i.item_id for i in items if i.item_id])
            items = [
                i.model_copy(update={"item_name": catalog[i.item_id].name})
                if i.item_id in catalog and not i.item_name
                else i
                for i in items
            ]
        return order.model_copy(update={"items": items})

    def _apply_status(self, order: Order, status: OrderStatus, acting_user_id: str) -> Order:
        now = self.clock.now()
        changes = {
            "status": status,
            "last_modified_at": now,
            "last_modified_by": acting_user_id,
        }
        if not self.order_repository.update_fields(order.id, self._to_store(changes)):
            raise PersistenceError("Erro ao atualizar status do pedido")

        logger.info(f"Order {order.id} moved from {order.status.value} to {status.value}")
        metrics.record_status_transition(order.status.value, status.value)
        return order.model_copy(update=changes)

    def _load_pricing_context(
        self, items: list[OrderItemRequest], now: datetime
    ) -> PricingContext:
        item_ids = [i.item_id for i in items if i.item_id is not None]
        context = PricingContext()
        if item_ids:
            context.catalog_items = self.catalog_repository.get_items(item_ids)
            context.categories = {c.id: c for c in self.catalog_repository.list_categories()}
            if any(i.extra_references for i in items):
                context.global_extras = self.catalog_repository.list_global_extras()
                context.item_extras = self.catalog_repository.list_item_extras(
                    list(dict.fromkeys(item_ids))
                )
        if any(i.lunch is not None for i in items):
            context.lunch = self.lunch_repository.get_configuration(self.clock.weekday(now))
        return context

    def _resolve_delivery_fee(self, neighborhood: str) -> Decimal:
        zone = self.delivery_zone_repository.find_zone(neighborhood)
        if zone is None:
            logger.info(f"Delivery zone not found for neighborhood '{neighborhood}'")
            raise DeliveryZoneNotFoundError(neighborhood)
        return zone.fee

    def _check_category_windows(self, priced: PricedOrder, now: datetime) -> None:
        for line in priced.lines:
            if line.category_name == LUNCH_CATEGORY and not self.clock.serves_lunch(now):
                raise CategoryUnavailableError(LUNCH_CATEGORY, LUNCH_CLOSED_MESSAGE)
            window = self.clock.closed_window(line.category_name, now)
            if window is not None:
                raise CategoryUnavailableError(window.category, window.message)

    def _build_items(self, order_id: str, priced: PricedOrder) -> list[OrderItem]:
        return [
            OrderItem(
                id=self.id_factory(),
                order_id=order_id,
                item_id=line.item_id,
                item_name=line.item_name,
                quantity=line.quantity,
                price=line.unit_price,
                extras=line.extras,
                tapioca_molhada=line.tapioca_molhada,
                selected_variation=line.selected_variation,
            )
            for line in priced.lines
        ]

    def _rollback_created_order(self, order_id: str) -> None:
        items_deleted = self.order_item_repository.delete_items(order_id)
        order_deleted = self.order_repository.delete_order(order_id)
        if items_deleted and order_deleted:
            metrics.record_rollback("create", succeeded=True)
            logger.info(f"Rolled back order {order_id}")
            return

        metrics.record_rollback("create", succeeded=False)
        logger.error(
            f"Rollback of order {order_id} failed (items_deleted={items_deleted}, "
            f"order_deleted={order_deleted}); manual cleanup required"
        )

    def _restore_items(self, order_id: str, original_items: list[OrderItem]) -> None:
        cleared = self.order_item_repository.delete_items(order_id)
        restored = cleared and self.order_item_repository.save_items(original_items)
        if restored:
            metrics.record_rollback("update", succeeded=True)
            logger.info(f"Restored {len(original_items)} original items for order {order_id}")
            return

        metrics.record_rollback("update", succeeded=False)
        logger.error(
            f"Failed to restore original items for order {order_id}; "
            f"manual cleanup required. Original items: "
            f"{[i.model_dump(mode='json') for i in original_items]}"
        )

    @staticmethod
    def _to_store(changes: dict) -> dict:
        stored: dict = {}
        for key, value in changes.items():
            if isinstance(value, datetime):
                stored[key] = value.astimezone(UTC).isoformat()
            elif isinstance(value, OrderStatus):
                stored[key] = value.value
            else:
                stored[key] = value
        return stored
