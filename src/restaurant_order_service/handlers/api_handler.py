"""FastAPI application exposing the order, catalog and settings endpoints."""

import logging
from typing import Any

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from restaurant_order_service.auth.api_dependencies import SessionAuthenticator
from restaurant_order_service.auth.session_validator import AuthenticatedUser
from restaurant_order_service.models.order_models import Order
from restaurant_order_service.models.request_models import (
    CancelOrderRequest,
    CreateOrderRequest,
    StatusUpdateRequest,
    UpdateOrderRequest,
)
from restaurant_order_service.models.settings_models import SettingsUpdate
from restaurant_order_service.services.exceptions import OrderServiceError, OrderValidationError
from restaurant_order_service.services.menu_service import MenuService
from restaurant_order_service.services.order_service import OrderService
from restaurant_order_service.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

ALLOWED_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]
BODY_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


def order_payload(order: Order) -> dict[str, Any]:
    """Serialize an order with its display number."""
    data = order.model_dump(mode="json")
    data["order_number"] = order.order_number
    return data


def format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()) if p not in ("body", "query"))
        message = str(error.get("msg", "")).removeprefix("Value error, ")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def require_order_id(order_id: str | None) -> str:
    if not order_id:
        raise OrderValidationError("ID do pedido é obrigatório")
    return order_id


def create_app(
    order_service: OrderService,
    menu_service: MenuService,
    settings_service: SettingsService,
    authenticator: SessionAuthenticator,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        order_service: Service for the order lifecycle
        menu_service: Service for catalog read endpoints
        settings_service: Service for the settings singleton
        authenticator: Resolves callers from session tokens

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Restaurant Order Service API",
        description="Order submission, editing and kitchen workflow for the restaurant",
        version="1.0.0",
    )

    app.state.order_service = order_service
    app.state.menu_service = menu_service
    app.state.settings_service = settings_service
    app.state.authenticator = authenticator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=ALLOWED_HEADERS,
    )

    @app.middleware("http")
    async def require_json_body(request: Request, call_next: Any) -> Any:
        has_body = request.headers.get("content-length", "0") not in ("", "0")
        content_type = request.headers.get("content-type", "")
        if (
            request.method in BODY_METHODS
            and has_body
            and not content_type.startswith("application/json")
        ):
            return JSONResponse(
                status_code=415,
                content={"error": "Content-Type deve ser application/json"},
            )
        return await call_next(request)

    @app.exception_handler(OrderServiceError)
    async def handle_order_service_error(request: Request, exc: OrderServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected: {exc}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = format_validation_errors(exc)
        logger.info(f"{request.method} {request.url.path} invalid payload: {message}")
        return JSONResponse(status_code=400, content={"error": f"Dados inválidos: {message}"})

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error in {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"error": "Erro interno do servidor"})

    optional_user = Depends(authenticator.optional_user)
    require_user = Depends(authenticator.require_user)
    require_staff = Depends(authenticator.require_staff)
    require_admin = Depends(authenticator.require_admin)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        return HealthResponse(status="healthy")

    @app.post("/orders", status_code=201, tags=["Orders"])
    async def create_order(
        request: CreateOrderRequest,
        skip_hours_check: bool = Query(False),
        user: AuthenticatedUser | None = optional_user,
    ) -> dict[str, Any]:
        """Create an order priced entirely on the server.

        The opening-hours bypass is only honored for staff callers.
        """
        bypass = skip_hours_check and user is not None and user.is_staff
        if skip_hours_check and not bypass:
            logger.warning("Ignoring skip_hours_check from a non-staff caller")

        settings = await settings_service.current()
        order, summary = await order_service.create_order(
            request,
            settings,
            user_id=user.id if user else None,
            bypass_hours=bypass,
        )
        return {
            "data": order_payload(order),
            "summary": summary.model_dump(mode="json"),
            "order_number": order.order_number,
        }

    @app.get("/orders/mine", tags=["Orders"])
    async def list_my_orders(user: AuthenticatedUser = require_user) -> dict[str, Any]:
        orders = await order_service.list_orders(user_id=user.id)
        return {"data": [order_payload(o) for o in orders]}

    @app.get("/orders", tags=["Orders"])
    async def get_orders(
        order_id: str | None = Query(None, alias="id"),
        _user: AuthenticatedUser = require_staff,
    ) -> dict[str, Any]:
        """Fetch one order by id, or list every order newest first."""
        if order_id:
            return {"data": order_payload(await order_service.get_order(order_id))}
        orders = await order_service.list_orders()
        return {"data": [order_payload(o) for o in orders]}

    @app.patch("/orders", tags=["Orders"])
    async def update_order_status(
        request: StatusUpdateRequest,
        order_id: str | None = Query(None, alias="id"),
        user: AuthenticatedUser = require_staff,
    ) -> dict[str, Any]:
        order, _changed = await order_service.set_status(
            require_order_id(order_id), request.status, user.id
        )
        return {"data": order_payload(order)}

    @app.post("/orders/advance", tags=["Orders"])
    async def advance_order(
        order_id: str | None = Query(None, alias="id"),
        user: AuthenticatedUser = require_staff,
    ) -> dict[str, Any]:
        order, changed = await order_service.advance_status(require_order_id(order_id), user.id)
        response: dict[str, Any] = {"data": order_payload(order), "changed": changed}
        if not changed:
            response["message"] = "Pedido já está na etapa final"
        return response

    @app.delete("/orders", tags=["Orders"])
    async def cancel_order(
        order_id: str | None = Query(None, alias="id"),
        request: CancelOrderRequest | None = Body(None),
        user: AuthenticatedUser = require_staff,
    ) -> dict[str, Any]:
        order = await order_service.cancel_order(
            require_order_id(order_id),
            user.id,
            reason=request.reason if request else None,
        )
        return {"data": order_payload(order), "message": "Pedido cancelado com sucesso"}

    @app.post("/orders-update", tags=["Orders"])
    async def update_order(
        request: UpdateOrderRequest,
        user: AuthenticatedUser = require_staff,
    ) -> dict[str, Any]:
        """Replace an order's items; totals are recomputed server-side."""
        order = await order_service.update_order(request, acting_user_id=user.id)
        return {"data": order_payload(order), "message": "Pedido atualizado com sucesso"}

    @app.get("/menu", tags=["Catalog"])
    async def get_menu(
        category: str | None = Query(None),
        include_unavailable: bool = Query(False),
        skip_time_check: bool = Query(False),
    ) -> dict[str, Any]:
        settings = await settings_service.current()
        menu = await menu_service.build_menu(
            settings,
            category_id=category,
            include_unavailable=include_unavailable,
            skip_time_check=skip_time_check,
        )
        return {"data": menu.model_dump(mode="json")}

    @app.get("/categories", tags=["Catalog"])
    async def get_categories() -> dict[str, Any]:
        categories = await menu_service.list_categories()
        return {"data": [c.model_dump(mode="json") for c in categories]}

    @app.get("/items", tags=["Catalog"])
    async def get_items(category: str | None = Query(None)) -> dict[str, Any]:
        items = await menu_service.list_items(category)
        return {"data": [i.model_dump(mode="json") for i in items]}

    @app.get("/delivery", tags=["Catalog"])
    async def get_delivery(bairro: str | None = Query(None)) -> dict[str, Any]:
        """List every delivery zone, or look one up by neighborhood."""
        if not bairro:
            zones = await menu_service.list_delivery_zones()
            return {"data": [z.model_dump(mode="json") for z in zones]}

        zone = await menu_service.find_delivery_zone(bairro)
        if zone is None:
            return {
                "data": None,
                "message": "Bairro não encontrado. Entre em contato para verificar disponibilidade.",
            }
        return {"data": zone.model_dump(mode="json")}

    @app.get("/lunch-today", tags=["Catalog"])
    async def get_lunch_today(skip_time_check: bool = Query(False)) -> dict[str, Any]:
        settings = await settings_service.current()
        lunch = await menu_service.lunch_today(settings, skip_time_check=skip_time_check)
        return {"data": lunch.model_dump(mode="json")}

    @app.get("/settings", tags=["Settings"])
    async def get_settings(_user: AuthenticatedUser = require_admin) -> dict[str, Any]:
        settings = await settings_service.get_or_create()
        return settings.model_dump(mode="json")

    @app.post("/settings", tags=["Settings"])
    async def update_settings(
        request: SettingsUpdate,
        user: AuthenticatedUser = require_admin,
    ) -> dict[str, Any]:
        settings = await settings_service.update(request)
        logger.info(f"Settings updated by {user.id}")
        return settings.model_dump(mode="json")

    @app.get("/settings-public", tags=["Settings"])
    async def get_public_settings(_user: AuthenticatedUser = require_staff) -> dict[str, Any]:
        settings = await settings_service.get_public()
        return settings.model_dump(mode="json")

    return app
