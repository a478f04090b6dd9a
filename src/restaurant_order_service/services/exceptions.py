"""Order service error taxonomy.

Every error carries a short Portuguese ``error`` string and an optional longer
``message``, both intended for direct display, plus the HTTP status the API
layer responds with.
"""

from typing import Any


class OrderServiceError(Exception):
    """Base class for all expected order service failures."""

    status_code: int = 400

    def __init__(self, error: str, message: str | None = None) -> None:
        super().__init__(error if message is None else f"{error}: {message}")
        self.error = error
        self.message = message

    def to_response(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error}
        if self.message:
            body["message"] = self.message
        return body


class OrderValidationError(OrderServiceError):
    """Malformed, missing or out-of-range input."""


class PreconditionError(OrderServiceError):
    """The request is well-formed but current state does not allow it."""


class StoreClosedError(PreconditionError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            "Loja fechada",
            message
            or "A lanchonete está fechada no momento. "
            "Entre em contato conosco para mais informações.",
        )


class CategoryUnavailableError(PreconditionError):
    def __init__(self, category: str, message: str) -> None:
        super().__init__("Categoria indisponível no horário", message)
        self.category = category


class ItemNotFoundError(PreconditionError):
    def __init__(self, item_id: str) -> None:
        super().__init__(f"Item não encontrado: {item_id}")
        self.item_id = item_id


class ItemUnavailableError(PreconditionError):
    def __init__(self, item_names: list[str]) -> None:
        super().__init__("Itens indisponíveis", ", ".join(item_names))
        self.items = item_names

    def to_response(self) -> dict[str, Any]:
        body = super().to_response()
        body["items"] = self.items
        return body


class DeliveryZoneNotFoundError(PreconditionError):
    def __init__(self, neighborhood: str) -> None:
        super().__init__(
            "Bairro não encontrado",
            "Por favor, verifique o bairro ou entre em contato conosco",
        )
        self.neighborhood = neighborhood


class OrderCancelledError(PreconditionError):
    def __init__(self) -> None:
        super().__init__("Não é possível editar pedidos cancelados")


class InvalidStatusTransitionError(PreconditionError):
    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            "Transição de status inválida",
            f"Não é possível mudar de '{current}' para '{requested}'",
        )


class CancellationWindowExpiredError(PreconditionError):
    status_code = 403

    def __init__(self, window_minutes: int) -> None:
        super().__init__(
            "Janela de cancelamento expirada",
            f"Janela de cancelamento de {window_minutes} minutos expirada. "
            "Pedido já foi encaminhado para cozinha.",
        )


class OrderNotFoundError(OrderServiceError):
    status_code = 404

    def __init__(self, order_id: str) -> None:
        super().__init__("Pedido não encontrado")
        self.order_id = order_id


class AuthenticationError(OrderServiceError):
    status_code = 401

    def __init__(self, error: str = "Não autorizado", message: str | None = None) -> None:
        super().__init__(error, message)


class AuthorizationError(OrderServiceError):
    status_code = 403

    def __init__(self, error: str = "Acesso negado", message: str | None = None) -> None:
        super().__init__(error, message)


class PersistenceError(OrderServiceError):
    """The store rejected a read or write."""

    status_code = 500

    def __init__(self, error: str = "Erro ao salvar pedido", message: str | None = None) -> None:
        super().__init__(error, message)
