"""OpenTelemetry tracing decorators."""

import asyncio
import functools
from collections.abc import Callable
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Span

from restaurant_order_service.services.exceptions import OrderServiceError

F = TypeVar("F", bound=Callable[..., Any])


def _record_failure(span: Span, error: Exception) -> None:
    span.set_attribute("success", False)
    span.set_attribute("error.type", type(error).__name__)
    span.set_attribute("error.message", str(error))
    if isinstance(error, OrderServiceError):
        span.set_attribute("order.rejected", True)
        span.set_attribute("http.response.status_code", error.status_code)
    span.record_exception(error)


def traced(span_name: str | None = None, service_name: str = "order-svc") -> Callable[[F], F]:
    """Decorator to run a function inside an OpenTelemetry span.

    Business failures (``OrderServiceError``) are recorded like any other
    exception, additionally tagged with ``order.rejected`` and the HTTP status
    the API will answer with. All exceptions are re-raised unchanged.

    Args:
        span_name: Name for the span (defaults to the function name)
        service_name: Tracer name and ``service.name`` span attribute

    Example:
        @traced("create_order", service_name="order-svc")
        async def create_order(self, request, settings): ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__name__
        tracer = trace.get_tracer(service_name)

        def start(span: Span) -> None:
            span.set_attribute("service.name", service_name)
            if span_name:
                span.set_attribute("function.name", func.__name__)

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(name, record_exception=False) as span:
                start(span)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _record_failure(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(name, record_exception=False) as span:
                start(span)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    _record_failure(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        if asyncio.iscoroutinefunction(func):
            return async_wrapper  # type: ignore
        return sync_wrapper  # type: ignore

    return decorator
