"""OpenTelemetry tracing decorators."""

import asyncio
import functools
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Span

F = TypeVar("F", bound=Callable[..., Any])


@contextmanager
def _span(tracer: trace.Tracer, name: str, func: Callable[..., Any]) -> Iterator[Span]:
    """Open a span and mark it with the outcome of the wrapped call."""
    with tracer.start_as_current_span(name) as span:
        span.set_attribute("code.function", func.__qualname__)
        try:
            yield span
        except Exception as e:
            span.set_attribute("success", False)
            span.set_attribute("error.type", type(e).__name__)
            span.record_exception(e)
            raise
        span.set_attribute("success", True)


def traced(span_name: str | None = None, service_name: str = "zequi-storefront") -> Callable[[F], F]:
    """Decorator to run a function inside an OpenTelemetry span.

    Works for plain and async functions. Exceptions are recorded on the span
    and re-raised unchanged.

    Args:
        span_name: Name for the span (defaults to the function name)
        service_name: Instrumentation scope used to obtain the tracer

    Returns:
        Decorated function with tracing

    Example:
        @traced("orders.create")
        async def create_order(self, request: OrderCreateRequest) -> Order:
            ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__name__
        tracer = trace.get_tracer(service_name)

        if asyncio.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with _span(tracer, name, func):
                    return await func(*args, **kwargs)

            return async_wrapper  # type: ignore

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with _span(tracer, name, func):
                return func(*args, **kwargs)

        return sync_wrapper  # type: ignore

    return decorator
