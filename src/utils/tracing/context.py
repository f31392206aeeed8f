"""
Span helpers for row conversion.

trace_operation() opens a span around a unit of work, the other helpers
annotate whichever span is current so that converters and the pipeline do
not need to pass span references around.
"""

from contextlib import contextmanager
from typing import Any

from opentelemetry import trace

from .tracer import get_tracer

# Attribute types accepted by OpenTelemetry as they are
_PRIMITIVE_TYPES = (bool, int, float, str)


def _span_attributes(attributes: dict[str, Any]) -> dict[str, Any]:
    """Drop None values and render anything that is not a primitive as text."""
    return {
        key: value if isinstance(value, _PRIMITIVE_TYPES) else str(value)
        for key, value in attributes.items()
        if value is not None
    }


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **attributes
):
    """
    Run a block inside a span.

    Errors raised by the block are recorded on the span and re-raised.

    Args:
        operation_name: Span name, e.g. "convert_row"
        kind: Span kind
        **attributes: Span attributes; None values are skipped

    Yields:
        The span

    Example:
        >>> with trace_operation("convert_row", column_count=4):
        ...     converted = pipeline.convert_row(row)
    """
    tracer = get_tracer()

    with tracer.start_as_current_span(operation_name, kind=kind) as span:
        for key, value in _span_attributes(attributes).items():
            span.set_attribute(key, value)

        try:
            yield span
        except Exception as e:
            span.set_attribute("error", True)
            span.set_attribute("error.type", type(e).__name__)
            span.record_exception(e)
            raise


def add_span_attributes(**attributes) -> None:
    """Set attributes on the current span, if it is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attributes(_span_attributes(attributes))


def add_span_event(name: str, **attributes) -> None:
    """
    Add an event to the current span, if it is recording.

    Example:
        >>> add_span_event("column_failed", column="email", converter="Conditional")
    """
    span = trace.get_current_span()
    if span.is_recording():
        span.add_event(name, attributes=_span_attributes(attributes))
