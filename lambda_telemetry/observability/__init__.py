"""Observability components for structured logging and embedded metrics."""

from .event_serializer import EVENT_HANDLER, emit
from .handler_wrapper import as_lambda_handler, instrument_handler
from .metrics_emitter import render_metric_event
from .structured_logger import StructuredLogger, get_logger

__all__ = [
    "EVENT_HANDLER",
    "emit",
    "as_lambda_handler",
    "instrument_handler",
    "render_metric_event",
    "StructuredLogger",
    "get_logger",
]
