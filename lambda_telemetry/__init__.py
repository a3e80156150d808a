"""Structured logging, embedded metrics and HTTP instrumentation for request handlers."""

from .config import LogSettings, get_settings
from .http_client import instrument
from .models import HttpCallContext, MetricCall
from .observability import StructuredLogger, as_lambda_handler, emit, get_logger, instrument_handler
from .utils import retry, retry_with_backoff

__version__ = "0.1.0"

__all__ = [
    "LogSettings",
    "get_settings",
    "instrument",
    "HttpCallContext",
    "MetricCall",
    "StructuredLogger",
    "as_lambda_handler",
    "emit",
    "get_logger",
    "instrument_handler",
    "retry",
    "retry_with_backoff",
]
