"""
Models package for the telemetry layer.

Exports all model classes for easy importing.
"""

from .event_models import AppendContext, LogLevel, MetricCall
from .error_models import ErrorDetails, GenericError, TransportError
from .http_models import HttpCallContext

__all__ = [
    "AppendContext",
    "LogLevel",
    "MetricCall",
    "ErrorDetails",
    "GenericError",
    "TransportError",
    "HttpCallContext",
]
