"""Per-request structured logger."""

from collections.abc import Mapping
from typing import Any, Dict, Iterable, Optional, Tuple

from ..models import AppendContext, LogLevel, MetricCall, TransportError
from .error_details import describe_error
from .event_serializer import emit


def _as_dict(value: Any) -> Dict[str, Any]:
    """Copy a mapping; anything else that is not empty is kept under ``value``."""
    if isinstance(value, Mapping):
        return dict(value)
    if value is None or value == "":
        return {}
    return {"value": value}


class StructuredLogger:
    """Emits structured JSON events enriched with the current request context.

    Each instance owns its own ``append`` context (trace id, handler name),
    which is merged into every event the instance emits. Instances are cheap
    and must not be shared between concurrent requests; use ``get_logger()``
    to make a new one per invocation.
    """

    def __init__(self, append: Optional[AppendContext] = None):
        self.append = append or AppendContext()

    def _with_append(self, meta: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        meta = _as_dict(meta)
        if self.append.trace_id:
            meta["traceId"] = self.append.trace_id
        if self.append.handler:
            meta["handler"] = self.append.handler
        return meta

    def _with_error(self, meta: Optional[Dict[str, Any]], err: Optional[BaseException]) -> Dict[str, Any]:
        meta = _as_dict(meta)
        data = _as_dict(meta.get("data"))
        if isinstance(err, BaseException):
            details = describe_error(err)
            data["reason"] = details.message
            data["stack"] = details.stack
            if isinstance(details, TransportError):
                data.update(details.as_log_fields())
        meta["data"] = data
        return self._with_append(meta)

    def error(self, message: str, err: Optional[BaseException] = None, meta: Optional[Dict[str, Any]] = None) -> None:
        emit(LogLevel.ERROR, message, self._with_error(meta, err))

    def warn(self, message: str, err: Optional[BaseException] = None, meta: Optional[Dict[str, Any]] = None) -> None:
        emit(LogLevel.WARN, message, self._with_error(meta, err))

    def crit(self, message: str, err: Optional[BaseException] = None, meta: Optional[Dict[str, Any]] = None) -> None:
        """Log a critical failure. Written at ``error`` severity."""
        emit(LogLevel.ERROR, message, self._with_error(meta, err))

    def info(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        emit(LogLevel.INFO, message, self._with_append(meta))

    def http(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        emit(LogLevel.HTTP, message, self._with_append(meta))

    def debug(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        emit(LogLevel.DEBUG, message, self._with_append(meta))

    def metric(
        self,
        name: str,
        activity: str,
        tags: Iterable[Tuple[str, str]] = (),
        value: Any = None
    ) -> None:
        """Emit an embedded metric tagged with this logger's trace id.

        Args:
            name: Metric name; "Duration" is recorded in milliseconds, anything else as a count
            activity: Handler or HTTP namespace the metric belongs to
            tags: Dimension key/value pairs
            value: Metric value (default: 1)
        """
        try:
            call = MetricCall(
                name=name,
                activity=activity,
                tags=list(tags or ()),
                value=value,
                trace_id=self.append.trace_id,
            )
        except (TypeError, ValueError):
            return
        emit(LogLevel.METRIC, "", call)

    def create_child_logger(self) -> "StructuredLogger":
        """
        Create a logger that starts with a copy of this logger's context.

        The child's context can then be changed without affecting this one.

        Returns:
            A new StructuredLogger instance
        """
        return StructuredLogger(append=self.append.model_copy())


def get_logger() -> StructuredLogger:
    """Return a new, isolated logger. Call once per request or per module."""
    return StructuredLogger()
