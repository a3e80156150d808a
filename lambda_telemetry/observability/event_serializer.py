"""Render log and metric calls as single-line JSON events on stdout."""

import json
import logging
import sys
import traceback
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Union

from ..config import LogSettings, resolve_settings
from ..models import LogLevel, MetricCall
from .metrics_emitter import render_metric_event

logger = logging.getLogger(__name__)

# Event lines bypass the root logger so no prefix is added to them
EVENT_HANDLER = logging.StreamHandler(sys.stdout)
EVENT_HANDLER.setFormatter(logging.Formatter("%(message)s"))

event_logger = logging.getLogger("lambda_telemetry.events")
event_logger.addHandler(EVENT_HANDLER)
event_logger.setLevel(logging.DEBUG)
event_logger.propagate = False

Meta = Union[Dict[str, Any], MetricCall, None]


def format_exception(error: BaseException) -> str:
    """Return the formatted traceback of an exception."""
    return "".join(traceback.format_exception(type(error), error, error.__traceback__))


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseException):
        return f"{value} {format_exception(value)}"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def to_json(event: Dict[str, Any]) -> str:
    return json.dumps(event, default=_json_default, separators=(",", ":"), ensure_ascii=False)


def iso_now() -> str:
    """UTC timestamp with millisecond precision and a 'Z' suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def render_log_event(
    level: str,
    message: str,
    meta: Optional[Dict[str, Any]],
    settings: LogSettings
) -> Dict[str, Any]:
    event: Dict[str, Any] = {"level": level, "message": message}
    if meta:
        event["meta"] = meta
    event["date"] = iso_now()
    event["service"] = settings.service_name
    event["env"] = settings.env
    return event


def is_suppressed(level: str, settings: LogSettings) -> bool:
    if settings.is_test:
        return True
    return level == LogLevel.DEBUG.value and settings.env == "prod"


def emit(level: str, message: str, meta: Meta = None, settings: Optional[LogSettings] = None) -> None:
    """
    Write one event to the event stream. Never raises.

    A ``MetricCall`` (or a dict carrying a ``name`` key) produces an embedded
    metric event; anything else produces a plain log event.

    Args:
        level: Wire-level severity
        message: Log message (unused for metric events)
        meta: Free-form metadata dict or a metric descriptor
        settings: Optional settings override
    """
    try:
        settings = resolve_settings(settings)
        level = LogLevel(level).value
        if is_suppressed(level, settings):
            return

        if isinstance(meta, Mapping) and "name" in meta:
            meta = MetricCall.model_validate(dict(meta))

        if isinstance(meta, MetricCall):
            event = render_metric_event(meta, settings)
        else:
            event = render_log_event(level, message, meta, settings)

        event_logger.info(to_json(event))
    except Exception as e:
        logger.debug(f"Dropped {level} event {message!r}: {type(e).__name__}: {e}")
