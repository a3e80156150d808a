"""CloudWatch embedded metric rendering.

Metrics are not pushed through the CloudWatch API. Each one is rendered as a
log line in the embedded metric format, which the log pipeline turns into a
metric data point.
"""

import math
import time
from typing import Any, Dict, Optional

from ..config import LogSettings
from ..models import MetricCall

DURATION_METRIC = "Duration"
FAILED_COUNT_METRIC = "FailedCount"


def metric_unit(name: str) -> str:
    """Return the CloudWatch unit for a metric name."""
    return "Milliseconds" if name == DURATION_METRIC else "Count"


def metric_value(value: Any) -> Any:
    """Return ``value`` when it is a finite number, else 1."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 1
    if isinstance(value, float) and not math.isfinite(value):
        return 1
    return value


def render_metric_event(
    call: MetricCall,
    settings: LogSettings,
    timestamp_ms: Optional[int] = None
) -> Dict[str, Any]:
    """Build the embedded metric event for a metric call.

    Args:
        call: The metric descriptor
        settings: Settings providing the CloudWatch namespace
        timestamp_ms: Epoch milliseconds for ``_aws.Timestamp`` (default: now)

    Returns:
        The event as an ordered dict, ready for JSON encoding
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)

    tag_keys = [key for key, _ in call.tags]

    event: Dict[str, Any] = {
        "message": f"[Embedded Metric] {call.activity}",
        call.name: metric_value(call.value),
        "Activity": call.activity,
    }
    for key, value in call.tags:
        event[key] = value
    if call.trace_id is not None:
        event["requestId"] = call.trace_id

    event["_aws"] = {
        "Timestamp": timestamp_ms,
        "CloudWatchMetrics": [
            {
                "Namespace": settings.namespace,
                "Dimensions": [
                    ["Activity", *tag_keys],
                    ["Activity"],
                    *[[key] for key in tag_keys],
                ],
                "Metrics": [
                    {
                        "Name": call.name,
                        "Unit": metric_unit(call.name),
                    }
                ],
            }
        ],
    }
    return event
