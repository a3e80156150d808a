"""
Pydantic models for log and metric calls.

This module defines the records that flow into the event serializer:
- LogLevel: wire-level severities
- MetricCall: an embedded-metric descriptor (the metric half of the event union)
- AppendContext: per-logger fields merged into every event it emits
"""

from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class LogLevel(str, Enum):
    """Severities written to the event stream"""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    HTTP = "http"
    DEBUG = "debug"
    METRIC = "metric"


class MetricCall(BaseModel):
    """Descriptor for one CloudWatch embedded metric"""
    model_config = ConfigDict(coerce_numbers_to_str=True, populate_by_name=True)

    name: str = Field(..., description="Metric name, e.g. 'Duration' or 'FailedCount'")
    activity: str = Field(..., description="Handler or HTTP namespace the metric belongs to")
    tags: List[Tuple[str, str]] = Field(default_factory=list, description="Dimension key/value pairs")
    value: Any = Field(None, description="Metric value; non-numeric values are emitted as 1")
    trace_id: Optional[str] = Field(None, alias="traceId", description="Request id attached as 'requestId'")


class AppendContext(BaseModel):
    """Fields a logger instance merges into every event it emits"""
    trace_id: Optional[str] = Field(None, description="Trace id of the request being served")
    handler: Optional[str] = Field(None, description="Name of the handler being served")
