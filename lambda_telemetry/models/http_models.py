"""Pydantic models for instrumented HTTP clients."""

from typing import Any, FrozenSet, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class HttpCallContext(BaseModel):
    """Per-client settings for HTTP instrumentation"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    logger: Any = Field(..., description="StructuredLogger used for request/response events")
    level: Optional[Literal["error", "warn"]] = Field(
        None, description="Severity for failure logs (defaults to error)"
    )
    ignore_error_statuses: FrozenSet[int] = Field(
        default_factory=frozenset,
        description="Statuses that are logged but neither counted as failures nor raised",
    )
