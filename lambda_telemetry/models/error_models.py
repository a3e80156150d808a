"""
Pydantic models describing a failure before it is logged.

Every failure handed to a logger is classified into one of two variants:
- GenericError: any exception, reduced to its message and formatted stack
- TransportError: an HTTP or AWS SDK failure, with request/response details
"""

from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field

# Log field name for each TransportError attribute, in output order
_TRANSPORT_LOG_FIELDS = (
    ("url", "httpUrl"),
    ("response_body", "httpResponseBody"),
    ("request_body", "httpRequestBody"),
    ("request_headers", "httpRequestHeaders"),
    ("response_headers", "httpResponseHeaders"),
    ("response_status", "httpResponseStatus"),
    ("code", "httpCode"),
    ("server_message", "httpMessage"),
)


class GenericError(BaseModel):
    """Any failure that carries no transport details"""
    kind: Literal["generic"] = "generic"
    message: Optional[str] = Field(None, description="Exception message")
    stack: Optional[str] = Field(None, description="Formatted traceback")


class TransportError(GenericError):
    """A failure raised by an HTTP client or the AWS SDK"""
    kind: Literal["transport"] = "transport"
    url: Optional[str] = None
    response_status: Optional[int] = None
    response_body: Any = None
    request_body: Any = None
    request_headers: Optional[Dict[str, str]] = None
    response_headers: Optional[Dict[str, str]] = None
    code: Optional[str] = Field(None, description="Client or service error code")
    server_message: Optional[str] = Field(None, description="Message supplied by the remote server")

    def as_log_fields(self) -> Dict[str, Any]:
        """Return the transport details keyed by log field name, dropping absent ones."""
        fields = {}
        for attribute, log_name in _TRANSPORT_LOG_FIELDS:
            value = getattr(self, attribute)
            if value is not None:
                fields[log_name] = value
        return fields


ErrorDetails = Union[TransportError, GenericError]
