"""
Classification of failures into generic and transport errors.

Transport errors come from httpx (status errors and request errors) or from
the AWS SDK (botocore client and connection errors). Everything else is a
generic error. Extraction is best-effort: a detail that cannot be read is left
out rather than raising.
"""

import json
from typing import Any, Dict, Optional

import httpx
from botocore.exceptions import ClientError, EndpointConnectionError, HTTPClientError

from ..models import ErrorDetails, GenericError, TransportError
from .event_serializer import format_exception


def _request_of(error: httpx.RequestError) -> Optional[httpx.Request]:
    # RequestError.request raises when no request was attached
    try:
        return error.request
    except RuntimeError:
        return None


def _decode(content: bytes) -> Optional[str]:
    if not content:
        return None
    return content.decode("utf-8", errors="replace")


def _request_body(request: httpx.Request) -> Optional[str]:
    try:
        return _decode(request.content)
    except httpx.RequestNotRead:
        return None


def _response_body(response: httpx.Response) -> Any:
    try:
        content = response.content
    except httpx.ResponseNotRead:
        return None
    if not content:
        return None
    try:
        return json.loads(content)
    except ValueError:
        return _decode(content)


def _server_message(body: Any) -> Optional[str]:
    if isinstance(body, dict) and body.get("message") is not None:
        return str(body["message"])
    return None


def _describe_status_error(error: httpx.HTTPStatusError, base: Dict[str, Any]) -> TransportError:
    request = error.request
    response = error.response
    body = _response_body(response)
    return TransportError(
        **base,
        url=str(request.url),
        response_status=response.status_code,
        response_body=body,
        request_body=_request_body(request),
        request_headers=dict(request.headers),
        response_headers=dict(response.headers),
        code=type(error).__name__,
        server_message=_server_message(body),
    )


def _describe_request_error(error: httpx.RequestError, base: Dict[str, Any]) -> TransportError:
    request = _request_of(error)
    if request is None:
        return TransportError(**base, code=type(error).__name__)
    return TransportError(
        **base,
        url=str(request.url),
        request_body=_request_body(request),
        request_headers=dict(request.headers),
        code=type(error).__name__,
    )


def _describe_client_error(error: ClientError, base: Dict[str, Any]) -> TransportError:
    response = error.response or {}
    metadata = response.get("ResponseMetadata", {})
    details = response.get("Error", {})
    headers = metadata.get("HTTPHeaders")
    return TransportError(
        **base,
        response_status=metadata.get("HTTPStatusCode"),
        response_headers=dict(headers) if headers else None,
        code=details.get("Code"),
        server_message=details.get("Message"),
    )


def _describe_connection_error(error: HTTPClientError, base: Dict[str, Any]) -> TransportError:
    return TransportError(
        **base,
        url=error.kwargs.get("endpoint_url"),
        code=type(error).__name__,
    )


def describe_error(error: BaseException) -> ErrorDetails:
    """
    Classify a failure and collect what can be logged about it.

    Args:
        error: The exception to describe

    Returns:
        TransportError for httpx/botocore transport failures, GenericError otherwise
    """
    base = {"message": str(error), "stack": format_exception(error)}

    if isinstance(error, httpx.HTTPStatusError):
        return _describe_status_error(error, base)
    if isinstance(error, httpx.RequestError):
        return _describe_request_error(error, base)
    if isinstance(error, ClientError):
        return _describe_client_error(error, base)
    if isinstance(error, (HTTPClientError, EndpointConnectionError)):
        return _describe_connection_error(error, base)
    return GenericError(**base)
