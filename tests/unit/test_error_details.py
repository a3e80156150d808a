"""
Unit tests for failure classification.

Tests cover:
- httpx status errors and request errors
- botocore client and connection errors
- Generic exceptions
- Log field mapping with absent fields omitted
"""

import httpx
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from lambda_telemetry.models import GenericError, TransportError
from lambda_telemetry.observability.error_details import describe_error


def test_generic_exception():
    """Test a plain exception becomes a GenericError"""
    details = describe_error(KeyError("sku"))

    assert isinstance(details, GenericError)
    assert not isinstance(details, TransportError)
    assert details.kind == "generic"
    assert details.message == "'sku'"
    assert "KeyError" in details.stack


def test_http_status_error_with_text_body():
    """Test non-JSON bodies are kept as text"""
    request = httpx.Request("GET", "https://api.example.com/items/1")
    response = httpx.Response(502, text="Bad gateway", request=request)
    error = httpx.HTTPStatusError("bad gateway", request=request, response=response)

    details = describe_error(error)

    assert isinstance(details, TransportError)
    assert details.url == "https://api.example.com/items/1"
    assert details.response_status == 502
    assert details.response_body == "Bad gateway"
    assert details.server_message is None
    assert details.request_body is None


def test_http_status_error_with_unread_stream():
    """Test an unread streaming body is skipped instead of raising"""
    request = httpx.Request("GET", "https://api.example.com/items/1")
    response = httpx.Response(500, stream=httpx.ByteStream(b"{}"), request=request)
    error = httpx.HTTPStatusError("server error", request=request, response=response)

    details = describe_error(error)

    assert details.response_status == 500
    assert details.response_body is None


def test_request_error_with_request():
    """Test timeouts carry the request url and a code"""
    request = httpx.Request("GET", "https://api.example.com/slow", headers={"X-Trace": "t-1"})
    error = httpx.ReadTimeout("timed out", request=request)

    details = describe_error(error)

    assert isinstance(details, TransportError)
    assert details.url == "https://api.example.com/slow"
    assert details.code == "ReadTimeout"
    assert details.request_headers["x-trace"] == "t-1"
    assert details.response_status is None


def test_request_error_without_request():
    """Test a request error with no request attached is still described"""
    details = describe_error(httpx.ConnectError("refused"))

    assert isinstance(details, TransportError)
    assert details.url is None
    assert details.code == "ConnectError"


def test_botocore_client_error():
    """Test AWS service errors expose status, code and server message"""
    error = ClientError(
        {
            "Error": {"Code": "ThrottlingException", "Message": "Rate exceeded"},
            "ResponseMetadata": {
                "HTTPStatusCode": 400,
                "HTTPHeaders": {"x-amzn-requestid": "req-1"},
            },
        },
        "PutItem",
    )

    details = describe_error(error)

    assert isinstance(details, TransportError)
    assert details.response_status == 400
    assert details.code == "ThrottlingException"
    assert details.server_message == "Rate exceeded"
    assert details.response_headers == {"x-amzn-requestid": "req-1"}


def test_botocore_connection_error():
    """Test endpoint connection failures expose the endpoint url"""
    error = EndpointConnectionError(endpoint_url="https://dynamodb.eu-west-1.amazonaws.com")

    details = describe_error(error)

    assert details.url == "https://dynamodb.eu-west-1.amazonaws.com"
    assert details.code == "EndpointConnectionError"


def test_as_log_fields_omits_absent_values():
    """Test only known transport fields are mapped"""
    details = TransportError(message="x", url="https://a.example.com", response_status=404)

    assert details.as_log_fields() == {
        "httpUrl": "https://a.example.com",
        "httpResponseStatus": 404,
    }


@pytest.mark.parametrize("body,expected", [
    ({"message": "Not allowed"}, "Not allowed"),
    ({"error": "x"}, None),
    ([1, 2], None),
])
def test_server_message_from_json_body(body, expected):
    """Test the server message is read from a JSON object body"""
    request = httpx.Request("GET", "https://api.example.com")
    response = httpx.Response(403, json=body, request=request)

    details = describe_error(httpx.HTTPStatusError("forbidden", request=request, response=response))

    assert details.server_message == expected
