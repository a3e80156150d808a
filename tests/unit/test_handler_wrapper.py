"""
Unit tests for handler instrumentation.

Tests cover:
- Fresh logger per invocation with the handler name set
- Duration metric on success
- Error log, Duration and FailedCount metrics on failure
- Re-raising the original exception
- Trace id isolation between concurrent invocations
- Synchronous Lambda entry point
"""

import asyncio

import pytest

from lambda_telemetry.observability.handler_wrapper import as_lambda_handler, instrument_handler


def test_success_emits_duration(emitted):
    """Test a successful call returns its result and emits one Duration metric"""
    def factory(logger):
        async def handler(event, context):
            logger.info("Handling", {"data": {"id": event["id"]}})
            return {"statusCode": 200}
        return handler

    wrapped = instrument_handler("GetOrder", factory)

    result = asyncio.run(wrapped({"id": "o-1"}, None))

    assert result == {"statusCode": 200}
    assert emitted.logs("Handling")[0]["meta"]["handler"] == "GetOrder"
    durations = emitted.metrics("Duration")
    assert len(durations) == 1
    assert durations[0]["Activity"] == "GetOrder"
    assert durations[0]["Type"] == "aws"
    assert durations[0]["Duration"] >= 0
    assert emitted.metrics("FailedCount") == []


def test_sync_handler_is_supported(emitted):
    """Test a plain function handler works the same way"""
    wrapped = instrument_handler("Ping", lambda logger: (lambda event, context: "pong"))

    assert asyncio.run(wrapped({}, None)) == "pong"
    assert len(emitted.metrics("Duration")) == 1


def test_failure_logs_counts_and_reraises(emitted):
    """Test an uncaught error is logged, counted and re-raised unchanged"""
    error = KeyError("missing order")

    def factory(logger):
        async def handler(event, context):
            raise error
        return handler

    wrapped = instrument_handler("GetOrder", factory)

    with pytest.raises(KeyError) as exc_info:
        asyncio.run(wrapped({}, None))

    assert exc_info.value is error

    failure = emitted.logs("Lambda Execution Finished With UnCaught Error")[0]
    assert failure["level"] == "error"
    assert failure["meta"]["handler"] == "GetOrder"
    assert failure["meta"]["data"]["reason"] == "'missing order'"

    durations = emitted.metrics("Duration")
    failed = emitted.metrics("FailedCount")
    assert len(durations) == 1
    assert durations[0]["Duration"] == 1
    assert len(failed) == 1
    assert failed[0]["FailedCount"] == 1
    assert failed[0]["Type"] == "aws"


def test_factory_failure_is_instrumented(emitted):
    """Test an error raised while building the handler is handled the same way"""
    def factory(logger):
        raise RuntimeError("bad wiring")

    wrapped = instrument_handler("Broken", factory)

    with pytest.raises(RuntimeError, match="bad wiring"):
        asyncio.run(wrapped())

    assert len(emitted.metrics("FailedCount")) == 1


def test_each_invocation_gets_a_new_logger():
    """Test loggers are never reused across invocations"""
    loggers = []

    def factory(logger):
        loggers.append(logger)
        return lambda: None

    wrapped = instrument_handler("Ping", factory)
    asyncio.run(wrapped())
    asyncio.run(wrapped())

    assert loggers[0] is not loggers[1]


@pytest.mark.asyncio
async def test_concurrent_invocations_keep_their_trace_ids(emitted):
    """Test two in-flight invocations never log each other's trace id"""
    def factory(logger):
        async def handler(event, context):
            logger.append.trace_id = event["traceId"]
            logger.info("Started", {"data": {"expected": event["traceId"]}})
            await asyncio.sleep(0.01 if event["traceId"] == "trace-a" else 0)
            logger.info("Finished", {"data": {"expected": event["traceId"]}})
            return event["traceId"]
        return handler

    wrapped = instrument_handler("GetOrder", factory)

    results = await asyncio.gather(
        wrapped({"traceId": "trace-a"}, None),
        wrapped({"traceId": "trace-b"}, None),
    )

    assert results == ["trace-a", "trace-b"]
    for event in emitted.logs():
        assert event["meta"]["traceId"] == event["meta"]["data"]["expected"]
    request_ids = sorted(e["requestId"] for e in emitted.metrics("Duration"))
    assert request_ids == ["trace-a", "trace-b"]


def test_as_lambda_handler_runs_synchronously(emitted):
    """Test the Lambda adapter runs the coroutine to completion"""
    def factory(logger):
        async def handler(event, context):
            return {"echo": event}
        return handler

    lambda_handler = as_lambda_handler(instrument_handler("Echo", factory))

    assert lambda_handler({"a": 1}, None) == {"echo": {"a": 1}}
    assert lambda_handler({"a": 2}, None) == {"echo": {"a": 2}}
    assert len(emitted.metrics("Duration")) == 2
