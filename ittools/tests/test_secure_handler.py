"""
Tests for the governed call path: rate limit, validation, execution, error hiding.
"""
import logging

import pytest

from ittools.exceptions import (
    ErrorKind,
    RateLimitExceededError,
    ToolExecutionError,
    ToolUserError,
    ToolValidationError,
)
from ittools.registry import RegisteredTool
from ittools.schemas.tool import ToolDescriptor
from ittools.schemas.tool_result import ToolResult
from ittools.secure_handler import GENERIC_FAILURE, SecureToolHandler, secure_tool_handler
from ittools.utils.rate_limiter import SlidingWindowRateLimiter


def _tool(handler, schema=None, tool_id="echo"):
    descriptor = ToolDescriptor(description="test", input_schema=schema or {"text": "text"})
    return RegisteredTool(tool_id=tool_id, descriptor=descriptor, handler=handler)


@pytest.fixture
def limiter():
    return SlidingWindowRateLimiter(window_ms=60000, max_requests=2)


@pytest.mark.asyncio
async def test_sync_handler_result_becomes_content(limiter):
    handler = secure_tool_handler(_tool(lambda text: text.upper()), limiter)
    result = await handler({"text": "hi"})

    assert result.success
    assert result.content == "HI"
    assert result.tool_id == "echo"


@pytest.mark.asyncio
async def test_async_handler_structured_result(limiter):
    async def stats(text):
        return {"length": len(text)}

    result = await secure_tool_handler(_tool(stats), limiter)({"text": "abcd"})

    assert result.data == {"length": 4}
    assert '"length": 4' in result.content


@pytest.mark.asyncio
async def test_handler_may_return_a_tool_result(limiter):
    def custom(text):
        return ToolResult.ok_result(content="custom", meta={"x": 1})

    result = await secure_tool_handler(_tool(custom), limiter)({"text": "a"})
    assert result.content == "custom"
    assert result.tool_id == "echo"


@pytest.mark.asyncio
async def test_rate_limit_blocks_before_handler(limiter):
    calls = []

    def counting(text):
        calls.append(text)
        return text

    handler = secure_tool_handler(_tool(counting), limiter, identifier="client-a")
    assert (await handler({"text": "1"})).success
    assert (await handler({"text": "2"})).success

    result = await handler({"text": "3"})
    assert not result.success
    assert result.error_kind is ErrorKind.RATE_LIMIT_EXCEEDED
    assert result.message == "Rate limit exceeded. Please try again later."
    assert result.retryable is True
    assert result.meta["retry_after_ms"] > 0
    assert calls == ["1", "2"]

    other = secure_tool_handler(_tool(counting), limiter, identifier="client-b")
    assert (await other({"text": "4"})).success


@pytest.mark.asyncio
async def test_rejected_calls_still_count_against_the_window(limiter):
    handler = secure_tool_handler(_tool(lambda text: text), limiter)
    assert (await handler({"text": "\x00"})).error_kind is ErrorKind.VALIDATION_ERROR
    assert (await handler({"text": "ok"})).success
    assert (await handler({"text": "ok"})).error_kind is ErrorKind.RATE_LIMIT_EXCEEDED


@pytest.mark.asyncio
async def test_validation_error_names_the_rule(limiter):
    calls = []
    handler = secure_tool_handler(_tool(lambda text: calls.append(text)), limiter)
    result = await handler({"text": "a" * 1_000_001})

    assert result.error_kind is ErrorKind.VALIDATION_ERROR
    assert "exceeded max length" in result.message
    assert calls == []


@pytest.mark.asyncio
async def test_invoke_raises_taxonomy_errors(limiter):
    handler = SecureToolHandler.for_tool(_tool(lambda text: text), rate_limiter=limiter)
    with pytest.raises(ToolValidationError):
        await handler.invoke({"other": "x"})
    await handler.invoke({"text": "ok"})
    with pytest.raises(RateLimitExceededError):
        await handler.invoke({"text": "ok"})


@pytest.mark.asyncio
async def test_unexpected_errors_are_hidden_and_logged(limiter, caplog):
    def boom(password):
        raise RuntimeError("database at /srv/secret.db unreachable")

    tool = _tool(boom, schema={"password": "password"}, tool_id="boom")
    handler = secure_tool_handler(tool, limiter)
    with caplog.at_level(logging.ERROR):
        result = await handler({"password": "hunter2hunter2"})

    assert result.error_kind is ErrorKind.EXECUTION_ERROR
    assert result.message == GENERIC_FAILURE
    assert "/srv/secret.db" not in str(result.to_dict())
    assert "/srv/secret.db" in caplog.text

    [record] = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert record.extra_data["arguments"] == {"password": "********(14)"}
    assert record.extra_data["error_type"] == "RuntimeError"


@pytest.mark.asyncio
async def test_invoke_chains_the_original_exception(limiter):
    def boom(text):
        raise KeyError("internal")

    handler = SecureToolHandler.for_tool(_tool(boom), rate_limiter=limiter)
    with pytest.raises(ToolExecutionError) as excinfo:
        await handler.invoke({"text": "x"})
    assert str(excinfo.value) == GENERIC_FAILURE
    assert isinstance(excinfo.value.__cause__, KeyError)


@pytest.mark.asyncio
async def test_user_errors_surface_their_message(limiter):
    def picky(text):
        raise ToolUserError("Rounds must be between 4 and 12.")

    result = await secure_tool_handler(_tool(picky), limiter)({"text": "x"})
    assert result.error_kind is ErrorKind.EXECUTION_ERROR
    assert result.message == "Rounds must be between 4 and 12."


@pytest.mark.asyncio
async def test_sanitize_and_defaults_reach_the_handler(limiter):
    seen = {}

    def capture(body, count):
        seen.update(body=body, count=count)
        return "ok"

    schema = {
        "body": {"kind": "html", "sanitize": "html"},
        "count": {"kind": "positive_int", "required": False, "default": 5},
    }
    result = await secure_tool_handler(_tool(capture, schema=schema), limiter)({"body": "<b>"})

    assert result.success
    assert seen == {"body": "&lt;b&gt;", "count": 5}
