# ittools/secure_handler.py
"""
The governed call path every external tool invocation goes through.

Order of operations for one call:

1. rate limit the caller identifier (`RateLimitExceededError`, handler not run)
2. validate and sanitize arguments against the descriptor (`ToolValidationError`)
3. run the handler (coroutines awaited, plain functions in the default executor)
4. on an unexpected exception, log the detail and raise a generic
   `ToolExecutionError`; the original message never reaches the caller
"""
from __future__ import annotations

import asyncio
import functools
import inspect
import json
import time
from typing import Any, Dict, Mapping, Optional, Type

from pydantic import BaseModel

from ittools.exceptions import (
    IttoolsError,
    RateLimitExceededError,
    ToolExecutionError,
)
from ittools.registry import RegisteredTool, ToolHandler
from ittools.schemas.tool import ToolDescriptor
from ittools.schemas.tool_result import ToolResult
from ittools.utils.input_validation import validate_arguments
from ittools.utils.log_sinks import client_id_context, tool_id_context
from ittools.utils.logger import setup_logger
from ittools.utils.rate_limiter import SlidingWindowRateLimiter
from ittools.utils.redact import redact_for_log

logger = setup_logger(__name__)

DEFAULT_IDENTIFIER = "default"
GENERIC_FAILURE = "Tool execution failed. Please check your input and try again."


def _render(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    try:
        return json.dumps(value, indent=2, default=str)
    except (TypeError, ValueError):
        return str(value)


class SecureToolHandler:
    """Wraps one tool handler with rate limiting, validation and error hiding."""

    def __init__(
        self,
        tool_id: str,
        descriptor: ToolDescriptor,
        handler: ToolHandler,
        *,
        rate_limiter: SlidingWindowRateLimiter,
        identifier: str = DEFAULT_IDENTIFIER,
        input_model: Optional[Type[BaseModel]] = None,
    ):
        self.tool_id = tool_id
        self.descriptor = descriptor
        self.handler = handler
        self.rate_limiter = rate_limiter
        self.identifier = identifier
        self.input_model = input_model or descriptor.input_model()

    @classmethod
    def for_tool(
        cls,
        tool: RegisteredTool,
        *,
        rate_limiter: SlidingWindowRateLimiter,
        identifier: str = DEFAULT_IDENTIFIER,
    ) -> "SecureToolHandler":
        return cls(
            tool.tool_id,
            tool.descriptor,
            tool.handler,
            rate_limiter=rate_limiter,
            identifier=identifier,
            input_model=tool.input_model,
        )

    async def _run_handler(self, arguments: Dict[str, Any]) -> Any:
        if inspect.iscoroutinefunction(self.handler):
            return await self.handler(**arguments)
        loop = asyncio.get_running_loop()
        outcome = await loop.run_in_executor(None, functools.partial(self.handler, **arguments))
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return outcome

    async def invoke(self, arguments: Optional[Mapping[str, Any]] = None) -> Any:
        """Run the governed call and return the handler's raw value.

        :raises RateLimitExceededError: The identifier is over its window.
        :raises ToolValidationError: An argument broke a rule.
        :raises ToolExecutionError: The handler failed; the message is generic
            unless the handler raised a `ToolUserError` itself.
        """
        if not self.rate_limiter.allow(self.identifier):
            raise RateLimitExceededError(
                retry_after_ms=self.rate_limiter.retry_after_ms(self.identifier)
            )

        cleaned = validate_arguments(
            self.descriptor.input_schema, dict(arguments or {}), model=self.input_model
        )

        try:
            return await self._run_handler(cleaned)
        except IttoolsError:
            # deliberate, caller-facing errors raised by the tool itself
            raise
        except Exception as e:
            logger.error(
                "Tool '%s' failed for '%s': %s",
                self.tool_id,
                self.identifier,
                e,
                extra={"arguments": redact_for_log(cleaned), "error_type": type(e).__name__},
            )
            raise ToolExecutionError(GENERIC_FAILURE) from e

    async def __call__(self, arguments: Optional[Mapping[str, Any]] = None) -> ToolResult:
        """Run the governed call; every outcome becomes a `ToolResult`."""
        client_token = client_id_context.set(self.identifier)
        tool_token = tool_id_context.set(self.tool_id)
        started = time.monotonic()
        try:
            value = await self.invoke(arguments)
        except IttoolsError as e:
            latency = int((time.monotonic() - started) * 1000)
            logger.info("Tool '%s' rejected: %s (%s)", self.tool_id, e.kind.value, e)
            result = ToolResult.from_error(e, tool_id=self.tool_id)
            result.latency_ms = latency
            return result
        finally:
            client_id_context.reset(client_token)
            tool_id_context.reset(tool_token)

        latency = int((time.monotonic() - started) * 1000)
        if isinstance(value, ToolResult):
            value.tool_id = value.tool_id or self.tool_id
            value.latency_ms = value.latency_ms or latency
            return value
        if isinstance(value, str):
            return ToolResult.ok_result(content=value, tool_id=self.tool_id, latency_ms=latency)
        return ToolResult.ok_result(
            content=_render(value), data=value, tool_id=self.tool_id, latency_ms=latency
        )


def secure_tool_handler(
    tool: RegisteredTool,
    rate_limiter: SlidingWindowRateLimiter,
    identifier: str = DEFAULT_IDENTIFIER,
) -> SecureToolHandler:
    """Shorthand for `SecureToolHandler.for_tool`."""
    return SecureToolHandler.for_tool(tool, rate_limiter=rate_limiter, identifier=identifier)
