# ittools/exceptions.py
"""
Defines custom exception classes for the ittools gateway.

Every error carries an `ErrorKind` tag so callers can tell retryable,
input-fault and internal-fault outcomes apart without matching on message
text. Only rate-limit, validation and a handler's own deliberate error text
are meant for external callers; load and introspection errors are for
operators and only ever reach the logs.
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Tagged outcome kinds surfaced in `ToolResult.error_kind`."""

    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    VALIDATION_ERROR = "validation_error"
    EXECUTION_ERROR = "execution_error"
    NOT_FOUND = "not_found"
    LOAD_ERROR = "load_error"
    INTROSPECTION_ERROR = "introspection_error"
    CONFIGURATION_ERROR = "configuration_error"


class IttoolsError(Exception):
    """Base exception class for all custom errors in the ittools application."""

    kind: ErrorKind = ErrorKind.EXECUTION_ERROR
    retryable: bool = False


class ConfigurationError(IttoolsError):
    """Raised when configuration values cannot be parsed or are inconsistent."""

    kind = ErrorKind.CONFIGURATION_ERROR


class ToolError(IttoolsError):
    """Base exception for errors related to tool handling."""

    pass


class ToolLoadError(ToolError):
    """A tool module failed to import or exposed no registration entry point.

    Recovered locally by the loader: the tool is skipped and discovery goes on.
    """

    kind = ErrorKind.LOAD_ERROR

    def __init__(self, message: str, category: str = "", tool: str = ""):
        super().__init__(message)
        self.category = category
        self.tool = tool


class DuplicateToolError(ToolLoadError):
    """Raised when a tool id is registered twice and duplicates are forbidden."""

    pass


class IntrospectionError(ToolError):
    """Raised while replaying a registration entry point against the recorder.

    Always swallowed; the tool is left out of that sampling pass.
    """

    kind = ErrorKind.INTROSPECTION_ERROR


class ToolNotFoundError(ToolError, KeyError):
    """Raised when a requested tool id is not in the registry.

    Inherits from `KeyError` so dictionary-style callers keep working.
    """

    kind = ErrorKind.NOT_FOUND

    def __str__(self) -> str:
        # KeyError.__str__ would wrap the message in quotes
        return str(self.args[0]) if self.args else ""


class RateLimitExceededError(ToolError):
    """Raised when a caller identifier has used up its request window."""

    kind = ErrorKind.RATE_LIMIT_EXCEEDED
    retryable = True

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please try again later.",
        retry_after_ms: Optional[int] = None,
    ):
        super().__init__(message)
        self.retry_after_ms = retry_after_ms


class ToolValidationError(ToolError, ValueError):
    """Raised when tool input violates a validation rule.

    The message names the violated rule (max length, forbidden byte, pattern)
    and is safe to show to the caller. Inherits from `ValueError` for some
    backwards compatibility.
    """

    kind = ErrorKind.VALIDATION_ERROR

    def __init__(self, message: str, rule: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.rule = rule
        self.field = field


class ToolExecutionError(ToolError):
    """Raised when a tool body fails for reasons other than invalid input.

    The message is deliberately generic; the original exception is logged.
    """

    kind = ErrorKind.EXECUTION_ERROR


class ToolUserError(ToolExecutionError):
    """Raised by a tool body to report an error whose text the caller may see,
    e.g. "Rounds must be between 4 and 12."
    """

    pass
