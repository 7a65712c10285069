# ittools/utils/log_sinks.py
"""
Custom logging components for the ittools gateway.

Holds the context variable that carries the current caller identifier and the
filter that stamps it onto every log record, so a single request can be
followed through the rate limiter, validator and tool body.
"""
import contextvars
import logging
from typing import Optional

# The identifier of the caller whose request is being served. Set by the
# secure handler for the duration of one invocation.
client_id_context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "client_id", default=None
)

# The tool currently being invoked, if any.
tool_id_context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "tool_id", default=None
)


class ClientIdFilter(logging.Filter):
    """
    A logging filter that injects the current client and tool ids from the
    context variables into the log record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Adds `client_id` and `tool_id` to the log record.

        :param record: The log record being processed.
        :type record: logging.LogRecord
        :return: Always returns True to allow the record to be processed.
        :rtype: bool
        """
        record.client_id = client_id_context.get()
        record.tool_id = tool_id_context.get()
        return True
