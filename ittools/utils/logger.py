# ittools/utils/logger.py
"""
Centralized logging setup for the ittools gateway.

This module configures the root logger with a JSON formatter on stdout so that
load-time warnings, rate-limit rejections and tool failures all come out as
structured records stamped with the caller identifier.
"""
import logging
import sys
from typing import Any, MutableMapping

from pythonjsonlogger import jsonlogger

from ittools.utils.config import get_config
from ittools.utils.log_sinks import ClientIdFilter

_LOGGING_CONFIGURED = False


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """Extends the standard logging adapter to support structured logging.

    A dictionary passed via the `extra` parameter of a log call is nested under
    `extra_data`, so arbitrary keys cannot clash with `LogRecord` attributes.
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        """Processes the log message and keyword arguments.

        :param msg: The original log message.
        :type msg: str
        :param kwargs: The keyword arguments passed to the log call.
        :type kwargs: MutableMapping[str, Any]
        :return: The processed message and keyword arguments.
        :rtype: tuple[str, MutableMapping[str, Any]]
        """
        original_extra_content = kwargs.get("extra")
        if original_extra_content is not None:
            kwargs["extra"] = {"extra_data": original_extra_content}
        return msg, kwargs


def setup_logger(name: str) -> StructuredLoggerAdapter:
    """Sets up the root logger and returns a structured child logger.

    On the first call the root logger gets a JSON stdout handler at the level
    named by `logging.level` in the config (`ITTOOLS_LOG_LEVEL` overrides it).
    Subsequent calls simply retrieve a logger for the specified name.

    :param name: The name of the logger, typically `__name__`.
    :type name: str
    :return: A `StructuredLoggerAdapter` instance ready for use.
    :rtype: StructuredLoggerAdapter
    """
    global _LOGGING_CONFIGURED

    if not _LOGGING_CONFIGURED:
        root_logger = logging.getLogger()

        log_level_str = str(get_config().get("logging", {}).get("level", "info")).upper()
        level = getattr(logging, log_level_str, logging.INFO)
        root_logger.setLevel(level)

        if root_logger.hasHandlers():
            root_logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(client_id)s %(tool_id)s %(message)s"
        )
        console_handler.setFormatter(formatter)
        console_handler.addFilter(ClientIdFilter())
        root_logger.addHandler(console_handler)

        root_logger.debug("Root logger configured with JSON stdout handler. Level: %s", log_level_str)
        _LOGGING_CONFIGURED = True

    logger_instance = logging.getLogger(name)
    return StructuredLoggerAdapter(logger_instance, {})
