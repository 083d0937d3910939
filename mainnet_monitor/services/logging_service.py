"""
Logging service for the mainnet monitor
"""

import inspect
import logging
import os
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List

from ..utils.formatters import mask_sensitive_url

LOGGER_NAME = "mainnet_monitor"


class LogLevel(Enum):
    """Log levels"""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


LogCallback = Callable[[str, LogLevel], None]


@dataclass
class _Subscription:
    callback: LogCallback
    min_level: LogLevel


class LoggingService:
    """Centralized logging service that can be injected.

    Records go to the ``mainnet_monitor`` logger, so module level loggers of the
    package (``mainnet_monitor.clients...``) reach the same callbacks. Endpoint
    API keys are masked before any callback sees a line.
    """

    def __init__(self, level: int = logging.DEBUG):
        self._subscriptions: List[_Subscription] = []
        self._logger = logging.getLogger(LOGGER_NAME)
        self._logger.setLevel(level)

        # Only one callback handler per logger, however often the service is built
        self._logger.handlers = [
            h for h in self._logger.handlers if not isinstance(h, CallbackHandler)
        ]

        handler = CallbackHandler(self)
        handler.setLevel(level)
        handler.addFilter(SensitiveUrlFilter())
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(filename)s:%(lineno)d - %(levelname)s - %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        self._logger.addHandler(handler)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def add_handler(
        self, handler: LogCallback, min_level: LogLevel = LogLevel.DEBUG
    ) -> LogCallback:
        """Subscribe a callback to formatted lines at ``min_level`` and above"""
        self._subscriptions.append(_Subscription(handler, min_level))
        return handler

    def remove_handler(self, handler: LogCallback):
        self._subscriptions = [s for s in self._subscriptions if s.callback != handler]

    def _log_with_caller_info(self, level: int, message: str, exc_info=None):
        """Log with the file and line of whoever called debug()/info()/..."""
        if not self._logger.isEnabledFor(level):
            return

        frame = inspect.currentframe()
        caller = frame.f_back.f_back if frame and frame.f_back else None
        if caller is None:
            self._logger.log(level, message, exc_info=exc_info)
            return

        record = self._logger.makeRecord(
            self._logger.name,
            level,
            os.path.basename(caller.f_code.co_filename),
            caller.f_lineno,
            message,
            args=(),
            exc_info=exc_info,
        )
        self._logger.handle(record)

    def debug(self, message: str):
        self._log_with_caller_info(logging.DEBUG, message)

    def info(self, message: str):
        self._log_with_caller_info(logging.INFO, message)

    def warning(self, message: str):
        self._log_with_caller_info(logging.WARNING, message)

    def error(self, message: str, exc_info=None):
        self._log_with_caller_info(logging.ERROR, message, exc_info=exc_info)

    def critical(self, message: str):
        self._log_with_caller_info(logging.CRITICAL, message)

    def _emit_to_handlers(self, message: str, level: LogLevel):
        for subscription in list(self._subscriptions):
            if level.value < subscription.min_level.value:
                continue
            try:
                subscription.callback(message, level)
            except Exception as e:
                # A broken callback must not break logging
                print(f"Error in log handler: {e}", file=sys.stderr)


class SensitiveUrlFilter(logging.Filter):
    """Masks ``api-key=...`` query parameters in the rendered message"""

    def filter(self, record):
        record.msg = mask_sensitive_url(record.getMessage())
        record.args = ()
        return True


class CallbackHandler(logging.Handler):
    """Logging handler that routes formatted records to the service callbacks"""

    def __init__(self, logging_service: LoggingService):
        super().__init__()
        self.logging_service = logging_service

    def emit(self, record):
        try:
            msg = self.format(record)
            self.logging_service._emit_to_handlers(msg, LogLevel(record.levelno))
        except Exception:
            self.handleError(record)
