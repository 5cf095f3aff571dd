"""
Logging setup and debug logger hooks.

The client logs through structlog. Callers that want the raw request and
response dumps can additionally attach a DebugLogger.
"""

import logging
import sys
from typing import Any, Optional, Protocol, runtime_checkable

import structlog

from bitrix24.config import Bitrix24Config, get_config


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """
    Configure structlog on top of stdlib logging.

    Raises:
        ValueError: If the level name is unknown
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    
    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
        stream=sys.stdout,
    )
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger().setLevel(numeric_level)


def configure_logging(config: Optional[Bitrix24Config] = None) -> None:
    """Configure logging from the client configuration (``log_level`` and ``log_json``)."""
    config = config or get_config()
    setup_logging(config.log_level, config.log_json)


@runtime_checkable
class DebugLogger(Protocol):
    """Receives pre-serialized request/response dumps."""
    
    def save(self, message: str, source: Any) -> None:
        ...


class StructlogDebugLogger:
    """DebugLogger that forwards every dump to a structlog logger at DEBUG level."""
    
    def __init__(self, name: str = "bitrix24.debug"):
        self._logger = structlog.get_logger(name)
    
    def save(self, message: str, source: Any) -> None:
        self._logger.debug("bitrix24_debug", message=message, source=type(source).__name__)
