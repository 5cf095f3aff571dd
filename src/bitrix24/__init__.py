"""
Bitrix24 webhook client

A client for the Bitrix24 REST API over incoming webhooks.
Single calls, batched bulk operations and lazy listings all go through one
request engine that classifies errors and keeps within batch and rate limits.
"""

__version__ = "0.1.0"

from bitrix24.client import Bitrix24
from bitrix24.config import Bitrix24Config
from bitrix24.core.exceptions import (
    APIError,
    BatchError,
    Bitrix24Error,
    ConfigurationError,
    CountMismatchError,
    EncodingError,
    IdentifierMissingError,
    PaginationError,
    RelationNotFoundError,
    TransportError,
)
from bitrix24.log import DebugLogger, StructlogDebugLogger, configure_logging, setup_logging

__all__ = [
    "Bitrix24",
    "Bitrix24Config",
    "APIError",
    "BatchError",
    "Bitrix24Error",
    "ConfigurationError",
    "CountMismatchError",
    "EncodingError",
    "IdentifierMissingError",
    "PaginationError",
    "RelationNotFoundError",
    "TransportError",
    "DebugLogger",
    "StructlogDebugLogger",
    "configure_logging",
    "setup_logging",
]
