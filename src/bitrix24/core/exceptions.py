"""
Exception hierarchy for the Bitrix24 client.

Every error carries enough serialized context (request parameters and the
decoded response) to diagnose a failure without re-running with debug logging.
"""

from typing import Any, Optional


class Bitrix24Error(Exception):
    """Base exception for all client errors."""
    pass


class ConfigurationError(Bitrix24Error):
    """Raised when the client cannot be built from the given configuration."""
    pass


class TransportError(Bitrix24Error):
    """
    Raised when the HTTP exchange fails or returns a non-success status.

    ``status_code`` is None when no response was received at all.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        params_json: Optional[str] = None,
        response_json: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.params_json = params_json
        self.response_json = response_json


class APIError(Bitrix24Error):
    """Raised when the response body reports an application-level error."""

    def __init__(
        self,
        message: str,
        error: Optional[str] = None,
        error_description: Optional[str] = None,
        params_json: Optional[str] = None,
        response_json: Optional[str] = None,
    ):
        super().__init__(message)
        self.error = error
        self.error_description = error_description
        self.params_json = params_json
        self.response_json = response_json


class BatchError(Bitrix24Error):
    """Raised when any command inside a batch reports an error."""

    def __init__(
        self,
        message: str,
        errors: Any = None,
        commands_json: Optional[str] = None,
        response_json: Optional[str] = None,
    ):
        super().__init__(message)
        self.errors = errors
        self.commands_json = commands_json
        self.response_json = response_json


class CountMismatchError(Bitrix24Error):
    """Raised when a batch returns a different number of results than commands sent."""

    def __init__(
        self,
        message: str,
        sent: int,
        received: int,
        response_json: Optional[str] = None,
    ):
        super().__init__(message)
        self.sent = sent
        self.received = received
        self.response_json = response_json


class IdentifierMissingError(Bitrix24Error, ValueError):
    """Raised when an item of a bulk update has no identifier."""

    def __init__(self, message: str, index: int, field: str = "ID", item_json: Optional[str] = None):
        super().__init__(message)
        self.index = index
        self.field = field
        self.item_json = item_json


class EncodingError(Bitrix24Error, TypeError):
    """Raised when a parameter value cannot be represented on the wire."""
    pass


class RelationNotFoundError(Bitrix24Error, KeyError):
    """Raised when a composed result lacks a requested relation label."""

    def __init__(self, label: str):
        super().__init__(label)
        self.label = label

    def __str__(self) -> str:
        return f"Relation '{self.label}' is missing from the batch result"


class PaginationError(Bitrix24Error):
    """Raised when an ID-cursor listing cannot derive the next cursor."""
    pass
