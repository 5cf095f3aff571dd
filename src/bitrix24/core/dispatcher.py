"""
Request dispatcher.

Issues exactly one physical exchange per logical call and classifies the
outcome: transport failure, application error, or an unwrapped result.
"""

from typing import Any, Mapping, Optional

import structlog

from bitrix24.core.call import CallResult, RemoteCall
from bitrix24.core.encoding import to_json
from bitrix24.core.exceptions import APIError, ConfigurationError, TransportError
from bitrix24.log import DebugLogger
from bitrix24.transport.interface import Transport

logger = structlog.get_logger(__name__)


class Dispatcher:
    """
    Sends single calls to the webhook endpoint.

    No retries happen here; rate limiting is the transport's concern.

    Usage:
        ```python
        dispatcher = Dispatcher("https://portal.bitrix24.com/rest/1/token", transport)
        deal = dispatcher.request("crm.deal.get", {"id": 42})
        ```
    """

    def __init__(
        self,
        webhook_url: str,
        transport: Transport,
        debug_logger: Optional[DebugLogger] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            webhook_url: URL of the incoming webhook
            transport: Transport performing the HTTP exchanges
            debug_logger: Optional receiver of request/response dumps
        """
        if not webhook_url:
            raise ConfigurationError("Webhook URL is not configured")
        self.webhook_url = webhook_url.rstrip("/")
        self.transport = transport
        self.debug_logger = debug_logger

        # Diagnostics only; never read for control flow
        self.last_response: Any = None

    def call(self, action: str, params: Optional[Mapping[str, Any]] = None) -> CallResult:
        """
        Perform one remote call.

        Args:
            action: Remote method name
            params: Call parameters

        Returns:
            Unwrapped result together with pagination metadata

        Raises:
            TransportError: On a failed exchange or non-success HTTP status
            APIError: If the response reports an error
            EncodingError: If the parameters cannot be encoded
        """
        remote = RemoteCall(action, dict(params or {}))
        url = f"{self.webhook_url}/{remote.endpoint}"

        logger.debug("bitrix24_request", action=remote.action)
        self.save_debug(lambda: f"Request: {remote.endpoint}\n{to_json(remote.params, pretty=True)}")

        response = self.transport.request(url, "POST", remote.params)
        self.last_response = response

        self.save_debug(lambda: f"Response: {remote.endpoint}\n{to_json(response, pretty=True)}")

        if not self.transport.is_success():
            status = self.transport.http_code
            logger.error(
                "bitrix24_request_failed",
                action=remote.action,
                status=status,
            )
            raise TransportError(
                f"HTTP status code {status} upon request '{remote.endpoint}' "
                f"({to_json(remote.params)}): {to_json(response)}",
                status_code=status,
                params_json=to_json(remote.params),
                response_json=to_json(response),
            )

        if not isinstance(response, dict):
            raise APIError(
                f"Unexpected response to '{remote.endpoint}' ({to_json(remote.params)}): "
                f"{to_json(response)}",
                params_json=to_json(remote.params),
                response_json=to_json(response),
            )

        if response.get("error") or response.get("error_description"):
            logger.error(
                "bitrix24_api_error",
                action=remote.action,
                error=response.get("error"),
                description=response.get("error_description"),
            )
            raise APIError(
                f"Error on request '{remote.endpoint}' ({to_json(remote.params)}): "
                f"{to_json(response)}",
                error=response.get("error"),
                error_description=response.get("error_description"),
                params_json=to_json(remote.params),
                response_json=to_json(response),
            )

        return CallResult.from_response(response)

    def request(self, action: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Perform one remote call and return its ``result`` payload."""
        return self.call(action, params).result

    def save_debug(self, build_message) -> None:
        """Pass a lazily built message to the debug logger, if one is attached."""
        if self.debug_logger is None:
            return
        try:
            self.debug_logger.save(build_message(), self)
        except Exception as e:
            logger.warning("debug_logger_failed", error=str(e))

