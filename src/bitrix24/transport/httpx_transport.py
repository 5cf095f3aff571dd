"""
httpx-backed transport.

Performs form-encoded exchanges with the Bitrix24 REST endpoint.
"""

from typing import Any, Mapping, Optional

import httpx
import structlog

from bitrix24.config import Bitrix24Config, get_config
from bitrix24.core.encoding import encode_query
from bitrix24.core.exceptions import TransportError
from bitrix24.transport.interface import Transport
from bitrix24.transport.throttle import Throttle, shared_throttle

logger = structlog.get_logger(__name__)


class HTTPXTransport(Transport):
    """
    Synchronous httpx transport.
    
    Cookies are never carried between exchanges and every exchange waits on
    the process-wide throttle for the configured rate.
    """
    
    def __init__(
        self,
        config: Optional[Bitrix24Config] = None,
        client: Optional[httpx.Client] = None,
        throttle: Optional[Throttle] = None,
    ):
        """
        Initialize the transport.
        
        Args:
            config: Client configuration. Uses global config if not provided.
            client: Pre-built httpx client (e.g. with a mock transport)
            throttle: Rate limiter. Defaults to the shared one for the configured rate.
        """
        self.config = config or get_config()
        self._client = client or httpx.Client(
            timeout=self.config.timeout_seconds,
            headers={"Accept": "application/json"},
        )
        self.throttle = throttle or shared_throttle(self.config.requests_per_second)
        self._last_status: Optional[int] = None
    
    @property
    def http_code(self) -> Optional[int]:
        return self._last_status
    
    def is_success(self) -> bool:
        return self._last_status is not None and 200 <= self._last_status < 300
    
    def request(
        self,
        url: str,
        method: str = "POST",
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Perform one exchange and decode the body."""
        self._last_status = None
        query = encode_query(params)
        method = method.upper()
        
        self.throttle.wait()
        
        try:
            if method == "GET":
                response = self._client.request(
                    method, f"{url}?{query}" if query else url,
                )
            else:
                response = self._client.request(
                    method,
                    url,
                    content=query.encode("utf-8"),
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.RequestError as e:
            logger.error("bitrix24_transport_error", url=_redact(url), error=str(e))
            raise TransportError(f"HTTP request to {_redact(url)} failed: {e}") from e
        finally:
            self._client.cookies.clear()
        
        self._last_status = response.status_code
        
        try:
            return response.json()
        except ValueError:
            return response.text
    
    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()


def _redact(url: str) -> str:
    """Hide the webhook token part of a URL in log output."""
    head, sep, tail = url.partition("/rest/")
    if not sep:
        return url
    parts = tail.split("/")
    if len(parts) >= 2:
        parts[1] = "***"
    return head + sep + "/".join(parts)
