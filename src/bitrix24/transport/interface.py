"""
Abstract interface for the HTTP transport.

Defines the contract the request dispatcher relies on. Any object performing
one HTTP exchange per call and exposing the outcome of the last exchange can
back the client.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional


class Transport(ABC):
    """
    Abstract interface for one-exchange-per-call HTTP access.
    
    The transport owns rate limiting: every physical exchange goes through it.
    """
    
    @abstractmethod
    def request(
        self,
        url: str,
        method: str = "POST",
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Perform one HTTP exchange.
        
        Args:
            url: Absolute URL of the endpoint
            method: HTTP method
            params: Parameters, form-encoded into the request body
            
        Returns:
            Decoded response body (JSON document, or raw text if not JSON)
            
        Raises:
            TransportError: If no response could be obtained
        """
        pass
    
    @abstractmethod
    def is_success(self) -> bool:
        """Whether the last exchange returned a success status."""
        pass
    
    @property
    @abstractmethod
    def http_code(self) -> Optional[int]:
        """HTTP status code of the last exchange."""
        pass
    
    def close(self) -> None:
        """Release any held connections."""
        pass
