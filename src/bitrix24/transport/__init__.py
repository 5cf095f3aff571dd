"""
Transport layer.

Provides the HTTP exchange contract and its httpx implementation, together
with the shared request rate limiter.
"""

from bitrix24.transport.interface import Transport
from bitrix24.transport.httpx_transport import HTTPXTransport
from bitrix24.transport.throttle import Throttle, shared_throttle

__all__ = [
    "Transport",
    "HTTPXTransport",
    "Throttle",
    "shared_throttle",
]
