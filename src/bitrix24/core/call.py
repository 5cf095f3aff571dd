"""
Remote call models.

Represents one logical call and the unwrapped outcome of its physical exchange.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class RemoteCall:
    """
    A logical remote procedure call.

    Attributes:
        action: Dot-delimited method name (e.g. ``crm.deal.list``)
        params: Parameters of the call
    """

    action: str
    params: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate after initialization."""
        if not self.action or not self.action.strip():
            raise ValueError("Remote call action must be a non-empty string")

    @property
    def endpoint(self) -> str:
        """Path of the call relative to the webhook URL."""
        return f"{self.action}.json"


@dataclass(frozen=True)
class CallResult:
    """
    Outcome of one successful call.

    Attributes:
        result: Unwrapped ``result`` payload
        next: Offset of the next page, if the server reported one
        total: Total number of items for list calls
        time: Server timing block
        raw: Full decoded response body
    """

    result: Any
    next: Optional[int] = None
    total: Optional[int] = None
    time: Optional[Dict[str, Any]] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def has_next(self) -> bool:
        """Whether the server reported a further page."""
        return self.next not in (None, "", 0, "0")

    @classmethod
    def from_response(cls, response: Dict[str, Any]) -> "CallResult":
        """Create a result from a decoded response body."""
        return cls(
            result=response.get("result"),
            next=response.get("next"),
            total=response.get("total"),
            time=response.get("time"),
            raw=response,
        )
