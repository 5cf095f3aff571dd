"""
Pytest configuration and shared fixtures for the test suite.
"""

import copy
from typing import Any, List, Mapping, Optional, Tuple

import pytest

from bitrix24.client import Bitrix24
from bitrix24.config import Bitrix24Config
from bitrix24.core.dispatcher import Dispatcher
from bitrix24.transport.interface import Transport


WEBHOOK_URL = "https://example.bitrix24.com/rest/1/secret"


# ============================================================================
# Scripted Transport
# ============================================================================

class ScriptedTransport(Transport):
    """Transport double replaying queued responses and recording every exchange."""
    
    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses: List[Tuple[int, Any]] = []
        self.calls: List[Tuple[str, str, dict]] = []
        self._status: Optional[int] = None
        self.closed = False
        for response in responses or []:
            self.add(response)
    
    def add(self, body: Any, status: int = 200) -> "ScriptedTransport":
        """Queue a response."""
        self.responses.append((status, body))
        return self
    
    def request(self, url: str, method: str = "POST", params: Optional[Mapping[str, Any]] = None) -> Any:
        self.calls.append((url, method, copy.deepcopy(dict(params or {}))))
        if not self.responses:
            raise AssertionError(f"Unexpected request to {url}")
        self._status, body = self.responses.pop(0)
        return body
    
    def is_success(self) -> bool:
        return self._status is not None and 200 <= self._status < 300
    
    @property
    def http_code(self) -> Optional[int]:
        return self._status
    
    def close(self) -> None:
        self.closed = True
    
    @property
    def actions(self) -> List[str]:
        """Actions called so far, without the webhook prefix and .json suffix."""
        return [url.rsplit("/", 1)[-1][:-len(".json")] for url, _, _ in self.calls]
    
    @property
    def params(self) -> List[dict]:
        return [params for _, _, params in self.calls]


class RecordingLogger:
    """Debug logger keeping every saved message."""
    
    def __init__(self):
        self.messages: List[Tuple[str, Any]] = []
    
    def save(self, message: str, source: Any) -> None:
        self.messages.append((message, source))


def batch_response(results: Any, errors: Any = None) -> dict:
    """Build the body of a successful batch response."""
    return {
        "result": {
            "result": results,
            "result_error": errors if errors is not None else [],
            "result_total": [],
            "result_next": [],
            "result_time": [],
        },
        "time": {"start": 1700000000.0, "finish": 1700000000.2},
    }


def list_response(items: List[Any], next_offset: Optional[int] = None, total: Optional[int] = None) -> dict:
    """Build the body of a list response."""
    body = {"result": items, "total": total if total is not None else len(items)}
    if next_offset is not None:
        body["next"] = next_offset
    return body


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> Bitrix24Config:
    """Create a test configuration."""
    return Bitrix24Config(
        webhook_url=WEBHOOK_URL + "/",
        batch_size=50,
        requests_per_second=2,
        log_level="DEBUG",
    )


@pytest.fixture
def transport() -> ScriptedTransport:
    """Create an empty scripted transport."""
    return ScriptedTransport()


@pytest.fixture
def dispatcher(transport) -> Dispatcher:
    """Create a dispatcher over the scripted transport."""
    return Dispatcher(WEBHOOK_URL, transport)


@pytest.fixture
def client(test_config, transport) -> Bitrix24:
    """Create a client over the scripted transport."""
    return Bitrix24(config=test_config, transport=transport)


@pytest.fixture
def small_batch_client(test_config, transport) -> Bitrix24:
    """Create a client with a batch size of 2."""
    config = test_config.model_copy(update={"batch_size": 2})
    return Bitrix24(config=config, transport=transport)
