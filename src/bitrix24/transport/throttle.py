"""
Process-wide request rate limiting.

Bitrix24 allows a fixed number of requests per second per portal. Transports
share one Throttle per rate so the cap holds across client instances.
"""

import threading
import time
from typing import Callable, Dict

import structlog

logger = structlog.get_logger(__name__)


class Throttle:
    """
    Spaces calls so that at most ``rate`` of them start within one second.
    
    Thread-safe; waiting callers are served in lock acquisition order.
    """
    
    def __init__(
        self,
        rate: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if rate <= 0:
            raise ValueError("Throttle rate must be positive")
        self.rate = rate
        self.interval = 1.0 / rate
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._next_slot = 0.0
    
    def wait(self) -> float:
        """
        Block until the next request may start.
        
        Returns:
            Seconds spent waiting
        """
        with self._lock:
            now = self._clock()
            delay = max(0.0, self._next_slot - now)
            if delay > 0:
                logger.debug("throttle_wait", delay=round(delay, 3), rate=self.rate)
                self._sleep(delay)
            self._next_slot = max(now, self._next_slot) + self.interval
            return delay


_shared: Dict[float, Throttle] = {}
_shared_lock = threading.Lock()


def shared_throttle(rate: float) -> Throttle:
    """Get the process-wide throttle for a given rate."""
    with _shared_lock:
        throttle = _shared.get(rate)
        if throttle is None:
            throttle = Throttle(rate)
            _shared[rate] = throttle
        return throttle
