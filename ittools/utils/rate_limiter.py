# ittools/utils/rate_limiter.py
"""
Per-identifier sliding-window rate limiting.

Each identifier owns a time-ascending deque of request timestamps. A request
is admitted when fewer than `max_requests` timestamps fall inside the trailing
`window_ms`. Only admitted requests are recorded, so the deque never grows
past `max_requests`.

The limiter is an ordinary object owned by whoever wires the service
together; there is no module-level instance.
"""
from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from ittools.utils.logger import setup_logger

logger = setup_logger(__name__)

DEFAULT_WINDOW_MS = 60_000
DEFAULT_MAX_REQUESTS = 100


class _Window:
    __slots__ = ("lock", "events")

    def __init__(self, capacity: int):
        self.lock = threading.Lock()
        self.events: Deque[float] = deque(maxlen=capacity)


class SlidingWindowRateLimiter:
    """Admission control with a trailing window per identifier.

    :param window_ms: Length of the sliding window in milliseconds.
    :param max_requests: Requests admitted per identifier per window.
    :param clock: Returns the current time in seconds; `time.monotonic` by
        default, replaceable in tests to simulate the passage of time.
    """

    def __init__(
        self,
        window_ms: int = DEFAULT_WINDOW_MS,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if window_ms <= 0 or max_requests <= 0:
            raise ValueError("window_ms and max_requests must be positive")
        self.window_ms = window_ms
        self.max_requests = max_requests
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        # guards insertion into / removal from _windows only
        self._map_lock = threading.Lock()

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def _window_for(self, identifier: str) -> _Window:
        window = self._windows.get(identifier)
        if window is None:
            with self._map_lock:
                window = self._windows.get(identifier)
                if window is None:
                    window = _Window(self.max_requests)
                    self._windows[identifier] = window
        return window

    @staticmethod
    def _prune(events: Deque[float], window_start: float) -> None:
        while events and events[0] < window_start:
            events.popleft()

    def allow(self, identifier: str) -> bool:
        """Records and admits a request for `identifier` if the window has room.

        :return: True when admitted, False when the identifier is over its limit.
        """
        while True:
            window = self._window_for(identifier)
            with window.lock:
                if self._windows.get(identifier) is not window:
                    # reset() retired this window after we looked it up
                    continue
                now = self._now_ms()
                self._prune(window.events, now - self.window_ms)
                if len(window.events) >= self.max_requests:
                    logger.info(
                        "Rate limit reached for '%s' (%d/%d in %dms)",
                        identifier,
                        len(window.events),
                        self.max_requests,
                        self.window_ms,
                    )
                    return False
                window.events.append(now)
                return True

    def remaining(self, identifier: str) -> int:
        """Requests `identifier` may still make in the current window."""
        window = self._windows.get(identifier)
        if window is None:
            return self.max_requests
        with window.lock:
            self._prune(window.events, self._now_ms() - self.window_ms)
            return self.max_requests - len(window.events)

    def retry_after_ms(self, identifier: str) -> int:
        """Milliseconds until `identifier` gets a free slot; 0 if it has one now."""
        window = self._windows.get(identifier)
        if window is None:
            return 0
        with window.lock:
            now = self._now_ms()
            self._prune(window.events, now - self.window_ms)
            if len(window.events) < self.max_requests:
                return 0
            return max(0, int(window.events[0] + self.window_ms - now) + 1)

    def reset(self, identifier: Optional[str] = None) -> None:
        """Forgets the history of one identifier, or of every identifier."""
        with self._map_lock:
            targets = list(self._windows) if identifier is None else [identifier]
            for key in targets:
                window = self._windows.get(key)
                if window is None:
                    continue
                # wait out any allow() in flight on this window
                with window.lock:
                    del self._windows[key]
