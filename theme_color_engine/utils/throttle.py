"""
Rate limiting for presentation callbacks.

A throttled callable fires immediately on the first call, then ignores calls
for a cooldown period. If any call arrived during the cooldown, one trailing
call is made when it ends (with the most recent arguments), so the final state
is never dropped.
"""

import threading
from typing import Any, Callable, Optional, Tuple

from theme_color_engine.utils.logger import get_logger

logger = get_logger(__name__)


class Throttle:
    """
    Leading-edge throttle with a guaranteed trailing call.

    A delay of 0 disables throttling and every call is forwarded synchronously.
    """

    def __init__(self, func: Callable, delay: float = 0.05):
        """
        Args:
            func: Callable to rate limit
            delay: Cooldown in seconds
        """
        self.func = func
        self.delay = max(0.0, delay)
        self._lock = threading.RLock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[Tuple[tuple, dict]] = None
        self.call_count = 0

    @property
    def in_cooldown(self) -> bool:
        with self._lock:
            return self._timer is not None

    def __call__(self, *args, **kwargs) -> None:
        if self.delay == 0:
            self._invoke(args, kwargs)
            return

        with self._lock:
            if self._timer is not None:
                self._pending = (args, kwargs)
                return
            self._start_cooldown()

        self._invoke(args, kwargs)

    def flush(self) -> None:
        """Run a pending trailing call now and end the cooldown."""
        with self._lock:
            pending = self._pending
            self._pending = None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

        if pending is not None:
            self._invoke(*pending)

    def cancel(self) -> None:
        """Drop any pending call and end the cooldown."""
        with self._lock:
            self._pending = None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _start_cooldown(self) -> None:
        timer = threading.Timer(self.delay, self._cooldown_elapsed)
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _cooldown_elapsed(self) -> None:
        with self._lock:
            pending = self._pending
            self._pending = None
            if pending is None:
                self._timer = None
                return
            # calls during the trailing call start another cooldown
            self._start_cooldown()

        self._invoke(*pending)

    def _invoke(self, args: tuple, kwargs: dict) -> Any:
        self.call_count += 1
        return self.func(*args, **kwargs)
