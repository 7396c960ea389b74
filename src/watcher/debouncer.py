"""Trailing-edge debounce on top of ``threading.Timer``.

A burst of triggers closer together than the delay collapses into a single
callback, fired ``delay_ms`` after the last trigger.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """Collapses bursts of ``trigger()`` calls into one callback.

    States are Idle (no timer armed) and Pending (one timer armed).
    ``trigger()`` replaces any armed timer with a new one. When a timer
    fires, the handle is cleared before the callback runs, so events
    arriving during the callback arm a fresh timer.

    A timer that was cancelled but had already started running checks its
    generation and exits quietly, so a superseded timer never fires the
    callback.

    Example:
        >>> debouncer = Debouncer(1000, lambda: print("sync"))
        >>> for _ in range(5):
        ...     debouncer.trigger()
        >>> # one "sync" printed about 1s later
    """

    def __init__(
        self,
        delay_ms: int,
        callback: Callable[[], None],
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        """Initialize the debouncer.

        Args:
            delay_ms: Quiet period in milliseconds before the callback fires
            callback: Called with no arguments on the timer thread
            timer_factory: ``threading.Timer`` compatible constructor
        """
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {delay_ms}")
        self.delay_ms = delay_ms
        self.callback = callback
        self._timer_factory = timer_factory
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        """True while a timer is armed."""
        with self._lock:
            return self._timer is not None

    def trigger(self) -> None:
        """Arm (or re-arm) the timer."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation
            timer = self._timer_factory(self.delay_ms / 1000.0, self._fire, args=(generation,))
            timer.daemon = True
            self._timer = timer
        timer.start()

    def cancel(self) -> None:
        """Disarm the timer without firing."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                logger.debug("Discarding superseded debounce timer")
                return
            self._timer = None
        self.callback()
