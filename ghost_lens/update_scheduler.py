"""
Coalesce recomputation requests.

Edits in the buffer are debounced: each one restarts a fixed delay and only
the last request in a burst actually runs. Every other trigger runs at once,
and also cancels whatever was pending.
"""
import asyncio
from typing import Any, Callable, Optional, Protocol

from ghost_lens.logging_config import get_logger

logger = get_logger('scheduler')

DEFAULT_DELAY = 0.5


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Timer(Protocol):
    """Something that can run a callback later and cancel it."""

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle: ...


class AsyncioTimer:
    """Timer backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], Any]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)


class UpdateScheduler:
    """Runs ``callback`` now or after ``delay`` seconds, one pending run at most."""

    def __init__(self, callback: Callable[[], Any], timer: Timer, delay: float = DEFAULT_DELAY):
        self.callback = callback
        self.timer = timer
        self.delay = delay
        self._pending: Optional[TimerHandle] = None
        self._disposed = False

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def trigger(self, debounce: bool = False) -> None:
        """Request a recomputation, debounced or immediate."""
        if self._disposed:
            return
        self.cancel()
        if debounce:
            self._pending = self.timer.call_later(self.delay, self._fire)
        else:
            self._run()

    def cancel(self) -> None:
        """Cancel the pending recomputation, if any."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def dispose(self) -> None:
        self.cancel()
        self._disposed = True

    def _fire(self) -> None:
        self._pending = None
        if not self._disposed:
            self._run()

    def _run(self) -> None:
        try:
            self.callback()
        except Exception:
            logger.exception("Annotation update failed")
