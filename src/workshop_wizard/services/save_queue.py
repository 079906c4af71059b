"""Debounced, per-key persistence queue."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.5

FlushCallback = Callable[[str], Awaitable[None]]
ErrorCallback = Callable[[str, Exception], None]


class DebouncedSaveQueue:
    """Coalesce bursts of edits into one persistence call per key.

    ``schedule(key)`` re-arms the key's timer. When the timer fires the queue
    awaits ``flush(key)``; the callback is expected to read the latest
    in-memory snapshot, so edits made during the debounce window are never
    lost. Only one flush per key runs at a time: scheduling while a flush is
    in flight marks the key dirty and the queue flushes again once the
    in-flight call returns.
    """

    def __init__(
        self,
        flush: FlushCallback,
        delay: float = DEFAULT_DEBOUNCE_SECONDS,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self.delay = delay
        self._flush = flush
        self._on_error = on_error
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._in_flight: dict[str, asyncio.Task[None]] = {}
        self._dirty: set[str] = set()
        self._closed = False

    @property
    def has_pending(self) -> bool:
        """Return True while any key is waiting for or running a flush."""
        return bool(self._dirty or self._in_flight)

    def pending(self, key: str) -> bool:
        """Return True while ``key`` is waiting for or running a flush."""
        return key in self._dirty or key in self._in_flight

    def schedule(self, key: str) -> None:
        """Mark ``key`` dirty and restart its debounce timer.

        Must be called from a running event loop.
        """
        if self._closed:
            raise RuntimeError("Save queue is closed")
        loop = asyncio.get_running_loop()
        self._dirty.add(key)
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()
        self._timers[key] = loop.call_later(self.delay, self._on_timer, key)

    async def flush_all(self) -> None:
        """Flush every dirty key now and wait for all flushes to finish."""
        while True:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()
            for key in list(self._dirty):
                if key not in self._in_flight:
                    self._start(key)
            if not self._in_flight:
                return
            await asyncio.gather(*list(self._in_flight.values()))

    async def aclose(self) -> None:
        """Refuse new work and deliver everything still pending."""
        self._closed = True
        await self.flush_all()

    def _on_timer(self, key: str) -> None:
        self._timers.pop(key, None)
        if key in self._in_flight:
            return
        self._start(key)

    def _start(self, key: str) -> None:
        self._dirty.discard(key)
        loop = asyncio.get_running_loop()
        self._in_flight[key] = loop.create_task(self._run(key))

    async def _run(self, key: str) -> None:
        try:
            await self._flush(key)
        except Exception as exc:
            logger.warning("Saving %s failed: %s", key, exc)
            if self._on_error is not None:
                self._on_error(key, exc)
        finally:
            self._in_flight.pop(key, None)
            if key in self._dirty and key not in self._timers:
                self._start(key)
