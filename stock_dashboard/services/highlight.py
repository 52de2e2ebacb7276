from __future__ import annotations

import threading
from typing import Any, Callable


def _start_thread_timer(delay_sec: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay_sec, callback)
    timer.daemon = True
    timer.start()
    return timer


class RecentlyAddedTracker:
    """Symbols inside the highlight window, each with its own expiry timer."""

    def __init__(
        self,
        window_sec: float = 3.0,
        *,
        timer_factory: Callable[[float, Callable[[], None]], Any] | None = None,
    ) -> None:
        self.window_sec = window_sec
        self._timer_factory = timer_factory or _start_thread_timer
        self._lock = threading.Lock()
        self._active: set[str] = set()
        self._timers: dict[str, tuple[object, Any]] = {}
        self._closed = False

    def mark(self, symbol: str) -> None:
        with self._lock:
            if self._closed:
                return
            previous = self._timers.pop(symbol, None)
            if previous is not None:
                previous[1].cancel()
            token = object()
            self._active.add(symbol)
            handle = self._timer_factory(self.window_sec, lambda: self._expire(symbol, token))
            self._timers[symbol] = (token, handle)

    def _expire(self, symbol: str, token: object) -> None:
        with self._lock:
            entry = self._timers.get(symbol)
            # a stale timer that lost the race to a re-add must not clear the new window
            if self._closed or entry is None or entry[0] is not token:
                return
            del self._timers[symbol]
            self._active.discard(symbol)
        print(f"[DASH][highlight_expired] symbol={symbol}", flush=True)

    def active(self) -> set[str]:
        with self._lock:
            return set(self._active)

    def pending(self) -> int:
        with self._lock:
            return len(self._timers)

    def cancel_all(self) -> None:
        with self._lock:
            self._closed = True
            for _, handle in self._timers.values():
                handle.cancel()
            cancelled = len(self._timers)
            self._timers.clear()
            self._active.clear()
        print(f"[DASH][highlight_cancel_all] cancelled={cancelled}", flush=True)
