from __future__ import annotations

import threading
from typing import Any, Callable

from stock_dashboard.errors import DashboardApiError
from stock_dashboard.schemas.dashboard import DashboardSnapshot, SortConfig
from stock_dashboard.schemas.quote import Quote
from stock_dashboard.services.highlight import RecentlyAddedTracker
from stock_dashboard.services.sorting import next_sort_config, sort_quotes


class DashboardStateManager:
    """Owns the watch-list table: tracked quotes, sort config and highlights.

    ``gateway`` is anything with ``fetch_initial()`` and ``fetch_quote(symbol)``
    raising DashboardApiError on failure (DashboardApiClient, LocalGatewayClient).
    Network calls run outside the lock; every mutation is applied to the
    current state under it, so overlapping adds never lose rows.
    """

    def __init__(
        self,
        gateway,
        *,
        highlight_window_sec: float = 3.0,
        timer_factory: Callable[[float, Callable[[], None]], Any] | None = None,
    ) -> None:
        self.gateway = gateway
        self._lock = threading.Lock()
        self._state = DashboardSnapshot()
        self._adds_in_flight = 0
        self._closed = False
        self.highlights = RecentlyAddedTracker(highlight_window_sec, timer_factory=timer_factory)

    def load_initial(self) -> list[Quote]:
        with self._lock:
            self._state.loading = True
            self._state.error = None

        try:
            fetched = self.gateway.fetch_initial()
        except DashboardApiError as exc:
            print(f"[DASH][initial_load_failed] error={exc.message}", flush=True)
            with self._lock:
                self._state.quotes = []
                self._state.error = f"Failed to fetch initial stock data: {exc.message}"
            return []
        finally:
            with self._lock:
                self._state.loading = False

        quotes: list[Quote] = []
        seen: set[str] = set()
        for quote in fetched:
            if not quote or not quote.symbol or quote.symbol in seen:
                continue
            seen.add(quote.symbol)
            quotes.append(quote)

        with self._lock:
            self._state.quotes = quotes
        return list(quotes)

    def set_input(self, text: str) -> None:
        with self._lock:
            self._state.new_symbol = text
            self._state.add_error = None

    def add_symbol(self, raw: str) -> Quote | None:
        symbol = raw.strip().upper()
        with self._lock:
            if not symbol:
                self._state.add_error = "Please enter a stock symbol."
                return None
            if any(q.symbol == symbol for q in self._state.quotes):
                self._state.add_error = f"{symbol} is already in the list."
                return None
            self._adds_in_flight += 1
            self._state.is_adding = True
            self._state.add_error = None

        try:
            quote = self.gateway.fetch_quote(symbol)
        except DashboardApiError as exc:
            print(f"[DASH][add_failed] symbol={symbol} error={exc.message}", flush=True)
            with self._lock:
                self._state.add_error = exc.message or f"Failed to add stock {symbol}."
            return None
        finally:
            with self._lock:
                self._adds_in_flight -= 1
                self._state.is_adding = self._adds_in_flight > 0

        with self._lock:
            if self._closed:
                return None
            rows = [q for q in self._state.quotes if q.symbol != quote.symbol]
            rows.append(quote)
            self._state.quotes = rows
            self._state.new_symbol = ""
            self.highlights.mark(quote.symbol)
        return quote

    def sort_by(self, key: str) -> SortConfig:
        with self._lock:
            self._state.sort_config = next_sort_config(self._state.sort_config, key)
            return self._state.sort_config.model_copy()

    def sorted_quotes(self) -> list[Quote]:
        with self._lock:
            return sort_quotes(self._state.quotes, self._state.sort_config)

    def is_recently_added(self, symbol: str) -> bool:
        return symbol in self.highlights.active()

    def snapshot(self) -> DashboardSnapshot:
        with self._lock:
            snap = self._state.model_copy(deep=True)
        snap.recently_added = self.highlights.active()
        return snap

    def close(self) -> None:
        with self._lock:
            self._closed = True
        self.highlights.cancel_all()

    def __enter__(self) -> "DashboardStateManager":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
