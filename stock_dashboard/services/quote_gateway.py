from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import requests

from stock_dashboard.errors import (
    ProviderMisconfiguredError,
    ProviderUnavailableError,
    QuoteProviderError,
    RateLimitedError,
    SymbolNotFoundError,
)
from stock_dashboard.schemas.quote import Quote


def format_change_percent(value: float) -> str:
    # -0.0 + 0.0 is +0.0, so a negative zero renders as "+0.00%"
    value = float(value) + 0.0
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.2f}%"


def _optional_float(value: Any) -> float | None:
    try:
        if value is None or value == "":
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


class QuoteGatewayService:
    """Resolves watch-list and single-symbol quotes against the upstream provider."""

    def __init__(
        self,
        *,
        rest_client,
        watchlist: list[str],
        max_workers: int = 8,
    ) -> None:
        self.rest_client = rest_client
        self.watchlist = list(watchlist)
        self.max_workers = max_workers
        self._metrics_lock = threading.Lock()

        self.single_requests = 0
        self.batch_requests = 0
        self.failures: dict[str, int] = {}
        self.last_batch_target = 0
        self.last_batch_final = 0

    @property
    def configured(self) -> bool:
        return bool(getattr(self.rest_client, "configured", True))

    @staticmethod
    def _status_code_from_error(exc: Exception) -> int | None:
        response = getattr(exc, "response", None)
        code = getattr(response, "status_code", None)
        if isinstance(code, int):
            return code
        return None

    def _count_failure(self, exc: QuoteProviderError) -> None:
        kind = type(exc).__name__
        with self._metrics_lock:
            self.failures[kind] = self.failures.get(kind, 0) + 1

    def _classify(self, symbol: str, exc: Exception) -> QuoteProviderError:
        code = self._status_code_from_error(exc)
        if code == 401:
            print(f"[QUOTE][upstream_unauthorized] symbol={symbol} check FINNHUB_API_KEY", flush=True)
            return ProviderUnavailableError(symbol)
        if code == 429:
            print(f"[QUOTE][upstream_rate_limited] symbol={symbol}", flush=True)
            return RateLimitedError(symbol)
        if code in (400, 404):
            print(f"[QUOTE][upstream_not_found] symbol={symbol} status={code}", flush=True)
            return SymbolNotFoundError(symbol)
        if code is not None:
            print(f"[QUOTE][upstream_http_error] symbol={symbol} status={code}", flush=True)
            return ProviderUnavailableError(symbol)
        if isinstance(exc, requests.RequestException):
            print(f"[QUOTE][upstream_unreachable] symbol={symbol} error={exc}", flush=True)
            return ProviderUnavailableError(symbol)
        print(f"[QUOTE][upstream_unexpected] symbol={symbol} error={exc!r}", flush=True)
        return QuoteProviderError(symbol)

    def _build_quote(self, symbol: str, payload: dict, *, reject_zero_price: bool) -> Quote:
        price = _optional_float(payload.get("c"))
        change = _optional_float(payload.get("d"))
        percent = _optional_float(payload.get("dp"))
        previous_close = _optional_float(payload.get("pc"))

        if price is None or change is None or percent is None or previous_close == 0:
            print(f"[QUOTE][incomplete_data] symbol={symbol} payload={payload}", flush=True)
            if price is None or (reject_zero_price and price == 0):
                raise SymbolNotFoundError(
                    symbol,
                    f"Invalid data received for symbol '{symbol}'. It might not be a valid stock ticker.",
                )

        return Quote(
            symbol=symbol,
            price=price,
            change=change,
            change_percent=format_change_percent(percent) if percent is not None else None,
        )

    def _resolve(self, symbol: str, *, reject_zero_price: bool) -> Quote:
        try:
            payload = self.rest_client.get_quote(symbol)
        except Exception as exc:
            raise self._classify(symbol, exc) from exc
        return self._build_quote(symbol, payload, reject_zero_price=reject_zero_price)

    def get_quote(self, symbol: str) -> Quote:
        symbol = symbol.strip().upper()
        with self._metrics_lock:
            self.single_requests += 1
        if not self.configured:
            raise ProviderMisconfiguredError(symbol)
        try:
            return self._resolve(symbol, reject_zero_price=True)
        except QuoteProviderError as exc:
            self._count_failure(exc)
            raise

    def get_quotes(self, symbols: list[str] | None = None) -> list[Quote]:
        """Fetch every symbol concurrently and keep only the ones that resolved."""
        with self._metrics_lock:
            self.batch_requests += 1
        if not self.configured:
            raise ProviderMisconfiguredError()

        unique_symbols: list[str] = []
        seen: set[str] = set()
        for symbol in self.watchlist if symbols is None else symbols:
            value = str(symbol).strip().upper()
            if not value or value in seen:
                continue
            seen.add(value)
            unique_symbols.append(value)

        out: list[Quote] = []
        if unique_symbols:
            workers = max(1, min(self.max_workers, len(unique_symbols)))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="quote-batch") as pool:
                futures = [
                    (symbol, pool.submit(self._resolve, symbol, reject_zero_price=False))
                    for symbol in unique_symbols
                ]
                for symbol, future in futures:
                    try:
                        out.append(future.result())
                    except QuoteProviderError as exc:
                        self._count_failure(exc)
                        continue
                    except Exception as exc:
                        print(f"[QUOTE][batch_item_error] symbol={symbol} error={exc!r}", flush=True)
                        continue

        with self._metrics_lock:
            self.last_batch_target = len(unique_symbols)
            self.last_batch_final = len(out)
        print(
            "[QUOTE][batch_resolve] "
            f"target_count={len(unique_symbols)} final_count={len(out)} "
            f"omitted={len(unique_symbols) - len(out)}",
            flush=True,
        )
        return out

    def metrics(self) -> dict[str, int | bool | dict[str, int]]:
        with self._metrics_lock:
            return {
                "configured": self.configured,
                "single_requests": self.single_requests,
                "batch_requests": self.batch_requests,
                "failures": dict(self.failures),
                "batch_target_count": self.last_batch_target,
                "batch_final_count": self.last_batch_final,
            }
