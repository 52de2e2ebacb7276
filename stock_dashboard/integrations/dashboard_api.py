from __future__ import annotations

from typing import Any, Optional

import requests

from stock_dashboard.errors import DashboardApiError, QuoteProviderError
from stock_dashboard.schemas.quote import Quote


class DashboardApiClient:
    """Client side of the quote gateway HTTP API, used by the dashboard state."""

    def __init__(
        self,
        base_url: str,
        session: Optional[Any] = None,
        timeout: float = 5.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings, session: Optional[Any] = None) -> "DashboardApiClient":
        return cls(settings.DASHBOARD_API_URL, session=session, timeout=settings.QUOTE_TIMEOUT_SEC)

    @staticmethod
    def _is_success(response: Any) -> bool:
        return 200 <= int(response.status_code) < 300

    @staticmethod
    def _error_field(response: Any) -> str | None:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return None

    def fetch_initial(self) -> list[Quote]:
        try:
            response = self.session.get(f"{self.base_url}/api/stock", timeout=self.timeout)
        except requests.RequestException as exc:
            raise DashboardApiError(str(exc)) from exc

        if not self._is_success(response):
            message = self._error_field(response) or f"HTTP error! status: {response.status_code}"
            raise DashboardApiError(message, response.status_code)

        try:
            data = response.json()
            if not isinstance(data, list):
                raise ValueError("expected a list of quotes")
            return [
                Quote.model_validate(item)
                for item in data
                if isinstance(item, dict) and item.get("symbol")
            ]
        except ValueError as exc:
            raise DashboardApiError(str(exc), response.status_code) from exc

    def fetch_quote(self, symbol: str) -> Quote:
        try:
            response = self.session.post(
                f"{self.base_url}/api/stock/new",
                headers={"Content-Type": "application/json"},
                json={"symbol": symbol},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise DashboardApiError(str(exc)) from exc

        if not self._is_success(response):
            message = f"Failed to add {symbol}. Status: {response.status_code}"
            try:
                body = response.json()
            except ValueError:
                body = None
            if body is not None:
                error = body.get("error") if isinstance(body, dict) else None
                message = f"{message} - {error or 'Unknown error'}"
            raise DashboardApiError(message, response.status_code)

        try:
            return Quote.model_validate(response.json())
        except ValueError as exc:
            raise DashboardApiError(str(exc), response.status_code) from exc


class LocalGatewayClient:
    """Same surface as DashboardApiClient, backed by an in-process gateway service."""

    def __init__(self, service) -> None:
        self.service = service

    def fetch_initial(self) -> list[Quote]:
        try:
            return self.service.get_quotes()
        except QuoteProviderError as exc:
            raise DashboardApiError(exc.message, exc.status_code) from exc

    def fetch_quote(self, symbol: str) -> Quote:
        try:
            return self.service.get_quote(symbol)
        except QuoteProviderError as exc:
            message = f"Failed to add {symbol}. Status: {exc.status_code} - {exc.message}"
            raise DashboardApiError(message, exc.status_code) from exc
