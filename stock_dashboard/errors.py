from __future__ import annotations


class QuoteProviderError(Exception):
    """Base for single-symbol upstream failures. Carries the HTTP mapping."""

    status_code = 500

    def __init__(self, symbol: str, message: str | None = None) -> None:
        self.symbol = symbol
        self.message = message or f"Failed to fetch data for symbol '{symbol}'."
        super().__init__(self.message)


class SymbolNotFoundError(QuoteProviderError):
    status_code = 404

    def __init__(self, symbol: str, message: str | None = None) -> None:
        super().__init__(symbol, message or f"Symbol '{symbol}' not found or invalid.")


class RateLimitedError(QuoteProviderError):
    status_code = 429

    def __init__(self, symbol: str, message: str | None = None) -> None:
        super().__init__(symbol, message or "API rate limit exceeded. Please try again later.")


class ProviderUnavailableError(QuoteProviderError):
    status_code = 502

    def __init__(self, symbol: str, message: str | None = None) -> None:
        super().__init__(symbol, message or "Could not retrieve data from the stock provider.")


class ProviderMisconfiguredError(QuoteProviderError):
    status_code = 503

    def __init__(self, symbol: str = "", message: str | None = None) -> None:
        super().__init__(symbol, message or "Finnhub API key is not configured on the server.")


class DashboardApiError(Exception):
    """Raised by the dashboard client when the gateway answers with an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)
