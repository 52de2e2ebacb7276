import os
from functools import lru_cache

from pydantic import BaseModel

DEFAULT_WATCHLIST = ["AAPL", "GOOGL", "MSFT", "AMZN", "TSLA", "NVDA", "META", "IBM"]


class Settings(BaseModel):
    FINNHUB_API_KEY: str | None = None
    FINNHUB_BASE_URL: str = "https://finnhub.io/api/v1"
    WATCHLIST_SYMBOLS: list[str] = DEFAULT_WATCHLIST
    QUOTE_TIMEOUT_SEC: float = 5.0
    HIGHLIGHT_WINDOW_SEC: float = 3.0
    # when set, the dashboard page reads quotes over HTTP instead of in-process
    DASHBOARD_API_URL: str | None = None

    @property
    def api_key_configured(self) -> bool:
        return bool(self.FINNHUB_API_KEY)

    @classmethod
    def from_env(cls) -> "Settings":
        raw_symbols = os.getenv("WATCHLIST_SYMBOLS", ",".join(DEFAULT_WATCHLIST))
        symbols = [s.strip().upper() for s in raw_symbols.split(",") if s.strip()]
        if not symbols:
            symbols = list(DEFAULT_WATCHLIST)

        values = {
            "FINNHUB_API_KEY": os.getenv("FINNHUB_API_KEY") or None,
            "WATCHLIST_SYMBOLS": symbols,
        }
        # unset optionals fall back to model defaults
        for name in ("FINNHUB_BASE_URL", "QUOTE_TIMEOUT_SEC", "HIGHLIGHT_WINDOW_SEC", "DASHBOARD_API_URL"):
            raw = os.getenv(name)
            if raw:
                values[name] = raw
        return cls.model_validate(values)


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
