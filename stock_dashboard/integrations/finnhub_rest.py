from __future__ import annotations

from typing import Any, Dict, Optional

import requests


class FinnhubRestClient:
    """Minimal Finnhub REST quote client."""

    def __init__(
        self,
        api_key: str | None,
        session: Optional[Any] = None,
        base_url: str = "https://finnhub.io/api/v1",
        timeout: float = 5.0,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.session = session or requests
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def get_quote(self, symbol: str) -> Dict[str, Any]:
        """Return the raw quote payload (c, d, dp, h, l, o, pc, t)."""
        response = self.session.get(
            f"{self.base_url}/quote",
            params={"symbol": symbol, "token": self.api_key},
            headers={"Cache-Control": "no-store"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"unexpected quote payload for {symbol}: {payload!r}")
        return payload
