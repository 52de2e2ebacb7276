from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from stock_dashboard.api.routes import router
from stock_dashboard.config.settings import Settings, get_settings
from stock_dashboard.integrations.finnhub_rest import FinnhubRestClient
from stock_dashboard.services.quote_gateway import QuoteGatewayService


def build_quote_gateway_service(settings: Settings) -> QuoteGatewayService:
    return QuoteGatewayService(
        rest_client=FinnhubRestClient(
            api_key=settings.FINNHUB_API_KEY,
            base_url=settings.FINNHUB_BASE_URL,
            timeout=settings.QUOTE_TIMEOUT_SEC,
        ),
        watchlist=settings.WATCHLIST_SYMBOLS,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.get_settings()
    if not settings.api_key_configured:
        # requests answer with a configuration error instead of failing startup
        print("[QUOTE][config_missing] FINNHUB_API_KEY is not set", flush=True)
    print(
        f"[QUOTE][gateway_start] watchlist={','.join(settings.WATCHLIST_SYMBOLS)}",
        flush=True,
    )
    try:
        yield
    finally:
        manager = getattr(app.state, "dashboard_manager", None)
        if manager is not None:
            manager.close()
            app.state.dashboard_manager = None
        print("[QUOTE][gateway_stop]", flush=True)


app = FastAPI(title="Stock Dashboard", version="0.1.0", lifespan=lifespan)
app.include_router(router)

app.state.get_settings = get_settings
app.state.quote_gateway_service = build_quote_gateway_service(get_settings())
app.state.dashboard_manager = None
