import threading
from urllib.parse import parse_qs

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from stock_dashboard.errors import ProviderMisconfiguredError, QuoteProviderError
from stock_dashboard.integrations.dashboard_api import DashboardApiClient, LocalGatewayClient
from stock_dashboard.services.dashboard_state import DashboardStateManager
from stock_dashboard.views.table import render_dashboard_html

router = APIRouter()

_MISSING_KEY_MESSAGE = "Finnhub API key is not configured on the server."


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


@router.get('/api/stock')
def get_watchlist_quotes(request: Request):
    service = request.app.state.quote_gateway_service
    if not service.configured:
        return _error(_MISSING_KEY_MESSAGE, 500)
    try:
        quotes = service.get_quotes()
    except ProviderMisconfiguredError:
        return _error(_MISSING_KEY_MESSAGE, 500)
    except Exception as exc:
        print(f"[QUOTE][batch_handler_error] error={exc!r}", flush=True)
        return _error("An unexpected error occurred while fetching stock data.", 500)
    return [q.to_wire() for q in quotes]


@router.post('/api/stock/new')
async def add_symbol_quote(request: Request):
    service = request.app.state.quote_gateway_service
    if not service.configured:
        return _error(_MISSING_KEY_MESSAGE, 503)

    try:
        body = await request.json()
    except ValueError:
        return _error("Failed to parse request body. Ensure it's valid JSON.", 400)

    symbol = body.get("symbol") if isinstance(body, dict) else None
    if not isinstance(symbol, str) or not symbol.strip():
        return _error("Invalid or missing 'symbol' in request body.", 400)
    symbol = symbol.strip().upper()

    try:
        quote = await run_in_threadpool(service.get_quote, symbol)
    except QuoteProviderError as exc:
        print(f"[QUOTE][single_handler_error] symbol={symbol} status={exc.status_code} error={exc.message}", flush=True)
        return _error(exc.message, exc.status_code)
    return quote.to_wire()


@router.get('/api/metrics/quote')
def quote_metrics(request: Request):
    return request.app.state.quote_gateway_service.metrics()


_manager_lock = threading.Lock()


def _dashboard_gateway(request: Request, settings):
    if settings.DASHBOARD_API_URL:
        return DashboardApiClient.from_settings(settings)
    return LocalGatewayClient(request.app.state.quote_gateway_service)


def _dashboard_manager(request: Request) -> DashboardStateManager:
    """One table state per app, created and loaded on first use, closed on shutdown."""
    with _manager_lock:
        manager = getattr(request.app.state, 'dashboard_manager', None)
        if manager is None:
            settings = request.app.state.get_settings()
            manager = DashboardStateManager(
                _dashboard_gateway(request, settings),
                highlight_window_sec=settings.HIGHLIGHT_WINDOW_SEC,
            )
            manager.load_initial()
            request.app.state.dashboard_manager = manager
        return manager


async def _form_field(request: Request, name: str) -> str:
    body = (await request.body()).decode('utf-8', errors='replace')
    values = parse_qs(body).get(name)
    return values[0] if values else ''


def _back_to_dashboard() -> RedirectResponse:
    return RedirectResponse('/', status_code=303)


@router.get('/', response_class=HTMLResponse)
def dashboard_page(request: Request):
    manager = _dashboard_manager(request)
    return HTMLResponse(render_dashboard_html(manager.snapshot()))


@router.post('/dashboard/add')
async def dashboard_add(request: Request):
    symbol = await _form_field(request, 'symbol')
    manager = await run_in_threadpool(_dashboard_manager, request)
    manager.set_input(symbol)
    await run_in_threadpool(manager.add_symbol, symbol)
    return _back_to_dashboard()


@router.post('/dashboard/sort')
async def dashboard_sort(request: Request):
    key = await _form_field(request, 'key')
    manager = await run_in_threadpool(_dashboard_manager, request)
    try:
        manager.sort_by(key)
    except ValueError:
        return _error(f"Unknown sort column '{key}'.", 400)
    return _back_to_dashboard()


@router.post('/dashboard/refresh')
async def dashboard_refresh(request: Request):
    manager = await run_in_threadpool(_dashboard_manager, request)
    await run_in_threadpool(manager.load_initial)
    return _back_to_dashboard()
