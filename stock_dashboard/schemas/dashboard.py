from typing import Literal

from pydantic import BaseModel

from stock_dashboard.schemas.quote import Quote

SortKey = Literal["symbol", "price", "change", "changePercent"]
SortDirection = Literal["ascending", "descending"]

SORT_KEYS: tuple[str, ...] = ("symbol", "price", "change", "changePercent")


class SortConfig(BaseModel):
    key: SortKey | None = "symbol"
    direction: SortDirection = "ascending"


class DashboardSnapshot(BaseModel):
    quotes: list[Quote] = []
    sort_config: SortConfig = SortConfig()
    recently_added: set[str] = set()
    loading: bool = False
    error: str | None = None
    is_adding: bool = False
    add_error: str | None = None
    new_symbol: str = ""
