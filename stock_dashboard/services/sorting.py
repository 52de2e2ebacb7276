from __future__ import annotations

import math
from typing import Any

from stock_dashboard.schemas.dashboard import SORT_KEYS, SortConfig
from stock_dashboard.schemas.quote import Quote


def parse_percent(value: Any) -> float | None:
    """'+1.23%' -> 1.23. None, 'N/A' and anything unparseable count as absent."""
    if value is None or not isinstance(value, str) or value == "N/A":
        return None
    try:
        number = float(value.replace("%", "").replace("+", ""))
    except ValueError:
        return None
    if math.isnan(number):
        return None
    return number


def sort_value(quote: Quote, key: str) -> Any:
    if key == "symbol":
        return quote.symbol
    if key == "price":
        return quote.price
    if key == "change":
        return quote.change
    if key == "changePercent":
        return parse_percent(quote.change_percent)
    raise ValueError(f"unknown sort key: {key}")


def next_sort_config(current: SortConfig, key: str) -> SortConfig:
    if key not in SORT_KEYS:
        raise ValueError(f"unknown sort key: {key}")
    direction = "ascending"
    if current.key == key and current.direction == "ascending":
        direction = "descending"
    return SortConfig(key=key, direction=direction)


def sort_quotes(quotes: list[Quote], config: SortConfig) -> list[Quote]:
    """Stable sort by the configured column.

    Rows without a value for the column are kept ahead of the others in
    both directions; the direction only orders rows that have a value.
    """
    items = list(quotes)
    if config.key is None:
        return items

    absent: list[Quote] = []
    present: list[tuple[Any, Quote]] = []
    for quote in items:
        value = sort_value(quote, config.key)
        if value is None:
            absent.append(quote)
        else:
            present.append((value, quote))

    present.sort(key=lambda pair: pair[0], reverse=config.direction == "descending")
    return absent + [quote for _, quote in present]
