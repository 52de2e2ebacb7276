from __future__ import annotations

from html import escape

from pydantic import BaseModel

from stock_dashboard.schemas.dashboard import DashboardSnapshot, SortConfig
from stock_dashboard.services.sorting import next_sort_config, sort_quotes

COLUMNS: list[tuple[str, str, str]] = [
    ("symbol", "Symbol", "text-left"),
    ("price", "Price", "text-right"),
    ("change", "Change", "text-right"),
    ("changePercent", "% Change", "text-right"),
]


class TableRow(BaseModel):
    symbol: str
    price: str
    change: str
    change_percent: str
    color_class: str
    highlight: bool = False


class ColumnHeader(BaseModel):
    key: str
    label: str
    align: str
    aria_sort: str
    icon: str
    next_sort: SortConfig


def format_price(value: float | None) -> str:
    return f"${value:.2f}" if value is not None else "N/A"


def format_change(value: float | None) -> str:
    return f"{value:.2f}" if value is not None else "N/A"


def change_color_class(change: float | None) -> str:
    if change is None:
        return "text-gray-500"
    return "text-green-600" if change >= 0 else "text-red-600"


def sort_icon(config: SortConfig, key: str) -> str:
    if config.key != key:
        return "arrow-up-down"
    return "arrow-up" if config.direction == "ascending" else "arrow-down"


def build_headers(config: SortConfig) -> list[ColumnHeader]:
    return [
        ColumnHeader(
            key=key,
            label=label,
            align=align,
            aria_sort=config.direction if config.key == key else "none",
            icon=sort_icon(config, key),
            next_sort=next_sort_config(config, key),
        )
        for key, label, align in COLUMNS
    ]


def build_rows(snapshot: DashboardSnapshot) -> list[TableRow]:
    rows: list[TableRow] = []
    for quote in sort_quotes(snapshot.quotes, snapshot.sort_config):
        rows.append(
            TableRow(
                symbol=quote.symbol,
                price=format_price(quote.price),
                change=format_change(quote.change),
                change_percent=quote.change_percent if quote.change_percent is not None else "N/A",
                color_class=change_color_class(quote.change),
                highlight=quote.symbol in snapshot.recently_added,
            )
        )
    return rows


_ICON_GLYPHS = {"arrow-up": "&#8593;", "arrow-down": "&#8595;", "arrow-up-down": "&#8597;"}


def _render_alert(title: str, message: str) -> str:
    return (
        '<div class="alert alert-destructive" role="alert">'
        f"<strong>{escape(title)}</strong><p>{escape(message)}</p></div>"
    )


def _render_add_form(snapshot: DashboardSnapshot) -> str:
    disabled = " disabled" if snapshot.is_adding else ""
    return (
        '<form class="mb-6 flex items-center gap-2" method="post" action="/dashboard/add">'
        '<input type="text" name="symbol" placeholder="Enter Stock Symbol (e.g., AAPL)" '
        f'value="{escape(snapshot.new_symbol)}"{disabled}>'
        f'<button type="submit"{disabled}>Add</button></form>'
        '<form method="post" action="/dashboard/refresh"><button type="submit">Refresh</button></form>'
    )


def render_dashboard_html(snapshot: DashboardSnapshot) -> str:
    parts = [
        "<!doctype html>",
        '<html lang="en"><head><meta charset="utf-8"><title>Stock Dashboard</title>',
        "<style>tr.highlight{background:#fef9c3}th form{display:inline}</style></head>",
        '<body class="container mx-auto px-4 py-8 font-sans max-w-4xl">',
        '<h1 class="text-2xl font-semibold mb-6">Stock Dashboard</h1>',
        _render_add_form(snapshot),
    ]
    if snapshot.add_error and not snapshot.is_adding:
        parts.append(_render_alert("Add Error", snapshot.add_error))

    if snapshot.error and not snapshot.loading:
        parts.append(_render_alert("Error Fetching Initial Data", snapshot.error))
    elif not snapshot.loading:
        parts.append('<table class="min-w-full divide-y divide-gray-200"><thead class="bg-gray-100"><tr>')
        for header in build_headers(snapshot.sort_config):
            parts.append(
                f'<th class="{header.align}" aria-sort="{header.aria_sort}">'
                '<form method="post" action="/dashboard/sort">'
                f'<button type="submit" name="key" value="{header.key}" '
                f'title="Sort {header.next_sort.direction}">{escape(header.label)} '
                f'<span class="icon {header.icon}">{_ICON_GLYPHS[header.icon]}</span></button></form></th>'
            )
        parts.append("</tr></thead><tbody>")
        for row in build_rows(snapshot):
            row_class = ' class="highlight"' if row.highlight else ""
            parts.append(
                f"<tr{row_class}>"
                f'<td class="text-left">{escape(row.symbol)}</td>'
                f'<td class="text-right">{escape(row.price)}</td>'
                f'<td class="text-right {row.color_class}">{escape(row.change)}</td>'
                f'<td class="text-right {row.color_class}">{escape(row.change_percent)}</td>'
                "</tr>"
            )
        parts.append("</tbody></table>")
    parts.append("</body></html>")
    return "\n".join(parts)
