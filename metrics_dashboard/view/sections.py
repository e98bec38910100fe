"""
Section renderers for both dashboards.

Each renderer fills fixed regions of a :class:`ViewBinding` from a payload
that may be partially missing.  An absent sub-object produces an explicit
"No ... available" placeholder; nothing is left blank and nothing raises.
Every string that came from an API is HTML-escaped before it is written.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from metrics_dashboard.data.models import (
    CompanyInfo,
    FinanceMetrics,
    GrowthMetrics,
    KpiSummary,
    LiquidityMetrics,
    PriceRecord,
    ProfitabilityMetrics,
    StockSnapshot,
    ValuationMetrics,
)
from metrics_dashboard.view.bindings import STOCK_SECTIONS, ViewBinding
from metrics_dashboard.view.charts import (
    ChartHandle,
    ChartKind,
    ChartRegistry,
    build_chart_spec,
    build_theme_options,
)
from metrics_dashboard.view.formatters import (
    NOT_AVAILABLE,
    format_currency,
    format_date_label,
    format_number,
    format_percentage,
    format_price,
    format_ratio,
    format_value,
    format_volume,
    truncate_summary,
)
from metrics_dashboard.view.theme import ThemeController

logger = logging.getLogger(__name__)

KPI_REGIONS = ("total-revenue", "total-customers", "new-leads")

CHART_CANVASES: dict[ChartKind, str] = {
    ChartKind.MONTHLY_REVENUE: "monthlyRevenueChart",
    ChartKind.TOP_PRODUCTS: "topProductsChart",
    ChartKind.SEGMENT_REVENUE: "segmentRevenueChart",
    ChartKind.PRICE: "price-chart",
    ChartKind.VOLUME: "volume-chart",
}

SECTION_TITLES = {
    "home": "Home Dashboard",
    "forecasting": "Stock Forecasting",
    "clustering": "Stock Clustering",
    "analysis": "Market Analysis",
    "portfolio": "Portfolio Tracker",
}

_TABLE_COLUMNS = 6
_TD = "px-6 py-4 whitespace-nowrap text-sm"


@dataclass
class RenderContext:
    """Everything a renderer may touch: regions, charts and theme.

    Args:
        binding: Regions of the dashboard page.
        charts: Owner of every live chart instance.
        theme: Current light/dark mode.
        currency_symbol: Symbol for revenue figures.
        group_separator: Thousands separator for revenue and counts.
        table_row_cap: Maximum rows shown in the price table.
    """

    binding: ViewBinding
    charts: ChartRegistry
    theme: ThemeController
    currency_symbol: str = "Rp"
    group_separator: str = "."
    table_row_cap: int = 10

    def money(self, value: Any) -> str:
        return format_currency(value, self.currency_symbol, self.group_separator)

    def count(self, value: Any) -> str:
        return format_number(value, self.group_separator)


def _esc(value: Any) -> str:
    return html.escape(str(value), quote=True)


def _placeholder(what: str) -> str:
    return f'<p class="text-red-500">No {_esc(what)} available</p>'


def _metric_rows(rows: Sequence[tuple[str, str]]) -> str:
    return "".join(
        '<div class="flex justify-between">'
        f'<span class="text-sm">{_esc(label)}:</span>'
        f'<span class="font-semibold">{_esc(value)}</span>'
        "</div>"
        for label, value in rows
    )


def _metric_panel(rows: Sequence[tuple[str, str]]) -> str:
    return f'<div class="space-y-3">{_metric_rows(rows)}</div>'


# ---------------------------------------------------------------------------
# Charts
# ---------------------------------------------------------------------------

def render_chart(ctx: RenderContext, kind: ChartKind, data: Sequence[Any]) -> ChartHandle:
    """Rebuild one chart from scratch in the current theme."""
    style = build_theme_options(ctx.theme.get_mode())
    spec = build_chart_spec(kind, data, style, money=ctx.money)
    return ctx.charts.draw(kind.value, CHART_CANVASES[kind], spec)


# ---------------------------------------------------------------------------
# Sales dashboard
# ---------------------------------------------------------------------------

def render_kpis(ctx: RenderContext, kpi: KpiSummary) -> None:
    ctx.binding["total-revenue"].text = ctx.money(kpi.total_revenue)
    ctx.binding["total-customers"].text = ctx.count(kpi.total_customers)
    ctx.binding["new-leads"].text = ctx.count(kpi.new_leads)


def render_kpi_error(ctx: RenderContext) -> None:
    for region_id in KPI_REGIONS:
        ctx.binding[region_id].html = '<span class="text-sm text-red-500">Error loading data</span>'


def render_error_banner(ctx: RenderContext, message: str) -> None:
    banner = ctx.binding["error-banner"]
    banner.html = f'<div class="error-message">{_esc(message)}</div>'
    banner.toggle_class("hidden", False)


# ---------------------------------------------------------------------------
# Stock dashboard
# ---------------------------------------------------------------------------

def render_api_status(ctx: RenderContext, connected: bool, base_url: str) -> None:
    if connected:
        ctx.binding["api-status"].text = "🟢 Connected"
        ctx.binding["connection-status"].html = (
            '<div class="success-message">✅ Successfully connected to backend API</div>'
        )
    else:
        ctx.binding["api-status"].text = "🔴 Disconnected"
        ctx.binding["connection-status"].html = (
            '<div class="error-message">❌ Cannot connect to backend API. Please ensure '
            f"the backend server is running on {_esc(base_url)}</div>"
        )


def render_load_error(ctx: RenderContext, ticker: str, message: str) -> None:
    ctx.binding["connection-status"].html = (
        f'<div class="error-message">❌ Error loading data for {_esc(ticker)}: '
        f"{_esc(message)}</div>"
    )


def show_loading(ctx: RenderContext, show: bool) -> None:
    ctx.binding["loading"].toggle_class("active", show)


def show_section(ctx: RenderContext, section: str) -> None:
    """Show one stock dashboard section, hide the rest, retitle the page."""
    if section not in SECTION_TITLES:
        raise ValueError(f"Unknown section {section!r}")
    for name in STOCK_SECTIONS:
        ctx.binding[f"{name}-section"].toggle_class("hidden", name != section)
        ctx.binding[f"nav-{name}"].toggle_class("active", name == section)
    ctx.binding["page-title"].text = SECTION_TITLES[section]


def render_quick_stats(ctx: RenderContext, snapshot: StockSnapshot) -> None:
    company = snapshot.company
    latest: Optional[PriceRecord] = snapshot.prices[0] if snapshot.prices else None
    market_cap = company.finance.marketcap if company.finance else None
    pe_ratio = company.valuation.trailingpe if company.valuation else None

    ctx.binding["market-cap-display"].text = format_value(market_cap, True)
    ctx.binding["current-price-display"].text = format_price(latest.close if latest else None)
    ctx.binding["pe-ratio-display"].text = format_ratio(pe_ratio)
    ctx.binding["volume-display"].text = format_volume(latest.volume if latest else None)


def render_company_info(ctx: RenderContext, info: Optional[CompanyInfo]) -> None:
    region = ctx.binding["company-info"]
    if info is None:
        region.html = _placeholder("company info")
        return
    title = info.longname or info.ticker or NOT_AVAILABLE
    region.html = (
        '<div class="space-y-2">'
        f'<h4 class="font-semibold">{_esc(title)}</h4>'
        f'<p class="text-sm text-gray-600">{_esc(info.sector or NOT_AVAILABLE)}</p>'
        f'<p class="text-sm">{_esc(truncate_summary(info.longbusinesssummary))}</p>'
        '<div class="mt-2 text-sm">'
        f"<p><strong>Website:</strong> {_esc(info.website or NOT_AVAILABLE)}</p>"
        f"<p><strong>Phone:</strong> {_esc(info.phone or NOT_AVAILABLE)}</p>"
        "</div></div>"
    )


def render_financial_metrics(ctx: RenderContext, finance: Optional[FinanceMetrics]) -> None:
    region = ctx.binding["financial-metrics"]
    if finance is None:
        region.html = _placeholder("financial data")
        return
    region.html = _metric_panel([
        ("Market Cap", format_value(finance.marketcap, True)),
        ("Revenue", format_value(finance.totalrevenue, True)),
        ("Net Income", format_value(finance.netincometocommon, True)),
        ("EPS (TTM)", format_value(finance.trailingeps)),
        ("Profit Margin", format_percentage(finance.profitmargins)),
        ("Free Cash Flow", format_value(finance.freecashflow, True)),
    ])


def render_valuation_metrics(ctx: RenderContext, valuation: Optional[ValuationMetrics]) -> None:
    region = ctx.binding["valuation-metrics"]
    if valuation is None:
        region.html = _placeholder("valuation data")
        return
    region.html = _metric_panel([
        ("P/E Ratio", format_value(valuation.trailingpe)),
        ("Forward P/E", format_value(valuation.forwardpe)),
        ("PEG Ratio", format_value(valuation.pegratio)),
        ("Price/Book", format_value(valuation.pricetobook)),
        ("P/S (TTM)", format_value(valuation.pricetosalestrailing12months)),
    ])


def render_growth_metrics(ctx: RenderContext, growth: Optional[GrowthMetrics]) -> None:
    region = ctx.binding["growth-metrics"]
    if growth is None:
        region.html = _placeholder("growth data")
        return
    region.html = _metric_panel([
        ("Revenue Growth", format_percentage(growth.revenuegrowth)),
        ("Earnings Growth", format_percentage(growth.earningsgrowth)),
        ("Earnings Growth (QoQ)", format_percentage(growth.earningsquarterlygrowth)),
    ])


def render_profitability_liquidity(
    ctx: RenderContext,
    profitabilities: Optional[ProfitabilityMetrics],
    liquidity: Optional[LiquidityMetrics],
) -> None:
    """Combined panel; shows whichever half is present."""
    region = ctx.binding["profitability-liquidity"]
    if profitabilities is None and liquidity is None:
        region.html = _placeholder("profitability & liquidity data")
        return
    rows: list[tuple[str, str]] = []
    if profitabilities is not None:
        rows += [
            ("Return on Equity", format_percentage(profitabilities.returnonequity)),
            ("Return on Assets", format_percentage(profitabilities.returnonassets)),
        ]
    if liquidity is not None:
        rows += [
            ("Current Ratio", format_value(liquidity.currentratio)),
            ("Total Cash", format_value(liquidity.totalcash, True)),
            ("Total Debt", format_value(liquidity.totaldebt, True)),
            ("Debt to Equity", format_value(liquidity.debttoequity)),
        ]
    region.html = _metric_panel(rows)


def render_price_table(ctx: RenderContext, prices: Sequence[PriceRecord]) -> None:
    """Most recent bars first (input order), at most ``table_row_cap`` rows."""
    body = ctx.binding["price-table-body"]
    if not prices:
        body.html = (
            f'<tr><td colspan="{_TABLE_COLUMNS}" class="px-6 py-4 text-sm text-gray-500 '
            'text-center">No price data available</td></tr>'
        )
        return
    rows = []
    for price in prices[: ctx.table_row_cap]:
        rows.append(
            '<tr class="hover:bg-gray-50">'
            f'<td class="{_TD} text-gray-500">{_esc(format_date_label(price.datetime))}</td>'
            f'<td class="{_TD} text-gray-500">{_esc(format_price(price.open))}</td>'
            f'<td class="{_TD} text-green-600">{_esc(format_price(price.high))}</td>'
            f'<td class="{_TD} text-red-600">{_esc(format_price(price.low))}</td>'
            f'<td class="{_TD} font-semibold">{_esc(format_price(price.close))}</td>'
            f'<td class="{_TD} text-gray-500">{_esc(format_volume(price.volume))}</td>'
            "</tr>"
        )
    body.html = "".join(rows)


def render_snapshot(ctx: RenderContext, snapshot: StockSnapshot) -> None:
    """Every stock panel, table and chart from one loaded snapshot."""
    company = snapshot.company
    render_quick_stats(ctx, snapshot)
    render_company_info(ctx, company.info)
    render_financial_metrics(ctx, company.finance)
    render_valuation_metrics(ctx, company.valuation)
    render_growth_metrics(ctx, company.growth)
    render_profitability_liquidity(ctx, company.profitabilities, company.liquidity)
    render_price_table(ctx, snapshot.prices)
    render_chart(ctx, ChartKind.PRICE, snapshot.prices)
    render_chart(ctx, ChartKind.VOLUME, snapshot.prices)
