"""
Dashboard controllers: the load flows of the sales and stock pages.

Each load is independent and simply overwrites the regions and charts of
its own :class:`RenderContext`.  Endpoints that do not depend on each other
are fetched as one parallel group; nothing paints until the whole group has
resolved, and a failure anywhere in the group fails the whole load.
"""

from __future__ import annotations

import logging
from typing import Optional

import requests

from metrics_dashboard.data.api_client import ApiClient, ApiError
from metrics_dashboard.data.models import MonthlyRevenue, NamedRevenue, StockSnapshot
from metrics_dashboard.data.sales import fetch_chart_data, fetch_kpis
from metrics_dashboard.data.stocks import check_health, fetch_snapshot, normalise_ticker
from metrics_dashboard.infra.config import Settings, get_settings
from metrics_dashboard.infra.preferences import AbstractPreferenceStore
from metrics_dashboard.view import sections
from metrics_dashboard.view.bindings import ViewBinding, sales_binding, stock_binding
from metrics_dashboard.view.charts import ChartKind, ChartRegistry, EmbeddedChartEngine
from metrics_dashboard.view.sections import RenderContext
from metrics_dashboard.view.theme import ThemeController, ThemeMode

logger = logging.getLogger(__name__)

FATAL_LOAD_MESSAGE = (
    "Could not load dashboard data. Please ensure the backend server is "
    "running and accessible."
)


class SalesDashboard:
    """KPI tiles plus monthly revenue, top products and segment charts."""

    def __init__(self, client: ApiClient, ctx: RenderContext) -> None:
        self.client = client
        self.ctx = ctx
        self.monthly_revenue: Optional[list[MonthlyRevenue]] = None
        self.top_products: Optional[list[NamedRevenue]] = None
        self.segment_revenue: Optional[list[NamedRevenue]] = None
        ctx.theme.on_change(lambda _mode: self.render_all_charts())

    def load_kpis(self) -> bool:
        """KPI failures stay local to the KPI tiles."""
        try:
            kpi = fetch_kpis(self.client)
        except ApiError as exc:
            logger.error("Error loading KPIs: %s", exc)
            sections.render_kpi_error(self.ctx)
            return False
        sections.render_kpis(self.ctx, kpi)
        return True

    def initialize(self) -> bool:
        """Load KPIs, then every chart dataset as one group, then draw."""
        logger.info("Sales dashboard initializing...")
        self.load_kpis()
        try:
            monthly, products, segments = fetch_chart_data(self.client)
        except ApiError as exc:
            logger.error("Fatal error loading dashboard: %s", exc)
            sections.render_error_banner(self.ctx, FATAL_LOAD_MESSAGE)
            return False

        self.monthly_revenue = monthly
        self.top_products = products
        self.segment_revenue = segments
        self.render_all_charts()
        logger.info("Sales dashboard loaded successfully")
        return True

    def render_all_charts(self) -> None:
        if self.monthly_revenue is not None:
            sections.render_chart(self.ctx, ChartKind.MONTHLY_REVENUE, self.monthly_revenue)
        if self.top_products is not None:
            sections.render_chart(self.ctx, ChartKind.TOP_PRODUCTS, self.top_products)
        if self.segment_revenue is not None:
            sections.render_chart(self.ctx, ChartKind.SEGMENT_REVENUE, self.segment_revenue)

    def toggle_theme(self) -> ThemeMode:
        return self.ctx.theme.toggle()


class StockDashboard:
    """Ticker search over company fundamentals and recent prices."""

    def __init__(
        self,
        client: ApiClient,
        ctx: RenderContext,
        *,
        price_limit: int = 30,
        price_timeframe: str = "1d",
    ) -> None:
        self.client = client
        self.ctx = ctx
        self.price_limit = price_limit
        self.price_timeframe = price_timeframe
        self.snapshot: Optional[StockSnapshot] = None
        ctx.binding["loading"].text = "Loading..."
        sections.show_section(ctx, "home")
        ctx.theme.on_change(lambda _mode: self.render_all_charts())

    def check_api_connection(self) -> bool:
        connected = check_health(self.client)
        sections.render_api_status(self.ctx, connected, self.client.base_url)
        return connected

    def load(self, ticker: str | None) -> bool:
        """Fetch and render everything for *ticker*; False when the load failed."""
        ticker = normalise_ticker(ticker)
        self.ctx.binding["ticker-search"].text = ticker
        sections.show_loading(self.ctx, True)
        try:
            snapshot = fetch_snapshot(
                self.client,
                ticker,
                limit=self.price_limit,
                timeframe=self.price_timeframe,
            )
        except ApiError as exc:
            logger.error("Error loading data for %s: %s", ticker, exc)
            sections.render_load_error(self.ctx, ticker, str(exc))
            return False
        else:
            self.snapshot = snapshot
            sections.render_snapshot(self.ctx, snapshot)
            self.ctx.binding["connection-status"].html = ""
            return True
        finally:
            sections.show_loading(self.ctx, False)

    def show_section(self, section: str) -> None:
        sections.show_section(self.ctx, section)

    def render_all_charts(self) -> None:
        if self.snapshot is not None:
            sections.render_chart(self.ctx, ChartKind.PRICE, self.snapshot.prices)
            sections.render_chart(self.ctx, ChartKind.VOLUME, self.snapshot.prices)

    def toggle_theme(self) -> ThemeMode:
        return self.ctx.theme.toggle()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def _context(binding: ViewBinding, theme: ThemeController, settings: Settings) -> RenderContext:
    return RenderContext(
        binding=binding,
        charts=ChartRegistry(EmbeddedChartEngine()),
        theme=theme,
        currency_symbol=settings.currency_symbol,
        group_separator=settings.group_separator,
        table_row_cap=settings.table_row_cap,
    )


def build_sales_dashboard(
    store: AbstractPreferenceStore,
    *,
    prefers_dark: bool = False,
    settings: Settings | None = None,
    session: requests.Session | None = None,
) -> SalesDashboard:
    s = settings or get_settings()
    theme = ThemeController(store, prefers_dark=prefers_dark)
    client = ApiClient(s.sales_api_base_url, session=session, timeout=s.http_timeout)
    return SalesDashboard(client, _context(sales_binding(), theme, s))


def build_stock_dashboard(
    store: AbstractPreferenceStore,
    *,
    prefers_dark: bool = False,
    settings: Settings | None = None,
    session: requests.Session | None = None,
) -> StockDashboard:
    s = settings or get_settings()
    theme = ThemeController(store, prefers_dark=prefers_dark)
    client = ApiClient(s.stock_api_base_url, session=session, timeout=s.http_timeout)
    return StockDashboard(
        client,
        _context(stock_binding(), theme, s),
        price_limit=s.price_limit,
        price_timeframe=s.price_timeframe,
    )
