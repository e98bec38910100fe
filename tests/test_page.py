"""
Tests for HTML page assembly.
"""

from __future__ import annotations

import json
import re

from metrics_dashboard.view.dashboards import build_sales_dashboard, build_stock_dashboard
from metrics_dashboard.view.page import (
    CHART_JS_URL,
    _json_for_script,
    render_sales_page,
    render_stock_page,
)
from tests.conftest import FakeResponse, FakeSession, sales_routes, stock_routes


def _chart_payload(page: str) -> dict:
    match = re.search(r'<script id="chart-data" type="application/json">(.*?)</script>', page, re.S)
    assert match is not None
    return json.loads(match.group(1))


# ---------------------------------------------------------------------------
# Sales page
# ---------------------------------------------------------------------------


class TestSalesPage:
    def _page(self, store, settings, routes=None, **kwargs):
        dashboard = build_sales_dashboard(
            store, settings=settings, session=FakeSession(routes or sales_routes()), **kwargs
        )
        dashboard.initialize()
        return dashboard, render_sales_page(dashboard, toggle_url="/theme/toggle")

    def test_contains_kpis_and_chart_script(self, store, settings):
        _, page = self._page(store, settings)
        assert page.startswith("<!DOCTYPE html>")
        assert CHART_JS_URL in page
        assert '<div id="total-revenue" class="kpi-value">Rp 1.234.567</div>' in page
        assert '<canvas id="monthlyRevenueChart">' in page

    def test_chart_payload(self, store, settings):
        _, page = self._page(store, settings)
        payload = _chart_payload(page)
        assert payload["locale"] == {"currencySymbol": "Rp", "groupSeparator": "."}
        assert set(payload["charts"]) == {
            "monthlyRevenueChart", "topProductsChart", "segmentRevenueChart"
        }
        doughnut = payload["charts"]["segmentRevenueChart"]
        assert doughnut["type"] == "doughnut"
        assert doughnut["meta"]["tooltipLabels"][0] == "Retail: Rp 750.000 (75.0%)"

    def test_light_page_has_no_dark_class(self, store, settings):
        _, page = self._page(store, settings)
        assert '<html lang="en">' in page
        assert "🌙 Dark mode" in page

    def test_dark_page(self, store, settings):
        _, page = self._page(store, settings, prefers_dark=True)
        assert '<html lang="en" class="dark">' in page
        assert "☀️ Light mode" in page

    def test_theme_toggle_form(self, store, settings):
        _, page = self._page(store, settings)
        assert '<form method="post" action="/theme/toggle">' in page
        assert 'id="theme-toggle"' in page

    def test_no_toggle_without_url(self, store, settings):
        dashboard, _ = self._page(store, settings)
        assert 'id="theme-toggle"' not in render_sales_page(dashboard)

    def test_failed_load_shows_banner_without_charts(self, store, settings):
        routes = sales_routes(monthly_revenue=FakeResponse(500, {"error": "down"}))
        _, page = self._page(store, settings, routes)
        assert "Could not load dashboard data" in page
        assert _chart_payload(page)["charts"] == {}


# ---------------------------------------------------------------------------
# Stock page
# ---------------------------------------------------------------------------


class TestStockPage:
    def _dashboard(self, store, settings, routes=None):
        dashboard = build_stock_dashboard(
            store, settings=settings, session=FakeSession(routes or stock_routes())
        )
        dashboard.check_api_connection()
        return dashboard

    def test_loaded_page(self, store, settings):
        dashboard = self._dashboard(store, settings)
        dashboard.load("aapl")
        page = render_stock_page(dashboard, toggle_url="/theme/toggle", search_url="/stock")
        assert "<title>Stock Dashboard AAPL</title>" in page
        assert 'value="AAPL"' in page
        assert "$2.90T" in page
        assert set(_chart_payload(page)["charts"]) == {"price-chart", "volume-chart"}
        assert 'href="/stock?ticker=AAPL&amp;section=analysis"' in page

    def test_home_visible_other_sections_hidden(self, store, settings):
        dashboard = self._dashboard(store, settings)
        page = render_stock_page(dashboard)
        assert '<section id="home-section">' in page
        assert '<section id="forecasting-section" class="hidden">' in page
        assert "Stock Forecasting is not available yet." in page

    def test_selected_section(self, store, settings):
        dashboard = self._dashboard(store, settings)
        dashboard.show_section("clustering")
        page = render_stock_page(dashboard)
        assert '<section id="clustering-section">' in page
        assert '<section id="home-section" class="hidden">' in page
        assert '<h2 id="page-title">Stock Clustering</h2>' in page

    def test_empty_search(self, store, settings):
        dashboard = self._dashboard(store, settings)
        page = render_stock_page(dashboard)
        assert "<title>Stock Dashboard</title>" in page
        assert "No price data available" not in page

    def test_failed_load_message(self, store, settings):
        dashboard = self._dashboard(store, settings)
        dashboard.load("ZZZZ")
        page = render_stock_page(dashboard)
        assert "Error loading data for ZZZZ" in page


class TestScriptEmbedding:
    def test_closing_script_tag_is_escaped(self):
        assert "</script>" not in _json_for_script({"name": "</script><b>"})
