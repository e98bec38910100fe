"""
Shared test fixtures and helpers.
"""

from __future__ import annotations

from typing import Any

import pytest

from metrics_dashboard.infra.config import Settings
from metrics_dashboard.infra.preferences import MemoryPreferenceStore
from metrics_dashboard.view.bindings import sales_binding, stock_binding
from metrics_dashboard.view.charts import ChartRegistry, EmbeddedChartEngine
from metrics_dashboard.view.sections import RenderContext
from metrics_dashboard.view.theme import ThemeController


# ---------------------------------------------------------------------------
# Fake HTTP layer
# ---------------------------------------------------------------------------


class FakeResponse:
    """Just enough of ``requests.Response`` for the API client."""

    def __init__(self, status_code: int = 200, body: Any = None, *, invalid_json: bool = False):
        self.status_code = status_code
        self._body = body
        self._invalid_json = invalid_json

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        if self._invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._body


class FakeSession:
    """Routes GET requests by URL suffix to canned responses or exceptions."""

    def __init__(self, routes: dict[str, FakeResponse | Exception] | None = None):
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, Any, Any]] = []

    def get(self, url: str, params: Any = None, timeout: Any = None) -> FakeResponse:
        self.calls.append((url, params, timeout))
        for suffix, outcome in self.routes.items():
            if url.endswith(suffix):
                if isinstance(outcome, Exception):
                    raise outcome
                return outcome
        return FakeResponse(404, {"error": "Not found"})

    def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Sample payloads
# ---------------------------------------------------------------------------

KPI_BODY = {"total_revenue": 1234567, "total_customers": 1520, "new_leads": 87}

MONTHLY_BODY = [
    {"date": "2024-01", "revenue": 1_000_000},
    {"date": "2024-02", "revenue": 1_250_000},
    {"date": "2024-03", "revenue": 900_000},
]

PRODUCTS_BODY = [
    {"name": "Laptop", "revenue": 5_000_000},
    {"name": "Phone", "revenue": 3_000_000},
]

SEGMENTS_BODY = [
    {"name": "Retail", "revenue": 750_000},
    {"name": "Corporate", "revenue": 250_000},
]

COMPANY_BODY = {
    "info": {
        "ticker": "AAPL",
        "longname": "Apple Inc.",
        "sector": "Technology",
        "longbusinesssummary": "Designs phones. " * 30,
        "website": "https://www.apple.com",
        "phone": None,
    },
    "finance": {
        "marketcap": 2_900_000_000_000,
        "totalrevenue": 383_000_000_000,
        "netincometocommon": 97_000_000_000,
        "trailingeps": 6.13,
        "profitmargins": 0.2531,
        "freecashflow": None,
    },
    "valuation": {"trailingpe": 30.25, "forwardpe": 28.1},
    "growth": None,
    "profitabilities": {"returnonequity": 1.56, "returnonassets": 0.22},
    "liquidity": None,
}

PRICES_BODY = [
    {"datetime": "2024-03-05T00:00:00", "open": 170.0, "high": 172.5, "low": 169.1,
     "close": 171.25, "volume": 52_300_000},
    {"datetime": "2024-03-04T00:00:00", "open": 168.0, "high": 170.9, "low": 167.5,
     "close": 169.8, "volume": 48_100_000},
    {"datetime": "2024-03-01T00:00:00", "open": 166.0, "high": 168.2, "low": 165.3,
     "close": 167.9, "volume": 41_000_000},
]


def sales_routes(**overrides: FakeResponse | Exception) -> dict[str, FakeResponse | Exception]:
    routes: dict[str, FakeResponse | Exception] = {
        "/kpi": FakeResponse(200, KPI_BODY),
        "/monthly-revenue": FakeResponse(200, MONTHLY_BODY),
        "/top-products": FakeResponse(200, PRODUCTS_BODY),
        "/segment-revenue": FakeResponse(200, SEGMENTS_BODY),
    }
    routes.update({f"/{k.replace('_', '-')}": v for k, v in overrides.items()})
    return routes


def stock_routes(ticker: str = "AAPL") -> dict[str, FakeResponse | Exception]:
    return {
        "/health": FakeResponse(200, {"status": "ok"}),
        f"/company/{ticker}": FakeResponse(200, COMPANY_BODY),
        f"/stock-prices/{ticker}": FakeResponse(200, PRICES_BODY),
    }


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    s = Settings()
    s.sales_api_base_url = "http://sales.test/api"
    s.stock_api_base_url = "http://stock.test"
    s.http_timeout = None
    s.price_limit = 30
    s.price_timeframe = "1d"
    s.table_row_cap = 10
    s.currency_symbol = "Rp"
    s.group_separator = "."
    return s


@pytest.fixture
def store() -> MemoryPreferenceStore:
    return MemoryPreferenceStore()


@pytest.fixture
def sales_ctx(store) -> RenderContext:
    return RenderContext(
        binding=sales_binding(),
        charts=ChartRegistry(EmbeddedChartEngine()),
        theme=ThemeController(store),
    )


@pytest.fixture
def stock_ctx(store) -> RenderContext:
    return RenderContext(
        binding=stock_binding(),
        charts=ChartRegistry(EmbeddedChartEngine()),
        theme=ThemeController(store),
    )
