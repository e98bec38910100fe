"""
Tests for the JSON API client, the parallel group fetch and the typed
sales/stock endpoint helpers.
"""

from __future__ import annotations

import threading
import time
from unittest.mock import MagicMock

import pytest
import requests

from metrics_dashboard.data.api_client import (
    ApiClient,
    ApiError,
    TransportError,
    fetch_parallel,
)
from metrics_dashboard.data.sales import fetch_chart_data, fetch_kpis
from metrics_dashboard.data.stocks import (
    check_health,
    fetch_snapshot,
    normalise_ticker,
)
from tests.conftest import (
    FakeResponse,
    FakeSession,
    PRICES_BODY,
    sales_routes,
    stock_routes,
)


def _client(routes, base="http://sales.test/api", **kwargs) -> tuple[ApiClient, FakeSession]:
    session = FakeSession(routes)
    return ApiClient(base, session=session, **kwargs), session


# ---------------------------------------------------------------------------
# ApiClient.fetch_json
# ---------------------------------------------------------------------------


class TestFetchJson:
    def test_returns_decoded_body(self):
        client, session = _client({"/kpi": FakeResponse(200, {"a": 1})})
        assert client.fetch_json("/kpi") == {"a": 1}
        assert session.calls[0][0] == "http://sales.test/api/kpi"

    def test_joins_base_and_path_with_single_slash(self):
        client, _ = _client({}, base="http://sales.test/api/")
        assert client.url_for("/kpi") == "http://sales.test/api/kpi"
        assert client.url_for("kpi") == "http://sales.test/api/kpi"

    def test_error_status_uses_server_message(self):
        client, _ = _client({"/kpi": FakeResponse(500, {"error": "db down"})})
        with pytest.raises(ApiError) as info:
            client.fetch_json("/kpi")
        assert info.value.status == 500
        assert info.value.message == "db down"
        assert str(info.value) == "API request failed with status 500: db down"
        assert not isinstance(info.value, TransportError)

    def test_error_status_without_message(self):
        client, _ = _client({"/kpi": FakeResponse(503, invalid_json=True)})
        with pytest.raises(ApiError) as info:
            client.fetch_json("/kpi")
        assert info.value.message == "Unknown API error"

    def test_error_body_without_error_field(self):
        client, _ = _client({"/kpi": FakeResponse(400, {"detail": "nope"})})
        with pytest.raises(ApiError, match="status 400: Unknown API error"):
            client.fetch_json("/kpi")

    def test_unknown_path_is_404(self):
        client, _ = _client({})
        with pytest.raises(ApiError, match="status 404: Not found"):
            client.fetch_json("/missing")

    def test_network_failure_is_transport_error(self):
        client, _ = _client({"/kpi": requests.ConnectionError("refused")})
        with pytest.raises(TransportError) as info:
            client.fetch_json("/kpi")
        assert info.value.status == 0
        assert str(info.value) == "parse or network failure"
        assert info.value.message == "parse or network failure"
        assert isinstance(info.value, ApiError)

    def test_invalid_json_is_transport_error(self):
        client, _ = _client({"/kpi": FakeResponse(200, invalid_json=True)})
        with pytest.raises(TransportError, match="parse or network failure"):
            client.fetch_json("/kpi")

    def test_timeout_and_params_forwarded(self):
        client, session = _client({"/p": FakeResponse(200, [])}, timeout=2.5)
        client.fetch_json("/p", {"limit": 5})
        assert session.calls == [("http://sales.test/api/p", {"limit": 5}, 2.5)]

    def test_no_timeout_by_default(self):
        client, session = _client({"/p": FakeResponse(200, [])})
        client.fetch_json("/p")
        assert session.calls[0][2] is None

    def test_close_closes_session(self):
        session = MagicMock()
        ApiClient("http://x", session=session).close()
        session.close.assert_called_once()


# ---------------------------------------------------------------------------
# fetch_parallel
# ---------------------------------------------------------------------------


class _SlowFirstSession(FakeSession):
    """Delays the first route until the second has been requested."""

    def __init__(self, routes):
        super().__init__(routes)
        self.second_seen = threading.Event()

    def get(self, url, params=None, timeout=None):
        if url.endswith("/first"):
            self.second_seen.wait(timeout=5)
        else:
            self.second_seen.set()
        return super().get(url, params, timeout)


class _HangingSession(FakeSession):
    """Blocks requests to /slow until the test releases them."""

    def __init__(self, routes, release):
        super().__init__(routes)
        self.release = release

    def get(self, url, params=None, timeout=None):
        if url.endswith("/slow"):
            self.release.wait(timeout=5)
        return super().get(url, params, timeout)


class TestFetchParallel:
    def test_empty_group(self):
        client, _ = _client({})
        assert fetch_parallel(client, []) == []

    def test_results_keep_request_order(self):
        session = _SlowFirstSession(
            {"/first": FakeResponse(200, 1), "/second": FakeResponse(200, 2)}
        )
        client = ApiClient("http://x", session=session)
        assert fetch_parallel(client, ["/first", "/second"]) == [1, 2]

    def test_accepts_path_params_pairs(self):
        client, session = _client({"/a": FakeResponse(200, "a"), "/b": FakeResponse(200, "b")})
        assert fetch_parallel(client, [("/a", {"q": 1}), "/b"]) == ["a", "b"]
        assert ("http://sales.test/api/a", {"q": 1}, None) in session.calls

    def test_any_failure_fails_the_group(self):
        client, _ = _client({"/a": FakeResponse(200, "a"), "/b": FakeResponse(500, {"error": "x"})})
        with pytest.raises(ApiError, match="status 500: x"):
            fetch_parallel(client, ["/a", "/b"])

    def test_failure_does_not_wait_for_running_requests(self):
        release = threading.Event()
        session = _HangingSession(
            {"/slow": FakeResponse(200, "late"), "/bad": FakeResponse(500, {"error": "x"})},
            release,
        )
        client = ApiClient("http://x", session=session)
        started = time.monotonic()
        try:
            with pytest.raises(ApiError, match="status 500"):
                fetch_parallel(client, ["/slow", "/bad"])
            assert time.monotonic() - started < 1.0
        finally:
            release.set()


# ---------------------------------------------------------------------------
# Sales endpoints
# ---------------------------------------------------------------------------


class TestSalesEndpoints:
    def test_fetch_kpis(self):
        client, _ = _client(sales_routes())
        kpis = fetch_kpis(client)
        assert kpis.total_revenue == 1234567
        assert kpis.new_leads == 87

    def test_kpis_with_missing_fields(self):
        client, _ = _client(sales_routes(kpi=FakeResponse(200, {"total_revenue": 10})))
        kpis = fetch_kpis(client)
        assert kpis.total_customers is None

    def test_fetch_chart_data(self):
        client, session = _client(sales_routes())
        monthly, products, segments = fetch_chart_data(client)
        assert [m.date for m in monthly] == ["2024-01", "2024-02", "2024-03"]
        assert products[0].name == "Laptop"
        assert segments[1].revenue == 250_000
        assert len(session.calls) == 3

    def test_chart_group_failure(self):
        client, _ = _client(sales_routes(top_products=FakeResponse(500, {"error": "boom"})))
        with pytest.raises(ApiError, match="boom"):
            fetch_chart_data(client)

    def test_wrong_shape_is_transport_error(self):
        client, _ = _client(sales_routes(monthly_revenue=FakeResponse(200, {"date": "2024-01"})))
        with pytest.raises(TransportError):
            fetch_chart_data(client)

    def test_invalid_item_is_transport_error(self):
        client, _ = _client(sales_routes(segment_revenue=FakeResponse(200, [{"revenue": 1}])))
        with pytest.raises(TransportError):
            fetch_chart_data(client)


# ---------------------------------------------------------------------------
# Stock endpoints
# ---------------------------------------------------------------------------


class TestStockEndpoints:
    @pytest.mark.parametrize(
        ("raw", "expected"), [(" aapl ", "AAPL"), ("MsFt", "MSFT"), ("", ""), (None, "")]
    )
    def test_normalise_ticker(self, raw, expected):
        assert normalise_ticker(raw) == expected

    def test_health_ok(self):
        client, _ = _client(stock_routes(), base="http://stock.test")
        assert check_health(client) is True

    def test_health_down(self):
        client, _ = _client({"/health": requests.ConnectionError()}, base="http://stock.test")
        assert check_health(client) is False

    def test_health_error_status(self):
        client, _ = _client({"/health": FakeResponse(503, {})}, base="http://stock.test")
        assert check_health(client) is False

    def test_fetch_snapshot(self):
        client, session = _client(stock_routes(), base="http://stock.test")
        snap = fetch_snapshot(client, "AAPL", limit=30, timeframe="1d")
        assert snap.ticker == "AAPL"
        assert snap.company.info.longname == "Apple Inc."
        assert snap.company.growth is None
        assert len(snap.prices) == len(PRICES_BODY)
        assert ("http://stock.test/stock-prices/AAPL", {"limit": 30, "timeframe": "1d"}, None) in session.calls

    def test_snapshot_fails_when_either_request_fails(self):
        routes = stock_routes()
        routes["/company/AAPL"] = FakeResponse(404, {"error": "Company not found"})
        client, _ = _client(routes, base="http://stock.test")
        with pytest.raises(ApiError, match="Company not found"):
            fetch_snapshot(client, "AAPL")
