"""
Sales API endpoints mapped onto typed models.

Single Responsibility: only knows endpoint paths and payload shapes;
transport and error normalisation live in :mod:`api_client`.
"""

from __future__ import annotations

from metrics_dashboard.data.api_client import ApiClient, fetch_parallel
from metrics_dashboard.data.models import KpiSummary, MonthlyRevenue, NamedRevenue
from metrics_dashboard.data.parsing import parse_list, parse_object

KPI_PATH = "/kpi"
MONTHLY_REVENUE_PATH = "/monthly-revenue"
TOP_PRODUCTS_PATH = "/top-products"
SEGMENT_REVENUE_PATH = "/segment-revenue"


def fetch_kpis(client: ApiClient) -> KpiSummary:
    return parse_object(KpiSummary, client.fetch_json(KPI_PATH), KPI_PATH)


def fetch_chart_data(
    client: ApiClient,
) -> tuple[list[MonthlyRevenue], list[NamedRevenue], list[NamedRevenue]]:
    """Fetch the three chart datasets in parallel (all or nothing)."""
    monthly, products, segments = fetch_parallel(
        client, [MONTHLY_REVENUE_PATH, TOP_PRODUCTS_PATH, SEGMENT_REVENUE_PATH]
    )
    return (
        parse_list(MonthlyRevenue, monthly, MONTHLY_REVENUE_PATH),
        parse_list(NamedRevenue, products, TOP_PRODUCTS_PATH),
        parse_list(NamedRevenue, segments, SEGMENT_REVENUE_PATH),
    )
