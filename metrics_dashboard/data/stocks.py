"""
Stock API endpoints mapped onto typed models.

``/company/{ticker}`` and ``/stock-prices/{ticker}`` are independent, so
they are requested in parallel and the snapshot is built only once both
have resolved.
"""

from __future__ import annotations

import logging

from metrics_dashboard.data.api_client import ApiClient, ApiError, fetch_parallel
from metrics_dashboard.data.models import CompanyProfile, PriceRecord, StockSnapshot
from metrics_dashboard.data.parsing import parse_list, parse_object

logger = logging.getLogger(__name__)

HEALTH_PATH = "/health"


def company_path(ticker: str) -> str:
    return f"/company/{ticker}"


def prices_path(ticker: str) -> str:
    return f"/stock-prices/{ticker}"


def normalise_ticker(raw: str | None) -> str:
    """Trimmed, upper-cased ticker; an empty search stays empty."""
    return (raw or "").strip().upper()


def check_health(client: ApiClient) -> bool:
    """Return True when the stock API answers ``/health`` successfully."""
    try:
        client.fetch_json(HEALTH_PATH)
    except ApiError as exc:
        logger.warning("Stock API health check failed: %s", exc)
        return False
    return True


def fetch_snapshot(
    client: ApiClient,
    ticker: str,
    *,
    limit: int = 30,
    timeframe: str = "1d",
) -> StockSnapshot:
    """Fetch company profile and recent prices for *ticker* in parallel."""
    company_raw, prices_raw = fetch_parallel(
        client,
        [
            (company_path(ticker), None),
            (prices_path(ticker), {"limit": limit, "timeframe": timeframe}),
        ],
    )
    return StockSnapshot(
        ticker=ticker,
        company=parse_object(CompanyProfile, company_raw, company_path(ticker)),
        prices=parse_list(PriceRecord, prices_raw, prices_path(ticker)),
    )
