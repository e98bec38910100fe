"""
Data models for the metrics dashboards.

Pydantic models for every payload the sales and stock backends return.
Numeric fields are optional: a missing metric stays ``None`` and is
rendered as a placeholder later, never coerced to zero.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    """Base for API payloads; unknown keys from the backend are ignored."""

    model_config = ConfigDict(extra="ignore")


# ---------------------------------------------------------------------------
# Sales API
# ---------------------------------------------------------------------------

class KpiSummary(_Payload):
    """Headline figures from ``/kpi``."""

    total_revenue: Optional[float] = None
    total_customers: Optional[float] = None
    new_leads: Optional[float] = None


class MonthlyRevenue(_Payload):
    """One point of ``/monthly-revenue``; ``date`` is ``YYYY-MM``."""

    date: str
    revenue: Optional[float] = None


class NamedRevenue(_Payload):
    """Revenue attributed to a product (``/top-products``) or segment
    (``/segment-revenue``)."""

    name: str
    revenue: Optional[float] = None


# ---------------------------------------------------------------------------
# Stock API
# ---------------------------------------------------------------------------

class PriceRecord(_Payload):
    """One OHLCV bar from ``/stock-prices/{ticker}``."""

    datetime: str
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    close: Optional[float] = None
    volume: Optional[float] = None


class CompanyInfo(_Payload):
    ticker: Optional[str] = None
    longname: Optional[str] = None
    sector: Optional[str] = None
    longbusinesssummary: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None


class FinanceMetrics(_Payload):
    marketcap: Optional[float] = None
    totalrevenue: Optional[float] = None
    netincometocommon: Optional[float] = None
    trailingeps: Optional[float] = None
    profitmargins: Optional[float] = None
    freecashflow: Optional[float] = None


class ValuationMetrics(_Payload):
    trailingpe: Optional[float] = None
    forwardpe: Optional[float] = None
    pegratio: Optional[float] = None
    pricetobook: Optional[float] = None
    pricetosalestrailing12months: Optional[float] = None


class GrowthMetrics(_Payload):
    revenuegrowth: Optional[float] = None
    earningsgrowth: Optional[float] = None
    earningsquarterlygrowth: Optional[float] = None


class ProfitabilityMetrics(_Payload):
    returnonequity: Optional[float] = None
    returnonassets: Optional[float] = None


class LiquidityMetrics(_Payload):
    currentratio: Optional[float] = None
    totalcash: Optional[float] = None
    totaldebt: Optional[float] = None
    debttoequity: Optional[float] = None


class CompanyProfile(_Payload):
    """Everything ``/company/{ticker}`` returns; any section may be absent."""

    info: Optional[CompanyInfo] = None
    finance: Optional[FinanceMetrics] = None
    valuation: Optional[ValuationMetrics] = None
    growth: Optional[GrowthMetrics] = None
    profitabilities: Optional[ProfitabilityMetrics] = None
    liquidity: Optional[LiquidityMetrics] = None


class StockSnapshot(BaseModel):
    """Company profile plus its recent price history, newest bar first."""

    ticker: str
    company: CompanyProfile
    prices: list[PriceRecord] = Field(default_factory=list)
