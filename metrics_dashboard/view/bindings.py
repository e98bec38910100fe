"""
View binding: the named page regions renderers write into.

Each dashboard resolves its regions once at startup and passes the binding
to every renderer, so renderers never look anything up globally and can be
exercised without a browser.
"""

from __future__ import annotations

import html
from typing import Iterable, Iterator


class Region:
    """One addressable element of the page."""

    def __init__(self, region_id: str, html_: str = "", classes: Iterable[str] = ()) -> None:
        self.id = region_id
        self.html = html_
        self.classes: set[str] = set(classes)

    @property
    def text(self) -> str:
        return self.html

    @text.setter
    def text(self, value: str) -> None:
        """Set plain text content; it is escaped before it reaches the page."""
        self.html = html.escape(str(value), quote=True)

    def toggle_class(self, name: str, on: bool) -> None:
        if on:
            self.classes.add(name)
        else:
            self.classes.discard(name)

    @property
    def class_attr(self) -> str:
        return " ".join(sorted(self.classes))

    def __repr__(self) -> str:
        return f"Region({self.id!r}, classes={sorted(self.classes)!r})"


class ViewBinding:
    """Fixed set of regions resolved once; unknown ids are a programming error."""

    def __init__(self, regions: dict[str, Region]) -> None:
        self._regions = regions

    @classmethod
    def resolve(
        cls,
        region_ids: Iterable[str],
        initial_classes: dict[str, Iterable[str]] | None = None,
    ) -> "ViewBinding":
        initial_classes = initial_classes or {}
        return cls({
            region_id: Region(region_id, classes=initial_classes.get(region_id, ()))
            for region_id in region_ids
        })

    def __getitem__(self, region_id: str) -> Region:
        try:
            return self._regions[region_id]
        except KeyError:
            raise KeyError(f"No region {region_id!r} in this view binding") from None

    def __contains__(self, region_id: object) -> bool:
        return region_id in self._regions

    def __iter__(self) -> Iterator[Region]:
        return iter(self._regions.values())


# ---------------------------------------------------------------------------
# Region ids per dashboard
# ---------------------------------------------------------------------------

SALES_REGIONS = (
    "error-banner",
    "total-revenue",
    "total-customers",
    "new-leads",
    "monthlyRevenueChart",
    "topProductsChart",
    "segmentRevenueChart",
)

STOCK_SECTIONS = ("home", "forecasting", "clustering", "analysis", "portfolio")

STOCK_REGIONS = (
    "api-status",
    "connection-status",
    "loading",
    "page-title",
    "ticker-search",
    "market-cap-display",
    "current-price-display",
    "pe-ratio-display",
    "volume-display",
    "company-info",
    "financial-metrics",
    "valuation-metrics",
    "growth-metrics",
    "profitability-liquidity",
    "price-table-body",
    "price-chart",
    "volume-chart",
    *(f"{section}-section" for section in STOCK_SECTIONS),
    *(f"nav-{section}" for section in STOCK_SECTIONS),
)


def sales_binding() -> ViewBinding:
    return ViewBinding.resolve(SALES_REGIONS)


def stock_binding() -> ViewBinding:
    hidden = {f"{section}-section": ("hidden",) for section in STOCK_SECTIONS if section != "home"}
    return ViewBinding.resolve(
        STOCK_REGIONS,
        initial_classes={**hidden, "nav-home": ("active",)},
    )
