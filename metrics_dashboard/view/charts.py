"""
Chart configuration builder and chart-instance registry.

:func:`build_theme_options` derives colour tokens from the theme mode (two
fixed palettes, nothing interpolated).  :func:`build_chart_spec` merges those
base options with per-chart overrides and produces a Chart.js configuration.
Tooltip texts are computed here with the dashboard formatters; axis ticks
carry a formatter *name* that the page bootstrap applies in the browser.

Chart instances are owned by an explicit :class:`ChartRegistry`.  Drawing a
chart always destroys the previous instance for that id first; there is no
incremental update path.
"""

from __future__ import annotations

import abc
import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Sequence

from metrics_dashboard.data.models import MonthlyRevenue, NamedRevenue, PriceRecord
from metrics_dashboard.view.formatters import (
    as_number,
    format_currency,
    format_date_label,
    format_month_label,
    format_price,
    format_volume,
    parse_timestamp,
    timestamp_sort_key,
)
from metrics_dashboard.view.theme import ThemeMode

logger = logging.getLogger(__name__)

Formatter = Callable[[Any], str]


class ChartKind(str, Enum):
    MONTHLY_REVENUE = "monthly_revenue"
    TOP_PRODUCTS = "top_products"
    SEGMENT_REVENUE = "segment_revenue"
    PRICE = "price"
    VOLUME = "volume"


# ---------------------------------------------------------------------------
# Theme palettes
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ChartStyleOptions:
    """Colour tokens for one theme mode."""

    mode: ThemeMode
    grid_color: str
    text_color: str
    tooltip_background: str
    segment_border: str

    def to_options(self) -> dict[str, Any]:
        """Base Chart.js options shared by every chart."""
        axis = {
            "ticks": {"color": self.text_color, "font": {"size": 12}},
            "grid": {"color": self.grid_color},
        }
        return {
            "plugins": {
                "legend": {
                    "labels": {"color": self.text_color, "boxWidth": 12, "padding": 20},
                },
                "tooltip": {
                    "bodyColor": self.text_color,
                    "titleColor": self.text_color,
                    "backgroundColor": self.tooltip_background,
                    "borderColor": self.grid_color,
                },
            },
            "scales": {"y": copy.deepcopy(axis), "x": copy.deepcopy(axis)},
        }


_PALETTES: dict[ThemeMode, ChartStyleOptions] = {
    ThemeMode.LIGHT: ChartStyleOptions(
        mode=ThemeMode.LIGHT,
        grid_color="rgba(0, 0, 0, 0.1)",
        text_color="#374151",  # gray-700
        tooltip_background="rgba(255, 255, 255, 0.8)",
        segment_border="#FFFFFF",
    ),
    ThemeMode.DARK: ChartStyleOptions(
        mode=ThemeMode.DARK,
        grid_color="rgba(255, 255, 255, 0.1)",
        text_color="#E5E7EB",  # gray-200
        tooltip_background="rgba(31, 41, 55, 0.8)",
        segment_border="#1F2937",  # gray-800
    ),
}


def build_theme_options(mode: ThemeMode) -> ChartStyleOptions:
    return _PALETTES[ThemeMode(mode)]


# ---------------------------------------------------------------------------
# Chart specs
# ---------------------------------------------------------------------------

_CATEGORY_COLORS = [
    "rgba(239, 68, 68, 0.7)",
    "rgba(59, 130, 246, 0.7)",
    "rgba(234, 179, 8, 0.7)",
    "rgba(16, 185, 129, 0.7)",
    "rgba(139, 92, 246, 0.7)",
    "rgba(249, 115, 22, 0.7)",
]

_BASE_LAYOUT: dict[str, Any] = {"responsive": True, "maintainAspectRatio": False}


@dataclass(slots=True)
class ChartSpec:
    """A Chart.js configuration plus the browser-side formatting hints.

    Args:
        type: Chart.js chart type (``line``, ``bar``, ``doughnut``).
        data: Chart.js ``data`` block (labels and datasets).
        options: Chart.js ``options`` block.
        tooltip_labels: Preformatted tooltip text per data point.
        tick_format: Axis id to formatter name (``currency``, ``price``, ``volume``).
    """

    type: str
    data: dict[str, Any]
    options: dict[str, Any]
    tooltip_labels: list[str] = field(default_factory=list)
    tick_format: dict[str, str] = field(default_factory=dict)

    @property
    def labels(self) -> list[str]:
        return self.data.get("labels", [])

    def to_config(self) -> dict[str, Any]:
        """JSON-serialisable payload consumed by the page bootstrap."""
        return {
            "type": self.type,
            "data": self.data,
            "options": self.options,
            "meta": {"tooltipLabels": self.tooltip_labels, "tickFormat": self.tick_format},
        }


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict: *override* merged into *base*, nested dicts recursively."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def segment_percentages(values: Sequence[Any]) -> list[float]:
    """Share of each segment in the dataset total, rounded to 1 decimal.

    Computed from *values* alone on every call; a zero total yields zeros.
    Missing values count as zero.
    """
    numbers = [as_number(v) or 0.0 for v in values]
    total = sum(numbers)
    if total == 0:
        return [0.0 for _ in numbers]
    return [round(n / total * 100, 1) for n in numbers]


def sort_chronologically(records: Sequence[PriceRecord]) -> list[PriceRecord]:
    """Price records in ascending time order, whatever the input order.

    Records whose timestamp cannot be parsed are left out of charts.
    """
    dated = []
    for record in records:
        ts = parse_timestamp(record.datetime)
        if ts is None:
            logger.debug("Skipping price record with unreadable datetime %r", record.datetime)
            continue
        dated.append((timestamp_sort_key(ts), record))
    dated.sort(key=lambda pair: pair[0])
    return [record for _, record in dated]


def _monthly_revenue(
    data: Sequence[MonthlyRevenue], style: ChartStyleOptions, money: Formatter
) -> ChartSpec:
    revenues = [item.revenue for item in data]
    options = deep_merge(style.to_options(), {
        **_BASE_LAYOUT,
        "plugins": {"legend": {"display": False}},
        "scales": {"y": {"beginAtZero": True}},
    })
    return ChartSpec(
        type="line",
        data={
            "labels": [format_month_label(item.date) for item in data],
            "datasets": [{
                "label": "Monthly Revenue",
                "data": revenues,
                "backgroundColor": "rgba(59, 130, 246, 0.2)",
                "borderColor": "rgba(59, 130, 246, 1)",
                "borderWidth": 2,
                "tension": 0.3,
                "pointBackgroundColor": "rgba(59, 130, 246, 1)",
                "pointRadius": 4,
            }],
        },
        options=options,
        tooltip_labels=[money(v) for v in revenues],
        tick_format={"y": "currency"},
    )


def _top_products(
    data: Sequence[NamedRevenue], style: ChartStyleOptions, money: Formatter
) -> ChartSpec:
    revenues = [item.revenue for item in data]
    options = deep_merge(style.to_options(), {
        **_BASE_LAYOUT,
        "indexAxis": "y",
        "plugins": {"legend": {"display": False}},
        "scales": {"x": {"beginAtZero": True}},
    })
    return ChartSpec(
        type="bar",
        data={
            "labels": [item.name for item in data],
            "datasets": [{
                "label": "Revenue",
                "data": revenues,
                "backgroundColor": _CATEGORY_COLORS[:5],
            }],
        },
        options=options,
        tooltip_labels=[money(v) for v in revenues],
        tick_format={"x": "currency"},
    )


def _segment_revenue(
    data: Sequence[NamedRevenue], style: ChartStyleOptions, money: Formatter
) -> ChartSpec:
    names = [item.name for item in data]
    revenues = [item.revenue for item in data]
    percentages = segment_percentages(revenues)
    base = style.to_options()
    base.pop("scales")
    options = deep_merge(base, {
        **_BASE_LAYOUT,
        "cutout": "60%",
        "plugins": {"legend": {"position": "right"}},
    })
    return ChartSpec(
        type="doughnut",
        data={
            "labels": names,
            "datasets": [{
                "data": revenues,
                "backgroundColor": list(_CATEGORY_COLORS),
                "borderColor": style.segment_border,
            }],
        },
        options=options,
        tooltip_labels=[
            f"{name}: {money(value)} ({pct:.1f}%)"
            for name, value, pct in zip(names, revenues, percentages)
        ],
    )


def _price(data: Sequence[PriceRecord], style: ChartStyleOptions) -> ChartSpec:
    ordered = sort_chronologically(data)
    closes = [record.close for record in ordered]
    options = deep_merge(style.to_options(), {
        **_BASE_LAYOUT,
        "plugins": {"legend": {"display": False}},
        "interaction": {"intersect": False, "mode": "index"},
    })
    return ChartSpec(
        type="line",
        data={
            "labels": [format_date_label(record.datetime) for record in ordered],
            "datasets": [{
                "label": "Close Price",
                "data": closes,
                "borderColor": "rgb(99, 102, 241)",
                "backgroundColor": "rgba(99, 102, 241, 0.1)",
                "tension": 0.4,
                "fill": True,
                "pointRadius": 2,
                "pointHoverRadius": 6,
            }],
        },
        options=options,
        tooltip_labels=[format_price(v) for v in closes],
        tick_format={"y": "price"},
    )


def _volume(data: Sequence[PriceRecord], style: ChartStyleOptions) -> ChartSpec:
    ordered = sort_chronologically(data)
    volumes = [record.volume for record in ordered]
    options = deep_merge(style.to_options(), {
        **_BASE_LAYOUT,
        "plugins": {"legend": {"display": False}},
    })
    return ChartSpec(
        type="bar",
        data={
            "labels": [format_date_label(record.datetime) for record in ordered],
            "datasets": [{
                "label": "Volume",
                "data": volumes,
                "backgroundColor": "rgba(34, 197, 94, 0.6)",
                "borderColor": "rgb(34, 197, 94)",
                "borderWidth": 1,
            }],
        },
        options=options,
        tooltip_labels=[format_volume(v) for v in volumes],
        tick_format={"y": "volume"},
    )


def build_chart_spec(
    kind: ChartKind | str,
    data: Sequence[Any],
    style: ChartStyleOptions,
    *,
    money: Formatter = format_currency,
) -> ChartSpec:
    """Build the Chart.js spec for *kind* from *data* and the theme *style*.

    Args:
        kind: Which dashboard chart to build.
        data: Records for that chart (revenue points, named revenues, or
            price records in any order).
        style: Palette from :func:`build_theme_options`.
        money: Currency formatter for revenue tooltips.
    """
    kind = ChartKind(kind)
    if kind is ChartKind.MONTHLY_REVENUE:
        return _monthly_revenue(data, style, money)
    if kind is ChartKind.TOP_PRODUCTS:
        return _top_products(data, style, money)
    if kind is ChartKind.SEGMENT_REVENUE:
        return _segment_revenue(data, style, money)
    if kind is ChartKind.PRICE:
        return _price(data, style)
    return _volume(data, style)


# ---------------------------------------------------------------------------
# Chart engine and registry
# ---------------------------------------------------------------------------

class ChartHandle:
    """A live chart instance drawn on one canvas."""

    def __init__(self, engine: "ChartEngine", canvas_id: str, spec: ChartSpec) -> None:
        self._engine = engine
        self.canvas_id = canvas_id
        self.spec = spec
        self.destroyed = False

    def destroy(self) -> None:
        if not self.destroyed:
            self._engine.release(self)
            self.destroyed = True

    def __repr__(self) -> str:
        return (
            f"ChartHandle(canvas_id={self.canvas_id!r}, type={self.spec.type!r}, "
            f"destroyed={self.destroyed})"
        )


class ChartEngine(abc.ABC):
    """The charting library seam: creates and releases chart instances."""

    @abc.abstractmethod
    def create(self, canvas_id: str, spec: ChartSpec) -> ChartHandle:
        """Draw *spec* on *canvas_id* and return the owning handle."""

    @abc.abstractmethod
    def release(self, handle: ChartHandle) -> None:
        """Free everything *handle* holds on its canvas."""


class EmbeddedChartEngine(ChartEngine):
    """Collects live charts for the page bootstrap to instantiate.

    Like Chart.js, a canvas holds at most one chart: drawing on a busy
    canvas without destroying its chart first is an error.
    """

    def __init__(self) -> None:
        self._live: dict[str, ChartHandle] = {}

    def create(self, canvas_id: str, spec: ChartSpec) -> ChartHandle:
        if canvas_id in self._live:
            raise RuntimeError(f"Canvas {canvas_id!r} is already in use by another chart")
        handle = ChartHandle(self, canvas_id, spec)
        self._live[canvas_id] = handle
        return handle

    def release(self, handle: ChartHandle) -> None:
        if self._live.get(handle.canvas_id) is handle:
            del self._live[handle.canvas_id]

    def live_charts(self) -> list[ChartHandle]:
        return list(self._live.values())


class ChartRegistry:
    """Chart id to owned handle; every draw replaces the previous instance."""

    def __init__(self, engine: ChartEngine) -> None:
        self.engine = engine
        self._handles: dict[str, ChartHandle] = {}

    def draw(self, chart_id: str, canvas_id: str, spec: ChartSpec) -> ChartHandle:
        previous = self._handles.pop(chart_id, None)
        if previous is not None:
            previous.destroy()
        handle = self.engine.create(canvas_id, spec)
        self._handles[chart_id] = handle
        return handle

    def get(self, chart_id: str) -> ChartHandle | None:
        return self._handles.get(chart_id)

    def destroy_all(self) -> None:
        for handle in self._handles.values():
            handle.destroy()
        self._handles.clear()

    def __contains__(self, chart_id: object) -> bool:
        return chart_id in self._handles

    def __len__(self) -> int:
        return len(self._handles)
