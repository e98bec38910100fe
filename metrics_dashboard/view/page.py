"""
Page assembly.

Turns a dashboard's regions and live charts into one self-contained HTML
document: embedded CSS with light and dark variables, Chart.js from a CDN,
and a small bootstrap script that instantiates every live chart with its
precomputed tooltip labels and named tick formatters.
"""

from __future__ import annotations

import html as _html
import json
from typing import Any
from urllib.parse import urlencode

from metrics_dashboard.view.bindings import STOCK_SECTIONS, ViewBinding
from metrics_dashboard.view.charts import ChartHandle, EmbeddedChartEngine
from metrics_dashboard.view.dashboards import SalesDashboard, StockDashboard
from metrics_dashboard.view.sections import SECTION_TITLES
from metrics_dashboard.view.theme import ThemeMode

CHART_JS_URL = "https://cdn.jsdelivr.net/npm/chart.js"


# ---------------------------------------------------------------------------
# CSS / JS
# ---------------------------------------------------------------------------

_CSS = """\
:root{--bg:#f3f4f6;--card:#ffffff;--text:#374151;--muted:#6b7280;--border:#e5e7eb;
  --accent:#3b82f6;--danger:#ef4444;--success:#10b981}
html.dark{--bg:#111827;--card:#1f2937;--text:#e5e7eb;--muted:#9ca3af;--border:#374151}
*{margin:0;padding:0;box-sizing:border-box}
body{font-family:'Inter',-apple-system,BlinkMacSystemFont,sans-serif;background:var(--bg);
  color:var(--text);line-height:1.5;padding:1.5rem}
header{display:flex;justify-content:space-between;align-items:center;margin-bottom:1.5rem}
header h1{font-size:1.5rem;font-weight:700}
.card{background:var(--card);border:1px solid var(--border);border-radius:12px;padding:1.25rem}
.grid{display:grid;gap:1rem;margin-bottom:1rem}
.grid-3{grid-template-columns:repeat(auto-fit,minmax(220px,1fr))}
.grid-4{grid-template-columns:repeat(auto-fit,minmax(180px,1fr))}
.kpi-label{font-size:.8rem;color:var(--muted);text-transform:uppercase}
.kpi-value{font-size:1.6rem;font-weight:700}
.chart-box{position:relative;height:320px}
.hidden{display:none !important}
.error-message{background:#fee2e2;border:1px solid #f87171;color:#b91c1c;padding:.75rem 1rem;
  border-radius:8px;text-align:center;margin-bottom:1rem}
html.dark .error-message{background:#7f1d1d;color:#fecaca}
.success-message{background:#d1fae5;color:#065f46;padding:.75rem 1rem;border-radius:8px;
  margin-bottom:1rem}
.text-red-500{color:var(--danger)}.text-green-600{color:#16a34a}.text-red-600{color:#dc2626}
.text-gray-500,.text-gray-600{color:var(--muted)}.font-semibold{font-weight:600}
.text-sm{font-size:.875rem}.flex{display:flex}.justify-between{justify-content:space-between}
.space-y-2>*+*{margin-top:.5rem}.space-y-3>*+*{margin-top:.75rem}
table{width:100%;border-collapse:collapse}th,td{padding:.5rem 1rem;text-align:left}
th{font-size:.75rem;color:var(--muted);text-transform:uppercase;border-bottom:1px solid var(--border)}
.layout{display:grid;grid-template-columns:200px 1fr;gap:1.5rem}
.sidebar a{display:block;padding:.5rem .75rem;border-radius:8px;color:var(--text);text-decoration:none}
.sidebar a.active{background:var(--accent);color:#fff}
#loading{display:none}#loading.active{display:block;color:var(--muted)}
button,input{font:inherit;padding:.4rem .8rem;border-radius:8px;border:1px solid var(--border);
  background:var(--card);color:var(--text)}
"""

_BOOTSTRAP_JS = """\
(function () {
  const payload = JSON.parse(document.getElementById('chart-data').textContent);
  const locale = payload.locale;
  const suffixed = (value, steps, digits) => {
    for (const [threshold, suffix] of steps) {
      if (value >= threshold) return (value / threshold).toFixed(digits) + suffix;
    }
    return null;
  };
  const formats = {
    currency: v => locale.currencySymbol + ' ' +
      Math.round(v).toString().replace(/\\B(?=(\\d{3})+(?!\\d))/g, locale.groupSeparator),
    price: v => '$' + Number(v).toFixed(2),
    volume: v => suffixed(v, [[1e9, 'B'], [1e6, 'M'], [1e3, 'K']], 1) || v.toLocaleString()
  };
  for (const [canvasId, config] of Object.entries(payload.charts)) {
    const meta = config.meta;
    delete config.meta;
    const plugins = config.options.plugins = config.options.plugins || {};
    const tooltip = plugins.tooltip = plugins.tooltip || {};
    tooltip.callbacks = { label: ctx => meta.tooltipLabels[ctx.dataIndex] };
    for (const [axis, name] of Object.entries(meta.tickFormat)) {
      const scale = config.options.scales[axis];
      scale.ticks = scale.ticks || {};
      scale.ticks.callback = value => formats[name](value);
    }
    new Chart(document.getElementById(canvasId), config);
  }
})();
"""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _esc(text: str) -> str:
    return _html.escape(text, quote=True)


def _json_for_script(data: Any) -> str:
    """JSON safe to embed inside a ``<script>`` element."""
    return json.dumps(data).replace("</", "<\\/")


def _region(binding: ViewBinding, region_id: str, tag: str = "div", extra_class: str = "") -> str:
    region = binding[region_id]
    classes = " ".join(filter(None, [extra_class, region.class_attr]))
    class_attr = f' class="{_esc(classes)}"' if classes else ""
    return f'<{tag} id="{_esc(region_id)}"{class_attr}>{region.html}</{tag}>'


def _canvas(canvas_id: str) -> str:
    return f'<div class="chart-box"><canvas id="{_esc(canvas_id)}"></canvas></div>'


def _theme_toggle(mode: ThemeMode, toggle_url: str | None) -> str:
    if toggle_url is None:
        return ""
    label = "☀️ Light mode" if mode is ThemeMode.DARK else "🌙 Dark mode"
    return (
        f'<form method="post" action="{_esc(toggle_url)}">'
        f'<button id="theme-toggle" type="submit">{label}</button></form>'
    )


def build_page(
    *,
    title: str,
    body: str,
    mode: ThemeMode,
    charts: list[ChartHandle],
    locale: dict[str, str],
    toggle_url: str | None = None,
) -> str:
    """Wrap *body* in a complete HTML document with the chart bootstrap."""
    html_class = ' class="dark"' if mode is ThemeMode.DARK else ""
    payload = {
        "locale": locale,
        "charts": {handle.canvas_id: handle.spec.to_config() for handle in charts},
    }
    return f"""\
<!DOCTYPE html>
<html lang="en"{html_class}>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width,initial-scale=1">
<title>{_esc(title)}</title>
<style>{_CSS}</style>
<script src="{CHART_JS_URL}"></script>
</head>
<body>
<header><h1>{_esc(title)}</h1>{_theme_toggle(mode, toggle_url)}</header>
{body}
<script id="chart-data" type="application/json">{_json_for_script(payload)}</script>
<script>{_BOOTSTRAP_JS}</script>
</body>
</html>
"""


def _live_charts(dashboard: SalesDashboard | StockDashboard) -> list[ChartHandle]:
    engine = dashboard.ctx.charts.engine
    if isinstance(engine, EmbeddedChartEngine):
        return engine.live_charts()
    return []


def _locale(dashboard: SalesDashboard | StockDashboard) -> dict[str, str]:
    ctx = dashboard.ctx
    return {"currencySymbol": ctx.currency_symbol, "groupSeparator": ctx.group_separator}


# ---------------------------------------------------------------------------
# Dashboards
# ---------------------------------------------------------------------------

def render_sales_page(dashboard: SalesDashboard, *, toggle_url: str | None = None) -> str:
    b = dashboard.ctx.binding
    kpis = "".join(
        f'<div class="card"><div class="kpi-label">{label}</div>'
        f'{_region(b, region_id, extra_class="kpi-value")}</div>'
        for label, region_id in (
            ("Total Revenue", "total-revenue"),
            ("Total Customers", "total-customers"),
            ("New Leads", "new-leads"),
        )
    )
    charts = "".join(
        f'<div class="card"><h3>{label}</h3>{_canvas(canvas_id)}</div>'
        for label, canvas_id in (
            ("Monthly Revenue", "monthlyRevenueChart"),
            ("Top Products", "topProductsChart"),
            ("Revenue by Segment", "segmentRevenueChart"),
        )
    )
    body = (
        f"{_region(b, 'error-banner')}"
        f'<section class="grid grid-3">{kpis}</section>'
        f'<section class="grid grid-3">{charts}</section>'
    )
    return build_page(
        title="Sales Dashboard",
        body=body,
        mode=dashboard.ctx.theme.get_mode(),
        charts=_live_charts(dashboard),
        locale=_locale(dashboard),
        toggle_url=toggle_url,
    )


def _stock_nav(b: ViewBinding, ticker: str, nav_url: str | None) -> str:
    links = []
    for section in STOCK_SECTIONS:
        region = b[f"nav-{section}"]
        href = f"{nav_url}?{urlencode({'ticker': ticker, 'section': section})}" if nav_url else "#"
        links.append(
            f'<a id="nav-{section}" class="sidebar-item {region.class_attr}" '
            f'href="{_esc(href)}">{_esc(SECTION_TITLES[section])}</a>'
        )
    return f'<nav class="sidebar">{"".join(links)}</nav>'


def render_stock_page(
    dashboard: StockDashboard,
    *,
    toggle_url: str | None = None,
    search_url: str | None = None,
) -> str:
    b = dashboard.ctx.binding
    ticker = _html.unescape(b["ticker-search"].html)
    search = ""
    if search_url is not None:
        search = (
            f'<form method="get" action="{_esc(search_url)}">'
            f'<input id="ticker-search" name="ticker" value="{b["ticker-search"].html}" '
            'placeholder="Search ticker…"></form>'
        )
    stats = "".join(
        f'<div class="card"><div class="kpi-label">{label}</div>'
        f'{_region(b, region_id, extra_class="kpi-value")}</div>'
        for label, region_id in (
            ("Market Cap", "market-cap-display"),
            ("Current Price", "current-price-display"),
            ("P/E Ratio", "pe-ratio-display"),
            ("Volume", "volume-display"),
        )
    )
    panels = "".join(
        f'<div class="card"><h3>{label}</h3>{_region(b, region_id)}</div>'
        for label, region_id in (
            ("Company Info", "company-info"),
            ("Financial Metrics", "financial-metrics"),
            ("Valuation", "valuation-metrics"),
            ("Growth", "growth-metrics"),
            ("Profitability & Liquidity", "profitability-liquidity"),
        )
    )
    table = (
        '<div class="card"><h3>Recent Prices</h3><table><thead><tr>'
        + "".join(f"<th>{h}</th>" for h in ("Date", "Open", "High", "Low", "Close", "Volume"))
        + f"</tr></thead>{_region(b, 'price-table-body', tag='tbody')}</table></div>"
    )
    charts = (
        f'<div class="card"><h3>Price</h3>{_canvas("price-chart")}</div>'
        f'<div class="card"><h3>Volume</h3>{_canvas("volume-chart")}</div>'
    )
    home = (
        f'<section class="grid grid-4">{stats}</section>'
        f'<section class="grid grid-3">{panels}</section>'
        f'<section class="grid grid-3">{charts}</section>'
        f"{table}"
    )
    others = "".join(
        _region_wrapper(
            b,
            f"{section}-section",
            f'<div class="card">{_esc(SECTION_TITLES[section])} is not available yet.</div>',
        )
        for section in STOCK_SECTIONS
        if section != "home"
    )
    body = (
        '<div class="layout">'
        f"{_stock_nav(b, ticker, search_url)}"
        "<main>"
        f'<div class="flex justify-between">{_region(b, "page-title", tag="h2")}'
        f'{_region(b, "api-status", tag="span")}</div>'
        f"{search}"
        f"{_region(b, 'connection-status')}"
        f'{_region(b, "loading")}'
        f"{_region_wrapper(b, 'home-section', home)}"
        f"{others}"
        "</main></div>"
    )
    return build_page(
        title=f"Stock Dashboard {ticker}".strip(),
        body=body,
        mode=dashboard.ctx.theme.get_mode(),
        charts=_live_charts(dashboard),
        locale=_locale(dashboard),
        toggle_url=toggle_url,
    )


def _region_wrapper(binding: ViewBinding, region_id: str, inner: str) -> str:
    """A region whose content is page structure rather than rendered data."""
    region = binding[region_id]
    class_attr = f' class="{_esc(region.class_attr)}"' if region.classes else ""
    return f'<section id="{_esc(region_id)}"{class_attr}>{inner}</section>'


def render_index_page(
    links: list[tuple[str, str]],
    *,
    mode: ThemeMode,
    toggle_url: str | None = None,
) -> str:
    """Landing page listing the dashboards as ``(label, url)`` links."""
    items = "".join(
        f'<li><a href="{_esc(url)}">{_esc(label)}</a></li>' for label, url in links
    )
    return build_page(
        title="Dashboards",
        body=f'<nav class="card sidebar"><ul>{items}</ul></nav>',
        mode=mode,
        charts=[],
        locale={},
        toggle_url=toggle_url,
    )
