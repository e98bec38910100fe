"""
CLI entry point for the metrics dashboards.

Renders one dashboard against the configured backend and writes it as a
standalone HTML page.

Usage:
    metrics-dashboard sales                    # -> sales_dashboard.html
    metrics-dashboard stock AAPL               # -> AAPL_dashboard.html
    metrics-dashboard stock AAPL -o out.html
    metrics-dashboard sales --toggle-theme     # flip the saved theme first
    metrics-dashboard sales --prefers-dark     # OS signal when nothing is saved

The dev web server is ``metrics-dashboard-web``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from metrics_dashboard.infra.config import get_preference_store, get_settings
from metrics_dashboard.view.bindings import STOCK_SECTIONS
from metrics_dashboard.view.dashboards import build_sales_dashboard, build_stock_dashboard
from metrics_dashboard.view.page import render_sales_page, render_stock_page

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Render a metrics dashboard to a standalone HTML file.",
    )
    parser.add_argument("dashboard", choices=["sales", "stock"], help="Which dashboard to render")
    parser.add_argument(
        "ticker", nargs="?", default="",
        help="Ticker for the stock dashboard (e.g. AAPL)",
    )
    parser.add_argument(
        "--section", choices=STOCK_SECTIONS, default="home",
        help="Stock dashboard section to show (default: home)",
    )
    parser.add_argument(
        "--toggle-theme", action="store_true",
        help="Flip and save the light/dark preference before rendering",
    )
    parser.add_argument(
        "--prefers-dark", action="store_true",
        help="Use dark mode when no preference has been saved",
    )
    parser.add_argument(
        "-o", "--output", type=str, default=None,
        help="Output path (default: <DASHBOARD or TICKER>_dashboard.html)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    store = get_preference_store(settings)
    try:
        if args.dashboard == "sales":
            dashboard = build_sales_dashboard(store, prefers_dark=args.prefers_dark)
            if args.toggle_theme:
                dashboard.toggle_theme()
            ok = dashboard.initialize()
            page = render_sales_page(dashboard)
            default_name = "sales"
        else:
            dashboard = build_stock_dashboard(store, prefers_dark=args.prefers_dark)
            if args.toggle_theme:
                dashboard.toggle_theme()
            dashboard.check_api_connection()
            ok = dashboard.load(args.ticker)
            dashboard.show_section(args.section)
            page = render_stock_page(dashboard)
            default_name = args.ticker.strip().upper() or "stock"
    finally:
        store.close()

    out_path = Path(args.output or f"{default_name}_dashboard.html")
    out_path.write_text(page, encoding="utf-8")
    theme = dashboard.ctx.theme.get_mode().value
    if ok:
        print(f"📊 {args.dashboard.title()} dashboard ({theme}) saved to {out_path}")
    else:
        print(f"⚠️  Dashboard saved to {out_path}, but its data could not be loaded.")
        sys.exit(1)


if __name__ == "__main__":
    main()
