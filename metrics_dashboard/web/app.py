"""
Flask application factory and CLI entry point.

Single Responsibility: this module only handles HTTP routing and
request/response logic.  Each page request builds a fresh dashboard
(own regions, own chart registry), runs its load flow and returns the
assembled page, so concurrent requests never share view state.

The theme preference lives in a cookie; the browser's
``Sec-CH-Prefers-Color-Scheme`` client hint is the OS preference signal.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional
from urllib.parse import urlparse

from flask import Flask, Response, abort, jsonify, redirect, request, url_for

from metrics_dashboard.infra.config import get_settings
from metrics_dashboard.infra.preferences import AbstractPreferenceStore
from metrics_dashboard.view.dashboards import build_sales_dashboard, build_stock_dashboard
from metrics_dashboard.view.page import render_index_page, render_sales_page, render_stock_page
from metrics_dashboard.view.sections import SECTION_TITLES
from metrics_dashboard.view.theme import ThemeController

logger = logging.getLogger(__name__)

_PREFERS_SCHEME_HEADER = "Sec-CH-Prefers-Color-Scheme"
_COOKIE_MAX_AGE = 365 * 24 * 60 * 60  # one year


class CookiePreferenceStore(AbstractPreferenceStore):
    """Reads preferences from request cookies; writes are applied to a response."""

    def __init__(self, cookies: Mapping[str, str]) -> None:
        self._cookies = cookies
        self.pending: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.pending.get(key, self._cookies.get(key))

    def set(self, key: str, value: str) -> None:
        self.pending[key] = value

    def apply(self, response: Response) -> Response:
        for key, value in self.pending.items():
            response.set_cookie(key, value, max_age=_COOKIE_MAX_AGE, samesite="Lax")
        return response


def _prefers_dark() -> bool:
    return request.headers.get(_PREFERS_SCHEME_HEADER, "").strip('" ').lower() == "dark"


def _same_site_referrer() -> str | None:
    """The referring page when it belongs to this site, for post-toggle redirects."""
    referrer = request.referrer
    if not referrer:
        return None
    parsed = urlparse(referrer)
    if parsed.netloc and parsed.netloc != request.host:
        return None
    path = parsed.path or "/"
    return f"{path}?{parsed.query}" if parsed.query else path


def create_app() -> Flask:
    """Build the dashboards web app."""
    settings = get_settings()
    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.flask_secret_key
    # Optional requests.Session shared by API clients (tests inject a fake).
    app.config.setdefault("HTTP_SESSION", None)

    @app.after_request
    def advertise_client_hints(response: Response) -> Response:
        response.headers["Accept-CH"] = _PREFERS_SCHEME_HEADER
        response.headers["Vary"] = _PREFERS_SCHEME_HEADER
        return response

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    @app.route("/")
    def index():
        theme = ThemeController(
            CookiePreferenceStore(request.cookies), prefers_dark=_prefers_dark()
        )
        return render_index_page(
            [("Sales Dashboard", url_for("sales")), ("Stock Dashboard", url_for("stock"))],
            mode=theme.get_mode(),
            toggle_url=url_for("toggle_theme"),
        )

    @app.route("/sales")
    def sales():
        store = CookiePreferenceStore(request.cookies)
        dashboard = build_sales_dashboard(
            store,
            prefers_dark=_prefers_dark(),
            session=app.config["HTTP_SESSION"],
        )
        dashboard.initialize()
        return render_sales_page(dashboard, toggle_url=url_for("toggle_theme"))

    @app.route("/stock")
    def stock():
        section = request.args.get("section", "home")
        if section not in SECTION_TITLES:
            abort(404)
        store = CookiePreferenceStore(request.cookies)
        dashboard = build_stock_dashboard(
            store,
            prefers_dark=_prefers_dark(),
            session=app.config["HTTP_SESSION"],
        )
        dashboard.check_api_connection()
        dashboard.load(request.args.get("ticker", ""))
        dashboard.show_section(section)
        return render_stock_page(
            dashboard,
            toggle_url=url_for("toggle_theme"),
            search_url=url_for("stock"),
        )

    @app.route("/theme/toggle", methods=["POST"])
    def toggle_theme():
        """Flip the persisted theme and send the browser back to re-render."""
        store = CookiePreferenceStore(request.cookies)
        mode = ThemeController(store, prefers_dark=_prefers_dark()).toggle()
        logger.info("Theme switched to %s", mode.value)
        response = redirect(_same_site_referrer() or url_for("index"))
        return store.apply(response)

    @app.route("/healthz")
    def healthz():
        return jsonify({"status": "ok"})

    return app


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Run the Flask development server."""
    import argparse

    parser = argparse.ArgumentParser(description="Metrics Dashboard Web UI")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8050, help="Port to bind to")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    args = parser.parse_args()

    logging.basicConfig(level=get_settings().log_level.upper())
    app = create_app()
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
