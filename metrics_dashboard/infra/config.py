"""
Configuration and dependency wiring.

Single Responsibility: only manages settings and shared resources.
All user-tunable values live here as environment-variable-backed
class attributes so they can be changed via ``.env`` without touching code.
"""

from __future__ import annotations

import os
from functools import lru_cache

from dotenv import load_dotenv

from metrics_dashboard.infra.preferences import AbstractPreferenceStore

load_dotenv()


def _optional_float(raw: str | None) -> float | None:
    """Parse an optional numeric env value; blank means "not set"."""
    if raw is None or not raw.strip():
        return None
    return float(raw)


class Settings:
    """Application settings read from environment variables.

    Every attribute has a sensible default so both dashboards run out of
    the box against backends on ``localhost``.
    """

    # -- API base URLs ---------------------------------------------------------
    sales_api_base_url: str = os.getenv(
        "SALES_API_BASE_URL", "http://localhost:5000/api"
    )
    stock_api_base_url: str = os.getenv(
        "STOCK_API_BASE_URL", "http://localhost:8000"
    )

    # -- HTTP ------------------------------------------------------------------
    # Unset means requests wait indefinitely (single best-effort attempt).
    http_timeout: float | None = _optional_float(os.getenv("HTTP_TIMEOUT"))

    # -- Stock dashboard -------------------------------------------------------
    price_limit: int = int(os.getenv("PRICE_LIMIT", "30"))
    price_timeframe: str = os.getenv("PRICE_TIMEFRAME", "1d")
    table_row_cap: int = int(os.getenv("TABLE_ROW_CAP", "10"))

    # -- Sales dashboard locale ------------------------------------------------
    currency_symbol: str = os.getenv("CURRENCY_SYMBOL", "Rp")
    group_separator: str = os.getenv("GROUP_SEPARATOR", ".")

    # -- Theme preference persistence ------------------------------------------
    preferences_backend: str = os.getenv("PREFERENCES_BACKEND", "sqlite")
    preferences_path: str = os.getenv("PREFERENCES_PATH", "preferences.db")

    # -- Web -------------------------------------------------------------------
    flask_secret_key: str = os.getenv(
        "FLASK_SECRET_KEY", "metrics-dashboard-change-me-in-production"
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def get_preference_store(settings: Settings | None = None) -> AbstractPreferenceStore:
    """
    Factory that returns the preference store selected by the
    PREFERENCES_BACKEND environment variable.

    Callers receive the abstract interface, never a concrete class.
    """
    s = settings or get_settings()
    if s.preferences_backend.lower() == "memory":
        from metrics_dashboard.infra.preferences import MemoryPreferenceStore

        return MemoryPreferenceStore()

    from metrics_dashboard.infra.preferences_sqlite import SQLitePreferenceStore

    store = SQLitePreferenceStore(db_path=s.preferences_path)
    store.initialize()
    return store
