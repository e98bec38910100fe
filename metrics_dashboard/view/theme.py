"""
Light/dark theme controller.

The mode is resolved once, in order: persisted preference, then the OS
preference signal, then light.  Afterwards only :meth:`ThemeController.toggle`
changes it.  Listeners registered with :meth:`ThemeController.on_change` run
after every toggle; dashboards use this to rebuild every chart from scratch.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional

from metrics_dashboard.infra.preferences import AbstractPreferenceStore

logger = logging.getLogger(__name__)

THEME_KEY = "theme"


class ThemeMode(str, Enum):
    LIGHT = "light"
    DARK = "dark"

    @property
    def flipped(self) -> "ThemeMode":
        return ThemeMode.LIGHT if self is ThemeMode.DARK else ThemeMode.DARK

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["ThemeMode"]:
        """Return the mode named by *raw*, or ``None`` if it names none."""
        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            return None


ThemeListener = Callable[[ThemeMode], None]


class ThemeController:
    """Tracks the current mode and persists every explicit change."""

    def __init__(
        self,
        store: AbstractPreferenceStore,
        *,
        prefers_dark: bool = False,
    ) -> None:
        self._store = store
        self._listeners: list[ThemeListener] = []
        self._mode = self._resolve(prefers_dark)

    def _resolve(self, prefers_dark: bool) -> ThemeMode:
        try:
            persisted = ThemeMode.parse(self._store.get(THEME_KEY))
        except Exception as exc:
            logger.warning("Theme preference unreadable, using default: %s", exc)
            persisted = None
        if persisted is not None:
            return persisted
        return ThemeMode.DARK if prefers_dark else ThemeMode.LIGHT

    def get_mode(self) -> ThemeMode:
        return self._mode

    @property
    def is_dark(self) -> bool:
        return self._mode is ThemeMode.DARK

    def on_change(self, listener: ThemeListener) -> None:
        self._listeners.append(listener)

    def toggle(self) -> ThemeMode:
        """Flip the mode, persist it and notify every listener."""
        self._mode = self._mode.flipped
        try:
            self._store.set(THEME_KEY, self._mode.value)
        except Exception as exc:
            logger.warning("Theme preference not saved: %s", exc)
        for listener in self._listeners:
            listener(self._mode)
        return self._mode
