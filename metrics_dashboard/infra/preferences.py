"""
Abstract preference store for the persisted theme choice.

All consumers depend on this interface, never on a concrete backend.
Implementations must never raise on storage failure: reads return
``None`` and writes become no-ops, each with a logged warning.
"""

from __future__ import annotations

import abc
from typing import Optional


class AbstractPreferenceStore(abc.ABC):
    """Key/value storage for user-interface preferences."""

    @abc.abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value for *key*, or ``None`` when absent."""

    @abc.abstractmethod
    def set(self, key: str, value: str) -> None:
        """Persist *value* under *key*, replacing any previous value."""

    def close(self) -> None:
        """Release storage resources."""


class MemoryPreferenceStore(AbstractPreferenceStore):
    """Process-local store; nothing survives a restart."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def __repr__(self) -> str:
        return f"MemoryPreferenceStore({self._values!r})"
