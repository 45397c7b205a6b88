"""Session-scoped flag/value store."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType

from novella.models import Value

logger = logging.getLogger(__name__)


class GameState:
    """Mutable key/value store driving choice availability.

    Keys are only ever added or overwritten. Readers get a live read-only
    view; only the transition step holds the store itself and calls merge().
    """

    def __init__(self) -> None:
        self._values: dict[str, Value] = {}
        self._view = MappingProxyType(self._values)

    def get(self, key: str, default: Value | None = None) -> Value | None:
        return self._values.get(key, default)

    def merge(self, patch: Mapping[str, Value]) -> None:
        """Overwrite each key in patch, creating it if absent."""
        self._values.update(patch)
        logger.debug("game state merged %s -> %s", dict(patch), self._values)

    def view(self) -> Mapping[str, Value]:
        return self._view

    def snapshot(self) -> dict[str, Value]:
        return dict(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"GameState({self._values!r})"
