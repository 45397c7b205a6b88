"""Choice gating: flat key/value equality against the game state."""

from __future__ import annotations

from collections.abc import Mapping

from novella.models import Value


def _kind(value: object) -> str:
    # bool is an int subclass; JSON keeps them apart, and so do we
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return type(value).__name__


def values_equal(actual: object, required: object) -> bool:
    """Strict equality: same scalar kind and same value, no coercion."""
    return _kind(actual) == _kind(required) and actual == required


def is_satisfied(
    state: Mapping[str, Value], conditions: Mapping[str, Value] | None
) -> bool:
    """True when every condition key is present in state with an equal value.

    Absent or empty conditions always pass. A key missing from state fails,
    whatever the required value (including False and 0).
    """
    if not conditions:
        return True
    for key, required in conditions.items():
        if key not in state or not values_equal(state[key], required):
            return False
    return True
