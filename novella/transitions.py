"""Transition Resolver — the only place the game state changes.

A choice target is "source#key", "#key" or "key". An empty source part means
the source of the scene currently displayed.
"""

from __future__ import annotations

import logging

from novella.engine import SceneEngine
from novella.errors import MalformedChoice
from novella.models import Choice, LocationRef, Screen
from novella.state import GameState

logger = logging.getLogger(__name__)


def parse_target(target: str | None, current: LocationRef) -> LocationRef:
    """Parse a choice target relative to the displayed location.

    Keys are taken verbatim, whitespace included. Raises MalformedChoice
    when there is no target or no scene key to go to.
    """
    if target is None:
        raise MalformedChoice("Choice has no target")
    source_id, sep, scene_key = target.partition("#")
    if not sep:
        source_id, scene_key = "", target
    if not scene_key:
        raise MalformedChoice(f"Choice target {target!r} has no scene key")
    return LocationRef(source_id=source_id or current.source_id, scene_key=scene_key)


class TransitionResolver:
    def __init__(self, state: GameState, engine: SceneEngine) -> None:
        self._state = state
        self._engine = engine

    def next_ref(self, current: LocationRef, choice: Choice) -> LocationRef:
        return parse_target(choice.target, current)

    async def apply(
        self, current: LocationRef, choice: Choice
    ) -> tuple[LocationRef, Screen]:
        """Apply the choice's state patch and present the scene it leads to.

        The target is parsed before the merge so a broken choice leaves the
        state untouched.
        """
        next_ref = self.next_ref(current, choice)
        if choice.set_state:
            self._state.merge(choice.set_state)
        logger.debug("transition %s -> %s via %r", current, next_ref, choice.text)
        return next_ref, await self._engine.present(next_ref)
