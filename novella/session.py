"""One playthrough: game state, current screen and the presentation boundary.

Selection flow:
  1. Refuse while a resolution is in flight (SessionBusy).
  2. Look up the enabled choice behind the index (ChoiceUnavailable).
  3. Parse its target (MalformedChoice — the current screen stays).
  4. Clear the screen and the presenter before the first await, so no stale
     choice can fire while the next scene loads.
  5. Merge the state patch, present the next scene, render it.
  6. If presenting fails with anything but a scene error, render the
     previous screen again and re-raise.
"""

from __future__ import annotations

import logging
from typing import Protocol

from novella.content import ContentResolver
from novella.engine import DEFAULT_DAY_TITLE, SceneEngine
from novella.errors import ChoiceUnavailable, SessionBusy
from novella.models import LocationRef, RenderModel, Screen
from novella.state import GameState
from novella.transitions import TransitionResolver

logger = logging.getLogger(__name__)


class Presenter(Protocol):
    def clear(self) -> None: ...

    def render(self, screen: Screen) -> None: ...


class NullPresenter:
    """Discards everything. Used when the caller polls Session.screen instead."""

    def clear(self) -> None:
        pass

    def render(self, screen: Screen) -> None:
        pass


class Session:
    def __init__(
        self,
        resolver: ContentResolver,
        start: LocationRef,
        presenter: Presenter | None = None,
        default_day_title: str = DEFAULT_DAY_TITLE,
    ) -> None:
        self.resolver = resolver
        self.start_ref = start
        self.presenter: Presenter = presenter or NullPresenter()
        self.default_day_title = default_day_title
        self.screen: Screen | None = None
        self.location: LocationRef | None = None
        self.busy = False
        self._new_game()

    def _new_game(self) -> None:
        self.state = GameState()
        self.engine = SceneEngine(self.resolver, self.state.view(), self.default_day_title)
        self.transitions = TransitionResolver(self.state, self.engine)

    def _clear(self) -> None:
        self.screen = None
        self.presenter.clear()

    def _show(self, location: LocationRef, screen: Screen) -> Screen:
        self.location = location
        self.screen = screen
        self.presenter.render(screen)
        return screen

    async def start(self, ref: LocationRef | None = None) -> Screen:
        """Present the starting scene (or ref) without touching the state."""
        if self.busy:
            raise SessionBusy("A scene is already loading")
        location = ref or self.start_ref
        self.busy = True
        self._clear()
        try:
            screen = await self.engine.present(location)
        finally:
            self.busy = False
        return self._show(location, screen)

    async def restart(self) -> Screen:
        """Fresh game: empty state, empty cache, starting scene."""
        if self.busy:
            raise SessionBusy("A scene is already loading")
        logger.info("restarting session at %s", self.start_ref)
        self.resolver.clear_cache()
        self._new_game()
        return await self.start()

    async def select(self, index: int) -> Screen:
        if self.busy:
            raise SessionBusy("A scene is already loading")
        screen = self.screen
        if not isinstance(screen, RenderModel):
            raise ChoiceUnavailable("There is no scene with choices on screen")
        choice = screen.handler(index)
        if choice is None:
            raise ChoiceUnavailable(f"Choice {index} is not available")

        current = screen.location
        # raises MalformedChoice before anything on screen changes
        self.transitions.next_ref(current, choice)

        self.busy = True
        self._clear()
        try:
            location, next_screen = await self.transitions.apply(current, choice)
        except Exception as e:
            # SceneErrors arrive as a RenderError; anything else puts the
            # previous scene back so the session never sits without a screen
            logger.warning("transition from %s failed: %r", current, e)
            self._show(current, screen)
            raise
        finally:
            self.busy = False
        return self._show(location, next_screen)
