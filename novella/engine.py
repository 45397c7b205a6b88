"""Scene Engine — LocationRef in, screen out.

present() resolves the reference through the ContentResolver and builds a
RenderModel: labels, enabled flags and selection handlers for each choice in
source order. Resolution failures become a RenderError; nothing is retried
and nothing is raised to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from novella.conditions import is_satisfied
from novella.content import ContentResolver
from novella.errors import SceneError
from novella.models import (
    ChoiceView,
    LocationRef,
    RenderError,
    RenderModel,
    SceneDefinition,
    Screen,
    Value,
)

logger = logging.getLogger(__name__)

DEFAULT_DAY_TITLE = "A Day in the Life"


def build_render_model(
    ref: LocationRef,
    definition: SceneDefinition,
    state: Mapping[str, Value],
    default_day_title: str = DEFAULT_DAY_TITLE,
) -> RenderModel:
    scene = definition.scenes[ref.scene_key]
    views: list[ChoiceView] = []
    handlers = {}
    for index, choice in enumerate(scene.choices):
        enabled = is_satisfied(state, choice.conditions)
        label = choice.text if enabled else choice.locked_label()
        views.append(ChoiceView(index=index, label=label, enabled=enabled))
        if enabled:
            handlers[index] = choice

    model = RenderModel(
        location=ref,
        day_title=definition.day_title or default_day_title,
        scene_title=scene.title,
        description=scene.description,
        choices=views,
        terminal=not views,
    )
    model._handlers = handlers
    return model


class SceneEngine:
    """Renders scenes against a read-only view of the game state."""

    def __init__(
        self,
        resolver: ContentResolver,
        state: Mapping[str, Value],
        default_day_title: str = DEFAULT_DAY_TITLE,
    ) -> None:
        self.resolver = resolver
        self.state = state
        self.default_day_title = default_day_title

    async def present(self, ref: LocationRef) -> Screen:
        try:
            definition = await self.resolver.resolve(ref)
        except SceneError as e:
            logger.error("Error loading scene %s: %s", ref, e)
            return RenderError.from_exception(ref, e)

        model = build_render_model(ref, definition, self.state, self.default_day_title)
        if model.terminal:
            logger.warning("Scene %s has no choices (dead end)", ref)
        logger.debug(
            "presented %s: %d/%d choices enabled",
            ref, sum(v.enabled for v in model.choices), len(model.choices),
        )
        return model
