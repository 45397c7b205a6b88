"""Exception hierarchy for the scene state machine.

Resolution failures (SceneError subclasses) never escape the Scene Engine:
they are turned into a RenderError screen. MalformedChoice and the session
errors surface to whoever delivered the selection event.
"""

from __future__ import annotations

from typing import Literal

ErrorKind = Literal["source_unavailable", "malformed_source", "scene_not_found"]


class NovellaError(RuntimeError):
    """Base class for every error raised by the engine."""


class SceneError(NovellaError):
    """A scene could not be resolved."""

    kind: ErrorKind


class SourceUnavailable(SceneError):
    """The content source could not be retrieved (network or filesystem)."""

    kind: ErrorKind = "source_unavailable"


class MalformedSource(SceneError):
    """The source was retrieved but does not parse into a scene definition."""

    kind: ErrorKind = "malformed_source"


class SceneNotFound(SceneError):
    """The scene key is absent from a successfully parsed source."""

    kind: ErrorKind = "scene_not_found"


class MalformedChoice(NovellaError):
    """A choice target has no recognizable scene key. Raised at selection time."""


class ChoiceUnavailable(NovellaError):
    """The selected choice does not exist or is disabled on the current screen."""


class SessionBusy(NovellaError):
    """A scene resolution is already in flight."""
