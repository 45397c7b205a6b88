"""Core domain models.

Content documents are validated into these types on load; the engine emits
RenderModel / RenderError screens for the presentation layer.
Pydantic is used for validation and serialisation at every data boundary.
"""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)

from novella.errors import ErrorKind, SceneError

# Closed scalar variant for conditions and state patches. Strict types keep
# "true" a string and 1 a number; null, lists and objects are rejected.
Value = Union[StrictBool, StrictInt, StrictFloat, StrictStr]

DEFAULT_LOCKED_TEXT = "Locked"


class LocationRef(BaseModel):
    """Identifies exactly one scene: (source, scene key)."""

    model_config = ConfigDict(frozen=True)

    source_id: str
    scene_key: str

    def __str__(self) -> str:
        return f"{self.source_id}#{self.scene_key}"


# ---------------------------------------------------------------------------
# Content documents
# ---------------------------------------------------------------------------

class Choice(BaseModel):
    """A selectable transition with optional gating conditions and state effects."""

    model_config = ConfigDict(populate_by_name=True)

    text: str
    locked_text: str | None = Field(default=None, alias="lockedText")
    conditions: dict[str, Value] | None = None
    set_state: dict[str, Value] | None = Field(default=None, alias="setState")
    # "source#key" | "#key" | "key", parsed at selection time. A missing or
    # non-string target loads as None and fails only when selected.
    target: str | None = None

    @field_validator("target", mode="before")
    @classmethod
    def _opaque_target(cls, v: Any) -> str | None:
        return v if isinstance(v, str) else None

    def locked_label(self) -> str:
        return f"{self.text} ({self.locked_text or DEFAULT_LOCKED_TEXT})"


class SceneBody(BaseModel):
    title: str
    description: str  # opaque rich text, rendered by the presentation layer
    choices: list[Choice] = Field(default_factory=list)


class SceneDefinition(BaseModel):
    """One content source: a shared heading and its scenes by key."""

    model_config = ConfigDict(populate_by_name=True)

    day_title: str | None = Field(default=None, alias="dayTitle")
    scenes: dict[str, SceneBody]


# ---------------------------------------------------------------------------
# Screens
# ---------------------------------------------------------------------------

class ChoiceView(BaseModel):
    index: int
    label: str
    enabled: bool


class RenderModel(BaseModel):
    """A successfully resolved scene, ready for display."""

    type: Literal["scene"] = "scene"
    location: LocationRef
    day_title: str
    scene_title: str
    description: str
    choices: list[ChoiceView]
    terminal: bool = False  # no choices: a dead end

    _handlers: dict[int, Choice] = PrivateAttr(default_factory=dict)

    def handler(self, index: int) -> Choice | None:
        """The choice behind an enabled view; None for disabled or unknown indexes."""
        return self._handlers.get(index)


class RenderError(BaseModel):
    """A scene that could not be resolved. Never carries choices."""

    type: Literal["error"] = "error"
    location: LocationRef
    kind: ErrorKind
    message: str
    detail: str
    choices: list[ChoiceView] = Field(default_factory=list, max_length=0)

    _exception: SceneError | None = PrivateAttr(default=None)

    @classmethod
    def from_exception(cls, location: LocationRef, exc: SceneError) -> RenderError:
        error = cls(
            location=location,
            kind=exc.kind,
            message=f"Could not load story content. Error: {exc}",
            detail=repr(exc.__cause__ or exc),
        )
        error._exception = exc
        return error

    @property
    def exception(self) -> SceneError | None:
        return self._exception


Screen = Union[RenderModel, RenderError]
