"""Terminal presentation layer.

Screens are rendered with Handlebars templates (pybars). Scene descriptions
may carry a small inline markup whitelist — <br>, <em>/<i>, <strong>/<b> —
which is turned into line breaks and ANSI styles; any other tag is dropped.
"""

from __future__ import annotations

import asyncio
import html
import logging
import re
from collections.abc import Awaitable, Callable

import pybars

from novella.errors import ChoiceUnavailable, MalformedChoice, SessionBusy
from novella.models import RenderError, Screen
from novella.session import Session

logger = logging.getLogger(__name__)

ANSI_RESET = "\033[0m"
_STYLE_CODES = {"em": "\033[3m", "i": "\033[3m", "strong": "\033[1m", "b": "\033[1m"}
_BREAK_PATTERN = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG_PATTERN = re.compile(r"<(/?)([a-zA-Z][a-zA-Z0-9]*)[^>]*>")

LINE_WIDTH = 72

SCENE_TEMPLATE = """\
{{{rule}}}
{{{day_title}}}
{{{rule}}}
{{{scene_title}}}

{{{description}}}

{{#each choices}}{{#if enabled}}  [{{number}}] {{{label}}}
{{else}}  [-] {{{label}}}
{{/if}}{{/each}}{{#if terminal}}  (The End. r to restart, q to quit.)
{{/if}}"""

ERROR_TEMPLATE = """\
{{{rule}}}
Error
{{{rule}}}
{{{message}}}

  (r to restart, q to quit.)
"""

_compiler = pybars.Compiler()
_scene_template = _compiler.compile(SCENE_TEMPLATE)
_error_template = _compiler.compile(ERROR_TEMPLATE)


def render_markup(text: str, color: bool = True) -> str:
    """Inline markup to terminal text."""
    text = _BREAK_PATTERN.sub("\n", text)

    def replace(match: re.Match[str]) -> str:
        closing, tag = match.group(1), match.group(2).lower()
        code = _STYLE_CODES.get(tag)
        if not code or not color:
            return ""
        return ANSI_RESET if closing else code

    return html.unescape(_TAG_PATTERN.sub(replace, text))


def screen_context(screen: Screen, color: bool = True) -> dict:
    """Template variables for a screen."""
    rule = "=" * LINE_WIDTH
    if isinstance(screen, RenderError):
        return {"rule": rule, "message": screen.message}
    return {
        "rule": rule,
        "day_title": screen.day_title,
        "scene_title": screen.scene_title,
        "description": render_markup(screen.description, color=color),
        "choices": [
            {"number": view.index + 1, "label": view.label, "enabled": view.enabled}
            for view in screen.choices
        ],
        "terminal": screen.terminal,
    }


def format_screen(screen: Screen, color: bool = True) -> str:
    template = _error_template if isinstance(screen, RenderError) else _scene_template
    return str(template(screen_context(screen, color=color)))


class ConsolePresenter:
    def __init__(self, write: Callable[[str], None] = print, color: bool = True) -> None:
        self._write = write
        self._color = color

    def clear(self) -> None:
        self._write("\n...\n")

    def render(self, screen: Screen) -> None:
        self._write(format_screen(screen, color=self._color))

    def notice(self, message: str) -> None:
        self._write(f"  ! {message}")


async def read_input(prompt: str = "") -> str:
    return await asyncio.to_thread(input, prompt)


async def play(
    session: Session,
    console: ConsolePresenter,
    read: Callable[[str], Awaitable[str]] = read_input,
) -> None:
    """Interactive loop: a choice number, r to restart, q to quit."""
    await session.start()
    while True:
        try:
            raw = (await read("> ")).strip().lower()
        except EOFError:
            return
        if raw in ("q", "quit"):
            return
        if raw in ("r", "restart"):
            await session.restart()
            continue
        try:
            index = int(raw) - 1
        except ValueError:
            console.notice("Enter a choice number, r or q.")
            continue
        try:
            await session.select(index)
        except (ChoiceUnavailable, SessionBusy) as e:
            console.notice(str(e))
        except MalformedChoice as e:
            logger.warning("Broken choice %d: %s", index + 1, e)
            console.notice(f"That choice leads nowhere: {e}")
