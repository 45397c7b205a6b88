"""Session flow tests: start, select, restart, error screens and busy guard."""

import asyncio
import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from novella.content import ContentResolver, FileSource
from novella.errors import ChoiceUnavailable, MalformedChoice, SessionBusy, SourceUnavailable
from novella.models import LocationRef, RenderError, RenderModel
from novella.session import Session


class RecordingPresenter:
    """Records clear/render calls in order."""

    def __init__(self) -> None:
        self.events: list = []

    def clear(self) -> None:
        self.events.append("clear")

    def render(self, screen) -> None:
        self.events.append(screen)


@pytest.fixture
def presenter() -> RecordingPresenter:
    return RecordingPresenter()


@pytest.fixture
def session(resolver: ContentResolver, start: LocationRef, presenter) -> Session:
    return Session(resolver, start, presenter=presenter)


# ── Scenario: talk to Bob ────────────────────────────────


async def test_talk_to_bob_scenario(tmp_path: Path) -> None:
    (tmp_path / "s1.json").write_text(json.dumps({"scenes": {
        "morning": {"title": "Morning", "description": "", "choices": [
            {"text": "Talk", "setState": {"talkedToBob": True}, "target": "afternoon"},
        ]},
        "afternoon": {"title": "Afternoon", "description": "", "choices": [
            {"text": "Home", "target": "morning"},
        ]},
    }}))
    start = LocationRef(source_id="s1.json", scene_key="morning")
    session = Session(ContentResolver(FileSource(tmp_path)), start)

    await session.start()
    assert len(session.state) == 0

    screen = await session.select(0)

    assert session.state.get("talkedToBob") is True
    assert isinstance(screen, RenderModel)
    assert screen.location == LocationRef(source_id="s1.json", scene_key="afternoon")
    assert session.location == screen.location


async def test_start_renders_start_scene(session: Session, presenter, start) -> None:
    screen = await session.start()
    assert isinstance(screen, RenderModel)
    assert screen.location == start
    assert presenter.events == ["clear", screen]
    assert session.busy is False


async def test_select_clears_before_render(session: Session, presenter) -> None:
    await session.start()
    presenter.events.clear()
    screen = await session.select(0)
    assert presenter.events == ["clear", screen]


async def test_choice_gated_by_new_state(session: Session) -> None:
    await session.start()
    screen = await session.select(0)  # talk to Bob -> afternoon
    assert screen.choices[0].enabled is True
    assert screen.choices[0].label == "Visit Bob again"


async def test_cross_source_transition(session: Session) -> None:
    await session.start()
    screen = await session.select(2)
    assert screen.location == LocationRef(source_id="day2.json", scene_key="evening")
    assert screen.terminal is True


async def test_same_source_uses_displayed_source(session: Session) -> None:
    await session.start()
    await session.select(2)  # now on day2.json
    # evening is terminal, restart and walk within day1.json instead
    await session.restart()
    screen = await session.select(0)
    assert screen.location.source_id == "day1.json"


async def test_disabled_choice_cannot_be_selected(session: Session) -> None:
    await session.start()
    with pytest.raises(ChoiceUnavailable):
        await session.select(1)  # needs hasKey
    assert session.state.snapshot() == {}


async def test_out_of_range_choice(session: Session) -> None:
    await session.start()
    with pytest.raises(ChoiceUnavailable):
        await session.select(9)


async def test_select_before_start(session: Session) -> None:
    with pytest.raises(ChoiceUnavailable):
        await session.select(0)


async def test_malformed_target_keeps_screen(session: Session, presenter) -> None:
    await session.start()
    await session.select(0)  # afternoon
    shown = session.screen
    presenter.events.clear()

    with pytest.raises(MalformedChoice):
        await session.select(1)  # "other.json#"

    assert session.screen is shown
    assert presenter.events == []


async def test_choice_without_target_fails_on_select(tmp_path: Path, presenter) -> None:
    (tmp_path / "a.json").write_text(json.dumps({"scenes": {"m": {
        "title": "M", "description": "",
        "choices": [{"text": "Fine", "target": "m"}, {"text": "Broken"}],
    }}}))
    start = LocationRef(source_id="a.json", scene_key="m")
    session = Session(ContentResolver(FileSource(tmp_path)), start, presenter)

    screen = await session.start()
    assert isinstance(screen, RenderModel)
    assert [c.enabled for c in screen.choices] == [True, True]

    presenter.events.clear()
    with pytest.raises(MalformedChoice):
        await session.select(1)
    assert session.screen is screen
    assert presenter.events == []

    assert isinstance(await session.select(0), RenderModel)


async def test_unexpected_failure_restores_screen(start: LocationRef, presenter) -> None:
    payload = {"scenes": {"morning": {"title": "M", "description": "", "choices": [
        {"text": "Go", "setState": {"went": True}, "target": "b.json#x"},
    ]}}}

    async def source(address: str):
        if address == "b.json":
            raise ValueError("embedded null byte")
        return payload

    session = Session(ContentResolver(source), start, presenter)
    shown = await session.start()
    presenter.events.clear()

    with pytest.raises(ValueError):
        await session.select(0)

    assert session.busy is False
    assert session.screen is shown
    assert session.location == start
    assert presenter.events == ["clear", shown]
    # the screen is live again, not reset to the start
    assert session.screen.handler(0) is not None


# ── Missing source ───────────────────────────────────────


async def test_missing_source_error_screen(resolver: ContentResolver, presenter) -> None:
    session = Session(resolver, LocationRef(source_id="gone.json", scene_key="morning"), presenter)
    screen = await session.start()
    assert isinstance(screen, RenderError)
    assert screen.kind == "source_unavailable"
    assert screen.choices == []
    assert presenter.events[-1] is screen


async def test_error_screen_has_no_selectable_choices(resolver: ContentResolver) -> None:
    session = Session(resolver, LocationRef(source_id="gone.json", scene_key="morning"))
    await session.start()
    with pytest.raises(ChoiceUnavailable):
        await session.select(0)


async def test_no_automatic_retry(start: LocationRef) -> None:
    calls = []

    async def source(address: str):
        calls.append(address)
        raise SourceUnavailable("down")

    session = Session(ContentResolver(source), start)
    await session.start()
    assert calls == ["day1.json"]


# ── Restart ──────────────────────────────────────────────


async def test_restart_resets_state(session: Session, start: LocationRef) -> None:
    await session.start()
    await session.select(0)
    assert session.state.get("talkedToBob") is True

    screen = await session.restart()

    assert len(session.state) == 0
    assert screen.location == start
    assert screen.choices[1].enabled is False


async def test_restart_recovers_from_error(story_root: Path, start: LocationRef) -> None:
    broken = story_root / "day1.json"
    good = broken.read_text()
    broken.write_text("{oops")
    session = Session(ContentResolver(FileSource(story_root)), start)

    assert isinstance(await session.start(), RenderError)
    broken.write_text(good)
    assert isinstance(await session.restart(), RenderModel)


# ── In-flight guard ──────────────────────────────────────


async def test_busy_while_loading(start: LocationRef, presenter) -> None:
    release = asyncio.Event()
    payload = {"scenes": {"morning": {"title": "M", "description": "", "choices": [
        {"text": "Stay", "target": "morning"},
    ]}}}

    async def slow_source(address: str):
        await release.wait()
        return payload

    session = Session(ContentResolver(slow_source, cache=False), start, presenter)
    task = asyncio.create_task(session.start())
    await asyncio.sleep(0)

    assert session.busy is True
    assert session.screen is None
    assert presenter.events == ["clear"]
    with pytest.raises(SessionBusy):
        await session.select(0)
    with pytest.raises(SessionBusy):
        await session.start()

    release.set()
    screen = await task
    assert session.busy is False
    assert screen.scene_title == "M"


async def test_busy_flag_reset_after_failure(start: LocationRef) -> None:
    resolver = MagicMock()
    resolver.resolve.side_effect = RuntimeError("boom")
    session = Session(resolver, start)
    with pytest.raises(RuntimeError):
        await session.start()
    assert session.busy is False
