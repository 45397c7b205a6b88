import json
from pathlib import Path

import pytest

from novella.content import ContentResolver, FileSource
from novella.models import LocationRef

DAY_ONE = {
    "dayTitle": "Day One",
    "scenes": {
        "morning": {
            "title": "Morning",
            "description": "You wake up.<br>The phone is <em>ringing</em>.",
            "choices": [
                {"text": "Talk to Bob", "setState": {"talkedToBob": True}, "target": "afternoon"},
                {
                    "text": "Go to park",
                    "lockedText": "need key",
                    "conditions": {"hasKey": True},
                    "target": "#park",
                },
                {"text": "Skip ahead", "target": "day2.json#evening"},
            ],
        },
        "afternoon": {
            "title": "Afternoon",
            "description": "Bob says hi.",
            "choices": [
                {"text": "Visit Bob again", "conditions": {"talkedToBob": True}, "target": "morning"},
                {"text": "Broken", "target": "other.json#"},
            ],
        },
        "park": {
            "title": "Park",
            "description": "Green everywhere.",
            "choices": [{"text": "Home", "target": "morning"}],
        },
    },
}

DAY_TWO = {
    "scenes": {
        "evening": {
            "title": "Evening",
            "description": "The end of the day.",
            "choices": [],
        },
    },
}


def write_source(root: Path, name: str, payload) -> Path:
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(payload, str):
        path.write_text(payload)
    else:
        path.write_text(json.dumps(payload, indent=2))
    return path


@pytest.fixture
def story_root(tmp_path: Path) -> Path:
    """A content root with two sources: day1.json and day2.json."""
    write_source(tmp_path, "day1.json", DAY_ONE)
    write_source(tmp_path, "day2.json", DAY_TWO)
    return tmp_path


@pytest.fixture
def resolver(story_root: Path) -> ContentResolver:
    return ContentResolver(FileSource(story_root))


@pytest.fixture
def start() -> LocationRef:
    return LocationRef(source_id="day1.json", scene_key="morning")
