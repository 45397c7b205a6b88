"""Runtime configuration (content root, starting scene, logging, server).

load_config() returns defaults overridden by NOVELLA_* environment
variables; a .env file in the working directory is loaded first.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from novella.models import LocationRef

_ENV_PREFIX = "NOVELLA_"

_CONFIG_DEFAULTS: dict[str, Any] = {
    "content_root": "story",
    "start_source": "act1_summer/ch1_week1/day1_sunday.json",
    "start_scene": "morning",
    "default_day_title": "A Day in the Life",
    "cache": True,
    "http_timeout": 10.0,
    "log_level": "INFO",
    "host": "0.0.0.0",
    "port": 13013,
}


class NovellaConfig(BaseModel):
    content_root: str
    start_source: str
    start_scene: str
    default_day_title: str
    cache: bool
    http_timeout: float = Field(gt=0)
    log_level: str
    host: str
    port: int = Field(ge=1, le=65535)

    @property
    def start(self) -> LocationRef:
        return LocationRef(source_id=self.start_source, scene_key=self.start_scene)


def load_config(
    env: Mapping[str, str] | None = None,
    dotenv_path: Path | None = None,
    **overrides: Any,
) -> NovellaConfig:
    """Merge defaults, environment and explicit overrides, in that order.

    HOST and PORT are honoured without prefix, as the dev launcher sets them.
    """
    if env is None:
        load_dotenv(dotenv_path or Path(".env"))
        env = os.environ

    values = dict(_CONFIG_DEFAULTS)
    for key in ("host", "port"):
        if key.upper() in env:
            values[key] = env[key.upper()]
    for key in _CONFIG_DEFAULTS:
        env_key = _ENV_PREFIX + key.upper()
        if env_key in env:
            values[key] = env[env_key]
    values.update({k: v for k, v in overrides.items() if v is not None})
    return NovellaConfig.model_validate(values)
