from fastapi import Request

from novella.config import NovellaConfig
from novella.session import Session


def get_session(request: Request) -> Session:
    return request.app.state.session


def get_config(request: Request) -> NovellaConfig:
    return request.app.state.config
