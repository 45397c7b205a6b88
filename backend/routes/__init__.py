"""FastAPI API endpoints under /api.

Endpoint groups: health/settings, the current scene (read, select a choice,
restart) and the game state. One Session lives on app.state; the frontend
renders whatever screen the scene endpoints return.
"""

from fastapi import APIRouter

from .scenes import router as scenes_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(scenes_router)
