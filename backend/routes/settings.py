"""Health check and settings endpoints."""

from fastapi import APIRouter, Depends

from novella.config import NovellaConfig

from .deps import get_config

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings")
async def get_settings(config: NovellaConfig = Depends(get_config)):
    """Get the effective configuration (content root, start scene, ...)."""
    return config.model_dump()
