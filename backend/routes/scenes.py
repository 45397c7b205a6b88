"""Current scene, choice selection, restart and game state endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from novella.errors import ChoiceUnavailable, MalformedChoice, SessionBusy
from novella.session import Session

from .deps import get_session
from .models import SelectChoice

router = APIRouter()


@router.get("/scene")
async def get_scene(session: Session = Depends(get_session)):
    """Get the screen on display, presenting the start scene on first call."""
    if session.screen is None:
        try:
            await session.start()
        except SessionBusy:
            raise HTTPException(409, "A scene is already loading")
    return session.screen


@router.post("/scene/choices")
async def select_choice(body: SelectChoice, session: Session = Depends(get_session)):
    """Select an enabled choice of the current scene and return the next screen."""
    try:
        return await session.select(body.index)
    except SessionBusy:
        raise HTTPException(409, "A scene is already loading")
    except ChoiceUnavailable as e:
        raise HTTPException(409, str(e))
    except MalformedChoice as e:
        raise HTTPException(422, str(e))


@router.post("/scene/restart")
async def restart(session: Session = Depends(get_session)):
    """Start over with an empty game state."""
    try:
        return await session.restart()
    except SessionBusy:
        raise HTTPException(409, "A scene is already loading")


@router.get("/state")
async def get_state(session: Session = Depends(get_session)):
    """Get the current game state flags."""
    return session.state.snapshot()
