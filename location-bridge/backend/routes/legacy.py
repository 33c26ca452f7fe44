"""
Legacy Routes - App lifecycle commands that are no longer supported

Kept so old clients get an explicit 501 instead of a 404.
"""

from fastapi import APIRouter
from core import legacy

router = APIRouter(prefix="/api/app", tags=["legacy"])


@router.post("/launch")
async def launch_app():
    await legacy.launch_app()


@router.post("/close")
async def close_app():
    await legacy.close_app()


@router.post("/reset")
async def reset_app():
    await legacy.reset()
