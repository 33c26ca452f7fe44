"""
BiDi Routes - Buffered BiDi events

Clients poll the most recent log.entryAdded / appium:contextUpdate events.
"""

from fastapi import APIRouter, HTTPException
from typing import Optional
from routes import get_deps

router = APIRouter(prefix="/api/bidi", tags=["bidi"])


@router.get("/events")
async def get_bidi_events(method: Optional[str] = None, limit: Optional[int] = None):
    """Get buffered BiDi events, optionally filtered by method"""
    deps = get_deps()
    if not deps.bidi_log_handler:
        raise HTTPException(status_code=503, detail="BiDi event buffer not initialized")
    events = deps.bidi_log_handler.get_events(method=method, limit=limit)
    return {"success": True, "events": events, "count": len(events)}


@router.delete("/events")
async def clear_bidi_events():
    """Drop all buffered events"""
    deps = get_deps()
    if not deps.bidi_log_handler:
        raise HTTPException(status_code=503, detail="BiDi event buffer not initialized")
    deps.bidi_log_handler.clear()
    return {"success": True}
