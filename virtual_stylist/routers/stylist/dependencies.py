"""FastAPI dependencies shared across stylist endpoints."""

from typing import Optional

from fastapi import Header, HTTPException, Request

from virtual_stylist.config import logger
from virtual_stylist.services.stylist_session import SessionRegistry, StylistSession

DEFAULT_SESSION_ID = "default"


def get_registry(request: Request) -> SessionRegistry:
    registry = getattr(request.app.state, "sessions", None)
    if registry is None:
        logger.error("Session registry requested before application startup")
        raise HTTPException(status_code=503, detail="Stylist service is not ready")
    return registry


async def get_session(
    request: Request,
    session_id: Optional[str] = Header(default=None, alias="X-Session-Id"),
) -> StylistSession:
    """Return the caller's in-memory session, creating it on first use."""

    registry = get_registry(request)
    return await registry.get((session_id or "").strip() or DEFAULT_SESSION_ID)
