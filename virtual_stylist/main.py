from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from virtual_stylist.config import STYLIST_MAX_SESSIONS, StylistSettings, logger
from virtual_stylist.core.gemini import GeminiClient
from virtual_stylist.services.stylist_session import SessionRegistry

from .routers import router


def create_app(
    client: Optional[GeminiClient] = None, max_sessions: int = STYLIST_MAX_SESSIONS
) -> FastAPI:
    """Build the API; pass ``client`` to inject a preconfigured Gemini client."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        gemini = client or GeminiClient.from_settings(StylistSettings.from_env())
        app.state.sessions = SessionRegistry(gemini, max_sessions=max_sessions)
        logger.info("Stylist sessions ready")
        try:
            yield
        finally:
            await app.state.sessions.close()
            if client is None:
                await gemini.aclose()

    app = FastAPI(
        title="Virtual Stylist API",
        description="Outfit suggestions and flat-lay visuals for a single clothing item",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(router)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


# Initialize FastAPI application
app = create_app()

logger.info("Virtual Stylist API initialized successfully")
