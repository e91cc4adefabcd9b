"""
FastAPI Application Entry Point.
Initializes the FastAPI app with middleware, error handlers, routes and the
Socket.IO wrapper.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from dm_core import __version__
from dm_core.api.v1 import blocks, conversations, messages
from dm_core.config import settings
from dm_core.core.cache import cache
from dm_core.core.database import engine
from dm_core.core.exceptions import DEFAULT_LANGUAGE, MessagingError
from dm_core.core.logging_config import setup_logging
from dm_core.core.rate_limit import limiter
from dm_core.core.websocket import connection_manager
from dm_core.models import Base

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    setup_logging()
    await cache.connect()
    if settings.auto_create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")
    logger.info(f"dm-core {__version__} started ({settings.environment})")
    yield
    # Shutdown
    await cache.disconnect()
    await engine.dispose()


def preferred_language(accept_language: Optional[str]) -> str:
    """
    Primary language of the first entry of an Accept-Language header.

    Example:
        >>> preferred_language("ar-EG,ar;q=0.9,en;q=0.8")
        'ar'
    """
    if not accept_language:
        return DEFAULT_LANGUAGE
    first = accept_language.split(",")[0].split(";")[0].strip()
    return first.split("-")[0].lower() or DEFAULT_LANGUAGE


async def messaging_error_handler(request: Request, exc: MessagingError) -> JSONResponse:
    """Render domain errors with their status and a localized message."""
    language = preferred_language(request.headers.get("accept-language"))
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.localized(language), "code": exc.code},
    )


# Initialize FastAPI application
app = FastAPI(
    title="Direct Messaging Core",
    description="Conversations, messages, reactions, blocks and live updates",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Add rate limiter state and error handlers
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(MessagingError, messaging_error_handler)


# CORS Middleware
# Socket.IO handles CORS for its own endpoint via cors_allowed_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
async def health_check():
    """Basic health check endpoint."""
    return JSONResponse(
        status_code=200,
        content={
            "status": "healthy",
            "environment": settings.environment,
            "version": __version__,
        }
    )


# Include API routers
app.include_router(
    conversations.router,
    prefix="/api/v1/conversations",
    tags=["Conversations"]
)

app.include_router(
    messages.router,
    prefix="/api/v1/messages",
    tags=["Messages"]
)

app.include_router(
    blocks.router,
    prefix="/api/v1/blocks",
    tags=["Blocks"]
)

# Save reference to FastAPI app (for testing)
fastapi_app = app

# Socket.IO wraps FastAPI: /socket.io/* goes to Socket.IO, everything else to FastAPI
app = connection_manager.get_asgi_app(fastapi_app)
