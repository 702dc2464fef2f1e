"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware,
and router registration.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sanctuary.api.chat import router as chat_router
from sanctuary.api.conversations import preview_router
from sanctuary.api.conversations import router as conversations_router
from sanctuary.api.dependencies import current_session_manager, get_session_manager
from sanctuary.api.routes import router as upload_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown lifecycle.

    Loads the stored conversation history on startup and releases
    transient resources on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    # Startup
    logger.info("Starting Sanctuary API...")
    manager = get_session_manager()
    logger.info(f"{len(manager.conversations())} stored conversations")
    yield
    # Shutdown
    logger.info("Shutting down Sanctuary API...")
    manager = current_session_manager()
    if manager is not None:
        await manager.shutdown()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="Sanctuary API",
        description=(
            "Chat with an uploaded PDF manuscript. Extracts its central themes, "
            "streams grounded answers and keeps every conversation in a durable "
            "history."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    application.include_router(upload_router)
    application.include_router(chat_router)
    application.include_router(conversations_router)
    application.include_router(preview_router)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "sanctuary"}

    return application


app = create_app()
