"""Smart ToDo main application."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from smarttodo import __version__
from smarttodo.api import register_exception_handlers, router
from smarttodo.config import settings
from smarttodo.container import build_components
from smarttodo.tasks import RetentionSweep

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("smarttodo")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager: owns the database handle."""
    logger.info("Starting Smart ToDo server...")
    logger.info(f"Environment: {settings.env.value}")

    components = getattr(app.state, "components", None)
    if components is None:
        components = build_components(settings)
        app.state.components = components

    await components.database.create_schema()
    logger.info("Database tables initialized")

    sweep = RetentionSweep(components.audit, components.store, settings)
    await sweep.start()

    yield

    logger.info("Shutting down gracefully...")
    await sweep.stop()
    await components.database.dispose()
    app.state.components = None
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Smart ToDo",
    description="Task tracking backend with automatic audit history",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allowed_methods,
    allow_headers=settings.cors_allowed_headers,
)

register_exception_handlers(app)
app.include_router(router)


def main():
    """Entry point for the application."""
    logger.info(f"API endpoints available at http://{settings.host}:{settings.port}/api")
    uvicorn.run(
        "smarttodo.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
