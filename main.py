"""Main entry point for the ChatSim FastAPI application.

This module creates and configures the FastAPI app instance that serves the
REST API for the simulated chat screen and its virtual-time scheduler.

To run the development server:
    uv run uvicorn main:app --reload

To run in production:
    uv run uvicorn main:app --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import ValidationError

from api.dependencies import initialize_chatsim, shutdown_chatsim
from api.exceptions import (
    SchedulerNotRunningError,
    generic_exception_handler,
    runtime_error_handler,
    scheduler_not_running_handler,
    screen_error_handler,
    validation_exception_handler,
    value_error_handler,
)
from api.routes import chat as chat_routes
from api.routes import scheduler as scheduler_routes
from api.routes import time as time_routes
from models.config import Settings
from models.errors import ScreenError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events.

    Reads settings, configures logging and creates the shared scheduler and
    chat screen at startup; closes them at shutdown. With
    ``CHATSIM_AUTO_ADVANCE`` set the scheduler starts straight away with the
    real-time driver.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to FastAPI to handle requests.
    """
    settings = Settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger.info("Starting ChatSim")
    scheduler, _ = initialize_chatsim(settings)
    if settings.auto_advance:
        scheduler.start(
            auto_advance=True,
            time_scale=settings.time_scale,
            tick_interval=settings.tick_interval,
        )

    yield

    logger.info("Shutting down ChatSim")
    shutdown_chatsim()


app = FastAPI(
    title="ChatSim",
    description="Mock-data chat screen backend driven by a virtual clock",
    version="0.1.0",
    lifespan=lifespan,
)

# Order matters: specific exceptions before general ones
app.add_exception_handler(ScreenError, screen_error_handler)
app.add_exception_handler(SchedulerNotRunningError, scheduler_not_running_handler)
app.add_exception_handler(ValidationError, validation_exception_handler)
app.add_exception_handler(ValueError, value_error_handler)
app.add_exception_handler(RuntimeError, runtime_error_handler)
app.add_exception_handler(Exception, generic_exception_handler)

app.include_router(scheduler_routes.router)
app.include_router(time_routes.router)
app.include_router(chat_routes.router)


@app.get("/")
async def root():
    """Root endpoint - returns a welcome message."""
    return {
        "message": "Welcome to the ChatSim API",
        "version": "0.1.0",
        "docs_url": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}
